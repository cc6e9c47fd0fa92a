# sales_dashboard/branch_drilldown/constants.py
"""
Constants for Branch Drill-down Module

Centralized configuration for:
- Traffic-light thresholds (branch status)
- Vendor performance tiers
- Period presets
- Fetch level names
- REST endpoints
- Export styles
"""

# =====================================================================
# BRANCH STATUS (TRAFFIC LIGHT)
# =====================================================================

# Relative to the mean total sales of all ranked branches
EXCELLENT_THRESHOLD = 1.25
ON_TRACK_THRESHOLD = 0.85

STATUS_COLORS = {
    "Excellent": "#10b981",    # Emerald
    "OnTrack": "#fbbf24",      # Amber
    "Low": "#f43f5e",          # Rose
    "NoData": "#94a3b8",       # Slate
}

# =====================================================================
# VENDOR PERFORMANCE TIERS
# =====================================================================

# Based on raw sale count, not revenue
VENDOR_EXCELLENT_MIN_SALES = 10    # strictly greater than
VENDOR_GOOD_MIN_SALES = 5          # strictly greater than

# =====================================================================
# PERIOD DEFINITIONS
# =====================================================================

PERIOD_PRESETS = ['30d', '90d', 'ytd']

PERIOD_LABELS = {
    "30d": "Last 30 days",
    "90d": "Last 90 days",
    "ytd": "Year to date",
}

# Days covered by rolling presets, inclusive of today
PERIOD_DAYS = {
    "30d": 30,
    "90d": 90,
}

DEFAULT_PERIOD = '30d'

DATE_PARAM_FORMAT = '%Y-%m-%d'

# =====================================================================
# FETCH LEVELS
# =====================================================================

LEVEL_BRANCHES = 'branches'
LEVEL_VENDORS = 'vendors'
LEVEL_VENDOR_DETAIL = 'vendor_detail'
LEVEL_CATEGORIES = 'categories'
LEVEL_GENERAL_KPIS = 'general_kpis'

FETCH_LEVELS = [
    LEVEL_BRANCHES,
    LEVEL_VENDORS,
    LEVEL_VENDOR_DETAIL,
    LEVEL_CATEGORIES,
    LEVEL_GENERAL_KPIS,
]

# =====================================================================
# REST ENDPOINTS
# =====================================================================

ENDPOINTS = {
    "branch_ranking": "/dashboard/sucursales/ranking",
    "branch_vendors": "/dashboard/sucursales/{branch_id}/vendedores",
    "vendor_detail": "/dashboard/vendedores/{vendor_id}/detalle",
    "category_sales": "/dashboard/categorias",
    "general_kpis": "/dashboard/kpis",
}

# =====================================================================
# EXPORT SETTINGS
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "1f77b4",
    "header_font_color": "FFFFFF",
    "error_font_color": "C00000",
    "currency_format": '#,##0',
    "percent_format": '0.0"%"',
    "date_format": 'YYYY-MM-DD',
}
