# sales_dashboard/branch_drilldown/__init__.py
"""
Branch Drill-down Module

Aggregation and drill-down state for the sales dashboard:
branch ranking -> vendors of a branch -> vendor detail -> product.

Components:
- controller: DrilldownAnalyticsController (selection, fetch ordering, snapshot)
- metrics: DrilldownMetrics (status, share, ticket, tiers, summaries, categories)
- provider: DataProvider protocol and REST implementation
- export: Formatted Excel report of a snapshot

Usage:
    from sales_dashboard.branch_drilldown import (
        ApiDataProvider,
        DateRange,
        DrilldownAnalyticsController,
    )

    controller = DrilldownAnalyticsController(ApiDataProvider())
    await controller.refresh()
    snapshot = controller.get_snapshot()
"""

from .errors import (
    DrilldownError,
    InvalidRangeError,
    InvalidSelectionError,
    ProviderFetchError,
    StaleResultDiscarded,
)
from .models import (
    BranchAggregate,
    CategorySales,
    DateRange,
    DrilldownLevel,
    GeneralKpis,
    ProductDetail,
    ProductLine,
    Selection,
    Snapshot,
    StatusLevel,
    TeamSummary,
    VendorAggregate,
    VendorDetail,
    VendorTier,
)
from .metrics import DrilldownMetrics
from .provider import ApiDataProvider, DataProvider
from .controller import DrilldownAnalyticsController
from .export import DrilldownExport

# Constants
from .constants import (
    FETCH_LEVELS,
    LEVEL_BRANCHES,
    LEVEL_CATEGORIES,
    LEVEL_GENERAL_KPIS,
    LEVEL_VENDORS,
    LEVEL_VENDOR_DETAIL,
    PERIOD_LABELS,
    PERIOD_PRESETS,
    STATUS_COLORS,
)

__all__ = [
    # Classes
    'DrilldownAnalyticsController',
    'ApiDataProvider',
    'DataProvider',
    'DrilldownExport',
    'DrilldownMetrics',

    # Models
    'BranchAggregate',
    'CategorySales',
    'DateRange',
    'DrilldownLevel',
    'GeneralKpis',
    'ProductDetail',
    'ProductLine',
    'Selection',
    'Snapshot',
    'StatusLevel',
    'TeamSummary',
    'VendorAggregate',
    'VendorDetail',
    'VendorTier',

    # Errors
    'DrilldownError',
    'InvalidRangeError',
    'InvalidSelectionError',
    'ProviderFetchError',
    'StaleResultDiscarded',

    # Constants
    'FETCH_LEVELS',
    'LEVEL_BRANCHES',
    'LEVEL_CATEGORIES',
    'LEVEL_GENERAL_KPIS',
    'LEVEL_VENDORS',
    'LEVEL_VENDOR_DETAIL',
    'PERIOD_LABELS',
    'PERIOD_PRESETS',
    'STATUS_COLORS',
]

__version__ = '1.0.0'
