# sales_dashboard/__init__.py
"""
Shared Package for the Sales Dashboard

This package contains:
- config: Configuration management (local + Streamlit Cloud)
- api_client: Dashboard REST API access
- branch_drilldown: Branch -> vendor -> product analytics drill-down

Usage:
    from sales_dashboard.config import config
    from sales_dashboard.branch_drilldown import DrilldownAnalyticsController
"""

# Configuration
from .config import (
    config,
    Config,
)

# Drill-down
from .branch_drilldown import (
    ApiDataProvider,
    DrilldownAnalyticsController,
)

# API
from .api_client import (
    ApiClient,
    check_api_connection,
)

__all__ = [
    # Config
    'config',
    'Config',

    # API
    'ApiClient',
    'check_api_connection',

    # Drill-down
    'ApiDataProvider',
    'DrilldownAnalyticsController',
]

__version__ = '1.0.0'
