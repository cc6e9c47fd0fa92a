# sales_dashboard/branch_drilldown/models.py
"""
Data model for the branch drill-down.

Aggregates are read-only projections of what the dashboard API returns.
Everything here is immutable: the controller replaces values wholesale
instead of patching them in place.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

import pandas as pd

from .constants import (
    DEFAULT_PERIOD,
    FETCH_LEVELS,
    PERIOD_DAYS,
    PERIOD_LABELS,
)
from .errors import InvalidRangeError, ProviderFetchError

DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Coerce a date, datetime or ISO 'YYYY-MM-DD' string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Cannot convert {type(value).__name__} to date")


# =============================================================================
# ENUMS
# =============================================================================

class StatusLevel(str, Enum):
    """Traffic-light status of a branch relative to its peers."""
    EXCELLENT = "Excellent"
    ON_TRACK = "OnTrack"
    LOW = "Low"
    NO_DATA = "NoData"


class VendorTier(str, Enum):
    """Activity tier of a vendor, by number of sales."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    IN_PROGRESS = "InProgress"
    LOW = "Low"


class DrilldownLevel(str, Enum):
    """Depth of the current selection."""
    ROOT = "Root"
    BRANCH_SELECTED = "BranchSelected"
    VENDOR_SELECTED = "VendorSelected"
    PRODUCT_SELECTED = "ProductSelected"


# =============================================================================
# DATE RANGE
# =============================================================================

@dataclass(frozen=True)
class DateRange:
    """
    Inclusive date range used by every fetch.

    Attributes:
        start: First day of the range
        end: Last day of the range
        preset: Preset key ('30d', '90d', 'ytd') or None for explicit bounds
    """
    start: date
    end: date
    preset: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'start', to_date(self.start))
        object.__setattr__(self, 'end', to_date(self.end))

    @classmethod
    def from_preset(cls, preset: str, today: date = None) -> 'DateRange':
        """
        Build the range for a period preset, ending today.

        Args:
            preset: '30d', '90d' or 'ytd'
            today: Reference day (defaults to date.today())
        """
        if today is None:
            today = date.today()
        today = to_date(today)

        if preset in PERIOD_DAYS:
            start = today - timedelta(days=PERIOD_DAYS[preset] - 1)
        elif preset == 'ytd':
            start = date(today.year, 1, 1)
        else:
            raise ValueError(f"Unknown period preset: {preset}")

        return cls(start=start, end=today, preset=preset)

    @property
    def is_valid(self) -> bool:
        return self.start <= self.end

    @property
    def is_explicit(self) -> bool:
        """True when the bounds were chosen by the user rather than a preset."""
        return self.preset is None

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def label(self) -> str:
        if self.preset in PERIOD_LABELS:
            return PERIOD_LABELS[self.preset]
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def validate(self) -> 'DateRange':
        if not self.is_valid:
            raise InvalidRangeError(
                f"Invalid date range: start {self.start} is after end {self.end}"
            )
        return self


# =============================================================================
# AGGREGATES
# =============================================================================

@dataclass(frozen=True)
class BranchAggregate:
    """Sales totals of one branch in the current range."""
    id: int
    name: str
    location: str = ""
    total_sales: float = 0.0
    transaction_count: int = 0
    average_ticket: float = 0.0
    rank: int = 0
    share_of_total_percent: float = 0.0
    status_level: StatusLevel = StatusLevel.NO_DATA


@dataclass(frozen=True)
class VendorAggregate:
    """Sales totals of one vendor (salesperson) in the current range."""
    id: int
    name: str
    last_name: str = ""
    national_id: str = ""
    branch_id: Optional[int] = None
    sales_count: int = 0
    total_sales: float = 0.0
    average_ticket: float = 0.0
    performance_tier: Optional[VendorTier] = None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()


@dataclass(frozen=True)
class ProductLine:
    """One product sold by a vendor in the current range."""
    id: int
    name: str
    category: str = ""
    units_sold: int = 0
    total_revenue: float = 0.0
    transaction_count: int = 0


@dataclass(frozen=True)
class VendorDetail(VendorAggregate):
    """Vendor aggregate plus activity statistics and sold products."""
    units_sold: int = 0
    products_sold_count: int = 0
    branch_share_percent: float = 0.0
    first_sale_date: Optional[date] = None
    last_sale_date: Optional[date] = None
    top_products: Tuple[ProductLine, ...] = ()

    def find_product(self, product_id: int) -> Optional[ProductLine]:
        for product in self.top_products:
            if product.id == product_id:
                return product
        return None

    def has_product(self, product_id: int) -> bool:
        return self.find_product(product_id) is not None


@dataclass(frozen=True)
class CategorySales:
    """Sales of one product category within the selected branch."""
    category: str
    sales_count: int = 0
    units_sold: int = 0
    total_revenue: float = 0.0
    share_percent: float = 0.0


@dataclass(frozen=True)
class GeneralKpis:
    """
    Company-wide indicators, independent of the drill-down range.

    Attributes:
        month_over_month_percent: Current vs previous calendar month, in percent
        last_30_days_sales: Company sales over the last 30 days
        last_30_days_ticket: Average ticket over the last 30 days
    """
    total_sales: float = 0.0
    monthly_average: float = 0.0
    current_month_sales: float = 0.0
    previous_month_sales: float = 0.0
    month_over_month_percent: float = 0.0
    transaction_count: int = 0
    branch_count: int = 0
    product_count: int = 0
    last_30_days_sales: float = 0.0
    last_30_days_transactions: int = 0
    last_30_days_ticket: float = 0.0


@dataclass(frozen=True)
class ProductDetail:
    """Locally derived view of the selected product."""
    product: ProductLine
    average_ticket: float = 0.0
    vendor_revenue_share_percent: float = 0.0


@dataclass(frozen=True)
class TeamSummary:
    """Totals over the vendor list of the selected branch."""
    total_sales: float = 0.0
    transaction_count: int = 0
    average_ticket: float = 0.0
    vendor_count: int = 0
    best_vendor_id: Optional[int] = None
    relative_sales_percent: Dict[int, int] = field(default_factory=dict)


# =============================================================================
# SELECTION & SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class Selection:
    """Current drill-down path and date range. Replaced, never mutated."""
    date_range: DateRange
    selected_branch_id: Optional[int] = None
    selected_vendor_id: Optional[int] = None
    selected_product_id: Optional[int] = None

    @classmethod
    def default(cls, today: date = None) -> 'Selection':
        return cls(date_range=DateRange.from_preset(DEFAULT_PERIOD, today))

    @property
    def level(self) -> DrilldownLevel:
        if self.selected_product_id is not None:
            return DrilldownLevel.PRODUCT_SELECTED
        if self.selected_vendor_id is not None:
            return DrilldownLevel.VENDOR_SELECTED
        if self.selected_branch_id is not None:
            return DrilldownLevel.BRANCH_SELECTED
        return DrilldownLevel.ROOT


@dataclass
class LevelState:
    """
    Mutable per-level bookkeeping owned by the controller.

    Attributes:
        data: Last successfully applied value for the level
        epoch: Incremented on every (re)trigger or invalidation
        is_loading: True while the current epoch's fetch is pending
        last_error: Failure of the most recent settled fetch, if any
        scope: (date_range, parent id) the data was computed under
    """
    data: Any = None
    epoch: int = 0
    is_loading: bool = False
    last_error: Optional[ProviderFetchError] = None
    scope: Optional[Tuple[Any, ...]] = None

    def reset(self, data: Any = None):
        self.epoch += 1
        self.data = data
        self.is_loading = False
        self.last_error = None
        self.scope = None


@dataclass(frozen=True)
class Snapshot:
    """Read-only view handed to the presentation layer."""
    selection: Selection
    branches: Tuple[BranchAggregate, ...] = ()
    vendors: Tuple[VendorAggregate, ...] = ()
    vendor_detail: Optional[VendorDetail] = None
    product_detail: Optional[ProductDetail] = None
    team_summary: Optional[TeamSummary] = None
    ranking_summary: Dict[str, Any] = field(default_factory=dict)
    categories: Tuple[CategorySales, ...] = ()
    general_kpis: Optional[GeneralKpis] = None
    estimated_branch_sales: Optional[float] = None
    is_loading: Dict[str, bool] = field(
        default_factory=lambda: {level: False for level in FETCH_LEVELS}
    )
    last_error: Dict[str, Optional[ProviderFetchError]] = field(
        default_factory=lambda: {level: None for level in FETCH_LEVELS}
    )
    scopes: Dict[str, Optional[Tuple[Any, ...]]] = field(
        default_factory=lambda: {level: None for level in FETCH_LEVELS}
    )

    @property
    def date_range(self) -> DateRange:
        return self.selection.date_range

    @property
    def selected_branch(self) -> Optional[BranchAggregate]:
        branch_id = self.selection.selected_branch_id
        for branch in self.branches:
            if branch.id == branch_id:
                return branch
        return None

    @property
    def any_loading(self) -> bool:
        return any(self.is_loading.values())

    @property
    def has_errors(self) -> bool:
        return any(error is not None for error in self.last_error.values())

    # =========================================================================
    # DATAFRAME VIEWS
    # =========================================================================

    def branches_frame(self) -> pd.DataFrame:
        """Branch ranking as a DataFrame (one row per branch)."""
        columns = [
            'id', 'name', 'location', 'total_sales', 'transaction_count',
            'average_ticket', 'rank', 'share_of_total_percent', 'status_level'
        ]
        rows = [
            {**{col: getattr(b, col) for col in columns}, 'status_level': b.status_level.value}
            for b in self.branches
        ]
        return pd.DataFrame(rows, columns=columns)

    def vendors_frame(self) -> pd.DataFrame:
        """Vendor listing of the selected branch as a DataFrame."""
        columns = [
            'id', 'full_name', 'national_id', 'sales_count', 'total_sales',
            'average_ticket', 'performance_tier'
        ]
        rows = [
            {
                'id': v.id,
                'full_name': v.full_name,
                'national_id': v.national_id,
                'sales_count': v.sales_count,
                'total_sales': v.total_sales,
                'average_ticket': v.average_ticket,
                'performance_tier': v.performance_tier.value if v.performance_tier else None,
            }
            for v in self.vendors
        ]
        return pd.DataFrame(rows, columns=columns)

    def products_frame(self) -> pd.DataFrame:
        """Products sold by the selected vendor as a DataFrame."""
        columns = ['id', 'name', 'category', 'units_sold', 'total_revenue', 'transaction_count']
        products = self.vendor_detail.top_products if self.vendor_detail else ()
        rows = [{col: getattr(p, col) for col in columns} for p in products]
        return pd.DataFrame(rows, columns=columns)

    def categories_frame(self) -> pd.DataFrame:
        """Category breakdown of the selected branch as a DataFrame."""
        columns = ['category', 'sales_count', 'units_sold', 'total_revenue', 'share_percent']
        rows = [{col: getattr(c, col) for col in columns} for c in self.categories]
        return pd.DataFrame(rows, columns=columns)
