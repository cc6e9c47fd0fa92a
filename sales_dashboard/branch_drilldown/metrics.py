# sales_dashboard/branch_drilldown/metrics.py
"""
KPI Derivations for the Branch Drill-down

Handles all secondary metrics computed from fetched aggregates:
- Average ticket (zero-guarded)
- Branch ranking: rank, share of total, traffic-light status
- Vendor listing: performance tier, ordering, team summary
- Category breakdown of a branch
- Vendor detail and locally derived product detail
- Estimated period sales for a focused branch

Branch status and vendor tier are separate rules:
status compares revenue against the peer mean, tier counts sales.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .constants import (
    EXCELLENT_THRESHOLD,
    ON_TRACK_THRESHOLD,
    VENDOR_EXCELLENT_MIN_SALES,
    VENDOR_GOOD_MIN_SALES,
)
from .models import (
    BranchAggregate,
    CategorySales,
    DateRange,
    ProductDetail,
    StatusLevel,
    TeamSummary,
    VendorAggregate,
    VendorDetail,
    VendorTier,
)

logger = logging.getLogger(__name__)


class DrilldownMetrics:
    """
    KPI derivations for the branch drill-down.

    Every method is a pure function of fetched aggregates; the controller
    calls them each time a level's data is replaced.

    Usage:
        ranked = DrilldownMetrics.rank_branches(branches)
        summary = DrilldownMetrics.summarize_ranking(ranked)
        team = DrilldownMetrics.summarize_team(vendors)
    """

    # =========================================================================
    # SCALAR RULES
    # =========================================================================

    @staticmethod
    def average_ticket(total_sales: float, transaction_count: int) -> float:
        """Sales per transaction; 0 when there are no transactions."""
        if not transaction_count or transaction_count <= 0:
            return 0.0
        return float(total_sales) / transaction_count

    @staticmethod
    def branch_status_level(total_sales: float, mean_sales: Optional[float]) -> StatusLevel:
        """
        Traffic-light status of one branch against the mean of all branches.

        Args:
            total_sales: Branch sales in the range
            mean_sales: Mean sales over every ranked branch (None if no ranking)
        """
        if mean_sales is None or mean_sales <= 0:
            return StatusLevel.NO_DATA
        if total_sales >= mean_sales * EXCELLENT_THRESHOLD:
            return StatusLevel.EXCELLENT
        if total_sales >= mean_sales * ON_TRACK_THRESHOLD:
            return StatusLevel.ON_TRACK
        return StatusLevel.LOW

    @staticmethod
    def vendor_performance_tier(sales_count: int) -> VendorTier:
        """Activity tier from the raw number of sales."""
        if sales_count == 0:
            return VendorTier.LOW
        if sales_count > VENDOR_EXCELLENT_MIN_SALES:
            return VendorTier.EXCELLENT
        if sales_count > VENDOR_GOOD_MIN_SALES:
            return VendorTier.GOOD
        return VendorTier.IN_PROGRESS

    # =========================================================================
    # BRANCH RANKING
    # =========================================================================

    @classmethod
    def rank_branches(cls, branches: Sequence[BranchAggregate]) -> List[BranchAggregate]:
        """
        Derive rank, share of total, average ticket and status for a ranking.

        Provider order is preserved; rank is 1-based by total sales descending
        with ties resolved by provider order.

        Args:
            branches: Raw branch aggregates of one fetch

        Returns:
            New BranchAggregate list with derived fields filled in
        """
        if not branches:
            return []

        df = pd.DataFrame({
            'total_sales': [float(b.total_sales or 0) for b in branches],
            'transaction_count': [int(b.transaction_count or 0) for b in branches],
        })

        total = df['total_sales'].sum()
        mean = df['total_sales'].mean()

        if total > 0:
            df['share'] = df['total_sales'] / total * 100
        else:
            df['share'] = 0.0

        df['rank'] = df['total_sales'].rank(method='first', ascending=False).astype(int)

        if mean > 0:
            df['status'] = np.select(
                [
                    df['total_sales'] >= mean * EXCELLENT_THRESHOLD,
                    df['total_sales'] >= mean * ON_TRACK_THRESHOLD,
                ],
                [StatusLevel.EXCELLENT.value, StatusLevel.ON_TRACK.value],
                default=StatusLevel.LOW.value,
            )
        else:
            df['status'] = StatusLevel.NO_DATA.value

        ranked = []
        for branch, row in zip(branches, df.itertuples(index=False)):
            ranked.append(replace(
                branch,
                total_sales=row.total_sales,
                transaction_count=row.transaction_count,
                average_ticket=cls.average_ticket(row.total_sales, row.transaction_count),
                rank=int(row.rank),
                share_of_total_percent=float(row.share),
                status_level=StatusLevel(row.status),
            ))

        logger.debug(f"Ranked {len(ranked)} branches (total={total:,.2f}, mean={mean:,.2f})")
        return ranked

    @classmethod
    def summarize_ranking(cls, branches: Sequence[BranchAggregate]) -> Dict:
        """
        Company-wide figures over a derived ranking, for KPI cards.

        Returns:
            Dict with totals, mean, active/inactive counts, best and lowest branch
        """
        if not branches:
            return cls._get_empty_ranking_summary()

        df = pd.DataFrame([
            {'id': b.id, 'total_sales': b.total_sales, 'transaction_count': b.transaction_count}
            for b in branches
        ])

        total_sales = float(df['total_sales'].sum())
        total_transactions = int(df['transaction_count'].sum())
        with_sales = df[df['total_sales'] > 0]

        best_id = int(df.loc[df['total_sales'].idxmax(), 'id']) if not with_sales.empty else None
        lowest_id = int(with_sales.loc[with_sales['total_sales'].idxmin(), 'id']) if not with_sales.empty else None

        return {
            'total_sales': total_sales,
            'total_transactions': total_transactions,
            'mean_sales': float(df['total_sales'].mean()),
            'average_ticket': cls.average_ticket(total_sales, total_transactions),
            'branches_with_sales': len(with_sales),
            'branches_without_sales': len(df) - len(with_sales),
            'best_branch_id': best_id,
            'lowest_branch_id': lowest_id,
        }

    @staticmethod
    def _get_empty_ranking_summary() -> Dict:
        """Return empty ranking summary dict."""
        return {
            'total_sales': 0.0,
            'total_transactions': 0,
            'mean_sales': 0.0,
            'average_ticket': 0.0,
            'branches_with_sales': 0,
            'branches_without_sales': 0,
            'best_branch_id': None,
            'lowest_branch_id': None,
        }

    # =========================================================================
    # VENDORS
    # =========================================================================

    @classmethod
    def derive_vendor_listing(cls, vendors: Sequence[VendorAggregate]) -> List[VendorAggregate]:
        """Attach tier and average ticket, ordered by total sales descending."""
        derived = [
            replace(
                vendor,
                average_ticket=cls.average_ticket(vendor.total_sales, vendor.sales_count),
                performance_tier=cls.vendor_performance_tier(vendor.sales_count),
            )
            for vendor in vendors
        ]
        # sorted() is stable: equal sales keep provider order
        return sorted(derived, key=lambda v: v.total_sales, reverse=True)

    @classmethod
    def summarize_team(cls, vendors: Sequence[VendorAggregate]) -> TeamSummary:
        """
        Totals over a branch's vendor list.

        relative_sales_percent maps each vendor to its sales as a percent of the
        top vendor, rounded half up.
        """
        if not vendors:
            return TeamSummary()

        df = pd.DataFrame([
            {'id': v.id, 'total_sales': float(v.total_sales), 'sales_count': int(v.sales_count)}
            for v in vendors
        ])

        total_sales = float(df['total_sales'].sum())
        transaction_count = int(df['sales_count'].sum())
        max_sales = df['total_sales'].max()

        if max_sales > 0:
            relative = np.floor(df['total_sales'] / max_sales * 100 + 0.5).astype(int)
        else:
            relative = pd.Series(0, index=df.index)

        return TeamSummary(
            total_sales=total_sales,
            transaction_count=transaction_count,
            average_ticket=cls.average_ticket(total_sales, transaction_count),
            vendor_count=len(df),
            best_vendor_id=int(df.loc[df['total_sales'].idxmax(), 'id']),
            relative_sales_percent={int(i): int(p) for i, p in zip(df['id'], relative)},
        )

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    @staticmethod
    def derive_category_breakdown(categories: Sequence[CategorySales]) -> List[CategorySales]:
        """Share of the branch's category revenue, ordered by revenue descending."""
        if not categories:
            return []

        revenue = np.array([float(c.total_revenue) for c in categories])
        total = revenue.sum()
        shares = revenue / total * 100 if total > 0 else np.zeros(len(revenue))

        derived = [
            replace(category, total_revenue=float(r), share_percent=float(s))
            for category, r, s in zip(categories, revenue, shares)
        ]
        return sorted(derived, key=lambda c: c.total_revenue, reverse=True)

    # =========================================================================
    # VENDOR & PRODUCT DETAIL
    # =========================================================================

    @classmethod
    def derive_vendor_detail(cls, detail: VendorDetail) -> VendorDetail:
        """Recompute the vendor's average ticket and tier from its totals."""
        return replace(
            detail,
            average_ticket=cls.average_ticket(detail.total_sales, detail.sales_count),
            performance_tier=cls.vendor_performance_tier(detail.sales_count),
            top_products=tuple(detail.top_products),
        )

    @classmethod
    def build_product_detail(cls, detail: VendorDetail, product_id: int) -> Optional[ProductDetail]:
        """
        Product view derived from an already fetched vendor detail.

        Returns:
            ProductDetail, or None when the product is not in the vendor's list
        """
        product = detail.find_product(product_id)
        if product is None:
            return None

        share = (product.total_revenue / detail.total_sales * 100) if detail.total_sales > 0 else 0.0

        return ProductDetail(
            product=product,
            average_ticket=cls.average_ticket(product.total_revenue, product.transaction_count),
            vendor_revenue_share_percent=share,
        )

    # =========================================================================
    # ESTIMATED PERIOD SALES
    # =========================================================================

    @classmethod
    def estimate_branch_period_sales(
        cls,
        branch: BranchAggregate,
        date_range: DateRange,
        company_last_30_days_sales: Optional[float]
    ) -> Optional[float]:
        """
        Sales figure shown for a focused branch.

        Two paths:
        - preset range: company-wide last-30-day sales (general KPIs) scaled
          by the branch's share of total
        - explicit range: the branch's literal filtered total

        Args:
            branch: Derived branch aggregate (share already computed)
            date_range: Range the branch was fetched under
            company_last_30_days_sales: Company sales over the last 30 days,
                None while the general KPIs are not loaded

        Returns:
            Estimated sales, or None when a preset range has no company figure
        """
        if date_range.is_explicit:
            return cls._filtered_period_total(branch)
        if company_last_30_days_sales is None:
            return None
        return cls._estimate_from_company_share(branch, company_last_30_days_sales)

    @staticmethod
    def _filtered_period_total(branch: BranchAggregate) -> float:
        return float(branch.total_sales)

    @staticmethod
    def _estimate_from_company_share(branch: BranchAggregate, company_sales: float) -> float:
        if not company_sales or company_sales <= 0:
            return 0.0
        return float(company_sales) * branch.share_of_total_percent / 100
