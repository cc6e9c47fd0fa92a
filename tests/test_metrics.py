"""Tests for drill-down KPI derivations."""
import math
from datetime import date

import pytest

from sales_dashboard.branch_drilldown import (
    BranchAggregate,
    CategorySales,
    DateRange,
    ProductLine,
    StatusLevel,
    VendorAggregate,
    VendorDetail,
    VendorTier,
)
from sales_dashboard.branch_drilldown.metrics import DrilldownMetrics


def _branches(sales, transactions=None):
    transactions = transactions or [1] * len(sales)
    return [
        BranchAggregate(id=i + 1, name=f"Branch {i + 1}", total_sales=s, transaction_count=t)
        for i, (s, t) in enumerate(zip(sales, transactions))
    ]


class TestAverageTicket:
    def test_divides_sales_by_transactions(self):
        assert DrilldownMetrics.average_ticket(100.0, 4) == 25.0

    def test_zero_transactions_gives_zero(self):
        result = DrilldownMetrics.average_ticket(100.0, 0)
        assert result == 0.0
        assert math.isfinite(result)

    def test_missing_transaction_count_gives_zero(self):
        assert DrilldownMetrics.average_ticket(100.0, None) == 0.0


class TestBranchStatus:
    def test_thresholds_against_mean(self):
        ranked = DrilldownMetrics.rank_branches(_branches([100, 125, 85, 50]))
        assert [b.status_level for b in ranked] == [
            StatusLevel.ON_TRACK,
            StatusLevel.EXCELLENT,
            StatusLevel.ON_TRACK,
            StatusLevel.LOW,
        ]

    def test_boundaries_are_inclusive(self):
        assert DrilldownMetrics.branch_status_level(112.5, 90) == StatusLevel.EXCELLENT
        assert DrilldownMetrics.branch_status_level(112.4, 90) == StatusLevel.ON_TRACK
        assert DrilldownMetrics.branch_status_level(76.5, 90) == StatusLevel.ON_TRACK
        assert DrilldownMetrics.branch_status_level(76.4, 90) == StatusLevel.LOW

    def test_degenerate_mean_is_no_data(self):
        assert DrilldownMetrics.branch_status_level(10, 0) == StatusLevel.NO_DATA
        assert DrilldownMetrics.branch_status_level(10, None) == StatusLevel.NO_DATA

    def test_all_zero_sales_is_no_data(self):
        ranked = DrilldownMetrics.rank_branches(_branches([0, 0, 0]))
        assert {b.status_level for b in ranked} == {StatusLevel.NO_DATA}

    def test_empty_ranking(self):
        assert DrilldownMetrics.rank_branches([]) == []


class TestRankBranches:
    def test_share_of_total(self):
        ranked = DrilldownMetrics.rank_branches(_branches([100, 125, 85, 50]))
        shares = [b.share_of_total_percent for b in ranked]
        assert shares[1] == pytest.approx(125 / 360 * 100)
        assert sum(shares) == pytest.approx(100.0)

    def test_zero_total_share_is_zero(self):
        ranked = DrilldownMetrics.rank_branches(_branches([0, 0]))
        assert [b.share_of_total_percent for b in ranked] == [0.0, 0.0]

    def test_rank_by_sales_descending_keeps_provider_order(self):
        ranked = DrilldownMetrics.rank_branches(_branches([100, 125, 85, 50]))
        assert [b.id for b in ranked] == [1, 2, 3, 4]
        assert [b.rank for b in ranked] == [2, 1, 3, 4]

    def test_ties_ranked_in_provider_order(self):
        ranked = DrilldownMetrics.rank_branches(_branches([80, 80, 90]))
        assert [b.rank for b in ranked] == [2, 3, 1]

    def test_average_ticket_is_recomputed(self):
        raw = _branches([100, 90], [4, 0])
        raw[0] = BranchAggregate(id=1, name="x", total_sales=100, transaction_count=4, average_ticket=999)
        ranked = DrilldownMetrics.rank_branches(raw)
        assert ranked[0].average_ticket == 25.0
        assert ranked[1].average_ticket == 0.0

    def test_input_is_not_modified(self):
        raw = _branches([100, 50])
        DrilldownMetrics.rank_branches(raw)
        assert raw[0].rank == 0
        assert raw[0].status_level == StatusLevel.NO_DATA


class TestRankingSummary:
    def test_summary_figures(self):
        ranked = DrilldownMetrics.rank_branches(_branches([100, 0, 50], [5, 0, 5]))
        summary = DrilldownMetrics.summarize_ranking(ranked)

        assert summary['total_sales'] == 150.0
        assert summary['total_transactions'] == 10
        assert summary['average_ticket'] == 15.0
        assert summary['mean_sales'] == 50.0
        assert summary['branches_with_sales'] == 2
        assert summary['branches_without_sales'] == 1
        assert summary['best_branch_id'] == 1
        assert summary['lowest_branch_id'] == 3

    def test_empty_summary(self):
        summary = DrilldownMetrics.summarize_ranking([])
        assert summary['total_sales'] == 0.0
        assert summary['best_branch_id'] is None


class TestVendorTier:
    @pytest.mark.parametrize("count, tier", [
        (0, VendorTier.LOW),
        (1, VendorTier.IN_PROGRESS),
        (5, VendorTier.IN_PROGRESS),
        (6, VendorTier.GOOD),
        (10, VendorTier.GOOD),
        (11, VendorTier.EXCELLENT),
    ])
    def test_tier_by_sales_count(self, count, tier):
        assert DrilldownMetrics.vendor_performance_tier(count) == tier

    def test_tier_ignores_revenue(self):
        rich = VendorAggregate(id=1, name="a", sales_count=1, total_sales=1_000_000)
        listing = DrilldownMetrics.derive_vendor_listing([rich])
        assert listing[0].performance_tier == VendorTier.IN_PROGRESS


class TestVendorListing:
    def test_sorted_by_sales_with_ticket(self):
        vendors = [
            VendorAggregate(id=1, name="a", sales_count=2, total_sales=10.0),
            VendorAggregate(id=2, name="b", sales_count=4, total_sales=80.0),
            VendorAggregate(id=3, name="c", sales_count=0, total_sales=0.0),
        ]
        listing = DrilldownMetrics.derive_vendor_listing(vendors)

        assert [v.id for v in listing] == [2, 1, 3]
        assert listing[0].average_ticket == 20.0
        assert listing[2].average_ticket == 0.0

    def test_team_summary(self):
        vendors = [
            VendorAggregate(id=1, name="a", sales_count=2, total_sales=25.0),
            VendorAggregate(id=2, name="b", sales_count=3, total_sales=100.0),
            VendorAggregate(id=3, name="c", sales_count=0, total_sales=0.0),
        ]
        team = DrilldownMetrics.summarize_team(vendors)

        assert team.total_sales == 125.0
        assert team.transaction_count == 5
        assert team.average_ticket == 25.0
        assert team.vendor_count == 3
        assert team.best_vendor_id == 2
        assert team.relative_sales_percent == {1: 25, 2: 100, 3: 0}

    def test_relative_percent_rounds_half_up(self):
        vendors = [
            VendorAggregate(id=1, name="a", sales_count=1, total_sales=8.0),
            VendorAggregate(id=2, name="b", sales_count=1, total_sales=1.0),
        ]
        assert DrilldownMetrics.summarize_team(vendors).relative_sales_percent[2] == 13

    def test_team_without_sales(self):
        vendors = [VendorAggregate(id=1, name="a"), VendorAggregate(id=2, name="b")]
        team = DrilldownMetrics.summarize_team(vendors)
        assert team.average_ticket == 0.0
        assert team.relative_sales_percent == {1: 0, 2: 0}

    def test_empty_team(self):
        team = DrilldownMetrics.summarize_team([])
        assert team.vendor_count == 0
        assert team.best_vendor_id is None


class TestVendorAndProductDetail:
    @pytest.fixture
    def detail(self):
        return VendorDetail(
            id=7, name="Luis", sales_count=4, total_sales=200.0, average_ticket=1.0,
            top_products=(
                ProductLine(id=1, name="Notebook", total_revenue=150.0, transaction_count=3),
                ProductLine(id=2, name="Cable", total_revenue=50.0, transaction_count=0),
            ),
        )

    def test_vendor_detail_ticket_and_tier(self, detail):
        derived = DrilldownMetrics.derive_vendor_detail(detail)
        assert derived.average_ticket == 50.0
        assert derived.performance_tier == VendorTier.IN_PROGRESS

    def test_product_detail(self, detail):
        product = DrilldownMetrics.build_product_detail(detail, 1)
        assert product.product.name == "Notebook"
        assert product.average_ticket == 50.0
        assert product.vendor_revenue_share_percent == 75.0

    def test_product_without_transactions(self, detail):
        assert DrilldownMetrics.build_product_detail(detail, 2).average_ticket == 0.0

    def test_unknown_product(self, detail):
        assert DrilldownMetrics.build_product_detail(detail, 99) is None


class TestEstimatedPeriodSales:
    @pytest.fixture
    def branch(self):
        return BranchAggregate(id=1, name="Centro", total_sales=300.0, share_of_total_percent=25.0)

    def test_preset_range_scales_company_sales_by_share(self, branch):
        preset = DateRange.from_preset("30d", today=date(2024, 3, 31))
        assert DrilldownMetrics.estimate_branch_period_sales(branch, preset, 2000.0) == 500.0

    def test_explicit_range_uses_filtered_total(self, branch):
        explicit = DateRange("2024-01-01", "2024-01-31")
        assert DrilldownMetrics.estimate_branch_period_sales(branch, explicit, 2000.0) == 300.0

    def test_preset_without_company_sales(self, branch):
        preset = DateRange.from_preset("90d", today=date(2024, 3, 31))
        assert DrilldownMetrics.estimate_branch_period_sales(branch, preset, 0) == 0.0

    def test_preset_before_company_sales_are_loaded(self, branch):
        preset = DateRange.from_preset("30d", today=date(2024, 3, 31))
        assert DrilldownMetrics.estimate_branch_period_sales(branch, preset, None) is None

    def test_preset_and_explicit_paths_differ(self, branch):
        preset = DateRange.from_preset("30d", today=date(2024, 3, 31))
        explicit = DateRange(preset.start, preset.end)

        estimated = DrilldownMetrics.estimate_branch_period_sales(branch, preset, 4000.0)
        filtered = DrilldownMetrics.estimate_branch_period_sales(branch, explicit, 4000.0)

        assert estimated == 1000.0
        assert filtered == 300.0


class TestCategoryBreakdown:
    def test_share_of_revenue_sorted_descending(self):
        categories = [
            CategorySales(category="Accessories", sales_count=3, total_revenue=25.0),
            CategorySales(category="Computing", sales_count=9, total_revenue=75.0),
        ]
        breakdown = DrilldownMetrics.derive_category_breakdown(categories)

        assert [c.category for c in breakdown] == ["Computing", "Accessories"]
        assert [c.share_percent for c in breakdown] == [75.0, 25.0]

    def test_zero_revenue_share_is_zero(self):
        categories = [CategorySales(category="a"), CategorySales(category="b")]
        breakdown = DrilldownMetrics.derive_category_breakdown(categories)
        assert [c.share_percent for c in breakdown] == [0.0, 0.0]

    def test_empty_breakdown(self):
        assert DrilldownMetrics.derive_category_breakdown([]) == []
