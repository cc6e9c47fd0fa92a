"""Shared fixtures: sample aggregates and a controllable fake provider."""
import asyncio
from datetime import date

import pytest

from sales_dashboard.branch_drilldown import (
    BranchAggregate,
    CategorySales,
    DateRange,
    DrilldownAnalyticsController,
    GeneralKpis,
    ProductLine,
    Selection,
    VendorAggregate,
    VendorDetail,
)

TODAY = date(2024, 3, 31)


class FakeProvider:
    """
    In-memory DataProvider.

    hold(method, key) returns a future the matching call waits on, so tests
    decide the order in which fetches resolve. fail(method, error) makes the
    next call of that method raise.
    """

    def __init__(self, ranking, vendors, details, categories=None, kpis=None):
        self.ranking = ranking
        self.vendors = vendors
        self.details = details
        self.categories = categories or {}
        self.kpis = kpis or GeneralKpis()
        self.calls = []
        self._gates = {}
        self._failures = {}

    def hold(self, method, key=None):
        future = asyncio.get_running_loop().create_future()
        self._gates[(method, key)] = future
        return future

    def fail(self, method, error):
        self._failures[method] = error

    def count(self, method):
        return sum(1 for call in self.calls if call[0] == method)

    async def _enter(self, method, key):
        error = self._failures.pop(method, None)
        gate = self._gates.pop((method, key), None)
        if gate is not None:
            await gate
        if error is not None:
            raise error

    async def fetch_branch_ranking(self, date_range):
        self.calls.append(("fetch_branch_ranking", None, date_range))
        await self._enter("fetch_branch_ranking", None)
        return list(self.ranking)

    async def fetch_vendors_for_branch(self, branch_id, date_range):
        self.calls.append(("fetch_vendors_for_branch", branch_id, date_range))
        await self._enter("fetch_vendors_for_branch", branch_id)
        return list(self.vendors.get(branch_id, []))

    async def fetch_vendor_detail(self, vendor_id, date_range):
        self.calls.append(("fetch_vendor_detail", vendor_id, date_range))
        await self._enter("fetch_vendor_detail", vendor_id)
        return self.details[vendor_id]

    async def fetch_category_sales(self, branch_id, date_range):
        self.calls.append(("fetch_category_sales", branch_id, date_range))
        await self._enter("fetch_category_sales", branch_id)
        return list(self.categories.get(branch_id, []))

    async def fetch_general_kpis(self):
        self.calls.append(("fetch_general_kpis", None, None))
        await self._enter("fetch_general_kpis", None)
        return self.kpis


@pytest.fixture
def ranking():
    return [
        BranchAggregate(id=1, name="Centro", location="Av. Corrientes 100", total_sales=100.0, transaction_count=4),
        BranchAggregate(id=2, name="Norte", location="Cabildo 2000", total_sales=125.0, transaction_count=5),
        BranchAggregate(id=3, name="Sur", location="Mitre 300", total_sales=85.0, transaction_count=0),
        BranchAggregate(id=4, name="Oeste", location="Rivadavia 9000", total_sales=50.0, transaction_count=2),
    ]


@pytest.fixture
def vendors():
    return {
        1: [
            VendorAggregate(id=12, name="Ana", last_name="Gomez", national_id="30111222", branch_id=1,
                            sales_count=3, total_sales=40.0),
            VendorAggregate(id=11, name="Luis", last_name="Perez", national_id="28999000", branch_id=1,
                            sales_count=12, total_sales=60.0),
        ],
        2: [
            VendorAggregate(id=21, name="Marta", last_name="Diaz", branch_id=2, sales_count=0, total_sales=0.0),
            VendorAggregate(id=22, name="Jorge", last_name="Ruiz", branch_id=2, sales_count=7, total_sales=125.0),
        ],
    }


@pytest.fixture
def details():
    return {
        11: VendorDetail(
            id=11, name="Luis", last_name="Perez", national_id="28999000", branch_id=1,
            sales_count=12, total_sales=60.0, units_sold=20, products_sold_count=2,
            branch_share_percent=60.0, first_sale_date=date(2024, 3, 2), last_sale_date=date(2024, 3, 28),
            top_products=(
                ProductLine(id=101, name="Notebook", category="Computing", units_sold=5,
                            total_revenue=45.0, transaction_count=9),
                ProductLine(id=102, name="Mouse", category="Accessories", units_sold=15,
                            total_revenue=15.0, transaction_count=3),
            ),
        ),
        12: VendorDetail(
            id=12, name="Ana", last_name="Gomez", branch_id=1, sales_count=3, total_sales=40.0,
            top_products=(
                ProductLine(id=103, name="Monitor", category="Computing", units_sold=2,
                            total_revenue=40.0, transaction_count=3),
            ),
        ),
        22: VendorDetail(
            id=22, name="Jorge", last_name="Ruiz", branch_id=2, sales_count=7, total_sales=125.0,
        ),
    }


@pytest.fixture
def categories():
    return {
        1: [
            CategorySales(category="Accessories", sales_count=3, units_sold=15, total_revenue=25.0),
            CategorySales(category="Computing", sales_count=9, units_sold=7, total_revenue=75.0),
        ],
    }


@pytest.fixture
def kpis():
    return GeneralKpis(
        total_sales=5000.0, current_month_sales=900.0, previous_month_sales=800.0,
        month_over_month_percent=12.5, last_30_days_sales=1000.0,
        last_30_days_transactions=40, last_30_days_ticket=25.0,
    )


@pytest.fixture
def provider(ranking, vendors, details, categories, kpis):
    return FakeProvider(ranking, vendors, details, categories, kpis)


@pytest.fixture
def initial_range():
    return DateRange.from_preset("30d", today=TODAY)


@pytest.fixture
def controller(provider, initial_range):
    return DrilldownAnalyticsController(provider, Selection(date_range=initial_range))
