"""Tests for the Excel drill-down report."""
import pytest
from openpyxl import load_workbook

from sales_dashboard.branch_drilldown import DrilldownExport, ProviderFetchError


def _load(controller):
    return load_workbook(DrilldownExport().create_report(controller.get_snapshot()))


@pytest.mark.asyncio
async def test_root_report_has_summary_and_branches(controller):
    await controller.refresh()
    wb = _load(controller)

    assert wb.sheetnames == ["Summary", "Branches"]
    branches = wb["Branches"]
    assert branches.cell(row=1, column=2).value == "Branch"
    assert branches.cell(row=2, column=2).value == "Centro"
    assert branches.cell(row=3, column=8).value == "Excellent"
    assert branches.max_row == 5


@pytest.mark.asyncio
async def test_drilled_report_adds_vendor_and_product_sheets(controller):
    await controller.refresh()
    await controller.select_branch(1)
    await controller.select_vendor(11)
    controller.select_product(101)
    wb = _load(controller)

    assert wb.sheetnames == ["Summary", "Branches", "Vendors", "Categories", "Products"]
    assert wb["Vendors"].cell(row=2, column=1).value == "Luis Perez"
    assert wb["Categories"].cell(row=2, column=1).value == "Computing"
    assert wb["Categories"].cell(row=2, column=5).value == 75.0
    assert wb["Products"].cell(row=2, column=1).value == "Notebook"

    summary_values = [row[1] for row in wb["Summary"].iter_rows(values_only=True)]
    assert "Centro" in summary_values
    assert "Notebook" in summary_values


@pytest.mark.asyncio
async def test_summary_lists_general_kpis_and_branch_estimate(controller):
    await controller.refresh()
    await controller.select_branch(1)
    wb = _load(controller)

    rows = {row[0]: row[1] for row in wb["Summary"].iter_rows(values_only=True) if row[0]}
    assert rows["Sales Last 30 Days"] == "$1,000"
    assert rows["Month over Month"] == "+12.5%"
    assert rows["Estimated Branch Sales"] == "$278"


@pytest.mark.asyncio
async def test_report_lists_fetch_warnings(controller, provider):
    await controller.refresh()
    provider.fail("fetch_branch_ranking", ProviderFetchError("Database offline"))
    await controller.refresh()
    wb = _load(controller)

    rows = list(wb["Summary"].iter_rows(values_only=True))
    assert ("branches", "Database offline") in [row[:2] for row in rows]
    assert wb["Branches"].max_row == 5
