# sales_dashboard/branch_drilldown/export.py
"""
Formatted Excel Export for the Branch Drill-down

Creates Excel reports from a controller Snapshot with:
- Cover sheet with selection, period and KPI summary
- Branch ranking with status fill colors
- Vendor listing and category breakdown of the selected branch
- Products of the selected vendor

Uses openpyxl for formatting capabilities.
"""

import logging
from datetime import datetime
from io import BytesIO
from typing import List, Tuple

import pandas as pd

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .constants import EXCEL_STYLES, STATUS_COLORS
from .models import Snapshot

logger = logging.getLogger(__name__)

# (column, header, width)
ColumnSpec = List[Tuple[str, str, int]]

BRANCH_COLUMNS: ColumnSpec = [
    ('rank', 'Rank', 8),
    ('name', 'Branch', 25),
    ('location', 'Location', 25),
    ('total_sales', 'Total Sales', 16),
    ('transaction_count', 'Transactions', 14),
    ('average_ticket', 'Average Ticket', 16),
    ('share_of_total_percent', 'Share %', 10),
    ('status_level', 'Status', 12),
]

VENDOR_COLUMNS: ColumnSpec = [
    ('full_name', 'Vendor', 28),
    ('national_id', 'National ID', 14),
    ('sales_count', 'Sales', 10),
    ('total_sales', 'Total Sales', 16),
    ('average_ticket', 'Average Ticket', 16),
    ('performance_tier', 'Tier', 12),
]

PRODUCT_COLUMNS: ColumnSpec = [
    ('name', 'Product', 28),
    ('category', 'Category', 18),
    ('units_sold', 'Units', 10),
    ('total_revenue', 'Revenue', 16),
    ('transaction_count', 'Transactions', 14),
]

CATEGORY_COLUMNS: ColumnSpec = [
    ('category', 'Category', 22),
    ('sales_count', 'Sales', 10),
    ('units_sold', 'Units', 10),
    ('total_revenue', 'Revenue', 16),
    ('share_percent', 'Share %', 10),
]

CURRENCY_COLUMNS = {'total_sales', 'average_ticket', 'total_revenue'}
PERCENT_COLUMNS = {'share_of_total_percent', 'share_percent'}


class DrilldownExport:
    """
    Excel report generator for a drill-down snapshot.

    Usage:
        exporter = DrilldownExport()
        excel_bytes = exporter.create_report(controller.get_snapshot())

        st.download_button(
            label="Download Report",
            data=excel_bytes,
            file_name="branch_drilldown.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self):
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=16)
        self.subtitle_font = Font(bold=True, size=12)
        self.error_font = Font(italic=True, color=EXCEL_STYLES['error_font_color'])

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(
            left=thin_border,
            right=thin_border,
            top=thin_border,
            bottom=thin_border
        )

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right', vertical='center')

        self.currency_format = EXCEL_STYLES['currency_format']
        self.percent_format = EXCEL_STYLES['percent_format']

    # =========================================================================
    # MAIN EXPORT METHOD
    # =========================================================================

    def create_report(self, snapshot: Snapshot) -> BytesIO:
        """
        Create formatted Excel report for a snapshot.

        Sheets for vendors, categories and products are only added when the drill-down
        reached those levels.

        Returns:
            BytesIO containing Excel file
        """
        self.wb = Workbook()

        self._create_cover_sheet(snapshot)
        self._create_table_sheet("Branches", snapshot.branches_frame(), BRANCH_COLUMNS)

        if snapshot.selection.selected_branch_id is not None:
            self._create_table_sheet("Vendors", snapshot.vendors_frame(), VENDOR_COLUMNS)
            self._create_table_sheet("Categories", snapshot.categories_frame(), CATEGORY_COLUMNS)

        if snapshot.vendor_detail is not None:
            self._create_table_sheet("Products", snapshot.products_frame(), PRODUCT_COLUMNS)

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info(f"Excel report created with sheets: {', '.join(self.wb.sheetnames)}")
        return output

    # =========================================================================
    # COVER SHEET
    # =========================================================================

    def _create_cover_sheet(self, snapshot: Snapshot):
        """Create cover page with selection and KPI summary."""
        ws = self.wb.active
        ws.title = "Summary"

        row = 1
        ws.cell(row=row, column=1, value="Branch Drill-down Report")
        ws.cell(row=row, column=1).font = self.title_font
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=4)
        row += 2

        date_range = snapshot.date_range
        info_rows = [
            ("Period:", date_range.label),
            ("Date Range:", f"{date_range.start.isoformat()} to {date_range.end.isoformat()}"),
            ("Drill-down Level:", snapshot.selection.level.value),
            ("Generated:", datetime.now().strftime('%Y-%m-%d %H:%M')),
        ]
        for label, value in info_rows:
            ws.cell(row=row, column=1, value=label)
            ws.cell(row=row, column=2, value=value)
            row += 1
        row += 1

        ws.cell(row=row, column=1, value="Key Performance Indicators")
        ws.cell(row=row, column=1).font = self.subtitle_font
        row += 1

        summary = snapshot.ranking_summary
        kpi_rows = [
            ("Total Sales", f"${summary.get('total_sales', 0):,.0f}"),
            ("Transactions", f"{summary.get('total_transactions', 0):,}"),
            ("Average Ticket", f"${summary.get('average_ticket', 0):,.0f}"),
            ("Mean Sales per Branch", f"${summary.get('mean_sales', 0):,.0f}"),
            ("Branches with Sales", f"{summary.get('branches_with_sales', 0):,}"),
            ("Branches without Sales", f"{summary.get('branches_without_sales', 0):,}"),
        ]

        kpis = snapshot.general_kpis
        if kpis is not None:
            kpi_rows.extend([
                ("Sales Last 30 Days", f"${kpis.last_30_days_sales:,.0f}"),
                ("Ticket Last 30 Days", f"${kpis.last_30_days_ticket:,.0f}"),
                ("Month over Month", f"{kpis.month_over_month_percent:+.1f}%"),
            ])

        branch = snapshot.selected_branch
        if branch is not None:
            kpi_rows.append(("Selected Branch", branch.name))
        if snapshot.estimated_branch_sales is not None:
            kpi_rows.append(("Estimated Branch Sales", f"${snapshot.estimated_branch_sales:,.0f}"))
        if snapshot.vendor_detail is not None:
            kpi_rows.append(("Selected Vendor", snapshot.vendor_detail.full_name))
        if snapshot.product_detail is not None:
            kpi_rows.append(("Selected Product", snapshot.product_detail.product.name))

        for label, value in kpi_rows:
            ws.cell(row=row, column=1, value=label)
            ws.cell(row=row, column=2, value=value)
            ws.cell(row=row, column=2).alignment = self.right_align
            row += 1

        # Stale-but-kept data is labeled in the report as well
        errors = [(level, error) for level, error in snapshot.last_error.items() if error is not None]
        if errors:
            row += 1
            ws.cell(row=row, column=1, value="Data Warnings")
            ws.cell(row=row, column=1).font = self.subtitle_font
            row += 1
            for level, error in errors:
                ws.cell(row=row, column=1, value=level)
                ws.cell(row=row, column=2, value=error.message)
                ws.cell(row=row, column=2).font = self.error_font
                row += 1

        ws.column_dimensions['A'].width = 25
        ws.column_dimensions['B'].width = 30

    # =========================================================================
    # TABLE SHEETS
    # =========================================================================

    def _create_table_sheet(self, title: str, df: pd.DataFrame, columns: ColumnSpec):
        """Create a sheet with a header row and one row per record."""
        ws = self.wb.create_sheet(title)

        for col_idx, (_, header, width) in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        for row_idx, record in enumerate(df.to_dict('records'), 2):
            for col_idx, (col_name, _, _) in enumerate(columns, 1):
                value = record.get(col_name)
                if pd.isna(value):
                    value = None
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.cell_border

                if col_name in CURRENCY_COLUMNS:
                    cell.number_format = self.currency_format
                    cell.alignment = self.right_align
                elif col_name in PERCENT_COLUMNS:
                    cell.number_format = self.percent_format
                    cell.alignment = self.right_align
                elif col_name == 'status_level' and value in STATUS_COLORS:
                    color = STATUS_COLORS[value].lstrip('#')
                    cell.fill = PatternFill(start_color=color, end_color=color, fill_type='solid')
                    cell.alignment = self.center_align

        ws.freeze_panes = 'A2'
