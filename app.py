# app.py
"""
Sales Dashboard - Branch Drill-down Entry Point

Drives DrilldownAnalyticsController from Streamlit widgets and renders its
snapshot. One controller lives in session_state per browser session.
"""

import asyncio
import logging
from datetime import date

import streamlit as st

from sales_dashboard.config import config
from sales_dashboard.branch_drilldown import (
    ApiDataProvider,
    DateRange,
    DrilldownAnalyticsController,
    DrilldownExport,
    InvalidRangeError,
    InvalidSelectionError,
    LEVEL_BRANCHES,
    LEVEL_CATEGORIES,
    LEVEL_GENERAL_KPIS,
    LEVEL_VENDORS,
    LEVEL_VENDOR_DETAIL,
    PERIOD_LABELS,
    PERIOD_PRESETS,
    Selection,
)

# Configure logging
logging.basicConfig(
    level=config.get_app_setting("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Sales Dashboard"
APP_ICON = "📊"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

CUSTOM_PERIOD = "custom"


# ==================== HELPER FUNCTIONS ====================

def get_controller() -> DrilldownAnalyticsController:
    """Create the session's controller on first use and load the ranking."""
    if 'drilldown_controller' not in st.session_state:
        preset = config.get_app_setting("DEFAULT_PERIOD", "30d")
        controller = DrilldownAnalyticsController(
            ApiDataProvider(),
            Selection(date_range=DateRange.from_preset(preset)),
        )
        asyncio.run(controller.refresh())
        st.session_state.drilldown_controller = controller
    return st.session_state.drilldown_controller


def run_action(action) -> bool:
    """Run a controller operation; show precondition errors inline."""
    try:
        result = action()
        if asyncio.iscoroutine(result):
            asyncio.run(result)
        return True
    except (InvalidRangeError, InvalidSelectionError) as e:
        st.error(f"⚠️ {e}")
        return False


def format_currency(value: float) -> str:
    return f"${value:,.0f} {config.get_app_setting('CURRENCY', '')}".strip()


def show_level_error(snapshot, level: str):
    error = snapshot.last_error.get(level)
    if error is not None:
        st.warning(f"⚠️ {error.message} (showing last loaded data)")


# ==================== SIDEBAR ====================

def render_sidebar(controller: DrilldownAnalyticsController):
    snapshot = controller.get_snapshot()
    current = snapshot.date_range

    with st.sidebar:
        st.markdown("### 📅 Period")
        options = PERIOD_PRESETS + [CUSTOM_PERIOD]
        labels = {**PERIOD_LABELS, CUSTOM_PERIOD: "Custom range"}
        index = options.index(current.preset) if current.preset in options else len(options) - 1

        period = st.radio(
            "Period",
            options,
            index=index,
            format_func=lambda key: labels[key],
            label_visibility="collapsed",
        )

        if period == CUSTOM_PERIOD:
            start = st.date_input("Start", value=current.start, max_value=date.today())
            end = st.date_input("End", value=current.end, max_value=date.today())
            if st.button("Apply range", use_container_width=True):
                if run_action(lambda: controller.set_date_range(DateRange(start=start, end=end))):
                    st.rerun()
        elif period != current.preset:
            run_action(lambda: controller.set_period(period))
            st.rerun()

        st.caption(f"{current.start.isoformat()} → {current.end.isoformat()}")
        st.markdown("---")

        if st.button("🔄 Refresh", use_container_width=True):
            run_action(controller.refresh)
            st.rerun()

        st.caption(f"Level: {snapshot.selection.level.value}")


# ==================== SECTIONS ====================

def render_general_kpis(controller: DrilldownAnalyticsController):
    snapshot = controller.get_snapshot()
    kpis = snapshot.general_kpis

    show_level_error(snapshot, LEVEL_GENERAL_KPIS)
    if kpis is None:
        return

    col1, col2, col3 = st.columns(3)
    col1.metric(
        "Sales last 30 days",
        format_currency(kpis.last_30_days_sales),
        delta=f"{kpis.month_over_month_percent:+.1f}% vs previous month",
    )
    col2.metric("Transactions last 30 days", f"{kpis.last_30_days_transactions:,}")
    col3.metric("Ticket last 30 days", format_currency(kpis.last_30_days_ticket))


def render_ranking(controller: DrilldownAnalyticsController):
    snapshot = controller.get_snapshot()
    summary = snapshot.ranking_summary

    st.markdown("### 🏢 Branch ranking")
    show_level_error(snapshot, LEVEL_BRANCHES)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total sales", format_currency(summary.get('total_sales', 0)))
    col2.metric("Transactions", f"{summary.get('total_transactions', 0):,}")
    col3.metric("Average ticket", format_currency(summary.get('average_ticket', 0)))
    col4.metric("Branches with sales", f"{summary.get('branches_with_sales', 0)}")

    st.dataframe(snapshot.branches_frame(), use_container_width=True, hide_index=True)

    branch_ids = [None] + [b.id for b in snapshot.branches]
    names = {b.id: b.name for b in snapshot.branches}
    selected = snapshot.selection.selected_branch_id
    choice = st.selectbox(
        "Branch",
        branch_ids,
        index=branch_ids.index(selected) if selected in branch_ids else 0,
        format_func=lambda i: "(all branches)" if i is None else names[i],
    )
    if choice != selected:
        run_action(lambda: controller.select_branch(choice))
        st.rerun()


def render_vendors(controller: DrilldownAnalyticsController):
    snapshot = controller.get_snapshot()
    if snapshot.selection.selected_branch_id is None:
        return

    st.markdown("### 👥 Vendors")
    show_level_error(snapshot, LEVEL_VENDORS)

    team = snapshot.team_summary
    branch = snapshot.selected_branch
    if team is not None:
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Team sales", format_currency(team.total_sales))
        col2.metric("Team transactions", f"{team.transaction_count:,}")
        col3.metric("Team average ticket", format_currency(team.average_ticket))
        if branch is not None and snapshot.estimated_branch_sales is not None:
            col4.metric("Estimated period sales", format_currency(snapshot.estimated_branch_sales))

    st.dataframe(snapshot.vendors_frame(), use_container_width=True, hide_index=True)

    st.markdown("#### 🗂️ Sales by category")
    show_level_error(snapshot, LEVEL_CATEGORIES)
    st.dataframe(snapshot.categories_frame(), use_container_width=True, hide_index=True)

    vendor_ids = [None] + [v.id for v in snapshot.vendors]
    names = {v.id: v.full_name for v in snapshot.vendors}
    selected = snapshot.selection.selected_vendor_id
    choice = st.selectbox(
        "Vendor",
        vendor_ids,
        index=vendor_ids.index(selected) if selected in vendor_ids else 0,
        format_func=lambda i: "(branch view)" if i is None else names[i],
    )
    if choice != selected:
        run_action(lambda: controller.select_vendor(choice))
        st.rerun()


def render_vendor_detail(controller: DrilldownAnalyticsController):
    snapshot = controller.get_snapshot()
    if snapshot.selection.selected_vendor_id is None:
        return

    st.markdown("### 👤 Vendor detail")
    show_level_error(snapshot, LEVEL_VENDOR_DETAIL)

    detail = snapshot.vendor_detail
    if detail is None:
        st.info("Vendor detail not available.")
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Vendor sales", format_currency(detail.total_sales))
    col2.metric("Average ticket", format_currency(detail.average_ticket))
    col3.metric("Branch share", f"{detail.branch_share_percent:.1f}%")
    col4.metric("Units sold", f"{detail.units_sold:,}")

    st.dataframe(snapshot.products_frame(), use_container_width=True, hide_index=True)

    product_ids = [None] + [p.id for p in detail.top_products]
    names = {p.id: p.name for p in detail.top_products}
    selected = snapshot.selection.selected_product_id
    choice = st.selectbox(
        "Product",
        product_ids,
        index=product_ids.index(selected) if selected in product_ids else 0,
        format_func=lambda i: "(vendor view)" if i is None else names[i],
    )
    if choice != selected:
        run_action(lambda: controller.select_product(choice))
        st.rerun()

    product = snapshot.product_detail
    if product is not None:
        col1, col2, col3 = st.columns(3)
        col1.metric("Revenue", format_currency(product.product.total_revenue))
        col2.metric("Average ticket", format_currency(product.average_ticket))
        col3.metric("Share of vendor sales", f"{product.vendor_revenue_share_percent:.1f}%")


def render_export(controller: DrilldownAnalyticsController):
    if not config.is_feature_enabled("EXPORT"):
        return
    excel_bytes = DrilldownExport().create_report(controller.get_snapshot())
    st.download_button(
        label="📥 Download report",
        data=excel_bytes,
        file_name="branch_drilldown.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    st.title(f"{APP_ICON} {APP_NAME}")

    controller = get_controller()
    render_sidebar(controller)
    render_general_kpis(controller)
    render_ranking(controller)
    render_vendors(controller)
    render_vendor_detail(controller)
    render_export(controller)

    st.caption(f"{APP_NAME} v{APP_VERSION}")


if __name__ == "__main__":
    main()
