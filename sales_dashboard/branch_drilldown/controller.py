# sales_dashboard/branch_drilldown/controller.py
"""
Drill-down Analytics Controller

Owns the branch -> vendor -> product selection and the date range, fetches
the dependent aggregate of every affected level, derives secondary metrics
and exposes an immutable Snapshot to the presentation layer.

Ordering is last-write-wins per level: every level carries an epoch that is
bumped each time its fetch is triggered or its data is invalidated. A
settled fetch is applied only if its epoch is still current.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from .constants import (
    FETCH_LEVELS,
    LEVEL_BRANCHES,
    LEVEL_CATEGORIES,
    LEVEL_GENERAL_KPIS,
    LEVEL_VENDOR_DETAIL,
    LEVEL_VENDORS,
)
from .errors import InvalidSelectionError, ProviderFetchError, StaleResultDiscarded
from .metrics import DrilldownMetrics
from .models import (
    BranchAggregate,
    DateRange,
    GeneralKpis,
    LevelState,
    ProductDetail,
    Selection,
    Snapshot,
    TeamSummary,
    VendorDetail,
)
from .provider import DataProvider

logger = logging.getLogger(__name__)


class DrilldownAnalyticsController:
    """
    Coordinates drill-down state and dependent fetches.

    Usage:
        controller = DrilldownAnalyticsController(ApiDataProvider())
        await controller.refresh()              # initial ranking load

        await controller.select_branch(3)
        await controller.select_vendor(17)
        controller.select_product(42)

        snapshot = controller.get_snapshot()
    """

    def __init__(self, provider: DataProvider, selection: Optional[Selection] = None):
        """
        Initialize with a data provider and an optional starting selection.

        Args:
            provider: DataProvider implementation
            selection: Initial selection (defaults to the last 30 days, no drill-down)
        """
        self.provider = provider

        selection = selection or Selection.default()
        selection.date_range.validate()
        self._selection = selection

        self._levels: Dict[str, LevelState] = {level: LevelState() for level in FETCH_LEVELS}
        self._levels[LEVEL_BRANCHES].data = ()
        self._levels[LEVEL_VENDORS].data = ()
        self._levels[LEVEL_CATEGORIES].data = ()

        self._ranking_summary: Dict[str, Any] = DrilldownMetrics.summarize_ranking([])
        self._team_summary: Optional[TeamSummary] = None
        self._product_detail: Optional[ProductDetail] = None

    @property
    def selection(self) -> Selection:
        return self._selection

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    async def set_date_range(self, date_range: DateRange) -> None:
        """
        Change the date range and refetch every selected level under it.

        Raises:
            InvalidRangeError: start is after end (state unchanged, no I/O)
        """
        date_range.validate()

        self._selection = replace(self._selection, date_range=date_range)
        logger.info(f"📅 Date range set to {date_range.label} ({date_range.start} → {date_range.end})")

        await self._refetch_selected_levels()

    async def set_period(self, preset: str) -> None:
        """Shortcut for set_date_range with a period preset ('30d', '90d', 'ytd')."""
        await self.set_date_range(DateRange.from_preset(preset))

    async def select_branch(self, branch_id: Optional[int]) -> None:
        """
        Select a branch (or clear the drill-down with None).

        Clears vendor and product selection; fetches the branch's vendors
        and category breakdown concurrently.
        """
        self._selection = replace(
            self._selection,
            selected_branch_id=branch_id,
            selected_vendor_id=None,
            selected_product_id=None,
        )
        self._clear_vendor_detail()
        self._clear_vendors()
        self._clear_categories()

        if branch_id is None:
            logger.info("Drill-down cleared")
            return

        logger.info(f"🏢 Branch selected: {branch_id}")
        await asyncio.gather(self._fetch_vendors(), self._fetch_categories())

    async def select_vendor(self, vendor_id: Optional[int]) -> None:
        """
        Select a vendor of the current branch (or go back to the branch with None).

        Raises:
            InvalidSelectionError: no branch selected, or the loaded vendor
                list of the branch does not contain vendor_id
        """
        if vendor_id is None:
            self._selection = replace(
                self._selection, selected_vendor_id=None, selected_product_id=None
            )
            self._clear_vendor_detail()
            logger.info("Vendor selection cleared")
            return

        if self._selection.selected_branch_id is None:
            raise InvalidSelectionError("Cannot select a vendor without a selected branch")

        vendors_state = self._levels[LEVEL_VENDORS]
        if vendors_state.scope == self._vendors_scope():
            vendor_ids = {v.id for v in vendors_state.data}
            if vendor_id not in vendor_ids:
                raise InvalidSelectionError(
                    f"Vendor {vendor_id} does not belong to branch "
                    f"{self._selection.selected_branch_id}"
                )

        self._selection = replace(
            self._selection, selected_vendor_id=vendor_id, selected_product_id=None
        )
        self._clear_vendor_detail()

        logger.info(f"👤 Vendor selected: {vendor_id}")
        await self._fetch_vendor_detail()

    def select_product(self, product_id: Optional[int]) -> None:
        """
        Select one of the current vendor's products (None goes back to the vendor).

        Product detail is derived from the fetched vendor detail; no I/O.

        Raises:
            InvalidSelectionError: no vendor selected, vendor detail not
                loaded, or product_id not among the vendor's products
        """
        if product_id is None:
            self._selection = replace(self._selection, selected_product_id=None)
            self._product_detail = None
            return

        vendor_id = self._selection.selected_vendor_id
        if vendor_id is None:
            raise InvalidSelectionError("Cannot select a product without a selected vendor")

        detail: Optional[VendorDetail] = self._levels[LEVEL_VENDOR_DETAIL].data
        if detail is None or detail.id != vendor_id:
            raise InvalidSelectionError(f"Detail of vendor {vendor_id} is not loaded")

        if not detail.has_product(product_id):
            raise InvalidSelectionError(
                f"Product {product_id} was not sold by vendor {vendor_id}"
            )

        self._selection = replace(self._selection, selected_product_id=product_id)
        self._product_detail = DrilldownMetrics.build_product_detail(detail, product_id)
        logger.info(f"📦 Product selected: {product_id}")

    async def refresh(self) -> None:
        """Refetch every populated level with the current selection, plus the general KPIs."""
        logger.info(f"🔄 Refreshing drill-down at level {self._selection.level.value}")
        await self._refetch_selected_levels(include_general_kpis=True)

    def get_snapshot(self) -> Snapshot:
        """Immutable view of the current state. Never triggers I/O."""
        levels = self._levels
        return Snapshot(
            selection=self._selection,
            branches=levels[LEVEL_BRANCHES].data or (),
            vendors=levels[LEVEL_VENDORS].data or (),
            vendor_detail=levels[LEVEL_VENDOR_DETAIL].data,
            product_detail=self._product_detail,
            team_summary=self._team_summary,
            ranking_summary=dict(self._ranking_summary),
            categories=levels[LEVEL_CATEGORIES].data or (),
            general_kpis=levels[LEVEL_GENERAL_KPIS].data,
            estimated_branch_sales=self._estimate_selected_branch_sales(),
            is_loading={level: state.is_loading for level, state in levels.items()},
            last_error={level: state.last_error for level, state in levels.items()},
            scopes={level: state.scope for level, state in levels.items()},
        )

    def _estimate_selected_branch_sales(self) -> Optional[float]:
        branches_state = self._levels[LEVEL_BRANCHES]
        branch_id = self._selection.selected_branch_id
        branch: Optional[BranchAggregate] = next(
            (b for b in branches_state.data or () if b.id == branch_id), None
        )
        if branch is None:
            return None

        # The estimate follows the range the ranking was loaded under
        date_range = branches_state.scope[0] if branches_state.scope else self._selection.date_range
        kpis: Optional[GeneralKpis] = self._levels[LEVEL_GENERAL_KPIS].data
        company_sales = kpis.last_30_days_sales if kpis is not None else None

        return DrilldownMetrics.estimate_branch_period_sales(branch, date_range, company_sales)

    # =========================================================================
    # FETCH ORCHESTRATION
    # =========================================================================

    async def _refetch_selected_levels(self, include_general_kpis: bool = False) -> None:
        fetches = [self._fetch_branches()]
        if self._selection.selected_branch_id is not None:
            fetches.append(self._fetch_vendors())
            fetches.append(self._fetch_categories())
        if self._selection.selected_vendor_id is not None:
            fetches.append(self._fetch_vendor_detail())
        if include_general_kpis:
            fetches.append(self._fetch_general_kpis())
        await asyncio.gather(*fetches)

    def _vendors_scope(self) -> Tuple[Any, ...]:
        return (self._selection.date_range, self._selection.selected_branch_id)

    def _vendor_detail_scope(self) -> Tuple[Any, ...]:
        return (self._selection.date_range, self._selection.selected_vendor_id)

    # The _fetch_* triggers are plain methods: parameters and the level epoch
    # are captured when the fetch is triggered, not when its task first runs.

    def _fetch_branches(self) -> Awaitable[None]:
        date_range = self._selection.date_range
        return self._run_fetch(
            LEVEL_BRANCHES,
            (date_range,),
            lambda: self.provider.fetch_branch_ranking(date_range),
            self._apply_branches,
        )

    def _fetch_vendors(self) -> Awaitable[None]:
        branch_id = self._selection.selected_branch_id
        date_range = self._selection.date_range
        return self._run_fetch(
            LEVEL_VENDORS,
            self._vendors_scope(),
            lambda: self.provider.fetch_vendors_for_branch(branch_id, date_range),
            self._apply_vendors,
        )

    def _fetch_categories(self) -> Awaitable[None]:
        branch_id = self._selection.selected_branch_id
        date_range = self._selection.date_range
        return self._run_fetch(
            LEVEL_CATEGORIES,
            self._vendors_scope(),
            lambda: self.provider.fetch_category_sales(branch_id, date_range),
            self._apply_categories,
        )

    def _fetch_vendor_detail(self) -> Awaitable[None]:
        vendor_id = self._selection.selected_vendor_id
        date_range = self._selection.date_range
        return self._run_fetch(
            LEVEL_VENDOR_DETAIL,
            self._vendor_detail_scope(),
            lambda: self.provider.fetch_vendor_detail(vendor_id, date_range),
            self._apply_vendor_detail,
        )

    def _fetch_general_kpis(self) -> Awaitable[None]:
        return self._run_fetch(
            LEVEL_GENERAL_KPIS,
            (),
            self.provider.fetch_general_kpis,
            self._apply_general_kpis,
        )

    def _run_fetch(
        self,
        level: str,
        scope: Tuple[Any, ...],
        request: Callable[[], Awaitable[Any]],
        apply: Callable[[Any], None]
    ) -> Awaitable[None]:
        """
        Start one level's fetch: bump its epoch and mark it loading.

        Returns the coroutine that awaits the provider and applies the
        outcome if the epoch is still current.
        """
        state = self._levels[level]
        state.epoch += 1
        state.is_loading = True
        return self._settle_fetch(level, state.epoch, scope, request, apply)

    async def _settle_fetch(
        self,
        level: str,
        epoch: int,
        scope: Tuple[Any, ...],
        request: Callable[[], Awaitable[Any]],
        apply: Callable[[Any], None]
    ) -> None:
        """
        Provider and processing failures are recorded on the level, never raised.

        Scope and last_error change only after apply succeeds; a failed apply
        leaves the level's previous data in place.
        """
        state = self._levels[level]

        result, error = None, None
        try:
            result = await request()
        except Exception as e:
            error = self._as_fetch_error(e, level)

        try:
            self._ensure_current(level, epoch)
        except StaleResultDiscarded as stale:
            logger.debug(f"Discarded stale result: {stale}")
            return

        state.is_loading = False

        if error is None:
            try:
                apply(result)
            except Exception as e:
                error = ProviderFetchError(f"Could not process {level} data: {e}", level=level)
                error.__cause__ = e

        if error is not None:
            state.last_error = error
            logger.error(f"❌ Fetch failed for {level}: {error}")
            return

        # apply may have invalidated its own level
        if state.epoch != epoch:
            return

        state.last_error = None
        state.scope = scope

    def _ensure_current(self, level: str, epoch: int) -> None:
        current = self._levels[level].epoch
        if epoch != current:
            raise StaleResultDiscarded(level, epoch, current)

    @staticmethod
    def _as_fetch_error(error: Exception, level: str) -> ProviderFetchError:
        """Attribute a provider exception to a level without touching the original."""
        if isinstance(error, ProviderFetchError):
            if error.level is not None:
                return error
            fetch_error = ProviderFetchError(error.message, level=level, status_code=error.status_code)
        else:
            fetch_error = ProviderFetchError(str(error) or type(error).__name__, level=level)
        fetch_error.__cause__ = error
        return fetch_error

    # =========================================================================
    # APPLYING RESULTS
    # =========================================================================
    # Each _apply_* derives everything before assigning, so a derivation error
    # leaves the level untouched.

    def _apply_branches(self, branches) -> None:
        ranked = tuple(DrilldownMetrics.rank_branches(branches))
        summary = DrilldownMetrics.summarize_ranking(ranked)
        self._levels[LEVEL_BRANCHES].data = ranked
        self._ranking_summary = summary
        logger.info(f"✅ Loaded {len(ranked)} branches")

        branch_id = self._selection.selected_branch_id
        if branch_id is not None and branch_id not in {b.id for b in ranked}:
            logger.warning(f"Branch {branch_id} is not in the new ranking, clearing drill-down")
            self._selection = replace(
                self._selection,
                selected_branch_id=None,
                selected_vendor_id=None,
                selected_product_id=None,
            )
            self._clear_vendor_detail()
            self._clear_vendors()
            self._clear_categories()

    def _apply_vendors(self, vendors) -> None:
        listing = tuple(DrilldownMetrics.derive_vendor_listing(vendors))
        team = DrilldownMetrics.summarize_team(listing)
        self._levels[LEVEL_VENDORS].data = listing
        self._team_summary = team
        logger.info(f"✅ Loaded {len(listing)} vendors for branch {self._selection.selected_branch_id}")

        vendor_id = self._selection.selected_vendor_id
        if vendor_id is not None and vendor_id not in {v.id for v in listing}:
            logger.warning(f"Vendor {vendor_id} is not listed for this branch anymore, clearing vendor")
            self._selection = replace(
                self._selection, selected_vendor_id=None, selected_product_id=None
            )
            self._clear_vendor_detail()

    def _apply_categories(self, categories) -> None:
        breakdown = tuple(DrilldownMetrics.derive_category_breakdown(categories))
        self._levels[LEVEL_CATEGORIES].data = breakdown
        logger.info(f"✅ Loaded {len(breakdown)} categories for branch {self._selection.selected_branch_id}")

    def _apply_vendor_detail(self, detail: VendorDetail) -> None:
        derived = DrilldownMetrics.derive_vendor_detail(detail)

        branch_id = self._selection.selected_branch_id
        if derived.branch_id is not None and derived.branch_id != branch_id:
            logger.warning(
                f"Vendor {derived.id} belongs to branch {derived.branch_id}, not {branch_id}, clearing vendor"
            )
            self._selection = replace(
                self._selection, selected_vendor_id=None, selected_product_id=None
            )
            self._clear_vendor_detail()
            return

        product_id = self._selection.selected_product_id
        product_detail = None
        if product_id is not None and derived.has_product(product_id):
            product_detail = DrilldownMetrics.build_product_detail(derived, product_id)

        self._levels[LEVEL_VENDOR_DETAIL].data = derived
        logger.info(f"✅ Loaded detail of vendor {derived.id} ({len(derived.top_products)} products)")

        if product_id is None:
            return

        if product_detail is not None:
            self._product_detail = product_detail
        else:
            logger.warning(f"Product {product_id} not sold in the new range, clearing product")
            self._selection = replace(self._selection, selected_product_id=None)
            self._product_detail = None

    def _apply_general_kpis(self, kpis: GeneralKpis) -> None:
        self._levels[LEVEL_GENERAL_KPIS].data = kpis
        logger.info(f"✅ Loaded general KPIs (last 30 days: {kpis.last_30_days_sales:,.2f})")

    # =========================================================================
    # INVALIDATION
    # =========================================================================

    def _clear_vendors(self) -> None:
        self._levels[LEVEL_VENDORS].reset(data=())
        self._team_summary = None

    def _clear_categories(self) -> None:
        self._levels[LEVEL_CATEGORIES].reset(data=())

    def _clear_vendor_detail(self) -> None:
        self._levels[LEVEL_VENDOR_DETAIL].reset(data=None)
        self._product_detail = None
