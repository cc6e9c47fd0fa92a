# sales_dashboard/branch_drilldown/provider.py
"""
Data Providers for the Branch Drill-down

Handles all interactions with the dashboard API:
- Branch ranking for a date range
- Vendors of a branch for a date range
- Vendor detail (stats + sold products) for a date range
- Sales by category of a branch for a date range
- Company-wide general KPIs

The controller only depends on the DataProvider protocol. ApiDataProvider
is the REST implementation; it maps the API's payload field names onto the
drill-down dataclasses and raises ProviderFetchError for every failure.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from .. import api_client
from .constants import (
    DATE_PARAM_FORMAT,
    ENDPOINTS,
    LEVEL_BRANCHES,
    LEVEL_CATEGORIES,
    LEVEL_GENERAL_KPIS,
    LEVEL_VENDOR_DETAIL,
    LEVEL_VENDORS,
)
from .errors import ProviderFetchError
from .models import (
    BranchAggregate,
    CategorySales,
    DateRange,
    GeneralKpis,
    ProductLine,
    VendorAggregate,
    VendorDetail,
    to_date,
)

logger = logging.getLogger(__name__)


class DataProvider(Protocol):
    """Query contracts consumed by DrilldownAnalyticsController."""

    async def fetch_branch_ranking(self, date_range: DateRange) -> List[BranchAggregate]:
        ...

    async def fetch_vendors_for_branch(
        self, branch_id: int, date_range: DateRange
    ) -> List[VendorAggregate]:
        ...

    async def fetch_vendor_detail(self, vendor_id: int, date_range: DateRange) -> VendorDetail:
        ...

    async def fetch_category_sales(
        self, branch_id: int, date_range: DateRange
    ) -> List[CategorySales]:
        ...

    async def fetch_general_kpis(self) -> GeneralKpis:
        ...


class ApiDataProvider:
    """
    DataProvider backed by the dashboard REST API.

    Usage:
        provider = ApiDataProvider()
        ranking = await provider.fetch_branch_ranking(DateRange.from_preset('30d'))
    """

    def __init__(self, client: Optional['api_client.ApiClient'] = None):
        """
        Initialize with an API client.

        Args:
            client: ApiClient instance (defaults to one built from config)
        """
        self.client = client or api_client.ApiClient()

    @staticmethod
    def _range_params(date_range: DateRange) -> Dict[str, str]:
        return {
            'fechaInicio': date_range.start.strftime(DATE_PARAM_FORMAT),
            'fechaFin': date_range.end.strftime(DATE_PARAM_FORMAT),
        }

    # =========================================================================
    # QUERY CONTRACTS
    # =========================================================================

    async def fetch_branch_ranking(self, date_range: DateRange) -> List[BranchAggregate]:
        logger.info(f"Fetching branch ranking for {date_range.label}")
        data = await self.client.get_json(
            ENDPOINTS['branch_ranking'],
            params=self._range_params(date_range),
            level=LEVEL_BRANCHES,
        )
        rows = _expect_list(data, LEVEL_BRANCHES)
        return _parse_rows(rows, _parse_branch, LEVEL_BRANCHES)

    async def fetch_vendors_for_branch(
        self, branch_id: int, date_range: DateRange
    ) -> List[VendorAggregate]:
        logger.info(f"Fetching vendors of branch {branch_id} for {date_range.label}")
        data = await self.client.get_json(
            ENDPOINTS['branch_vendors'].format(branch_id=branch_id),
            params=self._range_params(date_range),
            level=LEVEL_VENDORS,
        )
        rows = _expect_list(data, LEVEL_VENDORS)
        return _parse_rows(rows, lambda row: _parse_vendor(row, branch_id), LEVEL_VENDORS)

    async def fetch_vendor_detail(self, vendor_id: int, date_range: DateRange) -> VendorDetail:
        logger.info(f"Fetching detail of vendor {vendor_id} for {date_range.label}")
        data = await self.client.get_json(
            ENDPOINTS['vendor_detail'].format(vendor_id=vendor_id),
            params=self._range_params(date_range),
            level=LEVEL_VENDOR_DETAIL,
        )
        if not isinstance(data, dict):
            raise ProviderFetchError("Malformed vendor detail payload", level=LEVEL_VENDOR_DETAIL)
        try:
            return _parse_vendor_detail(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ProviderFetchError(
                f"Malformed vendor detail payload: {e}", level=LEVEL_VENDOR_DETAIL
            ) from e

    async def fetch_category_sales(
        self, branch_id: int, date_range: DateRange
    ) -> List[CategorySales]:
        logger.info(f"Fetching category sales of branch {branch_id} for {date_range.label}")
        params = {'sucursalId': branch_id, **self._range_params(date_range)}
        data = await self.client.get_json(
            ENDPOINTS['category_sales'],
            params=params,
            level=LEVEL_CATEGORIES,
        )
        rows = _expect_list(data, LEVEL_CATEGORIES)
        return _parse_rows(rows, _parse_category, LEVEL_CATEGORIES)

    async def fetch_general_kpis(self) -> GeneralKpis:
        logger.info("Fetching general KPIs")
        data = await self.client.get_json(ENDPOINTS['general_kpis'], level=LEVEL_GENERAL_KPIS)
        if not isinstance(data, dict):
            raise ProviderFetchError("Malformed general KPIs payload", level=LEVEL_GENERAL_KPIS)
        try:
            return _parse_general_kpis(data)
        except (TypeError, ValueError) as e:
            raise ProviderFetchError(
                f"Malformed general KPIs payload: {e}", level=LEVEL_GENERAL_KPIS
            ) from e


# =============================================================================
# PAYLOAD MAPPING
# =============================================================================

def _expect_list(data: Any, level: str) -> List[Dict[str, Any]]:
    if not isinstance(data, list):
        raise ProviderFetchError("Malformed payload: expected a list", level=level)
    return data


def _parse_rows(rows, parser, level: str) -> list:
    try:
        return [parser(row) for row in rows]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ProviderFetchError(f"Malformed payload row: {e}", level=level) from e


def _optional_date(value):
    return to_date(value) if value else None


def _parse_branch(row: Dict[str, Any]) -> BranchAggregate:
    return BranchAggregate(
        id=int(row['id']),
        name=str(row['nombre']),
        location=row.get('ubicacion') or "",
        total_sales=float(row.get('ventasTotales') or 0),
        transaction_count=int(row.get('numeroCompras') or 0),
        average_ticket=float(row.get('ticketPromedio') or 0),
        rank=int(row.get('ranking') or 0),
        share_of_total_percent=float(row.get('porcentajeDelTotal') or 0),
    )


def _parse_vendor(row: Dict[str, Any], branch_id: int) -> VendorAggregate:
    return VendorAggregate(
        id=int(row['id']),
        name=str(row['nombre']),
        last_name=row.get('apellido') or "",
        national_id=str(row.get('dni') or ""),
        branch_id=int(row.get('sucursalId') or branch_id),
        sales_count=int(row.get('numeroVentas') or 0),
        total_sales=float(row.get('ventasTotales') or 0),
    )


def _parse_product(row: Dict[str, Any]) -> ProductLine:
    return ProductLine(
        id=int(row['id']),
        name=str(row['nombre']),
        category=row.get('categoria') or "",
        units_sold=int(row.get('unidadesVendidas') or 0),
        total_revenue=float(row.get('ingresoTotal') or 0),
        transaction_count=int(row.get('numeroTransacciones') or 0),
    )


def _parse_vendor_detail(data: Dict[str, Any]) -> VendorDetail:
    vendor = data['vendedor']
    stats = data.get('stats') or {}
    branch_id = vendor.get('sucursalId')

    return VendorDetail(
        id=int(vendor['id']),
        name=str(vendor['nombre']),
        last_name=vendor.get('apellido') or "",
        national_id=str(vendor.get('dni') or ""),
        branch_id=int(branch_id) if branch_id is not None else None,
        sales_count=int(stats.get('numeroVentas') or 0),
        total_sales=float(stats.get('ventasTotales') or 0),
        average_ticket=float(stats.get('ticketPromedio') or 0),
        units_sold=int(stats.get('unidadesVendidas') or 0),
        products_sold_count=int(stats.get('productosVendidos') or 0),
        branch_share_percent=float(stats.get('participacionSucursal') or 0),
        first_sale_date=_optional_date(stats.get('primeraVenta')),
        last_sale_date=_optional_date(stats.get('ultimaVenta')),
        top_products=tuple(_parse_product(p) for p in data.get('productos') or []),
    )


def _parse_category(row: Dict[str, Any]) -> CategorySales:
    return CategorySales(
        category=str(row['categoria']),
        sales_count=int(row.get('numeroVentas') or 0),
        units_sold=int(row.get('unidadesVendidas') or 0),
        total_revenue=float(row.get('ingresoTotal') or 0),
    )


def _parse_general_kpis(data: Dict[str, Any]) -> GeneralKpis:
    # Last-30-day figures fall back to the current calendar month when the
    # backend does not report a rolling window
    last_30_days_sales = data.get('ventasUltimoMes', data.get('ventasMesActual'))
    return GeneralKpis(
        total_sales=float(data.get('ventasTotales') or 0),
        monthly_average=float(data.get('promedioMensual') or 0),
        current_month_sales=float(data.get('ventasMesActual') or 0),
        previous_month_sales=float(data.get('ventasMesAnterior') or 0),
        month_over_month_percent=float(data.get('comparativa') or 0),
        transaction_count=int(data.get('totalTransacciones') or 0),
        branch_count=int(data.get('totalSucursales') or 0),
        product_count=int(data.get('totalProductos') or 0),
        last_30_days_sales=float(last_30_days_sales or 0),
        last_30_days_transactions=int(data.get('transaccionesUltimoMes') or 0),
        last_30_days_ticket=float(data.get('ticketPromedioUltimoMes') or 0),
    )
