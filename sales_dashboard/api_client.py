# sales_dashboard/api_client.py
"""
Dashboard REST API Access

Features:
- httpx async client built per request (safe across event loops)
- Envelope unwrapping ({success, message, data})
- Translation of transport/status errors to ProviderFetchError
- Health check utility
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .config import config
from .branch_drilldown.errors import ProviderFetchError

logger = logging.getLogger(__name__)

HEALTH_CHECK_PATH = "/dashboard/kpis"


class ApiClient:
    """
    Thin JSON client for the dashboard API.

    Usage:
        client = ApiClient()
        data = await client.get_json("/dashboard/sucursales/ranking", params)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize client settings.

        Args:
            base_url: API root (defaults to configured API_URL)
            timeout_seconds: Request timeout (defaults to configured value)
            transport: Optional httpx transport, used by tests
        """
        api_config = config.get_api_config()
        self.base_url = (base_url or api_config['base_url']).rstrip('/')
        self.timeout_seconds = timeout_seconds or api_config['timeout_seconds']
        self._transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            headers={'Content-Type': 'application/json'},
            transport=self._transport,
        )

    async def get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        level: Optional[str] = None
    ) -> Any:
        """
        GET a path and return the envelope's data.

        Args:
            path: Path relative to base_url
            params: Query parameters
            level: Fetch level the request serves (for error attribution)

        Returns:
            The 'data' member of the response envelope

        Raises:
            ProviderFetchError: transport failure, timeout, non-2xx status,
                success=false or a body that is not a valid envelope
        """
        try:
            async with self._build_client() as client:
                response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"❌ Timeout after {self.timeout_seconds}s: GET {path}")
            raise ProviderFetchError(f"Request timed out: {e}", level=level) from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Cannot reach API: GET {path}: {e}")
            raise ProviderFetchError(
                f"Could not connect to the server: {e}", level=level
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        message = body.get('message') if isinstance(body, dict) else None

        if response.is_error:
            raise ProviderFetchError(
                message or f"Server responded with status {response.status_code}",
                level=level,
                status_code=response.status_code,
            )

        if not isinstance(body, dict) or 'success' not in body:
            raise ProviderFetchError(
                "Malformed response: expected {success, message, data} envelope",
                level=level,
                status_code=response.status_code,
            )

        if not body['success']:
            raise ProviderFetchError(
                message or "Request was not successful",
                level=level,
                status_code=response.status_code,
            )

        if body.get('data') is None:
            raise ProviderFetchError(
                "Malformed response: missing data",
                level=level,
                status_code=response.status_code,
            )

        return body['data']


async def check_api_connection(client: Optional[ApiClient] = None) -> Tuple[bool, Optional[str]]:
    """
    Check if the dashboard API is reachable

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    client = client or ApiClient()
    try:
        await client.get_json(HEALTH_CHECK_PATH)
        return True, None
    except ProviderFetchError as e:
        logger.error(f"❌ API health check failed: {e}")
        return False, str(e)
