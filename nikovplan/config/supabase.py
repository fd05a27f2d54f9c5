"""
Supabase Configuration and Utilities
"""
import os
import logging
import httpx
from typing import Optional, Dict, Any, List, Union
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# PostgREST filter operators accepted in ``filters``
FILTER_OPERATORS = {"eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike", "is", "in"}


class SupabaseError(Exception):
    """Raised when the Supabase REST API answers with an error status"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Supabase API error {status_code}: {message}")


def _filter_params(filters: Optional[Dict[str, Any]]) -> List[tuple]:
    """
    Turn a filters dict into PostgREST query parameters.

    A plain value means equality. A ``(operator, value)`` tuple selects another
    operator, and a list of such tuples applies several to the same column.
    """
    params = []
    if not filters:
        return params

    for column, value in filters.items():
        conditions = value if isinstance(value, list) else [value]
        for condition in conditions:
            if isinstance(condition, tuple):
                operator, operand = condition
            else:
                operator, operand = "eq", condition

            if operator not in FILTER_OPERATORS:
                raise ValueError(f"Unsupported filter operator: {operator}")

            if isinstance(operand, bool):
                operand = "true" if operand else "false"
            params.append((column, f"{operator}.{operand}"))
    return params


# Simple HTTP client for Supabase API calls
class SimpleSupabaseClient:
    """Minimal PostgREST client for the Supabase tables, over httpx"""

    def __init__(
        self,
        url: str,
        key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.url = url.rstrip('/')
        self.key = key
        self.timeout = timeout
        self._transport = transport

        self.headers = {
            'apikey': key,  # Always include API key
            'Authorization': f'Bearer {key}',
            'Content-Type': 'application/json',
            'Prefer': 'return=representation'
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    async def query(
        self,
        table: str,
        method: str = 'GET',
        data: Optional[Union[Dict, List[Dict]]] = None,
        filters: Optional[Dict[str, Any]] = None,
        select: Optional[str] = None,
        order: Optional[str] = None,
        on_conflict: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Any:
        """
        Execute a query on a Supabase table

        Args:
            table: Table name
            method: GET, POST, PATCH or DELETE
            data: Row or list of rows for POST/PATCH
            filters: Column filters, see ``_filter_params``
            select: Columns to return, e.g. "time_slot,status"
            order: Ordering, e.g. "created_at.asc"
            on_conflict: Comma separated key columns; turns a POST into an upsert
            limit: Maximum number of rows to return

        Returns:
            Decoded JSON response ([] or {} when the body is empty)
        """
        url = f"{self.url}/rest/v1/{table}"

        params = _filter_params(filters)
        if select:
            params.append(("select", select))
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))

        headers = dict(self.headers)
        if on_conflict:
            if method != 'POST':
                raise ValueError("on_conflict is only valid for POST (upsert)")
            params.append(("on_conflict", on_conflict))
            headers['Prefer'] = 'return=representation,resolution=merge-duplicates'

        async with self._client() as client:
            if method == 'GET':
                response = await client.get(url, headers=headers, params=params)
            elif method == 'POST':
                response = await client.post(url, headers=headers, params=params, json=data)
            elif method == 'PATCH':
                response = await client.patch(url, headers=headers, params=params, json=data)
            elif method == 'DELETE':
                response = await client.delete(url, headers=headers, params=params)
            else:
                raise ValueError(f"Unsupported method: {method}")

            if response.status_code >= 400:
                logger.error(f"Supabase {method} {table} failed: {response.status_code} - {response.text}")
                raise SupabaseError(response.status_code, response.text)

            return response.json() if response.text else {}


class SupabaseConfig:
    """Supabase configuration class"""

    def __init__(self):
        self.url: str = os.getenv("SUPABASE_URL", "")
        self.key: str = os.getenv("SUPABASE_ANON_KEY", "")
        self.service_key: str = os.getenv("SUPABASE_SERVICE_KEY", "")

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    def get_client(self, use_service_key: bool = False) -> SimpleSupabaseClient:
        """Create and return Supabase client"""
        if not self.is_configured:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set in environment variables")
        key = self.service_key if use_service_key and self.service_key else self.key
        return SimpleSupabaseClient(self.url, key)


# Global Supabase client instances
_config: Optional[SupabaseConfig] = None
_client: Optional[SimpleSupabaseClient] = None
_service_client: Optional[SimpleSupabaseClient] = None


def get_supabase_config() -> SupabaseConfig:
    """Get Supabase configuration singleton"""
    global _config
    if _config is None:
        _config = SupabaseConfig()
    return _config


def get_supabase_client() -> Optional[SimpleSupabaseClient]:
    """Get Supabase client for regular operations, or None when the store is not configured"""
    global _client
    if _client is None:
        config = get_supabase_config()
        if not config.is_configured:
            return None
        _client = config.get_client()
    return _client


def get_supabase_service_client() -> Optional[SimpleSupabaseClient]:
    """
    Get Supabase client with service key for admin operations.

    Falls back to the regular client when no service key is set.
    """
    global _service_client
    if _service_client is None:
        config = get_supabase_config()
        if not config.is_configured:
            return None
        _service_client = config.get_client(use_service_key=True)
    return _service_client


def reset_supabase_clients():
    """Forget cached configuration and clients (used after environment changes)"""
    global _config, _client, _service_client
    _config = None
    _client = None
    _service_client = None


async def test_connection() -> bool:
    """Test Supabase connection"""
    client = get_supabase_client()
    if client is None:
        logger.warning("Supabase credentials not configured, serving demo data")
        return False

    try:
        await client.query("schedules", "GET", select="date", limit=1)
        logger.info("Supabase connection successful")
        return True
    except (SupabaseError, httpx.HTTPError) as e:
        logger.error(f"Supabase connection failed: {e}")
        return False
