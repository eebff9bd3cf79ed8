"""AdsIntel — Meta Graph API Client.

Handles authentication, error mapping and pagination. Failures are raised
as MetaAPIError and never retried here; the caller decides what a failed
sync means.
"""

from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.core.logging import get_logger

logger = get_logger("meta.client")

META_BASE = f"{settings.meta_base_url}/{settings.meta_api_version}"


class MetaAPIError(Exception):
    """Raised when Meta API returns an error."""

    def __init__(self, message: str, status_code: int = 0, error_code: int = 0):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class MetaClient:
    """Async HTTP client for the Meta Graph API."""

    def __init__(
        self,
        access_token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        if not access_token:
            raise ValueError("A Meta access token is required")
        self.access_token = access_token
        self._transport = transport
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "MetaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
        json_body: Dict[str, Any] | None = None,
    ) -> Any:
        """Make one request; map transport and API errors to MetaAPIError."""
        params = dict(params or {})
        params["access_token"] = self.access_token

        client = await self._get_client()
        try:
            resp = await client.request(method, url, params=params, json=json_body)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            body = (
                e.response.json()
                if e.response.headers.get("content-type", "").startswith(
                    "application/json"
                )
                else {}
            )
            error = body.get("error", {}) if isinstance(body, dict) else {}
            error_msg = error.get("message", str(e))
            error_code = error.get("code", 0)
            logger.warning(
                f"Meta API error {e.response.status_code}: {error_msg}",
                extra={"status_code": e.response.status_code},
            )
            raise MetaAPIError(error_msg, e.response.status_code, error_code) from e
        except httpx.RequestError as e:
            raise MetaAPIError(f"Connection to Meta failed: {e}") from e

    async def get(self, url: str, params: Dict[str, Any] | None = None) -> Any:
        return await self._request("GET", url, params)

    async def post(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        json_body: Dict[str, Any] | None = None,
    ) -> Any:
        return await self._request("POST", url, params, json_body)

    # ── Pagination ──

    async def paginated_get(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        max_pages: int = 50,
    ) -> List[Dict[str, Any]]:
        """Fetch all pages of a paginated endpoint by following paging.next."""
        all_data: List[Dict[str, Any]] = []
        current_url = url

        for page in range(max_pages):
            result = await self._request(
                "GET", current_url, params if page == 0 else None
            )
            all_data.extend(result.get("data", []))

            next_url = result.get("paging", {}).get("next")
            if not next_url:
                break
            current_url = next_url

        logger.info(f"Fetched {len(all_data)} records from {url}")
        return all_data

    # ── Token Validation ──

    async def validate_token(self) -> Dict[str, Any]:
        """Check if the access token is valid and return metadata."""
        url = f"{META_BASE}/debug_token"
        params = {"input_token": self.access_token}
        result = await self._request("GET", url, params)
        token_data = result.get("data", {})
        return {
            "valid": token_data.get("is_valid", False),
            "expires_at": token_data.get("expires_at", 0),
            "scopes": token_data.get("scopes", []),
            "app_id": token_data.get("app_id", ""),
        }
