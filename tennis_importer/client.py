from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from .config import Settings, get_httpx_proxy
from .errors import ProviderHTTPError, QuotaExceededError, TransportError


class TennisApiClient:
    """GET-only client for the tennis provider, gated by a request quota.

    A quota slot is taken before every request, so a call counts against the
    budget whatever its outcome. No retries.
    """

    def __init__(
        self,
        settings: Settings,
        quota,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.quota = quota
        self.requests_made = 0
        kwargs: dict = {
            "base_url": settings.api_base_url,
            "headers": settings.api_headers(),
            "timeout": settings.request_timeout,
        }
        if transport is not None:
            kwargs["transport"] = transport
        else:
            proxy = get_httpx_proxy()
            if proxy:
                kwargs["proxy"] = proxy
        self._client = httpx.AsyncClient(**kwargs)

    async def __aenter__(self) -> "TennisApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, endpoint: str) -> Any:
        if not await self.quota.acquire():
            raise QuotaExceededError(await self.quota.status())
        self.requests_made += 1
        status = await self.quota.status()
        logger.info(
            "Tennis API request {}/{}: {}", status.used, status.daily_limit, endpoint
        )
        try:
            resp = await self._client.get(endpoint)
        except httpx.HTTPError as e:
            raise TransportError(f"Tennis API fetch failed: {e}") from e

        logger.debug("Tennis API answered {} for {}", resp.status_code, endpoint)
        if not resp.is_success:
            logger.error("Tennis API error body: {}", resp.text[:500])
            raise ProviderHTTPError(resp.status_code, resp.reason_phrase, resp.text)

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(f"Tennis API returned invalid JSON: {e}") from e
        logger.info(
            "Tennis API success: {} results",
            len(data) if isinstance(data, list) else "single",
        )
        return data

    async def quota_status(self):
        return await self.quota.status()
