import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.recovery import HTTPStatusError, ShapeError, SourceTimeoutError, TransientSourceError

logger = logging.getLogger(__name__)


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class HTTPProvider(Provider):
    """Provider backed by a lazily created ``httpx.AsyncClient``.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    base_url: str = ""
    health_path: str = "/"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if base_url:
            self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": settings.user_agent,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_s,
                headers=self._build_headers(),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ) -> Any:
        """Single GET attempt bounded by ``timeout_s``.

        Every failure is raised as one of the recovery errors so the caller
        can decide whether to try again.
        """
        client = await self._get_client()
        source = source or self.name
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            response = await asyncio.wait_for(
                client.get(url, params=clean_params or None),
                timeout=self.timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise SourceTimeoutError(
                f"Request to {source} timed out after {self.timeout_s}s",
                source=source,
                timeout_seconds=self.timeout_s,
            ) from e
        except httpx.TransportError as e:
            raise TransientSourceError(f"{type(e).__name__}: {e}", source=source) from e

        if not response.is_success:
            raise HTTPStatusError(response.status_code, response.reason_phrase, source=source)

        try:
            return response.json()
        except ValueError as e:
            raise ShapeError(f"Response from {source} is not valid JSON", source=source) from e

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "Provider disabled"
            }

        try:
            client = await self._get_client()
            response = await client.get(f"{self.base_url}{self.health_path}", timeout=self.timeout_s)
            response.raise_for_status()
            return {"status": "healthy", "latency_ms": int(response.elapsed.total_seconds() * 1000)}
        except Exception as e:
            logger.warning(f"{self.name} health check failed: {e}")
            return {"status": "error", "reason": str(e)}
