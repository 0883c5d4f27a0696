"""Base network client."""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, Optional

import httpx

from src.collectors.records import DomainListResult, FetchResult
from src.models.base import AdNetwork

logger = logging.getLogger(__name__)


class NetworkFetchError(Exception):
    """Raised when an ad network request fails or returns an unusable response."""


class NetworkClient(ABC):
    """
    Base class for ad network API clients.

    Clients are async context managers that own an httpx.AsyncClient:

        async with SedoClient(credentials) as client:
            result = await client.fetch_revenue()
    """

    network: AdNetwork
    timeout: float = 30.0
    required_credentials: tuple = ()

    def __init__(
        self,
        credentials: Dict[str, Any],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    def is_configured(self) -> bool:
        """True when every required credential is present."""
        return all(self.credentials.get(name) for name in self.required_credentials)

    def config_status(self) -> Dict[str, bool]:
        """Which credentials are present. Never includes the values."""
        status = {f"has_{name}": bool(self.credentials.get(name)) for name in self.required_credentials}
        status["configured"] = self.is_configured()
        return status

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """GET with error translation to NetworkFetchError."""
        try:
            response = await self.client.get(url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.network.value} API returned {e.response.status_code} for {url}")
            raise NetworkFetchError(f"HTTP {e.response.status_code}: {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching {url}: {e}")
            raise NetworkFetchError(str(e) or e.__class__.__name__) from e

    async def fetch_revenue(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        domain: Optional[str] = None,
    ) -> FetchResult:
        """
        Fetch revenue records.

        Never raises for upstream problems: a failed fetch comes back as
        FetchResult(success=False, error=...).
        """
        if not self.is_configured():
            return FetchResult.failed(f"{self.network.value.capitalize()} API not configured")
        try:
            return await self._fetch_revenue(start_date, end_date, domain)
        except NetworkFetchError as e:
            logger.error(f"{self.network.value} fetch failed: {e}")
            return FetchResult.failed(str(e))

    async def fetch_domains(self) -> DomainListResult:
        """Fetch the domain list with 31-day totals."""
        if not self.is_configured():
            return DomainListResult(success=False, error="API not configured")
        try:
            return await self._fetch_domains()
        except NetworkFetchError as e:
            logger.error(f"{self.network.value} domain fetch failed: {e}")
            return DomainListResult(success=False, error=str(e))

    @abstractmethod
    async def _fetch_revenue(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        domain: Optional[str],
    ) -> FetchResult:
        pass

    @abstractmethod
    async def _fetch_domains(self) -> DomainListResult:
        pass
