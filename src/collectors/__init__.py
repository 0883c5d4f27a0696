"""Ad network API clients."""

from typing import Any, Dict, Optional

import httpx

from src.collectors.base import NetworkClient, NetworkFetchError
from src.collectors.records import (
    DomainListResult,
    DomainStat,
    FetchResult,
    RawRevenueRecord,
    SedoRecord,
    YandexRecord,
    to_utc_date,
)
from src.collectors.sedo import SedoClient
from src.collectors.yandex import YandexClient
from src.models.base import AdNetwork

CLIENTS = {
    AdNetwork.SEDO: SedoClient,
    AdNetwork.YANDEX: YandexClient,
}


def create_network_client(
    network: AdNetwork,
    credentials: Dict[str, Any],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> NetworkClient:
    """Build the client for a network from a credentials dict."""
    return CLIENTS[network](credentials, transport=transport)


__all__ = [
    "NetworkClient",
    "NetworkFetchError",
    "SedoClient",
    "YandexClient",
    "create_network_client",
    "RawRevenueRecord",
    "SedoRecord",
    "YandexRecord",
    "FetchResult",
    "DomainStat",
    "DomainListResult",
    "to_utc_date",
]
