"""Factory for creating venue clients from settings."""

import logging
from enum import Enum
from typing import Optional

import httpx

from swapintent.config import Settings, get_settings
from swapintent.venue.base import Venue
from swapintent.venue.fusion import FusionVenue
from swapintent.venue.fusion_plus import FusionPlusVenue
from swapintent.venue.http import VenueHttpClient
from swapintent.venue.orderbook import OrderbookVenue

logger = logging.getLogger(__name__)


class VenueKind(str, Enum):
    FUSION = "fusion"
    FUSION_PLUS = "fusion-plus"
    ORDERBOOK = "orderbook"


def create_venue(
    kind: VenueKind | str,
    chain_id: int,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Venue:
    """Create a venue client.

    Args:
        kind: Which venue API to talk to
        chain_id: Source chain of the orders
        settings: Settings to use (cached settings if omitted)
        transport: Optional httpx transport (tests)
    """
    settings = settings or get_settings()
    kind = VenueKind(kind)

    http = VenueHttpClient(
        base_url=settings.api_base_url,
        auth_key=settings.auth_key or "",
        timeout=settings.request_timeout,
        transport=transport,
    )
    common = dict(
        http=http,
        chain_id=chain_id,
        router_address=settings.router_address,
        source=settings.source,
    )

    logger.debug(f"Creating {kind.value} venue for chain {chain_id}")
    if kind == VenueKind.FUSION:
        return FusionVenue(**common)
    if kind == VenueKind.FUSION_PLUS:
        return FusionPlusVenue(**common)
    return OrderbookVenue(order_expiration=settings.order_expiration, **common)
