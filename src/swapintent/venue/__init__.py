"""Order venue clients.

- FusionVenue: single-chain intent swaps
- FusionPlusVenue: cross-chain swaps settled through hash-locked escrows
- OrderbookVenue: plain limit orders built by the venue
"""

from swapintent.venue.base import Venue
from swapintent.venue.factory import VenueKind, create_venue
from swapintent.venue.fusion import FusionVenue
from swapintent.venue.fusion_plus import FusionPlusVenue
from swapintent.venue.http import VenueHttpClient
from swapintent.venue.orderbook import OrderbookVenue

__all__ = [
    "Venue",
    "VenueKind",
    "create_venue",
    "FusionVenue",
    "FusionPlusVenue",
    "OrderbookVenue",
    "VenueHttpClient",
]
