"""Abstract venue interface.

A venue prices an intent, builds or accepts an order, takes the signed
order and reports its status. Cross-chain venues also hand out escrow
fills that are waiting for secrets.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from swapintent.errors import MalformedResponse
from swapintent.hashlock import SecretSet
from swapintent.models import OrderStatus, OrderStatusReport, Quote, ReadyFill, SwapIntent
from swapintent.orders.builder import OrderBuilder, SignedOrder, UnsignedOrder
from swapintent.venue.http import VenueHttpClient

logger = logging.getLogger(__name__)


class Venue(ABC):
    """Base class for order venues."""

    supports_secrets: bool = False

    def __init__(
        self,
        http: VenueHttpClient,
        chain_id: int,
        router_address: str,
        source: str = "sdk-tutorial",
        builder: Optional[OrderBuilder] = None,
    ):
        self.http = http
        self.chain_id = chain_id
        self.router_address = router_address
        self.source = source
        self.builder = builder or OrderBuilder(router_address)

    @property
    @abstractmethod
    def name(self) -> str:
        """Venue name identifier."""
        pass

    @abstractmethod
    async def get_quote(self, intent: SwapIntent) -> Quote:
        """Price an intent. Venue errors propagate unchanged."""
        pass

    @abstractmethod
    async def build_order(
        self,
        intent: SwapIntent,
        quote: Quote,
        secret_set: Optional[SecretSet] = None,
    ) -> UnsignedOrder:
        pass

    @abstractmethod
    async def submit_order(
        self,
        signed: SignedOrder,
        secret_hashes: Optional[list[str]] = None,
    ) -> str:
        """Send a signed order. Returns its order hash. Never retried."""
        pass

    @abstractmethod
    async def get_order_status(self, order_hash: str) -> OrderStatusReport:
        pass

    async def get_ready_secret_fills(self, order_hash: str) -> list[ReadyFill]:
        raise NotImplementedError(f"{self.name} does not use escrow secrets")

    async def submit_secret(self, order_hash: str, secret: str) -> None:
        raise NotImplementedError(f"{self.name} does not use escrow secrets")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain_id={self.chain_id})"


def parse_status_report(order_hash: str, data: Any) -> OrderStatusReport:
    """Turn a ``{"status": ..., "fills": [...]}`` payload into a report.

    Raises:
        MalformedResponse: If the payload has no known status
    """
    if not isinstance(data, dict) or "status" not in data:
        raise MalformedResponse("Status response has no 'status' field", data)
    try:
        status = OrderStatus(data["status"])
    except ValueError as e:
        raise MalformedResponse(f"Unknown order status '{data['status']}'", data) from e

    return OrderStatusReport(
        order_hash=order_hash,
        status=status,
        fills=list(data.get("fills") or []),
        raw=data,
    )


def require_field(data: Any, key: str) -> Any:
    """Read a required key from a venue payload."""
    if not isinstance(data, dict) or key not in data:
        raise MalformedResponse(f"Response missing '{key}'", data)
    return data[key]


def require_int(data: Any, key: str) -> int:
    """Read a required integer (or decimal string) from a venue payload."""
    value = require_field(data, key)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"'{key}' is not an integer: {value!r}", data) from e


def returned_order_hash(data: Any, fallback: str) -> str:
    """Order hash echoed by a submit call, else the locally computed one."""
    if isinstance(data, dict) and data.get("orderHash"):
        return data["orderHash"]
    return fallback
