"""Order-book (limit order) venue.

The venue builds the typed data server-side; we only sign it. Pricing
comes from the aggregation quote endpoint unless the intent fixes its own
taking amount.
"""

import logging
import time
from typing import Callable, Optional

from swapintent.errors import MalformedResponse, VenueRejection
from swapintent.hashlock import SecretSet
from swapintent.models import OrderStatus, OrderStatusReport, Quote, SwapIntent
from swapintent.orders.builder import OrderBuilder, SignedOrder, UnsignedOrder
from swapintent.orders.traits import MakerTraits
from swapintent.venue.base import Venue, require_field, require_int
from swapintent.venue.http import VenueHttpClient

logger = logging.getLogger(__name__)

SWAP_API = "/swap/v6.0"
ORDERBOOK_API = "/orderbook/v4.0"


class OrderbookVenue(Venue):
    """1inch limit order book for one chain."""

    def __init__(
        self,
        http: VenueHttpClient,
        chain_id: int,
        router_address: str,
        source: str = "sdk-tutorial",
        builder: Optional[OrderBuilder] = None,
        order_expiration: int = 180,
        now: Callable[[], float] = time.time,
    ):
        super().__init__(http, chain_id, router_address, source, builder)
        self.order_expiration = order_expiration
        self._now = now

    @property
    def name(self) -> str:
        return f"Orderbook ({self.chain_id})"

    async def get_quote(self, intent: SwapIntent) -> Quote:
        data = await self.http.get(
            f"{SWAP_API}/{self.chain_id}/quote",
            params={
                "src": intent.src_token,
                "dst": intent.dst_token,
                "amount": str(intent.amount),
            },
        )
        return Quote(
            src_amount=intent.amount,
            dst_amount=require_int(data, "dstAmount"),
            raw=data,
        )

    async def build_order(
        self,
        intent: SwapIntent,
        quote: Quote,
        secret_set: Optional[SecretSet] = None,
    ) -> UnsignedOrder:
        taking_amount = intent.taking_amount or quote.dst_amount
        logger.info("building order ...")
        data = await self.http.get(
            f"{ORDERBOOK_API}/{self.chain_id}/build",
            params={
                "makerToken": intent.src_token,
                "takerToken": intent.dst_token,
                "makingAmount": str(intent.amount),
                "takingAmount": str(taking_amount),
                "expiration": str(int(self._now()) + self.order_expiration),
                "makerAddress": intent.wallet_address,
            },
        )

        typed_data = require_field(data, "typedData")
        order = OrderBuilder.from_typed_data(
            self.chain_id,
            typed_data,
            order_hash=require_field(data, "orderHash"),
            extension=data.get("extension") or "0x",
        )
        logger.info(f"order built and orderHash is: {order.order_hash}")
        return order

    async def submit_order(
        self,
        signed: SignedOrder,
        secret_hashes: Optional[list[str]] = None,
    ) -> str:
        data = await self.http.post(
            f"{ORDERBOOK_API}/{self.chain_id}",
            json={
                "orderHash": signed.order_hash,
                "signature": signed.signature,
                "data": {**signed.order.api_order(), "extension": signed.order.extension},
            },
        )
        if isinstance(data, dict) and data.get("success") is False:
            raise VenueRejection(200, data)
        return signed.order_hash

    async def get_order_status(self, order_hash: str) -> OrderStatusReport:
        """Derive status from the order record.

        The order book has no status field: an order with nothing left to
        fill is filled, a partly consumed one is partially filled, and an
        untouched one past its expiration is expired.
        """
        data = await self.http.get(f"{ORDERBOOK_API}/{self.chain_id}/order/{order_hash}")
        try:
            order_data = data["data"]
            making_amount = int(order_data["makingAmount"])
            remaining = int(data.get("remainingMakerAmount", making_amount))
            traits = MakerTraits.decode(int(str(order_data.get("makerTraits", "0")), 0))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Unexpected order record: {e}", data) from e

        if remaining == 0:
            status = OrderStatus.FILLED
        elif traits.expiration and self._now() > traits.expiration:
            status = OrderStatus.EXPIRED
        elif remaining < making_amount:
            status = OrderStatus.PARTIALLY_FILLED
        else:
            status = OrderStatus.PENDING

        return OrderStatusReport(order_hash=order_hash, status=status, raw=data)
