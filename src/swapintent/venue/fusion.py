"""Fusion (single-chain intent swap) venue.

Quotes come with auction presets; the order is built locally and signed
against the aggregation router domain.
API docs: https://portal.1inch.dev/documentation/apis/swap/fusion-plus/introduction
"""

import logging
from typing import Optional

from swapintent.errors import MalformedResponse
from swapintent.hashlock import SecretSet
from swapintent.models import OrderStatusReport, Preset, Quote, SwapIntent
from swapintent.orders.builder import SignedOrder, UnsignedOrder
from swapintent.venue.base import Venue, parse_status_report, require_int, returned_order_hash

logger = logging.getLogger(__name__)

FUSION_QUOTER = "/fusion/quoter/v2.0"
FUSION_RELAYER = "/fusion/relayer/v2.0"
FUSION_ORDERS = "/fusion/orders/v2.0"


def parse_presets(data: dict) -> dict[str, Preset]:
    presets = data.get("presets") or {}
    try:
        return {name: Preset.from_api(name, preset) for name, preset in presets.items() if preset}
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise MalformedResponse(f"Invalid presets: {e}", presets) from e


class FusionVenue(Venue):
    """1inch Fusion venue for one chain."""

    @property
    def name(self) -> str:
        return f"Fusion ({self.chain_id})"

    async def get_quote(self, intent: SwapIntent) -> Quote:
        logger.info(f"Getting quote: {intent.amount} {intent.src_token} -> {intent.dst_token}")
        data = await self.http.get(
            f"{FUSION_QUOTER}/{self.chain_id}/quote/receive",
            params={
                "fromTokenAddress": intent.src_token,
                "toTokenAddress": intent.dst_token,
                "amount": str(intent.amount),
                "walletAddress": intent.wallet_address,
                "enableEstimate": "true",
                "source": self.source,
            },
        )

        quote = Quote(
            src_amount=require_int(data, "fromTokenAmount"),
            dst_amount=require_int(data, "toTokenAmount"),
            quote_id=data.get("quoteId"),
            presets=parse_presets(data),
            recommended_preset=data.get("recommended_preset"),
            settlement_address=data.get("settlementAddress"),
            whitelist=list(data.get("whitelist") or []),
            raw=data,
        )
        logger.info(f"Quote received - Expected output: {quote.dst_amount}")
        return quote

    async def build_order(
        self,
        intent: SwapIntent,
        quote: Quote,
        secret_set: Optional[SecretSet] = None,
    ) -> UnsignedOrder:
        order = self.builder.build_fusion_order(intent, quote)
        logger.info(f"Order prepared with quoteId: {order.quote_id}")
        return order

    async def submit_order(
        self,
        signed: SignedOrder,
        secret_hashes: Optional[list[str]] = None,
    ) -> str:
        data = await self.http.post(
            f"{FUSION_RELAYER}/{self.chain_id}/order/submit",
            json={
                "order": signed.order.api_order(),
                "signature": signed.signature,
                "extension": signed.order.extension,
                "quoteId": signed.quote_id,
            },
        )
        return returned_order_hash(data, signed.order_hash)

    async def get_order_status(self, order_hash: str) -> OrderStatusReport:
        data = await self.http.get(f"{FUSION_ORDERS}/{self.chain_id}/order/status/{order_hash}")
        return parse_status_report(order_hash, data)
