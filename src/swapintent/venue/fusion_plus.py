"""Fusion+ (cross-chain atomic swap) venue.

Orders are locked by a hash-lock commitment. Once the resolver has
deployed both escrows the venue lists the fill as ready, and the maker
reveals the secret for that fill index.
"""

import logging
from typing import Optional

from swapintent.errors import MalformedResponse
from swapintent.hashlock import SecretSet
from swapintent.models import EscrowParams, OrderStatusReport, Quote, ReadyFill, SwapIntent
from swapintent.orders.builder import SignedOrder, UnsignedOrder
from swapintent.venue.base import (
    Venue,
    parse_status_report,
    require_field,
    require_int,
    returned_order_hash,
)
from swapintent.venue.fusion import parse_presets

logger = logging.getLogger(__name__)

FUSION_PLUS_QUOTER = "/fusion-plus/quoter/v1.0"
FUSION_PLUS_RELAYER = "/fusion-plus/relayer/v1.0"
FUSION_PLUS_ORDERS = "/fusion-plus/orders/v1.0"


class FusionPlusVenue(Venue):
    """1inch Fusion+ venue. ``chain_id`` is the source chain."""

    supports_secrets = True

    @property
    def name(self) -> str:
        return "Fusion+"

    async def get_quote(self, intent: SwapIntent) -> Quote:
        logger.info(
            f"Getting cross-chain quote: {intent.amount} {intent.src_token} "
            f"({intent.src_chain_id}) -> {intent.dst_token} ({intent.dst_chain_id})"
        )
        data = await self.http.get(
            f"{FUSION_PLUS_QUOTER}/quote/receive",
            params={
                "srcChain": str(intent.src_chain_id),
                "dstChain": str(intent.dst_chain_id),
                "srcTokenAddress": intent.src_token,
                "dstTokenAddress": intent.dst_token,
                "amount": str(intent.amount),
                "walletAddress": intent.wallet_address,
                "enableEstimate": "true",
            },
        )

        src_amount = require_int(data, "srcTokenAmount")
        dst_amount = require_int(data, "dstTokenAmount")
        try:
            escrow = EscrowParams(
                src_escrow_factory=require_field(data, "srcEscrowFactory"),
                dst_escrow_factory=require_field(data, "dstEscrowFactory"),
                src_safety_deposit=int(data.get("srcSafetyDeposit", 0)),
                dst_safety_deposit=int(data.get("dstSafetyDeposit", 0)),
                time_locks={key: int(value) for key, value in (data.get("timeLocks") or {}).items()},
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid escrow parameters: {e}", data) from e
        return Quote(
            src_amount=src_amount,
            dst_amount=dst_amount,
            quote_id=data.get("quoteId"),
            presets=parse_presets(data),
            recommended_preset=data.get("recommendedPreset"),
            settlement_address=escrow.src_escrow_factory,
            whitelist=list(data.get("whitelist") or []),
            escrow=escrow,
            raw=data,
        )

    async def build_order(
        self,
        intent: SwapIntent,
        quote: Quote,
        secret_set: Optional[SecretSet] = None,
    ) -> UnsignedOrder:
        if secret_set is None:
            raise ValueError("Cross-chain orders need a secret set")
        return self.builder.build_cross_chain_order(intent, quote, secret_set)

    async def submit_order(
        self,
        signed: SignedOrder,
        secret_hashes: Optional[list[str]] = None,
    ) -> str:
        body = {
            "order": signed.order.api_order(),
            "srcChainId": signed.order.chain_id,
            "signature": signed.signature,
            "extension": signed.order.extension,
            "quoteId": signed.quote_id,
        }
        if secret_hashes:
            body["secretHashes"] = secret_hashes

        data = await self.http.post(f"{FUSION_PLUS_RELAYER}/submit", json=body)
        return returned_order_hash(data, signed.order_hash)

    async def get_order_status(self, order_hash: str) -> OrderStatusReport:
        data = await self.http.get(f"{FUSION_PLUS_ORDERS}/order/status/{order_hash}")
        return parse_status_report(order_hash, data)

    async def get_ready_secret_fills(self, order_hash: str) -> list[ReadyFill]:
        data = await self.http.get(
            f"{FUSION_PLUS_ORDERS}/order/ready-to-accept-secret-fills/{order_hash}"
        )
        fills = require_field(data, "fills")
        try:
            return [
                ReadyFill(
                    idx=int(fill["idx"]),
                    src_escrow_deploy_tx_hash=fill.get("srcEscrowDeployTxHash"),
                    dst_escrow_deploy_tx_hash=fill.get("dstEscrowDeployTxHash"),
                )
                for fill in fills
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Bad ready-fill entry: {e}", data) from e

    async def submit_secret(self, order_hash: str, secret: str) -> None:
        await self.http.post(
            f"{FUSION_PLUS_RELAYER}/submit/secret",
            json={"secret": secret, "orderHash": order_hash},
        )
