"""Order builder and signer.

Fusion and Fusion+ orders are assembled locally from the quote; order-book
orders arrive as typed data built by the venue. Either way the result is
an ``UnsignedOrder`` holding the EIP-712 domain, types and message plus
the order hash that identifies the swap from then on.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional

from eth_account.messages import encode_typed_data
from eth_utils import keccak, to_canonical_address, to_checksum_address

from swapintent.hashlock import SecretSet
from swapintent.models import Quote, SwapIntent
from swapintent.orders.extension import (
    AuctionDetails,
    Extension,
    encode_escrow_data,
    encode_settlement_data,
)
from swapintent.orders.traits import MakerTraits
from swapintent.signing.base import TypedDataSigner, strip_domain_type

logger = logging.getLogger(__name__)

LOP_DOMAIN_NAME = "1inch Aggregation Router"
LOP_DOMAIN_VERSION = "6"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Taker asset of the source-chain half of a cross-chain order; the real
# destination token travels in the escrow data
CROSS_CHAIN_TAKER_ASSET = "0xda0000d4000015a526378bb6fafc650cea5966f8"

ORDER_TYPES = {
    "Order": [
        {"name": "salt", "type": "uint256"},
        {"name": "maker", "type": "address"},
        {"name": "receiver", "type": "address"},
        {"name": "makerAsset", "type": "address"},
        {"name": "takerAsset", "type": "address"},
        {"name": "makingAmount", "type": "uint256"},
        {"name": "takingAmount", "type": "uint256"},
        {"name": "makerTraits", "type": "uint256"},
    ]
}


@dataclass
class UnsignedOrder:
    """EIP-712 order ready for signing."""

    chain_id: int
    domain: dict
    types: dict
    message: dict
    order_hash: str
    extension: str = "0x"
    quote_id: Optional[str] = None

    def api_order(self) -> dict:
        """Order message as the venue expects it in JSON (numbers as strings)."""
        return {key: str(value) for key, value in self.message.items()}


@dataclass
class SignedOrder:
    order: UnsignedOrder
    signature: str

    @property
    def order_hash(self) -> str:
        return self.order.order_hash

    @property
    def quote_id(self) -> Optional[str]:
        return self.order.quote_id


def lop_domain(chain_id: int, verifying_contract: str) -> dict:
    return {
        "name": LOP_DOMAIN_NAME,
        "version": LOP_DOMAIN_VERSION,
        "chainId": chain_id,
        "verifyingContract": to_checksum_address(verifying_contract),
    }


def typed_data_hash(domain: dict, types: dict, message: dict) -> str:
    """EIP-712 digest: keccak256(0x19 0x01 || domainSeparator || structHash)."""
    signable = encode_typed_data(
        domain_data=domain,
        message_types=strip_domain_type(types),
        message_data=message,
    )
    return "0x" + keccak(b"\x19" + signable.version + signable.header + signable.body).hex()


def _coerce_uint(value) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.lower().startswith("0x") else int(value)
    return int(value)


def normalize_message(types: dict, message: dict, primary_type: str = "Order") -> dict:
    """Coerce venue JSON values to what the EIP-712 encoder expects.

    uint fields become ints, address fields are checksummed, anything else
    is passed through.
    """
    field_types = {f["name"]: f["type"] for f in types[primary_type]}
    normalized = {}
    for name, value in message.items():
        if name not in field_types:
            continue
        field_type = field_types[name]
        if field_type.startswith("uint") or field_type.startswith("int"):
            normalized[name] = _coerce_uint(value)
        elif field_type == "address":
            normalized[name] = to_checksum_address(value)
        else:
            normalized[name] = value
    return normalized


class OrderBuilder:
    """Builds limit orders from quotes."""

    def __init__(
        self,
        router_address: str,
        now: Callable[[], float] = time.time,
        random_bits: Callable[[int], int] = secrets.randbits,
    ):
        self.router_address = router_address
        self._now = now
        self._random_bits = random_bits

    def _salt(self, extension: Extension) -> int:
        # High 96 bits random, low 160 bits bind the extension
        salt = self._random_bits(96) << 160
        if not extension.is_empty:
            salt |= extension.salt_bits()
        return salt

    def _finish(
        self,
        chain_id: int,
        message: dict,
        extension: Extension,
        quote_id: Optional[str],
    ) -> UnsignedOrder:
        domain = lop_domain(chain_id, self.router_address)
        message = {"salt": self._salt(extension), **message}
        return UnsignedOrder(
            chain_id=chain_id,
            domain=domain,
            types=ORDER_TYPES,
            message=message,
            order_hash=typed_data_hash(domain, ORDER_TYPES, message),
            extension=extension.hex(),
            quote_id=quote_id,
        )

    def build_fusion_order(
        self,
        intent: SwapIntent,
        quote: Quote,
        preset_name: Optional[str] = None,
    ) -> UnsignedOrder:
        """Single-chain Dutch-auction order settled through the settlement contract."""
        if not quote.settlement_address:
            raise ValueError("Quote has no settlement address")

        preset = quote.choose_preset(preset_name or intent.preset)
        now = int(self._now())
        auction = AuctionDetails.from_preset(preset, now)
        amount_data = to_canonical_address(quote.settlement_address) + auction.encode()

        extension = Extension(
            making_amount_data=amount_data,
            taking_amount_data=amount_data,
            maker_permit=intent.permit or b"",
            post_interaction=encode_settlement_data(
                quote.settlement_address, auction.start_time, quote.whitelist
            ),
        )
        traits = MakerTraits(
            expiration=auction.start_time + auction.duration,
            allow_partial_fills=preset.allow_partial_fills,
            allow_multiple_fills=preset.allow_multiple_fills,
            has_post_interaction=True,
            has_extension=True,
            use_permit2=intent.use_permit2,
        )
        message = {
            "maker": to_checksum_address(intent.wallet_address),
            "receiver": ZERO_ADDRESS,
            "makerAsset": to_checksum_address(intent.src_token),
            "takerAsset": to_checksum_address(intent.dst_token),
            "makingAmount": intent.amount,
            "takingAmount": preset.auction_end_amount,
            "makerTraits": traits.encode(),
        }
        return self._finish(intent.src_chain_id, message, extension, quote.quote_id)

    def build_cross_chain_order(
        self,
        intent: SwapIntent,
        quote: Quote,
        secret_set: SecretSet,
        preset_name: Optional[str] = None,
    ) -> UnsignedOrder:
        """Source-chain order locked by the hash-lock commitment.

        Raises:
            ValueError: If the quote lacks escrow parameters or the secret
                count does not match the preset
        """
        if quote.escrow is None:
            raise ValueError("Quote has no escrow parameters")

        preset = quote.choose_preset(preset_name or intent.preset)
        if len(secret_set) != preset.secrets_count:
            raise ValueError(
                f"Preset '{preset.name}' needs {preset.secrets_count} secrets, got {len(secret_set)}"
            )

        multiple_fills = len(secret_set) > 1
        factory = quote.escrow.src_escrow_factory
        now = int(self._now())
        auction = AuctionDetails.from_preset(preset, now)
        amount_data = to_canonical_address(factory) + auction.encode()

        extension = Extension(
            making_amount_data=amount_data,
            taking_amount_data=amount_data,
            maker_permit=intent.permit or b"",
            post_interaction=(
                encode_settlement_data(factory, auction.start_time, quote.whitelist)
                + encode_escrow_data(
                    secret_set.commitment.value,
                    intent.dst_chain_id,
                    intent.dst_token,
                    quote.escrow,
                )
            ),
        )
        traits = MakerTraits(
            expiration=auction.start_time + auction.duration,
            allow_partial_fills=multiple_fills,
            allow_multiple_fills=multiple_fills,
            has_post_interaction=True,
            has_extension=True,
            use_permit2=intent.use_permit2,
        )
        message = {
            "maker": to_checksum_address(intent.wallet_address),
            "receiver": ZERO_ADDRESS,
            "makerAsset": to_checksum_address(intent.src_token),
            "takerAsset": to_checksum_address(CROSS_CHAIN_TAKER_ASSET),
            "makingAmount": intent.amount,
            "takingAmount": preset.auction_end_amount,
            "makerTraits": traits.encode(),
        }
        return self._finish(intent.src_chain_id, message, extension, quote.quote_id)

    @staticmethod
    def from_typed_data(
        chain_id: int,
        typed_data: dict,
        order_hash: str,
        extension: str = "0x",
        quote_id: Optional[str] = None,
    ) -> UnsignedOrder:
        """Wrap typed data built by the venue.

        The venue's order hash is authoritative; a local mismatch is only
        logged.
        """
        types = strip_domain_type(typed_data["types"])
        message = normalize_message(types, typed_data["message"])
        domain = dict(typed_data["domain"])

        local_hash = typed_data_hash(domain, types, message)
        if local_hash.lower() != order_hash.lower():
            logger.warning(f"Venue order hash {order_hash} differs from local digest {local_hash}")

        return UnsignedOrder(
            chain_id=chain_id,
            domain=domain,
            types=types,
            message=message,
            order_hash=order_hash,
            extension=extension or "0x",
            quote_id=quote_id,
        )


async def sign_order(signer: TypedDataSigner, order: UnsignedOrder) -> SignedOrder:
    """Obtain the maker's signature. No retries; SigningFailure propagates."""
    logger.info(f"Signing order {order.order_hash}")
    signature = await signer.sign_typed_data(order.domain, order.types, order.message)
    return SignedOrder(order=order, signature=signature)
