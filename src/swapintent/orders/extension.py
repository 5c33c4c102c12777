"""Order extension encoding.

An extension is a 32-byte header of cumulative end offsets (one uint32
per field, field ``i`` in bits ``32*i .. 32*i+31``) followed by the
concatenated field bytes and any trailing custom data.
"""

from dataclasses import dataclass, field
from typing import Optional

from eth_utils import keccak, to_canonical_address

from swapintent.models import AuctionPoint, EscrowParams, Preset

# Escrow time-locks, packed as uint32 each from the low bits up
TIME_LOCK_FIELDS = (
    "srcWithdrawal",
    "srcPublicWithdrawal",
    "srcCancellation",
    "srcPublicCancellation",
    "dstWithdrawal",
    "dstPublicWithdrawal",
    "dstCancellation",
)
_DEPLOYED_AT_OFFSET = 224


@dataclass
class Extension:
    maker_asset_suffix: bytes = b""
    taker_asset_suffix: bytes = b""
    making_amount_data: bytes = b""
    taking_amount_data: bytes = b""
    predicate: bytes = b""
    maker_permit: bytes = b""
    pre_interaction: bytes = b""
    post_interaction: bytes = b""
    custom_data: bytes = b""

    def _fields(self) -> list[bytes]:
        return [
            self.maker_asset_suffix,
            self.taker_asset_suffix,
            self.making_amount_data,
            self.taking_amount_data,
            self.predicate,
            self.maker_permit,
            self.pre_interaction,
            self.post_interaction,
        ]

    @property
    def is_empty(self) -> bool:
        return not any(self._fields()) and not self.custom_data

    def encode(self) -> bytes:
        if self.is_empty:
            return b""

        offsets = 0
        end = 0
        for i, data in enumerate(self._fields()):
            end += len(data)
            offsets |= end << (32 * i)
        return offsets.to_bytes(32, "big") + b"".join(self._fields()) + self.custom_data

    def hex(self) -> str:
        return "0x" + self.encode().hex()

    def salt_bits(self) -> int:
        """Low 160 bits of keccak(extension), bound into the order salt."""
        return int.from_bytes(keccak(self.encode()), "big") & ((1 << 160) - 1)


@dataclass
class AuctionDetails:
    """Dutch-auction parameters carried in the amount-getter data."""

    start_time: int
    duration: int
    initial_rate_bump: int
    points: list[AuctionPoint] = field(default_factory=list)
    gas_bump_estimate: int = 0
    gas_price_estimate: int = 0

    @classmethod
    def from_preset(cls, preset: Preset, now: int) -> "AuctionDetails":
        return cls(
            start_time=now + preset.start_auction_in,
            duration=preset.auction_duration,
            initial_rate_bump=preset.initial_rate_bump,
            points=list(preset.points),
            gas_bump_estimate=preset.gas_bump_estimate,
            gas_price_estimate=preset.gas_price_estimate,
        )

    def encode(self) -> bytes:
        data = (
            self.gas_bump_estimate.to_bytes(3, "big")
            + self.gas_price_estimate.to_bytes(4, "big")
            + self.start_time.to_bytes(4, "big")
            + self.duration.to_bytes(3, "big")
            + self.initial_rate_bump.to_bytes(3, "big")
        )
        for point in self.points:
            data += point.coefficient.to_bytes(3, "big") + point.delay.to_bytes(2, "big")
        return data


def encode_settlement_data(
    settlement_address: str,
    resolving_start_time: int,
    whitelist: Optional[list[str]] = None,
) -> bytes:
    """Post-interaction payload for the settlement contract.

    settlement (20) | fee flags (1, none) | resolving start (4) |
    whitelist size (1) | per resolver: low 10 address bytes + delay (2)
    """
    whitelist = whitelist or []
    data = to_canonical_address(settlement_address)
    data += b"\x00"
    data += resolving_start_time.to_bytes(4, "big")
    data += len(whitelist).to_bytes(1, "big")
    for resolver in whitelist:
        data += to_canonical_address(resolver)[-10:] + (0).to_bytes(2, "big")
    return data


def encode_time_locks(time_locks: dict[str, int], deployed_at: int = 0) -> int:
    packed = deployed_at << _DEPLOYED_AT_OFFSET
    for i, name in enumerate(TIME_LOCK_FIELDS):
        packed |= (int(time_locks.get(name, 0)) & 0xFFFFFFFF) << (32 * i)
    return packed


def encode_escrow_data(
    hash_lock: bytes,
    dst_chain_id: int,
    dst_token: str,
    escrow: EscrowParams,
) -> bytes:
    """Escrow parameters appended to the post-interaction of a cross-chain order."""
    safety_deposit = (escrow.src_safety_deposit << 128) | escrow.dst_safety_deposit
    return (
        hash_lock
        + dst_chain_id.to_bytes(32, "big")
        + to_canonical_address(dst_token).rjust(32, b"\x00")
        + safety_deposit.to_bytes(32, "big")
        + encode_time_locks(escrow.time_locks).to_bytes(32, "big")
    )
