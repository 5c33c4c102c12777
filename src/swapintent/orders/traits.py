"""Maker traits: the packed uint256 of per-order flags and limits.

Layout (limit order protocol v4):
- bit 255 no partial fills, 254 allow multiple fills
- bit 252 pre-interaction, 251 post-interaction, 250 check epoch
- bit 249 has extension, 248 use Permit2, 247 unwrap WETH
- bits 160..199 series, 120..159 nonce or epoch, 80..119 expiration
- bits 0..79 low 10 bytes of the allowed sender
"""

from dataclasses import dataclass
from typing import Optional

NO_PARTIAL_FILLS_FLAG = 255
ALLOW_MULTIPLE_FILLS_FLAG = 254
PRE_INTERACTION_CALL_FLAG = 252
POST_INTERACTION_CALL_FLAG = 251
NEED_CHECK_EPOCH_MANAGER_FLAG = 250
HAS_EXTENSION_FLAG = 249
USE_PERMIT2_FLAG = 248
UNWRAP_WETH_FLAG = 247

_ALLOWED_SENDER_BITS = 80
_EXPIRATION_OFFSET = 80
_NONCE_OFFSET = 120
_SERIES_OFFSET = 160
_UINT40_MAX = (1 << 40) - 1
_ALLOWED_SENDER_MASK = (1 << _ALLOWED_SENDER_BITS) - 1


@dataclass
class MakerTraits:
    allowed_sender: Optional[str] = None
    expiration: int = 0
    nonce_or_epoch: int = 0
    series: int = 0
    allow_partial_fills: bool = True
    allow_multiple_fills: bool = True
    has_pre_interaction: bool = False
    has_post_interaction: bool = False
    need_check_epoch: bool = False
    has_extension: bool = False
    use_permit2: bool = False
    unwrap_weth: bool = False

    def encode(self) -> int:
        for name in ("expiration", "nonce_or_epoch", "series"):
            value = getattr(self, name)
            if not 0 <= value <= _UINT40_MAX:
                raise ValueError(f"{name} does not fit in 40 bits: {value}")

        traits = 0
        if self.allowed_sender:
            traits |= int(self.allowed_sender, 16) & _ALLOWED_SENDER_MASK
        traits |= self.expiration << _EXPIRATION_OFFSET
        traits |= self.nonce_or_epoch << _NONCE_OFFSET
        traits |= self.series << _SERIES_OFFSET

        flags = (
            (not self.allow_partial_fills, NO_PARTIAL_FILLS_FLAG),
            (self.allow_multiple_fills, ALLOW_MULTIPLE_FILLS_FLAG),
            (self.has_pre_interaction, PRE_INTERACTION_CALL_FLAG),
            (self.has_post_interaction, POST_INTERACTION_CALL_FLAG),
            (self.need_check_epoch, NEED_CHECK_EPOCH_MANAGER_FLAG),
            (self.has_extension, HAS_EXTENSION_FLAG),
            (self.use_permit2, USE_PERMIT2_FLAG),
            (self.unwrap_weth, UNWRAP_WETH_FLAG),
        )
        for enabled, bit in flags:
            if enabled:
                traits |= 1 << bit
        return traits

    @classmethod
    def decode(cls, value: int) -> "MakerTraits":
        def flag(bit: int) -> bool:
            return bool((value >> bit) & 1)

        sender_bits = value & _ALLOWED_SENDER_MASK
        return cls(
            allowed_sender=f"0x{sender_bits:020x}" if sender_bits else None,
            expiration=(value >> _EXPIRATION_OFFSET) & _UINT40_MAX,
            nonce_or_epoch=(value >> _NONCE_OFFSET) & _UINT40_MAX,
            series=(value >> _SERIES_OFFSET) & _UINT40_MAX,
            allow_partial_fills=not flag(NO_PARTIAL_FILLS_FLAG),
            allow_multiple_fills=flag(ALLOW_MULTIPLE_FILLS_FLAG),
            has_pre_interaction=flag(PRE_INTERACTION_CALL_FLAG),
            has_post_interaction=flag(POST_INTERACTION_CALL_FLAG),
            need_check_epoch=flag(NEED_CHECK_EPOCH_MANAGER_FLAG),
            has_extension=flag(HAS_EXTENSION_FLAG),
            use_permit2=flag(USE_PERMIT2_FLAG),
            unwrap_weth=flag(UNWRAP_WETH_FLAG),
        )
