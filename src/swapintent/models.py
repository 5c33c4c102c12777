"""Core data types for swap intents, quotes and order status."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Reserved address the venue uses for a chain's native asset
NATIVE_ASSET_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

DEFAULT_PRESET = "fast"


def is_native_asset(token_address: str) -> bool:
    """Check if an address is the native-asset sentinel."""
    return token_address.lower() == NATIVE_ASSET_ADDRESS.lower()


@dataclass(frozen=True)
class SwapIntent:
    """What the caller wants swapped. Never mutated once created."""

    src_chain_id: int
    dst_chain_id: int
    src_token: str
    dst_token: str
    amount: int  # smallest unit of src_token
    wallet_address: str
    permit: Optional[bytes] = None  # maker permit payload (token || permit args)
    preset: Optional[str] = None  # settlement preset name (fast/medium/slow)
    taking_amount: Optional[int] = None  # fixed limit price for order-book orders
    use_permit2: bool = False  # permit is a Permit2 PermitSingle, not ERC-2612

    @property
    def is_cross_chain(self) -> bool:
        return self.src_chain_id != self.dst_chain_id

    @property
    def is_native_source(self) -> bool:
        return is_native_asset(self.src_token)


@dataclass
class AuctionPoint:
    """One step of a Dutch auction rate curve."""

    delay: int
    coefficient: int


@dataclass
class Preset:
    """A settlement timing tier offered in a quote."""

    name: str
    auction_duration: int
    start_auction_in: int
    initial_rate_bump: int
    auction_start_amount: int
    auction_end_amount: int
    secrets_count: int = 1
    points: list[AuctionPoint] = field(default_factory=list)
    gas_bump_estimate: int = 0
    gas_price_estimate: int = 0
    allow_partial_fills: bool = False
    allow_multiple_fills: bool = False

    @classmethod
    def from_api(cls, name: str, data: dict) -> "Preset":
        gas_cost = data.get("gasCost") or {}
        return cls(
            name=name,
            auction_duration=int(data.get("auctionDuration", 0)),
            start_auction_in=int(data.get("startAuctionIn", 0)),
            initial_rate_bump=int(data.get("initialRateBump", 0)),
            auction_start_amount=int(data.get("auctionStartAmount", 0)),
            auction_end_amount=int(data.get("auctionEndAmount", 0)),
            secrets_count=int(data.get("secretsCount", 1)),
            points=[
                AuctionPoint(delay=int(p["delay"]), coefficient=int(p["coefficient"]))
                for p in data.get("points") or []
            ],
            gas_bump_estimate=int(gas_cost.get("gasBumpEstimate", 0)),
            gas_price_estimate=int(gas_cost.get("gasPriceEstimate", 0)),
            allow_partial_fills=bool(data.get("allowPartialFills", False)),
            allow_multiple_fills=bool(data.get("allowMultipleFills", False)),
        )


@dataclass
class EscrowParams:
    """Cross-chain escrow settings returned with a Fusion+ quote."""

    src_escrow_factory: str
    dst_escrow_factory: str
    src_safety_deposit: int
    dst_safety_deposit: int
    time_locks: dict[str, int] = field(default_factory=dict)


@dataclass
class Quote:
    """Venue pricing for an intent.

    Fetched once per swap attempt. Staleness is the caller's concern; the
    venue rejects an expired ``quote_id`` at submission.
    """

    src_amount: int
    dst_amount: int
    quote_id: Optional[str] = None
    presets: dict[str, Preset] = field(default_factory=dict)
    recommended_preset: Optional[str] = None
    settlement_address: Optional[str] = None
    whitelist: list[str] = field(default_factory=list)
    escrow: Optional[EscrowParams] = None
    raw: dict = field(default_factory=dict, repr=False)

    def choose_preset(self, name: Optional[str] = None) -> Preset:
        """Resolve the preset to settle with.

        Falls back to the venue's recommendation, then to ``fast``.

        Raises:
            ValueError: If the quote has no such preset
        """
        preset_name = name or self.recommended_preset or DEFAULT_PRESET
        preset = self.presets.get(preset_name)
        if preset is None:
            raise ValueError(
                f"Preset '{preset_name}' not offered (available: {', '.join(self.presets) or 'none'})"
            )
        return preset


class OrderStatus(str, Enum):
    """Order states reported by the venue, plus the local starting point."""

    SUBMITTED = "submitted"  # local only: accepted but not yet observed
    PENDING = "pending"
    PARTIALLY_FILLED = "partially-filled"
    FILLED = "filled"
    EXECUTED = "executed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    REFUNDING = "refunding"
    REFUNDED = "refunded"
    FALSE_PREDICATE = "false-predicate"
    NOT_ENOUGH_BALANCE_OR_ALLOWANCE = "not-enough-balance-or-allowance"
    WRONG_PERMIT = "wrong-permit"
    INVALID_SIGNATURE = "invalid-signature"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.FILLED,
        OrderStatus.EXECUTED,
        OrderStatus.EXPIRED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    }
)


class MonitorOutcome(str, Enum):
    """How the settlement monitor finished."""

    FILLED = "filled"  # filled or executed
    EXPIRED = "expired"
    CANCELLED = "cancelled"  # cancelled or refunded
    TIMED_OUT = "timed_out"  # local wall-clock budget, not a venue status

    @classmethod
    def for_status(cls, status: OrderStatus) -> "MonitorOutcome":
        if status in (OrderStatus.FILLED, OrderStatus.EXECUTED):
            return cls.FILLED
        if status == OrderStatus.EXPIRED:
            return cls.EXPIRED
        if status in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
            return cls.CANCELLED
        raise ValueError(f"{status.value} is not a terminal status")


class EscrowPhase(str, Enum):
    """Progress of the cross-chain secret release."""

    ESCROW_PENDING = "escrow_pending"
    SECRETS_READY = "secrets_ready"
    SECRETS_RELEASED = "secrets_released"
    EXECUTED = "executed"
    REFUNDED = "refunded"
    EXPIRED = "expired"


@dataclass
class OrderStatusReport:
    """One status observation from the venue."""

    order_hash: str
    status: OrderStatus
    fills: list[dict] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)


@dataclass
class ReadyFill:
    """An escrow fill waiting for its secret."""

    idx: int
    src_escrow_deploy_tx_hash: Optional[str] = None
    dst_escrow_deploy_tx_hash: Optional[str] = None


@dataclass
class AllowanceResult:
    """Outcome of an allowance check."""

    approved: bool  # True only if an approval transaction was sent
    skipped: bool = False  # native asset or permit, nothing read
    current_allowance: Optional[int] = None
    tx_hash: Optional[str] = None


@dataclass
class SwapResult:
    """Result of a swap run."""

    order_hash: str
    final_status: OrderStatus
    execution_time_seconds: float
    outcome: MonitorOutcome
    quote_id: Optional[str] = None
    allowance: Optional[AllowanceResult] = None
    transitions: list[tuple[OrderStatus, OrderStatus]] = field(default_factory=list)
    released_secret_indices: list[int] = field(default_factory=list)
