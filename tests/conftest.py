"""Pytest configuration and fixtures."""

import os
from collections import deque
from typing import Optional, Union

import pytest

# Keep a developer's .env / shell from leaking into tests
for _var in ("PRIVATE_KEY", "RPC_URL", "AUTH_KEY", "DEBUG"):
    os.environ.pop(_var, None)

from swapintent.chain.erc20 import Permit2Allowance, TokenClient, TokenInfo
from swapintent.events import EventStream
from swapintent.models import (
    EscrowParams,
    OrderStatus,
    OrderStatusReport,
    Preset,
    Quote,
    ReadyFill,
    SwapIntent,
)
from swapintent.orders.builder import OrderBuilder, SignedOrder, UnsignedOrder
from swapintent.utils.clock import Clock
from swapintent.venue.base import Venue
from swapintent.venue.http import VenueHttpClient

# Well-known Hardhat account #0
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

ROUTER = "0x111111125421cA6dc452d289314280a0f8842A65"
USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
WETH = "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1"
SETTLEMENT = "0xfb2809a5314473e1165f6b58018e20ed8f07b840"
ORDER_HASH = "0x" + "ab" * 32


class FakeClock(Clock):
    """Simulated clock: ``sleep`` advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


StatusStep = Union[OrderStatus, Exception]


class FakeVenue(Venue):
    """In-memory venue driven by scripted status and ready-fill sequences.

    Once a script runs out its last entry repeats.
    """

    def __init__(
        self,
        statuses: Optional[list[StatusStep]] = None,
        ready_fills: Optional[list[Union[list[int], Exception]]] = None,
        quote: Optional[Quote] = None,
        supports_secrets: bool = False,
        chain_id: int = 42161,
    ):
        super().__init__(
            http=VenueHttpClient("https://venue.test", "test-key"),
            chain_id=chain_id,
            router_address=ROUTER,
            builder=OrderBuilder(ROUTER, now=lambda: 1_700_000_000, random_bits=lambda n: 7),
        )
        self.supports_secrets = supports_secrets
        self._statuses = deque(statuses or [OrderStatus.PENDING])
        self._ready = deque(ready_fills or [[]])
        self.quote = quote or make_quote()
        self.calls: list[str] = []
        self.status_polls = 0
        self.submitted_orders: list[tuple[SignedOrder, Optional[list[str]]]] = []
        self.released_secrets: list[str] = []
        self.submit_secret_errors: deque = deque()

    @property
    def name(self) -> str:
        return "Fake"

    @staticmethod
    def _next(script: deque):
        return script.popleft() if len(script) > 1 else script[0]

    async def get_quote(self, intent: SwapIntent) -> Quote:
        self.calls.append("quote")
        return self.quote

    async def build_order(self, intent, quote, secret_set=None) -> UnsignedOrder:
        self.calls.append("build")
        if secret_set is not None:
            return self.builder.build_cross_chain_order(intent, quote, secret_set)
        return self.builder.build_fusion_order(intent, quote)

    async def submit_order(self, signed, secret_hashes=None) -> str:
        self.calls.append("submit")
        self.submitted_orders.append((signed, secret_hashes))
        return signed.order_hash

    async def get_order_status(self, order_hash: str) -> OrderStatusReport:
        self.calls.append("status")
        step = self._next(self._statuses)
        self.status_polls += 1
        if isinstance(step, Exception):
            raise step
        return OrderStatusReport(order_hash=order_hash, status=step)

    async def get_ready_secret_fills(self, order_hash: str) -> list[ReadyFill]:
        self.calls.append("ready")
        step = self._next(self._ready)
        if isinstance(step, Exception):
            raise step
        return [ReadyFill(idx=idx) for idx in step]

    async def submit_secret(self, order_hash: str, secret: str) -> None:
        self.calls.append("secret")
        if self.submit_secret_errors:
            raise self.submit_secret_errors.popleft()
        self.released_secrets.append(secret)


class FakeTokenClient(TokenClient):
    """ERC-20 state in a dict; counts every chain access."""

    def __init__(self, allowance: int = 0, chain: int = 42161, functions: Optional[dict] = None):
        self.allowances: dict[tuple[str, str, str], int] = {}
        self.default_allowance = allowance
        self.chain = chain
        self.functions = functions or {}
        self.allowance_reads = 0
        self.approvals: list[tuple[str, str, int]] = []
        self.approve_error: Optional[Exception] = None
        self.permit2 = Permit2Allowance(amount=0, expiration=0, nonce=0)

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        self.allowance_reads += 1
        return self.allowances.get((token.lower(), owner.lower(), spender.lower()), self.default_allowance)

    async def approve(self, token: str, spender: str, amount: int) -> str:
        if self.approve_error:
            raise self.approve_error
        self.approvals.append((token, spender, amount))
        self.allowances[(token.lower(), TEST_ADDRESS.lower(), spender.lower())] = amount
        return "0x" + f"{len(self.approvals):064x}"

    async def get_token_info(self, token: str, owner: str) -> TokenInfo:
        return TokenInfo(address=token, symbol="USDC", decimals=6, balance=10**9)

    async def call(self, token: str, function: str, *args):
        value = self.functions[function]
        if isinstance(value, Exception):
            raise value
        return value(*args) if callable(value) else value

    async def permit2_allowance(self, token: str, owner: str, spender: str) -> Permit2Allowance:
        return self.permit2

    async def chain_id(self) -> int:
        return self.chain


class EventRecorder:
    """Subscriber that keeps every published event."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]


def make_preset(name: str = "fast", secrets_count: int = 1, **overrides) -> Preset:
    values = dict(
        name=name,
        auction_duration=180,
        start_auction_in=12,
        initial_rate_bump=50000,
        auction_start_amount=1_000_000,
        auction_end_amount=990_000,
        secrets_count=secrets_count,
    )
    values.update(overrides)
    return Preset(**values)


def make_quote(secrets_count: int = 1, cross_chain: bool = False, recommended: str = "fast") -> Quote:
    escrow = None
    if cross_chain:
        escrow = EscrowParams(
            src_escrow_factory="0xa7bcb4eac8964306f9e3764f67db6a7af6ddf99a",
            dst_escrow_factory="0xa7bcb4eac8964306f9e3764f67db6a7af6ddf99a",
            src_safety_deposit=10**15,
            dst_safety_deposit=10**15,
            time_locks={"srcWithdrawal": 10, "srcPublicWithdrawal": 120},
        )
    return Quote(
        src_amount=1_000_000,
        dst_amount=990_000,
        quote_id="quote-1",
        presets={
            "fast": make_preset("fast", secrets_count),
            "slow": make_preset("slow", secrets_count, auction_duration=600),
        },
        recommended_preset=recommended,
        settlement_address=SETTLEMENT,
        escrow=escrow,
    )


def make_intent(**overrides) -> SwapIntent:
    values = dict(
        src_chain_id=42161,
        dst_chain_id=42161,
        src_token=USDC,
        dst_token=WETH,
        amount=1_000_000,
        wallet_address=TEST_ADDRESS,
    )
    values.update(overrides)
    return SwapIntent(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def events(recorder) -> EventStream:
    return EventStream([recorder])


@pytest.fixture
def token_client() -> FakeTokenClient:
    return FakeTokenClient()
