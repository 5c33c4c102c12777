"""Swap orchestration.

Runs one intent through the whole pipeline:

    quote -> allowance -> (secrets) -> build -> sign -> submit -> monitor

Any failure before submission aborts the run and propagates; nothing has
been committed to the venue at that point. Once submitted, the order hash
is the only handle and the monitor decides the outcome.
"""

import logging
from typing import Callable, Optional

from swapintent.chain.allowance import AllowanceGuard
from swapintent.chain.erc20 import PERMIT2_ADDRESS, Erc20Client
from swapintent.config import Settings, get_settings
from swapintent.errors import SwapIntentError
from swapintent.events import EventStream, OrderSubmitted, default_event_stream
from swapintent.hashlock import SecretSet, generate_commitment
from swapintent.models import (
    AllowanceResult,
    OrderStatus,
    Quote,
    SwapIntent,
    SwapResult,
)
from swapintent.monitor import MonitorResult, SettlementMonitor
from swapintent.orders.builder import sign_order
from swapintent.signing.base import TypedDataSigner
from swapintent.signing.local import LocalSigner
from swapintent.utils.clock import Clock
from swapintent.venue.base import Venue
from swapintent.venue.factory import VenueKind, create_venue

logger = logging.getLogger(__name__)


class SwapExecutor:
    """Executes swap intents against a single venue."""

    def __init__(
        self,
        venue: Venue,
        signer: TypedDataSigner,
        allowance_guard: AllowanceGuard,
        monitor: Optional[SettlementMonitor] = None,
        events: Optional[EventStream] = None,
        spender: Optional[str] = None,
        secret_generator: Callable[[int], SecretSet] = generate_commitment,
    ):
        self.venue = venue
        self.signer = signer
        self.allowance_guard = allowance_guard
        self.events = events or default_event_stream()
        self.monitor = monitor or SettlementMonitor(venue, events=self.events)
        self.spender = spender or venue.router_address
        self.secret_generator = secret_generator

    async def get_quote(self, intent: SwapIntent) -> Quote:
        """Quote only, no side effects."""
        return await self.venue.get_quote(intent)

    async def execute_swap(self, intent: SwapIntent) -> SwapResult:
        """Run an intent to completion.

        Returns:
            SwapResult with the order hash and the monitor's outcome.
            A monitor timeout is a result, not an exception.

        Raises:
            ValueError: If the intent cannot be served by this venue
            VenueError: Quote, build or submission failed
            SigningFailure: The signer refused
            ChainTransactionFailure: The approval transaction failed
        """
        self._check_intent(intent)
        logger.info(
            f"Starting {self.venue.name} swap: {intent.amount} {intent.src_token} "
            f"-> {intent.dst_token}"
        )

        try:
            quote = await self.venue.get_quote(intent)
            logger.info(f"Quote received: {quote.src_amount} -> {quote.dst_amount}")

            allowance = await self._ensure_allowance(intent)

            secret_set = None
            if intent.is_cross_chain:
                preset = quote.choose_preset(intent.preset)
                logger.info(f"Generating {preset.secrets_count} secret(s) for preset {preset.name}")
                secret_set = self.secret_generator(preset.secrets_count)

            unsigned = await self.venue.build_order(intent, quote, secret_set)
            signed = await sign_order(self.signer, unsigned)

            order_hash = await self.venue.submit_order(
                signed,
                secret_set.secret_hashes_hex if secret_set else None,
            )
        except SwapIntentError as e:
            logger.error(f"{self.venue.name} swap failed: {e}")
            raise

        logger.info(f"Order submitted successfully! Order hash: {order_hash}")
        self.events.publish(OrderSubmitted(order_hash, signed.quote_id))

        monitored = await self.monitor.watch(order_hash, secret_set)
        return self._result(monitored, quote_id=signed.quote_id, allowance=allowance)

    async def check_status(self, order_hash: str) -> OrderStatus:
        """Single status read for an order hash."""
        report = await self.venue.get_order_status(order_hash)
        return report.status

    async def resume(self, order_hash: str) -> SwapResult:
        """Monitor an order submitted earlier (e.g. by a previous process).

        Secrets are not persisted, so a resumed cross-chain order only has
        its status watched.
        """
        logger.info(f"Resuming monitoring of order {order_hash}")
        monitored = await self.monitor.watch(order_hash)
        return self._result(monitored)

    def _check_intent(self, intent: SwapIntent) -> None:
        if intent.amount <= 0:
            raise ValueError(f"Swap amount must be positive, got {intent.amount}")
        if intent.use_permit2 and not intent.permit:
            raise ValueError("use_permit2 needs a Permit2 maker permit")
        if intent.is_cross_chain and not self.venue.supports_secrets:
            raise ValueError(f"{self.venue.name} cannot settle cross-chain intents")
        if intent.src_chain_id != self.venue.chain_id:
            raise ValueError(
                f"Intent source chain {intent.src_chain_id} does not match venue chain "
                f"{self.venue.chain_id}"
            )
        if intent.wallet_address.lower() != self.signer.address.lower():
            raise ValueError(
                f"Maker {intent.wallet_address} is not the signing account {self.signer.address}"
            )

    async def _ensure_allowance(self, intent: SwapIntent) -> AllowanceResult:
        if intent.use_permit2:
            # Permit2 moves the tokens, so it is the ERC-20 spender
            return await self.allowance_guard.ensure_allowance(
                intent.src_token,
                intent.wallet_address,
                PERMIT2_ADDRESS,
                intent.amount,
            )
        if intent.permit:
            logger.info("Maker permit supplied, skipping allowance check")
            return AllowanceResult(approved=False, skipped=True)
        return await self.allowance_guard.ensure_allowance(
            intent.src_token,
            intent.wallet_address,
            self.spender,
            intent.amount,
        )

    @staticmethod
    def _result(
        monitored: MonitorResult,
        quote_id: Optional[str] = None,
        allowance: Optional[AllowanceResult] = None,
    ) -> SwapResult:
        return SwapResult(
            order_hash=monitored.order_hash,
            final_status=monitored.final_status,
            execution_time_seconds=monitored.elapsed_seconds,
            outcome=monitored.outcome,
            quote_id=quote_id,
            allowance=allowance,
            transitions=monitored.transitions,
            released_secret_indices=monitored.released_indices,
        )


def create_swap_executor(
    kind: VenueKind | str,
    chain_id: int,
    settings: Optional[Settings] = None,
    events: Optional[EventStream] = None,
    clock: Optional[Clock] = None,
) -> SwapExecutor:
    """Wire an executor from settings.

    Raises:
        ConfigurationError: If a credential is missing
    """
    settings = settings or get_settings()
    settings.require_credentials()

    signer = LocalSigner(settings.private_key)
    token_client = Erc20Client(
        rpc_url=settings.rpc_url,
        signer=signer,
        gas_limit=settings.approval_gas_limit,
        gas_price_buffer_percent=settings.gas_price_buffer_percent,
        confirmation_timeout=settings.confirmation_timeout,
        request_timeout=settings.request_timeout,
    )
    venue = create_venue(kind, chain_id, settings=settings)
    events = events or default_event_stream()
    monitor = SettlementMonitor(
        venue,
        poll_interval=settings.poll_interval,
        timeout=settings.monitor_timeout,
        error_backoff=settings.error_backoff,
        clock=clock,
        events=events,
    )
    return SwapExecutor(
        venue=venue,
        signer=signer,
        allowance_guard=AllowanceGuard(token_client),
        monitor=monitor,
        events=events,
        spender=settings.router_address,
    )
