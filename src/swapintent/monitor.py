"""Settlement monitor.

Polls a submitted order until the venue reports a terminal status or the
wall-clock budget runs out. For cross-chain orders every tick first asks
which escrow fills are ready and reveals the matching secrets, each index
at most once per run.

State machine::

    Submitted -> {Pending, PartiallyFilled} -> {Filled, Expired, Cancelled}

    (cross-chain, alongside)
    EscrowPending -> SecretsReady -> SecretsReleased -> {Executed, Refunded, Expired}

A failed poll is published, followed by a longer back-off, and polling
resumes. Only a terminal status or the timeout ends the loop. Time comes
from an injected ``Clock``.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from swapintent.errors import VenueError
from swapintent.events import (
    EscrowPhaseChanged,
    EventStream,
    MonitorFinished,
    PollFailed,
    SecretReleased,
    SecretSkipped,
    StatusChanged,
    default_event_stream,
)
from swapintent.hashlock import SecretSet
from swapintent.models import EscrowPhase, MonitorOutcome, OrderStatus, OrderStatusReport
from swapintent.utils.clock import Clock, SystemClock
from swapintent.venue.base import Venue

logger = logging.getLogger(__name__)


class SecretReleaseLedger:
    """Which secret indices have been revealed to the venue in this run."""

    def __init__(self, size: int):
        self._released: dict[int, bool] = {idx: False for idx in range(size)}

    def __len__(self) -> int:
        return len(self._released)

    def has_index(self, idx: int) -> bool:
        return idx in self._released

    def is_released(self, idx: int) -> bool:
        return self._released.get(idx, False)

    def mark_released(self, idx: int) -> None:
        if not self.has_index(idx):
            raise IndexError(f"No secret at index {idx}")
        self._released[idx] = True

    @property
    def released_indices(self) -> list[int]:
        return sorted(idx for idx, released in self._released.items() if released)


@dataclass
class MonitorResult:
    """What the monitor saw."""

    order_hash: str
    outcome: MonitorOutcome
    final_status: OrderStatus  # last status actually observed
    elapsed_seconds: float
    transitions: list[tuple[OrderStatus, OrderStatus]] = field(default_factory=list)
    polls: int = 0
    poll_errors: int = 0
    escrow_phase: Optional[EscrowPhase] = None
    released_indices: list[int] = field(default_factory=list)
    final_check: Optional[OrderStatusReport] = None


@dataclass
class _Run:
    order_hash: str
    secret_set: Optional[SecretSet]
    ledger: Optional[SecretReleaseLedger]
    last_status: OrderStatus = OrderStatus.SUBMITTED
    transitions: list[tuple[OrderStatus, OrderStatus]] = field(default_factory=list)
    escrow_phase: Optional[EscrowPhase] = None
    skipped_indices: set[int] = field(default_factory=set)
    polls: int = 0
    poll_errors: int = 0


_FINAL_ESCROW_PHASE = {
    OrderStatus.EXECUTED: EscrowPhase.EXECUTED,
    OrderStatus.FILLED: EscrowPhase.EXECUTED,
    OrderStatus.REFUNDED: EscrowPhase.REFUNDED,
    OrderStatus.CANCELLED: EscrowPhase.REFUNDED,
    OrderStatus.EXPIRED: EscrowPhase.EXPIRED,
}


class SettlementMonitor:
    """Watches one order to completion."""

    def __init__(
        self,
        venue: Venue,
        poll_interval: float = 2.0,
        timeout: float = 300.0,
        error_backoff: float = 5.0,
        clock: Optional[Clock] = None,
        events: Optional[EventStream] = None,
        final_check: bool = True,
    ):
        self.venue = venue
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.error_backoff = error_backoff
        self.clock = clock or SystemClock()
        self.events = events or default_event_stream()
        self.final_check = final_check

    async def watch(self, order_hash: str, secret_set: Optional[SecretSet] = None) -> MonitorResult:
        """Poll until terminal status or timeout.

        Args:
            order_hash: The order's only handle
            secret_set: Secrets to reveal for a cross-chain order

        Returns:
            MonitorResult; a timeout is ``MonitorOutcome.TIMED_OUT``, not an error
        """
        run = _Run(
            order_hash=order_hash,
            secret_set=secret_set,
            ledger=SecretReleaseLedger(len(secret_set)) if secret_set else None,
            escrow_phase=EscrowPhase.ESCROW_PENDING if secret_set else None,
        )
        start = self.clock.now()
        deadline = start + self.timeout
        outcome: Optional[MonitorOutcome] = None

        logger.info(f"Monitoring order {order_hash} status...")

        while outcome is None:
            remaining = deadline - self.clock.now()
            if remaining <= 0:
                logger.info("Timeout reached, stopping monitoring")
                outcome = MonitorOutcome.TIMED_OUT
                break

            await self.clock.sleep(min(self.poll_interval, remaining))

            try:
                report = await self._poll_once(run)
            except VenueError as e:
                run.poll_errors += 1
                backoff = min(self.error_backoff, max(deadline - self.clock.now(), 0.0))
                self.events.publish(PollFailed(order_hash, e, backoff))
                await self.clock.sleep(backoff)
                continue

            self._observe(run, report.status)
            if report.status.is_terminal:
                outcome = MonitorOutcome.for_status(report.status)

        elapsed = self.clock.now() - start

        if run.escrow_phase is not None and run.last_status in _FINAL_ESCROW_PHASE:
            self._set_escrow_phase(run, _FINAL_ESCROW_PHASE[run.last_status])

        final_report = await self._final_status_check(order_hash) if self.final_check else None

        self.events.publish(MonitorFinished(order_hash, outcome, run.last_status, elapsed))
        return MonitorResult(
            order_hash=order_hash,
            outcome=outcome,
            final_status=run.last_status,
            elapsed_seconds=elapsed,
            transitions=list(run.transitions),
            polls=run.polls,
            poll_errors=run.poll_errors,
            escrow_phase=run.escrow_phase,
            released_indices=run.ledger.released_indices if run.ledger else [],
            final_check=final_report,
        )

    async def _poll_once(self, run: _Run) -> OrderStatusReport:
        if run.ledger is not None:
            await self._release_ready_secrets(run)
        run.polls += 1
        return await self.venue.get_order_status(run.order_hash)

    async def _release_ready_secrets(self, run: _Run) -> None:
        fills = await self.venue.get_ready_secret_fills(run.order_hash)
        if fills and run.escrow_phase == EscrowPhase.ESCROW_PENDING:
            self._set_escrow_phase(run, EscrowPhase.SECRETS_READY)

        for fill in fills:
            idx = fill.idx
            if not run.ledger.has_index(idx):
                if idx not in run.skipped_indices:
                    run.skipped_indices.add(idx)
                    self.events.publish(SecretSkipped(run.order_hash, idx))
                continue
            if run.ledger.is_released(idx):
                continue

            await self.venue.submit_secret(run.order_hash, run.secret_set.secret_hex(idx))
            run.ledger.mark_released(idx)
            self.events.publish(SecretReleased(run.order_hash, idx))
            if run.escrow_phase == EscrowPhase.SECRETS_READY:
                self._set_escrow_phase(run, EscrowPhase.SECRETS_RELEASED)

    def _observe(self, run: _Run, status: OrderStatus) -> None:
        if status != run.last_status:
            run.transitions.append((run.last_status, status))
            self.events.publish(StatusChanged(run.order_hash, run.last_status, status))
        run.last_status = status

    def _set_escrow_phase(self, run: _Run, phase: EscrowPhase) -> None:
        if phase != run.escrow_phase:
            self.events.publish(EscrowPhaseChanged(run.order_hash, run.escrow_phase, phase))
            run.escrow_phase = phase

    async def _final_status_check(self, order_hash: str) -> Optional[OrderStatusReport]:
        """One out-of-band status read after the loop. Failure only gets logged."""
        try:
            report = await self.venue.get_order_status(order_hash)
        except VenueError as e:
            logger.error(f"HTTP status check failed: {e}")
            return None
        logger.info(f"Final HTTP Status: {report.status.value}")
        return report
