"""Bounded-retry recovery loop with a wall-clock deadline."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from vpnctl.collaborator import ActionResult, StatusReport, VpnCollaborator
from vpnctl.ids import new_id
from vpnctl.logging import log_context
from vpnctl.recovery.actions import RemediationAction, run_actions

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 30.0
DEFAULT_DELAY_SECONDS = 5.0


class RecoveryState(StrEnum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class RecoveryOutcome(StrEnum):
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(slots=True)
class RecoverySession:
    session_id: str
    started_at: float
    deadline: float
    state: RecoveryState = RecoveryState.IDLE
    attempts: int = 0
    succeeded: bool = False

    @classmethod
    def start(cls, duration: float, clock: Callable[[], float]) -> RecoverySession:
        now = clock()
        return cls(session_id=new_id("rcv"), started_at=now, deadline=now + duration)

    def expired(self, now: float) -> bool:
        return now >= self.deadline


@dataclass(slots=True)
class RecoveryReport:
    outcome: RecoveryOutcome
    attempts: int
    action_results: list[list[ActionResult]] = field(default_factory=list)
    status: StatusReport | None = None


def run_bounded_recovery(
    collaborator: VpnCollaborator,
    actions: Sequence[RemediationAction],
    *,
    duration: float = DEFAULT_DURATION_SECONDS,
    delay: float = DEFAULT_DELAY_SECONDS,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> RecoveryReport:
    """Apply remediation and reconnect until success or the deadline passes.

    The deadline is only consulted between iterations: an iteration that is
    already running always finishes, so a zero duration still makes exactly
    one attempt.
    """
    session = RecoverySession.start(duration, clock)
    with log_context(recovery_session=session.session_id):
        return _recover(session, collaborator, actions, delay=delay, clock=clock, sleep=sleep)


def _recover(
    session: RecoverySession,
    collaborator: VpnCollaborator,
    actions: Sequence[RemediationAction],
    *,
    delay: float,
    clock: Callable[[], float],
    sleep: Callable[[float], None],
) -> RecoveryReport:
    report = RecoveryReport(outcome=RecoveryOutcome.EXHAUSTED, attempts=0)
    logger.info(
        "bounded recovery started deadline_in=%.1fs delay=%ss",
        session.deadline - session.started_at,
        delay,
    )

    while True:
        session.state = RecoveryState.ATTEMPTING
        session.attempts += 1
        report.attempts = session.attempts
        logger.info("recovery attempt %s", session.attempts)

        report.action_results.append(run_actions(actions))

        if collaborator.connect():
            session.state = RecoveryState.SUCCEEDED
            session.succeeded = True
            report.outcome = RecoveryOutcome.SUCCEEDED
            report.status = collaborator.status_report()
            logger.info("recovery succeeded after %s attempt(s)", session.attempts)
            return report

        if session.expired(clock()):
            session.state = RecoveryState.EXHAUSTED
            logger.warning(
                "recovery deadline reached after %s attempt(s) without a connection",
                session.attempts,
            )
            return report

        logger.info("reconnect failed; retrying in %ss", delay)
        sleep(delay)
