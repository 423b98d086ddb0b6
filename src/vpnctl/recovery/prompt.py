"""Single-pass, confirmation-gated troubleshooting."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from vpnctl.collaborator import ActionResult
from vpnctl.recovery.actions import RemediationAction, run_actions

logger = logging.getLogger(__name__)

TROUBLESHOOT_QUESTION = "Connection failed. Run troubleshooting steps now? [y/n]"
MANUAL_ALTERNATIVE = (
    "Skipped troubleshooting. Try 'vpnctl bruteforce' for automatic retries, "
    "or run 'vpnctl reset' and connect manually."
)


class PromptResponse(StrEnum):
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str) -> PromptResponse:
        return _ANSWERS.get(raw.strip().lower(), cls.UNKNOWN)


_ANSWERS = {
    "y": PromptResponse.YES,
    "yes": PromptResponse.YES,
    "n": PromptResponse.NO,
    "no": PromptResponse.NO,
}


@dataclass(slots=True)
class TroubleshootResult:
    response: PromptResponse
    action_results: list[ActionResult] = field(default_factory=list)
    suggestion: str = ""


def troubleshoot_prompt(
    actions: Sequence[RemediationAction],
    ask: Callable[[str], str],
) -> TroubleshootResult:
    response = PromptResponse.parse(ask(TROUBLESHOOT_QUESTION))
    if response is PromptResponse.YES:
        logger.info("troubleshooting confirmed; running %s step(s)", len(actions))
        return TroubleshootResult(response=response, action_results=run_actions(actions))
    # NO and UNKNOWN both decline.
    logger.info("troubleshooting declined (response=%s)", response)
    return TroubleshootResult(response=response, suggestion=MANUAL_ALTERNATIVE)
