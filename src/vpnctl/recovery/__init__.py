"""Remediation actions, bounded recovery, and interactive troubleshooting."""

from vpnctl.recovery.actions import RemediationAction, build_remediation_actions, run_actions
from vpnctl.recovery.machine import RecoveryOutcome, RecoveryReport, run_bounded_recovery
from vpnctl.recovery.prompt import PromptResponse, troubleshoot_prompt

__all__ = [
    "RemediationAction",
    "build_remediation_actions",
    "run_actions",
    "RecoveryOutcome",
    "RecoveryReport",
    "run_bounded_recovery",
    "PromptResponse",
    "troubleshoot_prompt",
]
