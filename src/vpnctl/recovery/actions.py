"""Ordered, independent system-repair actions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from vpnctl.collaborator import ActionResult, VpnCollaborator
from vpnctl.errors import CollaboratorCommandFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RemediationAction:
    name: str
    description: str
    run: Callable[[], object]


def _reauthenticate(collaborator: VpnCollaborator) -> bool:
    # Logout failing just means there was no session to drop.
    collaborator.logout()
    return collaborator.login()


def _log_tail(collaborator: VpnCollaborator) -> bool:
    tail = collaborator.service_log_tail()
    for line in tail.splitlines():
        logger.info("service log: %s", line)
    return bool(tail)


def build_remediation_actions(
    collaborator: VpnCollaborator,
    *,
    include_diagnostics: bool = True,
) -> list[RemediationAction]:
    actions = [
        RemediationAction(
            "restart-network-manager",
            "Restarting network management service",
            collaborator.restart_network_manager,
        ),
        RemediationAction("flush-iptables", "Flushing iptables rules", collaborator.flush_iptables),
        RemediationAction(
            "flush-nftables", "Flushing nftables ruleset", collaborator.flush_nftables
        ),
        RemediationAction(
            "unmask-vpn-service", "Unmasking VPN service", collaborator.unmask_vpn_service
        ),
        RemediationAction(
            "restart-vpn-service", "Restarting VPN service", collaborator.restart_vpn_service
        ),
        RemediationAction(
            "reauthenticate",
            "Re-authenticating VPN client",
            lambda: _reauthenticate(collaborator),
        ),
    ]
    if include_diagnostics:
        actions.extend(
            [
                RemediationAction(
                    "service-log-tail",
                    "Showing recent VPN service logs",
                    lambda: _log_tail(collaborator),
                ),
                RemediationAction(
                    "connectivity-probe",
                    "Probing external connectivity",
                    collaborator.ping_probe,
                ),
            ]
        )
    return actions


def run_actions(actions: Sequence[RemediationAction]) -> list[ActionResult]:
    """Run every action in order; a failing action never stops the rest."""
    results: list[ActionResult] = []
    for action in actions:
        logger.info("remediation step: %s", action.description)
        try:
            ok = bool(action.run())
            detail = "" if ok else "reported failure"
        except (CollaboratorCommandFailure, OSError) as exc:
            ok = False
            detail = str(exc)
        if not ok:
            logger.warning("remediation step %s failed: %s", action.name, detail)
        results.append(ActionResult(name=action.name, ok=ok, detail=detail))
    return results
