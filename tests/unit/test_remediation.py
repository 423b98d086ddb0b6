from __future__ import annotations

from vpnctl.collaborator import VpnCollaborator
from vpnctl.config import get_settings
from vpnctl.recovery.actions import build_remediation_actions, run_actions
from vpnctl.recovery.prompt import (
    MANUAL_ALTERNATIVE,
    TROUBLESHOOT_QUESTION,
    PromptResponse,
    troubleshoot_prompt,
)

FULL_ORDER = [
    "restart-network-manager",
    "flush-iptables",
    "flush-nftables",
    "unmask-vpn-service",
    "restart-vpn-service",
    "reauthenticate",
    "service-log-tail",
    "connectivity-probe",
]


def test_remediation_order_is_fixed(make_runner) -> None:
    actions = build_remediation_actions(VpnCollaborator(make_runner(), get_settings()))
    assert [action.name for action in actions] == FULL_ORDER


def test_interactive_variant_drops_diagnostic_steps(make_runner) -> None:
    actions = build_remediation_actions(
        VpnCollaborator(make_runner(), get_settings()), include_diagnostics=False
    )
    assert [action.name for action in actions] == FULL_ORDER[:6]


def test_run_actions_issues_commands_in_order(make_runner) -> None:
    runner = make_runner(outputs={"journalctl -u nordvpn -n 20 --no-pager": "ok\n"})
    collaborator = VpnCollaborator(runner, get_settings())

    results = run_actions(build_remediation_actions(collaborator))

    assert runner.calls == [
        "systemctl restart NetworkManager",
        "iptables -F",
        "nft flush ruleset",
        "systemctl unmask nordvpn",
        "systemctl restart nordvpn",
        "nordvpn logout",
        "nordvpn login",
        "journalctl -u nordvpn -n 20 --no-pager",
        "ping -c 3 8.8.8.8",
    ]
    assert all(result.ok for result in results)


def test_failed_steps_do_not_stop_later_steps(make_runner) -> None:
    runner = make_runner(failing={"systemctl restart NetworkManager", "nordvpn logout"})
    collaborator = VpnCollaborator(runner, get_settings())

    results = run_actions(build_remediation_actions(collaborator, include_diagnostics=False))

    assert [r.ok for r in results] == [False, True, True, True, True, True]
    assert runner.calls[-2:] == ["nordvpn logout", "nordvpn login"]


def test_reauthenticate_fails_when_login_fails(make_runner) -> None:
    runner = make_runner(failing={"nordvpn login"})
    collaborator = VpnCollaborator(runner, get_settings())
    actions = {a.name: a for a in build_remediation_actions(collaborator)}
    assert actions["reauthenticate"].run() is False


def test_prompt_response_parse() -> None:
    assert PromptResponse.parse("y") is PromptResponse.YES
    assert PromptResponse.parse(" YES ") is PromptResponse.YES
    assert PromptResponse.parse("n") is PromptResponse.NO
    assert PromptResponse.parse("No") is PromptResponse.NO
    assert PromptResponse.parse("maybe") is PromptResponse.UNKNOWN
    assert PromptResponse.parse("") is PromptResponse.UNKNOWN


def test_troubleshoot_prompt_yes_runs_single_pass(make_runner) -> None:
    runner = make_runner()
    collaborator = VpnCollaborator(runner, get_settings())
    questions: list[str] = []

    def ask(question: str) -> str:
        questions.append(question)
        return "y"

    result = troubleshoot_prompt(
        build_remediation_actions(collaborator, include_diagnostics=False), ask
    )

    assert questions == [TROUBLESHOOT_QUESTION]
    assert result.response is PromptResponse.YES
    assert len(result.action_results) == 6
    assert result.suggestion == ""
    assert "nordvpn connect" not in runner.calls


def test_troubleshoot_prompt_decline_runs_nothing(make_runner) -> None:
    for answer in ("n", "whatever"):
        runner = make_runner()
        collaborator = VpnCollaborator(runner, get_settings())
        result = troubleshoot_prompt(build_remediation_actions(collaborator), lambda _q: answer)
        assert result.action_results == []
        assert result.suggestion == MANUAL_ALTERNATIVE
        assert runner.calls == []
