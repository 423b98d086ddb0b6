"""Thin command layer over the VPN client, firewall tools, and service manager."""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import httpx

from vpnctl.config import Settings, get_settings
from vpnctl.errors import NetworkUnavailable

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 60


@dataclass(slots=True)
class CommandResult:
    command: str
    exit_code: int
    ok: bool
    stdout: str
    stderr: str
    duration_ms: int


@dataclass(slots=True)
class ActionResult:
    name: str
    ok: bool
    detail: str = ""


@dataclass(slots=True)
class StatusReport:
    address: str
    routes: str
    vpn_status: str

    def lines(self) -> list[str]:
        return [
            f"Public address: {self.address or 'unavailable'}",
            "Routes:",
            *(f"  {line}" for line in self.routes.splitlines()),
            "VPN status:",
            *(f"  {line}" for line in self.vpn_status.splitlines()),
        ]


Runner = Callable[[Sequence[str]], CommandResult]


def run_command(argv: Sequence[str], timeout: int = _DEFAULT_TIMEOUT_SECONDS) -> CommandResult:
    command = " ".join(argv)
    started = time.monotonic()
    try:
        proc = subprocess.run(
            list(argv),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        return CommandResult(
            command=command,
            exit_code=127,
            ok=False,
            stdout="",
            stderr=str(exc),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            command=command,
            exit_code=124,
            ok=False,
            stdout="",
            stderr=f"timed out after {timeout}s",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except OSError as exc:
        # Binary exists but cannot be executed (EACCES, ENOEXEC).
        return CommandResult(
            command=command,
            exit_code=126,
            ok=False,
            stdout="",
            stderr=str(exc),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    return CommandResult(
        command=command,
        exit_code=proc.returncode,
        ok=proc.returncode == 0,
        stdout=proc.stdout,
        stderr=proc.stderr,
        duration_ms=int((time.monotonic() - started) * 1000),
    )


class VpnCollaborator:
    """Opaque boolean-outcome capabilities of the host and VPN client."""

    def __init__(
        self,
        runner: Runner | None = None,
        settings: Settings | None = None,
        *,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._runner = runner or self._default_runner
        self._http_transport = http_transport

    def _default_runner(self, argv: Sequence[str]) -> CommandResult:
        return run_command(argv, timeout=self.settings.command_timeout_seconds)

    def _run(self, *argv: str) -> CommandResult:
        result = self._runner(argv)
        if result.ok:
            logger.debug("command ok: %s (%sms)", result.command, result.duration_ms)
        else:
            logger.warning(
                "command failed: %s exit=%s stderr=%s",
                result.command,
                result.exit_code,
                result.stderr.strip()[:200],
            )
        return result

    def _vpn(self, *args: str) -> CommandResult:
        return self._run(self.settings.vpn_binary, *args)

    # --- System services and firewall ---

    def restart_network_manager(self) -> bool:
        return self._run("systemctl", "restart", self.settings.network_service).ok

    def flush_iptables(self) -> bool:
        return self._run("iptables", "-F").ok

    def flush_nftables(self) -> bool:
        return self._run("nft", "flush", "ruleset").ok

    def unmask_vpn_service(self) -> bool:
        return self._run("systemctl", "unmask", self.settings.vpn_service).ok

    def stop_vpn_service(self) -> bool:
        return self._run("systemctl", "stop", self.settings.vpn_service).ok

    def restart_vpn_service(self) -> bool:
        return self._run("systemctl", "restart", self.settings.vpn_service).ok

    def delete_default_route(self) -> bool:
        return self._run("ip", "route", "del", "default").ok

    def service_log_tail(self) -> str:
        result = self._run(
            "journalctl",
            "-u",
            self.settings.vpn_service,
            "-n",
            str(self.settings.log_tail_lines),
            "--no-pager",
        )
        return result.stdout if result.ok else ""

    def ping_probe(self) -> bool:
        return self._run("ping", "-c", "3", self.settings.probe_host).ok

    def routes(self) -> str:
        return self._run("ip", "route").stdout

    # --- VPN client ---

    def login(self) -> bool:
        return self._vpn("login").ok

    def logout(self) -> bool:
        return self._vpn("logout").ok

    def connect(self) -> bool:
        return self._vpn("connect").ok

    def disconnect(self) -> bool:
        return self._vpn("disconnect").ok

    def status(self) -> str:
        return self._vpn("status").stdout

    # --- Network ---

    def public_ip(self) -> str:
        try:
            with httpx.Client(
                transport=self._http_transport,
                timeout=self.settings.http_timeout_seconds,
                follow_redirects=True,
            ) as client:
                response = client.get(self.settings.ipecho_url)
                response.raise_for_status()
                return response.text.strip()
        except httpx.HTTPError as exc:
            raise NetworkUnavailable(f"ip echo failed: {exc}") from exc

    def status_report(self) -> StatusReport:
        try:
            address = self.public_ip()
        except NetworkUnavailable as exc:
            logger.warning("public address lookup failed: %s", exc)
            address = ""
        return StatusReport(address=address, routes=self.routes(), vpn_status=self.status())

    def reset_network(self) -> list[ActionResult]:
        """Drop firewall rules, stop the VPN service, and remove the default route."""
        steps: tuple[tuple[str, Callable[[], bool], str], ...] = (
            ("flush-iptables", self.flush_iptables, "iptables flush failed"),
            ("flush-nftables", self.flush_nftables, "nft flush failed"),
            (
                "unmask-vpn-service",
                self.unmask_vpn_service,
                "VPN service was not masked or unmasking failed",
            ),
            ("stop-vpn-service", self.stop_vpn_service, "VPN service not running"),
            ("delete-default-route", self.delete_default_route, "default route not found"),
        )
        results: list[ActionResult] = []
        for name, step, failure_detail in steps:
            ok = step()
            results.append(ActionResult(name=name, ok=ok, detail="" if ok else failure_detail))
        return results
