"""Click CLI group: reset, connect, bruteforce, diagnose, update, and check-update."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

import click

from vpnctl import __version__
from vpnctl.collaborator import ActionResult, StatusReport, VpnCollaborator
from vpnctl.config import Settings, get_settings, validate_settings
from vpnctl.diagnose import diagnose as run_diagnosis
from vpnctl.errors import ArtifactWriteFailure, ConfigError
from vpnctl.logging import configure_logging
from vpnctl.recovery import (
    RecoveryOutcome,
    build_remediation_actions,
    run_bounded_recovery,
    troubleshoot_prompt,
)
from vpnctl.selfupdate.controller import SelfUpdateController, UpdateOutcome, UpdateReport
from vpnctl.selfupdate.version import RemoteScriptSource, read_local_version

logger = logging.getLogger(__name__)

_ARGV_KEY = "vpnctl.argv"


class Command(StrEnum):
    RESET = "reset"
    CONNECT = "connect"
    BRUTEFORCE = "bruteforce"
    DIAGNOSE = "diagnose"
    UPDATE = "update"
    CHECK_UPDATE = "check-update"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, name: str) -> Command:
        for member in cls:
            if member is not cls.UNKNOWN and member.value == name:
                return member
        return cls.UNKNOWN


USAGE = "Usage: vpnctl {" + "|".join(c.value for c in Command if c is not Command.UNKNOWN) + "}"


@dataclass(slots=True)
class AppContext:
    settings: Settings
    controller: SelfUpdateController
    collaborator: VpnCollaborator


def resolve_script_path(settings: Settings) -> Path:
    raw = settings.script_path or sys.argv[0]
    return Path(raw).expanduser().resolve()


def build_app_context(settings: Settings, argv: tuple[str, ...]) -> AppContext:
    script_path = resolve_script_path(settings)
    local_version = (
        settings.local_version or read_local_version(script_path) or __version__
    )
    source = RemoteScriptSource(settings.remote_url, timeout=settings.http_timeout_seconds)
    controller = SelfUpdateController(
        script_path,
        source,
        local_version=local_version,
        backup_suffix=settings.backup_suffix,
        argv=argv,
    )
    return AppContext(
        settings=settings,
        controller=controller,
        collaborator=VpnCollaborator(settings=settings),
    )


class ControllerGroup(click.Group):
    """Group that keeps the raw argv and answers unknown commands with usage."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta[_ARGV_KEY] = tuple(args)
        return super().parse_args(ctx, args)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        if args and Command.parse(args[0]) is Command.UNKNOWN:
            click.echo(USAGE)
            ctx.exit(0)
        return super().resolve_command(ctx, args)


def _echo_warnings(results: list[ActionResult]) -> None:
    for result in results:
        if not result.ok:
            click.echo(f"warning: {result.name}: {result.detail or 'failed'}")


def _echo_status(status: StatusReport) -> None:
    click.echo("VPN status:")
    for line in status.lines():
        click.echo(f"  {line}")


def _echo_update_report(report: UpdateReport) -> None:
    click.echo(f"Local version: {report.local_version}")
    if report.remote_version:
        click.echo(f"Remote version: {report.remote_version}")
    if report.outcome is UpdateOutcome.SKIPPED:
        click.echo("Could not fetch remote version. Skipping update check.")
    elif report.outcome is UpdateOutcome.UP_TO_DATE:
        click.echo("You are up-to-date!")
    elif report.outcome is UpdateOutcome.UPDATED:
        click.echo("Script updated successfully!")
    else:
        click.echo(f"Update failed, previous version kept: {report.detail}")


def _restart(report: UpdateReport) -> None:
    restart = report.restart
    if restart is None:
        return
    click.echo("Restarting with updated script...")
    logger.info("re-executing %s argv=%s", restart.executable, list(restart.argv))
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.execv(restart.executable, restart.exec_args())
    except OSError as exc:
        logger.error("re-exec of %s failed: %s", restart.executable, exc)
        raise click.ClickException(
            f"{restart.executable} was updated but could not be restarted: {exc}. "
            "Run the command again."
        ) from exc


def _self_update(app: AppContext) -> None:
    """Bring the script up to date before a state-changing command runs."""
    try:
        report = app.controller.check_and_update()
    except ArtifactWriteFailure as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_update_report(report)
    _restart(report)


@click.group(cls=ControllerGroup, invoke_without_command=True)
@click.version_option(__version__, prog_name="vpnctl")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """VPN controller with self-update and automatic recovery."""
    if ctx.invoked_subcommand is None:
        click.echo(USAGE)
        return
    if ctx.obj is not None:
        return
    settings = get_settings()
    try:
        validate_settings(settings)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(settings.log_level, app_env=settings.app_env)
    ctx.obj = build_app_context(settings, ctx.meta.get(_ARGV_KEY, ()))


@cli.command(Command.RESET.value)
@click.pass_obj
def reset(app: AppContext) -> None:
    """Reset firewall rules, VPN service, and default route."""
    _self_update(app)
    click.echo("Resetting network to bypass the VPN...")
    _echo_warnings(app.collaborator.reset_network())
    click.echo("Network reset complete.")


@cli.command(Command.CONNECT.value)
@click.pass_obj
def connect(app: AppContext) -> None:
    """Log in and connect; offer troubleshooting when the connection fails."""
    _self_update(app)
    collaborator = app.collaborator
    click.echo("Connecting to VPN...")
    if not collaborator.login():
        click.echo("Already logged in or login error.")
    if collaborator.connect():
        _echo_status(collaborator.status_report())
        return

    click.echo("VPN connection failed.")
    result = troubleshoot_prompt(
        build_remediation_actions(collaborator, include_diagnostics=False),
        lambda question: click.prompt(question, default="n", show_default=False),
    )
    if result.suggestion:
        click.echo(result.suggestion)
        return
    _echo_warnings(result.action_results)
    click.echo("Troubleshooting complete. Run 'vpnctl connect' to try again.")


@cli.command(Command.BRUTEFORCE.value)
@click.option("--duration", type=float, default=None, help="Recovery deadline in seconds.")
@click.option("--delay", type=float, default=None, help="Pause between attempts in seconds.")
@click.pass_context
def bruteforce(ctx: click.Context, duration: float | None, delay: float | None) -> None:
    """Retry remediation and reconnect until connected or the deadline passes."""
    app: AppContext = ctx.obj
    if duration is not None and duration < 0:
        raise click.ClickException("--duration must be >= 0")
    if delay is not None and delay < 0:
        raise click.ClickException("--delay must be >= 0")
    _self_update(app)
    use_duration = app.settings.recovery_duration_seconds if duration is None else duration
    use_delay = app.settings.recovery_delay_seconds if delay is None else delay
    click.echo(f"Starting bounded recovery for up to {use_duration:g}s...")

    report = run_bounded_recovery(
        app.collaborator,
        build_remediation_actions(app.collaborator),
        duration=use_duration,
        delay=use_delay,
    )
    for attempt, results in enumerate(report.action_results, start=1):
        failed = [item for item in results if not item.ok]
        if failed:
            click.echo(f"attempt {attempt}:")
            _echo_warnings(failed)

    if report.outcome is RecoveryOutcome.SUCCEEDED:
        click.echo(f"VPN connected after {report.attempts} attempt(s).")
        if report.status is not None:
            _echo_status(report.status)
        ctx.exit(0)
    click.echo(
        f"Could not establish a VPN connection within {use_duration:g}s "
        f"({report.attempts} attempt(s))."
    )


@cli.command(Command.DIAGNOSE.value)
@click.pass_obj
def diagnose(app: AppContext) -> None:
    """Sample a likely issue and write the diagnosis report."""
    _self_update(app)
    report_path = Path(app.settings.report_path)
    try:
        record = run_diagnosis(report_path)
    except ArtifactWriteFailure as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Diagnosis: {record.issue} ({record.confidence}% confidence)")
    click.echo(f"Report saved to {report_path}")


@cli.command(Command.UPDATE.value)
@click.pass_obj
def update(app: AppContext) -> None:
    """Download and install the remote script without comparing versions."""
    click.echo("Attempting to update script from remote...")
    try:
        report = app.controller.perform_update()
    except ArtifactWriteFailure as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_update_report(report)


@cli.command(Command.CHECK_UPDATE.value)
@click.pass_obj
def check_update(app: AppContext) -> None:
    """Check the remote version and update if it differs."""
    try:
        report = app.controller.check_and_update()
    except ArtifactWriteFailure as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_update_report(report)


def main() -> None:
    cli(prog_name="vpnctl")
