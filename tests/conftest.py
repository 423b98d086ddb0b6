import os
from collections.abc import Sequence
from pathlib import Path

import pytest

from vpnctl.collaborator import CommandResult
from vpnctl.config import get_settings
from vpnctl.logging import clear_context


@pytest.fixture(autouse=True)
def test_env(tmp_path: Path, monkeypatch):
    script = tmp_path / "bin" / "vpn_controller.sh"
    script.parent.mkdir(parents=True)
    script.write_text('#!/bin/bash\nVERSION="1.0.5"\necho local\n')
    script.chmod(0o755)
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("VPNCTL_SCRIPT_PATH", str(script))
    monkeypatch.setenv("VPNCTL_REMOTE_URL", "https://updates.example.test/vpn_controller.sh")
    monkeypatch.setenv("VPNCTL_IPECHO_URL", "https://ip.example.test")
    monkeypatch.setenv("VPNCTL_REPORT_PATH", str(tmp_path / "reports" / "diagnosis_report.csv"))
    monkeypatch.setenv("VPNCTL_RECOVERY_DURATION_SECONDS", "0")
    monkeypatch.setenv("VPNCTL_RECOVERY_DELAY_SECONDS", "0")
    monkeypatch.delenv("VPNCTL_LOCAL_VERSION", raising=False)
    monkeypatch.delenv("VPNCTL_BACKUP_SUFFIX", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    clear_context()


@pytest.fixture
def script_path() -> Path:
    return Path(os.environ["VPNCTL_SCRIPT_PATH"])


class FakeRunner:
    """Command runner double: records argv strings, fails the configured ones."""

    def __init__(self, failing: set[str] | None = None, outputs: dict[str, str] | None = None):
        self.failing = failing or set()
        self.outputs = outputs or {}
        self.calls: list[str] = []

    def __call__(self, argv: Sequence[str]) -> CommandResult:
        command = " ".join(argv)
        self.calls.append(command)
        ok = command not in self.failing
        return CommandResult(
            command=command,
            exit_code=0 if ok else 1,
            ok=ok,
            stdout=self.outputs.get(command, ""),
            stderr="" if ok else "error",
            duration_ms=1,
        )


@pytest.fixture
def make_runner():
    return FakeRunner
