"""Self-update controller: backup, fetch, replace, verify, restart-in-place."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from vpnctl.errors import ArtifactWriteFailure, NetworkUnavailable
from vpnctl.selfupdate.version import (
    RemoteScriptSource,
    VersionStatus,
    extract_version,
    fetch_remote_version,
    is_up_to_date,
    read_local_version,
)

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class UpdateOutcome(StrEnum):
    UP_TO_DATE = "up_to_date"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Restart:
    """Re-invoke the updated artifact with the original arguments."""

    executable: Path
    argv: tuple[str, ...]

    def exec_args(self) -> list[str]:
        return [str(self.executable), *self.argv]


@dataclass(slots=True)
class UpdateReport:
    outcome: UpdateOutcome
    local_version: str
    remote_version: str = ""
    detail: str = ""
    restart: Restart | None = field(default=None)


class SelfUpdateController:
    def __init__(
        self,
        script_path: Path,
        source: RemoteScriptSource,
        *,
        local_version: str,
        backup_suffix: str = ".bak",
        argv: tuple[str, ...] | list[str] = (),
    ) -> None:
        self.script_path = script_path
        self.source = source
        self.local_version = local_version
        self.backup_suffix = backup_suffix
        self.argv = tuple(argv)

    @property
    def backup_path(self) -> Path:
        return self.script_path.with_name(self.script_path.name + self.backup_suffix)

    def check_and_update(self) -> UpdateReport:
        remote = fetch_remote_version(self.source)
        status = is_up_to_date(self.local_version, remote)
        logger.info(
            "version check local=%s remote=%s status=%s",
            self.local_version,
            remote or "-",
            status,
        )
        if status is VersionStatus.UNKNOWN:
            logger.warning("could not fetch remote version; skipping update check")
            return UpdateReport(
                outcome=UpdateOutcome.SKIPPED,
                local_version=self.local_version,
                detail="could not fetch remote version",
            )
        if status is VersionStatus.UP_TO_DATE:
            return UpdateReport(
                outcome=UpdateOutcome.UP_TO_DATE,
                local_version=self.local_version,
                remote_version=remote,
            )
        logger.info("newer version available: %s -> %s", self.local_version, remote)
        report = self.perform_update(restart=True)
        if not report.remote_version:
            report.remote_version = remote
        return report

    def perform_update(self, *, restart: bool = False) -> UpdateReport:
        """Replace the canonical artifact with the remote script bytes.

        The backup is taken before anything destructive happens and is gone by
        the time this returns, whether the update succeeded or was rolled back.
        An artifact without a version declaration (for example a console-script
        wrapper) is never a managed script and is left alone.
        Raises ArtifactWriteFailure only when the rollback itself fails.
        """
        if not read_local_version(self.script_path):
            logger.warning("%s has no version declaration; not replacing it", self.script_path)
            return self._failed(f"refusing to replace {self.script_path}: no version declaration")

        backup = self.backup_path
        try:
            shutil.copy2(self.script_path, backup)
        except OSError as exc:
            logger.error("backup of %s failed: %s", self.script_path, exc)
            backup.unlink(missing_ok=True)
            return self._failed(f"backup failed: {exc}")

        tmp_path: Path | None = None
        try:
            payload = self.source.fetch_bytes()
            if not payload.strip():
                raise NetworkUnavailable(f"empty script body from {self.source.url}")
            tmp_path = self._write_temp(payload)
            mode = self.script_path.stat().st_mode
            os.chmod(tmp_path, stat.S_IMODE(mode) | _EXEC_BITS)
            os.replace(tmp_path, self.script_path)
            tmp_path = None
        except (NetworkUnavailable, OSError) as exc:
            logger.error("update failed, restoring backup: %s", exc)
            self._roll_back(backup, tmp_path)
            return self._failed(f"update failed: {exc}")
        except Exception:
            logger.exception("unexpected error during update, restoring backup")
            self._roll_back(backup, tmp_path)
            raise

        backup.unlink(missing_ok=True)
        new_version = extract_version(payload.decode("utf-8", errors="replace"))
        logger.info("script updated at %s version=%s", self.script_path, new_version or "-")
        return UpdateReport(
            outcome=UpdateOutcome.UPDATED,
            local_version=self.local_version,
            remote_version=new_version,
            detail="script updated",
            restart=Restart(self.script_path, self.argv) if restart else None,
        )

    def _write_temp(self, payload: bytes) -> Path:
        fd, name = tempfile.mkstemp(
            prefix=f".{self.script_path.name}.",
            suffix=".tmp",
            dir=self.script_path.parent,
        )
        tmp_path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        return tmp_path

    def _roll_back(self, backup: Path, tmp_path: Path | None) -> None:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        self._restore(backup)

    def _restore(self, backup: Path) -> None:
        try:
            os.replace(backup, self.script_path)
        except OSError as exc:
            raise ArtifactWriteFailure(
                f"could not restore {self.script_path} from {backup}: {exc}"
            ) from exc

    def _failed(self, detail: str) -> UpdateReport:
        return UpdateReport(
            outcome=UpdateOutcome.FAILED,
            local_version=self.local_version,
            detail=detail,
        )
