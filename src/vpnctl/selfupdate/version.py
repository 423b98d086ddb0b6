"""Remote version source and version token comparison."""

from __future__ import annotations

import logging
import re
from enum import StrEnum
from pathlib import Path

import httpx

from vpnctl.errors import NetworkUnavailable

logger = logging.getLogger(__name__)

# Shell-style `VERSION="1.0.2"` or Python-style `__version__ = "1.0.2"`.
_VERSION_LINE_RE = re.compile(r"^(?:VERSION|__version__)\s*=\s*(?P<value>\S.*?)\s*$")
_QUOTES = "\"'"


class VersionStatus(StrEnum):
    UP_TO_DATE = "up_to_date"
    OUTDATED = "outdated"
    UNKNOWN = "unknown"


class RemoteScriptSource:
    """HTTP endpoint serving the canonical current script text."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    def _get(self) -> httpx.Response:
        try:
            with httpx.Client(
                transport=self._transport,
                timeout=self.timeout,
                follow_redirects=True,
            ) as client:
                response = client.get(self.url)
                response.raise_for_status()
                return response
        except httpx.HTTPError as exc:
            raise NetworkUnavailable(f"fetch failed for {self.url}: {exc}") from exc

    def fetch_text(self) -> str:
        return self._get().text

    def fetch_bytes(self) -> bytes:
        """Raw script body, written to disk exactly as served."""
        return self._get().content


def extract_version(text: str) -> str:
    for line in text.splitlines():
        match = _VERSION_LINE_RE.match(line)
        if match:
            return match.group("value").strip(_QUOTES)
    return ""


def fetch_remote_version(source: RemoteScriptSource) -> str:
    """Return the remote version token, or "" when it cannot be determined.

    Network failures are downgraded so a flaky connection never blocks the
    command the operator actually asked for.
    """
    try:
        text = source.fetch_text()
    except NetworkUnavailable as exc:
        logger.warning("remote version fetch failed: %s", exc)
        return ""
    version = extract_version(text)
    if not version:
        logger.warning("no version declaration found at %s", source.url)
    return version


def read_local_version(path: Path) -> str:
    try:
        return extract_version(path.read_text(errors="replace"))
    except OSError:
        return ""


def is_up_to_date(local: str, remote: str) -> VersionStatus:
    if not remote:
        return VersionStatus.UNKNOWN
    if remote != local:
        return VersionStatus.OUTDATED
    return VersionStatus.UP_TO_DATE
