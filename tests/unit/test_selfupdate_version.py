from pathlib import Path

import httpx
import pytest

from vpnctl.errors import NetworkUnavailable
from vpnctl.selfupdate.version import (
    RemoteScriptSource,
    VersionStatus,
    extract_version,
    fetch_remote_version,
    is_up_to_date,
    read_local_version,
)

URL = "https://updates.example.test/vpn_controller.sh"


def _source(handler) -> RemoteScriptSource:
    return RemoteScriptSource(URL, timeout=1.0, transport=httpx.MockTransport(handler))


def test_extract_version_shell_declaration() -> None:
    text = '#!/bin/bash\n# VERSION="0.0.1" in a comment\nVERSION="1.0.2"\nVERSION="9.9.9"\n'
    assert extract_version(text) == "1.0.2"


def test_extract_version_python_declaration() -> None:
    assert extract_version('"""doc"""\n__version__ = \'2.1.0\'\n') == "2.1.0"


def test_extract_version_missing_returns_empty() -> None:
    assert extract_version("#!/bin/bash\necho hello\n") == ""


def test_extract_version_ignores_indented_or_prefixed_names() -> None:
    assert extract_version('  VERSION="1"\nMY_VERSION="2"\n') == ""


@pytest.mark.parametrize(
    ("local", "remote", "expected"),
    [
        ("1.0.5", "1.0.5", VersionStatus.UP_TO_DATE),
        ("1.0.5", "1.0.6", VersionStatus.OUTDATED),
        ("1.0.6", "1.0.5", VersionStatus.OUTDATED),
        ("1.0.5", "1.0.5 ", VersionStatus.OUTDATED),
        ("1.0", "1.0.5", VersionStatus.OUTDATED),
        ("1.0.5", "", VersionStatus.UNKNOWN),
    ],
)
def test_is_up_to_date(local: str, remote: str, expected: VersionStatus) -> None:
    assert is_up_to_date(local, remote) is expected


def test_is_up_to_date_is_reflexive_and_symmetric() -> None:
    for token in ("1.0.5", "v2", "release-candidate"):
        assert is_up_to_date(token, token) is VersionStatus.UP_TO_DATE
    assert is_up_to_date("a", "b") is is_up_to_date("b", "a")


def test_fetch_remote_version_reads_first_declaration() -> None:
    source = _source(lambda request: httpx.Response(200, text='VERSION="1.0.6"\n'))
    assert fetch_remote_version(source) == "1.0.6"


def test_fetch_remote_version_soft_fails_on_http_error() -> None:
    source = _source(lambda request: httpx.Response(404, text="not found"))
    assert fetch_remote_version(source) == ""


def test_fetch_remote_version_soft_fails_on_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert fetch_remote_version(_source(handler)) == ""


def test_fetch_remote_version_without_declaration() -> None:
    source = _source(lambda request: httpx.Response(200, text="echo nothing here\n"))
    assert fetch_remote_version(source) == ""


def test_fetch_text_raises_network_unavailable() -> None:
    source = _source(lambda request: httpx.Response(503))
    with pytest.raises(NetworkUnavailable) as exc_info:
        source.fetch_text()
    assert exc_info.value.retryable is True


def test_read_local_version(tmp_path: Path) -> None:
    path = tmp_path / "script.sh"
    path.write_text('VERSION="1.0.5"\n')
    assert read_local_version(path) == "1.0.5"
    assert read_local_version(tmp_path / "missing.sh") == ""
