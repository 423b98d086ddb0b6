"""Application configuration contract."""

import logging
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vpnctl.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_URL = "https://raw.githubusercontent.com/we6jbo/VPNFix/main/vpn_controller.sh"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    # Self-update
    remote_url: str = Field(alias="VPNCTL_REMOTE_URL", default=DEFAULT_REMOTE_URL)
    script_path: str = Field(alias="VPNCTL_SCRIPT_PATH", default="")
    local_version: str = Field(alias="VPNCTL_LOCAL_VERSION", default="")
    backup_suffix: str = Field(alias="VPNCTL_BACKUP_SUFFIX", default=".bak")
    http_timeout_seconds: float = Field(alias="VPNCTL_HTTP_TIMEOUT_SECONDS", default=10.0)

    # Status and diagnosis
    ipecho_url: str = Field(alias="VPNCTL_IPECHO_URL", default="https://ifconfig.me")
    report_path: str = Field(alias="VPNCTL_REPORT_PATH", default="diagnosis_report.csv")

    # Bounded recovery
    recovery_duration_seconds: float = Field(
        alias="VPNCTL_RECOVERY_DURATION_SECONDS", default=30.0
    )
    recovery_delay_seconds: float = Field(alias="VPNCTL_RECOVERY_DELAY_SECONDS", default=5.0)

    # Collaborator commands
    command_timeout_seconds: int = Field(alias="VPNCTL_COMMAND_TIMEOUT_SECONDS", default=60)
    vpn_binary: str = Field(alias="VPNCTL_VPN_BINARY", default="nordvpn")
    vpn_service: str = Field(alias="VPNCTL_VPN_SERVICE", default="nordvpn")
    network_service: str = Field(alias="VPNCTL_NETWORK_SERVICE", default="NetworkManager")
    probe_host: str = Field(alias="VPNCTL_PROBE_HOST", default="8.8.8.8")
    log_tail_lines: int = Field(alias="VPNCTL_LOG_TAIL_LINES", default=20)


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def validate_settings(settings: Settings) -> None:
    problems: list[str] = []
    for key, value in {
        "VPNCTL_REMOTE_URL": settings.remote_url,
        "VPNCTL_IPECHO_URL": settings.ipecho_url,
    }.items():
        if not _is_http_url(value):
            problems.append(f"{key}(http or https URL required)")

    if settings.recovery_duration_seconds < 0:
        problems.append("VPNCTL_RECOVERY_DURATION_SECONDS(must be >= 0)")
    if settings.recovery_delay_seconds < 0:
        problems.append("VPNCTL_RECOVERY_DELAY_SECONDS(must be >= 0)")
    if settings.http_timeout_seconds <= 0:
        problems.append("VPNCTL_HTTP_TIMEOUT_SECONDS(must be > 0)")
    if settings.command_timeout_seconds <= 0:
        problems.append("VPNCTL_COMMAND_TIMEOUT_SECONDS(must be > 0)")
    if not settings.backup_suffix.strip():
        problems.append("VPNCTL_BACKUP_SUFFIX(must be non-empty)")
    if not settings.report_path.strip():
        problems.append("VPNCTL_REPORT_PATH(must be non-empty)")

    script_path = settings.script_path
    if settings.app_env == "prod" and script_path and not Path(script_path).is_absolute():
        problems.append("VPNCTL_SCRIPT_PATH(absolute path required)")

    if problems:
        keys = ", ".join(sorted(set(problems)))
        logger.error("invalid configuration: %s", keys)
        raise ConfigError(f"invalid configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
