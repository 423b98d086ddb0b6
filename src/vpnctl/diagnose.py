"""Randomized issue sampler that writes a one-row diagnosis report.

This is a placeholder, not a classifier: the issue is picked uniformly from a
static catalog and the confidence is an independent uniform draw.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from vpnctl.errors import ReportWriteFailure

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 10
MAX_CONFIDENCE = 90

ISSUE_CATALOG: tuple[str, ...] = (
    "DNS resolution failing inside the VPN tunnel",
    "Firewall rules blocking VPN traffic",
    "VPN service daemon not running",
    "Expired or invalid VPN login session",
    "Default route missing or pointing outside the tunnel",
    "Network management service in a degraded state",
    "VPN server overloaded or unreachable",
    "Local network interface down",
)


class RandomSource(Protocol):
    def choice(self, seq: tuple[str, ...]) -> str: ...

    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True, slots=True)
class DiagnosisRecord:
    confidence: int
    issue: str

    def to_row(self) -> str:
        return f'{self.confidence}%,"{self.issue}"'


def sample_diagnosis(rng: RandomSource) -> DiagnosisRecord:
    issue = rng.choice(ISSUE_CATALOG)
    confidence = rng.randint(MIN_CONFIDENCE, MAX_CONFIDENCE)
    return DiagnosisRecord(confidence=confidence, issue=issue)


def write_report(record: DiagnosisRecord, report_path: Path) -> Path:
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(record.to_row() + "\n")
    except OSError as exc:
        raise ReportWriteFailure(f"could not write diagnosis report {report_path}: {exc}") from exc
    return report_path


def diagnose(report_path: Path, rng: RandomSource | None = None) -> DiagnosisRecord:
    record = sample_diagnosis(rng or random.Random())
    write_report(record, report_path)
    logger.info(
        "diagnosis written to %s confidence=%s issue=%s",
        report_path,
        record.confidence,
        record.issue,
    )
    return record
