from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..checks.dnssec import ProbeResult

CSV_HEADER = [
    "Rank",
    "Domain",
    "DNSSEC",
    "RecordType",
    "Algorithm",
    "Label",
    "TTL",
    "EndTime",
    "StartTime",
    "KeyTag",
    "Signer",
]


@dataclass
class ResultSet:
    """Probe results in input order plus the adoption statistics derived from them."""

    records: List[ProbeResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def supported_count(self) -> int:
        return sum(1 for r in self.records if r.supported)

    @property
    def support_rate_percent(self) -> float:
        if not self.records:
            return 0.0
        return self.supported_count / self.total * 100

    def summary_line(self) -> str:
        return f"Total: {self.total}, supported: {self.supported_count} ({self.support_rate_percent}%)"

    def summary(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "supported": self.supported_count,
            "support_rate_percent": self.support_rate_percent,
        }


def progress_line(n: int, r: ProbeResult) -> str:
    return (
        f"Processed domain #{n} {r.domain}, DNSSEC: {'true' if r.supported else 'false'}, "
        f"RecordType: {r.record_type}, Algorithm: {r.algorithm}, Label: {r.labels}, "
        f"TTL: {r.original_ttl}, EndTime: {r.expiration}, StartTime: {r.inception}, "
        f"KeyTag: {r.key_tag}, Signer: {r.signer}"
    )
