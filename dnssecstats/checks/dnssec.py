from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple

from ..core.resolver import ResolverClient
from ..core.utils import to_int

NIL = "nil"

# A single DNS label; IDNA "xn--" labels match too.
_LABEL = r"[a-z0-9_](?:[a-z0-9_-]*[a-z0-9_])?"
_TLD = r"(?:xn--[a-z0-9-]+|[a-z]{2,})"

RRSIG_RE = re.compile(
    rf"""
    ^(?P<owner>(?:{_LABEL}\.)+{_TLD}\.)\s+
    (?P<ttl>\d+)\s+
    IN\s+RRSIG\s+
    (?P<type_covered>\w+)\s+
    (?P<algorithm>\d+)\s+
    (?P<labels>\d+)\s+
    (?P<original_ttl>\d+)\s+
    (?P<expiration>\d+)\s+
    (?P<inception>\d+)\s+
    (?P<key_tag>\d+)\s+
    (?P<signer>(?:{_LABEL}\.)*{_TLD}\.)\s+
    """,
    re.MULTILINE | re.IGNORECASE | re.VERBOSE | re.ASCII,
)

RRSIG_FIELDS = (
    "type_covered",
    "algorithm",
    "labels",
    "original_ttl",
    "expiration",
    "inception",
    "key_tag",
    "signer",
)


@dataclass(frozen=True)
class DomainEntry:
    rank: int
    domain: str


@dataclass(frozen=True)
class ProbeResult:
    rank: int
    domain: str
    supported: bool
    record_type: str = NIL
    algorithm: int = 0
    labels: int = 0
    original_ttl: int = 0
    expiration: int = 0
    inception: int = 0
    key_tag: int = 0
    signer: str = NIL

    @classmethod
    def unsupported(cls, entry: DomainEntry) -> "ProbeResult":
        return cls(rank=entry.rank, domain=entry.domain, supported=False)

    def to_row(self) -> List[str]:
        return [
            str(self.rank),
            self.domain,
            "true" if self.supported else "false",
            self.record_type,
            str(self.algorithm),
            str(self.labels),
            str(self.original_ttl),
            str(self.expiration),
            str(self.inception),
            str(self.key_tag),
            self.signer,
        ]


def parse_rrsig(text: str) -> Tuple[bool, List[str]]:
    """Find the first RRSIG record in zone-format answer text.

    Returns (True, [type_covered, algorithm, labels, original_ttl, expiration,
    inception, key_tag, signer]) for the first matching line, or (False, [])
    when no line has the RRSIG shape. Signatures are not verified.
    """
    if not text:
        return False, []
    m = RRSIG_RE.search(text)
    if m is None:
        return False, []
    return True, [m.group(name) for name in RRSIG_FIELDS]


def probe_domain(entry: DomainEntry, client: ResolverClient) -> ProbeResult:
    ans = client.query(entry.domain)
    found, fields = parse_rrsig(ans.text)
    if not found:
        return ProbeResult.unsupported(entry)

    values = dict(zip(RRSIG_FIELDS, fields))
    # Non-numeric text leaves the field at 0 rather than failing the probe.
    numbers = {
        name: to_int(values[name]) or 0
        for name in ("algorithm", "labels", "original_ttl", "expiration", "inception", "key_tag")
    }

    return ProbeResult(
        rank=entry.rank,
        domain=entry.domain,
        supported=True,
        record_type=values["type_covered"],
        signer=values["signer"],
        **numbers,
    )
