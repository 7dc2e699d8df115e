import math

from dnssecstats.checks.dnssec import DomainEntry, ProbeResult, probe_domain
from dnssecstats.core.resolver import ResolverClient
from dnssecstats.core.results import ResultSet, progress_line

RRSIG_LINE = "example.com. 3600 IN RRSIG A 8 2 3600 20300101000000 20300001000000 12345 example.com. AbCd==\n"


class StaticResolver:
    name = "static"

    def __init__(self, text):
        self.text = text

    def check(self):
        pass

    def resolve(self, domain):
        return self.text


def _probe(text, entry=DomainEntry(rank=1, domain="example.com")):
    return probe_domain(entry, ResolverClient(StaticResolver(text), sleep=lambda s: None))


def test_supported_fields_are_coerced():
    r = _probe(RRSIG_LINE)
    assert r.supported
    assert r.record_type == "A"
    assert (r.algorithm, r.labels, r.original_ttl) == (8, 2, 3600)
    assert (r.expiration, r.inception, r.key_tag) == (20300101000000, 20300001000000, 12345)
    assert r.signer == "example.com."


def test_unsupported_uses_sentinels():
    r = _probe("example.com. 3600 IN A 192.0.2.1\n")
    assert not r.supported
    assert (r.algorithm, r.labels, r.original_ttl, r.expiration, r.inception, r.key_tag) == (0, 0, 0, 0, 0, 0)
    assert r.record_type == "nil"
    assert r.signer == "nil"


def test_row_format():
    r = _probe(RRSIG_LINE)
    assert r.to_row() == [
        "1",
        "example.com",
        "true",
        "A",
        "8",
        "2",
        "3600",
        "20300101000000",
        "20300001000000",
        "12345",
        "example.com.",
    ]
    assert ProbeResult.unsupported(DomainEntry(2, "x.example")).to_row()[2:4] == ["false", "nil"]


def test_statistics():
    records = [
        ProbeResult(rank=1, domain="a", supported=True),
        ProbeResult(rank=2, domain="b", supported=False),
        ProbeResult(rank=3, domain="c", supported=False),
    ]
    rs = ResultSet(records=records)
    assert rs.total == 3
    assert rs.supported_count == 1
    assert math.isclose(rs.support_rate_percent, 100 / 3)
    assert rs.summary_line().startswith("Total: 3, supported: 1 (33.33")
    assert rs.summary_line().endswith("%)")


def test_zero_domains():
    rs = ResultSet()
    assert rs.support_rate_percent == 0.0
    assert rs.summary_line() == "Total: 0, supported: 0 (0.0%)"


def test_progress_line():
    line = progress_line(7, _probe(RRSIG_LINE))
    assert line.startswith("Processed domain #7 example.com, DNSSEC: true")
    assert "KeyTag: 12345" in line
