import random
import threading
import time

import pytest

from dnssecstats.checks.dnssec import DomainEntry, ProbeResult
from dnssecstats.core.pool import ProbePool
from dnssecstats.core.resolver import ResolverUnavailable


def _entries(n):
    return [DomainEntry(rank=10 * (i + 1), domain=f"d{i}.example") for i in range(n)]


def _supported(entry):
    return ProbeResult(rank=entry.rank, domain=entry.domain, supported=True, record_type="A", algorithm=8)


def test_order_is_restored():
    def probe(entry):
        time.sleep(random.uniform(0, 0.01))
        return _supported(entry)

    entries = _entries(50)
    results = ProbePool(probe, workers=8).run(entries)
    assert results.total == 50
    assert [(r.rank, r.domain) for r in results.records] == [(e.rank, e.domain) for e in entries]


def test_concurrency_is_bounded():
    lock = threading.Lock()
    state = {"in_flight": 0, "peak": 0}

    def probe(entry):
        with lock:
            state["in_flight"] += 1
            state["peak"] = max(state["peak"], state["in_flight"])
        time.sleep(0.005)
        with lock:
            state["in_flight"] -= 1
        return ProbeResult.unsupported(entry)

    ProbePool(probe, workers=4).run(_entries(40))
    assert 1 <= state["peak"] <= 4
    assert state["in_flight"] == 0


def test_each_result_reported_once():
    seen = []
    entries = _entries(12)
    ProbePool(_supported, workers=3).run(entries, on_result=lambda pos, r: seen.append(pos))
    assert sorted(seen) == list(range(12))


def test_crashing_probe_becomes_unsupported():
    def probe(entry):
        if entry.domain == "d2.example":
            raise RuntimeError("worker blew up")
        return _supported(entry)

    results = ProbePool(probe, workers=2).run(_entries(5))
    assert results.total == 5
    assert [r.supported for r in results.records] == [True, True, False, True, True]
    assert results.records[2].signer == "nil"


def test_unavailable_resolver_aborts_run():
    def probe(entry):
        raise ResolverUnavailable("dig vanished")

    with pytest.raises(ResolverUnavailable):
        ProbePool(probe, workers=3).run(_entries(10))


def test_empty_input():
    results = ProbePool(_supported, workers=5).run([])
    assert results.records == []
    assert results.support_rate_percent == 0.0


def test_invalid_worker_count():
    with pytest.raises(ValueError):
        ProbePool(_supported, workers=0)
