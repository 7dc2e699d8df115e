from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..checks.dnssec import DomainEntry, ProbeResult
from .resolver import ResolverUnavailable
from .results import ResultSet

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 100

Probe = Callable[[DomainEntry], ProbeResult]
ResultHandler = Callable[[int, ProbeResult], None]


@dataclass
class _Abort:
    worker_id: int
    exc: BaseException


class ProbePool:
    """Fixed-size pool of worker threads fed from a job queue.

    Each worker takes one (position, entry) job at a time, runs the probe and
    puts (position, result) on the result queue. The collecting side reads
    exactly one result per submitted entry and stores it at its input position,
    so completion order never affects the returned ordering.
    """

    def __init__(self, probe: Probe, workers: int = DEFAULT_WORKERS):
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.probe = probe
        self.workers = workers

    def run(self, entries: Sequence[DomainEntry], on_result: Optional[ResultHandler] = None) -> ResultSet:
        total = len(entries)
        if total == 0:
            return ResultSet()

        jobs: "queue.Queue[Optional[Tuple[int, DomainEntry]]]" = queue.Queue()
        results: "queue.Queue[object]" = queue.Queue()
        stop = threading.Event()

        for i, entry in enumerate(entries):
            jobs.put((i, entry))

        n_workers = min(self.workers, total)
        for _ in range(n_workers):
            jobs.put(None)

        threads = [
            threading.Thread(
                target=self._work,
                args=(w, jobs, results, stop),
                name=f"probe-worker-{w}",
                daemon=True,
            )
            for w in range(n_workers)
        ]
        for t in threads:
            t.start()
        logger.debug("Started %d probe workers for %d domains", n_workers, total)

        ordered: List[Optional[ProbeResult]] = [None] * total
        for _ in range(total):
            item = results.get()
            if isinstance(item, _Abort):
                stop.set()
                logger.error("Worker %d aborted the run: %s", item.worker_id, item.exc)
                raise item.exc
            position, result = item  # type: ignore[misc]
            ordered[position] = result
            if on_result:
                on_result(position, result)

        for t in threads:
            t.join()

        return ResultSet(records=[r for r in ordered if r is not None])

    def _work(
        self,
        worker_id: int,
        jobs: "queue.Queue[Optional[Tuple[int, DomainEntry]]]",
        results: "queue.Queue[object]",
        stop: threading.Event,
    ) -> None:
        while True:
            job = jobs.get()
            if job is None:
                return
            if stop.is_set():
                continue
            position, entry = job
            try:
                result = self.probe(entry)
            except ResolverUnavailable as e:
                stop.set()
                results.put(_Abort(worker_id=worker_id, exc=e))
                return
            except Exception:
                logger.exception("Probe of %s crashed in worker %d; recording it as unsupported", entry.domain, worker_id)
                result = ProbeResult.unsupported(entry)
            results.put((position, result))
