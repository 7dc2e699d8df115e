from __future__ import annotations

import csv
import json
import logging
import os
import tempfile
from dataclasses import asdict
from typing import Any, Dict, List

from ..checks.dnssec import DomainEntry
from ..core.results import CSV_HEADER, ResultSet
from ..core.utils import to_int

logger = logging.getLogger(__name__)


class InputFormatError(ValueError):
    pass


def read_domains(path: str) -> List[DomainEntry]:
    """Read `rank,domain` rows; a leading row with a non-numeric rank is taken as a header."""
    entries: List[DomainEntry] = []
    with open(path, newline="", encoding="utf-8") as f:
        for lineno, row in enumerate(csv.reader(f), 1):
            if not row or not any(c.strip() for c in row):
                continue
            if len(row) < 2:
                raise InputFormatError(f"{path}:{lineno}: expected 'rank,domain', got {row!r}")
            rank = to_int(row[0].strip())
            if rank is None:
                if not entries and lineno == 1:
                    logger.debug("Skipping header row %r", row)
                    continue
                raise InputFormatError(f"{path}:{lineno}: rank {row[0]!r} is not an integer")
            entries.append(DomainEntry(rank=rank, domain=row[1].strip()))
    logger.info("Loaded %d domains from %s", len(entries), path)
    return entries


def _atomic_write(path: str, write) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp = tempfile.mkstemp(prefix=".dnssec-stats-", dir=directory)
    try:
        with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
            write(f)
        # mkstemp creates 0600; give the result the usual umask-derived mode
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp, 0o666 & ~umask)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


def write_results(path: str, results: ResultSet) -> None:
    def _write(f) -> None:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for r in results.records:
            writer.writerow(r.to_row())

    _atomic_write(path, _write)
    logger.info("Wrote %d rows to %s", results.total, path)


def results_to_dict(results: ResultSet) -> Dict[str, Any]:
    return {
        "summary": results.summary(),
        "records": [asdict(r) for r in results.records],
    }


def write_json(path: str, results: ResultSet) -> None:
    out = results_to_dict(results)
    if path == "-":
        print(json.dumps(out, indent=2))
        return
    _atomic_write(path, lambda f: json.dump(out, f, indent=2))
