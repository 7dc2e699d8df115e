from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .checks.dnssec import DomainEntry, ProbeResult, probe_domain
from .core.pool import DEFAULT_WORKERS, ProbePool
from .core.resolver import (
    DEFAULT_BACKOFF,
    DEFAULT_TIMEOUT,
    DEFAULT_TRIES,
    DigResolver,
    DnspythonResolver,
    Resolver,
    ResolverClient,
    ResolverUnavailable,
)
from .core.results import ResultSet, progress_line
from .report.csv_io import InputFormatError, read_domains, write_json, write_results
from .report.render_html import render_report_html

__version__ = "0.1.0"

DEFAULT_INPUT = "top-1m.csv"
DEFAULT_OUTPUT = "results.csv"
BACKENDS = ("dig", "dnspython")

logger = logging.getLogger("dnssecstats")


def _build_backend(args: argparse.Namespace) -> Resolver:
    if args.backend == "dnspython":
        backend = DnspythonResolver(server=args.server, timeout=args.timeout)
        backend.check()
        return backend
    # locates dig on PATH while constructing
    return DigResolver(server=args.server, timeout=args.timeout)


def run_probes(
    entries: List[DomainEntry],
    backend: Resolver,
    workers: int = DEFAULT_WORKERS,
    tries: int = DEFAULT_TRIES,
    backoff: float = DEFAULT_BACKOFF,
    quiet: bool = False,
) -> ResultSet:
    client = ResolverClient(backend, tries=tries, backoff=backoff)
    pool = ProbePool(lambda entry: probe_domain(entry, client), workers=workers)
    done = 0

    def on_result(position: int, result: ProbeResult) -> None:
        nonlocal done
        done += 1
        if not quiet:
            print(progress_line(done, result))

    return pool.run(entries, on_result=on_result)


def cmd_probe(args: argparse.Namespace) -> int:
    try:
        backend = _build_backend(args)
        entries = read_domains(args.input)
        logger.info("Probing %d domains with %d workers via %s", len(entries), args.workers, backend.name)
        results = run_probes(
            entries,
            backend,
            workers=args.workers,
            tries=args.tries,
            backoff=args.backoff,
            quiet=args.quiet,
        )
        write_results(args.output, results)
        if args.json:
            write_json(args.json, results)
        if args.html:
            with open(args.html, "w", encoding="utf-8") as f:
                f.write(render_report_html(results, source=args.input))
    except ResolverUnavailable as e:
        logger.error("Resolver unavailable: %s", e)
        return 2
    except InputFormatError as e:
        logger.error("Bad input: %s", e)
        return 2
    except OSError as e:
        logger.error("%s", e)
        return 2

    print(results.summary_line())
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dnssec-stats", description="Measure DNSSEC (RRSIG) adoption across a domain list")
    p.add_argument("--version", action="version", version=f"dnssec-stats {__version__}")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level (stderr)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # probe
    a = sub.add_parser("probe", help="Probe every domain in a rank,domain CSV for RRSIG records")
    a.add_argument("--input", default=DEFAULT_INPUT, help=f"Input CSV of rank,domain rows (default: {DEFAULT_INPUT})")
    a.add_argument("--output", default=DEFAULT_OUTPUT, help=f"Result CSV (default: {DEFAULT_OUTPUT})")
    a.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Concurrent probes")
    a.add_argument("--tries", type=int, default=DEFAULT_TRIES, help="Resolution attempts per domain")
    a.add_argument("--backoff", type=float, default=DEFAULT_BACKOFF, help="Seconds to wait between attempts")
    a.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-attempt timeout in seconds")
    a.add_argument("--backend", choices=BACKENDS, default="dig", help="dig subprocess or in-process dnspython")
    a.add_argument("--server", help="Resolver to query (default: system resolver)")
    a.add_argument("--json", help="Also write a JSON report to file (or '-' for stdout)")
    a.add_argument("--html", help="Also write an HTML report to file")
    a.add_argument("--quiet", action="store_true", help="Suppress per-domain progress lines")
    a.set_defaults(func=cmd_probe)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.workers < 1 or args.tries < 1:
        parser.error("--workers and --tries must be >= 1")
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
