from __future__ import annotations

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

import dns.exception
import dns.flags
import dns.inet
import dns.message
import dns.query
import dns.resolver

from .utils import QueryMeta, now_ms

logger = logging.getLogger(__name__)

DEFAULT_TRIES = 10
DEFAULT_BACKOFF = 1.0
DEFAULT_TIMEOUT = 10.0


class ResolutionError(Exception):
    """A single resolution attempt failed; the caller may retry."""


class ResolverUnavailable(RuntimeError):
    """The resolution capability itself is missing; probing cannot start."""


class Resolver(Protocol):
    name: str

    def check(self) -> None:
        ...

    def resolve(self, domain: str) -> str:
        ...


@dataclass
class Answer:
    domain: str
    text: str
    meta: QueryMeta


class DigResolver:
    """Runs `dig +dnssec <domain> A` once per attempt and returns its stdout."""

    name = "dig"

    def __init__(
        self,
        server: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        binary: str = "dig",
    ):
        self.server = server
        self.timeout = timeout
        self._binary = binary
        self.path = ""
        self.check()

    def check(self) -> None:
        path = shutil.which(self._binary)
        if path is None:
            raise ResolverUnavailable(f"{self._binary!r} was not found on PATH")
        self.path = path

    def command(self, domain: str) -> List[str]:
        cmd = [self.path, "+dnssec"]
        if self.server:
            cmd.append(f"@{self.server}")
        cmd.extend([domain, "A"])
        return cmd

    def resolve(self, domain: str) -> str:
        try:
            proc = subprocess.run(
                self.command(domain),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise ResolutionError(f"dig exited with status {e.returncode}") from e
        except subprocess.TimeoutExpired as e:
            raise ResolutionError(f"dig timed out after {self.timeout}s") from e
        except OSError as e:
            raise ResolutionError(str(e)) from e
        return proc.stdout


class DnspythonResolver:
    """Sends the DO-flagged A query with dnspython and returns the response as zone text."""

    name = "dnspython"

    def __init__(
        self,
        server: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        udp_payload: int = 1232,
        use_tcp_fallback: bool = True,
    ):
        self.server = server
        self.timeout = timeout
        self.udp_payload = udp_payload
        self.use_tcp_fallback = use_tcp_fallback
        self.address = ""

    def check(self) -> None:
        """Pin the address queries go to; a server given by hostname is resolved once here."""
        if not self.server:
            try:
                nameservers = dns.resolver.get_default_resolver().nameservers
            except (dns.exception.DNSException, OSError) as e:
                raise ResolverUnavailable(f"no system resolver configured: {e}") from e
            if not nameservers:
                raise ResolverUnavailable("no system resolver configured")
            self.server = str(nameservers[0])

        if dns.inet.is_address(self.server):
            self.address = self.server
            return
        try:
            ans = dns.resolver.resolve(self.server, "A")
        except (dns.exception.DNSException, OSError) as e:
            raise ResolverUnavailable(f"cannot resolve server {self.server!r}: {e}") from e
        self.address = ans[0].address
        logger.info("Using %s (%s) as resolver", self.address, self.server)

    def resolve(self, domain: str) -> str:
        if not self.address:
            self.check()
        q = dns.message.make_query(domain, "A", use_edns=True, payload=self.udp_payload)
        q.want_dnssec(True)
        try:
            r = dns.query.udp(q, self.address, timeout=self.timeout)
            if r.flags & dns.flags.TC and self.use_tcp_fallback:
                r = dns.query.tcp(q, self.address, timeout=self.timeout)
        except (dns.exception.DNSException, OSError, ValueError) as e:
            raise ResolutionError(f"query to {self.address} failed: {e}") from e
        return r.to_text()


class ResolverClient:
    """Wraps a resolver backend with a fixed-interval, bounded retry loop.

    Attempts are numbered from 0; attempts `attempt` through `tries - 1` are
    issued, with `backoff` seconds of sleep between consecutive failures. When
    every attempt fails the answer text is empty rather than an exception.
    """

    def __init__(
        self,
        backend: Resolver,
        tries: int = DEFAULT_TRIES,
        backoff: float = DEFAULT_BACKOFF,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.backend = backend
        self.tries = max(1, tries)
        self.backoff = backoff
        self.sleep = sleep

    def query(self, domain: str, attempt: int = 0) -> Answer:
        t0 = now_ms()
        last_exc: Optional[Exception] = None
        made = attempt

        while made < self.tries:
            try:
                text = self.backend.resolve(domain)
            except ResolutionError as e:
                last_exc = e
                made += 1
                logger.warning(
                    "Problem resolving %s (attempt %d of %d): %s", domain, made, self.tries, e
                )
                if made < self.tries:
                    self.sleep(self.backoff)
                continue
            made += 1
            return Answer(domain=domain, text=text, meta=self._meta(domain, made, t0))

        logger.error("Giving up on %s after %d attempts", domain, made)
        meta = self._meta(domain, made, t0, error=str(last_exc) if last_exc else "")
        return Answer(domain=domain, text="", meta=meta)

    def _meta(self, domain: str, attempts: int, t0: int, error: str = "") -> QueryMeta:
        return QueryMeta(
            domain=domain,
            backend=getattr(self.backend, "name", type(self.backend).__name__),
            attempts=attempts,
            elapsed_ms=now_ms() - t0,
            error=error,
        )
