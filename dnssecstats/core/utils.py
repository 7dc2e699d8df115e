from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def to_int(s: str) -> Optional[int]:
    """Best-effort decimal coercion; None when `s` is not an integer."""
    try:
        return int(s)
    except (TypeError, ValueError):
        return None


@dataclass
class QueryMeta:
    domain: str
    backend: str
    attempts: int
    elapsed_ms: int
    error: str = ""
