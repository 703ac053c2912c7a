"""
Environment-driven settings.

- `MIDDLEWARE_STACK_VALIDATE_ON_COMPOSE=1` logs contract mismatches when a stack is composed
- `MIDDLEWARE_STACK_LOG_PAYLOADS=1` includes (redacted) payloads in logging middleware records
- `MIDDLEWARE_STACK_LOG_MAX_CHARS=2048` caps serialized payload length per record
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


def _env(name: str) -> Optional[str]:
    raw = os.environ.get(name, "").strip()
    return raw or None


def _flag(name: str, default: bool) -> bool:
    raw = _env(name)
    return default if raw is None else raw.lower() in _TRUTHY


def _count(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    digits = raw[1:] if raw[:1] in ("+", "-") else raw
    return int(raw) if digits.isdecimal() else default


@dataclass(frozen=True)
class Settings:
    validate_on_compose: bool = False
    log_payloads: bool = False
    log_max_chars: int = 2048


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        validate_on_compose=_flag("MIDDLEWARE_STACK_VALIDATE_ON_COMPOSE", False),
        log_payloads=_flag("MIDDLEWARE_STACK_LOG_PAYLOADS", False),
        log_max_chars=max(0, _count("MIDDLEWARE_STACK_LOG_MAX_CHARS", 2048)),
    )


__all__ = ["Settings", "get_settings"]
