"""
Built-in pass-through logging middleware.

Each record is one line of JSON on the `middleware_stack.trace` logger. Payloads are only
included when `MIDDLEWARE_STACK_LOG_PAYLOADS=1`, redacted and capped at
`MIDDLEWARE_STACK_LOG_MAX_CHARS`.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel

from middleware_stack.models import GenMiddleware, Middleware, Next, NextGen, Resolve
from middleware_stack.settings import get_settings

trace_logger = logging.getLogger("middleware_stack.trace")


# Keys (case-insensitive) whose values are masked in payload logs.
DEFAULT_REDACT_KEYS = frozenset({"password", "secret", "token", "access_token", "refresh_token", "api_key"})


def _redact(value: Any, keys: FrozenSet[str]) -> Any:
    if isinstance(value, Mapping):
        return {k: "***" if str(k).lower() in keys else _redact(v, keys) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact(v, keys) for v in value]
    return value


def _payload(value: Any, keys: FrozenSet[str]) -> Any:
    settings = get_settings()
    if not settings.log_payloads:
        return None
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    try:
        text = json.dumps(_redact(value, keys), ensure_ascii=False, default=str)
    except Exception:
        return repr(value)[: settings.log_max_chars]
    if len(text) > settings.log_max_chars:
        return text[: settings.log_max_chars] + "...<truncated>"
    return json.loads(text)


def _dur_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)


def _emit(log: logging.Logger, record: Dict[str, Any]) -> None:
    # One-line JSON for easy grepping.
    try:
        log.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))
    except Exception:
        log.info("%s %s dur_ms=%s", record.get("step"), record.get("event"), record.get("dur_ms"))


def logging_middleware(
    name: str = "log",
    *,
    log: Optional[logging.Logger] = None,
    contract: Any = None,
    redact_keys: Iterable[str] = DEFAULT_REDACT_KEYS,
) -> Middleware:
    """Promise-style step that forwards its input unchanged and logs the round trip."""
    target = log or trace_logger
    keys = frozenset(k.lower() for k in redact_keys)

    async def call(request: Any, next: Next) -> Any:
        started_at = time.perf_counter()
        response: Any = None
        err: Optional[BaseException] = None
        try:
            response = await next(request)
            return response
        except BaseException as e:  # noqa: BLE001 - we want to log then re-raise
            err = e
            raise
        finally:
            record: Dict[str, Any] = {
                "step": name,
                "event": "call",
                "dur_ms": _dur_ms(started_at),
                "request": _payload(request, keys),
                "response": _payload(response, keys),
            }
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}
            _emit(target, record)

    return Middleware(
        call=call,
        own_input=contract,
        next_input=contract,
        next_output=contract,
        own_output=contract,
        name=name,
    )


def gen_logging_middleware(
    name: str = "log",
    *,
    log: Optional[logging.Logger] = None,
    contract: Any = None,
    redact_keys: Iterable[str] = DEFAULT_REDACT_KEYS,
) -> GenMiddleware:
    """Callback-style step that forwards its input unchanged and logs every resolution it relays."""
    target = log or trace_logger
    keys = frozenset(k.lower() for k in redact_keys)

    async def call(details: Any, next: NextGen, resolve: Resolve) -> None:
        started_at = time.perf_counter()
        _emit(target, {"step": name, "event": "forward", "dur_ms": 0, "request": _payload(details, keys)})

        def on_resolved(output: Any) -> None:
            _emit(
                target,
                {"step": name, "event": "resolve", "dur_ms": _dur_ms(started_at), "response": _payload(output, keys)},
            )
            resolve(output)

        next(details, on_resolved)

    return GenMiddleware(
        call=call,
        own_input=contract,
        next_input=contract,
        next_output=contract,
        own_output=contract,
        name=name,
    )


default_logging_middleware = logging_middleware()
default_gen_logging_middleware = gen_logging_middleware()


__all__ = [
    "DEFAULT_REDACT_KEYS",
    "default_gen_logging_middleware",
    "default_logging_middleware",
    "gen_logging_middleware",
    "logging_middleware",
    "trace_logger",
]
