from __future__ import annotations

import importlib
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence

import anyio

from middleware_stack.errors import MissingMiddlewareError, collapse_exception_group
from middleware_stack.models import GenMiddleware, GenMiddlewareProvider, Middleware, MiddlewareProvider

logger = logging.getLogger(__name__)

Provider = Callable[[], Awaitable[Any]]


async def _resolve(names: Sequence[str], registry: Mapping[str, Provider]) -> List[Any]:
    missing = [name for name in names if name not in registry]
    if missing:
        raise MissingMiddlewareError(missing)

    results: Dict[int, Any] = {}

    async def _load(index: int, name: str) -> None:
        results[index] = await registry[name]()

    try:
        async with anyio.create_task_group() as tg:
            for index, name in enumerate(names):
                tg.start_soon(_load, index, name)
    except BaseExceptionGroup as group:
        inner = collapse_exception_group(group)
        if inner is group:
            raise
        raise inner from None

    logger.debug("Resolved middleware from registry: %s", list(names))
    return [results[i] for i in range(len(names))]


async def get_from_registry(
    names: Sequence[str],
    registry: Mapping[str, MiddlewareProvider],
) -> List[Middleware]:
    """
    Resolve `names` into a promise-style stack, in request order.

    All names are checked before any provider runs; providers then load concurrently.

        registry = {
            "log": import_provider("middleware_stack.builtins:default_logging_middleware"),
            "call_api": lambda_provider,
        }
        stack = await get_from_registry(["log", "call_api"], registry)
        response = await compose_stack(stack)(request)
    """
    return await _resolve(names, registry)


async def get_gen_from_registry(
    names: Sequence[str],
    registry: Mapping[str, GenMiddlewareProvider],
) -> List[GenMiddleware]:
    """Same as `get_from_registry`, for callback-style stacks."""
    return await _resolve(names, registry)


def _import_attribute(path: str) -> Any:
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Expected 'package.module:attribute', got {path!r}")
    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


def import_provider(path: str) -> Provider:
    """Provider that imports `package.module:attribute` lazily, off the event loop."""

    async def provider() -> Any:
        obj = await anyio.to_thread.run_sync(lambda: _import_attribute(path))
        if not isinstance(obj, (Middleware, GenMiddleware)):
            raise TypeError(f"{path} is {type(obj).__name__}, not a Middleware or GenMiddleware")
        return obj

    return provider


__all__ = ["Provider", "get_from_registry", "get_gen_from_registry", "import_provider"]
