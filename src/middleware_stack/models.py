from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

# Promise-style: `next(request)` returns an awaitable of the next step's response.
Next = Callable[[Any], Awaitable[Any]]
MiddlewareCallable = Callable[[Any, Next], Union[Any, Awaitable[Any]]]

# Callback-style: `next(details, on_next_resolved)` schedules the next step; `resolve(output)`
# publishes this step's own output.
Resolve = Callable[[Any], None]
NextGen = Callable[[Any, Resolve], None]
GenMiddlewareCallable = Callable[[Any, NextGen, Resolve], Union[None, Awaitable[None]]]


def _callable_name(fn: Any) -> str:
    name = getattr(fn, "__name__", None)
    return name if isinstance(name, str) and name else "<anonymous>"


@dataclass(frozen=True)
class Middleware:
    """
    One promise-style step plus its advisory contracts.

    `next_input` / `next_output` stay None for a terminal step (one that never calls `next`).
    """

    call: MiddlewareCallable
    own_input: Any = None
    next_input: Any = None
    next_output: Any = None
    own_output: Any = None
    name: Optional[str] = None

    def __call__(self, request: Any, next: Next) -> Union[Any, Awaitable[Any]]:
        return self.call(request, next)

    @property
    def display_name(self) -> str:
        return self.name or _callable_name(self.call)


@dataclass(frozen=True)
class GenMiddleware:
    """One callback-style step plus its advisory contracts."""

    call: GenMiddlewareCallable
    own_input: Any = None
    next_input: Any = None
    next_output: Any = None
    own_output: Any = None
    name: Optional[str] = None

    def __call__(self, details: Any, next: NextGen, resolve: Resolve) -> Union[None, Awaitable[None]]:
        return self.call(details, next, resolve)

    @property
    def display_name(self) -> str:
        return self.name or _callable_name(self.call)


StackItem = Union[Middleware, GenMiddleware]
MiddlewareStack = Sequence[Middleware]
GenMiddlewareStack = Sequence[GenMiddleware]

ExecutableStack = Callable[[Any], Awaitable[Any]]
ExecutableGenStack = Callable[[Any, Resolve], Awaitable[None]]

MiddlewareProvider = Callable[[], Awaitable[Middleware]]
GenMiddlewareProvider = Callable[[], Awaitable[GenMiddleware]]


def middleware(
    *,
    own_input: Any = None,
    next_input: Any = None,
    next_output: Any = None,
    own_output: Any = None,
    name: Optional[str] = None,
) -> Callable[[MiddlewareCallable], Middleware]:
    """
    Decorator turning `async def step(request, next)` into a `Middleware` record.

        @middleware(own_input=Request, own_output=Response)
        async def double(request, next):
            return Response(result=request.value * 2)
    """

    def decorator(fn: MiddlewareCallable) -> Middleware:
        return Middleware(
            call=fn,
            own_input=own_input,
            next_input=next_input,
            next_output=next_output,
            own_output=own_output,
            name=name or _callable_name(fn),
        )

    return decorator


def gen_middleware(
    *,
    own_input: Any = None,
    next_input: Any = None,
    next_output: Any = None,
    own_output: Any = None,
    name: Optional[str] = None,
) -> Callable[[GenMiddlewareCallable], GenMiddleware]:
    """Decorator turning `async def step(details, next, resolve)` into a `GenMiddleware` record."""

    def decorator(fn: GenMiddlewareCallable) -> GenMiddleware:
        return GenMiddleware(
            call=fn,
            own_input=own_input,
            next_input=next_input,
            next_output=next_output,
            own_output=own_output,
            name=name or _callable_name(fn),
        )

    return decorator


__all__ = [
    "ExecutableGenStack",
    "ExecutableStack",
    "GenMiddleware",
    "GenMiddlewareCallable",
    "GenMiddlewareProvider",
    "GenMiddlewareStack",
    "Middleware",
    "MiddlewareCallable",
    "MiddlewareProvider",
    "MiddlewareStack",
    "Next",
    "NextGen",
    "Resolve",
    "StackItem",
    "gen_middleware",
    "middleware",
]
