"""
Callback-style composition.

Each step is called as `step(details, next, resolve)`:

- `next(next_details, on_next_resolved)` schedules the following step and returns immediately.
  The following step starts at the caller's next suspension point (or once the caller
  returns), so code placed after `next(...)` without an `await` runs first. Work that needs
  the downstream result belongs in `on_next_resolved`.
- `resolve(output)` publishes this step's own output; it may be called before, after or instead
  of `next`, and more than once (progress updates)

Every invocation runs inside its own anyio task group. Awaiting the executable returns once all
work it spawned has finished; outputs are only observed through the `resolve` passed in.
A step that raises cancels the invocation and the exception propagates to the awaiting caller.
"""

from __future__ import annotations

import inspect
from functools import partial
from typing import Any, Callable, Sequence

import anyio
from anyio.abc import TaskGroup

from middleware_stack.errors import collapse_exception_group
from middleware_stack.models import ExecutableGenStack, GenMiddleware, NextGen, Resolve
from middleware_stack.utils import log_contract_mismatches, require_steps

# (task_group, details, on_resolved) -> None
Link = Callable[[TaskGroup, Any, Resolve], None]


async def _resolve_placeholder(on_resolved: Resolve) -> None:
    on_resolved({})


def _terminal(tg: TaskGroup, _details: Any, on_resolved: Resolve) -> None:
    tg.start_soon(_resolve_placeholder, on_resolved)


async def _run_step(step: GenMiddleware, details: Any, next: NextGen, resolve: Resolve) -> None:
    result = step(details, next, resolve)
    if inspect.isawaitable(result):
        await result


def _wrap(step: GenMiddleware, downstream: Link) -> Link:
    def link(tg: TaskGroup, details: Any, resolve: Resolve) -> None:
        tg.start_soon(_run_step, step, details, partial(downstream, tg), resolve)

    return link


def compose_gen_stack(stack: Sequence[GenMiddleware]) -> ExecutableGenStack:
    steps = require_steps(stack)
    log_contract_mismatches(steps)

    chain: Link = _terminal
    for step in reversed(steps):
        chain = _wrap(step, chain)

    async def executable(details: Any, resolve: Resolve) -> None:
        try:
            async with anyio.create_task_group() as tg:
                chain(tg, details, resolve)
        except BaseExceptionGroup as group:
            inner = collapse_exception_group(group)
            if inner is group:
                raise
            raise inner from None

    return executable


__all__ = ["compose_gen_stack"]
