"""
Promise-style composition.

The stack is folded right-to-left: every step receives the continuation built from the steps
after it as its `next`. Index 0 is called first; a step that never calls `next` short-circuits
the rest of the stack.
"""

from __future__ import annotations

import inspect
from typing import Any, Sequence

from middleware_stack.models import ExecutableStack, Middleware, Next
from middleware_stack.utils import log_contract_mismatches, require_steps


async def _terminal(_request: Any) -> Any:
    # Only reached when the last step calls `next`.
    return {}


def _wrap(step: Middleware, downstream: Next) -> Next:
    async def call(request: Any) -> Any:
        result = step(request, downstream)
        if inspect.isawaitable(result):
            result = await result
        return result

    return call


def compose_stack(stack: Sequence[Middleware]) -> ExecutableStack:
    steps = require_steps(stack)
    log_contract_mismatches(steps)

    chain: Next = _terminal
    for step in reversed(steps):
        chain = _wrap(step, chain)

    async def executable(request: Any) -> Any:
        return await chain(request)

    return executable


__all__ = ["compose_stack"]
