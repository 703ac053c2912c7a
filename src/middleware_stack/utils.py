"""Helpers shared by the promise-style and callback-style composers."""

from __future__ import annotations

import logging
from typing import Any, List, Sequence

from middleware_stack.errors import EmptyStackError
from middleware_stack.models import StackItem
from middleware_stack.settings import get_settings
from middleware_stack.validate import validate_stack

logger = logging.getLogger(__name__)


def require_steps(stack: Sequence[StackItem]) -> List[Any]:
    """Snapshot `stack` as a list, rejecting an empty one."""
    steps = list(stack)
    if not steps:
        raise EmptyStackError("Cannot compose an empty middleware stack")
    return steps


def log_contract_mismatches(steps: Sequence[StackItem]) -> None:
    """Warn about contract mismatches when MIDDLEWARE_STACK_VALIDATE_ON_COMPOSE is on."""
    if not get_settings().validate_on_compose:
        return
    for diagnostic in validate_stack(steps):
        logger.warning("%s", diagnostic.message)


__all__ = ["log_contract_mismatches", "require_steps"]
