from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:
    from middleware_stack.validate import ContractMismatch


class MiddlewareStackError(Exception):
    """Base class for errors raised by the middleware engine."""


class MissingMiddlewareError(MiddlewareStackError, LookupError):
    """Raised when requested names are not present in a registry."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing: List[str] = list(missing)
        super().__init__(f"Missing middlewares in registry: {', '.join(self.missing)}")


class EmptyStackError(MiddlewareStackError, ValueError):
    """Raised when composing a stack with no middleware."""


class StackValidationError(MiddlewareStackError):
    """Raised by `ensure_valid_stack` when adjacent contracts do not line up."""

    def __init__(self, diagnostics: Sequence["ContractMismatch"]) -> None:
        self.diagnostics = list(diagnostics)
        lines = "; ".join(d.message for d in self.diagnostics)
        super().__init__(f"Stack validation failed ({len(self.diagnostics)} mismatch(es)): {lines}")


def collapse_exception_group(exc: BaseException) -> BaseException:
    """Peel single-member exception groups raised by anyio task groups."""
    while isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return exc


__all__ = [
    "collapse_exception_group",
    "EmptyStackError",
    "MiddlewareStackError",
    "MissingMiddlewareError",
    "StackValidationError",
]
