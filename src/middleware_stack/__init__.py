"""
Typed middleware stacks.

- `compose_stack` / `compose_gen_stack`: fold an ordered list of middleware into one callable
- `validate_stack`: advisory contract checks between adjacent middleware
- `get_from_registry` / `get_gen_from_registry`: resolve names into a stack
"""

from middleware_stack.builtins import gen_logging_middleware, logging_middleware
from middleware_stack.compose import compose_stack
from middleware_stack.equivalence import EquivalenceChecker, are_types_equivalent, make_equivalence_checker
from middleware_stack.errors import (
    EmptyStackError,
    MiddlewareStackError,
    MissingMiddlewareError,
    StackValidationError,
)
from middleware_stack.gen import compose_gen_stack
from middleware_stack.models import (
    ExecutableGenStack,
    ExecutableStack,
    GenMiddleware,
    GenMiddlewareProvider,
    GenMiddlewareStack,
    Middleware,
    MiddlewareProvider,
    MiddlewareStack,
    Next,
    NextGen,
    Resolve,
    gen_middleware,
    middleware,
)
from middleware_stack.registry import get_from_registry, get_gen_from_registry, import_provider
from middleware_stack.schemas import (
    AutoIntrospector,
    JsonSchemaIntrospector,
    PydanticIntrospector,
    SchemaIntrospector,
)
from middleware_stack.settings import Settings, get_settings
from middleware_stack.validate import ContractMismatch, ensure_valid_stack, validate_stack

__all__ = [
    "AutoIntrospector",
    "ContractMismatch",
    "EmptyStackError",
    "EquivalenceChecker",
    "ExecutableGenStack",
    "ExecutableStack",
    "GenMiddleware",
    "GenMiddlewareProvider",
    "GenMiddlewareStack",
    "JsonSchemaIntrospector",
    "Middleware",
    "MiddlewareProvider",
    "MiddlewareStack",
    "MiddlewareStackError",
    "MissingMiddlewareError",
    "Next",
    "NextGen",
    "PydanticIntrospector",
    "Resolve",
    "SchemaIntrospector",
    "Settings",
    "StackValidationError",
    "are_types_equivalent",
    "compose_gen_stack",
    "compose_stack",
    "ensure_valid_stack",
    "gen_logging_middleware",
    "gen_middleware",
    "get_from_registry",
    "get_gen_from_registry",
    "get_settings",
    "import_provider",
    "logging_middleware",
    "make_equivalence_checker",
    "middleware",
    "validate_stack",
]
