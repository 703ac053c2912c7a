"""
Structural compatibility between two optional schema descriptors.

`are_types_equivalent(a, b)` answers "is `b` acceptable where `a` is expected":

- both absent => True; exactly one absent => False
- both object-like => every field of `a` exists in `b` and is itself equivalent (`b` may add fields)
- both primitive-like => same kind tag; an unreadable tag is a mismatch
- introspection errors => False (logged, never raised)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Set, Tuple

from middleware_stack.schemas import AutoIntrospector, SchemaIntrospector

logger = logging.getLogger(__name__)

EquivalenceChecker = Callable[[Any, Any], bool]

_DEFAULT_INTROSPECTOR: SchemaIntrospector = AutoIntrospector()


def _compare(
    a: Any,
    b: Any,
    introspector: SchemaIntrospector,
    in_progress: Set[Tuple[int, int]],
) -> bool:
    if a is None and b is None:
        return True
    if (a is None) != (b is None):
        return False

    a_shaped = introspector.has_named_shape(a)
    b_shaped = introspector.has_named_shape(b)
    if a_shaped and b_shaped:
        # A pair already on the comparison path is assumed equivalent (cyclic schemas).
        key = (id(a), id(b))
        if key in in_progress:
            return True
        in_progress.add(key)
        try:
            fields_a = introspector.fields_of(a)
            fields_b = introspector.fields_of(b)
            for name, field_a in fields_a.items():
                if name not in fields_b:
                    return False
                if not _compare(field_a, fields_b[name], introspector, in_progress):
                    return False
            return True
        finally:
            in_progress.discard(key)

    if a_shaped or b_shaped:
        return False

    tag_a = introspector.kind_tag_of(a)
    tag_b = introspector.kind_tag_of(b)
    if tag_a is None or tag_b is None:
        return False
    return tag_a == tag_b


def are_types_equivalent(
    a: Any,
    b: Any,
    *,
    introspector: Optional[SchemaIntrospector] = None,
) -> bool:
    intro = introspector or _DEFAULT_INTROSPECTOR
    try:
        return _compare(a, b, intro, set())
    except Exception as e:
        logger.warning("Type equivalence check failed: %s: %s", type(e).__name__, e)
        return False


def make_equivalence_checker(introspector: SchemaIntrospector) -> EquivalenceChecker:
    """Bind a custom introspector into a checker usable by `validate_stack`."""

    def checker(a: Any, b: Any) -> bool:
        return are_types_equivalent(a, b, introspector=introspector)

    return checker


__all__ = ["EquivalenceChecker", "are_types_equivalent", "make_equivalence_checker"]
