"""
Schema capability adapters.

The equivalence checker never looks inside a schema library directly. It asks three questions
through a `SchemaIntrospector`:

- `has_named_shape(d)`: does the descriptor expose named fields (object-like)?
- `fields_of(d)`: the name -> descriptor mapping, when it does
- `kind_tag_of(d)`: the primitive kind tag otherwise (None when unreadable)

Kind tags use the JSON Schema vocabulary ("string", "integer", "number", "boolean", "array",
"object", "null") so pydantic models and JSON Schema documents can be compared with each other.
"""

from __future__ import annotations

import types
import typing
from collections.abc import Mapping
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

from jsonschema import Draft202012Validator
from pydantic import BaseModel
from pydantic.fields import FieldInfo

_PRIMITIVE_TAGS: Dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    set: "array",
    frozenset: "array",
    dict: "object",
    type(None): "null",
}

# Only these keywords are checked per node; nested schemas are reached through `fields_of`.
_CHECKED_KEYWORDS = ("type", "required")


@runtime_checkable
class SchemaIntrospector(Protocol):
    def has_named_shape(self, descriptor: Any) -> bool: ...

    def fields_of(self, descriptor: Any) -> Mapping[str, Any]: ...

    def kind_tag_of(self, descriptor: Any) -> Optional[str]: ...


def _class_tag(cls: Any) -> Optional[str]:
    tag = _PRIMITIVE_TAGS.get(cls)
    if tag:
        return tag
    name = getattr(cls, "__name__", None)
    return name if isinstance(name, str) else None


class PydanticIntrospector:
    """Reads pydantic models, `FieldInfo` objects and plain Python annotations."""

    def _unwrap(self, descriptor: Any) -> Any:
        if isinstance(descriptor, FieldInfo):
            descriptor = descriptor.annotation
        if typing.get_origin(descriptor) is typing.Annotated:
            descriptor = typing.get_args(descriptor)[0]
        if isinstance(descriptor, BaseModel):
            descriptor = type(descriptor)
        return descriptor

    def has_named_shape(self, descriptor: Any) -> bool:
        d = self._unwrap(descriptor)
        return isinstance(d, type) and issubclass(d, BaseModel)

    def fields_of(self, descriptor: Any) -> Mapping[str, Any]:
        model = self._unwrap(descriptor)
        return {name: field.annotation for name, field in model.model_fields.items()}

    def kind_tag_of(self, descriptor: Any) -> Optional[str]:
        d = self._unwrap(descriptor)
        if d is None:
            return "null"
        origin = typing.get_origin(d)
        if origin is not None:
            if origin is Union or origin is types.UnionType:
                return "union"
            if origin is typing.Literal:
                return "literal"
            return _class_tag(origin)
        if isinstance(d, type):
            return _class_tag(d)
        return None


def _follow_pointer(root: Mapping[str, Any], ref: str) -> Any:
    if not ref.startswith("#/"):
        raise ValueError(f"Only local '#/' references are supported, got {ref!r}")
    node: Any = root
    for token in ref[2:].split("/"):
        token = token.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, Mapping) or token not in node:
            raise KeyError(f"Unresolvable $ref: {ref}")
        node = node[token]
    return node


def _inline_refs(node: Any, root: Mapping[str, Any], seen: Dict[int, Any]) -> Any:
    """Copy `node` with every local `$ref` replaced by its target.

    Recursive definitions come back as a cyclic structure: `seen` maps the id of each source
    node to its (possibly still filling) copy.
    """
    key = id(node)
    if key in seen:
        return seen[key]
    if isinstance(node, Mapping):
        ref = node.get("$ref")
        if isinstance(ref, str):
            target = _inline_refs(_follow_pointer(root, ref), root, seen)
            seen[key] = target
            return target
        copy: Dict[str, Any] = {}
        seen[key] = copy
        for name, child in node.items():
            copy[name] = _inline_refs(child, root, seen)
        return copy
    if isinstance(node, list):
        items: list = []
        seen[key] = items
        items.extend(_inline_refs(child, root, seen) for child in node)
        return items
    return node


class JsonSchemaIntrospector:
    """Reads JSON Schema documents (plain dicts).

    Documents carrying `$defs` / `definitions` or a top-level `$ref` (what
    `BaseModel.model_json_schema()` emits for nested models) have their local references
    inlined before being read, so nested nodes reached through `fields_of` are already resolved.
    """

    def _check_node(self, descriptor: Mapping[str, Any]) -> None:
        node = {k: descriptor[k] for k in _CHECKED_KEYWORDS if k in descriptor}
        Draft202012Validator.check_schema(node)

    def _resolved(self, descriptor: Any) -> Any:
        if isinstance(descriptor, Mapping) and (
            "$ref" in descriptor or "$defs" in descriptor or "definitions" in descriptor
        ):
            return _inline_refs(descriptor, descriptor, {})
        return descriptor

    def has_named_shape(self, descriptor: Any) -> bool:
        descriptor = self._resolved(descriptor)
        return isinstance(descriptor, Mapping) and isinstance(descriptor.get("properties"), Mapping)

    def fields_of(self, descriptor: Any) -> Mapping[str, Any]:
        descriptor = self._resolved(descriptor)
        self._check_node(descriptor)
        return dict(descriptor["properties"])

    def kind_tag_of(self, descriptor: Any) -> Optional[str]:
        descriptor = self._resolved(descriptor)
        if not isinstance(descriptor, Mapping):
            return None
        self._check_node(descriptor)
        t = descriptor.get("type")
        if isinstance(t, str):
            return t
        if isinstance(t, list):
            return "|".join(sorted(str(x) for x in t))
        if "anyOf" in descriptor or "oneOf" in descriptor:
            return "union"
        if "const" in descriptor or "enum" in descriptor:
            return "literal"
        return None


class AutoIntrospector:
    """Dispatch per descriptor: mappings are JSON Schema, everything else goes through pydantic."""

    def __init__(
        self,
        *,
        pydantic: Optional[SchemaIntrospector] = None,
        json_schema: Optional[SchemaIntrospector] = None,
    ) -> None:
        self.pydantic = pydantic or PydanticIntrospector()
        self.json_schema = json_schema or JsonSchemaIntrospector()

    def _pick(self, descriptor: Any) -> SchemaIntrospector:
        return self.json_schema if isinstance(descriptor, Mapping) else self.pydantic

    def has_named_shape(self, descriptor: Any) -> bool:
        return self._pick(descriptor).has_named_shape(descriptor)

    def fields_of(self, descriptor: Any) -> Mapping[str, Any]:
        return self._pick(descriptor).fields_of(descriptor)

    def kind_tag_of(self, descriptor: Any) -> Optional[str]:
        return self._pick(descriptor).kind_tag_of(descriptor)


__all__ = [
    "AutoIntrospector",
    "JsonSchemaIntrospector",
    "PydanticIntrospector",
    "SchemaIntrospector",
]
