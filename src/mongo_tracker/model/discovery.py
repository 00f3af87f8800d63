"""Readable/writable field discovery for entity types.

Supported shapes:
- dataclasses (declared fields, ClassVar excluded)
- pydantic models (`model_fields`)
- plain classes with annotated public attributes
- `@property` pairs that define a setter
"""

from __future__ import annotations

import dataclasses
import inspect
import types
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Union, get_args, get_origin, get_type_hints


@dataclass(frozen=True, slots=True)
class DiscoveredField:
    name: str
    declared_type: Any


def discover_fields(cls: type) -> dict[str, DiscoveredField]:
    """Return discovered fields of `cls` in declaration order."""
    hints = _type_hints(cls)

    model_fields = getattr(cls, "model_fields", None)
    if dataclasses.is_dataclass(cls):
        names = [f.name for f in dataclasses.fields(cls)]
    elif isinstance(model_fields, Mapping):
        names = list(model_fields)
    else:
        names = [
            name
            for (name, hint) in hints.items()
            if not name.startswith("_") and not _is_class_var(hint)
        ]

    found = {name: DiscoveredField(name, hints.get(name, Any)) for name in names}

    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if name.startswith("_") or not isinstance(attr, property):
                continue
            if attr.fget is None or attr.fset is None:
                found.pop(name, None)
                continue
            found[name] = DiscoveredField(name, _return_type(attr.fget))

    return found


def unwrap_optional(declared_type: Any) -> Any:
    """`X | None` -> `X`. Other unions are returned unchanged."""
    if get_origin(declared_type) in (Union, types.UnionType):
        args = [arg for arg in get_args(declared_type) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return declared_type


def is_collection_type(declared_type: Any) -> bool:
    """True for iterable container types other than text, bytes and mappings."""
    target = unwrap_optional(declared_type)
    origin = get_origin(target) or target
    if not isinstance(origin, type):
        return False
    if issubclass(origin, (str, bytes, bytearray, Mapping)):
        return False
    return issubclass(origin, Iterable)


def is_datetime_type(declared_type: Any) -> bool:
    target = unwrap_optional(declared_type)
    return isinstance(target, type) and issubclass(target, datetime)


def _is_class_var(hint: Any) -> bool:
    return hint is ClassVar or get_origin(hint) is ClassVar


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable forward references: keep the names, lose the types.
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            try:
                hints.update(inspect.get_annotations(klass))
            except (NameError, TypeError):
                continue
        return hints


def _return_type(fget: Any) -> Any:
    try:
        return get_type_hints(fget).get("return", Any)
    except (NameError, TypeError):
        return Any
