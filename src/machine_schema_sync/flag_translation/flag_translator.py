"""Translation of driver flags into schema resource fields."""

from __future__ import annotations

import re
from collections.abc import Iterable

from machine_schema_sync.schema_management.schema_models import FieldDescriptor

from .flag_models import DriverFlag

_NAME_SEPARATORS = re.compile(r"[-_]+")


class FlagTranslationError(Exception):
    """Raised when a flag cannot be expressed as a resource field."""


def translate_flags(flags: Iterable[DriverFlag]) -> dict[str, FieldDescriptor]:
    """Translate every flag or fail without returning a partial field set."""
    resource_fields: dict[str, FieldDescriptor] = {}
    for flag in flags:
        name, descriptor = flag_to_field(flag)
        if name in resource_fields:
            raise FlagTranslationError(f"Duplicate field {name} derived from flag {flag.name}")
        resource_fields[name] = descriptor
    return resource_fields


def flag_to_field(flag: DriverFlag) -> tuple[str, FieldDescriptor]:
    """Map one driver flag to its field name and descriptor."""
    name = to_lower_camel_case(flag.name)
    description = flag.usage or None

    if flag.kind == "string":
        field_type, default = "string", _string_default(flag)
    elif flag.kind == "int":
        field_type, default = "int", _int_default(flag)
    elif flag.kind == "bool":
        field_type, default = "boolean", None
    elif flag.kind == "bool_true":
        field_type, default = "boolean", True
    elif flag.kind == "string_slice":
        field_type, default = "array[string]", _string_slice_default(flag)
    else:
        raise FlagTranslationError(f"Unknown type of flag {flag.name}: {flag.kind}")

    return name, FieldDescriptor(
        type=field_type,
        create=True,
        update=True,
        nullable=True,
        description=description,
        default=default,
    )


def to_lower_camel_case(flag_name: str) -> str:
    """Convert ``--amazonec2-access-key`` style names to ``amazonec2AccessKey``."""
    parts = [part for part in _NAME_SEPARATORS.split(flag_name.strip().lstrip("-")) if part]
    if not parts:
        raise FlagTranslationError(f"Flag name {flag_name!r} has no usable characters")
    head, *tail = parts
    return head.lower() + "".join(part[:1].upper() + part[1:].lower() for part in tail)


def _string_default(flag: DriverFlag) -> str | None:
    if flag.value is None or flag.value == "":
        return None
    if not isinstance(flag.value, str):
        raise FlagTranslationError(f"String flag {flag.name} has non-string default")
    return flag.value


def _int_default(flag: DriverFlag) -> int | None:
    if flag.value is None:
        return None
    if isinstance(flag.value, bool) or not isinstance(flag.value, int):
        raise FlagTranslationError(f"Int flag {flag.name} has non-integer default")
    return flag.value


def _string_slice_default(flag: DriverFlag) -> list[str] | None:
    if flag.value is None:
        return None
    if not isinstance(flag.value, list) or not all(isinstance(v, str) for v in flag.value):
        raise FlagTranslationError(f"String slice flag {flag.name} has non-list default")
    return list(flag.value) or None
