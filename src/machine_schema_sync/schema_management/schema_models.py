"""Schema management entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

PRIMITIVE_FIELD_TYPES = frozenset({"string", "int", "boolean", "array[string]"})


@dataclass(frozen=True)
class SchemaReference:
    """Typed reference from a field to another schema object."""

    schema_id: str
    role: str = "embedded"

    def __str__(self) -> str:
        return self.schema_id


FieldType = str | SchemaReference


@dataclass(frozen=True)
class FieldDescriptor:
    """One resource field of a schema."""

    type: FieldType
    create: bool = True
    update: bool = True
    nullable: bool = True
    description: str | None = None
    default: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "create": self.create,
            "update": self.update,
            "nullable": self.nullable,
            "type": str(self.type),
        }
        if self.description:
            data["description"] = self.description
        if self.default is not None:
            data["default"] = self.default
        return data

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> FieldDescriptor:
        raw_type = str(data.get("type", "string"))
        field_type: FieldType = (
            raw_type if raw_type in PRIMITIVE_FIELD_TYPES else SchemaReference(raw_type)
        )
        return FieldDescriptor(
            type=field_type,
            create=bool(data.get("create", False)),
            update=bool(data.get("update", False)),
            nullable=bool(data.get("nullable", False)),
            description=data.get("description"),
            default=data.get("default"),
        )


@dataclass(frozen=True)
class OwnerReference:
    """Back-reference from a schema object to the resource that owns it."""

    uid: str
    kind: str
    api_version: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {
            "uid": self.uid,
            "kind": self.kind,
            "apiVersion": self.api_version,
            "name": self.name,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> OwnerReference:
        return OwnerReference(
            uid=str(data.get("uid", "")),
            kind=str(data.get("kind", "")),
            api_version=str(data.get("apiVersion", "")),
            name=str(data.get("name", "")),
        )


@dataclass(frozen=True)
class DynamicSchema:  # pylint: disable=too-many-instance-attributes
    """Schema object persisted in the schema store.

    Instances are immutable; mutations produce a copy through ``with_field`` or
    ``without_field`` so that a value read from a store can never be changed
    behind the store's back.
    """

    name: str
    resource_fields: Mapping[str, FieldDescriptor] = field(default_factory=dict)
    embed: bool = False
    embed_type: str = ""
    labels: Mapping[str, str] = field(default_factory=dict)
    owner_references: tuple[OwnerReference, ...] = ()
    resource_version: int = 0

    def has_field(self, field_name: str) -> bool:
        return field_name in self.resource_fields

    def with_field(self, field_name: str, descriptor: FieldDescriptor) -> DynamicSchema:
        fields = dict(self.resource_fields)
        fields[field_name] = descriptor
        return replace(self, resource_fields=fields)

    def without_field(self, field_name: str) -> DynamicSchema:
        fields = {key: value for key, value in self.resource_fields.items() if key != field_name}
        return replace(self, resource_fields=fields)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "resourceFields": {
                key: descriptor.to_dict() for key, descriptor in self.resource_fields.items()
            },
            "embed": self.embed,
            "embedType": self.embed_type,
            "labels": dict(self.labels),
            "ownerReferences": [owner.to_dict() for owner in self.owner_references],
            "resourceVersion": self.resource_version,
        }
        return data

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> DynamicSchema:
        raw_fields = data.get("resourceFields") or {}
        return DynamicSchema(
            name=str(data["name"]),
            resource_fields={
                str(key): FieldDescriptor.from_dict(value) for key, value in raw_fields.items()
            },
            embed=bool(data.get("embed", False)),
            embed_type=str(data.get("embedType") or ""),
            labels={str(key): str(value) for key, value in (data.get("labels") or {}).items()},
            owner_references=tuple(
                OwnerReference.from_dict(item) for item in data.get("ownerReferences") or ()
            ),
            resource_version=int(data.get("resourceVersion", 0)),
        )


@dataclass(frozen=True)
class ParentSchemaTarget:
    """A parent schema identifier and the logical type it augments."""

    schema_id: str
    embed_type: str


MACHINE_CONFIG = ParentSchemaTarget(schema_id="machineconfig", embed_type="machine")
MACHINE_TEMPLATE_CONFIG = ParentSchemaTarget(
    schema_id="machinetemplateconfig", embed_type="machineTemplate"
)
PARENT_SCHEMA_TARGETS: tuple[ParentSchemaTarget, ...] = (MACHINE_CONFIG, MACHINE_TEMPLATE_CONFIG)
