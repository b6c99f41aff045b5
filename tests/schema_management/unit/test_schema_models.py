"""Schema entity tests."""

from __future__ import annotations

from machine_schema_sync.schema_management.schema_models import (
    DynamicSchema,
    FieldDescriptor,
    SchemaReference,
)


def test_field_descriptor_serializes_reference_as_schema_id() -> None:
    descriptor = FieldDescriptor(type=SchemaReference("fooconfig"), update=False)

    assert descriptor.to_dict() == {
        "create": True,
        "update": False,
        "nullable": True,
        "type": "fooconfig",
    }


def test_field_descriptor_from_dict_distinguishes_primitives_from_references() -> None:
    primitive = FieldDescriptor.from_dict({"type": "array[string]", "create": True})
    reference = FieldDescriptor.from_dict({"type": "fooconfig", "nullable": True})

    assert primitive.type == "array[string]"
    assert reference.type == SchemaReference("fooconfig")
    assert reference.update is False


def test_schema_mutators_return_copies() -> None:
    schema = DynamicSchema(name="machineconfig", embed=True, embed_type="machine")

    with_field = schema.with_field("fooConfig", FieldDescriptor(type=SchemaReference("fooconfig")))
    without_field = with_field.without_field("fooConfig")

    assert not schema.has_field("fooConfig")
    assert with_field.has_field("fooConfig")
    assert not without_field.has_field("fooConfig")
    assert without_field.embed_type == "machine"


def test_schema_round_trips_through_persisted_layout() -> None:
    data = {
        "name": "machinetemplateconfig",
        "resourceFields": {
            "fooConfig": {"create": True, "update": True, "nullable": True, "type": "fooconfig"}
        },
        "embed": True,
        "embedType": "machineTemplate",
        "labels": {},
        "ownerReferences": [],
        "resourceVersion": 3,
    }

    assert DynamicSchema.from_dict(data).to_dict() == data
