"""Schema management exports."""

from .embedding_reconciler import EmbeddingReconciler, SchemaLockRegistry
from .schema_models import (
    MACHINE_CONFIG,
    MACHINE_TEMPLATE_CONFIG,
    PARENT_SCHEMA_TARGETS,
    DynamicSchema,
    FieldDescriptor,
    OwnerReference,
    ParentSchemaTarget,
    SchemaReference,
)
from .schema_store import (
    InMemorySchemaStore,
    SchemaAlreadyExistsError,
    SchemaConflictError,
    SchemaNotFoundError,
    SchemaStore,
    SchemaStoreError,
)
from .yaml_schema_store import YamlSchemaStore

__all__ = [
    "DynamicSchema",
    "EmbeddingReconciler",
    "FieldDescriptor",
    "InMemorySchemaStore",
    "MACHINE_CONFIG",
    "MACHINE_TEMPLATE_CONFIG",
    "OwnerReference",
    "PARENT_SCHEMA_TARGETS",
    "ParentSchemaTarget",
    "SchemaAlreadyExistsError",
    "SchemaConflictError",
    "SchemaLockRegistry",
    "SchemaNotFoundError",
    "SchemaReference",
    "SchemaStore",
    "SchemaStoreError",
    "YamlSchemaStore",
]
