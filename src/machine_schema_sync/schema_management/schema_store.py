"""Schema store contract and in-memory implementation."""

from __future__ import annotations

import builtins
import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import Protocol

from .schema_models import DynamicSchema


class SchemaStoreError(Exception):
    """Raised for schema store failures."""


class SchemaNotFoundError(SchemaStoreError):
    """Raised when the requested schema object does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Schema not found: {name}")
        self.name = name


class SchemaAlreadyExistsError(SchemaStoreError):
    """Raised when creating a schema object whose name is taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Schema already exists: {name}")
        self.name = name


class SchemaConflictError(SchemaStoreError):
    """Raised when an update carries a stale resource version."""

    def __init__(self, name: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Schema {name} was modified concurrently "
            f"(resource version {expected}, stored {actual})"
        )
        self.name = name


class SchemaStore(Protocol):
    """Strongly consistent store of schema objects."""

    def get(self, name: str) -> DynamicSchema: ...

    def create(self, schema: DynamicSchema) -> DynamicSchema: ...

    def update(self, schema: DynamicSchema) -> DynamicSchema: ...

    def delete(self, name: str) -> None: ...

    def list(self, label_selector: str = "") -> builtins.list[DynamicSchema]: ...


def parse_label_selector(selector: str) -> dict[str, str]:
    """Parse an equality-based label selector such as ``a=b,c=d``."""
    requirements: dict[str, str] = {}
    for clause in selector.split(","):
        clause = clause.strip()
        if not clause:
            continue
        key, separator, value = clause.partition("=")
        key = key.strip()
        if not separator or not key:
            raise SchemaStoreError(f"Invalid label selector clause: {clause!r}")
        requirements[key] = value.strip().lstrip("=").strip()
    return requirements


def matches_labels(labels: Mapping[str, str], requirements: Mapping[str, str]) -> bool:
    return all(labels.get(key) == value for key, value in requirements.items())


class InMemorySchemaStore:
    """Thread-safe schema store kept in process memory."""

    def __init__(self, schemas: Mapping[str, DynamicSchema] | None = None) -> None:
        self._lock = threading.Lock()
        self._schemas: dict[str, DynamicSchema] = dict(schemas or {})

    def get(self, name: str) -> DynamicSchema:
        with self._lock:
            try:
                return self._schemas[name]
            except KeyError as exc:
                raise SchemaNotFoundError(name) from exc

    def create(self, schema: DynamicSchema) -> DynamicSchema:
        with self._lock:
            if schema.name in self._schemas:
                raise SchemaAlreadyExistsError(schema.name)
            stored = replace(schema, resource_version=1)
            self._commit({**self._schemas, schema.name: stored})
            return stored

    def update(self, schema: DynamicSchema) -> DynamicSchema:
        with self._lock:
            current = self._schemas.get(schema.name)
            if current is None:
                raise SchemaNotFoundError(schema.name)
            if current.resource_version != schema.resource_version:
                raise SchemaConflictError(
                    schema.name, schema.resource_version, current.resource_version
                )
            stored = replace(schema, resource_version=current.resource_version + 1)
            self._commit({**self._schemas, schema.name: stored})
            return stored

    def delete(self, name: str) -> None:
        with self._lock:
            if name not in self._schemas:
                raise SchemaNotFoundError(name)
            self._commit({key: value for key, value in self._schemas.items() if key != name})

    def list(self, label_selector: str = "") -> builtins.list[DynamicSchema]:
        requirements = parse_label_selector(label_selector)
        with self._lock:
            return [
                schema
                for _, schema in sorted(self._schemas.items())
                if matches_labels(schema.labels, requirements)
            ]

    def _commit(self, schemas: dict[str, DynamicSchema]) -> None:
        # Memory only changes once the new state has been persisted.
        self._persist(schemas)
        self._schemas = schemas

    def _persist(self, schemas: Mapping[str, DynamicSchema]) -> None:
        """Hook for subclasses that mirror the store elsewhere; called under the lock."""
