"""Embedding of driver sub-schemas into the parent machine schemas."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from .schema_models import (
    PARENT_SCHEMA_TARGETS,
    DynamicSchema,
    FieldDescriptor,
    ParentSchemaTarget,
    SchemaReference,
)
from .schema_store import SchemaNotFoundError, SchemaStore

logger = logging.getLogger(__name__)


class SchemaLockRegistry:
    """Exclusive locks guarding parent schema read-modify-write sequences.

    With ``per_schema=True`` each parent schema id gets its own lock, so
    reconcilers sharing a registry only serialize when their parent sets
    overlap. With ``per_schema=False`` every id maps to one shared lock.
    """

    def __init__(self, *, per_schema: bool = True) -> None:
        self._per_schema = per_schema
        self._guard = threading.Lock()
        self._shared = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    @property
    def per_schema(self) -> bool:
        return self._per_schema

    def lock_for(self, schema_id: str) -> threading.Lock:
        if not self._per_schema:
            return self._shared
        with self._guard:
            lock = self._locks.get(schema_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[schema_id] = lock
            return lock

    @contextmanager
    def holding(self, schema_ids: Sequence[str]) -> Iterator[None]:
        """Hold the locks for all ``schema_ids``, acquired in sorted order."""
        locks: list[threading.Lock] = []
        for schema_id in sorted(set(schema_ids)):
            lock = self.lock_for(schema_id)
            if not any(held is lock for held in locks):
                locks.append(lock)
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()


class EmbeddingReconciler:
    """Keep each parent schema's embedded driver field in the desired state."""

    def __init__(
        self,
        schema_store: SchemaStore,
        *,
        locks: SchemaLockRegistry | None = None,
        parents: Sequence[ParentSchemaTarget] = PARENT_SCHEMA_TARGETS,
    ) -> None:
        self._store = schema_store
        self._locks = locks or SchemaLockRegistry()
        self._parents = tuple(parents)

    @property
    def parents(self) -> tuple[ParentSchemaTarget, ...]:
        return self._parents

    def set_embedding(self, sub_schema_name: str, field_name: str, embedded: bool) -> None:
        """Add or retract ``field_name`` on every parent schema.

        Parents are reconciled in order and the first store error aborts the
        call. The locks of every parent are held until the last parent is done,
        so concurrent calls never leave the parents disagreeing.
        """
        reference = SchemaReference(schema_id=sub_schema_name)
        with self._locks.holding([parent.schema_id for parent in self._parents]):
            for parent in self._parents:
                self._reconcile_parent(parent, reference, field_name, embedded)

    def _reconcile_parent(
        self,
        parent: ParentSchemaTarget,
        reference: SchemaReference,
        field_name: str,
        embedded: bool,
    ) -> None:
        try:
            schema = self._store.get(parent.schema_id)
        except SchemaNotFoundError:
            self._create_parent(parent, reference, field_name, embedded)
            return

        if embedded and not schema.has_field(field_name):
            logger.info("adding %s to %s schema", field_name, parent.schema_id)
            self._store.update(
                schema.with_field(
                    field_name,
                    FieldDescriptor(type=reference, create=True, update=True, nullable=True),
                )
            )
        elif not embedded and schema.has_field(field_name):
            logger.info("removing %s from %s schema", field_name, parent.schema_id)
            self._store.update(schema.without_field(field_name))

    def _create_parent(
        self,
        parent: ParentSchemaTarget,
        reference: SchemaReference,
        field_name: str,
        embedded: bool,
    ) -> None:
        fields: dict[str, FieldDescriptor] = {}
        if embedded:
            # A freshly created parent gets a create-only field; later inserts are updatable.
            fields[field_name] = FieldDescriptor(
                type=reference, create=True, update=False, nullable=True
            )
        logger.info("creating %s schema for %s", parent.schema_id, parent.embed_type)
        self._store.create(
            DynamicSchema(
                name=parent.schema_id,
                resource_fields=fields,
                embed=True,
                embed_type=parent.embed_type,
            )
        )
