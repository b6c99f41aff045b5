"""Schema store persisted to a YAML document on disk."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml

from .schema_models import DynamicSchema
from .schema_store import InMemorySchemaStore, SchemaStoreError


class YamlSchemaStore(InMemorySchemaStore):
    """Schema store that rewrites a YAML file after every successful write."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        super().__init__(_load_schemas(self._path))

    @property
    def path(self) -> Path:
        return self._path

    def _persist(self, schemas: Mapping[str, DynamicSchema]) -> None:
        document = {
            "schemas": [schema.to_dict() for _, schema in sorted(schemas.items())],
        }
        temporary = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temporary.write_text(yaml.safe_dump(document, sort_keys=False), encoding="utf-8")
            temporary.replace(self._path)
        except (OSError, yaml.YAMLError) as exc:
            raise SchemaStoreError(
                f"Failed to write schema store file {self._path}: {exc}"
            ) from exc


def _load_schemas(path: Path) -> dict[str, DynamicSchema]:
    if not path.exists():
        return {}
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SchemaStoreError(f"Failed to parse schema store file {path}: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, Mapping):
        raise SchemaStoreError(f"Schema store file {path} must contain a mapping.")
    entries = parsed.get("schemas") or []
    if not isinstance(entries, list):
        raise SchemaStoreError(f"Schema store file {path}: 'schemas' must be a list.")
    schemas: dict[str, DynamicSchema] = {}
    for entry in entries:
        if not isinstance(entry, Mapping) or "name" not in entry:
            raise SchemaStoreError(f"Schema store file {path}: every schema needs a name.")
        schema = DynamicSchema.from_dict(entry)
        if schema.name in schemas:
            raise SchemaStoreError(f"Schema store file {path}: duplicate schema {schema.name}")
        schemas[schema.name] = schema
    return schemas
