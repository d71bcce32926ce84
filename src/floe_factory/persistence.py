"""Persistence and struct construction for built records.

This module provides:
- Persistence: protocol for storing a resolved attribute mapping
- InMemoryRepository: Persistence keeping rows in memory, exportable to PyArrow
- StructFactory: wraps attribute mappings into frozen Pydantic models
"""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import pyarrow as pa
import structlog
from pydantic import BaseModel, ConfigDict, create_model

from floe_factory.schema import Relation

logger = structlog.get_logger(__name__)


@runtime_checkable
class Persistence(Protocol):
    """Stores a resolved record and returns the stored attributes.

    Errors raised by implementations propagate unchanged to the caller
    of ``build``.
    """

    def persist(self, relation: Relation, attributes: Mapping[str, Any]) -> dict[str, Any]:
        """Store ``attributes`` as a record of ``relation``.

        Args:
            relation: Target relation.
            attributes: Resolved attribute mapping, in resolution order.

        Returns:
            The stored attributes, including generated keys.
        """
        ...


class InMemoryRepository:
    """Persistence keeping rows per relation in memory.

    Missing primary keys are assigned from a per-relation auto-increment
    counter starting at 1.

    Example:
        >>> repository = InMemoryRepository()
        >>> catalog = create_catalog(schema, persistence=repository)
        >>> catalog.build_many("user", 100)
        >>> table = repository.to_arrow("users")
    """

    def __init__(self) -> None:
        self._rows: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self._relations: dict[str, Relation] = {}
        self._next_ids: dict[str, int] = defaultdict(lambda: 1)
        self._lock = threading.Lock()

    def persist(self, relation: Relation, attributes: Mapping[str, Any]) -> dict[str, Any]:
        row = dict(attributes)
        with self._lock:
            key = relation.primary_key
            if key and row.get(key) is None:
                row[key] = self._next_ids[relation.name]
            if key and isinstance(row[key], int):
                self._next_ids[relation.name] = max(self._next_ids[relation.name], row[key] + 1)
            self._relations[relation.name] = relation
            self._rows[relation.name].append(row)

        logger.debug(
            "record_persisted",
            relation=relation.name,
            primary_key=row.get(key) if key else None,
        )
        return dict(row)

    def rows(self, relation_name: str) -> list[dict[str, Any]]:
        """Return copies of the stored rows of a relation."""
        return [dict(row) for row in self._rows.get(relation_name, [])]

    def count(self, relation_name: str) -> int:
        return len(self._rows.get(relation_name, []))

    def to_arrow(self, relation_name: str) -> pa.Table:
        """Export the stored rows of a relation as a PyArrow table.

        Only schema attributes become columns; association values are left out.

        Args:
            relation_name: Relation to export.

        Returns:
            PyArrow Table with one row per stored record.
        """
        relation = self._relations.get(relation_name)
        rows = self._rows.get(relation_name, [])
        if relation is None:
            return pa.table({})

        columns = [name for name in relation.attributes if any(name in row for row in rows)]
        return pa.Table.from_pylist([{name: row.get(name) for name in columns} for row in rows])

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
            self._relations.clear()
            self._next_ids.clear()


class StructFactory:
    """Build frozen Pydantic structs from attribute mappings.

    A model class is generated once per relation, with one optional field
    per schema attribute and association. A struct namespace maps relation
    names to caller-supplied models that take precedence.

    Example:
        >>> structs = StructFactory(namespace={"users": User})
        >>> user = structs(schema["users"], {"id": 1, "name": "Jane"})
    """

    def __init__(self, namespace: Mapping[str, type[BaseModel]] | None = None) -> None:
        self.namespace: dict[str, type[BaseModel]] = dict(namespace or {})
        self._models: dict[str, type[BaseModel]] = {}
        self._lock = threading.Lock()

    def __call__(self, relation: Relation, attributes: Mapping[str, Any]) -> BaseModel:
        return self.model_for(relation)(**attributes)

    def model_for(self, relation: Relation) -> type[BaseModel]:
        """Return the struct model for a relation, generating it on first use."""
        if relation.name in self.namespace:
            return self.namespace[relation.name]

        with self._lock:
            if relation.name not in self._models:
                self._models[relation.name] = _generate_model(relation)
            return self._models[relation.name]


def _generate_model(relation: Relation) -> type[BaseModel]:
    fields: dict[str, Any] = {name: (Any, None) for name in relation.attributes}
    for name in relation.associations:
        fields.setdefault(name, (Any, None))

    return create_model(
        _model_name(relation.name),
        __config__=ConfigDict(frozen=True, extra="allow", arbitrary_types_allowed=True),
        **fields,
    )


def _model_name(relation_name: str) -> str:
    return "".join(part.capitalize() for part in relation_name.split("_") if part) or "Struct"
