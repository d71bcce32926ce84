"""Factory catalog.

The catalog maps factory names to finalized definitions, builds records by
name, and resolves association targets by relation. It owns the
collaborators shared by every factory it holds: the relation schema, the
persistence adapter, the struct factory and the fake-data provider.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel

from floe_factory.builder import Builder, Definition
from floe_factory.config import FactorySettings
from floe_factory.dsl import FactoryDSL
from floe_factory.errors import AmbiguousRelationError, DuplicateFactoryError, UnknownFactoryError
from floe_factory.fake import FakeDataProvider
from floe_factory.observability import configure_logging
from floe_factory.persistence import InMemoryRepository, Persistence, StructFactory
from floe_factory.schema import Schema

logger = structlog.get_logger(__name__)


class FactoryCatalog:
    """Registry of named factory definitions.

    Registration and lookup are mutually exclusive, so factories may be
    defined while other threads build records.

    Example:
        >>> catalog = FactoryCatalog(schema)
        >>> @catalog.define("user", relation="users")
        ... def user(f):
        ...     f.attribute("name", "Alice")
        ...     f.sequence("login", lambda n: f"user{n}")
        >>> catalog.build("user").name
        'Alice'
        >>> catalog.build("user", name="Bob").name
        'Bob'
    """

    def __init__(
        self,
        schema: Schema,
        *,
        persistence: Persistence | None = None,
        structs: StructFactory | None = None,
        fake_data: FakeDataProvider | None = None,
        settings: FactorySettings | None = None,
    ) -> None:
        self.settings = settings or FactorySettings()
        self.schema = schema
        self.persistence = persistence if persistence is not None else InMemoryRepository()
        self.structs = structs or StructFactory()
        self.fake_data = fake_data or FakeDataProvider(
            locale=self.settings.faker_locale,
            seed=self.settings.faker_seed,
        )
        self.builder = Builder(
            persistence=self.persistence,
            structs=self.structs,
            fake=self.fake_data.fake,
            create=self.build,
        )
        self._definitions: dict[str, Definition] = {}
        self._lock = threading.RLock()

    def define(
        self,
        name: str,
        *,
        relation: str | None = None,
        parent: str | None = None,
        body: Callable[[FactoryDSL], Any] | None = None,
    ) -> Any:
        """Define and register a factory.

        Args:
            name: Factory name.
            relation: Target relation. Defaults to the parent's relation,
                or to ``name``.
            parent: Factory whose attributes and traits are inherited.
            body: Callback declaring the factory. Omit it to use the method
                as a decorator.

        Returns:
            The registered Definition, or a decorator when ``body`` is omitted.

        Raises:
            DuplicateFactoryError: If ``name`` is already registered.
            UnknownFactoryError: If ``parent`` is not registered.
        """
        if body is None:

            def decorator(fn: Callable[[FactoryDSL], Any]) -> Callable[[FactoryDSL], Any]:
                self.define(name, relation=relation, parent=parent, body=fn)
                return fn

            return decorator

        parent_definition = self[parent] if parent else None
        relation_name = relation or (parent_definition.relation.name if parent_definition else name)

        dsl = FactoryDSL(
            name,
            relation=self.schema[relation_name],
            catalog=self,
            attributes=parent_definition.attributes if parent_definition else None,
            traits=parent_definition.traits if parent_definition else None,
            strict=self.settings.strict_attribute_names,
        )
        body(dsl)
        definition = dsl.finalize()
        self.register(name, definition)
        return definition

    def register(self, name: str, definition: Definition) -> None:
        """Register a finalized definition under ``name``.

        Raises:
            DuplicateFactoryError: If ``name`` is already registered.
        """
        with self._lock:
            if name in self._definitions:
                raise DuplicateFactoryError(name)
            self._definitions[name] = definition

        logger.info(
            "factory_registered",
            factory=name,
            relation=definition.relation.name,
            traits=definition.trait_names(),
        )

    def build(self, name: str, *traits: str, **overrides: Any) -> BaseModel:
        """Build and persist one record from the named factory.

        Example:
            >>> catalog.build("user", "admin", name="Bob")
        """
        return self.builder.build(self[name], traits, overrides)

    def build_many(self, name: str, count: int, *traits: str, **overrides: Any) -> list[BaseModel]:
        """Build and persist ``count`` records from the named factory."""
        definition = self[name]
        records = [self.builder.build(definition, traits, overrides) for _ in range(count)]
        logger.info("records_built", factory=name, count=count)
        return records

    def struct(self, name: str, *traits: str, **overrides: Any) -> BaseModel:
        """Build one record without persisting it."""
        return self.builder.struct(self[name], traits, overrides)

    def attributes_for(self, name: str, *traits: str, **overrides: Any) -> dict[str, Any]:
        """Resolve the attributes of one record without persisting it."""
        return self.builder.attributes(self[name], traits, overrides)

    def fake(self, *request: str, unique: bool = False, **options: Any) -> Any:
        """Generate a value through the catalog's fake-data provider."""
        return self.fake_data.fake(*request, unique=unique, **options)

    def for_relation(self, relation: str, *, factory: str | None = None) -> Definition:
        """Return the definition building records for ``relation``.

        An explicitly named factory wins, provided it targets ``relation``.
        Otherwise the single factory targeting the relation is used; when
        several do, the one named exactly like the relation is used.

        Raises:
            UnknownFactoryError: If no factory targets the relation, or the
                named factory targets another relation.
            AmbiguousRelationError: If several do and none is selected.
        """
        with self._lock:
            candidates = [d for d in self._definitions.values() if d.relation.name == relation]
            if factory is not None:
                definition = self[factory]
                if definition.relation.name != relation:
                    raise UnknownFactoryError(
                        factory,
                        [d.name for d in candidates],
                        target=relation,
                    )
                return definition

            if not candidates:
                raise UnknownFactoryError(relation, self.names(), relation=True)
            if len(candidates) == 1:
                return candidates[0]

            named = [d for d in candidates if d.name == relation]
            if len(named) == 1:
                return named[0]
            raise AmbiguousRelationError(relation, [d.name for d in candidates])

    def names(self) -> list[str]:
        with self._lock:
            return list(self._definitions)

    def reset(self) -> None:
        """Forget every registered definition."""
        with self._lock:
            self._definitions.clear()

    def __getitem__(self, name: str) -> Definition:
        with self._lock:
            try:
                return self._definitions[name]
            except KeyError:
                raise UnknownFactoryError(name, list(self._definitions)) from None

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._definitions

    def __len__(self) -> int:
        with self._lock:
            return len(self._definitions)


def create_catalog(
    schema: Schema,
    *,
    persistence: Persistence | None = None,
    struct_namespace: Mapping[str, type[BaseModel]] | None = None,
    settings: FactorySettings | None = None,
    configure_logs: bool = False,
) -> FactoryCatalog:
    """Create a factory catalog from settings.

    This is the primary entry point. Settings default to FactorySettings(),
    which reads FLOE_FACTORY_* environment variables.

    Args:
        schema: Relation schema factories are defined against.
        persistence: Persistence adapter (InMemoryRepository by default).
        struct_namespace: Struct models by relation name.
        settings: Catalog settings.
        configure_logs: Configure structlog from the settings log_level and json_logs.

    Returns:
        FactoryCatalog: Empty catalog ready for ``define``.

    Example:
        >>> catalog = create_catalog(schema, settings=FactorySettings(faker_seed=42))
    """
    settings = settings or FactorySettings()
    if configure_logs:
        configure_logging(log_level=settings.log_level, json_format=settings.json_logs)

    catalog = FactoryCatalog(
        schema,
        persistence=persistence,
        structs=StructFactory(struct_namespace),
        settings=settings,
    )
    logger.debug(
        "catalog_created",
        relations=schema.names(),
        faker_locale=settings.faker_locale,
        strict_attribute_names=settings.strict_attribute_names,
    )
    return catalog
