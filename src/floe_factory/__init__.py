"""Declarative test-fixture factories for floe-runtime.

This package builds realistic records from named factory definitions:
- catalog: FactoryCatalog registry and the create_catalog() entry point
- dsl: FactoryDSL declaration surface (attributes, sequences, traits, associations)
- builder: Definition and the Builder that resolves and persists records
- fake: Faker-backed fake-data provider
- persistence: persistence protocol, in-memory repository, Pydantic structs
- schema: Relation schema models

Example:
    >>> from floe_factory import AssociationSpec, Relation, Schema, create_catalog
    >>>
    >>> schema = Schema.from_relations(
    ...     Relation(name="groups", attributes=("id", "name")),
    ...     Relation(
    ...         name="users",
    ...         attributes=("id", "name", "email", "login"),
    ...         associations={"group": AssociationSpec(name="group", target="groups")},
    ...     ),
    ... )
    >>> catalog = create_catalog(schema)
    >>>
    >>> @catalog.define("groups")
    ... def group(f):
    ...     f.attribute("name", "admins")
    >>>
    >>> @catalog.define("user", relation="users")
    ... def user(f):
    ...     f.attribute("name", "Alice")
    ...     f.attribute("email", computed=lambda ctx: ctx.fake("internet", "email"))
    ...     f.sequence("login", lambda n: f"user{n}")
    ...     f.association("group")
    >>>
    >>> alice = catalog.build("user")
    >>> bob = catalog.build("user", name="Bob")
"""

from __future__ import annotations

__version__ = "0.1.0"

from floe_factory.attributes import (
    Association,
    Computed,
    Producer,
    SequenceComputed,
    StaticValue,
)
from floe_factory.builder import Builder, Definition, Strategy
from floe_factory.catalog import FactoryCatalog, create_catalog
from floe_factory.config import FactorySettings
from floe_factory.context import EvaluationContext
from floe_factory.dsl import FactoryDSL
from floe_factory.errors import (
    AmbiguousRelationError,
    DuplicateFactoryError,
    FactoryError,
    FakeDataError,
    MultiplicityError,
    UnknownAssociationError,
    UnknownAttributeError,
    UnknownAttributeReferenceError,
    UnknownFactoryError,
    UnknownTraitError,
)
from floe_factory.fake import FakeDataProvider, ProviderCache
from floe_factory.observability import configure_logging
from floe_factory.persistence import InMemoryRepository, Persistence, StructFactory
from floe_factory.registry import AttributeRegistry
from floe_factory.schema import AssociationSpec, Multiplicity, Relation, Schema
from floe_factory.sequence import Sequence

__all__ = [
    "__version__",
    # Catalog
    "FactoryCatalog",
    "create_catalog",
    "FactorySettings",
    # Definitions
    "FactoryDSL",
    "Definition",
    "Builder",
    "Strategy",
    "EvaluationContext",
    "AttributeRegistry",
    "Sequence",
    # Producers
    "Producer",
    "StaticValue",
    "Computed",
    "SequenceComputed",
    "Association",
    # Collaborators
    "FakeDataProvider",
    "ProviderCache",
    "Persistence",
    "InMemoryRepository",
    "StructFactory",
    "Schema",
    "Relation",
    "AssociationSpec",
    "Multiplicity",
    "configure_logging",
    # Errors
    "FactoryError",
    "UnknownTraitError",
    "MultiplicityError",
    "AmbiguousRelationError",
    "UnknownFactoryError",
    "UnknownAttributeReferenceError",
    "UnknownAssociationError",
    "UnknownAttributeError",
    "DuplicateFactoryError",
    "FakeDataError",
]
