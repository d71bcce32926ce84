"""Factory definitions and the builder that materializes them.

A Definition is the finalized (attribute registry, trait table) pair of one
named factory. The Builder resolves a definition into concrete values and
hands them to the persistence and struct collaborators.

Resolution order is the effective registry's order: base attributes, then
each requested trait in the order given, then call-time overrides. A
computed attribute only sees attributes resolved before it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel

from floe_factory.attributes import StaticValue
from floe_factory.context import EvaluationContext
from floe_factory.errors import UnknownTraitError
from floe_factory.observability import span
from floe_factory.persistence import Persistence, StructFactory
from floe_factory.registry import AttributeRegistry
from floe_factory.schema import Relation
from floe_factory.sequence import Sequence

logger = structlog.get_logger(__name__)


class Strategy(str, Enum):
    """How a record (and its associations) is materialized."""

    CREATE = "create"  # persisted, wrapped in a struct
    STRUCT = "struct"  # struct only, nothing persisted
    ATTRIBUTES = "attributes"  # plain mapping


class Definition:
    """Finalized attributes and traits of one named factory.

    Attributes:
        name: Factory name.
        relation: Relation the factory builds records for.
    """

    def __init__(
        self,
        name: str,
        relation: Relation,
        attributes: AttributeRegistry,
        traits: Mapping[str, AttributeRegistry] | None = None,
    ) -> None:
        self.name = name
        self.relation = relation
        self._attributes = attributes.copy()
        self._traits = {trait: registry.copy() for trait, registry in (traits or {}).items()}
        self.struct_ids = Sequence(f"{name}.{relation.primary_key}")

    @property
    def attributes(self) -> AttributeRegistry:
        """A copy of the base attribute registry."""
        return self._attributes.copy()

    @property
    def traits(self) -> dict[str, AttributeRegistry]:
        """A copy of the trait table."""
        return {trait: registry.copy() for trait, registry in self._traits.items()}

    def trait_names(self) -> list[str]:
        return list(self._traits)

    def trait(self, name: str) -> AttributeRegistry:
        """Return a copy of one trait's registry.

        Raises:
            UnknownTraitError: If the trait is not declared.
        """
        if name not in self._traits:
            raise UnknownTraitError(name, self.trait_names(), factory=self.name)
        return self._traits[name].copy()

    def registry_for(
        self,
        traits: Iterable[str] = (),
        overrides: Mapping[str, Any] | None = None,
    ) -> AttributeRegistry:
        """Compute the effective registry for one build.

        Args:
            traits: Requested traits, applied in order.
            overrides: Literal values replacing same-named producers.

        Returns:
            A new registry; the definition itself is left untouched.
        """
        registry = self._attributes.copy()
        for trait in traits:
            registry = registry.combine(self.trait(trait))
        for name, value in (overrides or {}).items():
            registry.append(StaticValue(name, value))
        return registry

    def __repr__(self) -> str:
        return f"Definition(name={self.name!r}, relation={self.relation.name!r})"


class Builder:
    """Materializes definitions into records.

    Example:
        >>> builder = Builder(
        ...     persistence=InMemoryRepository(),
        ...     structs=StructFactory(),
        ...     fake=FakeDataProvider().fake,
        ...     create=catalog.build,
        ... )
        >>> user = builder.build(definition, ("admin",), {"name": "Jane"})
    """

    def __init__(
        self,
        *,
        persistence: Persistence,
        structs: StructFactory,
        fake: Callable[..., Any],
        create: Callable[..., Any],
    ) -> None:
        self.persistence = persistence
        self.structs = structs
        self._fake = fake
        self._create = create

    def build(
        self,
        definition: Definition,
        traits: Iterable[str] = (),
        overrides: Mapping[str, Any] | None = None,
    ) -> BaseModel:
        """Resolve, persist and wrap one record.

        Errors raised by the persistence collaborator propagate unchanged.
        """
        traits = tuple(traits)
        with span(
            "factory.build",
            attributes={
                "factory.name": definition.name,
                "factory.relation": definition.relation.name,
            },
        ):
            values = self.resolve(definition, traits, overrides, strategy=Strategy.CREATE)
            stored = self.persistence.persist(definition.relation, values)
            record = self.structs(definition.relation, stored)

        logger.debug("record_built", factory=definition.name, traits=list(traits))
        return record

    def struct(
        self,
        definition: Definition,
        traits: Iterable[str] = (),
        overrides: Mapping[str, Any] | None = None,
    ) -> BaseModel:
        """Resolve and wrap one record without persisting it.

        A missing primary key is filled from the definition's own counter.
        """
        values = self.resolve(definition, tuple(traits), overrides, strategy=Strategy.STRUCT)
        key = definition.relation.primary_key
        if key and values.get(key) is None:
            values[key] = definition.struct_ids.next()
        return self.structs(definition.relation, values)

    def attributes(
        self,
        definition: Definition,
        traits: Iterable[str] = (),
        overrides: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Resolve one record into a plain mapping."""
        return self.resolve(definition, tuple(traits), overrides, strategy=Strategy.ATTRIBUTES)

    def resolve(
        self,
        definition: Definition,
        traits: tuple[str, ...],
        overrides: Mapping[str, Any] | None,
        *,
        strategy: Strategy,
    ) -> dict[str, Any]:
        """Resolve every producer of the effective registry, in order.

        Returns:
            Ordered mapping of attribute name to value.

        Raises:
            UnknownTraitError: If a requested trait is not declared.
            UnknownAttributeReferenceError: If a computed attribute reads a
                name that is not resolved yet.
        """
        registry = definition.registry_for(traits, overrides)
        context = EvaluationContext(
            declared=frozenset(registry.names()),
            fake=self._fake,
            create=self._create,
            associate=self._associator(strategy),
        )
        for producer in registry:
            context._set(producer.name, producer.value(context))
        return context._to_dict()

    def _associator(self, strategy: Strategy) -> Callable[[Definition, tuple[str, ...]], Any]:
        if strategy is Strategy.CREATE:
            return lambda definition, traits: self.build(definition, traits)
        return lambda definition, traits: self.struct(definition, traits)
