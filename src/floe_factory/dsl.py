"""Declaration surface for factory definitions.

A FactoryDSL is handed to the body of ``FactoryCatalog.define``; the body
declares attributes, sequences, traits and associations on it, and the
catalog finalizes the result into a Definition.

Example:
    >>> @catalog.define("user", relation="users")
    ... def user(f: FactoryDSL) -> None:
    ...     f.attribute("name", "Jane")
    ...     f.attribute("email", computed=lambda ctx: ctx.fake("internet", "email"))
    ...     f.sequence("login", lambda n: f"user{n}")
    ...     f.association("group")
    ...
    ...     @f.trait("admin")
    ...     def admin(t: FactoryDSL) -> None:
    ...         t.attribute("role", "admin")
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from floe_factory.attributes import Association, Computed, SequenceComputed, StaticValue
from floe_factory.builder import Definition
from floe_factory.errors import (
    MultiplicityError,
    UnknownAssociationError,
    UnknownAttributeError,
    UnknownTraitError,
)
from floe_factory.registry import AttributeRegistry
from floe_factory.schema import Relation

if TYPE_CHECKING:
    from floe_factory.catalog import FactoryCatalog
    from floe_factory.context import EvaluationContext

logger = structlog.get_logger(__name__)

_MISSING: Any = object()


class FactoryDSL:
    """Incremental builder for one factory (or one trait) definition.

    Attribute names are validated against the relation schema once, at
    construction. Static values and sequences declared for a name the
    relation does not have are ignored and logged as ``attribute_ignored``
    (or raise UnknownAttributeError when ``strict`` is set). Computed
    attributes are always accepted.

    Attributes:
        name: Factory name (``<factory>_<trait>`` for trait bodies).
        relation: Relation records are built for.
        catalog: Catalog used for associations, ``fake`` and ``create``.
    """

    def __init__(
        self,
        name: str,
        *,
        relation: Relation,
        catalog: FactoryCatalog,
        attributes: AttributeRegistry | None = None,
        traits: Mapping[str, AttributeRegistry] | None = None,
        strict: bool = False,
    ) -> None:
        self.name = name
        self.relation = relation
        self.catalog = catalog
        self.strict = strict
        self._attributes = attributes.copy() if attributes else AttributeRegistry()
        self._traits = {trait: registry.copy() for trait, registry in (traits or {}).items()}
        self._valid_names = frozenset(relation.attributes)
        self._operations: dict[str, Callable[..., Any]] = {
            "attribute": self.attribute,
            "sequence": self.sequence,
            "trait": self.trait,
            "association": self.association,
            "fake": self.fake,
            "create": self.create,
            "timestamps": self.timestamps,
        }

    def attribute(
        self,
        name: str,
        value: Any = _MISSING,
        *,
        computed: Callable[[EvaluationContext], Any] | None = None,
    ) -> Any:
        """Declare a static or computed attribute.

        Args:
            name: Attribute name.
            value: Static value. Omit it (and ``computed``) to use the
                method as a decorator for a computed attribute.
            computed: Callback receiving the evaluation context.

        Example:
            >>> f.attribute("name", "Jane")
            >>> f.attribute("slug", computed=lambda ctx: ctx.name.lower())
            >>> @f.attribute("full_name")
            ... def full_name(ctx):
            ...     return f"{ctx.first_name} {ctx.last_name}"
        """
        if computed is not None:
            if value is not _MISSING:
                msg = f"attribute '{name}' takes either a value or computed=, not both"
                raise TypeError(msg)
            self._attributes.append(Computed(name, computed))
            return None

        if value is _MISSING:

            def decorator(callback: Callable[[EvaluationContext], Any]) -> Callable[..., Any]:
                self._attributes.append(Computed(name, callback))
                return callback

            return decorator

        if self._accepts(name):
            self._attributes.append(StaticValue(name, value))
        return None

    def sequence(self, name: str, callback: Callable[..., Any] | None = None) -> Any:
        """Declare a sequence attribute backed by its own counter.

        The callback receives the next counter value (starting at 1), or
        ``(context, n)`` if it takes two positional parameters.

        Example:
            >>> f.sequence("login", lambda n: f"user{n}")
        """
        if callback is None:

            def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
                self.sequence(name, fn)
                return fn

            return decorator

        if self._accepts(name):
            self._attributes.append(SequenceComputed(name, callback))
        return callback

    def timestamps(self) -> None:
        """Declare ``created_at`` and ``updated_at`` as the current UTC time.

        Only the timestamps present on the relation are declared.
        """
        for name in ("created_at", "updated_at"):
            if name in self._valid_names:
                self.attribute(name, computed=lambda ctx: datetime.now(timezone.utc))

    def trait(
        self,
        name: str,
        body: Callable[[FactoryDSL], Any] | None = None,
        *,
        parents: tuple[str, ...] | list[str] = (),
    ) -> Any:
        """Declare a trait, optionally extending previously declared traits.

        The trait body receives a nested FactoryDSL seeded with the parents'
        attributes, combined in the order listed.

        Args:
            name: Trait name.
            body: Callback declaring the trait's attributes. Omit it to use
                the method as a decorator.
            parents: Traits the new trait extends.

        Raises:
            UnknownTraitError: If a parent trait is not declared yet.
        """
        if body is None:

            def decorator(fn: Callable[[FactoryDSL], Any]) -> Callable[[FactoryDSL], Any]:
                self.trait(name, fn, parents=parents)
                return fn

            return decorator

        seed = AttributeRegistry()
        for parent in parents:
            if parent not in self._traits:
                raise UnknownTraitError(parent, list(self._traits), factory=self.name)
            seed = seed.combine(self._traits[parent])

        nested = FactoryDSL(
            f"{self.name}_{name}",
            relation=self.relation,
            catalog=self.catalog,
            attributes=seed,
            strict=self.strict,
        )
        body(nested)
        self._traits[name] = nested.attributes

        logger.debug("trait_defined", factory=self.name, trait=name, parents=list(parents))
        return body

    def association(
        self,
        name: str,
        *traits: str,
        count: int = 1,
        factory: str | None = None,
    ) -> None:
        """Declare an association built through the target relation's factory.

        One-to-one associations yield a single record, one-to-many
        associations a list of ``count`` records. The target factory is
        looked up on first build, so it may be defined later.

        Args:
            name: Association name in the relation schema.
            *traits: Traits applied to the related records.
            count: Number of records for one-to-many associations.
            factory: Name of the factory to use when several target the
                same relation.

        Raises:
            UnknownAssociationError: If the relation has no such association.
            MultiplicityError: If count > 1 on a one-to-one association.

        Example:
            >>> f.association("group")
            >>> f.association("posts", "published", count=2)
        """
        spec = self.relation.associations.get(name)
        if spec is None:
            available = list(self.relation.associations)
            raise UnknownAssociationError(self.relation.name, name, available)
        if spec.is_one_to_one and count > 1:
            raise MultiplicityError(name, count)
        if count < 0:
            msg = f"count must be >= 0, got {count}"
            raise ValueError(msg)

        catalog = self.catalog
        self._attributes.append(
            Association(
                spec,
                lambda: catalog.for_relation(spec.target, factory=factory),
                *traits,
                count=count,
            )
        )

    def fake(self, *request: str, unique: bool = False, **options: Any) -> Any:
        """Generate a fake value now, at declaration time.

        Use ``ctx.fake`` inside a computed attribute for a fresh value per build.
        """
        return self.catalog.fake(*request, unique=unique, **options)

    def create(self, name: str, *traits: str, **overrides: Any) -> Any:
        """Build another factory immediately through the catalog."""
        return self.catalog.build(name, *traits, **overrides)

    def declare(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Dispatch a declaration by name.

        Reserved operation names (``sequence``, ``trait``, ...) call the
        operation; any other name declares an attribute.

        Example:
            >>> f.declare("email", computed=lambda ctx: ctx.fake("internet", "email"))
            >>> f.declare("sequence", "login", lambda n: f"user{n}")
        """
        operation = self._operations.get(name)
        if operation is not None:
            return operation(*args, **kwargs)
        return self.attribute(name, *args, **kwargs)

    @property
    def attributes(self) -> AttributeRegistry:
        """A copy of the attributes declared so far."""
        return self._attributes.copy()

    @property
    def traits(self) -> dict[str, AttributeRegistry]:
        """A copy of the traits declared so far."""
        return {trait: registry.copy() for trait, registry in self._traits.items()}

    def finalize(self) -> Definition:
        """Freeze the declarations into a Definition."""
        return Definition(self.name, self.relation, self._attributes, self._traits)

    def _accepts(self, name: str) -> bool:
        if name in self._valid_names:
            return True
        if self.strict:
            raise UnknownAttributeError(self.relation.name, name)
        logger.warning(
            "attribute_ignored",
            factory=self.name,
            relation=self.relation.name,
            attribute=name,
        )
        return False

    def __repr__(self) -> str:
        return f"<FactoryDSL name={self.name}>"
