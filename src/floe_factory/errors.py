"""Custom exception hierarchy for floe-factory.

This module defines the exceptions raised while defining and building factories:
- FactoryError: Base exception for all factory errors
- UnknownTraitError: A trait (or parent trait) has not been declared
- MultiplicityError: count > 1 requested on a one-to-one association
- UnknownFactoryError / AmbiguousRelationError: association target resolution
- UnknownAttributeReferenceError: a computed attribute read an unresolved name

Errors raised by collaborators (persistence, Faker uniqueness exhaustion) are
never wrapped; they surface unchanged to the caller of ``build``.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class FactoryError(Exception):
    """Base exception for floe-factory.

    Args:
        user_message: Message describing the failure.
        internal_details: Optional technical details. Logged via structlog,
            never added to the exception message.

    Example:
        >>> raise FactoryError(
        ...     "Factory definition invalid",
        ...     internal_details="trait 'admin' declared twice in 'user'",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize FactoryError with user message and optional internal details.

        Args:
            user_message: Message describing the failure.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "factory_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class UnknownTraitError(FactoryError):
    """Raised when a trait name has not been declared.

    Raised when:
    - A trait lists a parent trait that is not yet registered
    - A build requests a trait the factory does not define

    Attributes:
        trait: The missing trait name.
        available_traits: Traits that are declared.
    """

    def __init__(
        self,
        trait: str,
        available_traits: list[str],
        *,
        factory: str | None = None,
    ) -> None:
        available_str = ", ".join(available_traits) if available_traits else "none"
        owner = f" on factory '{factory}'" if factory else ""
        super().__init__(f"Trait '{trait}' is not defined{owner}. Available: {available_str}")
        self.trait = trait
        self.available_traits = available_traits
        self.factory = factory


class MultiplicityError(FactoryError):
    """Raised when an association is declared with an impossible count.

    Example:
        >>> f.association("profile", count=2)  # profile is one-to-one
        Traceback (most recent call last):
        MultiplicityError: count cannot be greater than 1 on a one-to-one association 'profile'
    """

    def __init__(self, association: str, count: int) -> None:
        super().__init__(
            f"count cannot be greater than 1 on a one-to-one association "
            f"'{association}' (got {count})"
        )
        self.association = association
        self.count = count


class UnknownFactoryError(FactoryError):
    """Raised when no factory matches a name or a target relation.

    Raised when:
    - No factory is registered under a name
    - No factory targets a relation (``relation=True``)
    - A factory named on an association targets another relation (``target``)

    Attributes:
        name: Factory name or relation name that failed to resolve.
        available_factories: Registered factory names, or the factories
            targeting ``target`` when it is given.
        target: Relation the named factory was expected to build.
    """

    def __init__(
        self,
        name: str,
        available_factories: list[str],
        *,
        relation: bool = False,
        target: str | None = None,
    ) -> None:
        available_str = ", ".join(available_factories) if available_factories else "none"
        if target is not None:
            message = (
                f"Factory '{name}' does not target relation '{target}'. "
                f"Factories for '{target}': {available_str}"
            )
        elif relation:
            message = f"No factory targets relation '{name}'. Available: {available_str}"
        else:
            message = f"Factory '{name}' not found. Available: {available_str}"
        super().__init__(message)
        self.name = name
        self.available_factories = available_factories
        self.target = target


class AmbiguousRelationError(FactoryError):
    """Raised when several factories target the same relation.

    Name the factory explicitly on the association
    (``f.association("author", factory="admin")``) to resolve it.

    Attributes:
        relation: The target relation name.
        candidates: Factory names targeting the relation.
    """

    def __init__(self, relation: str, candidates: list[str]) -> None:
        super().__init__(
            f"Several factories target relation '{relation}': {', '.join(candidates)}. "
            "Name the factory explicitly on the association."
        )
        self.relation = relation
        self.candidates = candidates


class UnknownAttributeReferenceError(FactoryError, AttributeError):
    """Raised when a computed attribute reads a name that is not resolved.

    Inherits from AttributeError so ``getattr(ctx, name, default)`` and
    ``hasattr(ctx, name)`` behave as usual on the evaluation context.

    Attributes:
        attribute: The name that was read.
        resolved: Names resolved at the time of the read.
    """

    def __init__(self, attribute: str, resolved: list[str], *, declared: bool = False) -> None:
        if declared:
            message = (
                f"Attribute '{attribute}' is not yet resolved; it is declared after "
                "the attribute reading it"
            )
        else:
            message = f"Attribute '{attribute}' is not defined on this record"
        super().__init__(message)
        self.attribute = attribute
        self.resolved = resolved


class UnknownAssociationError(FactoryError):
    """Raised when an association name is missing from the relation schema."""

    def __init__(self, relation: str, association: str, available: list[str]) -> None:
        available_str = ", ".join(available) if available else "none"
        super().__init__(
            f"Relation '{relation}' has no association '{association}'. "
            f"Available: {available_str}"
        )
        self.relation = relation
        self.association = association


class UnknownAttributeError(FactoryError):
    """Raised for an invalid attribute name when strict attribute names are enabled."""

    def __init__(self, relation: str, attribute: str) -> None:
        super().__init__(f"Relation '{relation}' has no attribute '{attribute}'")
        self.relation = relation
        self.attribute = attribute


class DuplicateFactoryError(FactoryError):
    """Raised when registering a factory name twice."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Factory '{name}' is already defined")
        self.name = name


class FakeDataError(FactoryError):
    """Raised when a fake-data request cannot be mapped to a Faker provider."""

    def __init__(self, request: tuple[str, ...], *, reason: str) -> None:
        super().__init__(f"Cannot fake {'.'.join(request)}: {reason}")
        self.request = request
