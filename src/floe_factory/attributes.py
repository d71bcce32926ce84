"""Attribute producers.

Each producer knows the attribute name it targets and how to produce a value
from an evaluation context:
- StaticValue: always yields the same value
- Computed: yields callback(context)
- SequenceComputed: yields callback(n) or callback(context, n) with the next
  value of its counter
- Association: builds one or many related records through the factory catalog
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from floe_factory.sequence import Sequence

if TYPE_CHECKING:
    from floe_factory.builder import Definition
    from floe_factory.context import EvaluationContext
    from floe_factory.schema import AssociationSpec


class Producer(ABC):
    """Base class for attribute producers."""

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def value(self, context: EvaluationContext) -> Any:  # pragma: no cover - abstract method
        """Produce the attribute value for one build.

        Args:
            context: Values resolved so far in the current build.

        Returns:
            The attribute value.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._name!r})"


class StaticValue(Producer):
    """Producer returning a fixed value."""

    def __init__(self, name: str, value: Any) -> None:
        super().__init__(name)
        self._value = value

    def value(self, context: EvaluationContext) -> Any:
        return self._value


class Computed(Producer):
    """Producer calling ``callback(context)`` on every build.

    Example:
        >>> Computed("full_name", lambda ctx: f"{ctx.first_name} {ctx.last_name}")
    """

    def __init__(self, name: str, callback: Callable[[EvaluationContext], Any]) -> None:
        super().__init__(name)
        self._callback = callback

    @property
    def callback(self) -> Callable[[EvaluationContext], Any]:
        return self._callback

    def value(self, context: EvaluationContext) -> Any:
        return self._callback(context)


class SequenceComputed(Producer):
    """Producer feeding the next counter value to its callback.

    Callbacks receive ``n``. Callbacks with two required positional
    parameters receive ``(context, n)`` so they can read sibling attributes.
    Positional parameters with defaults and ``*args`` are not counted, so
    ``lambda n, prefix="user": ...`` and ``lambda *args: ...`` receive ``n``.
    """

    def __init__(
        self,
        name: str,
        callback: Callable[..., Any],
        counter: Sequence | None = None,
    ) -> None:
        super().__init__(name)
        self._callback = callback
        self._counter = counter or Sequence(name)
        self._with_context = _required_positional(callback) >= 2

    @property
    def callback(self) -> Callable[..., Any]:
        return self._callback

    @property
    def counter(self) -> Sequence:
        return self._counter

    def value(self, context: EvaluationContext) -> Any:
        n = self._counter.next()
        if self._with_context:
            return self._callback(context, n)
        return self._callback(n)


class Association(Producer):
    """Producer building related records through the factory catalog.

    The target factory is resolved on first use through ``factory_ref`` so
    factories may be defined in any order.
    """

    def __init__(
        self,
        spec: AssociationSpec,
        factory_ref: Callable[[], Definition],
        *traits: str,
        count: int = 1,
    ) -> None:
        super().__init__(spec.name)
        self._spec = spec
        self._traits = traits
        self._count = count
        self._factory_ref = factory_ref

    @property
    def spec(self) -> AssociationSpec:
        """The schema association this producer fills."""
        return self._spec

    @property
    def traits(self) -> tuple[str, ...]:
        """Traits applied to every related record."""
        return self._traits

    @property
    def count(self) -> int:
        """Number of records built for one-to-many associations."""
        return self._count

    @property
    def definition(self) -> Definition:
        """The target factory definition, looked up lazily."""
        return self._factory_ref()

    def value(self, context: EvaluationContext) -> Any:
        definition = self.definition
        if self._spec.is_one_to_one:
            return context._associate(definition, self._traits)
        return [context._associate(definition, self._traits) for _ in range(self._count)]


def _required_positional(callback: Callable[..., Any]) -> int:
    """Count the positional parameters a callback requires."""
    try:
        parameters = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        return 1
    kinds = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    return sum(
        1 for p in parameters if p.kind in kinds and p.default is inspect.Parameter.empty
    )
