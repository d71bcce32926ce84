"""Ordered, name-deduplicated collection of attribute producers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from floe_factory.attributes import Producer


class AttributeRegistry:
    """Ordered collection holding at most one producer per attribute name.

    Appending a producer for a name already present replaces the earlier
    producer in place, keeping the name's original position. New names are
    appended at the end. Trait overlays depend on this rule.

    Example:
        >>> registry = AttributeRegistry()
        >>> registry.append(StaticValue("name", "Jane"))
        >>> registry.append(StaticValue("email", "jane@example.com"))
        >>> registry.append(StaticValue("name", "John"))
        >>> [p.name for p in registry]
        ['name', 'email']
    """

    def __init__(self, producers: Iterable[Producer] = ()) -> None:
        self._producers: dict[str, Producer] = {}
        for producer in producers:
            self.append(producer)

    def append(self, producer: Producer) -> AttributeRegistry:
        """Insert ``producer``, replacing a same-named producer in place."""
        # dict assignment keeps the position of an existing key
        self._producers[producer.name] = producer
        return self

    __lshift__ = append

    def combine(self, other: AttributeRegistry) -> AttributeRegistry:
        """Return a new registry with ``other``'s producers appended onto a copy of self."""
        combined = self.copy()
        for producer in other:
            combined.append(producer)
        return combined

    __or__ = combine

    def copy(self) -> AttributeRegistry:
        return AttributeRegistry(self._producers.values())

    def elements(self) -> list[Producer]:
        """Producers in declaration/override order."""
        return list(self._producers.values())

    def names(self) -> list[str]:
        return list(self._producers)

    def __getitem__(self, name: str) -> Producer:
        return self._producers[name]

    def __contains__(self, name: object) -> bool:
        return name in self._producers

    def __iter__(self) -> Iterator[Producer]:
        return iter(list(self._producers.values()))

    def __len__(self) -> int:
        return len(self._producers)

    def __repr__(self) -> str:
        return f"AttributeRegistry({self.names()!r})"
