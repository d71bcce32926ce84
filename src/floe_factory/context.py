"""Per-build evaluation context passed to computed attributes."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from floe_factory.errors import UnknownAttributeReferenceError

if TYPE_CHECKING:
    from floe_factory.builder import Definition


class EvaluationContext:
    """Values resolved so far in one build.

    Computed callbacks read earlier attributes as ``ctx.first_name`` or
    ``ctx["first_name"]``. Reading a name that has not been resolved raises
    UnknownAttributeReferenceError; attributes declared later in the
    registry are not visible yet.

    ``fake`` and ``create`` are the only public helpers; an attribute sharing
    one of those names is still readable as ``ctx["fake"]``. Every other name
    resolves to an attribute value.

    Example:
        >>> f.attribute("full_name", computed=lambda ctx: f"{ctx.first_name} {ctx.last_name}")
        >>> f.attribute("email", computed=lambda ctx: ctx.fake("internet", "email"))
    """

    def __init__(
        self,
        *,
        declared: frozenset[str],
        fake: Callable[..., Any],
        create: Callable[..., Any],
        associate: Callable[[Definition, tuple[str, ...]], Any],
    ) -> None:
        self._values: dict[str, Any] = {}
        self._declared = declared
        self._fake_data = fake
        self._build = create
        self._build_related = associate

    def fake(self, *request: str, unique: bool = False, **options: Any) -> Any:
        """Generate a value through the fake-data provider."""
        return self._fake_data(*request, unique=unique, **options)

    def create(self, name: str, *traits: str, **overrides: Any) -> Any:
        """Build another factory by name, outside of this record's attributes."""
        return self._build(name, *traits, **overrides)

    def _set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def _associate(self, definition: Definition, traits: tuple[str, ...]) -> Any:
        """Build one related record using the current build strategy."""
        return self._build_related(definition, traits)

    def _to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __getitem__(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise UnknownAttributeReferenceError(
                name,
                list(self._values),
                declared=name in self._declared,
            ) from None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"EvaluationContext({self._values!r})"
