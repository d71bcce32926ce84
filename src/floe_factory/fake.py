"""Fake data generation via Faker.

FakeDataProvider resolves requests such as ``("internet", "email")`` to a
Faker provider method. A request is either a single Faker method name
(``("name",)``) or a provider category plus a method name; the category
matches the Faker provider module (``faker.providers.internet`` -> "internet").

Resolved methods are kept in a ProviderCache owned by the provider instance,
so the category lookup happens once per request shape for the lifetime of
the provider.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import structlog
from faker import Faker

from floe_factory.errors import FakeDataError

logger = structlog.get_logger(__name__)

CacheKey = tuple[tuple[str, ...], bool]


class ProviderCache:
    """Mapping from request shape to resolved Faker callable."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Callable[..., Any]] = {}
        self._lock = threading.Lock()

    def fetch_or_store(
        self,
        key: CacheKey,
        resolve: Callable[[], Callable[..., Any]],
    ) -> Callable[..., Any]:
        """Return the cached callable for ``key``, resolving it on first use."""
        with self._lock:
            if key not in self._entries:
                self._entries[key] = resolve()
            return self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class FakeDataProvider:
    """Generate realistic values from Faker providers.

    Example:
        >>> provider = FakeDataProvider(seed=42)
        >>> email = provider.fake("internet", "email")
        >>> score = provider.fake("pyint", min_value=1, max_value=10)
        >>> first_name = provider.fake("person", "first_name", unique=True)
    """

    def __init__(
        self,
        *,
        locale: str = "en_US",
        seed: int | None = None,
        faker: Faker | None = None,
        cache: ProviderCache | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            locale: Faker locale, ignored when ``faker`` is given.
            seed: Seed for reproducible values.
            faker: Pre-configured Faker instance.
            cache: Resolution cache (a fresh one by default).
        """
        self.faker = faker or Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)
        self.cache = cache or ProviderCache()

    def fake(self, *request: str, unique: bool = False, **options: Any) -> Any:
        """Generate one value.

        Args:
            *request: Method name, or category and method name.
            unique: Never repeat a value for this method while the provider's
                uniqueness scope lasts. Faker raises UniquenessException when
                no new value can be found.
            **options: Keyword arguments for the Faker method.

        Returns:
            The generated value.

        Raises:
            FakeDataError: If the request does not map to a Faker method.
        """
        key: CacheKey = (tuple(request), unique)
        method = self.cache.fetch_or_store(key, lambda: self._resolve(key[0], unique))
        return method(**options)

    __call__ = fake

    def clear_unique(self) -> None:
        """Forget values already returned in unique mode."""
        self.faker.unique.clear()

    def _resolve(self, request: tuple[str, ...], unique: bool) -> Callable[..., Any]:
        if not request or len(request) > 2:
            raise FakeDataError(
                request,
                reason="expected a method name or a category and a method name",
            )

        *category, method_name = request
        if category:
            method = self._category_method(category[0], method_name, request)
        elif hasattr(self.faker, method_name):
            method = getattr(self.faker, method_name)
        else:
            raise FakeDataError(request, reason=f"Faker has no method '{method_name}'")

        logger.debug("fake_method_resolved", request=".".join(request), unique=unique)
        if unique:
            # Faker tracks uniqueness by method name on its unique proxy only
            return getattr(self.faker.unique, method_name)
        return method

    def _category_method(
        self,
        category: str,
        method_name: str,
        request: tuple[str, ...],
    ) -> Callable[..., Any]:
        providers = [p for p in self.faker.get_providers() if _category_of(p) == category]
        if not providers:
            raise FakeDataError(request, reason=f"unknown Faker category '{category}'")
        for provider in providers:
            if hasattr(provider, method_name):
                return getattr(provider, method_name)
        raise FakeDataError(
            request,
            reason=f"category '{category}' has no method '{method_name}'",
        )


def _category_of(provider: Any) -> str:
    """Return the category of a Faker provider ("faker.providers.<category>...")."""
    parts = type(provider).__module__.split(".")
    if len(parts) >= 3 and parts[:2] == ["faker", "providers"]:
        return parts[2]
    return parts[-1]
