"""Shared pytest fixtures for floe-factory tests."""

from __future__ import annotations

import sys

import pytest
import structlog

from floe_factory.catalog import FactoryCatalog
from floe_factory.config import FactorySettings
from floe_factory.persistence import InMemoryRepository
from floe_factory.schema import AssociationSpec, Multiplicity, Relation, Schema


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture
def schema() -> Schema:
    """Return a small blog schema: users belong to a group, have one profile, many posts."""
    return Schema.from_relations(
        Relation(name="groups", attributes=("id", "name")),
        Relation(
            name="users",
            attributes=(
                "id",
                "first_name",
                "last_name",
                "full_name",
                "email",
                "login",
                "role",
                "active",
                "group_id",
                "created_at",
                "updated_at",
            ),
            associations={
                "group": AssociationSpec(name="group", target="groups"),
                "profile": AssociationSpec(
                    name="profile",
                    target="profiles",
                    multiplicity=Multiplicity.ONE_TO_ONE,
                ),
                "posts": AssociationSpec(
                    name="posts",
                    target="posts",
                    multiplicity=Multiplicity.ONE_TO_MANY,
                ),
            },
        ),
        Relation(name="profiles", attributes=("id", "bio")),
        Relation(name="posts", attributes=("id", "title", "published")),
    )


@pytest.fixture
def repository() -> InMemoryRepository:
    """Return an empty in-memory repository."""
    return InMemoryRepository()


@pytest.fixture
def catalog(schema: Schema, repository: InMemoryRepository) -> FactoryCatalog:
    """Return an empty catalog with seeded Faker and in-memory persistence."""
    return FactoryCatalog(
        schema,
        persistence=repository,
        settings=FactorySettings(faker_seed=42),
    )
