"""Unit tests for FactoryCatalog and create_catalog."""

from __future__ import annotations

import threading

import pytest
from faker.exceptions import UniquenessException
from pydantic import BaseModel
from structlog.testing import capture_logs

from floe_factory.builder import Definition
from floe_factory.catalog import FactoryCatalog, create_catalog
from floe_factory.config import FactorySettings
from floe_factory.dsl import FactoryDSL
from floe_factory.errors import (
    AmbiguousRelationError,
    DuplicateFactoryError,
    UnknownAttributeError,
    UnknownFactoryError,
)
from floe_factory.persistence import InMemoryRepository
from floe_factory.schema import Schema

pytestmark = pytest.mark.unit


class TestDefine:
    """Tests for FactoryCatalog.define and register."""

    def test_define_with_body(self, catalog: FactoryCatalog) -> None:
        """define finalizes and registers a definition."""
        definition = catalog.define(
            "user", relation="users", body=lambda f: f.attribute("first_name", "Alice")
        )

        assert isinstance(definition, Definition)
        assert catalog["user"] is definition
        assert "user" in catalog
        assert len(catalog) == 1

    def test_define_as_decorator(self, catalog: FactoryCatalog) -> None:
        """define without a body works as a decorator."""

        @catalog.define("user", relation="users")
        def user(f: FactoryDSL) -> None:
            f.attribute("first_name", "Alice")

        assert catalog.names() == ["user"]

    def test_relation_defaults_to_name(self, catalog: FactoryCatalog) -> None:
        """Without relation=, the factory name is the relation name."""
        definition = catalog.define("groups", body=lambda f: f.attribute("name", "staff"))

        assert definition.relation.name == "groups"

    def test_unknown_relation(self, catalog: FactoryCatalog) -> None:
        """Defining against an unknown relation raises KeyError."""
        with pytest.raises(KeyError):
            catalog.define("comment", body=lambda f: None)

    def test_duplicate_name_raises(self, catalog: FactoryCatalog) -> None:
        """Registering the same name twice raises DuplicateFactoryError."""
        catalog.define("groups", body=lambda f: None)

        with pytest.raises(DuplicateFactoryError):
            catalog.define("groups", body=lambda f: None)

    def test_register_logs(self, catalog: FactoryCatalog) -> None:
        """Registration is logged."""
        with capture_logs() as logs:
            catalog.define("groups", body=lambda f: None)

        events = [entry["event"] for entry in logs]
        assert "factory_registered" in events

    def test_strict_settings_apply_to_dsl(self, schema: Schema) -> None:
        """strict_attribute_names is passed to the DSL."""
        catalog = FactoryCatalog(schema, settings=FactorySettings(strict_attribute_names=True))

        with pytest.raises(UnknownAttributeError):
            catalog.define("groups", body=lambda f: f.attribute("title", "x"))


class TestParent:
    """Tests for factory inheritance."""

    def test_child_inherits_attributes_and_traits(self, catalog: FactoryCatalog) -> None:
        """A child factory starts from its parent's attributes and traits."""

        def user(f: FactoryDSL) -> None:
            f.attribute("first_name", "Jane")
            f.attribute("role", "user")
            f.trait("inactive", lambda t: t.attribute("active", False))

        catalog.define("user", relation="users", body=user)
        catalog.define("admin", parent="user", body=lambda f: f.attribute("role", "admin"))

        admin = catalog.build("admin", "inactive")

        assert admin.first_name == "Jane"
        assert admin.role == "admin"
        assert admin.active is False
        assert catalog["admin"].relation.name == "users"

    def test_parent_is_unchanged(self, catalog: FactoryCatalog) -> None:
        """Child declarations do not leak into the parent."""
        catalog.define("user", relation="users", body=lambda f: f.attribute("role", "user"))
        catalog.define("admin", parent="user", body=lambda f: f.attribute("active", True))

        assert catalog["user"].attributes.names() == ["role"]

    def test_unknown_parent(self, catalog: FactoryCatalog) -> None:
        """An unregistered parent raises UnknownFactoryError."""
        with pytest.raises(UnknownFactoryError):
            catalog.define("admin", parent="user", body=lambda f: None)


class TestBuild:
    """Tests for build entry points."""

    def test_build_returns_struct(self, catalog: FactoryCatalog) -> None:
        """build returns a frozen Pydantic struct."""
        catalog.define(
            "user",
            relation="users",
            body=lambda f: f.attribute("email", computed=lambda ctx: ctx.fake("internet", "email")),
        )

        user = catalog.build("user")

        assert isinstance(user, BaseModel)
        assert user.model_config.get("frozen") is True
        assert "@" in user.email

    def test_example_user(self, catalog: FactoryCatalog) -> None:
        """name == Alice by default and Bob when overridden."""

        def user(f: FactoryDSL) -> None:
            f.attribute("email", computed=lambda ctx: ctx.fake("internet", "email"))
            f.attribute("first_name", "Alice")

        catalog.define("user", relation="users", body=user)

        assert catalog.build("user").first_name == "Alice"
        assert catalog.build("user", first_name="Bob").first_name == "Bob"

    def test_build_unknown_factory(self, catalog: FactoryCatalog) -> None:
        """Unknown factory names raise UnknownFactoryError."""
        with pytest.raises(UnknownFactoryError) as exc_info:
            catalog.build("missing")

        assert exc_info.value.name == "missing"

    def test_build_many(self, catalog: FactoryCatalog, repository: InMemoryRepository) -> None:
        """build_many persists count records."""
        catalog.define("groups", body=lambda f: f.sequence("name", lambda n: f"group-{n}"))

        groups = catalog.build_many("groups", 3)

        assert [g.name for g in groups] == ["group-1", "group-2", "group-3"]
        assert repository.count("groups") == 3

    def test_create_from_computed(
        self, catalog: FactoryCatalog, repository: InMemoryRepository
    ) -> None:
        """ctx.create builds another factory inline."""
        catalog.define("groups", body=lambda f: f.attribute("name", "staff"))
        catalog.define(
            "user",
            relation="users",
            body=lambda f: f.attribute("group_id", computed=lambda ctx: ctx.create("groups").id),
        )

        user = catalog.build("user")

        assert user.group_id == 1
        assert repository.count("groups") == 1

    def test_dsl_create_runs_at_declaration(
        self, catalog: FactoryCatalog, repository: InMemoryRepository
    ) -> None:
        """FactoryDSL.create builds immediately."""
        catalog.define("groups", body=lambda f: f.attribute("name", "staff"))

        def user(f: FactoryDSL) -> None:
            f.attribute("group_id", f.create("groups").id)

        catalog.define("user", relation="users", body=user)

        assert repository.count("groups") == 1
        assert catalog.build("user").group_id == 1

    def test_attributes_for(self, catalog: FactoryCatalog, repository: InMemoryRepository) -> None:
        """attributes_for returns a mapping and persists nothing."""
        catalog.define("groups", body=lambda f: f.attribute("name", "staff"))

        assert catalog.attributes_for("groups") == {"name": "staff"}
        assert repository.count("groups") == 0

    def test_concurrent_builds_get_distinct_sequence_values(
        self, catalog: FactoryCatalog
    ) -> None:
        """Concurrent builds of one definition never share a sequence value."""
        catalog.define("groups", body=lambda f: f.sequence("name", lambda n: n))
        names: list[int] = []
        lock = threading.Lock()

        def worker() -> None:
            built = [catalog.struct("groups").name for _ in range(50)]
            with lock:
                names.extend(built)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(names) == list(range(1, 201))


class TestCollaboratorErrors:
    """Tests for errors raised by collaborators during build."""

    def test_unique_exhaustion_propagates(
        self, catalog: FactoryCatalog, repository: InMemoryRepository
    ) -> None:
        """Faker's UniquenessException reaches the caller unwrapped."""
        catalog.define(
            "groups",
            body=lambda f: f.attribute(
                "name",
                computed=lambda ctx: ctx.fake("pyint", unique=True, min_value=1, max_value=1),
            ),
        )

        assert catalog.build("groups").name == 1
        with pytest.raises(UniquenessException):
            catalog.build("groups")

        assert repository.count("groups") == 1


class TestForRelation:
    """Tests for FactoryCatalog.for_relation."""

    def test_single_candidate(self, catalog: FactoryCatalog) -> None:
        """The only factory targeting a relation is returned."""
        definition = catalog.define("group", relation="groups", body=lambda f: None)

        assert catalog.for_relation("groups") is definition

    def test_no_candidate(self, catalog: FactoryCatalog) -> None:
        """No factory for the relation raises UnknownFactoryError."""
        with pytest.raises(UnknownFactoryError) as exc_info:
            catalog.for_relation("groups")

        assert "relation 'groups'" in str(exc_info.value)

    def test_ambiguous(self, catalog: FactoryCatalog) -> None:
        """Several factories for the relation raise AmbiguousRelationError."""
        catalog.define("staff", relation="groups", body=lambda f: None)
        catalog.define("guests", relation="groups", body=lambda f: None)

        with pytest.raises(AmbiguousRelationError) as exc_info:
            catalog.for_relation("groups")

        assert exc_info.value.candidates == ["staff", "guests"]

    def test_factory_named_like_relation_wins(self, catalog: FactoryCatalog) -> None:
        """With several candidates, the one named like the relation is used."""
        definition = catalog.define("groups", body=lambda f: None)
        catalog.define("staff", relation="groups", body=lambda f: None)

        assert catalog.for_relation("groups") is definition

    def test_explicit_factory(self, catalog: FactoryCatalog) -> None:
        """An explicitly named factory wins."""
        catalog.define("staff", relation="groups", body=lambda f: f.attribute("name", "staff"))
        catalog.define("guests", relation="groups", body=lambda f: f.attribute("name", "guests"))
        catalog.define(
            "user",
            relation="users",
            body=lambda f: f.association("group", factory="guests"),
        )

        assert catalog.build("user").group.name == "guests"

    def test_explicit_factory_for_other_relation(self, catalog: FactoryCatalog) -> None:
        """A named factory targeting another relation raises UnknownFactoryError."""
        catalog.define("staff", relation="groups", body=lambda f: None)
        catalog.define("bio", relation="profiles", body=lambda f: None)

        with pytest.raises(UnknownFactoryError) as exc_info:
            catalog.for_relation("groups", factory="bio")

        assert exc_info.value.target == "groups"
        assert exc_info.value.available_factories == ["staff"]
        assert "does not target relation 'groups'" in str(exc_info.value)

    def test_mistyped_association_factory_fails_at_build(
        self, catalog: FactoryCatalog, repository: InMemoryRepository
    ) -> None:
        """An association naming a factory of another relation builds nothing."""
        catalog.define("bio", relation="profiles", body=lambda f: f.attribute("bio", "hi"))
        catalog.define(
            "user",
            relation="users",
            body=lambda f: f.association("group", factory="bio"),
        )

        with pytest.raises(UnknownFactoryError):
            catalog.build("user")

        assert repository.count("profiles") == 0

    def test_ambiguous_association_fails_at_build(self, catalog: FactoryCatalog) -> None:
        """Ambiguity surfaces when the association is first built."""
        catalog.define("user", relation="users", body=lambda f: f.association("group"))
        catalog.define("staff", relation="groups", body=lambda f: None)
        catalog.define("guests", relation="groups", body=lambda f: None)

        with pytest.raises(AmbiguousRelationError):
            catalog.build("user")


class TestReset:
    """Tests for FactoryCatalog.reset."""

    def test_reset_clears_definitions(self, catalog: FactoryCatalog) -> None:
        """reset forgets every definition."""
        catalog.define("groups", body=lambda f: None)

        catalog.reset()

        assert len(catalog) == 0
        assert "groups" not in catalog


class TestCreateCatalog:
    """Tests for create_catalog."""

    def test_defaults(self, schema: Schema) -> None:
        """create_catalog wires default collaborators."""
        catalog = create_catalog(schema)

        assert isinstance(catalog.persistence, InMemoryRepository)
        assert catalog.settings.faker_locale == "en_US"

    def test_struct_namespace(self, schema: Schema) -> None:
        """Structs use the models from the struct namespace."""

        class Group(BaseModel):
            id: int
            name: str

        catalog = create_catalog(schema, struct_namespace={"groups": Group})
        catalog.define("groups", body=lambda f: f.attribute("name", "staff"))

        group = catalog.build("groups")

        assert isinstance(group, Group)
        assert group.id == 1

    def test_seeded_settings_are_reproducible(self, schema: Schema) -> None:
        """Same faker seed produces the same fake values."""

        def build_email(seed: int) -> str:
            catalog = create_catalog(schema, settings=FactorySettings(faker_seed=seed))
            catalog.define(
                "user",
                relation="users",
                body=lambda f: f.attribute(
                    "email", computed=lambda ctx: ctx.fake("internet", "email")
                ),
            )
            return catalog.build("user").email

        assert build_email(7) == build_email(7)
