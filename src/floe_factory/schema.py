"""Relation schema models.

The factory engine only needs two facts about a record type: which attribute
names are valid, and which associations it has (target relation and
multiplicity). These Pydantic models carry exactly that.

Example:
    >>> schema = Schema.from_relations(
    ...     Relation(
    ...         name="users",
    ...         attributes=("id", "name", "email", "group_id"),
    ...         associations={
    ...             "group": AssociationSpec(name="group", target="groups"),
    ...         },
    ...     ),
    ...     Relation(name="groups", attributes=("id", "name")),
    ... )
    >>> schema["users"].has_attribute("email")
    True
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Multiplicity(str, Enum):
    """How many related records an association holds."""

    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"


class AssociationSpec(BaseModel):
    """An association from one relation to another.

    Attributes:
        name: Association name on the source relation.
        target: Name of the target relation.
        multiplicity: one_to_one (single record) or one_to_many (list of records).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Association name")
    target: str = Field(..., min_length=1, description="Target relation name")
    multiplicity: Multiplicity = Field(
        default=Multiplicity.ONE_TO_ONE,
        description="Association multiplicity",
    )

    @property
    def is_one_to_one(self) -> bool:
        """True when the association holds a single record."""
        return self.multiplicity is Multiplicity.ONE_TO_ONE


class Relation(BaseModel):
    """Attribute names and associations of one record type.

    Attributes:
        name: Relation identifier (e.g. "users").
        attributes: Ordered attribute names valid for the relation.
        associations: Association table keyed by association name.
        primary_key: Attribute assigned by persistence when absent.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Relation identifier")
    attributes: tuple[str, ...] = Field(default=(), description="Valid attribute names")
    associations: dict[str, AssociationSpec] = Field(
        default_factory=dict,
        description="Associations keyed by name",
    )
    primary_key: str | None = Field(default="id", description="Primary key attribute")

    @model_validator(mode="after")
    def association_keys_match_names(self) -> Relation:
        """Ensure association table keys match the association names."""
        for key, spec in self.associations.items():
            if key != spec.name:
                msg = f"association key '{key}' does not match its name '{spec.name}'"
                raise ValueError(msg)
        return self

    def has_attribute(self, name: str) -> bool:
        """Return True if ``name`` is a valid attribute of the relation."""
        return name in self.attributes


class Schema:
    """Lookup of relations by name."""

    def __init__(self, relations: dict[str, Relation] | None = None) -> None:
        self._relations: dict[str, Relation] = dict(relations or {})

    @classmethod
    def from_relations(cls, *relations: Relation) -> Schema:
        return cls({relation.name: relation for relation in relations})

    def add(self, relation: Relation) -> None:
        self._relations[relation.name] = relation

    def __getitem__(self, name: str) -> Relation:
        try:
            return self._relations[name]
        except KeyError:
            available = ", ".join(sorted(self._relations)) or "none"
            msg = f"Relation '{name}' not found in schema. Available: {available}"
            raise KeyError(msg) from None

    def __contains__(self, name: object) -> bool:
        return name in self._relations

    def names(self) -> list[str]:
        return list(self._relations)
