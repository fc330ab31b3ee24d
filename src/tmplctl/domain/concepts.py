"""Concept detail models — the terminology server's browser payload.

Field names follow the server's camelCase JSON; models accept either the
JSON alias or the snake_case attribute name. Unknown keys are ignored so
server upgrades that add fields do not break parsing.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_PAYLOAD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    frozen=True,
)


class DescriptionType(StrEnum):
    FSN = "FSN"
    SYNONYM = "SYNONYM"


class ConceptMini(BaseModel):
    """Reference to a concept (relationship type)."""

    model_config = _PAYLOAD_CONFIG

    concept_id: str


class Description(BaseModel):
    model_config = _PAYLOAD_CONFIG

    term: str
    # text definitions and any other types stay plain strings
    type: DescriptionType | str
    active: bool = True
    lang: str | None = None


class Relationship(BaseModel):
    """One relationship, inferred or inside a class axiom.

    The server sends both ``typeId`` and a nested ``type`` object depending
    on the endpoint; :attr:`attribute_type` reads whichever is present.
    """

    model_config = _PAYLOAD_CONFIG

    active: bool = True
    group_id: int = 0
    characteristic_type: str | None = None
    type_id: str | None = None
    type: ConceptMini | None = None

    @property
    def attribute_type(self) -> str | None:
        if self.type is not None:
            return self.type.concept_id
        return self.type_id


class Axiom(BaseModel):
    model_config = _PAYLOAD_CONFIG

    active: bool = True
    relationships: list[Relationship] = Field(default_factory=list)


class ConceptDetail(BaseModel):
    """Full concept: descriptions, inferred relationships and class axioms."""

    model_config = _PAYLOAD_CONFIG

    concept_id: str
    active: bool = True
    descriptions: list[Description] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    class_axioms: list[Axiom] = Field(default_factory=list)

    def active_terms(self, description_type: DescriptionType) -> list[str]:
        """Terms of active descriptions of *description_type*."""
        return [d.term for d in self.descriptions if d.active and d.type == description_type]
