"""Concept template document — the authored template as stored.

Only the parts the search pipeline reads are modelled: the logical
template text, lexical templates, and the term templates in the concept
outline. Anything else in a stored document is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tmplctl.domain.concepts import DescriptionType

_DOCUMENT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    frozen=True,
)


class LexicalTemplate(BaseModel):
    """Named slot used in term templates (``$name$``)."""

    model_config = _DOCUMENT_CONFIG

    name: str


class OutlineDescription(BaseModel):
    model_config = _DOCUMENT_CONFIG

    type: DescriptionType | str
    term_template: str | None = None


class ConceptOutline(BaseModel):
    model_config = _DOCUMENT_CONFIG

    descriptions: list[OutlineDescription] = Field(default_factory=list)


class ConceptTemplate(BaseModel):
    """A stored concept template."""

    model_config = _DOCUMENT_CONFIG

    name: str
    logical_template: str
    domain: str | None = None
    version: int | None = None
    lexical_templates: list[LexicalTemplate] = Field(default_factory=list)
    concept_outline: ConceptOutline = Field(default_factory=ConceptOutline)
    additional_slots: list[str] = Field(default_factory=list)

    def term_templates(self, description_type: DescriptionType) -> list[str]:
        """Term templates of outline descriptions of *description_type*."""
        return [
            d.term_template
            for d in self.concept_outline.descriptions
            if d.type == description_type and d.term_template
        ]

    def lexical_names(self) -> set[str]:
        return {lt.name for lt in self.lexical_templates}
