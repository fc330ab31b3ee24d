"""Typed payload contracts for service results.

These models validate payload shapes before they leave the service layer
so key regressions (for example ``concept_ids`` vs ``concepts``) fail fast
in tests and during development.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class SearchResultData(BaseModel):
    """Payload contract for ``TemplateSearchService.search``."""

    template: str
    branch: str
    logical_match: bool
    lexical_match: bool | None = None
    stated: bool
    ecl: str
    count: int
    concept_ids: list[str]
    excluded: int = 0
    truncated: bool = False


class NonConformingConcept(BaseModel):
    concept_id: str
    reasons: list[str]


class VerifyResultData(BaseModel):
    """Payload contract for ``TemplateSearchService.verify``."""

    template: str
    branch: str
    stated: bool
    checked: int
    conforming: list[str]
    non_conforming: list[NonConformingConcept]
    not_found: list[str] = Field(default_factory=list)


class CompileResultData(BaseModel):
    """Payload contract for ``TemplateService.compile``."""

    template: str
    domain_ecl: str
    logical_ecl: str
    match_ecl: str
    mismatch_ecl: str


class TemplateSummary(BaseModel):
    """Payload contract for ``TemplateService.show``."""

    name: str
    focus_concepts: list[str]
    attribute_groups: int
    ungrouped_attributes: int
    mandatory_attributes: list[str]
    slots: list[str]
    fsn_term_templates: list[str]
    synonym_term_templates: list[str]


class TemplateListData(BaseModel):
    """Payload contract for ``TemplateService.list_templates``."""

    count: int
    templates: list[str]
