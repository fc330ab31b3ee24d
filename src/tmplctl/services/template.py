"""TemplateService — inspect stored templates and their compiled queries."""

from __future__ import annotations

from tmplctl.domain.concepts import DescriptionType
from tmplctl.domain.ecl import combine_ecl, compile_domain_ecl, compile_ecl
from tmplctl.domain.errors import InvalidTemplateError
from tmplctl.services.base import BaseService
from tmplctl.services.contracts import (
    CompileResultData,
    TemplateListData,
    TemplateSummary,
    dump_validated,
)
from tmplctl.services.result import INVALID_TEMPLATE, ServiceResult


class TemplateService(BaseService):
    """Read-only operations on concept templates."""

    def list_templates(self) -> ServiceResult:
        names = self._workspace.templates.names()
        data = {"count": len(names), "templates": names}
        return ServiceResult(
            ok=True, op="list_templates", data=dump_validated(TemplateListData, data)
        )

    def show(self, name: str) -> ServiceResult:
        """Summarize the logical and lexical parts of template *name*."""
        loaded = self._load_template("show", name)
        if isinstance(loaded, ServiceResult):
            return loaded
        template, logical = loaded

        data = {
            "name": template.name,
            "focus_concepts": list(logical.focus_concepts),
            "attribute_groups": len(logical.attribute_groups),
            "ungrouped_attributes": len(logical.ungrouped_attributes),
            "mandatory_attributes": sorted(
                {a.type for a in logical.all_attributes() if a.is_mandatory}
            ),
            "slots": logical.slot_names(),
            "fsn_term_templates": template.term_templates(DescriptionType.FSN),
            "synonym_term_templates": template.term_templates(DescriptionType.SYNONYM),
        }
        return ServiceResult(ok=True, op="show", data=dump_validated(TemplateSummary, data))

    def compile(self, name: str) -> ServiceResult:
        """Compile template *name* to its domain, logical and combined ECL."""
        loaded = self._load_template("compile", name)
        if isinstance(loaded, ServiceResult):
            return loaded
        _template, logical = loaded

        try:
            domain_ecl = compile_domain_ecl(logical.focus_concepts)
            logical_ecl = compile_ecl(
                logical.focus_concepts, logical.attribute_groups, logical.ungrouped_attributes
            )
        except InvalidTemplateError as exc:
            return ServiceResult.failure("compile", INVALID_TEMPLATE, str(exc), template=name)

        data = {
            "template": name,
            "domain_ecl": domain_ecl,
            "logical_ecl": logical_ecl,
            "match_ecl": combine_ecl(domain_ecl, logical_ecl, True),
            "mismatch_ecl": combine_ecl(domain_ecl, logical_ecl, False),
        }
        return ServiceResult(ok=True, op="compile", data=dump_validated(CompileResultData, data))
