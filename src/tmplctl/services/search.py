"""TemplateSearchService — find concepts that match or mismatch a template.

Pipeline per call, no state kept between calls:

1. Validate the match-polarity flags.
2. Load the template and parse its logical template.
3. Compile the domain ECL and the logical ECL; combine them with
   ``AND`` (match) or ``MINUS`` (mismatch).
4. Evaluate the combined query, capped at ``search.max_results``.
5. Fetch concept detail and drop false positives the exact-match
   verifier finds.
6. Optionally keep only concepts whose term patterns match (or not).

An empty query result ends the pipeline before any detail fetch.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from tmplctl.config.logging import search_log_context
from tmplctl.domain.concepts import ConceptDetail, DescriptionType
from tmplctl.domain.conformance import explain_non_conformance, find_non_conforming
from tmplctl.domain.ecl import combine_ecl, compile_domain_ecl, compile_ecl
from tmplctl.domain.errors import InvalidTemplateError, ParseError
from tmplctl.domain.lexical import compile_patterns, is_lexically_matched, validate_term_slots
from tmplctl.domain.logical import LogicalTemplate
from tmplctl.domain.template import ConceptTemplate
from tmplctl.infrastructure.terminology import TerminologyClientError
from tmplctl.services.base import BaseService
from tmplctl.services.contracts import SearchResultData, VerifyResultData, dump_validated
from tmplctl.services.result import (
    INVALID_ARGUMENT,
    INVALID_TEMPLATE,
    PARSE_ERROR,
    SERVICE_ERROR,
    ServiceResult,
)

log = structlog.get_logger(__name__)

LEXICAL_DESCRIPTION_TYPES = (DescriptionType.FSN, DescriptionType.SYNONYM)


@dataclass
class _LogicalOutcome:
    """Intermediate state of the logical stage."""

    concept_ids: set[str]
    details: dict[str, ConceptDetail] = field(default_factory=dict)
    excluded: int = 0
    truncated: bool = False
    warnings: list[str] = field(default_factory=list)


class TemplateSearchService(BaseService):
    """Searches a terminology branch for concepts conforming to a template."""

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    def search(
        self,
        template_name: str,
        branch: str | None = None,
        *,
        logical_match: bool | None,
        lexical_match: bool | None = None,
        stated: bool = True,
    ) -> ServiceResult:
        """Search *branch* for concepts that logically (and lexically) match.

        Args:
            template_name: Name of the stored concept template.
            branch: Branch path; defaults to ``search.default_branch``.
            logical_match: True evaluates ``(domain) AND (logical)``, False
                evaluates ``(domain) MINUS (logical)``. Required.
            lexical_match: When set, additionally keep only concepts whose
                FSN and synonym term patterns match (True) or do not (False).
                Only allowed with ``logical_match=True``.
            stated: Inspect stated (axiom) relationships instead of inferred.
        """
        branch = branch or self._workspace.settings.search.default_branch
        with search_log_context(template_name, branch):
            return self._search(template_name, branch, logical_match, lexical_match, stated)

    def _search(
        self,
        template_name: str,
        branch: str,
        logical_match: bool | None,
        lexical_match: bool | None,
        stated: bool,
    ) -> ServiceResult:
        op = "search"
        log.info(
            "search.start",
            logical_match=logical_match,
            lexical_match=lexical_match,
            stated=stated,
        )

        if logical_match is None:
            return ServiceResult.failure(
                op, INVALID_ARGUMENT, "logical_match parameter must be specified"
            )
        if lexical_match is not None and not logical_match:
            return ServiceResult.failure(
                op, INVALID_ARGUMENT, "logical_match must be true when lexical_match is set"
            )

        loaded = self._load_template(op, template_name)
        if isinstance(loaded, ServiceResult):
            return loaded
        template, logical = loaded

        patterns: dict[DescriptionType, list[re.Pattern[str]]] = {}
        try:
            if lexical_match is not None:
                patterns = _term_patterns(template)
            domain_ecl = compile_domain_ecl(logical.focus_concepts)
            logical_ecl = compile_ecl(
                logical.focus_concepts, logical.attribute_groups, logical.ungrouped_attributes
            )
        except ParseError as exc:
            return ServiceResult.failure(op, PARSE_ERROR, str(exc), template=template_name)
        except InvalidTemplateError as exc:
            return ServiceResult.failure(op, INVALID_TEMPLATE, str(exc), template=template_name)

        log.debug("search.compiled", domain_ecl=domain_ecl, logical_ecl=logical_ecl)
        ecl = combine_ecl(domain_ecl, logical_ecl, logical_match)
        log.info("search.ecl", ecl=ecl, stated=stated)

        try:
            outcome = self._logical_search(branch, ecl, logical, stated)
        except TerminologyClientError as exc:
            message = (
                f"Failed to complete logical template search for template {template_name} "
                f"on branch {branch} due to {exc}"
            )
            log.warning("search.failed", error=str(exc))
            return ServiceResult.failure(
                op, SERVICE_ERROR, message, template=template_name, branch=branch
            )
        log.info("search.logical_results", count=len(outcome.concept_ids))

        concept_ids = outcome.concept_ids
        if lexical_match is not None and concept_ids:
            concept_ids = _lexical_filter(concept_ids, outcome.details, patterns, lexical_match)
            log.info(
                "search.lexical_results",
                logical=len(outcome.concept_ids),
                lexical=len(concept_ids),
            )

        data = {
            "template": template_name,
            "branch": branch,
            "logical_match": logical_match,
            "lexical_match": lexical_match,
            "stated": stated,
            "ecl": ecl,
            "count": len(concept_ids),
            "concept_ids": sorted(concept_ids),
            "excluded": outcome.excluded,
            "truncated": outcome.truncated,
        }
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(SearchResultData, data),
            warnings=outcome.warnings,
        )

    def _evaluate(
        self, branch: str, ecl: str, stated: bool, warnings: list[str]
    ) -> tuple[set[str], bool]:
        max_results = self._workspace.settings.search.max_results
        result = self._workspace.terminology.ecl_query(branch, ecl, max_results, stated)
        if result.truncated:
            warnings.append(
                f"Query matched {result.total} concepts; only {len(result.concept_ids)} "
                f"were examined (search.max_results={max_results})"
            )
            log.warning("search.truncated", total=result.total, returned=len(result.concept_ids))
        return set(result.concept_ids), result.truncated

    def _fetch(self, branch: str, concept_ids: Iterable[str]) -> dict[str, ConceptDetail]:
        concepts = self._workspace.terminology.fetch_concepts(branch, sorted(concept_ids))
        return {c.concept_id: c for c in concepts}

    def _non_conforming(
        self, details: Iterable[ConceptDetail], logical: LogicalTemplate, stated: bool
    ) -> set[str]:
        constants = self._workspace.settings.concepts
        return find_non_conforming(
            details,
            logical.attribute_groups,
            logical.ungrouped_attributes,
            stated,
            is_a=constants.is_a,
            inferred_characteristic_type=constants.inferred_characteristic_type,
        )

    def _logical_search(
        self, branch: str, ecl: str, logical: LogicalTemplate, stated: bool
    ) -> _LogicalOutcome:
        """Evaluate *ecl* and drop the candidates the exact-match verifier rejects.

        Both polarities take this path; for a ``MINUS`` query the verifier
        still removes candidates whose relationship groups do not fit.
        """
        warnings: list[str] = []
        concept_ids, truncated = self._evaluate(branch, ecl, stated, warnings)
        if not concept_ids:
            log.info("search.empty")
            return _LogicalOutcome(concept_ids=set(), truncated=truncated, warnings=warnings)

        details = self._fetch(branch, concept_ids)
        to_remove = self._non_conforming(details.values(), logical, stated) & concept_ids
        if to_remove:
            log.info("search.excluded", count=len(to_remove))
            log.debug("search.excluded_ids", concept_ids=sorted(to_remove))
        return _LogicalOutcome(
            concept_ids=concept_ids - to_remove,
            details=details,
            excluded=len(to_remove),
            truncated=truncated,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # verify: explain exact-match results for given concepts
    # ------------------------------------------------------------------

    def verify(
        self,
        template_name: str,
        concept_ids: Sequence[str],
        branch: str | None = None,
        *,
        stated: bool = True,
    ) -> ServiceResult:
        """Run the exact-match verifier on *concept_ids* and report reasons."""
        branch = branch or self._workspace.settings.search.default_branch
        with search_log_context(template_name, branch):
            return self._verify(template_name, concept_ids, branch, stated)

    def _verify(
        self, template_name: str, concept_ids: Sequence[str], branch: str, stated: bool
    ) -> ServiceResult:
        op = "verify"
        log.info("verify.start", count=len(concept_ids), stated=stated)
        if not concept_ids:
            return ServiceResult.failure(op, INVALID_ARGUMENT, "No concept ids given")

        loaded = self._load_template(op, template_name)
        if isinstance(loaded, ServiceResult):
            return loaded
        _template, logical = loaded

        try:
            details = self._fetch(branch, set(concept_ids))
        except TerminologyClientError as exc:
            message = (
                f"Failed to fetch concepts for template {template_name} "
                f"on branch {branch} due to {exc}"
            )
            return ServiceResult.failure(
                op, SERVICE_ERROR, message, template=template_name, branch=branch
            )

        constants = self._workspace.settings.concepts
        reasons = explain_non_conformance(
            details.values(),
            logical.attribute_groups,
            logical.ungrouped_attributes,
            stated,
            is_a=constants.is_a,
            inferred_characteristic_type=constants.inferred_characteristic_type,
        )
        data = {
            "template": template_name,
            "branch": branch,
            "stated": stated,
            "checked": len(details),
            "conforming": sorted(cid for cid in details if cid not in reasons),
            "non_conforming": [
                {"concept_id": cid, "reasons": reasons[cid]} for cid in sorted(reasons)
            ],
            "not_found": sorted(set(concept_ids) - set(details)),
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(VerifyResultData, data))


def _term_patterns(template: ConceptTemplate) -> dict[DescriptionType, list[re.Pattern[str]]]:
    """Compile FSN and synonym term templates after validating their slots."""
    patterns: dict[DescriptionType, list[re.Pattern[str]]] = {}
    for description_type in LEXICAL_DESCRIPTION_TYPES:
        term_templates = template.term_templates(description_type)
        validate_term_slots(term_templates, template.lexical_names(), template.additional_slots)
        patterns[description_type] = list(compile_patterns(term_templates))
    return patterns


def _lexical_filter(
    concept_ids: set[str],
    details: dict[str, ConceptDetail],
    patterns: dict[DescriptionType, list[re.Pattern[str]]],
    lexical_match: bool,
) -> set[str]:
    """Keep concepts whose lexical-match outcome equals *lexical_match*."""
    return {
        cid
        for cid in concept_ids
        if cid in details and is_lexically_matched(details[cid], patterns) == lexical_match
    }
