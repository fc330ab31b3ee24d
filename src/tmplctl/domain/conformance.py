"""Exact-match verification of candidate concepts against a template.

ECL only asserts that *some* assignment of a candidate's relationship
groups satisfies the template. It does not forbid extra attribute types
inside a group, and it does not check that every mandatory attribute is
present. Both are checked here against each candidate's realized
relationship groups.

Pure functions, no infrastructure dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from tmplctl.domain.concepts import ConceptDetail, Relationship
from tmplctl.domain.logical import Attribute, AttributeGroup

IS_A = "116680003"
INFERRED_RELATIONSHIP = "INFERRED_RELATIONSHIP"

MISSING_MANDATORY = "missing_mandatory"
EXTRA_ATTRIBUTE = "extra_attribute"


@dataclass(frozen=True)
class TemplateTypeSets:
    """Attribute types a template allows and requires, one set per group.

    The last entry of each tuple is the ungrouped (group 0) set.
    """

    allowed: tuple[frozenset[str], ...]
    mandatory: tuple[frozenset[str], ...]


def template_type_sets(
    attribute_groups: Sequence[AttributeGroup],
    ungrouped_attributes: Sequence[Attribute],
    *,
    is_a: str = IS_A,
) -> TemplateTypeSets:
    """Build the allowed and mandatory type sets of a template.

    A group contributes its mandatory set only when the group itself is
    mandatory (``cardinality_min == 1``). The ungrouped set always allows
    and requires IS-A.
    """
    allowed: list[frozenset[str]] = []
    mandatory: list[frozenset[str]] = []
    for group in attribute_groups:
        allowed.append(frozenset(a.type for a in group.attributes))
        if group.is_mandatory:
            mandatory.append(frozenset(a.type for a in group.attributes if a.is_mandatory))

    ungrouped = {is_a, *(a.type for a in ungrouped_attributes)}
    mandatory_ungrouped = {is_a, *(a.type for a in ungrouped_attributes if a.is_mandatory)}
    allowed.append(frozenset(ungrouped))
    mandatory.append(frozenset(mandatory_ungrouped))
    return TemplateTypeSets(allowed=tuple(allowed), mandatory=tuple(mandatory))


def active_relationships(
    concept: ConceptDetail,
    stated: bool,
    *,
    inferred_characteristic_type: str = INFERRED_RELATIONSHIP,
) -> list[Relationship]:
    """Relationships to inspect: active axioms when *stated*, else active inferred."""
    if stated:
        return [
            rel
            for axiom in concept.class_axioms
            if axiom.active
            for rel in axiom.relationships
        ]
    return [
        rel
        for rel in concept.relationships
        if rel.active and rel.characteristic_type == inferred_characteristic_type
    ]


def realized_groups(
    concept: ConceptDetail,
    stated: bool,
    *,
    inferred_characteristic_type: str = INFERRED_RELATIONSHIP,
) -> dict[int, frozenset[str]]:
    """Map each relationship group id of *concept* to the attribute types in it."""
    groups: dict[int, set[str]] = {}
    for rel in active_relationships(
        concept, stated, inferred_characteristic_type=inferred_characteristic_type
    ):
        attr_type = rel.attribute_type
        if attr_type is None:
            continue
        groups.setdefault(rel.group_id, set()).add(attr_type)
    return {group_id: frozenset(types) for group_id, types in groups.items()}


def missing_mandatory_attribute(
    mandatory: Iterable[frozenset[str]],
    groups: Iterable[frozenset[str]],
) -> bool:
    """True if some mandatory set is not covered by any single realized group."""
    realized = list(groups)
    return any(not any(required <= group for group in realized) for required in mandatory)


def contains_extra_attribute(
    allowed: Iterable[frozenset[str]],
    groups: Iterable[frozenset[str]],
) -> bool:
    """True if some realized group is not contained in any single allowed set."""
    permitted = list(allowed)
    return any(not any(group <= candidate for candidate in permitted) for group in groups)


def explain_non_conformance(
    concepts: Iterable[ConceptDetail],
    attribute_groups: Sequence[AttributeGroup],
    ungrouped_attributes: Sequence[Attribute],
    stated: bool,
    *,
    is_a: str = IS_A,
    inferred_characteristic_type: str = INFERRED_RELATIONSHIP,
) -> dict[str, list[str]]:
    """Reasons each non-conforming concept fails, keyed by concept id.

    Reasons are :data:`MISSING_MANDATORY` and :data:`EXTRA_ATTRIBUTE`.
    Conforming concepts are absent from the result.
    """
    type_sets = template_type_sets(attribute_groups, ungrouped_attributes, is_a=is_a)
    reasons: dict[str, list[str]] = {}
    for concept in concepts:
        groups = realized_groups(
            concept, stated, inferred_characteristic_type=inferred_characteristic_type
        ).values()
        failures: list[str] = []
        if missing_mandatory_attribute(type_sets.mandatory, groups):
            failures.append(MISSING_MANDATORY)
        if contains_extra_attribute(type_sets.allowed, groups):
            failures.append(EXTRA_ATTRIBUTE)
        if failures:
            reasons[concept.concept_id] = failures
    return reasons


def find_non_conforming(
    concepts: Iterable[ConceptDetail],
    attribute_groups: Sequence[AttributeGroup],
    ungrouped_attributes: Sequence[Attribute],
    stated: bool,
    *,
    is_a: str = IS_A,
    inferred_characteristic_type: str = INFERRED_RELATIONSHIP,
) -> set[str]:
    """Ids of *concepts* that miss a mandatory attribute or carry an extra one."""
    return set(
        explain_non_conformance(
            concepts,
            attribute_groups,
            ungrouped_attributes,
            stated,
            is_a=is_a,
            inferred_characteristic_type=inferred_characteristic_type,
        )
    )
