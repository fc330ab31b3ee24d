"""Tests for exact-match verification."""

from __future__ import annotations

from tmplctl.domain.conformance import (
    EXTRA_ATTRIBUTE,
    IS_A,
    MISSING_MANDATORY,
    active_relationships,
    contains_extra_attribute,
    explain_non_conformance,
    find_non_conforming,
    missing_mandatory_attribute,
    realized_groups,
    template_type_sets,
)
from tmplctl.domain.concepts import ConceptDetail
from tmplctl.domain.parser import parse_logical_template
from tests.conftest import make_concept

METHOD = "260686004"
SITE = "405813007"
INTENT = "363703001"
LATERALITY = "272741003"

TEMPLATE = parse_logical_template(
    f"71388002:[[~1..1]]{{[[~1..1]]{METHOD}=312251004,"
    f"[[~1..1]]{SITE}=[[+id(<<442083009)@procSite]],"
    f"[[~0..1]]{INTENT}=429892002}}"
)


def _non_conforming(concepts: list[ConceptDetail], stated: bool = True) -> set[str]:
    return find_non_conforming(
        concepts, TEMPLATE.attribute_groups, TEMPLATE.ungrouped_attributes, stated
    )


class TestTypeSets:
    def test_sets(self) -> None:
        sets = template_type_sets(TEMPLATE.attribute_groups, TEMPLATE.ungrouped_attributes)
        assert sets.allowed == (frozenset({METHOD, SITE, INTENT}), frozenset({IS_A}))
        assert sets.mandatory == (frozenset({METHOD, SITE}), frozenset({IS_A}))

    def test_optional_group_contributes_no_mandatory_set(self) -> None:
        template = parse_logical_template(f"71388002:[[~0..1]]{{[[~1..1]]{METHOD}=312251004}}")
        sets = template_type_sets(template.attribute_groups, template.ungrouped_attributes)
        assert sets.mandatory == (frozenset({IS_A}),)

    def test_ungrouped_attributes(self) -> None:
        template = parse_logical_template(f"71388002:[[~1..1]]{LATERALITY}=7771000")
        sets = template_type_sets(template.attribute_groups, template.ungrouped_attributes)
        assert sets.allowed == (frozenset({IS_A, LATERALITY}),)
        assert sets.mandatory == (frozenset({IS_A, LATERALITY}),)


class TestRelationshipSource:
    def test_stated_reads_active_axioms(self) -> None:
        concept = make_concept("1000001", stated=[(1, METHOD, "312251004")], parent="71388002")
        types = {r.attribute_type for r in active_relationships(concept, True)}
        assert types == {IS_A, METHOD}

    def test_inferred_reads_inferred_relationships(self) -> None:
        concept = make_concept(
            "1000001", stated=[(1, METHOD, "1")], inferred=[(1, SITE, "2")], parent="71388002"
        )
        groups = realized_groups(concept, stated=False)
        assert groups == {0: frozenset({IS_A}), 1: frozenset({SITE})}

    def test_inactive_and_non_inferred_ignored(self) -> None:
        concept = ConceptDetail.model_validate(
            {
                "conceptId": "1000001",
                "relationships": [
                    {
                        "active": False,
                        "typeId": SITE,
                        "characteristicType": "INFERRED_RELATIONSHIP",
                    },
                    {"active": True, "typeId": METHOD, "characteristicType": "STATED_RELATIONSHIP"},
                ],
                "classAxioms": [
                    {"active": False, "relationships": [{"type": {"conceptId": INTENT}}]}
                ],
            }
        )
        assert active_relationships(concept, False) == []
        assert active_relationships(concept, True) == []


class TestVerifier:
    def test_conforming_concept_kept(self) -> None:
        concept = make_concept(
            "1000001",
            stated=[(1, METHOD, "312251004"), (1, SITE, "442083009")],
            parent="71388002",
        )
        assert _non_conforming([concept]) == set()

    def test_optional_attribute_may_be_present(self) -> None:
        concept = make_concept(
            "1000001",
            stated=[(1, METHOD, "1"), (1, SITE, "2"), (1, INTENT, "3")],
            parent="71388002",
        )
        assert _non_conforming([concept]) == set()

    def test_extra_stated_relationship_excluded(self) -> None:
        concept = make_concept(
            "1000002",
            stated=[(1, METHOD, "1"), (1, SITE, "2"), (1, LATERALITY, "3")],
            parent="71388002",
        )
        assert _non_conforming([concept]) == {"1000002"}

    def test_extra_ungrouped_relationship_excluded(self) -> None:
        concept = make_concept(
            "1000002",
            stated=[(0, LATERALITY, "3"), (1, METHOD, "1"), (1, SITE, "2")],
            parent="71388002",
        )
        assert _non_conforming([concept]) == {"1000002"}

    def test_missing_mandatory_excluded(self) -> None:
        concept = make_concept("1000003", stated=[(1, METHOD, "1")], parent="71388002")
        assert _non_conforming([concept]) == {"1000003"}

    def test_mandatory_split_across_groups_excluded(self) -> None:
        concept = make_concept(
            "1000004", stated=[(1, METHOD, "1"), (2, SITE, "2")], parent="71388002"
        )
        assert _non_conforming([concept]) == {"1000004"}

    def test_inferred_view_checked_when_not_stated(self) -> None:
        concept = make_concept(
            "1000005",
            stated=[(1, METHOD, "1"), (1, SITE, "2"), (1, LATERALITY, "3")],
            inferred=[(1, METHOD, "1"), (1, SITE, "2")],
            parent="71388002",
        )
        assert _non_conforming([concept], stated=True) == {"1000005"}
        assert _non_conforming([concept], stated=False) == set()

    def test_reasons(self) -> None:
        extra = make_concept(
            "1000006", stated=[(1, METHOD, "1"), (1, LATERALITY, "3")], parent="71388002"
        )
        reasons = explain_non_conformance(
            [extra], TEMPLATE.attribute_groups, TEMPLATE.ungrouped_attributes, True
        )
        assert reasons == {"1000006": [MISSING_MANDATORY, EXTRA_ATTRIBUTE]}

    def test_custom_is_a(self) -> None:
        concept = make_concept(
            "1000007", stated=[(0, "999", "1"), (1, METHOD, "1"), (1, SITE, "2")]
        )
        found = find_non_conforming(
            [concept], TEMPLATE.attribute_groups, TEMPLATE.ungrouped_attributes, True, is_a="999"
        )
        assert found == set()


class TestSetHelpers:
    def test_missing_mandatory(self) -> None:
        assert missing_mandatory_attribute([frozenset({"a", "b"})], [frozenset({"a"})])
        assert not missing_mandatory_attribute(
            [frozenset({"a", "b"})], [frozenset({"c"}), frozenset({"a", "b", "c"})]
        )
        assert not missing_mandatory_attribute([], [frozenset({"a"})])

    def test_contains_extra(self) -> None:
        allowed = [frozenset({"a", "b"}), frozenset({"c"})]
        assert not contains_extra_attribute(allowed, [frozenset({"a"}), frozenset({"c"})])
        assert contains_extra_attribute(allowed, [frozenset({"a", "c"})])
        assert not contains_extra_attribute(allowed, [])
