"""ECL compiler — logical template to Expression Constraint Language.

Pure functions, no infrastructure dependencies. The emitted query is
deliberately coarser than the template: ECL cannot forbid extra
attributes inside a group, so results are re-checked by
:mod:`tmplctl.domain.conformance`.

Grammar emitted::

    <<C                      descendants-or-self of C
    A:term,term              refinement
    type=value               attribute
    [min..max]term           cardinality (each half only when its bound is set)
    {term,term}              attribute group
    (a) AND (b)              conjunction of two queries
    (a) MINUS (b)            exclusion
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from tmplctl.domain.errors import InvalidTemplateError
from tmplctl.domain.logical import Attribute, AttributeGroup, CardinalityMax

DESCENDANT_OR_SELF = "<<"
CARDINALITY_SEPARATOR = ".."
AND = "AND"
MINUS = "MINUS"

# Operator tokens that make a range compound; "ORGAN" or "BAND" must not count.
_COMPOUND_OPERATOR = re.compile(r"\b(?:AND|OR)\b")


def cardinality_prefix(low: int | None, high: CardinalityMax | None) -> str:
    """Render ``[low..high]``, emitting only the halves whose bound is set."""
    prefix = ""
    if low is not None:
        prefix += f"[{low}{CARDINALITY_SEPARATOR}"
    if high is not None:
        prefix += f"{high}]"
    return prefix


def is_compound_range(range_ecl: str) -> bool:
    """True if *range_ecl* contains an ``AND``/``OR`` operator token."""
    return _COMPOUND_OPERATOR.search(range_ecl) is not None


def render_value(attribute: Attribute) -> str:
    """Render the right-hand side of ``type=value``.

    First non-empty wins: literal value, allowable range, slot reference.
    """
    if attribute.value is not None:
        return attribute.value
    if attribute.value_allowable_range_ecl is not None:
        range_ecl = attribute.value_allowable_range_ecl
        return f"({range_ecl})" if is_compound_range(range_ecl) else range_ecl
    if attribute.value_slot_reference is not None:
        return attribute.value_slot_reference
    return ""


def render_attribute(attribute: Attribute) -> str:
    prefix = cardinality_prefix(attribute.cardinality_min, attribute.cardinality_max)
    return f"{prefix}{attribute.type}={render_value(attribute)}"


def slot_map(attributes: Iterable[Attribute]) -> dict[str, str]:
    """Map each declared slot name to the text a reference to it resolves to.

    Slots that declare neither a value nor a range are left out.
    """
    slots: dict[str, str] = {}
    for attribute in attributes:
        if attribute.value_slot_name is None:
            continue
        resolved = attribute.slot_value
        if resolved is not None:
            slots[attribute.value_slot_name] = resolved
    return slots


def substitute_slots(ecl: str, slots: dict[str, str]) -> str:
    """Replace every exact ``=name`` token with ``=resolved``.

    ``=name`` followed by another identifier character is a different
    token and is left untouched.
    """
    result = ecl
    for name, resolved in slots.items():
        pattern = re.compile("=" + re.escape(name) + r"(?![\w\-])")
        result = pattern.sub(lambda _m, value=resolved: "=" + value, result)
    return result


class EclBuilder:
    """Accumulates refinement terms and renders the final query.

    Usage::

        builder = EclBuilder("71388002")
        builder.add_attributes(template.ungrouped_attributes)
        for group in template.attribute_groups:
            builder.add_group(group)
        ecl = builder.build()
    """

    def __init__(self, focus_concept: str) -> None:
        self._focus = focus_concept
        self._terms: list[str] = []
        self._attributes: list[Attribute] = []

    def add_attributes(self, attributes: Iterable[Attribute]) -> EclBuilder:
        for attribute in attributes:
            self._attributes.append(attribute)
            self._terms.append(render_attribute(attribute))
        return self

    def add_group(self, group: AttributeGroup) -> EclBuilder:
        self._attributes.extend(group.attributes)
        inner = ",".join(render_attribute(a) for a in group.attributes)
        prefix = cardinality_prefix(group.cardinality_min, group.cardinality_max)
        self._terms.append(f"{prefix}{{{inner}}}")
        return self

    def build(self) -> str:
        """Assemble the query and resolve slot references.

        Raises:
            InvalidTemplateError: if an attribute references a slot that no
                attribute declares with a value or range.
        """
        ecl = f"{DESCENDANT_OR_SELF}{self._focus}"
        if self._terms:
            ecl += ":" + ",".join(self._terms)

        slots = slot_map(self._attributes)
        for attribute in self._attributes:
            ref = attribute.value_slot_reference
            if ref is None or attribute.value is not None:
                continue
            if attribute.value_allowable_range_ecl is None and ref not in slots:
                raise InvalidTemplateError(
                    f"Slot reference '${ref}' on attribute {attribute.type} "
                    "does not resolve to any declared slot"
                )
        return substitute_slots(ecl, slots)


def _primary_focus(focus_concepts: Sequence[str]) -> str:
    if not focus_concepts:
        raise InvalidTemplateError("No focus concepts defined")
    return focus_concepts[0]


def compile_ecl(
    focus_concepts: Sequence[str],
    attribute_groups: Sequence[AttributeGroup] = (),
    ungrouped_attributes: Sequence[Attribute] = (),
) -> str:
    """Compile a logical template into an ECL query string.

    Example::

        >>> group = AttributeGroup((Attribute("260686004", "312251004"),), 1, 1)
        >>> compile_ecl(["71388002"], [group])
        '<<71388002:[1..1]{260686004=312251004}'
    """
    builder = EclBuilder(_primary_focus(focus_concepts))
    builder.add_attributes(ungrouped_attributes)
    for group in attribute_groups:
        builder.add_group(group)
    return builder.build()


def compile_domain_ecl(focus_concepts: Sequence[str]) -> str:
    """Query for the template's domain: the focus concept and its descendants."""
    return EclBuilder(_primary_focus(focus_concepts)).build()


def combine_ecl(domain_ecl: str, logical_ecl: str, logical_match: bool) -> str:
    """``(domain) AND (logical)`` when matching, ``(domain) MINUS (logical)`` otherwise."""
    operator = AND if logical_match else MINUS
    return f"({domain_ecl}) {operator} ({logical_ecl})"
