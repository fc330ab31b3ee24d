"""Logical template model — focus concepts, attribute groups, attributes.

Pure value objects, no infrastructure dependencies. Produced by
:func:`tmplctl.domain.parser.parse_logical_template` and consumed by the
ECL compiler and the exact-match verifier.

INVARIANT: instances are frozen; a parsed template is never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

UNBOUNDED: Literal["*"] = "*"

CardinalityMax = int | Literal["*"]


@dataclass(frozen=True)
class Attribute:
    """One ``type = value`` constraint of a logical template.

    Exactly one of ``value``, ``value_allowable_range_ecl`` and
    ``value_slot_reference`` is normally populated. The model does not
    enforce it; consumers read them in that order.
    """

    type: str
    value: str | None = None
    value_allowable_range_ecl: str | None = None
    value_slot_reference: str | None = None  # name of a slot declared elsewhere
    value_slot_name: str | None = None  # name this attribute's slot declares
    cardinality_min: int | None = None
    cardinality_max: CardinalityMax | None = None

    @property
    def is_mandatory(self) -> bool:
        return self.cardinality_min == 1

    @property
    def slot_value(self) -> str | None:
        """Concrete text a reference to this attribute's slot resolves to."""
        if self.value is not None:
            return self.value
        return self.value_allowable_range_ecl


@dataclass(frozen=True)
class AttributeGroup:
    """Attributes that must co-occur within one relationship group."""

    attributes: tuple[Attribute, ...]
    cardinality_min: int | None = None
    cardinality_max: CardinalityMax | None = None

    @property
    def is_mandatory(self) -> bool:
        return self.cardinality_min == 1


@dataclass(frozen=True)
class LogicalTemplate:
    """Parsed logical template.

    ``focus_concepts[0]`` is the anchor every candidate must descend from.
    """

    focus_concepts: tuple[str, ...]
    attribute_groups: tuple[AttributeGroup, ...] = field(default_factory=tuple)
    ungrouped_attributes: tuple[Attribute, ...] = field(default_factory=tuple)

    def all_attributes(self) -> list[Attribute]:
        """Ungrouped attributes followed by each group's, in template order."""
        attributes = list(self.ungrouped_attributes)
        for group in self.attribute_groups:
            attributes.extend(group.attributes)
        return attributes

    def slot_names(self) -> list[str]:
        """Names of all value slots declared in the template."""
        return [a.value_slot_name for a in self.all_attributes() if a.value_slot_name]
