"""Logical template parser — template text to :class:`LogicalTemplate`.

Handles the subset of the template grammar that authoring templates use::

    71388002 |Procedure|:
        [[~1..1]] {
            260686004 |Method| = 312251004 |Computed tomography imaging action|,
            [[~1..1]] 405813007 |Procedure site| = [[+id(<< 442083009) @procSite]]
        }

Concept terms (``|...|``) after a concept id are dropped. Allowable ranges
inside ``[[+id(...)]]`` are kept verbatim, terms included, so the compiled
ECL stays readable.
"""

from __future__ import annotations

import re
from typing import NoReturn

from tmplctl.domain.errors import ParseError
from tmplctl.domain.logical import (
    UNBOUNDED,
    Attribute,
    AttributeGroup,
    CardinalityMax,
    LogicalTemplate,
)

_CONCEPT_ID = re.compile(r"\d{6,18}")
_CARDINALITY = re.compile(r"\[\[\s*~\s*(\d+)\s*\.\.\s*(\d+|\*)?\s*\]\]")
_SLOT_KIND = re.compile(r"\+\s*([A-Za-z]+)")
_SLOT_NAME = re.compile(r"[A-Za-z_][\w\-]*")


class _Scanner:
    """Cursor over the template text with the few primitives the grammar needs."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def at_end(self) -> bool:
        self.skip_ws()
        return self.pos >= len(self.text)

    def peek(self, token: str) -> bool:
        self.skip_ws()
        return self.text.startswith(token, self.pos)

    def accept(self, token: str) -> bool:
        if self.peek(token):
            self.pos += len(token)
            return True
        return False

    def expect(self, token: str) -> None:
        if not self.accept(token):
            self.fail(f"expected '{token}'")

    def match(self, pattern: re.Pattern[str]) -> re.Match[str] | None:
        self.skip_ws()
        m = pattern.match(self.text, self.pos)
        if m is not None:
            self.pos = m.end()
        return m

    def fail(self, message: str) -> NoReturn:
        found = self.text[self.pos : self.pos + 20] or "end of input"
        raise ParseError(f"{message} at position {self.pos} (found {found!r})", position=self.pos)


def parse_logical_template(text: str) -> LogicalTemplate:
    """Parse logical template *text*.

    Raises:
        ParseError: if the text does not follow the template grammar.
    """
    if not text or not text.strip():
        raise ParseError("Logical template is empty", position=0)

    scanner = _Scanner(text)
    focus_concepts = [_read_concept(scanner)]
    while scanner.accept("+"):
        focus_concepts.append(_read_concept(scanner))

    groups: list[AttributeGroup] = []
    ungrouped: list[Attribute] = []
    if scanner.accept(":"):
        while True:
            cardinality = _read_cardinality(scanner)
            if scanner.accept("{"):
                groups.append(_read_group(scanner, cardinality))
            else:
                ungrouped.append(_read_attribute(scanner, cardinality))
            if not scanner.accept(","):
                break

    if not scanner.at_end():
        scanner.fail("unexpected trailing content")

    return LogicalTemplate(
        focus_concepts=tuple(focus_concepts),
        attribute_groups=tuple(groups),
        ungrouped_attributes=tuple(ungrouped),
    )


def _read_concept(scanner: _Scanner) -> str:
    m = scanner.match(_CONCEPT_ID)
    if m is None:
        scanner.fail("expected concept id")
    _skip_term(scanner)
    return m.group(0)


def _skip_term(scanner: _Scanner) -> None:
    if scanner.accept("|"):
        end = scanner.text.find("|", scanner.pos)
        if end == -1:
            scanner.fail("unterminated concept term")
        scanner.pos = end + 1


def _read_cardinality(scanner: _Scanner) -> tuple[int | None, CardinalityMax | None]:
    m = scanner.match(_CARDINALITY)
    if m is None:
        return None, None
    low, high = m.group(1), m.group(2)
    cardinality_max: CardinalityMax | None
    if high is None:
        cardinality_max = None
    elif high == UNBOUNDED:
        cardinality_max = UNBOUNDED
    else:
        cardinality_max = int(high)
    return int(low), cardinality_max


def _read_group(
    scanner: _Scanner,
    cardinality: tuple[int | None, CardinalityMax | None],
) -> AttributeGroup:
    attributes = [_read_attribute(scanner, _read_cardinality(scanner))]
    while scanner.accept(","):
        attributes.append(_read_attribute(scanner, _read_cardinality(scanner)))
    scanner.expect("}")
    return AttributeGroup(
        attributes=tuple(attributes),
        cardinality_min=cardinality[0],
        cardinality_max=cardinality[1],
    )


def _read_attribute(
    scanner: _Scanner,
    cardinality: tuple[int | None, CardinalityMax | None],
) -> Attribute:
    attr_type = _read_concept(scanner)
    scanner.expect("=")
    fields: dict[str, str | None] = {}
    if scanner.peek("[["):
        fields = _read_slot(scanner)
    else:
        fields["value"] = _read_concept(scanner)
    return Attribute(
        type=attr_type,
        cardinality_min=cardinality[0],
        cardinality_max=cardinality[1],
        **fields,
    )


def _read_slot(scanner: _Scanner) -> dict[str, str | None]:
    """Read ``[[+kind(range) @name]]`` or ``[[+kind $reference]]``."""
    scanner.expect("[[")
    if scanner.match(_SLOT_KIND) is None:
        scanner.fail("expected slot kind such as '+id'")

    fields: dict[str, str | None] = {}
    if scanner.accept("$"):
        name = scanner.match(_SLOT_NAME)
        if name is None:
            scanner.fail("expected slot reference name")
        fields["value_slot_reference"] = name.group(0)
        scanner.expect("]]")
        return fields

    if scanner.accept("("):
        fields["value_allowable_range_ecl"] = _read_range(scanner)
    if scanner.accept("@"):
        name = scanner.match(_SLOT_NAME)
        if name is None:
            scanner.fail("expected slot name after '@'")
        fields["value_slot_name"] = name.group(0)
    scanner.expect("]]")
    return fields


def _read_range(scanner: _Scanner) -> str:
    """Read up to the parenthesis closing an allowable range.

    Nested parentheses are balanced; text inside ``|terms|`` is opaque.
    """
    text = scanner.text
    start = scanner.pos
    depth = 1
    in_term = False
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "|":
            in_term = not in_term
        elif not in_term and ch == "(":
            depth += 1
        elif not in_term and ch == ")":
            depth -= 1
            if depth == 0:
                scanner.pos = i + 1
                value = text[start:i].strip()
                if not value:
                    scanner.fail("empty allowable range")
                return value
        i += 1
    scanner.pos = start
    scanner.fail("unbalanced parenthesis in allowable range")
