"""Lexical matching — term templates to patterns, patterns against terms.

A term template is a description with ``$name$`` placeholders, e.g.
``"CT guided $action$ of $procSite$ (procedure)"``. Each placeholder
names a lexical template of the concept template or one of its
additional slots.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping

from tmplctl.domain.concepts import ConceptDetail, DescriptionType
from tmplctl.domain.errors import ParseError

TERM_SLOT_PATTERN = re.compile(r"\$([^$]+)\$")

# What a placeholder expands to when matching realized terms.
SLOT_WILDCARD = "(.+)"

PatternSlots = dict[re.Pattern[str], frozenset[str]]


def term_slots(term_template: str) -> list[str]:
    """Placeholder names in *term_template*, in order of appearance."""
    return TERM_SLOT_PATTERN.findall(term_template)


def validate_term_slots(
    term_templates: Iterable[str],
    lexical_names: Collection[str],
    additional_slots: Collection[str] = (),
) -> None:
    """Check every placeholder names a lexical template or an additional slot.

    Raises:
        ParseError: naming the first undeclared placeholder.
    """
    for term_template in term_templates:
        for name in term_slots(term_template):
            if name not in lexical_names and name not in additional_slots:
                raise ParseError(
                    f"Term template '{term_template}' references '{name}', "
                    "which is neither a lexical template nor an additional slot"
                )


def compile_term_pattern(term_template: str) -> re.Pattern[str]:
    """Compile *term_template* into a pattern; literal text is matched verbatim."""
    parts: list[str] = []
    last = 0
    for m in TERM_SLOT_PATTERN.finditer(term_template):
        parts.append(re.escape(term_template[last : m.start()]))
        parts.append(SLOT_WILDCARD)
        last = m.end()
    parts.append(re.escape(term_template[last:]))
    return re.compile("".join(parts))


def compile_patterns(term_templates: Iterable[str]) -> PatternSlots:
    """Compile each term template, keyed to the slot names it references."""
    return {compile_term_pattern(t): frozenset(term_slots(t)) for t in term_templates}


def matches(pattern: re.Pattern[str], terms: Iterable[str]) -> bool:
    """True if at least one of *terms* matches *pattern* in full."""
    return any(pattern.fullmatch(term) is not None for term in terms)


def all_patterns_match(patterns: Iterable[re.Pattern[str]], terms: Collection[str]) -> bool:
    """True if every pattern matches some term; stops at the first miss."""
    return all(matches(pattern, terms) for pattern in patterns)


def is_lexically_matched(
    concept: ConceptDetail,
    patterns: Mapping[DescriptionType, Iterable[re.Pattern[str]]],
) -> bool:
    """True if *concept* satisfies every pattern of every description type.

    Patterns for a description type are matched only against the concept's
    active descriptions of that type.
    """
    # a template without term templates yields no patterns, so every concept matches
    for description_type, type_patterns in patterns.items():
        terms = concept.active_terms(description_type)
        if not all_patterns_match(type_patterns, terms):
            return False
    return True
