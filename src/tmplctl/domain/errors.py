"""Exceptions raised by the pure domain layer.

The service layer translates these into ``ServiceResult`` errors; nothing
below the service layer returns error payloads.
"""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for template compilation and parsing failures."""


class InvalidTemplateError(TemplateError):
    """Template is structurally unusable (no focus concept, dangling slot)."""


class ParseError(TemplateError):
    """Logical template text or a term template could not be parsed.

    Attributes:
        position: Character offset of the failure in the source text, when
            known.
    """

    def __init__(self, message: str, *, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position
