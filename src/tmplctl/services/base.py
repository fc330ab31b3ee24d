"""BaseService — foundation for tmplctl services.

Every service receives a :class:`Workspace` at construction time. The
workspace provides the template source, the terminology client and the
settings; services never build collaborators themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tmplctl.domain.errors import ParseError
from tmplctl.domain.parser import parse_logical_template
from tmplctl.infrastructure.templates import TemplateLoadError, TemplateNotFoundError
from tmplctl.services.result import (
    INVALID_TEMPLATE,
    NOT_FOUND,
    PARSE_ERROR,
    ServiceResult,
)

if TYPE_CHECKING:
    from tmplctl.domain.logical import LogicalTemplate
    from tmplctl.domain.template import ConceptTemplate
    from tmplctl.infrastructure.workspace import Workspace


class BaseService:
    """Base for service-layer classes.

    Usage::

        class TemplateService(BaseService):
            def show(self, name: str) -> ServiceResult:
                loaded = self._load_template("show", name)
                if isinstance(loaded, ServiceResult):
                    return loaded
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def _load_template(
        self, op: str, name: str
    ) -> tuple[ConceptTemplate, LogicalTemplate] | ServiceResult:
        """Load and parse template *name*, or return the failure result."""
        try:
            template = self._workspace.templates.load(name)
        except TemplateNotFoundError as exc:
            return ServiceResult.failure(op, NOT_FOUND, str(exc), template=name)
        except TemplateLoadError as exc:
            return ServiceResult.failure(op, INVALID_TEMPLATE, str(exc), template=name)

        try:
            logical = parse_logical_template(template.logical_template)
        except ParseError as exc:
            return ServiceResult.failure(
                op,
                PARSE_ERROR,
                f"Failed to parse logical template of {name}: {exc}",
                template=name,
                position=exc.position,
            )
        return template, logical
