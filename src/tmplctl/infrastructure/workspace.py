"""Workspace — the single dependency injected into every service.

Bundles the settings with the two external collaborators the services
consume: a template source and a terminology client. Both are created
lazily from settings unless supplied explicitly (tests pass fakes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tmplctl.infrastructure.templates import DirectoryTemplateSource, TemplateSource
from tmplctl.infrastructure.terminology import SnowstormClient, TerminologyClient

if TYPE_CHECKING:
    from pathlib import Path

    from tmplctl.config.settings import TmplSettings


class Workspace:
    """Settings plus lazily constructed collaborators."""

    def __init__(
        self,
        settings: TmplSettings,
        *,
        templates: TemplateSource | None = None,
        terminology: TerminologyClient | None = None,
    ) -> None:
        self._settings = settings
        self._templates = templates
        self._terminology = terminology
        self._owns_terminology = False

    @property
    def settings(self) -> TmplSettings:
        return self._settings

    @property
    def root(self) -> Path:
        return self._settings.workspace_root

    @property
    def templates(self) -> TemplateSource:
        if self._templates is None:
            self._templates = DirectoryTemplateSource(self._settings.templates_dir)
        return self._templates

    @property
    def terminology(self) -> TerminologyClient:
        if self._terminology is None:
            server = self._settings.server
            self._terminology = SnowstormClient(
                server.url,
                timeout=server.timeout_seconds,
                page_size=server.page_size,
                batch_size=server.batch_size,
                max_retries=server.max_retries,
            )
            self._owns_terminology = True
        return self._terminology

    def close(self) -> None:
        """Release the HTTP session of a client this workspace created."""
        if self._owns_terminology and self._terminology is not None:
            self._terminology.close()
            self._terminology = None
            self._owns_terminology = False
