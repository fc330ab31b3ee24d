"""Template source — loads stored concept templates by name.

Templates live as ``<name>.json`` documents in one directory. Names may
contain ``/``, which is stored as ``%2F`` in the file name.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from tmplctl.domain.template import ConceptTemplate

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".json"


class TemplateNotFoundError(LookupError):
    """No template is stored under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Template '{name}' not found")
        self.name = name


class TemplateLoadError(Exception):
    """A stored template exists but cannot be read or validated."""


class TemplateSource(Protocol):
    def load(self, name: str) -> ConceptTemplate: ...

    def names(self) -> list[str]: ...


def encode_name(name: str) -> str:
    return name.replace("/", "%2F")


def decode_name(stem: str) -> str:
    return stem.replace("%2F", "/")


class DirectoryTemplateSource:
    """Read-only template source over a directory of JSON documents."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, name: str) -> Path:
        return self._directory / f"{encode_name(name)}{TEMPLATE_SUFFIX}"

    def load(self, name: str) -> ConceptTemplate:
        """Load the template stored under *name*.

        Raises:
            TemplateNotFoundError: if no document exists for *name*.
            TemplateLoadError: if the document is not a valid template.
        """
        path = self.path_for(name)
        if not path.is_file():
            raise TemplateNotFoundError(name)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                # The file name is authoritative; stored documents may omit or stale it.
                data["name"] = name
            template = ConceptTemplate.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise TemplateLoadError(f"Failed to load template {name}: {exc}") from exc
        logger.debug("Loaded template %s from %s", name, path)
        return template

    def names(self) -> list[str]:
        """Names of all stored templates, sorted."""
        if not self._directory.is_dir():
            return []
        return sorted(
            decode_name(p.stem) for p in self._directory.glob(f"*{TEMPLATE_SUFFIX}") if p.is_file()
        )
