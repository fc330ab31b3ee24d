"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, tmplctl.toml only contains
overrides. A workspace needs no config file at all when the terminology
server runs on localhost.
"""

from __future__ import annotations

from pydantic import BaseModel


class ServerConfig(BaseModel):
    """[server] section — terminology server connection."""

    model_config = {"frozen": True}

    url: str = "http://localhost:8080"
    timeout_seconds: float = 30.0
    page_size: int = 10000
    batch_size: int = 1000
    max_retries: int = 3


class SearchConfig(BaseModel):
    """[search] section."""

    model_config = {"frozen": True}

    max_results: int = 200000
    default_branch: str = "MAIN"


class TemplatesConfig(BaseModel):
    """[templates] section."""

    model_config = {"frozen": True}

    directory: str = "templates"


class ConceptsConfig(BaseModel):
    """[concepts] section — terminology constants the verifier relies on."""

    model_config = {"frozen": True}

    is_a: str = "116680003"
    inferred_characteristic_type: str = "INFERRED_RELATIONSHIP"
