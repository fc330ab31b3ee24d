"""Tests for Workspace collaborator construction."""

from __future__ import annotations

import pytest

from tests.conftest import FakeTerminologyClient
from tmplctl.config.settings import TmplSettings
from tmplctl.infrastructure.templates import DirectoryTemplateSource
from tmplctl.infrastructure.terminology import SnowstormClient
from tmplctl.infrastructure.workspace import Workspace


class TestWorkspace:
    def test_lazy_defaults(self, settings: TmplSettings) -> None:
        workspace = Workspace(settings)
        assert isinstance(workspace.templates, DirectoryTemplateSource)
        assert workspace.templates.directory == settings.templates_dir
        assert isinstance(workspace.terminology, SnowstormClient)
        workspace.close()

    def test_close_releases_owned_client(
        self, settings: TmplSettings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        client = FakeTerminologyClient()
        monkeypatch.setattr(
            "tmplctl.infrastructure.workspace.SnowstormClient", lambda *a, **k: client
        )
        workspace = Workspace(settings)
        assert workspace.terminology is client
        workspace.close()
        assert client.closed

    def test_injected_client_left_open(self, settings: TmplSettings) -> None:
        client = FakeTerminologyClient()
        workspace = Workspace(settings, terminology=client)
        workspace.close()
        assert not client.closed
