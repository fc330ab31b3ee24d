"""Shared pytest fixtures and test helpers for tmplctl tests."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from tmplctl.config.settings import TmplSettings
from tmplctl.domain.concepts import ConceptDetail
from tmplctl.infrastructure.terminology import EclQueryResult, TerminologyClientError
from tmplctl.infrastructure.workspace import Workspace

IS_A = "116680003"

CT_GUIDED_NAME = "CT guided [procedure] of [body structure]"
CT_GUIDED_LOGICAL = (
    "71388002 |Procedure|: [[~1..1]] {"
    " 260686004 |Method| = 312251004 |Computed tomography imaging action|,"
    " [[~1..1]] 405813007 |Procedure site - Direct| ="
    " [[+id(<< 442083009 |Anatomical or acquired body structure|) @procSite]],"
    " [[~1..1]] 363703001 |Has intent| = 429892002 |Guidance intent| }"
)

ALLERGY_NAME = "Allergy to [substance]"
ALLERGY_LOGICAL = (
    "420134006 |Propensity to adverse reactions|: [[~1..1]] {"
    " [[~1..1]] 246075003 |Causative agent| = [[+id(<< 105590001 |Substance|) @substance]] }"
)

CT_GUIDED_TEMPLATE: dict[str, Any] = {
    "name": CT_GUIDED_NAME,
    "domain": "<<71388002",
    "version": 1,
    "logicalTemplate": CT_GUIDED_LOGICAL,
    "lexicalTemplates": [
        {"name": "procSite", "displayName": "X", "takeFSNFromSlot": "procSite"},
    ],
    "conceptOutline": {
        "descriptions": [
            {"type": "FSN", "termTemplate": "CT guided procedure of $procSite$ (procedure)"},
            {"type": "SYNONYM", "termTemplate": "CT guided procedure of $procSite$"},
        ]
    },
}

ALLERGY_TEMPLATE: dict[str, Any] = {
    "name": ALLERGY_NAME,
    "logicalTemplate": ALLERGY_LOGICAL,
    "lexicalTemplates": [{"name": "substance", "displayName": "X"}],
    "conceptOutline": {
        "descriptions": [
            {"type": "FSN", "termTemplate": "Allergy to $substance$ (finding)"},
            {"type": "SYNONYM", "termTemplate": "Allergy to $substance$"},
        ]
    },
}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeTerminologyClient:
    """In-memory terminology client recording every call it receives.

    ``ecl_results`` maps an exact ECL string to its result; unknown
    queries return no concepts.
    """

    def __init__(
        self,
        concepts: Iterable[ConceptDetail] = (),
        ecl_results: dict[str, EclQueryResult] | None = None,
        *,
        error: str | None = None,
    ) -> None:
        self.concepts = {c.concept_id: c for c in concepts}
        self.ecl_results = ecl_results or {}
        self.error = error
        self.ecl_calls: list[tuple[str, str, int, bool]] = []
        self.fetch_calls: list[tuple[str, list[str]]] = []
        self.closed = False

    def ecl_query(self, branch: str, ecl: str, limit: int, stated: bool) -> EclQueryResult:
        self.ecl_calls.append((branch, ecl, limit, stated))
        if self.error:
            raise TerminologyClientError(self.error, status_code=500)
        return self.ecl_results.get(ecl, EclQueryResult())

    def fetch_concepts(self, branch: str, concept_ids: Sequence[str]) -> list[ConceptDetail]:
        self.fetch_calls.append((branch, list(concept_ids)))
        if self.error:
            raise TerminologyClientError(self.error, status_code=500)
        return [self.concepts[cid] for cid in concept_ids if cid in self.concepts]

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary workspace with a ``templates/`` directory of JSON templates."""
    write_template(tmp_path / "templates", CT_GUIDED_TEMPLATE)
    write_template(tmp_path / "templates", ALLERGY_TEMPLATE)
    return tmp_path


@pytest.fixture
def settings(workspace_root: Path, monkeypatch: pytest.MonkeyPatch) -> TmplSettings:
    monkeypatch.delenv("TMPLCTL_CONFIG", raising=False)
    return TmplSettings.from_cli(workspace_root=workspace_root)


@pytest.fixture
def terminology() -> FakeTerminologyClient:
    return FakeTerminologyClient()


@pytest.fixture
def workspace(settings: TmplSettings, terminology: FakeTerminologyClient) -> Workspace:
    """Workspace on a temp directory backed by the fake terminology client."""
    return Workspace(settings, terminology=terminology)


@pytest.fixture
def _isolated_workspace(
    workspace_root: Path,
    terminology: FakeTerminologyClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Run the CLI inside the temp workspace against the fake client.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.delenv("TMPLCTL_CONFIG", raising=False)
    monkeypatch.chdir(workspace_root)
    monkeypatch.setattr(
        "tmplctl.infrastructure.workspace.SnowstormClient",
        lambda *args, **kwargs: terminology,
    )


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_template(directory: Path, document: dict[str, Any]) -> Path:
    """Store *document* the way DirectoryTemplateSource expects it."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / (document["name"].replace("/", "%2F") + ".json")
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def make_concept(
    concept_id: str,
    *,
    stated: Iterable[tuple[int, str, str]] = (),
    inferred: Iterable[tuple[int, str, str]] = (),
    fsn: Iterable[str] = (),
    synonyms: Iterable[str] = (),
    parent: str | None = None,
) -> ConceptDetail:
    """Build a concept from ``(group, type, target)`` triples via its JSON shape.

    An IS-A to *parent* is added to both stated and inferred relationships
    when given.
    """
    stated = list(stated)
    inferred = list(inferred)
    if parent is not None:
        stated.insert(0, (0, IS_A, parent))
        inferred.insert(0, (0, IS_A, parent))

    descriptions = [{"term": t, "type": "FSN", "active": True, "lang": "en"} for t in fsn]
    descriptions += [{"term": t, "type": "SYNONYM", "active": True, "lang": "en"} for t in synonyms]
    return ConceptDetail.model_validate(
        {
            "conceptId": concept_id,
            "active": True,
            "descriptions": descriptions,
            "classAxioms": [
                {
                    "active": True,
                    "definitionStatus": "FULLY_DEFINED",
                    "relationships": [
                        {"groupId": g, "type": {"conceptId": t}, "target": {"conceptId": d}}
                        for g, t, d in stated
                    ],
                }
            ],
            "relationships": [
                {
                    "active": True,
                    "groupId": g,
                    "typeId": t,
                    "destinationId": d,
                    "characteristicType": "INFERRED_RELATIONSHIP",
                }
                for g, t, d in inferred
            ],
        }
    )
