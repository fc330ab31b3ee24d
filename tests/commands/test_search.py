"""Tests for the search and verify CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from tests.conftest import ALLERGY_NAME, FakeTerminologyClient, make_concept
from tmplctl.cli import cli
from tmplctl.infrastructure.terminology import EclQueryResult

ALLERGY_MATCH_ECL = (
    "(<<420134006) AND (<<420134006:[1..1]{[1..1]246075003=<< 105590001 |Substance|})"
)


@pytest.fixture
def populated(terminology: FakeTerminologyClient) -> FakeTerminologyClient:
    concept = make_concept(
        "91936005",
        stated=[(1, "246075003", "256349002")],
        parent="420134006",
        fsn=["Allergy to peanut (finding)"],
        synonyms=["Allergy to peanut"],
    )
    terminology.concepts[concept.concept_id] = concept
    terminology.ecl_results[ALLERGY_MATCH_ECL] = EclQueryResult(
        concept_ids=frozenset({"91936005"}), total=1
    )
    return terminology


@pytest.mark.usefixtures("_isolated_workspace")
class TestSearchCommand:
    def test_json_output(self, cli_runner: CliRunner, populated: FakeTerminologyClient) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "search", ALLERGY_NAME, "--logical-match", "true"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["data"]["concept_ids"] == ["91936005"]
        assert data["data"]["ecl"] == ALLERGY_MATCH_ECL

    def test_quiet_output(self, cli_runner: CliRunner, populated: FakeTerminologyClient) -> None:
        result = cli_runner.invoke(
            cli,
            ["-q", "search", ALLERGY_NAME, "--logical-match", "true", "--lexical-match", "true"],
        )
        assert result.exit_code == 0
        assert result.stdout.strip() == "91936005"

    def test_options_forwarded(
        self, cli_runner: CliRunner, populated: FakeTerminologyClient
    ) -> None:
        result = cli_runner.invoke(
            cli,
            ["search", ALLERGY_NAME, "--logical-match", "yes", "--branch", "MAIN/P", "--inferred"],
        )
        assert result.exit_code == 0
        branch, _ecl, _limit, stated = populated.ecl_calls[0]
        assert branch == "MAIN/P"
        assert stated is False

    def test_missing_logical_match(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "search", ALLERGY_NAME])
        assert result.exit_code == 1
        assert result.stdout == ""
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "INVALID_ARGUMENT"

    def test_unknown_template(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["search", "Nope", "--logical-match", "true"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.stderr

    def test_truncation_warning_on_stderr(
        self, cli_runner: CliRunner, populated: FakeTerminologyClient
    ) -> None:
        populated.ecl_results[ALLERGY_MATCH_ECL] = EclQueryResult(
            concept_ids=frozenset({"91936005"}), total=300000
        )
        result = cli_runner.invoke(cli, ["search", ALLERGY_NAME, "--logical-match", "true"])
        assert result.exit_code == 0
        assert "WARNING: Query matched 300000 concepts" in result.stderr
        assert "WARNING" not in result.stdout


@pytest.mark.usefixtures("_isolated_workspace")
class TestVerifyCommand:
    def test_verify(self, cli_runner: CliRunner, populated: FakeTerminologyClient) -> None:
        result = cli_runner.invoke(cli, ["--json", "verify", ALLERGY_NAME, "91936005", "1234567"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["conforming"] == ["91936005"]
        assert data["not_found"] == ["1234567"]

    def test_requires_ids(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["verify", ALLERGY_NAME])
        assert result.exit_code == 2

    @pytest.mark.parametrize("concept_id", ["peanut", "0123456", "12345", "9" * 19])
    def test_rejects_malformed_concept_id(
        self, cli_runner: CliRunner, populated: FakeTerminologyClient, concept_id: str
    ) -> None:
        result = cli_runner.invoke(cli, ["verify", ALLERGY_NAME, "91936005", concept_id])
        assert result.exit_code == 2
        assert "is not a concept identifier" in result.stderr
        assert populated.fetch_calls == []

    def test_shares_branch_and_stated_options(
        self, cli_runner: CliRunner, populated: FakeTerminologyClient
    ) -> None:
        result = cli_runner.invoke(
            cli, ["verify", ALLERGY_NAME, " 91936005 ", "--branch", "MAIN/P", "--inferred"]
        )
        assert result.exit_code == 0, result.output
        branch, concept_ids = populated.fetch_calls[0]
        assert branch == "MAIN/P"
        assert list(concept_ids) == ["91936005"]


class TestSearchHelp:
    def test_tristate_metavar(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["search", "--help"])
        assert result.exit_code == 0
        assert "--logical-match true|false" in result.output
        assert "--branch PATH" in result.output
