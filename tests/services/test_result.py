"""Tests for ServiceResult and payload contracts."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tmplctl.services.contracts import SearchResultData, dump_validated
from tmplctl.services.result import NOT_FOUND, ServiceError, ServiceResult


class TestServiceResult:
    def test_success(self) -> None:
        result = ServiceResult(ok=True, op="search", data={"count": 0})
        assert result.error is None
        assert result.warnings == []

    def test_failure_shorthand(self) -> None:
        result = ServiceResult.failure("show", NOT_FOUND, "Template 'x' not found", template="x")
        assert not result.ok
        assert result.error == ServiceError(
            code=NOT_FOUND, message="Template 'x' not found", detail={"template": "x"}
        )

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="search")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip(self) -> None:
        result = ServiceResult(ok=True, op="search", warnings=["truncated"])
        assert ServiceResult.model_validate_json(result.model_dump_json()) == result


class TestContracts:
    def test_dump_validated_fills_defaults(self) -> None:
        data = dump_validated(
            SearchResultData,
            {
                "template": "t",
                "branch": "MAIN",
                "logical_match": True,
                "stated": True,
                "ecl": "<<1",
                "count": 0,
                "concept_ids": [],
            },
        )
        assert data["excluded"] == 0
        assert data["truncated"] is False
        assert data["lexical_match"] is None

    def test_dump_validated_rejects_missing_keys(self) -> None:
        with pytest.raises(ValidationError):
            dump_validated(SearchResultData, {"template": "t"})
