"""ServiceResult and ServiceError — the service contract.

INVARIANT: service methods return ServiceResult and do not raise for
expected failures (bad arguments, missing or malformed templates, an
unreachable terminology server). The CLI and tests consume this type.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Error codes
INVALID_ARGUMENT = "INVALID_ARGUMENT"
NOT_FOUND = "NOT_FOUND"
PARSE_ERROR = "PARSE_ERROR"
INVALID_TEMPLATE = "INVALID_TEMPLATE"
SERVICE_ERROR = "SERVICE_ERROR"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"search"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, such as a truncated query result.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls, op: str, code: str, message: str, **detail: Any
    ) -> ServiceResult:
        """Shorthand for an ``ok=False`` result carrying one error."""
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))
