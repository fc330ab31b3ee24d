"""Terminology server client — ECL evaluation and concept detail fetch.

:class:`SnowstormClient` talks to a Snowstorm-compatible REST API:

- ``GET /{branch}/concepts?ecl=...`` (``statedEcl`` for stated queries),
  paged with ``searchAfter`` until the limit or the last page.
- ``POST /browser/{branch}/concepts/bulk-load`` for full concept detail.

Connection errors and timeouts are retried with exponential backoff;
HTTP errors are not.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests
from pydantic import ValidationError
from requests import Session
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tmplctl.domain.concepts import ConceptDetail

logger = logging.getLogger(__name__)

USER_AGENT = "tmplctl"


class TerminologyClientError(Exception):
    """A request to the terminology server failed.

    Attributes:
        status_code: HTTP status of the failed response, if one was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class EclQueryResult:
    """Concept ids returned for a query, and how many the server matched."""

    concept_ids: frozenset[str] = field(default_factory=frozenset)
    total: int = 0

    @property
    def truncated(self) -> bool:
        return self.total > len(self.concept_ids)


class TerminologyClient(Protocol):
    def ecl_query(self, branch: str, ecl: str, limit: int, stated: bool) -> EclQueryResult: ...

    def fetch_concepts(self, branch: str, concept_ids: Sequence[str]) -> list[ConceptDetail]: ...

    def close(self) -> None: ...


class SnowstormClient:
    """HTTP client for a Snowstorm terminology server.

    Example:
        client = SnowstormClient("https://snowstorm.example.org/snowstorm/snomed-ct")
        result = client.ecl_query("MAIN", "<<71388002", limit=100, stated=False)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        page_size: int = 10000,
        batch_size: int = 1000,
        max_retries: int = 3,
        session: Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._page_size = page_size
        self._batch_size = batch_size
        self._max_retries = max(1, max_retries)
        self._session = session or self._create_session()

    @staticmethod
    def _create_session() -> Session:
        session = Session()
        session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        return session

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ecl_query(self, branch: str, ecl: str, limit: int, stated: bool) -> EclQueryResult:
        """Evaluate *ecl* on *branch*, returning at most *limit* concept ids."""
        ids: set[str] = set()
        total = 0
        search_after: str | None = None
        ecl_param = "statedEcl" if stated else "ecl"
        while len(ids) < limit:
            params: dict[str, Any] = {
                ecl_param: ecl,
                "activeFilter": "true",
                "returnIdOnly": "true",
                "limit": min(self._page_size, limit - len(ids)),
            }
            if search_after:
                params["searchAfter"] = search_after
            page = self._request("GET", f"/{branch}/concepts", params=params)
            if not isinstance(page, dict):
                raise TerminologyClientError(f"Unexpected ECL page: {_preview(page)}")
            items = _as_list(page.get("items"), "ECL page items")
            total = _as_int(page.get("total"), default=total)
            ids.update(_item_id(item) for item in items)
            search_after = page.get("searchAfter")
            if not items or not search_after:
                break
        logger.debug("ECL query on %s returned %d of %d", branch, len(ids), total)
        return EclQueryResult(concept_ids=frozenset(ids), total=max(total, len(ids)))

    def fetch_concepts(self, branch: str, concept_ids: Sequence[str]) -> list[ConceptDetail]:
        """Load full concept detail for *concept_ids*, in batches."""
        concepts: list[ConceptDetail] = []
        ids = list(concept_ids)
        for start in range(0, len(ids), self._batch_size):
            batch = ids[start : start + self._batch_size]
            payload = self._request(
                "POST",
                f"/browser/{branch}/concepts/bulk-load",
                json={"conceptIds": batch},
            )
            if isinstance(payload, dict):
                payload = payload.get("items")
            items = _as_list(payload, "bulk-load response")
            try:
                concepts.extend(ConceptDetail.model_validate(item) for item in items)
            except ValidationError as exc:
                raise TerminologyClientError(f"Unexpected concept payload: {exc}") from exc
        return concepts

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise TerminologyClientError(f"{method} {url} failed: {exc}") from exc

        if not response.ok:
            raise TerminologyClientError(
                f"{method} {url} returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TerminologyClientError(f"{method} {url} returned invalid JSON") from exc


def _item_id(item: Any) -> str:
    if isinstance(item, dict):
        concept_id = item.get("conceptId") or item.get("id")
    else:
        concept_id = item
    if not isinstance(concept_id, str | int) or isinstance(concept_id, bool):
        raise TerminologyClientError(f"Unexpected ECL result item: {_preview(item)}")
    return str(concept_id)


def _as_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TerminologyClientError(f"Unexpected {what}: {_preview(value)}")
    return value


def _as_int(value: Any, *, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise TerminologyClientError(f"Unexpected total: {_preview(value)}") from exc


def _preview(value: Any) -> str:
    return repr(value)[:200]


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:200]
