"""Async client for the Jotform REST API.

Every call is a single request. Failures surface as one JotformError per
call; the API has no partial-batch semantics.
"""

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from app.config import settings
from app.schemas.jotform import FormField, FormSummary

logger = logging.getLogger(__name__)

# Largest page Jotform serves from the submissions endpoint
MAX_SUBMISSION_LIMIT = 1000

# Layout-only question types that never carry an answer
DECORATIVE_CONTROL_TYPES = frozenset(
    {
        "control_head",
        "control_button",
        "control_pagebreak",
        "control_divider",
        "control_collapse",
    }
)


class JotformError(Exception):
    """Raised when a Jotform request fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class JotformClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the endpoints we use.

    Use as an async context manager, or call ``close()`` when done. A client
    passed in by the caller is not closed.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.jotform_api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url or settings.jotform_base_url,
            timeout=timeout if timeout is not None else settings.jotform_timeout_seconds,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "JotformClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_content(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a Jotform endpoint and unwrap its ``content`` envelope."""
        query = {"apiKey": self.api_key, **(params or {})}
        try:
            response = await self._client.get(path, params=query)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise JotformError(
                f"Jotform request {path} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TimeoutException as e:
            raise JotformError(f"Jotform request {path} timed out") from e
        except httpx.HTTPError as e:
            raise JotformError(f"Jotform request {path} failed: {e}") from e
        except ValueError as e:
            raise JotformError(f"Jotform request {path} returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise JotformError(f"Jotform request {path} returned an unexpected payload")
        return payload.get("content")

    async def fetch_form_title(self, form_id: str) -> str | None:
        """Title of a form, or None when Jotform has none."""
        content = await self._get_content(f"/form/{form_id}")
        if isinstance(content, dict):
            title = content.get("title")
            if isinstance(title, str) and title.strip():
                return title.strip()
        return None

    async def fetch_submissions(
        self, form_id: str, limit: int = MAX_SUBMISSION_LIMIT
    ) -> list[dict[str, Any]]:
        """Fetch one page of submissions, newest first.

        Only the first ``limit`` submissions are returned; there is no
        pagination. ``limit`` is capped at MAX_SUBMISSION_LIMIT.
        """
        limit = max(1, min(limit, MAX_SUBMISSION_LIMIT))
        content = await self._get_content(
            f"/form/{form_id}/submissions",
            params={"limit": limit},
        )
        if not isinstance(content, list):
            return []
        logger.info("Fetched %d submissions for form %s", len(content), form_id)
        return content

    async def fetch_form_fields(self, form_id: str) -> list[FormField]:
        """Questions of a form in form order, without layout-only controls."""
        content = await self._get_content(f"/form/{form_id}/questions")
        if not isinstance(content, dict):
            return []

        fields = []
        for key, question in content.items():
            if not isinstance(question, dict):
                continue
            field_type = question.get("type") or ""
            if field_type in DECORATIVE_CONTROL_TYPES:
                continue
            name = question.get("name") or ""
            try:
                order = int(question.get("order") or 0)
            except (TypeError, ValueError):
                order = 0
            fields.append(
                FormField(
                    id=str(key),
                    name=name,
                    text=question.get("text") or name or f"Field {key}",
                    type=field_type,
                    order=order,
                )
            )
        return sorted(fields, key=lambda f: f.order)

    async def list_forms(self, excluded_form_ids: Iterable[str] = ()) -> list[FormSummary]:
        """Forms owned by the account, minus excluded ones."""
        excluded = set(excluded_form_ids)
        content = await self._get_content("/user/forms")
        if not isinstance(content, list):
            return []
        return [
            FormSummary(id=str(form["id"]), title=form.get("title"))
            for form in content
            if isinstance(form, dict) and form.get("id") is not None
            and str(form["id"]) not in excluded
        ]
