"""Pydantic schemas for Jotform API payloads.

Only the parts of Jotform's submission and question formats that the sync
pipeline and the field mapping screen need are modelled. Unknown keys are
ignored.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _parse_jotform_timestamp(value: Any) -> datetime | None:
    """Parse Jotform's ``YYYY-MM-DD HH:MM:SS`` timestamps as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Answer(BaseModel):
    """One answer within a submission.

    ``value`` is a scalar, a list (multi-file upload) or an object (e.g. name
    parts). Jotform sends it under the ``answer`` key.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    text: str | None = None
    type: str | None = None
    value: Any = Field(default=None, alias="answer")
    pretty_format: str | None = Field(default=None, alias="prettyFormat")

    @field_validator("name", "text", "type", "pretty_format", mode="before")
    @classmethod
    def _coerce_label(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        return None


class RawSubmission(BaseModel):
    """A submission as returned by ``GET /form/{id}/submissions``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    answers: dict[str, Answer] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return _parse_jotform_timestamp(value)

    @field_validator("answers", mode="before")
    @classmethod
    def _empty_answers(cls, value: Any) -> Any:
        # Jotform serializes an empty answer set as []
        if value is None or value == []:
            return {}
        return value


class FormField(BaseModel):
    """A form question offered to the operator when configuring a mapping."""

    id: str
    name: str
    text: str
    type: str
    order: int = 0


class FormSummary(BaseModel):
    """A form owned by the Jotform account."""

    id: str
    title: str | None = None


class FormFieldsResponse(BaseModel):
    success: bool = True
    fields: list[FormField]


class FormListResponse(BaseModel):
    success: bool = True
    forms: list[FormSummary]
