"""Structured intent parsed from a user turn."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

IntentAction = Literal["search", "confirm", "out_of_scope"]


class Intent(BaseModel):
    """Action request extracted from free text by the intent classifier."""

    action: IntentAction = Field(..., description="Requested action")
    city: str | None = Field(None, description="City, normalized to its canonical spelling")
    hospital_name: str | None = Field(None, description="Hospital mention as the user said it")
    limit: int | None = Field(None, description="Requested number of results")

    @field_validator("city", "hospital_name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            return str(value)
        return value.strip() or None

    @field_validator("limit", mode="before")
    @classmethod
    def _positive_limit(cls, value: Any) -> int | None:
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return None
        return limit if limit > 0 else None

    @classmethod
    def out_of_scope(cls) -> "Intent":
        return cls(action="out_of_scope")
