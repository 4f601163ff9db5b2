"""Request/response Pydantic models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class EnrichRequest(BaseModel):
    website: str


class CompanySummary(BaseModel):
    """Model output contract. Anything that does not fit is rejected, never padded."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    summary: str = Field(min_length=1, max_length=600)
    what_they_do: list[str] = Field(min_length=3, max_length=6)
    keywords: list[str] = Field(min_length=5, max_length=10)

    @field_validator("summary", mode="before")
    @classmethod
    def _strip_summary(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("what_they_do", "keywords")
    @classmethod
    def _no_blank_items(cls, items: list[str]) -> list[str]:
        cleaned = [item.strip() for item in items]
        if any(not item for item in cleaned):
            raise ValueError("items must be non-empty strings")
        return cleaned


class EnrichmentResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    summary: str = ""
    what_they_do: list[str] = []
    keywords: list[str] = []
    signals: list[str] = []
    sources: list[str] = []
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
    message: str
