"""Post data model for Gelbooru search results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# e.g. "Sat Oct 18 12:34:56 -0500 2025"
GELBOORU_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"


class PostRecord(BaseModel):
    """A single post returned by the upstream search.

    Only lives for one refresh cycle; unknown upstream fields are dropped.
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Numeric post ID")
    created_at: datetime = Field(..., description="Post creation time (timezone-aware)")
    file_url: str = Field(..., description="Full-size image URL")
    tags: str = Field(default="", description="Space-separated tag string")
    title: str | None = Field(default=None)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        try:
            return datetime.strptime(value, GELBOORU_DATE_FORMAT)
        except ValueError:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("created_at must carry a UTC offset")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("title", mode="before")
    @classmethod
    def _blank_title(cls, value: object) -> object:
        # Gelbooru sends "" for untitled posts
        if isinstance(value, str) and not value.strip():
            return None
        return value
