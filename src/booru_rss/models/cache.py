"""Cache state models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


@dataclass
class CacheEntry:
    """Mutable per-feed cache state, owned by FeedCacheStore.

    Attributes:
        content: Last successfully rendered RSS document.
        last_update: Time of the last successful commit.
        in_progress: True while one refresh cycle owns the feed.
        post_count: Number of posts in the cached document.
    """

    content: str | None = None
    last_update: datetime | None = None
    in_progress: bool = False
    post_count: int = 0


class RefreshOutcome(str, Enum):
    """Result of a single refresh cycle."""

    UPDATED = "updated"
    IN_PROGRESS = "in_progress"
    EMPTY = "empty"
    FAILED = "failed"
    ERROR = "error"  # unexpected exception, only reported by bulk refreshes


class CacheStatus(BaseModel):
    """Read-only view of a feed's cache for diagnostics."""

    has_cache: bool
    last_update: datetime | None = None
    next_update: datetime | None = None
    needs_update: bool
    is_updating: bool
    post_count: int = Field(default=0, ge=0)
