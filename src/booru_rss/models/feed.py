"""Feed configuration models."""

from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

GELBOORU_LIST_URL = "https://gelbooru.com/index.php?page=post&s=list&tags={tag}+"

# On-disk key -> field name
_FILE_KEYS = {
    "GELBOORU_TAG": "tag",
    "ARTIST_NAME": "artist_name",
    "ICON_URL": "icon_url",
    "FEED_TITLE": "feed_title",
    "FEED_LINK": "feed_link",
}


class FeedConfig(BaseModel):
    """Static metadata of one artist feed.

    Accepts both the upper-case keys used in configs/*.json and the
    field names. Optional fields are derived from the required ones.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    feed_id: str = Field(..., min_length=1, description="Unique feed identifier")
    tag: str = Field(..., min_length=1, description="Gelbooru tag query")
    artist_name: str = Field(..., description="Display name used as item author")
    icon_url: str | None = Field(default=None, description="Channel image URL")
    feed_title: str = Field(..., description="Channel title")
    feed_link: str = Field(..., description="Channel link")

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data

        values = {_FILE_KEYS.get(key, key): value for key, value in data.items()}
        feed_id = values.get("feed_id")
        tag = values.get("tag")
        if isinstance(tag, str):
            tag = tag.strip()
            values["tag"] = tag

        if not values.get("artist_name"):
            values["artist_name"] = feed_id
        if not values.get("icon_url"):
            values["icon_url"] = None
        if not values.get("feed_title"):
            values["feed_title"] = f"Posts of {values['artist_name']} from Gelbooru"
        if not values.get("feed_link") and tag:
            values["feed_link"] = GELBOORU_LIST_URL.format(tag=tag)
        return values


class FeedRegistry(Mapping[str, FeedConfig]):
    """Read-only, insertion-ordered mapping of feed id to FeedConfig."""

    def __init__(self, configs: list[FeedConfig] | None = None):
        self._configs: dict[str, FeedConfig] = {}
        for config in configs or []:
            if config.feed_id in self._configs:
                raise ValueError(f"Duplicate feed id: {config.feed_id}")
            self._configs[config.feed_id] = config

    def __getitem__(self, feed_id: str) -> FeedConfig:
        return self._configs[feed_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __repr__(self) -> str:
        return f"FeedRegistry({list(self._configs)!r})"
