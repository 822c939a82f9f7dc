"""Per-feed configuration loading.

Each feed lives in its own JSON file, ``<configs_dir>/<feed_id>.json``:

    {
      "ARTIST_NAME": "Artist Name",
      "GELBOORU_TAG": "artist_tag",
      "ICON_URL": "https://example.com/icon.png",
      "FEED_TITLE": "Posts of Artist from Gelbooru"
    }

Only GELBOORU_TAG is required.
"""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from booru_rss.exceptions import ConfigError
from booru_rss.models.feed import FeedConfig, FeedRegistry

logger = structlog.get_logger()

EXAMPLE_CONFIGS: dict[str, dict[str, str]] = {
    "khyle": {
        "ARTIST_NAME": "Khyle",
        "GELBOORU_TAG": "khyle_(artist)",
        "ICON_URL": "https://img.gelbooru.com/icon.png",
        "FEED_TITLE": "Posts of Khyle from Gelbooru",
        "FEED_LINK": "https://gelbooru.com/index.php?page=post&s=list&tags=khyle_(artist)+",
    },
    "optionaltypo": {
        "ARTIST_NAME": "OptionalTypo",
        "GELBOORU_TAG": "optionaltypo",
        "ICON_URL": "https://pbs.twimg.com/profile_images/1333723296584462336/p9ApAZjk_400x400.jpg",
        "FEED_TITLE": "Posts of OptionalTypo from Gelbooru",
        "FEED_LINK": "https://gelbooru.com/index.php?page=post&s=list&tags=optionaltypo+",
    },
}


def parse_feed_config(path: Path) -> FeedConfig:
    """Read and validate a single feed config file.

    Args:
        path: Path to a ``<feed_id>.json`` file.

    Returns:
        Validated FeedConfig whose feed_id is the file stem.

    Raises:
        ConfigError: When the file is unreadable, not a JSON object, or
            misses required fields.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(path.name, str(e)) from e

    if not isinstance(data, dict):
        raise ConfigError(path.name, "top-level value must be an object")
    if not str(data.get("GELBOORU_TAG") or "").strip():
        raise ConfigError(path.name, "GELBOORU_TAG is required")

    try:
        return FeedConfig.model_validate({**data, "feed_id": path.stem})
    except ValidationError as e:
        raise ConfigError(path.name, str(e)) from e


def write_example_configs(configs_dir: Path) -> list[Path]:
    """Write the bundled example configs into configs_dir.

    Returns:
        Paths of the files written.
    """
    written = []
    for feed_id, data in EXAMPLE_CONFIGS.items():
        path = configs_dir / f"{feed_id}.json"
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.info("Example config created", file=path.name)
        written.append(path)
    return written


def load_feed_configs(configs_dir: Path, create_examples: bool = True) -> FeedRegistry:
    """Load every ``*.json`` feed config in configs_dir.

    Invalid files are logged and skipped. A missing directory is created.
    When nothing valid is found and create_examples is set, example configs
    are written and loaded instead.

    Args:
        configs_dir: Directory holding the feed config files.
        create_examples: Whether to seed the directory with examples.

    Returns:
        Registry of the loaded configs, ordered by file name.
    """
    if not configs_dir.exists():
        configs_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Configs directory created", path=str(configs_dir))

    configs: list[FeedConfig] = []
    for path in sorted(configs_dir.glob("*.json")):
        try:
            config = parse_feed_config(path)
        except ConfigError as e:
            logger.warning("Skipping feed config", file=path.name, error=str(e))
            continue
        configs.append(config)
        logger.info("Config loaded", feed_id=config.feed_id)

    if not configs and create_examples:
        logger.info("No configuration found, creating examples", path=str(configs_dir))
        write_example_configs(configs_dir)
        return load_feed_configs(configs_dir, create_examples=False)

    logger.info("Feed configurations loaded", count=len(configs))
    return FeedRegistry(configs)
