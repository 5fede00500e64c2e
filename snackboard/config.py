"""Configuration for Snackboard.

Stores remote sync settings in ~/.snackboard/config.json; environment
variables override the file.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from .core.constants import FEED_POLL_SECONDS, REMOTE_TABLE, SYNC_DEBOUNCE_SECONDS
from .core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

HOME_ENV = "SNACKBOARD_HOME"
URL_ENV = "SNACKBOARD_SUPABASE_URL"
KEY_ENV = "SNACKBOARD_SUPABASE_KEY"


@dataclass
class Config:
    """Remote backend and sync timing settings."""

    supabase_url: str = ""
    supabase_key: str = ""
    table: str = REMOTE_TABLE
    debounce_seconds: float = SYNC_DEBOUNCE_SECONDS
    poll_seconds: float = FEED_POLL_SECONDS

    @property
    def remote_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def get_data_dir() -> Path:
    """Get the Snackboard data directory (not created here)."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".snackboard"


def get_config_path() -> Path:
    return get_data_dir() / "config.json"


def load_config(path: Optional[Path] = None, apply_env: bool = True) -> Config:
    """Load configuration, falling back to defaults for anything missing or malformed."""
    path = path or get_config_path()
    config = Config()

    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            known = {f.name for f in fields(Config)}
            config = Config(**{k: v for k, v in data.items() if k in known})
        except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Ignoring malformed config %s: %s", path, e)

    if apply_env:
        config.supabase_url = os.environ.get(URL_ENV, config.supabase_url)
        config.supabase_key = os.environ.get(KEY_ENV, config.supabase_key)
    return config


def save_config(config: Config, path: Optional[Path] = None) -> None:
    """Save configuration."""
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(config), indent=2), encoding="utf-8")


def set_option(config: Config, key: str, value: str) -> Config:
    """Set one config key from command-line text, coercing numeric settings."""
    kinds = {f.name: f.type for f in fields(Config)}
    if key not in kinds:
        raise InvalidInputError(f"Unknown config key '{key}'. Must be one of: {', '.join(kinds)}")

    if kinds[key] in (float, "float"):
        try:
            parsed = float(value)
        except ValueError:
            raise InvalidInputError(f"{key} must be a number") from None
        if parsed <= 0:
            raise InvalidInputError(f"{key} must be positive")
        setattr(config, key, parsed)
    else:
        setattr(config, key, value.strip())
    return config
