"""Persistent JSON config helpers.

Stores user preferences: history window, UI theme and default agent name.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

from .catalog import DEFAULT_HISTORY_LIMIT

logger = logging.getLogger(__name__)

APP_NAME = "arf"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "arf.log"
CONFIG_ENV_VAR = "ARF_CONFIG"
AGENT_ENV_VAR = "ARF_AGENT"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DEFAULT_LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / LOG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH


def config_path() -> Path:
    """Return config location, honoring ``ARF_CONFIG`` when set."""
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return CONFIG_PATH


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    path = config_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_history_limit() -> int:
    """Return the number of commits to load, defaulting for invalid values.

    Booleans and non-positive integers are rejected.
    """
    value = load_config().get("history_limit")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return DEFAULT_HISTORY_LIMIT
    return value


def load_theme_name() -> str | None:
    """Load persisted UI theme name, returning ``None`` when unset/invalid."""
    value = load_config().get("theme")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def load_agent_name() -> str | None:
    """Return agent name for new records: ``ARF_AGENT`` first, then config."""
    env_value = os.environ.get(AGENT_ENV_VAR, "").strip()
    if env_value:
        return env_value
    value = load_config().get("agent")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
