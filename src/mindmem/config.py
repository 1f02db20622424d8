"""Configuration loader.

Settings come from ~/.mindmem/config.json (or $MINDMEM_HOME/config.json)
and are then overridden by environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .llm.client import DEFAULT_MODEL
from .memory.bundles import DEFAULT_JOURNAL_LIMIT
from .memory.synthesizer import DEFAULT_MAX_MEMORY_CHARS

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.3


def default_home() -> Path:
    """Base directory for mindmem data."""
    return Path(os.getenv("MINDMEM_HOME", str(Path.home() / ".mindmem"))).expanduser()


@dataclass
class MindMemConfig:
    """Configuration for the memory pipeline.

    Attributes:
        home: Base directory; other paths default under it.
        model: Groq model used for synthesis.
        temperature: Sampling temperature for synthesis.
        db_path: SQLite database path.
        trigger_path: File holding the pending trigger.
        log_dir: Directory for the JSONL event log.
        max_memory_chars: Longest memory accepted from the model.
        journal_limit: Journal entries folded in per journal update.
        groq_api_key: API key, read from GROQ_API_KEY.
        telegram_token: Bot token for Telegram notifications.
        telegram_chat_id: Chat that receives Telegram notifications.
    """

    home: Path | None = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    db_path: Path | None = None
    trigger_path: Path | None = None
    log_dir: Path | None = None
    max_memory_chars: int = DEFAULT_MAX_MEMORY_CHARS
    journal_limit: int = DEFAULT_JOURNAL_LIMIT
    groq_api_key: str | None = None
    telegram_token: str | None = None
    telegram_chat_id: str | None = None

    def __post_init__(self) -> None:
        """Validate config and set defaults."""
        if self.home is None:
            self.home = default_home()
        if self.db_path is None:
            self.db_path = self.home / "memory.db"
        if self.trigger_path is None:
            self.trigger_path = self.home / "pending_trigger.json"
        if self.log_dir is None:
            self.log_dir = self.home / "logs"

        if self.max_memory_chars < 1:
            raise ValueError("max_memory_chars must be at least 1")
        if self.journal_limit < 1:
            raise ValueError("journal_limit must be at least 1")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("temperature must be between 0 and 2")

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_token and self.telegram_chat_id)


def load_config(config_path: Path | None = None) -> MindMemConfig:
    """Load MindMemConfig from a JSON file and the environment.

    The config file should have this structure:
    ```json
    {
      "model": "llama-3.1-70b-versatile",
      "temperature": 0.3,
      "db_path": "~/.mindmem/memory.db",
      "max_memory_chars": 8000,
      "journal_limit": 3
    }
    ```

    Args:
        config_path: Path to config file. Uses <home>/config.json if None.

    Returns:
        MindMemConfig instance with loaded values.
    """
    path = config_path or default_home() / "config.json"

    data: dict[str, Any] = {}
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
    else:
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                data = loaded
            else:
                logger.warning("Config in %s is not an object. Using defaults.", path)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON in %s: %s. Using defaults.", path, e)
        except OSError as e:
            logger.warning("Cannot read %s: %s. Using defaults.", path, e)

    return _parse_config(data)


def _path(value: Any) -> Path | None:
    if not value or not isinstance(value, str):
        return None
    return Path(value).expanduser()


def _int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_config(data: dict[str, Any]) -> MindMemConfig:
    """Merge file values with environment overrides.

    Out-of-range numbers fall back to their defaults with a warning.

    Args:
        data: Parsed JSON data.

    Returns:
        MindMemConfig instance.
    """
    model = os.getenv("GROQ_MODEL") or data.get("model") or DEFAULT_MODEL

    temperature = _float(data.get("temperature"), DEFAULT_TEMPERATURE)
    if not 0.0 <= temperature <= 2.0:
        logger.warning(
            "temperature %s out of range, using %s", temperature, DEFAULT_TEMPERATURE
        )
        temperature = DEFAULT_TEMPERATURE

    db_path = _path(os.getenv("MINDMEM_DB_PATH")) or _path(data.get("db_path"))
    trigger_path = _path(data.get("trigger_path"))
    log_dir = _path(data.get("log_dir"))

    max_chars = _int(
        os.getenv("MINDMEM_MAX_MEMORY_CHARS", data.get("max_memory_chars")),
        DEFAULT_MAX_MEMORY_CHARS,
    )
    if max_chars < 1:
        logger.warning(
            "max_memory_chars %s must be at least 1, using %s",
            max_chars,
            DEFAULT_MAX_MEMORY_CHARS,
        )
        max_chars = DEFAULT_MAX_MEMORY_CHARS

    journal_limit = _int(data.get("journal_limit"), DEFAULT_JOURNAL_LIMIT)
    if journal_limit < 1:
        logger.warning(
            "journal_limit %s must be at least 1, using %s",
            journal_limit,
            DEFAULT_JOURNAL_LIMIT,
        )
        journal_limit = DEFAULT_JOURNAL_LIMIT

    return MindMemConfig(
        model=str(model),
        temperature=temperature,
        db_path=db_path,
        trigger_path=trigger_path,
        log_dir=log_dir,
        max_memory_chars=max_chars,
        journal_limit=journal_limit,
        groq_api_key=os.getenv("GROQ_API_KEY"),
        telegram_token=os.getenv("TELEGRAM_TOKEN"),
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID"),
    )
