"""Configuration management for stratwire.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a Config object. Property getters provide typed access with
defaults for the bot, the strategy, the transport and logging.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import importlib
import os
from pathlib import Path
from typing import List, Optional, Type

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError, MalformedArguments
from .notifications import NotificationLevel
from .strategy import Strategy
from .transport import DEFAULT_MAX_MESSAGE_LENGTH

logger = structlog.get_logger("stratwire.bot")

DEFAULT_STRATEGY = "stratwire.strategy:HeartbeatStrategy"


class Config:
    """Central configuration manager for stratwire.

    Reads settings.yaml and .env from the config directory. Read-only
    after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if not filepath.exists():
            return {}
        try:
            with open(filepath, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Cannot parse {filename}: {e}", setting_name=filename
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{filename} must contain a mapping", setting_name=filename
            )
        return data

    def validate(self):
        """Validate settings at startup.

        Logs problems but does not raise -- the properties below raise
        ConfigurationError when a bad value is actually used.
        """
        if not self.chat_id:
            logger.warning("no_chat_id", msg="Scheduled executions have nowhere to report")

        if not isinstance(self.settings.get("allowed_chats", []), list):
            logger.error("allowed_chats_invalid_type")

        interval = self.settings.get("strategy", {}).get("interval_seconds")
        if interval is not None and (
            not isinstance(interval, (int, float)) or interval <= 0
        ):
            logger.error("config_invalid_value", key="strategy.interval_seconds", value=interval)

        start_running = self.settings.get("start_running")
        if start_running is not None and not isinstance(start_running, bool):
            logger.error("config_invalid_value", key="start_running", value=start_running)

        length = self.settings.get("transport", {}).get("max_message_length")
        if length is not None and (
            isinstance(length, bool) or not isinstance(length, int) or length <= 0
        ):
            logger.error("config_invalid_value", key="transport.max_message_length", value=length)

        level = self.settings.get("notification_level")
        if level is not None:
            try:
                NotificationLevel.parse(str(level))
            except MalformedArguments:
                logger.error("config_invalid_value", key="notification_level", value=level)

    # --- Bot ---

    @property
    def chat_id(self) -> Optional[str]:
        """Chat that receives scheduled output. Env var STRATWIRE_CHAT_ID takes precedence."""
        value = os.environ.get("STRATWIRE_CHAT_ID") or self.settings.get("chat_id")
        return str(value) if value is not None else None

    @property
    def allowed_chats(self) -> List[str]:
        """Chats allowed to send commands. Empty means everyone."""
        chats = self.settings.get("allowed_chats", [])
        if not isinstance(chats, list):
            logger.error("allowed_chats_invalid_type", type=type(chats).__name__)
            return []
        return [str(c) for c in chats]

    @property
    def notification_level(self) -> NotificationLevel:
        """Initial notification level (default all)."""
        value = self.settings.get("notification_level", NotificationLevel.ALL.value)
        try:
            return NotificationLevel.parse(str(value))
        except MalformedArguments as e:
            raise ConfigurationError(
                f"Invalid notification_level: {value!r}",
                setting_name="notification_level",
            ) from e

    @property
    def start_running(self) -> bool:
        """Whether the bot starts in the Running state (default False)."""
        value = self.settings.get("start_running", False)
        if not isinstance(value, bool):
            raise ConfigurationError(
                f"start_running must be true or false, got {value!r}",
                setting_name="start_running",
            )
        return value

    # --- Strategy ---

    @property
    def strategy_path(self) -> str:
        """Import path of the strategy class, ``module:ClassName``."""
        strategy_config = self.settings.get("strategy", {})
        return strategy_config.get("class", DEFAULT_STRATEGY)

    @property
    def strategy_class(self) -> Type[Strategy]:
        """Resolve ``strategy_path`` to a Strategy subclass.

        Raises:
            ConfigurationError: If the path is malformed, cannot be
                imported, or does not name a Strategy subclass.
        """
        path = self.strategy_path
        module_name, sep, attr = path.partition(":")
        if not sep or not module_name or not attr:
            raise ConfigurationError(
                f"strategy.class must look like 'module:ClassName', got {path!r}",
                setting_name="strategy.class",
            )
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(
                f"Cannot import strategy module {module_name!r}: {e}",
                setting_name="strategy.class",
            ) from e
        cls = getattr(module, attr, None)
        if not isinstance(cls, type) or not issubclass(cls, Strategy):
            raise ConfigurationError(
                f"{path!r} is not a Strategy subclass",
                setting_name="strategy.class",
            )
        return cls

    @property
    def execute_interval(self) -> Optional[float]:
        """Seconds between scheduled executions, or None to disable."""
        strategy_config = self.settings.get("strategy", {})
        value = strategy_config.get("interval_seconds")
        if value is None:
            return None
        if not isinstance(value, (int, float)) or value <= 0:
            raise ConfigurationError(
                f"strategy.interval_seconds must be a positive number, got {value!r}",
                setting_name="strategy.interval_seconds",
            )
        return float(value)

    # --- Transport ---

    @property
    def max_message_length(self) -> int:
        """Maximum characters per outgoing chat message (default 4096)."""
        transport_config = self.settings.get("transport", {})
        value = transport_config.get("max_message_length", DEFAULT_MAX_MESSAGE_LENGTH)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigurationError(
                f"transport.max_message_length must be a positive integer, got {value!r}",
                setting_name="transport.max_message_length",
            )
        return value

    # --- Logging ---

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"strategy": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
