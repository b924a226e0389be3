"""
Unified logging system
Supports output to files and console based on project configuration
"""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

import toml

CONFIG_ENV_VAR = "SMARTWEBP_CONFIG"


def get_project_config_path() -> Path:
    """Get project configuration file path

    The SMARTWEBP_CONFIG environment variable overrides the bundled config.toml.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        config_file = Path(override).expanduser()
    else:
        package_dir = Path(__file__).parent.parent
        config_file = package_dir / "config" / "config.toml"

    if not config_file.exists():
        raise FileNotFoundError(f"Project config file not found: {config_file}")

    return config_file


def load_project_config() -> dict:
    """Load project configuration directly from project config file"""
    config_path = get_project_config_path()

    with open(config_path, "r", encoding="utf-8") as f:
        return toml.load(f)


# Initialize root logger at module import time to ensure all loggers inherit correct level
def _init_root_logger_early():
    """Initialize root logger level before any handler is attached"""
    try:
        project_config = load_project_config()
        log_level = project_config.get("logging", {}).get("level", "INFO")
        logging.getLogger().setLevel(getattr(logging, log_level.upper()))
    except (OSError, ValueError, AttributeError, toml.TomlDecodeError):
        logging.getLogger().setLevel(logging.INFO)


_init_root_logger_early()


class LoggerManager:
    """Log manager"""

    def __init__(self):
        self._loggers: dict = {}
        self._setup_root_logger()

    def _setup_root_logger(self):
        """Setup root logger using project configuration"""
        project_config = load_project_config()

        logging_config = project_config.get("logging", {})
        log_level = logging_config.get("level", "INFO")
        logs_dir = logging_config.get("logs_dir", "./logs")
        file_enabled = logging_config.get("file_enabled", False)
        max_file_size = logging_config.get("max_file_size", "10MB")
        backup_count = logging_config.get("backup_count", 5)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))

        # Clear existing handlers
        root_logger.handlers.clear()

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_format = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
        )
        console_handler.setFormatter(console_format)
        root_logger.addHandler(console_handler)

        if not file_enabled:
            return

        Path(logs_dir).mkdir(parents=True, exist_ok=True)

        file_format = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
        )

        # File handler
        file_handler = logging.handlers.RotatingFileHandler(
            Path(logs_dir) / "smartwebp.log",
            maxBytes=self._parse_size(max_file_size),
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_format)
        root_logger.addHandler(file_handler)

        # Error log file handler
        error_handler = logging.handlers.RotatingFileHandler(
            Path(logs_dir) / "error.log",
            maxBytes=self._parse_size(max_file_size),
            backupCount=backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_format)
        root_logger.addHandler(error_handler)

    def _parse_size(self, size_str: str) -> int:
        """Parse file size string"""
        size_str = size_str.upper()
        if size_str.endswith("KB"):
            return int(size_str[:-2]) * 1024
        elif size_str.endswith("MB"):
            return int(size_str[:-2]) * 1024 * 1024
        elif size_str.endswith("GB"):
            return int(size_str[:-2]) * 1024 * 1024 * 1024
        else:
            return int(size_str)

    def get_logger(self, name: str) -> logging.Logger:
        """Get logger with specified name"""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


# Lazy initialization to avoid touching the filesystem at import time
_logger_manager: Optional[LoggerManager] = None


def get_logger(name: str) -> logging.Logger:
    """Convenience function to get logger"""
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()

    return _logger_manager.get_logger(name)


def setup_logging():
    """Setup logging system (for initialization or reloading)"""
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()
    else:
        _logger_manager._setup_root_logger()
