"""Configuration manager for the SQLite query gateway."""

import json
import logging
import os
import re
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

MCP_TRANSPORTS = ("stdio", "http")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric value for {name}: {value!r}")
        return default


class ConfigManager:
    """Configuration manager for system settings."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to a JSON configuration file (optional)
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}

        self._load_config()

    def _load_config(self):
        """Load configuration from environment and files."""
        load_dotenv()

        http_host = os.getenv("HTTP_HOST", "localhost")
        http_port = _env_int("HTTP_PORT", 31111)

        self.config = {
            "database": {
                "url": os.getenv("DATABASE_URL") or os.getenv("SQLITE_DB_PATH"),
                "timeout": float(os.getenv("DATABASE_TIMEOUT", "5")),
            },
            "http": {
                "host": http_host,
                "port": http_port,
                "public_url": os.getenv("PUBLIC_BASE_URL"),
                "allowed_origins": os.getenv("CORS_ALLOWED_ORIGINS", "*").split(","),
            },
            "mcp": {
                "transport": os.getenv("MCP_TRANSPORT", "stdio"),
                "host": os.getenv("MCP_SERVER_HOST", "localhost"),
                "port": _env_int("MCP_SERVER_PORT", 8000),
            },
            "query": {
                "default_limit": _env_int("DEFAULT_ROW_LIMIT", 1000),
                "preview_rows": _env_int("PREVIEW_ROWS", 5),
            },
            "logging": {
                "level": os.getenv("LOG_LEVEL", "INFO"),
            },
        }

        if self.config_path and os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, ValueError) as e:
                logger.error(f"Error loading config file {self.config_path}: {e}")

    def _merge_config(self, new_config: Dict[str, Any]):
        """Merge new configuration with existing configuration."""
        def merge_dicts(base_dict, new_dict):
            for key, value in new_dict.items():
                if key in base_dict and isinstance(base_dict[key], dict) and isinstance(value, dict):
                    merge_dicts(base_dict[key], value)
                else:
                    base_dict[key] = value

        merge_dicts(self.config, new_config)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Configuration key (supports dot notation like 'http.port')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self.config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """Set configuration value by key.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split('.')
        config_dict = self.config

        for k in keys[:-1]:
            if k not in config_dict:
                config_dict[k] = {}
            config_dict = config_dict[k]

        config_dict[keys[-1]] = value

    def get_public_url(self) -> str:
        """Base URL used when handing out links to the HTTP endpoints."""
        public_url = self.get("http.public_url")
        if public_url:
            return public_url.rstrip("/")
        return f"http://{self.get('http.host', 'localhost')}:{self.get('http.port', 31111)}"

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        if not self.get("database.url"):
            logger.error("Missing required configuration: database.url")
            return False

        transport = self.get("mcp.transport")
        if transport not in MCP_TRANSPORTS:
            logger.error(f"Unknown MCP transport: {transport}")
            return False

        return True

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration (excluding sensitive data)."""
        safe_config = {}

        for key, value in self.config.items():
            if key == "database" and value.get("url"):
                safe_config[key] = {**value, "url": self._mask_database_url(value["url"])}
            else:
                safe_config[key] = value

        return safe_config

    def _mask_database_url(self, url: str) -> str:
        """Mask sensitive parts of database URL."""
        if not url:
            return url

        pattern = r'://([^:/]+):([^@]+)@'
        replacement = r'://\1:***@'
        return re.sub(pattern, replacement, url)


def setup_logging(level: str = "INFO") -> None:
    """Send log records to stderr; stdout belongs to the stdio transport."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
        force=True
    )
