"""Configuration loading and validation for feewindow."""

import os
import yaml
from dotenv import load_dotenv
from pathlib import Path
from typing import Dict, Any

from .constants import (
    DEFAULT_RPC_URL,
    DEFAULT_COMMITMENT,
    DEFAULT_HTTP_TIMEOUT_SECS,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    DEFAULT_RATE_LIMIT,
    DEFAULT_RATE_WINDOW_SECS,
    DEFAULT_TICK_SECS,
    DEFAULT_MAX_BLOCKS,
    DEFAULT_BLOCK_LOG_PATH,
    DEFAULT_LOG_MAX_BYTES,
    DEFAULT_LOG_BACKUP_COUNT,
)

TRUE_VALUES = ("true", "1", "yes", "on")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


class Config:
    """Configuration container with environment variable overrides."""

    def __init__(self, config_path: str = None, create_if_missing: bool = True):
        """
        Load configuration from YAML file with environment variable overrides.

        Configuration precedence (highest to lowest):
        1. Environment variables (FW_* prefix, .env file included)
        2. config.local.yaml (if exists, local overrides)
        3. config.yaml (main config file)
        4. Default values

        Args:
            config_path: Path to config.yaml. If None, searches for config.yaml
                        in current directory and parent directories.
            create_if_missing: If True and config_path is None, create default config
                              if not found. If config_path is explicitly provided,
                              this is ignored (file must exist).

        Raises:
            FileNotFoundError: If an explicit config_path does not exist
            ValueError: If a setting is out of range
        """
        if config_path is None:
            config_path = self._find_config_file()
            if create_if_missing and not Path(config_path).exists():
                self._create_default_config(config_path)
        elif not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        self._raw: Dict[str, Any] = {}
        if Path(config_path).exists():
            with open(config_path, 'r') as f:
                self._raw = yaml.safe_load(f) or {}

        # Local overrides (gitignored, for the access token)
        local_config_path = Path(config_path).parent / "config.local.yaml"
        if local_config_path.exists():
            with open(local_config_path, 'r') as f:
                self._deep_merge(self._raw, yaml.safe_load(f) or {})

        # Does not override variables already set in the process environment
        load_dotenv()
        self._apply_env_overrides()

        self._validate()

    def _find_config_file(self) -> str:
        """Find config.yaml in current directory or parents."""
        current = Path.cwd()
        for path in [current] + list(current.parents):
            config_file = path / "config.yaml"
            if config_file.exists():
                return str(config_file)
        return str(current / "config.yaml")

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        """Recursively merge override dict into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _create_default_config(self, path: str):
        """Create a default config.yaml file."""
        default_config = {
            "rpc": {
                "url": DEFAULT_RPC_URL,
                "commitment": DEFAULT_COMMITMENT,
                "timeout_secs": DEFAULT_HTTP_TIMEOUT_SECS
            },
            "server": {
                "host": DEFAULT_SERVER_HOST,
                "port": DEFAULT_SERVER_PORT,
                "access_token": "",
                "rate_limit": DEFAULT_RATE_LIMIT,
                "rate_window_secs": DEFAULT_RATE_WINDOW_SECS
            },
            "polling": {
                "tick_secs": DEFAULT_TICK_SECS,
                "max_blocks": DEFAULT_MAX_BLOCKS
            },
            "output": {
                "log_blocks": False,
                "block_log_path": DEFAULT_BLOCK_LOG_PATH,
                "print_stats": False
            },
            "logging": {
                "level": "INFO",
                "log_dir": "logs",
                "console_level": "INFO",
                "rotation": {
                    "max_bytes": DEFAULT_LOG_MAX_BYTES,
                    "backup_count": DEFAULT_LOG_BACKUP_COUNT,
                    "when": "midnight"
                }
            }
        }
        with open(path, 'w') as f:
            yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)

    def _apply_env_overrides(self):
        """Apply environment variable overrides using FW_ prefix."""
        # RPC settings
        if os.getenv("FW_RPC_URL"):
            self._raw.setdefault("rpc", {})["url"] = os.getenv("FW_RPC_URL")
        if os.getenv("FW_RPC_COMMITMENT"):
            self._raw.setdefault("rpc", {})["commitment"] = os.getenv("FW_RPC_COMMITMENT")
        if os.getenv("FW_RPC_TIMEOUT_SECS"):
            self._raw.setdefault("rpc", {})["timeout_secs"] = float(os.getenv("FW_RPC_TIMEOUT_SECS"))

        # Server settings
        if os.getenv("FW_SERVER_HOST"):
            self._raw.setdefault("server", {})["host"] = os.getenv("FW_SERVER_HOST")
        if os.getenv("FW_SERVER_PORT"):
            self._raw.setdefault("server", {})["port"] = int(os.getenv("FW_SERVER_PORT"))
        if os.getenv("FW_ACCESS_TOKEN"):
            self._raw.setdefault("server", {})["access_token"] = os.getenv("FW_ACCESS_TOKEN")
        if os.getenv("FW_RATE_WINDOW_SECS"):
            self._raw.setdefault("server", {})["rate_window_secs"] = float(os.getenv("FW_RATE_WINDOW_SECS"))
        if os.getenv("FW_RATE_LIMIT"):
            self._raw.setdefault("server", {})["rate_limit"] = int(os.getenv("FW_RATE_LIMIT"))

        # Polling settings
        if os.getenv("FW_TICK_SECS"):
            self._raw.setdefault("polling", {})["tick_secs"] = float(os.getenv("FW_TICK_SECS"))
        if os.getenv("FW_MAX_BLOCKS"):
            self._raw.setdefault("polling", {})["max_blocks"] = int(os.getenv("FW_MAX_BLOCKS"))

        # Output settings
        if os.getenv("FW_LOG_BLOCKS"):
            self._raw.setdefault("output", {})["log_blocks"] = _as_bool(os.getenv("FW_LOG_BLOCKS"))
        if os.getenv("FW_BLOCK_LOG_PATH"):
            self._raw.setdefault("output", {})["block_log_path"] = os.getenv("FW_BLOCK_LOG_PATH")
        if os.getenv("FW_PRINT_STATS"):
            self._raw.setdefault("output", {})["print_stats"] = _as_bool(os.getenv("FW_PRINT_STATS"))

        # Logging settings
        if os.getenv("FW_LOG_DIR"):
            self._raw.setdefault("logging", {})["log_dir"] = os.getenv("FW_LOG_DIR")
        if os.getenv("FW_LOG_LEVEL"):
            self._raw.setdefault("logging", {})["level"] = os.getenv("FW_LOG_LEVEL")
        if os.getenv("FW_CONSOLE_LEVEL"):
            self._raw.setdefault("logging", {})["console_level"] = os.getenv("FW_CONSOLE_LEVEL")

    def _validate(self):
        """Validate configuration values."""
        if self.max_blocks < 1:
            raise ValueError(f"polling.max_blocks must be >= 1, got {self.max_blocks}")
        if self.tick_secs <= 0:
            raise ValueError(f"polling.tick_secs must be > 0, got {self.tick_secs}")
        if self.rpc_timeout_secs <= 0:
            raise ValueError(f"rpc.timeout_secs must be > 0, got {self.rpc_timeout_secs}")
        if not 1 <= self.server_port <= 65535:
            raise ValueError(f"server.port must be in 1..65535, got {self.server_port}")
        if self.rate_limit < 1:
            raise ValueError(f"server.rate_limit must be >= 1, got {self.rate_limit}")
        if self.rate_window_secs <= 0:
            raise ValueError(f"server.rate_window_secs must be > 0, got {self.rate_window_secs}")

    @property
    def rpc_url(self) -> str:
        return self._raw.get("rpc", {}).get("url", DEFAULT_RPC_URL)

    @property
    def rpc_commitment(self) -> str:
        return self._raw.get("rpc", {}).get("commitment", DEFAULT_COMMITMENT)

    @property
    def rpc_timeout_secs(self) -> float:
        return float(self._raw.get("rpc", {}).get("timeout_secs", DEFAULT_HTTP_TIMEOUT_SECS))

    @property
    def server_host(self) -> str:
        return self._raw.get("server", {}).get("host", DEFAULT_SERVER_HOST)

    @property
    def server_port(self) -> int:
        return int(self._raw.get("server", {}).get("port", DEFAULT_SERVER_PORT))

    @property
    def access_token(self) -> str:
        return str(self._raw.get("server", {}).get("access_token") or "")

    @property
    def rate_limit(self) -> int:
        return int(self._raw.get("server", {}).get("rate_limit", DEFAULT_RATE_LIMIT))

    @property
    def rate_window_secs(self) -> float:
        return float(self._raw.get("server", {}).get("rate_window_secs", DEFAULT_RATE_WINDOW_SECS))

    @property
    def tick_secs(self) -> float:
        return float(self._raw.get("polling", {}).get("tick_secs", DEFAULT_TICK_SECS))

    @property
    def max_blocks(self) -> int:
        return int(self._raw.get("polling", {}).get("max_blocks", DEFAULT_MAX_BLOCKS))

    @property
    def log_blocks(self) -> bool:
        return _as_bool(self._raw.get("output", {}).get("log_blocks", False))

    @property
    def block_log_path(self) -> str:
        return self._raw.get("output", {}).get("block_log_path", DEFAULT_BLOCK_LOG_PATH)

    @property
    def print_stats(self) -> bool:
        return _as_bool(self._raw.get("output", {}).get("print_stats", False))

    @property
    def log_level(self) -> str:
        return self._raw.get("logging", {}).get("level", "INFO")

    @property
    def log_dir(self) -> str:
        return self._raw.get("logging", {}).get("log_dir", "logs")

    @property
    def console_level(self) -> str:
        return self._raw.get("logging", {}).get("console_level", "INFO")

    @property
    def log_rotation(self) -> Dict[str, Any]:
        """Get log rotation configuration with defaults."""
        rotation = self._raw.get("logging", {}).get("rotation", {})
        return {
            "max_bytes": rotation.get("max_bytes", DEFAULT_LOG_MAX_BYTES),
            "backup_count": rotation.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
            "when": rotation.get("when", "midnight")
        }
