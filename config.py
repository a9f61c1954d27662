"""
Configuration management for the service kernel.
Handles environment variables, config files, logging settings and validation.
"""

import json
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv

from custom_logging import get_logger
from service_kernel.exceptions import ConfigurationError

logger = get_logger("config")

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    log_dir: Optional[str] = None  # No file logging when unset
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


def _default_methods() -> List[str]:
    return ["find", "get", "create", "update", "patch", "remove"]


def _default_event_mappings() -> Dict[str, str]:
    return {
        "create": "created",
        "update": "updated",
        "remove": "removed",
        "patch": "patched"
    }


@dataclass
class KernelConfig:
    """Main configuration class for the service kernel."""

    # Core settings
    project_name: str = "service_kernel"
    environment: str = "development"  # development, staging, production
    debug: bool = False

    logging: LoggingConfig = None

    # Recognized service methods and the events derived from them
    methods: List[str] = field(default_factory=_default_methods)
    event_mappings: Dict[str, str] = field(default_factory=_default_event_mappings)

    # Initial application settings
    settings: Dict[str, Any] = field(default_factory=dict)

    config_file: Optional[str] = None

    def __post_init__(self):
        """Initialize mutable defaults and validate."""
        if self.logging is None:
            self.logging = LoggingConfig()
        elif isinstance(self.logging, dict):
            self.logging = LoggingConfig(**self.logging)

        self._validate_config()

    def _validate_config(self):
        """Validate configuration values."""
        validation_errors = []

        if str(self.logging.level).upper() not in VALID_LOG_LEVELS:
            validation_errors.append(f"Invalid log level: {self.logging.level}")

        if not self.methods:
            validation_errors.append("At least one service method is required")
        for method in self.methods:
            if not isinstance(method, str) or not method:
                validation_errors.append(f"Invalid service method name: {method!r}")

        for method, event_name in self.event_mappings.items():
            if method not in self.methods:
                validation_errors.append(f"Event mapping for unknown method: {method}")
            if not isinstance(event_name, str) or not event_name:
                validation_errors.append(f"Invalid event name for {method}: {event_name!r}")

        if validation_errors:
            for error in validation_errors:
                logger.error(f"Config validation error: {error}")
            raise ConfigurationError(validation_errors)

    def logging_options(self) -> Dict[str, Any]:
        """Options for ``custom_logging.setup_logger``."""
        return {
            "log_level": self.logging.level,
            "log_dir": self.logging.log_dir,
            "max_file_size": self.logging.max_file_size,
            "backup_count": self.logging.backup_count
        }


class ConfigManager:
    """Configuration manager for loading and managing kernel config."""

    def __init__(self):
        self.logger = get_logger("config_manager")
        load_dotenv()  # Load environment variables from .env file
        self.logger.debug("Loaded environment variables from .env")

    def load_config(self,
                    config_file: Optional[str] = None,
                    env_prefix: str = "KERNEL_") -> KernelConfig:
        """
        Load configuration from file and environment variables.

        Args:
            config_file: Path to JSON configuration file
            env_prefix: Prefix for environment variables

        Returns:
            KernelConfig instance
        """
        self.logger.info("Loading service kernel configuration...")

        # Start with default config
        config_dict = asdict(KernelConfig())

        # Load from file if provided
        if config_file and Path(config_file).exists():
            self.logger.info(f"Loading config from file: {config_file}")
            with open(config_file, 'r') as f:
                file_config = json.load(f)
            config_dict = self._deep_merge(config_dict, file_config)

        # Override with environment variables
        env_config = self._load_from_env(env_prefix)
        config_dict = self._deep_merge(config_dict, env_config)

        try:
            config = KernelConfig(
                project_name=config_dict.get('project_name', 'service_kernel'),
                environment=config_dict.get('environment', 'development'),
                debug=config_dict.get('debug', False),
                logging=LoggingConfig(**config_dict.get('logging', {})),
                methods=list(config_dict.get('methods') or _default_methods()),
                event_mappings=dict(config_dict.get('event_mappings') or _default_event_mappings()),
                settings=dict(config_dict.get('settings') or {}),
                config_file=config_file,
            )
            self.logger.info("Configuration loaded successfully")
            return config
        except (ConfigurationError, TypeError) as e:
            self.logger.error(f"Failed to load configuration: {e}")
            raise

    def _load_from_env(self, prefix: str) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}

        simple_mappings = {
            f"{prefix}PROJECT_NAME": ["project_name"],
            f"{prefix}ENVIRONMENT": ["environment"],
            f"{prefix}DEBUG": ["debug"],
            f"{prefix}LOG_LEVEL": ["logging", "level"],
            f"{prefix}LOG_DIR": ["logging", "log_dir"],
            f"{prefix}MAX_FILE_SIZE": ["logging", "max_file_size"],
            f"{prefix}BACKUP_COUNT": ["logging", "backup_count"],
        }

        for env_var, path in simple_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                self._set_nested_value(env_config, path, self._convert_type(value))

        # Application settings: KERNEL_SETTING_<NAME>
        pattern = re.compile(rf"^{re.escape(prefix)}SETTING_([A-Z0-9_]+)$")
        for key, value in os.environ.items():
            m = pattern.match(key)
            if not m:
                continue
            self._set_nested_value(env_config, ["settings", m.group(1).lower()], self._convert_type(value))

        return env_config

    def _convert_type(self, value: str) -> Union[str, int, float, bool]:
        """Convert string environment variable to appropriate type."""
        # Boolean conversion
        if value.lower() in {"true", "yes", "on"}:
            return True
        elif value.lower() in {"false", "no", "off"}:
            return False

        # Integer conversion
        try:
            return int(value)
        except ValueError:
            pass

        # Float conversion
        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _set_nested_value(self, dictionary: Dict[str, Any], path: List[str], value: Any):
        """Set a nested dictionary value using a path."""
        current = dictionary
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def save_config(self, config: KernelConfig, config_file: str):
        """Save configuration to JSON file."""
        self.logger.info(f"Saving configuration to: {config_file}")

        config_dict = asdict(config)
        with open(config_file, 'w') as f:
            json.dump(config_dict, f, indent=2)

        self.logger.info("Configuration saved successfully")


# Global configuration instance
_config_instance: Optional[KernelConfig] = None


def get_config() -> KernelConfig:
    """Get the global configuration instance."""
    global _config_instance
    if _config_instance is None:
        manager = ConfigManager()
        _config_instance = manager.load_config()
    return _config_instance


def init_config(config_file: Optional[str] = None) -> KernelConfig:
    """Initialize configuration with optional config file."""
    global _config_instance
    manager = ConfigManager()
    _config_instance = manager.load_config(config_file)
    return _config_instance
