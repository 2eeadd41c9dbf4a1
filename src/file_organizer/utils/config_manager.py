"""
Configuration management for the file organizer.
Handles loading, validation, and environment overrides of the rule document.
"""

import os
import json
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional
from copy import deepcopy

from file_organizer.organization_logic.rules import (
    DEFAULT_TARGET_FOLDER,
    DuplicateStrategy,
    OrganizeConfig,
)
from .error_handler import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "FILE_ORGANIZER_"

# Environment variable suffix -> configuration path
ENV_MAPPINGS = {
    "DEFAULT_TARGET_FOLDER": ["defaultTargetFolder"],
    "GLOBAL_DUPLICATE_HANDLING": ["globalDuplicateHandling"],
    "LOG_LEVEL": ["logging", "level"],
    "LOG_FILE": ["logging", "file"],
}

LIST_KEYS = ("directories", "fileRules", "folderRules")
RULE_LIST_FIELDS = {
    "fileRules": ("extensions", "namePatterns"),
    "folderRules": (),
}
INTEGER_FIELDS = {
    "fileRules": ("olderThanDays", "newerThanDays"),
    "folderRules": ("renameOlderThanDays", "moveOlderThanDays"),
}


class ConfigManager:
    """Load the organizer configuration from a JSON or YAML file."""

    def __init__(self, config_file: Optional[Path] = None, use_env: bool = True):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to the configuration document
            use_env: Apply FILE_ORGANIZER_* environment overrides

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        self.config = self._load_default_config()

        if config_file is not None:
            self._load_from_file(Path(config_file))

        if use_env:
            self._load_from_env()

        self._validate_config()

        logger.info("Configuration loaded successfully")

    def _load_default_config(self) -> Dict[str, Any]:
        """Load default configuration."""
        return {
            "directories": [],
            "globalExclusions": {"filePatterns": [], "folderPatterns": []},
            "globalDuplicateHandling": DuplicateStrategy.SKIP.value,
            "fileRules": [],
            "defaultTargetFolder": DEFAULT_TARGET_FOLDER,
            "folderRules": [],
            "logging": {
                "level": "INFO",
                "file": "./logs/organizer.log",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        }

    def _load_from_file(self, config_file: Path):
        """Load configuration from file."""
        logger.info(f"Loading configuration from {config_file}")

        if not config_file.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8-sig") as f:
                if config_file.suffix == ".json":
                    file_config = json.load(f)
                elif config_file.suffix in (".yaml", ".yml"):
                    file_config = yaml.safe_load(f)
                else:
                    raise ConfigurationError(
                        f"Unsupported config file format: {config_file}"
                    )
        except ConfigurationError:
            raise
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config file: {e}")
            raise ConfigurationError(f"Cannot read {config_file}: {e}") from e

        if file_config is None:
            file_config = {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping, got {type(file_config).__name__}"
            )

        self._deep_merge(self.config, file_config)

    def _load_from_env(self):
        """Load overrides from FILE_ORGANIZER_* environment variables."""
        for suffix, config_path in ENV_MAPPINGS.items():
            value = os.environ.get(ENV_PREFIX + suffix)
            if value:
                logger.debug(f"Environment override for {'.'.join(config_path)}")
                self._set_nested_config(self.config, config_path, value)

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]):
        """Deep merge update dictionary into base dictionary."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _set_nested_config(
        self, config_dict: Dict[str, Any], path: List[str], value: Any
    ):
        """Set a value in a nested dictionary using a path."""
        current = config_dict
        for part in path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    def _validate_config(self):
        """Validate configuration values."""
        errors = []

        for key in LIST_KEYS:
            value = self.config.get(key)
            if value is None:
                self.config[key] = []
            elif not isinstance(value, list):
                errors.append(f"'{key}' must be a list")

        exclusions = self.config.get("globalExclusions")
        if exclusions is None:
            self.config["globalExclusions"] = {}
        elif not isinstance(exclusions, dict):
            errors.append("'globalExclusions' must be a mapping")
        else:
            for key in ("filePatterns", "folderPatterns"):
                if exclusions.get(key) is not None and not isinstance(
                    exclusions[key], list
                ):
                    errors.append(f"'globalExclusions.{key}' must be a list")

        for collection in ("fileRules", "folderRules"):
            rules = self.config.get(collection)
            if not isinstance(rules, list):
                continue
            for index, rule in enumerate(rules):
                errors.extend(self._validate_rule(collection, index, rule))

        if not isinstance(self.config.get("logging"), dict):
            errors.append("'logging' must be a mapping")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

    def _validate_rule(self, collection: str, index: int, rule: Any) -> List[str]:
        label = f"{collection}[{index}]"
        if not isinstance(rule, dict):
            return [f"{label} must be a mapping"]

        errors = []
        for key in RULE_LIST_FIELDS[collection]:
            if rule.get(key) is not None and not isinstance(rule[key], list):
                errors.append(f"{label}.{key} must be a list")

        for key in INTEGER_FIELDS[collection]:
            value = rule.get(key)
            if value is None or value == "":
                continue
            if isinstance(value, bool) or (
                isinstance(value, float) and not value.is_integer()
            ):
                errors.append(f"{label}.{key} must be an integer")
                continue
            try:
                int(value)
            except (TypeError, ValueError):
                errors.append(f"{label}.{key} must be an integer")

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'logging.level')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def to_dict(self) -> Dict[str, Any]:
        return deepcopy(self.config)

    def to_organize_config(self) -> OrganizeConfig:
        """Build the immutable run context.

        Raises:
            ConfigurationError: If a rule value cannot be converted
        """
        try:
            return OrganizeConfig.from_dict(self.config)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid rule definition: {e}") from e


def load_organize_config(config_file: Path, use_env: bool = True) -> OrganizeConfig:
    """Load and validate a configuration document in one step."""
    return ConfigManager(config_file, use_env=use_env).to_organize_config()
