"""
Configuration Management System for the Table One generator

This module provides centralized configuration management for the library,
including table defaults, output labels and logging configuration.

Usage:
    from config import CONFIG

    # Access config
    print(CONFIG.get('tableone.decimal_precision'))

    # Update config (runtime)
    CONFIG.update('tableone.add_total_column', True)

    # Get with default
    value = CONFIG.get('some.nested.key', default='default_value')
"""

import copy
import os
import warnings
from typing import Any, Dict, Optional


class ConfigManager:
    """
    Centralized configuration management with hierarchical key access.

    Supports:
    - Nested dictionary access with dot notation
    - Default values and fallbacks
    - Environment variable overrides
    - Runtime updates
    """

    def __init__(self, config_dict: Optional[Dict] = None):
        """
        Create a ConfigManager populated with the given configuration or the module defaults and apply environment variable overrides.

        Parameters:
            config_dict (dict | None): Optional initial configuration dictionary to use instead of the built-in defaults. If None, the manager is initialized from the default configuration.
        """
        self._config = config_dict or self._get_default_config()
        self._env_prefix = "TABLEONE_"
        self._load_env_overrides()

    @staticmethod
    def _get_default_config() -> Dict[str, Any]:
        """
        Provide the default nested configuration used by the library.

        Returns:
            Dict[str, Any]: A dictionary with the default configuration sections
            ('tableone', 'logging') and their corresponding default settings.
        """
        return {

            # ========== TABLE SETTINGS ==========
            "tableone": {
                # Option defaults
                "decimal_precision": 1,
                "add_missing_counts": True,
                "add_total_column": False,
                "strata_order": "appearance",  # 'appearance', 'sorted'
                "level_order": "sorted",  # 'sorted', 'appearance'

                # Output labels
                "label_column": "variablenames",
                "n_row_label": "n",
                "missing_stratum_label": "missing",
                "total_column_label": "total",
                "missing_column_label": "nmissing",
                "level_indent": 4,

                # Rendering
                "html_title": "Table 1",
            },

            # ========== LOGGING SETTINGS ==========
            "logging": {
                "enabled": True,
                "level": "INFO",  # DEBUG, INFO, WARNING, ERROR, CRITICAL
                "format": "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
                "date_format": "%Y-%m-%d %H:%M:%S",

                # File Logging
                "file_enabled": False,
                "log_dir": "logs",
                "log_file": "tableone.log",
                "max_log_size": 10485760,  # 10MB in bytes
                "backup_count": 5,

                # Console Logging
                "console_enabled": True,
                "console_level": "WARNING",

                # What to Log
                "log_data_operations": True,
                "log_analysis_operations": True,
                "log_performance": True,  # Timing information
            },
        }

    def _load_env_overrides(self) -> None:
        """
        Apply configuration overrides from environment variables that start with the TABLEONE_ prefix.

        Environment variables must follow the form TABLEONE_<SECTION>_<KEY>=value; the portion after the prefix is lowercased and split on underscores, where the first segment is treated as the section and the remaining segments are joined with underscores to form the dot-notated key within that section (e.g., TABLEONE_LOGGING_LEVEL -> logging.level). The raw string is coerced to the type of the value it replaces. Variables without at least a section and key are ignored. If applying an override fails (e.g., type or key errors), a warning is emitted and the override is skipped.
        """
        for key, value in os.environ.items():
            if key.startswith(self._env_prefix):
                # TABLEONE_LOGGING_LEVEL -> ['logging', 'level']
                parts = key[len(self._env_prefix):].lower().split('_')

                if len(parts) < 2:
                    continue

                section = parts[0]
                key_name = '_'.join(parts[1:])
                dotted = f"{section}.{key_name}"

                try:
                    self.update(dotted, self._coerce(value, self.get(dotted)))
                except (KeyError, ValueError, TypeError) as e:
                    warnings.warn(f"Failed to set env override {key}={value}: {e}", stacklevel=2)

    @staticmethod
    def _coerce(raw: str, current: Any) -> Any:
        """
        Convert an environment string to the type of the value it overrides.

        Raises:
            ValueError: If the string cannot be read as the current value's type.
        """
        if isinstance(current, bool):
            lowered = raw.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"'{raw}' is not a boolean")
        if isinstance(current, int):
            return int(raw)
        if isinstance(current, float):
            return float(raw)
        return raw

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value using a dot-separated key path.

        Parameters:
            key (str): Dot-separated path to a nested configuration value (e.g., "logging.level").
            default: Value to return if the specified path does not exist.

        Returns:
            The configuration value at the given path, or `default` if the path is not found.
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def update(self, key: str, value: Any) -> None:
        """
        Set an existing configuration value identified by a dot-separated path.

        Parameters:
            key (str): Dot-separated path to an existing configuration entry (e.g., "logging.level").
            value (Any): Value to assign to the configuration entry.

        Raises:
            KeyError: If any intermediate path segment or the final key does not exist in the configuration.
        """
        keys = key.split('.')
        config = self._config

        # Navigate to parent key
        for k in keys[:-1]:
            if k not in config:
                raise KeyError(f"Config path '{'.'.join(keys[:-1])}' does not exist")
            config = config[k]

        final_key = keys[-1]
        if final_key not in config:
            raise KeyError(f"Config key '{key}' does not exist")

        config[final_key] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Return a deep copy of a top-level configuration section.
        """
        result = self.get(section, {})
        return copy.deepcopy(result) if isinstance(result, dict) else result

    def __repr__(self) -> str:
        return f"ConfigManager({len(self._config)} sections)"


# Global config instance
CONFIG = ConfigManager()
