#!/usr/bin/env python3
"""
Configuration Management Module for the gemledger CLI

Handles hierarchical configuration loading (defaults, config file,
environment variables) and validation of ledger settings.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ledger.schema import (
    DEFAULT_CAPACITY_CEILING, DEFAULT_CATEGORY_CAPACITY, DEFAULT_MINT_FEE,
)


# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.gemledger.yml',
    Path.cwd() / '.gemledger.json',
    Path.home() / '.gemledger' / 'config.yml',
    Path.home() / '.gemledger' / 'config.json',
]

# Environment variable prefix
ENV_PREFIX = 'GEMLEDGER_'

# Separator for nested keys in environment variables, e.g. GEMLEDGER_CLI__OUTPUT_FORMAT
ENV_NESTING = '__'

DEFAULT_CONFIG = {
    'ledger': {
        'data_dir': '~/.gemledger/data',
        'capacity_ceiling': DEFAULT_CAPACITY_CEILING,
        'mint_fee': DEFAULT_MINT_FEE,
        'administrator': None,
        'category_capacity': DEFAULT_CATEGORY_CAPACITY,
        'history_limit': 1,
        'enforce_quantity_bounds': False,
        'backup_count': 5,
    },
    'cli': {
        'output_format': 'table',  # table, json, yaml
        'verbose': 0,
    },
}


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            environ: Environment mapping (defaults to ``os.environ``)
        """
        self.logger = logging.getLogger('gemledger-cli.config')
        self.config_file = config_file
        self.environ = os.environ if environ is None else environ
        self._config_cache: Optional[Dict[str, Any]] = None
        self._config_sources: List[str] = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        self._config_sources = ["defaults"]
        configs = [copy.deepcopy(DEFAULT_CONFIG)]

        if self.config_file:
            configs.append(self._load_config_file(Path(self.config_file)))
            self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    configs.append(self._load_config_file(config_path))
                    self._config_sources.append(f"file:{config_path}")
                    self.logger.debug(f"Loaded config from {config_path}")
                    break  # First match wins

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        self._config_cache = self._deep_merge(*configs)
        self._expand_paths(self._config_cache)

        return self._config_cache

    def _load_config_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML or JSON file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unknown config file format: {path}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        ``GEMLEDGER_DATA_DIR`` maps to ``ledger.data_dir``; a double
        underscore selects another section, as in ``GEMLEDGER_CLI__VERBOSE``.
        """
        env_config: Dict[str, Any] = {}

        for key, value in self.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            config_key = key[len(ENV_PREFIX):].lower()
            if ENV_NESTING in config_key:
                section, name = config_key.split(ENV_NESTING, 1)
            else:
                section, name = 'ledger', config_key

            env_config.setdefault(section, {})[name] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool, None]:
        """Parse environment variable value to appropriate type."""
        lowered = value.lower()
        if lowered in ['true', 'yes']:
            return True
        if lowered in ['false', 'no']:
            return False
        if lowered in ['none', 'null']:
            return None

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result: Dict[str, Any] = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = value

        return result

    def _expand_paths(self, config: Dict[str, Any]):
        """Expand ~ and environment variables in path values."""
        for key, value in config.items():
            if isinstance(value, dict):
                self._expand_paths(value)
            elif isinstance(value, str) and ('~' in value or '$' in value):
                config[key] = os.path.expanduser(os.path.expandvars(value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'ledger.data_dir')
            default: Default value if key not found
        """
        current: Any = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        ledger = self.load().get('ledger', {})
        errors = []

        for key in ['capacity_ceiling', 'category_capacity', 'history_limit', 'backup_count']:
            value = ledger.get(key)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                errors.append(f"ledger.{key} must be a positive integer, got {value!r}")

        fee = ledger.get('mint_fee')
        if isinstance(fee, bool) or not isinstance(fee, int) or fee < 0:
            errors.append(f"ledger.mint_fee must be a non-negative integer, got {fee!r}")

        if not ledger.get('data_dir'):
            errors.append("ledger.data_dir is required")

        output_format = self.load().get('cli', {}).get('output_format')
        if output_format not in ['table', 'json', 'yaml']:
            errors.append(f"Invalid output format: {output_format}")

        return errors

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return list(self._config_sources)

    def ledger_settings(self) -> Dict[str, Any]:
        """Keyword arguments for ``AssetRegistry``."""
        ledger = self.load()['ledger']
        return {
            'storage_dir': ledger['data_dir'],
            'capacity_ceiling': ledger['capacity_ceiling'],
            'mint_fee': ledger['mint_fee'],
            'administrator': ledger['administrator'],
            'category_capacity': ledger['category_capacity'],
            'history_limit': ledger['history_limit'],
            'enforce_quantity_bounds': ledger['enforce_quantity_bounds'],
            'backup_count': ledger['backup_count'],
        }
