#!/usr/bin/env python3
"""
Configuration Management Module for the mintreg CLI

Handles hierarchical configuration loading (defaults, config file,
environment variables), validation, and persistence of settings.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from registry.schema import ContractConfig


# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.mintreg.yml',            # Project-specific YAML
    Path.cwd() / '.mintreg.json',           # Project-specific JSON
    Path.home() / '.mintreg' / 'config.yml',    # User global YAML
    Path.home() / '.mintreg' / 'config.json',   # User global JSON
]

# Environment variable prefix; nesting is spelled with a double underscore,
# e.g. MINTREG_STORAGE__DATA_DIR -> storage.data_dir
ENV_PREFIX = 'MINTREG_'
ENV_NESTING = '__'

OUTPUT_FORMATS = ['table', 'json', 'yaml']

_contract_defaults = ContractConfig()

# Default configuration values
DEFAULT_CONFIG = {
    'contract_id': 'collectible-registry',

    # Where contract state lives
    'storage': {
        'data_dir': '~/.mintreg/data',
        'compressed': False,
        'backup_count': 5,
        'lock_timeout': 30.0
    },

    # Collection limits and initialization defaults
    'contract': _contract_defaults.model_dump(),

    # CLI behavior
    'cli': {
        'output_format': 'table',
        'verbose': 0
    }
}


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""
    pass


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None,
                 environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            environ: Environment mapping (defaults to os.environ)
        """
        self.logger = logging.getLogger('mintreg-cli.config')
        self.config_file = config_file
        self.environ = environ if environ is not None else os.environ
        self._config_cache = None
        self._config_sources = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        configs = [copy.deepcopy(DEFAULT_CONFIG)]
        self._config_sources = ["defaults"]

        if self.config_file:
            path = Path(self.config_file)
            if not path.exists():
                raise ConfigurationError(f"Config file not found: {path}")
            configs.append(self._load_config_file(path))
            self._config_sources.append(f"file:{path}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    configs.append(self._load_config_file(config_path))
                    self._config_sources.append(f"file:{config_path}")
                    self.logger.debug(f"Loaded config from {config_path}")
                    break  # Use first found config file

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        # Later sources override earlier ones
        self._config_cache = self._deep_merge(*configs)
        self._expand_paths(self._config_cache)

        return self._config_cache

    def _load_config_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from file."""
        try:
            with open(path, 'r') as f:
                if path.suffix in ['.yml', '.yaml']:
                    data = yaml.safe_load(f)
                elif path.suffix == '.json':
                    data = json.load(f)
                else:
                    raise ConfigurationError(f"Unknown config file format: {path}")
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}

        for key, value in self.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            config_key = key[len(ENV_PREFIX):].lower()
            if ENV_NESTING not in config_key and config_key not in DEFAULT_CONFIG:
                continue  # e.g. MINTREG_PRIVATE_KEY is read by the CLI, not here

            parts = config_key.split(ENV_NESTING)
            current = env_config

            for part in parts[:-1]:
                current = current.setdefault(part, {})

            current[parts[-1]] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ['true', 'yes']:
            return True
        if value.lower() in ['false', 'no']:
            return False

        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return value

        if isinstance(parsed, (int, float, bool, str)):
            return parsed
        return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = value

        return result

    def _expand_paths(self, config: Dict[str, Any]):
        """Expand ~ and environment variables in path values."""
        storage = config.get('storage', {})
        data_dir = storage.get('data_dir')
        if isinstance(data_dir, str):
            storage['data_dir'] = os.path.expanduser(os.path.expandvars(data_dir))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'storage.data_dir')
            default: Default value if key not found
        """
        current = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, key_path: str, value: Any):
        """Set configuration value by dot-notation path."""
        config = self.load()

        keys = key_path.split('.')
        current = config

        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None, format: str = 'yaml') -> Path:
        """
        Save current configuration to file.

        Args:
            path: File path to save to (default: project config file)
            format: Output format ('yaml' or 'json')
        """
        config = self.load()

        if not path:
            path = Path.cwd() / ('.mintreg.yml' if format == 'yaml' else '.mintreg.json')

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            if format == 'yaml':
                yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config, f, indent=2)

        self.logger.info(f"Configuration saved to {path}")
        return path

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []

        output_format = config.get('cli', {}).get('output_format')
        if output_format not in OUTPUT_FORMATS:
            errors.append(f"Invalid output format: {output_format}")

        storage = config.get('storage', {})
        if not storage.get('data_dir'):
            errors.append("storage.data_dir is required")
        backup_count = storage.get('backup_count')
        if isinstance(backup_count, bool) or not isinstance(backup_count, int) or backup_count < 0:
            errors.append("storage.backup_count must be a non-negative integer")
        lock_timeout = storage.get('lock_timeout')
        if isinstance(lock_timeout, bool) or not isinstance(lock_timeout, (int, float)) or lock_timeout <= 0:
            errors.append("storage.lock_timeout must be a positive number")

        if not isinstance(config.get('contract_id'), str) or not config.get('contract_id'):
            errors.append("contract_id must be a non-empty string")

        try:
            ContractConfig(**config.get('contract', {}))
        except ValidationError as e:
            for error in e.errors():
                location = '.'.join(str(part) for part in error['loc']) or 'contract'
                errors.append(f"contract.{location}: {error['msg']}")
        except TypeError as e:
            errors.append(f"contract: {e}")

        return errors

    def contract_config(self) -> ContractConfig:
        """Build the validated contract configuration."""
        try:
            return ContractConfig(**self.get('contract', {}))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid contract configuration: {e}")

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return list(self._config_sources)

    def reset(self):
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []
