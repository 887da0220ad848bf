"""
Shared CLI state: configuration, logging, output formatting and access
to the contract environment.
"""

import functools
import json
import logging
import sys
from typing import Any, Dict, Optional

import click
import yaml

from crypto.exceptions import CryptoError
from minter.environment import ContractEnvironment
from minter.exceptions import ContractError
from registry.storage import StorageError

from .config import ConfigurationError, ConfigurationManager


LOGGER_NAMES = ('mintreg-cli', 'minter', 'registry')


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.output_format: str = "table"
        self.verbose: int = 0
        self.data_dir: Optional[str] = None
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('mintreg-cli')
        self._environment: Optional[ContractEnvironment] = None

    def setup_logging(self):
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }

        level = log_levels.get(min(self.verbose, 2), logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        handler.set_name('mintreg-cli')

        for name in LOGGER_NAMES:
            logger = logging.getLogger(name)
            logger.setLevel(level)
            for existing in list(logger.handlers):
                if existing.get_name() == 'mintreg-cli':
                    logger.removeHandler(existing)
            logger.addHandler(handler)

    def load_config(self):
        """Load hierarchical configuration."""
        self.config_manager = ConfigurationManager(self.config_file)
        self.config_manager.load()

        errors = self.config_manager.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        self.logger.info(f"Configuration sources: {', '.join(self.config_manager.get_sources())}")

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get configuration value with fallback to default."""
        if self.config_manager is None:
            return default
        return self.config_manager.get(key, default)

    def environment(self) -> ContractEnvironment:
        """Open the file-backed contract described by the configuration."""
        if self._environment is None:
            data_dir = self.data_dir or self.get_config('storage.data_dir')
            self._environment = ContractEnvironment.from_directory(
                data_dir,
                config=self.config_manager.contract_config(),
                compressed=self.get_config('storage.compressed', False),
                backup_count=self.get_config('storage.backup_count', 5),
                lock_timeout=self.get_config('storage.lock_timeout', 30.0),
                contract_id=self.get_config('contract_id'),
            )
            self.logger.debug(f"Opened contract storage in {data_dir}")
        return self._environment

    def output(self, data: Any, format_override: Optional[str] = None):
        """Output data in specified format."""
        format_type = format_override or self.output_format

        if format_type == "json":
            click.echo(json.dumps(data, indent=2, default=str))
        elif format_type == "yaml":
            click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())
        else:
            self._output_table(data)

    def _output_table(self, data: Any):
        """Output data in table format."""
        if isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key:20} {value}")
        elif isinstance(data, list) and data:
            if isinstance(data[0], dict):
                headers = list(data[0].keys())
                click.echo(" | ".join(f"{h:15}" for h in headers))
                click.echo("-" * (len(headers) * 17))
                for item in data:
                    values = [str(item.get(h, ""))[:15] for h in headers]
                    click.echo(" | ".join(f"{v:15}" for v in values))
            else:
                for item in data:
                    click.echo(item)
        else:
            click.echo(str(data))


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Turn expected failures into an error line and exit status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ContractError as e:
            click.echo(f"Error: {e.code}: {e.message}", err=True)
            sys.exit(1)
        except (ConfigurationError, StorageError, CryptoError) as e:
            ctx = click.get_current_context().find_object(CLIContext)
            if ctx and ctx.verbose >= 2:
                ctx.logger.exception("Command failed")
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    return wrapper


def result_dict(**fields) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}
