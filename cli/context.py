"""
Shared CLI context, output formatting and error handling.
"""

import json
import logging
import sys
from datetime import datetime
from enum import Enum
from functools import wraps
from typing import Any, Optional

import click
import yaml
from pydantic import BaseModel

from ledger import AssetRegistry, LedgerError
from ledger.concurrency import ConcurrencyError
from ledger.storage import StorageError

from .config import ConfigurationManager


def to_plain(data: Any) -> Any:
    """Convert models, enums and datetimes into JSON/YAML friendly values."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, dict):
        return {str(k.value if isinstance(k, Enum) else k): to_plain(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_plain(v) for v in data]
    if isinstance(data, Enum):
        return data.value
    if isinstance(data, datetime):
        return data.isoformat()
    return data


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.data_dir: Optional[str] = None
        self.output_format: str = "table"
        self.verbose: int = 0
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('gemledger-cli')
        self._registry: Optional[AssetRegistry] = None

    def setup_logging(self):
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }
        level = log_levels[min(self.verbose, 2)]

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

        for name in ('gemledger-cli', 'ledger'):
            logger = logging.getLogger(name)
            logger.handlers = [handler]
            logger.setLevel(level)

    def load_config(self):
        """Load and validate the hierarchical configuration."""
        self.config_manager = ConfigurationManager(self.config_file)
        try:
            self.config_manager.load()
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise click.ClickException(f"Failed to load configuration: {e}")

        errors = self.config_manager.validate()
        if errors:
            raise click.ClickException("Invalid configuration: " + "; ".join(errors))

        self.logger.debug(f"Configuration sources: {self.config_manager.get_sources()}")

    @property
    def registry(self) -> AssetRegistry:
        """Open the ledger lazily so config-only commands never touch storage."""
        if self._registry is None:
            settings = self.config_manager.ledger_settings()
            if self.data_dir:
                settings['storage_dir'] = self.data_dir
            self.logger.debug(f"Opening ledger at {settings['storage_dir']}")
            self._registry = AssetRegistry(**settings)
        return self._registry

    def output(self, data: Any, format_override: Optional[str] = None, err: bool = False):
        """Output data in specified format."""
        format_type = format_override or self.output_format
        data = to_plain(data)

        if format_type == "json":
            click.echo(json.dumps(data, indent=2, default=str), err=err)
        elif format_type == "yaml":
            click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip(), err=err)
        else:
            self._output_table(data, err=err)

    def _output_table(self, data: Any, err: bool = False):
        """Output data in table format."""
        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, dict):
                    value = ", ".join(f"{k}={v}" for k, v in value.items())
                click.echo(f"{key:20} {value}", err=err)
        elif isinstance(data, list) and data:
            if isinstance(data[0], dict):
                headers = list(data[0].keys())
                click.echo(" | ".join(f"{h:15}" for h in headers), err=err)
                click.echo("-" * (len(headers) * 18), err=err)
                for item in data:
                    values = [str(item.get(h, ""))[:15] for h in headers]
                    click.echo(" | ".join(f"{v:15}" for v in values), err=err)
            else:
                for item in data:
                    click.echo(item, err=err)
        elif isinstance(data, list):
            click.echo("(none)", err=err)
        else:
            click.echo(str(data), err=err)


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_ledger_error(func):
    """
    Report failures and exit 1.

    Ledger errors print as ``Error [code]: message``, or as the error record
    when JSON or YAML output is selected. Storage and lock failures, such as
    a corrupt ledger file or a stale lock file, print as ``Error: message``.
    """
    @wraps(func)
    def wrapper(ctx: CLIContext, *args, **kwargs):
        try:
            return func(ctx, *args, **kwargs)
        except LedgerError as e:
            if ctx.output_format == "table":
                click.echo(f"Error [{e.code}]: {e}", err=True)
            else:
                ctx.output({"error": e.to_dict()}, err=True)
            sys.exit(1)
        except (StorageError, ConcurrencyError, ValueError) as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    return wrapper
