#!/usr/bin/env python3
"""
Collectible Registry - Command Line Interface

A CLI for initializing a capped-mint collection, minting tokens,
administering the sale and querying contract state.
"""

from typing import Optional

import click

from cli import __version__

from .commands.contract import contract
from .commands.keys import keys
from .config import ConfigurationError
from .context import CLIContext, pass_context


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              help='Path to configuration file')
@click.option('--output-format', '-o',
              type=click.Choice(['table', 'json', 'yaml']),
              default=None,
              help='Output format')
@click.option('--data-dir', '-d',
              help='Contract storage directory (overrides storage.data_dir)')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='mintreg')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], output_format: Optional[str],
        data_dir: Optional[str], verbose: int):
    """
    Capped-mint collectible registry CLI.

    Examples:
        mintreg keys generate
        mintreg -d ./data contract init --key <owner-key>
        mintreg -d ./data -o json contract info
    """
    ctx.config_file = config_file
    ctx.data_dir = data_dir

    try:
        ctx.load_config()
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    ctx.verbose = max(verbose, ctx.get_config('cli.verbose', 0))
    ctx.output_format = output_format or ctx.get_config('cli.output_format', 'table')
    ctx.setup_logging()

    ctx.logger.debug("CLI initialized with context")


cli.add_command(contract)
cli.add_command(keys)


def main():
    cli()


if __name__ == '__main__':
    main()
