#!/usr/bin/env python3
"""
gemledger - Command Line Interface

Administer the commodity asset ledger: configure fees and capacity, mint,
correct and transfer assets, and inspect ledger state.
"""

from typing import Optional

import click

from cli import __version__
from cli.commands.asset import asset
from cli.commands.ledger import account, config, ledger
from cli.context import CLIContext, pass_context


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              help='Path to configuration file')
@click.option('--data-dir', '-d',
              help='Ledger data directory (overrides configuration)')
@click.option('--output-format', '-o',
              type=click.Choice(['table', 'json', 'yaml']),
              default=None,
              help='Output format')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='gemledger')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], data_dir: Optional[str],
        output_format: Optional[str], verbose: int):
    """
    gemledger: registry and lifecycle ledger for physical commodities.

    Examples:
        gemledger config set-fee-recipient ST2FEES --caller ST0ADMIN
        gemledger account fund ST1MINTER 5000
        gemledger asset mint --caller ST1MINTER --category unique-item ...
        gemledger asset transfer 0 ST4BUYER --caller ST3OWNER
    """
    ctx.config_file = config_file
    ctx.data_dir = data_dir
    ctx.verbose = verbose

    ctx.load_config()
    ctx.verbose = max(verbose, ctx.config_manager.get('cli.verbose', 0) or 0)
    ctx.output_format = output_format or ctx.config_manager.get('cli.output_format', 'table')
    ctx.setup_logging()

    ctx.logger.debug("CLI initialized with context")


cli.add_command(config)
cli.add_command(asset)
cli.add_command(account)
cli.add_command(ledger)


def main():
    cli(prog_name='gemledger')


if __name__ == '__main__':
    main()
