#!/usr/bin/env python3
"""
Configuration, Account and Ledger Maintenance Commands for the gemledger CLI
"""

import click

from cli.context import CLIContext, handle_ledger_error, pass_context


# Configuration

@click.group()
def config():
    """Show and change ledger configuration."""


@config.command(name='show')
@pass_context
@handle_ledger_error
def config_show(ctx: CLIContext):
    """Show the active ledger configuration."""
    ctx.output(ctx.registry.config)


@config.command(name='sources')
@pass_context
@handle_ledger_error
def config_sources(ctx: CLIContext):
    """List the configuration sources that were loaded."""
    ctx.output(ctx.config_manager.get_sources())


@config.command(name='set-fee-recipient')
@click.argument('identity')
@click.option('--caller', required=True, help='Administrator identity')
@pass_context
@handle_ledger_error
def set_fee_recipient(ctx: CLIContext, identity: str, caller: str):
    """Set the fee recipient (one time only)."""
    ctx.registry.set_fee_recipient(identity, caller=caller)
    ctx.output({'fee_recipient': identity})


@config.command(name='set-capacity')
@click.argument('ceiling', type=int)
@click.option('--caller', required=True, help='Administrator identity')
@pass_context
@handle_ledger_error
def set_capacity(ctx: CLIContext, ceiling: int, caller: str):
    """Set the capacity ceiling."""
    ctx.registry.set_capacity_ceiling(ceiling, caller=caller)
    ctx.output({'capacity_ceiling': ceiling})


@config.command(name='set-fee')
@click.argument('fee', type=int)
@click.option('--caller', required=True, help='Administrator identity')
@pass_context
@handle_ledger_error
def set_fee(ctx: CLIContext, fee: int, caller: str):
    """Set the per-mint fee."""
    ctx.registry.set_mint_fee(fee, caller=caller)
    ctx.output({'mint_fee': fee})


# Accounts

@click.group()
def account():
    """Fee-token and fungible balances."""


@account.command()
@click.argument('identity')
@click.argument('amount', type=int)
@pass_context
@handle_ledger_error
def fund(ctx: CLIContext, identity: str, amount: int):
    """Credit AMOUNT fee tokens to IDENTITY."""
    balance = ctx.registry.deposit_fee_funds(identity, amount)
    ctx.output({'identity': identity, 'fee_balance': balance})


@account.command()
@click.argument('identity')
@pass_context
@handle_ledger_error
def balance(ctx: CLIContext, identity: str):
    """Show fee-token and fungible balances of IDENTITY."""
    registry = ctx.registry
    ctx.output({
        'identity': identity,
        'fee_balance': registry.fee_balance_of(identity),
        'fungible_balance': registry.balance_of(identity),
        'assets_owned': [r.id for r in registry.assets_owned_by(identity)],
    })


# Ledger maintenance

@click.group()
def ledger():
    """Ledger height, statistics, integrity and backups."""


@ledger.command()
@click.option('--blocks', default=1, type=int, show_default=True, help='Blocks to advance')
@pass_context
@handle_ledger_error
def advance(ctx: CLIContext, blocks: int):
    """Advance the ledger height."""
    ctx.output({'height': ctx.registry.advance_height(blocks)})


@ledger.command()
@pass_context
@handle_ledger_error
def stats(ctx: CLIContext):
    """Show ledger statistics."""
    ctx.output(ctx.registry.get_registry_stats())


@ledger.command()
@pass_context
@handle_ledger_error
def verify(ctx: CLIContext):
    """Check ledger invariants; exit 1 if any is violated."""
    violations = ctx.registry.verify_invariants()
    if violations:
        for violation in violations:
            click.echo(f"VIOLATION: {violation}", err=True)
        raise click.exceptions.Exit(1)

    ctx.output({'status': 'ok', 'assets': ctx.registry.count()})


@ledger.command()
@pass_context
@handle_ledger_error
def backup(ctx: CLIContext):
    """Create a backup of the ledger file."""
    if not ctx.registry.backup():
        raise click.ClickException("Nothing to back up")
    ctx.output({'backups': ctx.registry.list_backups()})


@ledger.command()
@pass_context
@handle_ledger_error
def backups(ctx: CLIContext):
    """List available backups, newest first."""
    ctx.output(ctx.registry.list_backups())


@ledger.command()
@click.argument('timestamp')
@pass_context
@handle_ledger_error
def restore(ctx: CLIContext, timestamp: str):
    """Restore the ledger from the backup taken at TIMESTAMP."""
    if not ctx.registry.restore_backup(timestamp):
        raise click.ClickException(f"Backup {timestamp} not found")
    ctx.output({'restored': timestamp, 'assets': ctx.registry.count()})
