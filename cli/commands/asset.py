#!/usr/bin/env python3
"""
Asset Lifecycle Commands for the gemledger CLI

Mint, correct, transfer and inspect assets.
"""

from typing import Optional

import click

from ledger import Category
from cli.context import CLIContext, handle_ledger_error, pass_context


CATEGORY_CHOICES = [c.value for c in Category]


@click.group()
def asset():
    """Mint, update, transfer and query assets."""


@asset.command()
@click.option('--caller', required=True, help='Identity submitting the mint (the minter)')
@click.option('--category', required=True, type=click.Choice(CATEGORY_CHOICES), help='Asset category')
@click.option('--origin', required=True, help='Origin of the commodity')
@click.option('--certification', required=True, help='Certification reference')
@click.option('--location', required=True, help='Storage location')
@click.option('--unit', required=True, help='Unit of measure')
@click.option('--quantity', required=True, type=int, help='Item count or batch size')
@click.option('--owner', required=True, help='Initial owner identity')
@click.option('--min-quantity', required=True, type=int, help='Declared minimum quantity')
@click.option('--max-quantity', required=True, type=int, help='Declared maximum quantity')
@pass_context
@handle_ledger_error
def mint(ctx: CLIContext, caller: str, category: str, origin: str, certification: str,
         location: str, unit: str, quantity: int, owner: str,
         min_quantity: int, max_quantity: int):
    """Mint a new asset and print its ID."""
    asset_id = ctx.registry.mint(
        caller,
        category,
        {'origin': origin, 'certification': certification, 'location': location, 'unit': unit},
        quantity,
        owner,
        min_quantity,
        max_quantity
    )
    ctx.output({'asset_id': asset_id})


@asset.command()
@click.argument('asset_id', type=int)
@pass_context
@handle_ledger_error
def show(ctx: CLIContext, asset_id: int):
    """Show an asset record."""
    record = ctx.registry.get(asset_id)
    if record is None:
        raise click.ClickException(f"Asset {asset_id} not found")
    ctx.output(record)


@asset.command()
@click.argument('asset_id', type=int)
@click.option('--caller', required=True, help='Identity submitting the update (must be the minter)')
@click.option('--origin', required=True, help='Corrected origin')
@click.option('--certification', required=True, help='Corrected certification')
@click.option('--quantity', required=True, type=int, help='Corrected quantity')
@pass_context
@handle_ledger_error
def update(ctx: CLIContext, asset_id: int, caller: str, origin: str,
           certification: str, quantity: int):
    """Correct an asset's origin, certification and quantity."""
    ctx.registry.update(caller, asset_id, origin, certification, quantity)
    ctx.output(ctx.registry.get(asset_id))


@asset.command()
@click.argument('asset_id', type=int)
@click.argument('recipient')
@click.option('--caller', required=True, help='Identity submitting the transfer (must be the owner)')
@pass_context
@handle_ledger_error
def transfer(ctx: CLIContext, asset_id: int, recipient: str, caller: str):
    """Transfer an asset to RECIPIENT."""
    ctx.registry.transfer(caller, asset_id, recipient)
    ctx.output({'asset_id': asset_id, 'owner': recipient})


@asset.command()
@pass_context
@handle_ledger_error
def count(ctx: CLIContext):
    """Print the number of assets ever minted."""
    ctx.output({'count': ctx.registry.count()})


@asset.command()
@click.argument('category')
@pass_context
@handle_ledger_error
def exists(ctx: CLIContext, category: str):
    """Report whether CATEGORY has any assets."""
    ctx.output({'category': category, 'has_assets': ctx.registry.category_has_assets(category)})


@asset.command(name='list')
@click.option('--category', type=click.Choice(CATEGORY_CHOICES), help='Only list this category')
@click.option('--owner', help='Only list assets held by this identity')
@pass_context
@handle_ledger_error
def list_assets(ctx: CLIContext, category: Optional[str], owner: Optional[str]):
    """List assets by category or owner."""
    registry = ctx.registry

    if owner:
        records = registry.assets_owned_by(owner)
        if category:
            records = [r for r in records if r.category.value == category]
    else:
        categories = [category] if category else CATEGORY_CHOICES
        ids = sorted(i for c in categories for i in registry.assets_in_category(c))
        records = [registry.get(i) for i in ids]

    ctx.output([
        {
            'id': r.id,
            'category': r.category.value,
            'quantity': r.quantity,
            'owner': r.owner,
            'origin': r.metadata.origin,
        }
        for r in records
    ])


@asset.command()
@click.argument('asset_id', type=int)
@pass_context
@handle_ledger_error
def history(ctx: CLIContext, asset_id: int):
    """Show recorded corrections for an asset."""
    ctx.output(ctx.registry.update_history(asset_id))
