#!/usr/bin/env python3
"""
Key Management Commands for the mintreg CLI

Generate signing keys and show the address a key controls.
"""

import click

from crypto.keys import PrivateKey

from ..context import CLIContext, handle_cli_error, pass_context


@click.group()
def keys():
    """
    Signing key commands.

    An address is the compressed secp256k1 public key of its signing key.
    """


@keys.command('generate')
@pass_context
@handle_cli_error
def generate(ctx: CLIContext):
    """Generate a new random signing key."""
    key = PrivateKey()
    ctx.logger.info("Generated new signing key")
    ctx.output({
        'address': key.address,
        'private_key': key.hex,
    })


@keys.command('address')
@click.option('--key', 'key_hex', envvar='MINTREG_PRIVATE_KEY', required=True,
              help='Private key (hex); defaults to $MINTREG_PRIVATE_KEY')
@pass_context
@handle_cli_error
def address(ctx: CLIContext, key_hex: str):
    """Show the address controlled by a key."""
    ctx.output({'address': PrivateKey.from_hex(key_hex).address})
