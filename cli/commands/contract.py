#!/usr/bin/env python3
"""
Contract Commands for the mintreg CLI

Initialize the collection, mint tokens, administer the sale and query
contract state. Mutating commands sign the invocation with the given key
and submit it to the contract stored in the configured data directory.
"""

from typing import Any

import click

from crypto.keys import PrivateKey
from minter.auth import new_nonce, sign_invocation
from minter.environment import ContractEnvironment

from ..context import CLIContext, handle_cli_error, pass_context, result_dict


key_option = click.option(
    '--key', 'key_hex', envvar='MINTREG_PRIVATE_KEY', required=True,
    help='Signing private key (hex); defaults to $MINTREG_PRIVATE_KEY'
)


def signed_invoke(env: ContractEnvironment, key: PrivateKey, function: str, *args: Any) -> Any:
    """Sign ``function(*args)`` with ``key`` under a fresh nonce and run it."""
    nonce = new_nonce()
    authorization = sign_invocation(key, env.new_invocation(function, *args, nonce=nonce))
    return env.invoke(function, *args, authorizations=[authorization], nonce=nonce)


@click.group()
def contract():
    """
    Collection contract commands.

    Examples:
        mintreg contract init --key <owner-key>
        mintreg contract flip-sale --key <owner-key>
        mintreg contract mint --key <buyer-key> -n 3
        mintreg contract token-uri 7
    """


@contract.command('init')
@key_option
@pass_context
@handle_cli_error
def init(ctx: CLIContext, key_hex: str):
    """Initialize the contract with the key's address as owner."""
    key = PrivateKey.from_hex(key_hex)
    reserved = signed_invoke(ctx.environment(), key, 'init', key.address)
    ctx.output(result_dict(owner=key.address, reserved_tokens=reserved))


@contract.command('mint')
@key_option
@click.option('--count', '-n', 'num_tokens', type=int, required=True,
              help='Number of tokens to mint')
@pass_context
@handle_cli_error
def mint(ctx: CLIContext, key_hex: str, num_tokens: int):
    """Mint tokens to the key's address."""
    key = PrivateKey.from_hex(key_hex)
    token_ids = signed_invoke(ctx.environment(), key, 'mint', key.address, num_tokens)
    ctx.output(result_dict(recipient=key.address, token_ids=token_ids))


@contract.command('flip-sale')
@key_option
@pass_context
@handle_cli_error
def flip_sale(ctx: CLIContext, key_hex: str):
    """Pause or resume the public sale (owner only)."""
    key = PrivateKey.from_hex(key_hex)
    active = signed_invoke(ctx.environment(), key, 'flip_sale_state', key.address)
    ctx.output(result_dict(sale_active=active))


@contract.command('set-price')
@key_option
@click.argument('price', type=int)
@pass_context
@handle_cli_error
def set_price(ctx: CLIContext, key_hex: str, price: int):
    """Set the token price (owner only)."""
    signed_invoke(ctx.environment(), PrivateKey.from_hex(key_hex), 'set_price', price)
    ctx.output(result_dict(price=price))


@contract.command('set-base-uri')
@key_option
@click.argument('base_uri')
@pass_context
@handle_cli_error
def set_base_uri(ctx: CLIContext, key_hex: str, base_uri: str):
    """Set the metadata base URI (owner only)."""
    signed_invoke(ctx.environment(), PrivateKey.from_hex(key_hex), 'set_base_uri', base_uri)
    ctx.output(result_dict(base_uri=base_uri))


@contract.command('set-base-extension')
@key_option
@click.argument('base_extension')
@pass_context
@handle_cli_error
def set_base_extension(ctx: CLIContext, key_hex: str, base_extension: str):
    """Set the metadata file extension (owner only)."""
    signed_invoke(ctx.environment(), PrivateKey.from_hex(key_hex), 'set_base_extension', base_extension)
    ctx.output(result_dict(base_extension=base_extension))


@contract.command('info')
@pass_context
@handle_cli_error
def info(ctx: CLIContext):
    """Show contract state."""
    ctx.output(ctx.environment().query('info').to_dict())


@contract.command('owner-of')
@click.argument('token_id', type=int)
@pass_context
@handle_cli_error
def owner_of(ctx: CLIContext, token_id: int):
    """Show the owner of a token."""
    ctx.output(result_dict(token_id=token_id, owner=ctx.environment().query('owner_of', token_id)))


@contract.command('token-uri')
@click.argument('token_id', type=int)
@pass_context
@handle_cli_error
def token_uri(ctx: CLIContext, token_id: int):
    """Show the metadata URI of a token."""
    ctx.output(result_dict(token_id=token_id, uri=ctx.environment().query('token_uri', token_id)))


@contract.command('wallet')
@click.argument('address')
@pass_context
@handle_cli_error
def wallet(ctx: CLIContext, address: str):
    """Show mint count and owned tokens for an address."""
    env = ctx.environment()
    ctx.output({
        'address': address,
        'minted': env.query('minted_by', address),
        'tokens': env.query('tokens_of', address),
    })
