#!/usr/bin/env python3
"""
Selas CLI

Manage Selas customers from the command line.

Usage:
    selas create-customer ID               - Create a customer with 0 credits
    selas credits ID                       - Show the credits of a customer
    selas change-credits ID DELTA          - Add (or remove) credits
    selas create-token ID [--quota --ttl]  - Issue a token for a customer
    selas delete-customer ID               - Delete a customer

Credentials are read from SELAS_EMAIL / SELAS_PASSWORD or
SELAS_APP_ID / SELAS_KEY / SELAS_SECRET.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable

import click
import httpx

from .client import SelasClient, create_selas_client
from .config import configure_from_env
from .types import Credentials, PasswordCredentials, Result, ServiceCredentials


class Colors:
    RESET = "\x1b[0m"
    GREEN = "\x1b[32m"
    RED = "\x1b[31m"
    CYAN = "\x1b[36m"


def print_error(message: str, error: Exception | None = None) -> None:
    """Print error message."""
    click.echo(f"{Colors.RED}Error:{Colors.RESET} {message}", err=True)
    if error and str(error):
        click.echo(str(error), err=True)


def print_success(message: str) -> None:
    """Print success message."""
    click.echo(f"{Colors.GREEN}[ok]{Colors.RESET} {message}")


def print_info(message: str) -> None:
    """Print info message."""
    click.echo(f"{Colors.CYAN}[i]{Colors.RESET} {message}")


def run_async(coro: Any) -> Any:
    """Run an async function synchronously."""
    return asyncio.run(coro)


def resolve_credentials(
    email: str | None,
    password: str | None,
    app_id: str | None,
    key: str | None,
    secret: str | None,
) -> Credentials:
    """Pick the credential variant from the given options."""
    if app_id and key and secret:
        return ServiceCredentials(app_id=app_id, key=key, secret=secret)
    if email and password:
        return PasswordCredentials(email=email, password=password)
    raise click.UsageError(
        "Provide either --email/--password or --app-id/--key/--secret "
        "(or the matching SELAS_* environment variables)."
    )


def _execute(
    ctx: click.Context,
    operation: Callable[[SelasClient], Awaitable[Result[Any]]],
) -> Result[Any]:
    credentials = resolve_credentials(**ctx.obj)

    async def runner() -> Result[Any]:
        async with await create_selas_client(credentials) as client:
            return await operation(client)

    try:
        result = run_async(runner())
    except httpx.HTTPError as e:
        print_error("Request to the Selas backend failed", e)
        sys.exit(1)

    if not result.ok:
        print_error(result.error or "unknown error")
        sys.exit(1)
    return result


@click.group()
@click.option("--email", envvar="SELAS_EMAIL", help="Account email")
@click.option("--password", envvar="SELAS_PASSWORD", help="Account password")
@click.option("--app-id", envvar="SELAS_APP_ID", help="Application id")
@click.option("--key", envvar="SELAS_KEY", help="Application key")
@click.option("--secret", envvar="SELAS_SECRET", help="Application secret")
@click.option("--debug", is_flag=True, help="Show debug information")
@click.pass_context
def cli(
    ctx: click.Context,
    email: str | None,
    password: str | None,
    app_id: str | None,
    key: str | None,
    secret: str | None,
    debug: bool,
) -> None:
    """
    Selas CLI - manage customers, credits and tokens.
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    configure_from_env()
    ctx.ensure_object(dict)
    ctx.obj.update(email=email, password=password, app_id=app_id, key=key, secret=secret)


@cli.command("create-customer")
@click.argument("customer_id")
@click.pass_context
def create_customer(ctx: click.Context, customer_id: str) -> None:
    """Create a customer with 0 credits."""
    result = _execute(ctx, lambda client: client.create_customer(customer_id))
    print_success(f"Customer {result.data.external_id} created with {result.data.credits} credits")


@cli.command()
@click.argument("customer_id")
@click.pass_context
def credits(ctx: click.Context, customer_id: str) -> None:
    """Show the credits of a customer."""
    result = _execute(ctx, lambda client: client.get_customer_credits(customer_id))
    click.echo(result.data)


@cli.command("change-credits")
@click.argument("customer_id")
@click.argument("delta", type=int)
@click.pass_context
def change_credits(ctx: click.Context, customer_id: str, delta: int) -> None:
    """Add DELTA credits to a customer.

    Use a negative DELTA after "--" to remove credits.
    """
    result = _execute(ctx, lambda client: client.change_credits(customer_id, delta))
    print_success(f"Customer {customer_id} now has {result.data} credits")


@cli.command("create-token")
@click.argument("customer_id")
@click.option("--quota", type=int, default=1, show_default=True, help="Credits the token may spend")
@click.option("--ttl", type=int, default=60, show_default=True, help="Lifetime in seconds")
@click.option("--description", default="", help="Note stored with the token")
@click.pass_context
def create_token(
    ctx: click.Context,
    customer_id: str,
    quota: int,
    ttl: int,
    description: str,
) -> None:
    """Issue a token for a customer and print its key."""
    result = _execute(
        ctx,
        lambda client: client.create_token(customer_id, quota=quota, ttl=ttl, description=description),
    )
    if result.message:
        print_info(result.message)
    click.echo(result.data.key)


@cli.command("delete-customer")
@click.argument("customer_id")
@click.pass_context
def delete_customer(ctx: click.Context, customer_id: str) -> None:
    """Delete a customer."""
    result = _execute(ctx, lambda client: client.delete_customer(customer_id))
    print_success(f"Customer {customer_id} deleted with {result.data} credits left")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
