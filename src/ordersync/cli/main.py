#!/usr/bin/env python3
"""
Main CLI Entry Point for ordersync

Runs the reconciliation service and provides developer utilities.
"""

import logging
import os
import signal
from datetime import datetime
from pathlib import Path

import click

from ..core.config import Config, get_config
from ..core.currency import milliunits_to_dollars_str
from ..core.errors import MailboxError, StartupError
from ..core.json_utils import format_json
from ..orders.mailbox import parse_raw_email
from ..orders.parser import OrderEmailParser
from ..service import ReconciliationService

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    ordersync - annotate Amazon transactions in YNAB with their order items.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["ORDERSYNC_ENV"] = config_env

    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("ordersync").setLevel(logging.DEBUG)

    try:
        config = get_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = config

    if verbose:
        click.echo(f"Environment: {config.environment.value}")
        click.echo(f"Mailbox: {config.email.username or '(not configured)'}@{config.email.imap_server}")

    if debug:
        click.echo("Debug logging enabled")


def _start_service(config: Config) -> ReconciliationService:
    service = ReconciliationService.from_config(config)
    try:
        service.startup()
    except StartupError as e:
        logger.error(f"❌ Startup failed: {e}")
        click.echo(f"❌ Startup failed: {e}", err=True)
        raise click.ClickException(str(e)) from e
    return service


@main.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Backfill recent orders, then watch the mailbox until interrupted."""
    config = ctx.obj["config"]
    service = _start_service(config)

    def handle_signal(signum, frame):
        service.request_stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        service.backfill()
        service.run_forever()
    except MailboxError as e:
        click.echo(f"❌ Mailbox error: {e}", err=True)
        raise click.ClickException(str(e)) from e
    finally:
        service.shutdown()


@main.command()
@click.option("--num-emails", type=int, help="Number of recent emails to scan")
@click.pass_context
def backfill(ctx: click.Context, num_emails: int | None) -> None:
    """Run one reconciliation pass over recent mail and exit."""
    config = ctx.obj["config"]
    service = _start_service(config)

    try:
        added = service.backfill(num_emails)
    except MailboxError as e:
        click.echo(f"❌ Mailbox error: {e}", err=True)
        raise click.ClickException(str(e)) from e
    finally:
        service.shutdown()

    click.echo(f"✅ Backfill complete: {added} order(s) found")
    click.echo(service.status_line())


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the order as JSON")
@click.pass_context
def parse(ctx: click.Context, path: Path, as_json: bool) -> None:
    """Extract an order from a saved .eml or .html file."""
    config = ctx.obj["config"]
    parser = OrderEmailParser.from_config(config)

    if path.suffix.lower() == ".eml":
        order_email = parse_raw_email(path.read_bytes(), path.name)
        if not parser.is_order_email(order_email.subject, order_email.sender):
            click.echo(f"⚠️ Not an order confirmation subject: {order_email.subject!r}", err=True)
        order = parser.parse_body(order_email.body, order_email.date, order_email.message_id)
    else:
        order = parser.parse_body(path.read_text(errors="ignore"), datetime.now(), path.name)

    if order is None:
        raise click.ClickException(f"No order found in {path}")

    if as_json:
        click.echo(format_json(order.to_dict()))
        return

    click.echo(f"Date:   {order.date}")
    click.echo(f"Amount: {milliunits_to_dollars_str(order.amount)}")
    click.echo("Items:")
    for item in order.items:
        click.echo(f"  - {item}")


@main.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from ordersync import __author__, __version__

    click.echo(f"ordersync v{__version__}")
    click.echo(f"Author: {__author__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    click.echo(format_json(ctx.obj["config"].to_dict()))


if __name__ == "__main__":
    main()
