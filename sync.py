#!/usr/bin/env python3
"""
Prepr → Content Engine Sync CLI

Runs the connector against a local file store.

Usage:
    python sync.py                    # Sync changes since the last run
    python sync.py sync --full        # Sync every article
    python sync.py delete <id>        # Delete one node
    python sync.py webhook body.json  # Replay a Prepr webhook body
    python sync.py status             # Show sync status
    python sync.py clean              # Remove local nodes and cache
"""

import json
import sys
import traceback
from typing import Optional

import click
import requests
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prepr_sync import __version__
from prepr_sync.config import Config
from prepr_sync.connector import dispatch, local_dev_options
from prepr_sync.local_host import LocalStore
from prepr_sync.prepr_api import PreprAPI
from prepr_sync.sync_engine import CURSOR_KEY, DELETE_EVENT

console = Console()


def _run(ctx, event: str, webhook_body: Optional[dict] = None) -> None:
    """Load config, dispatch an event to the connector and report errors."""
    load_dotenv()
    debug = ctx.obj.get("debug", False)

    try:
        config = Config.from_env()
        debug = debug or config.debug

        store = LocalStore(config)
        options = local_dev_options(config)
        dispatch(
            event,
            store.host_api(webhook_body),
            options,
            prepr_api=PreprAPI(options["apiToken"], endpoint=config.endpoint),
        )
    except requests.RequestException as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if debug:
            traceback.print_exc()
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        console.print("\n[dim]Make sure you have created a .env file with PREPR_TOKEN.[/dim]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Sync cancelled.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if debug:
            traceback.print_exc()
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Print tracebacks on failure")
@click.pass_context
def cli(ctx, debug: bool):
    """
    Prepr → Content Engine Sync

    Synchronizes Prepr articles into a local Article node store.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    # If no subcommand, sync changes
    if ctx.invoked_subcommand is None:
        ctx.invoke(sync)


@cli.command()
@click.option("--full", is_flag=True, help="Sync every article, ignoring the last sync time")
@click.pass_context
def sync(ctx, full: bool = False):
    """Sync articles from Prepr."""
    if full:
        _run(ctx, "createAllNodes")
    else:
        _run(ctx, "updateNodes", {"event": "content_item.changed"})


@cli.command()
@click.argument("node_id")
@click.pass_context
def delete(ctx, node_id: str):
    """Delete a single Article node."""
    _run(ctx, "updateNodes", {"event": DELETE_EVENT, "payload": {"id": node_id}})


@cli.command()
@click.argument("body_file", type=click.File("r"))
@click.pass_context
def webhook(ctx, body_file):
    """Replay a Prepr webhook body from a JSON file."""
    try:
        body = json.load(body_file)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid webhook body:[/red] {escape(str(e))}")
        sys.exit(1)
    _run(ctx, "updateNodes", body)


@cli.command()
def status():
    """Show current sync status."""
    load_dotenv()

    try:
        config = Config.from_env()
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        sys.exit(1)

    store = LocalStore(config)
    nodes = store.articles.all()

    console.print("\n[bold]Sync Status[/bold]\n")

    if not nodes:
        console.print("[yellow]No articles have been synced yet.[/yellow]")
        console.print("Run 'python sync.py sync --full' to perform initial sync.")
        return

    table = Table(title="Synced Articles")
    table.add_column("Title", style="cyan")
    table.add_column("Slug", style="green")
    table.add_column("Updated", style="yellow")

    for node in sorted(nodes, key=lambda n: n["title"].lower()):
        table.add_row(node["title"], node["slug"], node["updated"])

    console.print(table)

    last_sync = store.cache.get(CURSOR_KEY)
    if last_sync:
        console.print(f"\nLast sync: {last_sync}")


@cli.command()
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
def clean(yes: bool):
    """Remove all synced nodes and reset the sync cursor."""
    load_dotenv()

    try:
        config = Config.from_env()
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        sys.exit(1)

    if not yes and not click.confirm("This will delete all synced nodes and reset state. Continue?"):
        console.print("Aborted.")
        return

    LocalStore(config).clean()
    console.print("[green]Clean complete.[/green]")


@cli.command()
def version():
    """Show version information."""
    console.print(f"Prepr → Content Engine Sync v{__version__}")


if __name__ == "__main__":
    cli(obj={})
