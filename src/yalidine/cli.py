"""
Yalidine CLI
Command-line access to the delivery API for quick checks.
"""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

import click
from rich.console import Console
from rich.table import Table

from yalidine.client import Yalidine
from yalidine.errors import YalidineError

T = TypeVar("T")

console = Console()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run_with_session(ctx: click.Context, action: Callable[[Yalidine], Awaitable[T]]) -> T:
    """Create a session from the group options, run action, always destroy."""

    async def runner() -> T:
        session = Yalidine(
            agent=ctx.obj["agent"],
            api_id=ctx.obj["api_id"],
            api_token=ctx.obj["api_token"],
            debug=ctx.obj["debug"],
        )
        try:
            return await action(session)
        finally:
            await session.destroy()

    return asyncio.run(runner())


@click.group()
@click.option("--agent", "-a", envvar="YALIDINE_AGENT", default="yalidine",
              type=click.Choice(["yalidine", "goupex"]), help="Delivery agent")
@click.option("--api-id", envvar="YALIDINE_API_ID", help="API ID")
@click.option("--api-token", envvar="YALIDINE_API_TOKEN", help="API token")
@click.option("--debug", is_flag=True, help="Log requests and responses")
@click.pass_context
def cli(ctx, agent: str, api_id: Optional[str], api_token: Optional[str], debug: bool):
    """Yalidine / Guepex delivery API client."""
    configure_logging("DEBUG" if debug else "WARNING")
    ctx.ensure_object(dict)
    ctx.obj["agent"] = agent
    ctx.obj["api_id"] = api_id
    ctx.obj["api_token"] = api_token
    ctx.obj["debug"] = debug


@cli.command()
@click.pass_context
def ping(ctx):
    """Check that the API is reachable with these credentials."""
    try:
        ok = run_with_session(ctx, lambda s: s.test_connection())
    except YalidineError as e:
        console.print(f"❌ [red]{e}[/red]")
        sys.exit(1)

    if ok:
        console.print("✅ [green]Connection successful[/green]")
    else:
        console.print("❌ [red]Connection failed[/red]")
        sys.exit(1)


@cli.command()
@click.pass_context
def quota(ctx):
    """Show the remaining request quota per window."""

    async def probe(session: Yalidine) -> dict[str, Any]:
        await session.get("/wilayas?page_size=1")
        return session.get_quota_status().to_dict()

    try:
        status = run_with_session(ctx, probe)
    except YalidineError as e:
        console.print(f"❌ [red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"Quota ({ctx.obj['agent']})")
    table.add_column("Window", style="cyan")
    table.add_column("Remaining", justify="right")

    for window in ("second", "minute", "hour", "day"):
        left = status[f"{window}_quota_left"]
        color = "green" if left > 0 else "red"
        table.add_row(window, f"[{color}]{left}[/{color}]")

    console.print(table)
    console.print(f"[dim]Updated {status['last_update']}[/dim]")


@cli.command()
@click.argument("tracking")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def parcel(ctx, tracking: str, as_json: bool):
    """Show one parcel."""
    try:
        data = run_with_session(ctx, lambda s: s.parcels.find(tracking))
    except YalidineError as e:
        console.print(f"❌ [red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        console.print(json.dumps(data, indent=2, ensure_ascii=False))
        return

    table = Table(title=f"Parcel {tracking}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field in ("order_id", "last_status", "date_last_status", "firstname",
                  "familyname", "to_commune_name", "to_wilaya_name", "price"):
        table.add_row(field, str(data.get(field, "-")))
    console.print(table)


@cli.command()
@click.argument("tracking")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def history(ctx, tracking: str, as_json: bool):
    """Show the status timeline of a parcel."""
    try:
        timeline = run_with_session(ctx, lambda s: s.histories.get_timeline(tracking))
    except YalidineError as e:
        console.print(f"❌ [red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        console.print(json.dumps(timeline, indent=2, ensure_ascii=False))
        return

    table = Table(title=f"History of {tracking}")
    table.add_column("Date", style="dim")
    table.add_column("Status", style="cyan")
    table.add_column("Center")
    table.add_column("Reason")
    for entry in timeline:
        table.add_row(
            str(entry.get("date_status", "")),
            str(entry.get("status", "")),
            str(entry.get("center_name") or "-"),
            str(entry.get("reason") or "-"),
        )
    console.print(table)


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
