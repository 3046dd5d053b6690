"""Typer CLI for HealthConsultant."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="healthconsultant", help="HealthConsultant: usage metering and plan entitlements")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the HealthConsultant API server."""
    import uvicorn
    from healthconsultant.app import create_app

    console.print(f"[bold green]Starting HealthConsultant on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("seed-plans")
def seed_plans():
    """Create the default Free/Basic/Premium plans if missing."""
    from healthconsultant.deps import get_db, get_plan_catalog

    async def _run():
        db = get_db()
        await db.init()
        await db.create_all()
        try:
            async with db.get_session() as session:
                created = await get_plan_catalog().seed_defaults(session)
                return [p.title for p in created]
        finally:
            await db.close()

    created = asyncio.run(_run())
    if created:
        console.print(f"[bold green]Created plans:[/bold green] {', '.join(created)}")
    else:
        console.print("All default plans already exist")


@app.command("usage-stats")
def usage_stats(
    start: Optional[str] = typer.Option(None, help="First day, YYYY-MM-DD"),
    end: Optional[str] = typer.Option(None, help="Last day, YYYY-MM-DD"),
):
    """Print global usage totals and the per-day series."""
    from healthconsultant.common.exceptions import ValidationError
    from healthconsultant.deps import get_db, get_usage_ledger
    from healthconsultant.usage.periods import parse_day

    try:
        start_day, end_day = parse_day(start), parse_day(end)
    except ValidationError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(1)

    async def _run():
        db = get_db()
        await db.init()
        try:
            async with db.get_session() as session:
                return await get_usage_ledger().global_stats(session, start_day, end_day)
        finally:
            await db.close()

    stats = asyncio.run(_run())
    console.print(
        f"[bold]{stats['total_interactions']}[/bold] interactions, "
        f"[bold]{stats['total_prompts']}[/bold] prompts, "
        f"[bold]{stats['unique_users']}[/bold] users"
    )
    table = Table("Date", "Interactions", "Prompts", "Users")
    for point in stats["chart_data"]:
        table.add_row(
            point["date"].isoformat(),
            str(point["interactions"]),
            str(point["prompts"]),
            str(point["unique_users"]),
        )
    console.print(table)


@app.command("issue-token")
def issue_token(
    email: str = typer.Argument(..., help="Identity email"),
    user_id: Optional[str] = typer.Option(None, help="Account id to embed"),
    admin: bool = typer.Option(False, help="Grant admin privilege"),
):
    """Sign a session token with HC_SECRET_KEY (development and support use)."""
    from healthconsultant.common.security import issue_session_token

    console.print(issue_session_token(email, user_id=user_id, is_admin=admin), soft_wrap=True)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check HealthConsultant server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
