"""`sportsbook` command: global options, logging setup and subcommand wiring."""

from pathlib import Path

import typer

from sportsbook import __version__
from sportsbook.config import get_settings
from sportsbook.config.settings import configure_logging

app = typer.Typer(
    name="sportsbook",
    help="Sportsbook back-office: events and odds, bet slips, settlement, customer balances, reports.",
    no_args_is_help=True,
)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"sportsbook {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Directory holding default.toml and profile overlays"
    ),
    profile: str | None = typer.Option(None, "--profile", "-p", help="Profile overlay, e.g. dev -> dev.toml"),
    db: Path | None = typer.Option(None, "--db", help="Ledger database file (overrides storage.db_path)"),
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Load settings for the chosen profile and share them with subcommands via ctx.obj."""
    settings = get_settings(profile, config_dir)
    if db is not None:
        settings = settings.with_db_path(db)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


from sportsbook.cli import api_cmd, bets, customers, events, report  # noqa: E402

for _name, _module in (
    ("events", events),
    ("customers", customers),
    ("bets", bets),
    ("report", report),
    ("api", api_cmd),
):
    app.add_typer(_module.app, name=_name)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
