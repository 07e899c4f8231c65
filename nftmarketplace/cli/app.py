"""Main Typer application — imports and registers all CLI commands.

Entry point: ``nftmarketplace`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from nftmarketplace.cli.commands.demo import demo_cmd
from nftmarketplace.cli.commands.deploy import deploy_cmd
from nftmarketplace.cli.commands.journal import journal_cmd, state_cmd, verify_cmd
from nftmarketplace.config import settings

app = typer.Typer(
    name="nftmarketplace",
    help="NFT marketplace on a local, journaled chain.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def configure(
    log_level: str = typer.Option(
        settings.log_level, "--log-level", help="Logging level (DEBUG, INFO, ...)."
    ),
) -> None:
    """Configure logging for every subcommand."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="deploy", help="Run tagged deploy scripts on the local chain.")(deploy_cmd)
app.command(name="demo", help="Mint, list, buy and withdraw end to end.")(demo_cmd)
app.command(name="journal", help="Show journaled transactions.")(journal_cmd)
app.command(name="verify", help="Verify the journal hash chain and replay.")(verify_cmd)
app.command(name="state", help="Show listings and proceeds rebuilt from the journal.")(state_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
