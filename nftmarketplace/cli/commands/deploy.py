"""``nftmarketplace deploy`` — run tagged deploy scripts on the local chain."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from nftmarketplace.cli.renderer import MarketRenderer
from nftmarketplace.cli.session import open_session
from nftmarketplace.config import settings
from nftmarketplace.core.errors import RevertError
from nftmarketplace.core.journal import JournalIntegrityError
from nftmarketplace.deploy.deployments import DeploymentError

console = Console()


def deploy_cmd(
    tags: list[str] = typer.Option(
        ["all"],
        "--tags",
        "-t",
        help="Deploy script tags to run (repeatable).",
    ),
    network: str = typer.Option(
        settings.network,
        "--network",
        "-n",
        help="Network name recorded on the deployments.",
    ),
    journal_path: Path = typer.Option(
        settings.journal_path,
        "--journal",
        "-j",
        help="Path to the transaction journal database.",
    ),
) -> None:
    """Deploy every contract whose script carries one of the given tags.

    Contracts already recorded in the journal are reused, not redeployed.
    """
    try:
        session = open_session(journal_path, network=network)
    except JournalIntegrityError as exc:
        console.print(f"[bold red]Cannot resume journal:[/bold red] {exc}")
        raise typer.Exit(code=1)

    try:
        records = session.deployments.fixture(tags)
    except (DeploymentError, RevertError) as exc:
        console.print(f"[bold red]Deployment failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    if not records:
        console.print(f"[yellow]No deploy scripts match tags {tags}.[/yellow]")
        return

    console.print()
    MarketRenderer(console=console).print_deployments(records)
