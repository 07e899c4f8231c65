"""``nftmarketplace journal`` / ``verify`` / ``state`` — inspect the journal."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from nftmarketplace.chain.replay import replay
from nftmarketplace.cli.renderer import MarketRenderer
from nftmarketplace.config import settings
from nftmarketplace.contracts import NftMarketplace
from nftmarketplace.core.journal import JournalIntegrityError, TransactionJournal

console = Console()


def _journal_option() -> Path:
    return typer.Option(
        settings.journal_path,
        "--journal",
        "-j",
        help="Path to the transaction journal database.",
    )


def _open_existing(journal_path: Path) -> TransactionJournal:
    if not journal_path.exists():
        console.print(f"[bold red]Journal not found:[/bold red] {journal_path}")
        raise typer.Exit(code=1)
    return TransactionJournal(journal_path)


def journal_cmd(
    journal_path: Path = _journal_option(),
    limit: int = typer.Option(
        50, "--limit", "-n", min=1, help="Show at most this many latest entries."
    ),
) -> None:
    """Print the most recent journaled transactions."""
    journal = _open_existing(journal_path)
    entries = journal.get_entries()
    if not entries:
        console.print("[dim]Journal is empty.[/dim]")
        return
    MarketRenderer(console=console).print_journal(entries[-limit:])


def verify_cmd(
    journal_path: Path = _journal_option(),
    replay_check: bool = typer.Option(
        True,
        "--replay/--no-replay",
        help="Also re-execute the journal on a fresh chain.",
    ),
) -> None:
    """Verify the journal's hash chain and, optionally, its replay."""
    journal = _open_existing(journal_path)
    renderer = MarketRenderer(console=console)
    try:
        journal.verify_chain()
        if replay_check:
            replay(journal)
    except JournalIntegrityError as exc:
        renderer.print_verification(False, str(exc))
        raise typer.Exit(code=1)
    renderer.print_verification(True)
    if replay_check:
        console.print(f"[green]Replayed {journal.count()} transaction(s) identically.[/green]")


def state_cmd(journal_path: Path = _journal_option()) -> None:
    """Replay the journal and print every marketplace's listings and proceeds."""
    journal = _open_existing(journal_path)
    try:
        chain = replay(journal)
    except JournalIntegrityError as exc:
        console.print(f"[bold red]Cannot replay journal:[/bold red] {exc}")
        raise typer.Exit(code=1)

    renderer = MarketRenderer(console=console)
    marketplaces = [
        contract for contract in chain.contracts.values()
        if isinstance(contract, NftMarketplace)
    ]
    if not marketplaces:
        console.print("[dim]No marketplace deployed.[/dim]")
        return
    for marketplace in marketplaces:
        console.print(f"\n[bold]NftMarketplace[/bold] at [green]{marketplace.address}[/green]")
        renderer.print_state(marketplace.state)
