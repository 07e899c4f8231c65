"""Rich terminal rendering for deployments, receipts, state and journal."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from nftmarketplace.core.state import MarketplaceState
    from nftmarketplace.models.chain import Receipt
    from nftmarketplace.models.deployment import DeploymentRecord
    from nftmarketplace.models.journal import JournalEntry

WEI_PER_ETH = Decimal(10**18)

# Fields every event carries; everything else is event-specific.
_EVENT_BASE_FIELDS = {"event_name", "address", "block_number", "tx_hash", "log_index"}


def format_wei(amount: int) -> str:
    """Render a wei amount as ETH, e.g. ``0.1 ETH``."""
    eth = Decimal(amount) / WEI_PER_ETH
    return f"{eth.normalize():f} ETH"


def short(value: str, width: int = 10) -> str:
    """Abbreviate an address or hash for table display."""
    if len(value) <= width + 4:
        return value
    return f"{value[:width]}…{value[-4:]}"


class MarketRenderer:
    """Renders marketplace objects as Rich tables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_deployments(self, records: dict[str, DeploymentRecord]) -> None:
        table = Table(title="Deployments")
        table.add_column("Name", style="cyan")
        table.add_column("Address", style="green")
        table.add_column("Deployer")
        table.add_column("Block", justify="right")
        table.add_column("Confirmations", justify="right")
        table.add_column("Network")
        for record in records.values():
            table.add_row(
                record.name,
                record.address,
                short(record.deployer),
                str(record.block_number),
                str(record.confirmations),
                record.network,
            )
        self.console.print(table)

    def print_receipt(self, label: str, receipt: Receipt) -> None:
        self.console.print(
            f"[cyan]>>>[/cyan] [bold]{label}[/bold] "
            f"[dim](block {receipt.block_number}, tx {short(receipt.tx_hash, 14)})[/dim]"
        )
        for log in receipt.logs:
            details = ", ".join(
                f"{key}={short(value) if isinstance(value, str) else value}"
                for key, value in log.model_dump().items()
                if key not in _EVENT_BASE_FIELDS
            )
            self.console.print(f"    [magenta]{log.event_name}[/magenta]({details})")

    def print_state(self, state: MarketplaceState) -> None:
        listings = Table(title="Active Listings")
        listings.add_column("NFT", style="cyan")
        listings.add_column("Token", justify="right")
        listings.add_column("Price", justify="right", style="green")
        listings.add_column("Seller")
        for (nft_address, token_id), listing in state.active_listings().items():
            listings.add_row(
                short(nft_address),
                str(token_id),
                format_wei(listing.price),
                short(listing.seller),
            )
        self.console.print(listings)

        proceeds = Table(title="Proceeds")
        proceeds.add_column("Seller", style="cyan")
        proceeds.add_column("Balance", justify="right", style="green")
        for seller, amount in state.to_dict()["proceeds"].items():
            proceeds.add_row(seller, format_wei(amount))
        self.console.print(proceeds)

    def print_journal(self, entries: list[JournalEntry]) -> None:
        table = Table(title="Transaction Journal")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Block", justify="right")
        table.add_column("Contract", style="cyan")
        table.add_column("Method", style="bold")
        table.add_column("Caller")
        table.add_column("Value", justify="right")
        table.add_column("Events")
        table.add_column("Entry Hash", style="dim")
        for i, entry in enumerate(entries, start=1):
            table.add_row(
                str(i),
                str(entry.block_number),
                entry.contract,
                entry.method,
                short(entry.caller),
                format_wei(entry.value) if entry.value else "-",
                ", ".join(event["event_name"] for event in entry.events) or "-",
                short(entry.entry_hash, 12),
            )
        self.console.print(table)

    def print_verification(self, valid: bool, detail: str = "") -> None:
        if valid:
            self.console.print("[bold green]Journal hash chain: VALID[/bold green]")
        else:
            self.console.print(f"[bold red]Journal hash chain: BROKEN[/bold red] {detail}")
