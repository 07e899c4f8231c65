"""``nftmarketplace demo`` — list, buy and withdraw on a local chain.

Deploys the contracts if needed, mints a fresh BasicNft token, lists it,
buys it from a second account, withdraws the seller's proceeds and shows
every emitted event along the way.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from nftmarketplace.cli.renderer import MarketRenderer, format_wei
from nftmarketplace.cli.session import open_session
from nftmarketplace.config import settings
from nftmarketplace.core.errors import RevertError
from nftmarketplace.core.journal import JournalIntegrityError
from nftmarketplace.deploy.deployments import DeploymentError

console = Console()


def demo_cmd(
    price_wei: int = typer.Option(
        10**17,
        "--price-wei",
        "-p",
        min=1,
        help="Listing price in wei (default 0.1 ETH).",
    ),
    journal_path: Path = typer.Option(
        settings.journal_path,
        "--journal",
        "-j",
        help="Path to the transaction journal database.",
    ),
) -> None:
    """Run the list -> buy -> withdraw flow and print every step."""
    try:
        session = open_session(journal_path)
    except JournalIntegrityError as exc:
        console.print(f"[bold red]Cannot resume journal:[/bold red] {exc}")
        raise typer.Exit(code=1)
    chain = session.chain
    renderer = MarketRenderer(console=console)

    console.print()
    console.print(
        Panel(
            "[bold]NFT Marketplace Demo[/bold]\n\n"
            "Mint, list, buy and withdraw on the local chain.\n"
            "Every transaction is appended to the journal.",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    try:
        session.deployments.fixture(["all"])
    except (DeploymentError, RevertError) as exc:
        console.print(f"[bold red]Deployment failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    accounts = session.deployments.get_named_accounts()
    deployer, user = accounts["deployer"], accounts["user"]
    marketplace = session.deployments.get_contract("NftMarketplace", deployer)
    basic_nft = session.deployments.get_contract("BasicNft", deployer)

    token_id = basic_nft.get_token_counter()
    seller_balance_before = chain.balance_of(deployer)

    try:
        renderer.print_receipt("mint_nft", basic_nft.mint_nft())
        renderer.print_receipt(
            "approve", basic_nft.approve(marketplace.address, token_id)
        )
        renderer.print_receipt(
            "list_item", marketplace.list_item(basic_nft.address, token_id, price_wei)
        )
        renderer.print_receipt(
            "buy_item",
            marketplace.connect(user).buy_item(basic_nft.address, token_id, value=price_wei),
        )
        proceeds = marketplace.get_proceeds(deployer)
        renderer.print_receipt("withdraw_proceeds", marketplace.withdraw_proceeds())
    except RevertError as exc:
        console.print(f"[bold red]Transaction reverted:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print()
    renderer.print_state(marketplace.contract.state)

    session.journal.verify_chain()
    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Demo complete![/bold green]",
                "",
                f"[bold]Token:[/bold]        #{token_id} now owned by {basic_nft.owner_of(token_id)}",
                f"[bold]Sold for:[/bold]     {format_wei(price_wei)}",
                f"[bold]Withdrawn:[/bold]    {format_wei(proceeds)}",
                f"[bold]Seller delta:[/bold] {format_wei(chain.balance_of(deployer) - seller_balance_before)} (after gas)",
                f"[bold]Journal:[/bold]      {session.journal.count()} entries, chain valid",
            ]),
            title="[bold]Demo Summary[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
