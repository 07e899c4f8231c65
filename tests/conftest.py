"""Shared test fixtures for nftmarketplace."""

from __future__ import annotations

from pathlib import Path

import pytest

from nftmarketplace.chain.handle import ContractHandle
from nftmarketplace.chain.runtime import Chain
from nftmarketplace.config import MarketplaceSettings
from nftmarketplace.core.journal import TransactionJournal
from nftmarketplace.deploy.deployments import Deployments

TOKEN_ID = 0


@pytest.fixture
def local_settings(tmp_path: Path) -> MarketplaceSettings:
    """Settings isolated from the developer's environment and .env file."""
    return MarketplaceSettings(_env_file=None, journal_path=tmp_path / "journal.db")


@pytest.fixture
def journal(tmp_path: Path) -> TransactionJournal:
    """Provide a fresh TransactionJournal backed by a temp SQLite database."""
    return TransactionJournal(tmp_path / "test_journal.db")


@pytest.fixture
def chain(local_settings: MarketplaceSettings) -> Chain:
    """Provide a fresh, unjournaled local chain."""
    return Chain(local_settings)


@pytest.fixture
def deployments(chain: Chain) -> Deployments:
    """Provide a Deployments registry with every "all"-tagged script run."""
    deployments = Deployments(chain)
    deployments.fixture(["all"])
    return deployments


@pytest.fixture
def deployer(deployments: Deployments) -> str:
    return deployments.get_named_accounts()["deployer"]


@pytest.fixture
def user(deployments: Deployments) -> str:
    return deployments.get_named_accounts()["user"]


@pytest.fixture
def marketplace(deployments: Deployments, deployer: str) -> ContractHandle:
    """The deployed NftMarketplace, connected as the deployer."""
    return deployments.get_contract("NftMarketplace", deployer)


@pytest.fixture
def basic_nft(
    deployments: Deployments, deployer: str, marketplace: ContractHandle
) -> ContractHandle:
    """BasicNft with token 0 minted to the deployer and approved for the marketplace."""
    nft = deployments.get_contract("BasicNft", deployer)
    nft.mint_nft()
    nft.approve(marketplace.address, TOKEN_ID)
    return nft
