"""Runtime configuration — env-driven, network-aware.

Centralized settings using pydantic-settings for environment variable
support. Reads from a .env file and NFTMARKET_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class MarketplaceSettings(BaseSettings):
    """Marketplace settings with environment variable overrides.

    All settings can be overridden via NFTMARKET_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export NFTMARKET_NETWORK=localhost
        export NFTMARKET_BLOCK_CONFIRMATIONS=6
        export NFTMARKET_JOURNAL_PATH=/data/journal.db

    Or via .env file::

        NFTMARKET_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NFTMARKET_",
        env_file_encoding="utf-8",
    )

    # Logging
    log_level: str = "INFO"

    # Network
    network: str = "hardhat"
    development_chains: list[str] = ["hardhat", "localhost"]
    block_confirmations: int = 1

    # Local chain
    accounts: int = 10
    initial_balance_wei: int = 10_000 * 10**18
    gas_price_wei: int = 1_000_000_000  # 1 gwei
    gas_per_tx: int = 21_000

    # Storage
    journal_path: Path = Path(".nftmarketplace/journal.db")

    @property
    def is_development_chain(self) -> bool:
        """Whether the configured network is a local development chain."""
        return self.network in self.development_chains


# Module-level singleton: import as `from nftmarketplace.config import settings`
settings = MarketplaceSettings()
