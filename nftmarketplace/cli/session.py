"""Journal-backed chain sessions shared by the CLI commands.

A CLI invocation never starts from an empty chain if a journal exists:
the journal is replayed first so new transactions continue from the last
committed state and nonce.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NamedTuple

from nftmarketplace.chain.replay import resume
from nftmarketplace.chain.runtime import Chain
from nftmarketplace.config import MarketplaceSettings, settings as default_settings
from nftmarketplace.core.journal import TransactionJournal
from nftmarketplace.deploy.deployments import Deployments

logger = logging.getLogger(__name__)


class Session(NamedTuple):
    chain: Chain
    deployments: Deployments
    journal: TransactionJournal


def open_session(
    journal_path: Path,
    network: str | None = None,
    settings: MarketplaceSettings | None = None,
) -> Session:
    """Open (or create) the journal at ``journal_path`` and resume its chain."""
    base = settings or default_settings
    if network:
        base = base.model_copy(update={"network": network})

    journal = TransactionJournal(journal_path)
    chain = resume(journal, base)
    deployments = Deployments(chain)
    restored = deployments.load_from_journal(journal)
    logger.debug(
        "Resumed chain at block %d with %d known deployment(s).",
        chain.block_number,
        restored,
    )
    return Session(chain=chain, deployments=deployments, journal=journal)
