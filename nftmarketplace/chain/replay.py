"""Deterministic replay of a transaction journal onto a fresh chain.

Account and contract addresses, nonces and transaction hashes are all
derived rather than random, so re-executing the journaled transactions in
order must reproduce every transaction hash. Any difference means the
journal and the code that produced it no longer agree.
"""

from __future__ import annotations

import logging

from nftmarketplace.chain.runtime import Chain
from nftmarketplace.config import MarketplaceSettings
from nftmarketplace.contracts import CONTRACT_TYPES, Contract
from nftmarketplace.core.errors import RevertError
from nftmarketplace.core.journal import JournalIntegrityError, TransactionJournal
from nftmarketplace.models.chain import Receipt
from nftmarketplace.models.journal import JournalEntry

logger = logging.getLogger(__name__)


class ReplayDivergenceError(JournalIntegrityError):
    """Raised when a replayed transaction does not match its journal entry."""


def replay(
    journal: TransactionJournal,
    settings: MarketplaceSettings | None = None,
    contract_types: dict[str, type[Contract]] | None = None,
) -> Chain:
    """Rebuild a chain by re-executing every journaled transaction.

    The journal's hash chain is verified first. The returned chain has no
    journal of its own.

    Raises
    ------
    JournalIntegrityError
        If the journal has been tampered with.
    ReplayDivergenceError
        If a replayed transaction reverts or yields a different hash or
        address, for example because the settings changed since it ran.
    """
    journal.verify_chain()
    types = contract_types or CONTRACT_TYPES
    chain = Chain(settings)

    entries = journal.get_entries()
    for entry in entries:
        try:
            receipt = _reexecute(chain, entry, types)
        except RevertError as exc:
            raise ReplayDivergenceError(
                f"Replay diverged at entry {entry.entry_id}: "
                f"{entry.contract}.{entry.method} reverted: {exc}"
            ) from exc

        if receipt.tx_hash != entry.tx_hash:
            raise ReplayDivergenceError(
                f"Replay diverged at entry {entry.entry_id}: "
                f"expected tx {entry.tx_hash}, got {receipt.tx_hash}"
            )

    logger.info("Replayed %d transaction(s) onto a fresh chain.", len(entries))
    return chain


def _reexecute(
    chain: Chain, entry: JournalEntry, types: dict[str, type[Contract]]
) -> Receipt:
    if entry.kind == "deploy":
        contract_cls = types.get(entry.contract)
        if contract_cls is None:
            raise ReplayDivergenceError(f"Unknown contract type {entry.contract!r}")
        contract, receipt = chain.deploy_contract(
            contract_cls, *entry.args, sender=entry.caller
        )
        if contract.address != entry.contract_address:
            raise ReplayDivergenceError(
                f"{entry.contract} redeployed at {contract.address}, "
                f"journal has {entry.contract_address}"
            )
        return receipt
    return chain.transact(
        entry.contract_address,
        entry.method,
        *entry.args,
        sender=entry.caller,
        value=entry.value,
    )


def resume(
    journal: TransactionJournal,
    settings: MarketplaceSettings | None = None,
) -> Chain:
    """Replay ``journal`` and keep journaling new transactions into it."""
    chain = replay(journal, settings)
    chain.journal = journal
    return chain
