"""Named deployments on a chain, hardhat-deploy style.

``Deployments`` records where each named contract was deployed, waits for
the requested number of confirmations, and runs tagged deploy scripts as
fixtures.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from nftmarketplace.chain.handle import ContractHandle
from nftmarketplace.chain.runtime import Chain
from nftmarketplace.contracts import CONTRACT_TYPES
from nftmarketplace.core.journal import TransactionJournal
from nftmarketplace.deploy.registry import select_scripts
from nftmarketplace.models.deployment import DeploymentRecord

logger = logging.getLogger(__name__)

# Named account -> index into chain.accounts
NAMED_ACCOUNTS: dict[str, int] = {
    "deployer": 0,
    "user": 1,
}


class DeploymentError(RuntimeError):
    """Raised when a deployment cannot be performed or found."""


class Deployments:
    """Deployment registry bound to one chain.

    Parameters
    ----------
    chain:
        The chain to deploy on. Its settings supply the network name and
        the default confirmation count.
    """

    def __init__(self, chain: Chain) -> None:
        self.chain = chain
        self.settings = chain.settings
        self._records: dict[str, DeploymentRecord] = {}
        self._executed: list[str] = []

    @property
    def network(self) -> str:
        return self.chain.network

    @property
    def executed_scripts(self) -> list[str]:
        return list(self._executed)

    def get_named_accounts(self) -> dict[str, str]:
        return {
            name: self.chain.accounts[index]
            for name, index in NAMED_ACCOUNTS.items()
            if index < len(self.chain.accounts)
        }

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def deploy(
        self,
        name: str,
        *,
        from_: str,
        args: Sequence[Any] = (),
        log: bool = False,
        wait_confirmations: int = 1,
        contract: str | None = None,
    ) -> DeploymentRecord:
        """Deploy contract ``contract`` (defaults to ``name``) as ``name``.

        An existing deployment with the same name is reused rather than
        redeployed.

        Raises
        ------
        DeploymentError
            If the contract type is unknown or ``wait_confirmations`` < 1.
        """
        if name in self._records:
            if log:
                logger.info('reusing "%s" at %s', name, self._records[name].address)
            return self._records[name]

        contract_name = contract or name
        contract_cls = CONTRACT_TYPES.get(contract_name)
        if contract_cls is None:
            raise DeploymentError(f"Unknown contract {contract_name!r}")
        if wait_confirmations < 1:
            raise DeploymentError("wait_confirmations must be at least 1")

        instance, receipt = self.chain.deploy_contract(
            contract_cls, *args, sender=from_
        )
        confirmations = self.chain.wait_for_confirmations(receipt, wait_confirmations)

        record = DeploymentRecord(
            name=name,
            address=instance.address,
            deployer=from_,
            args=list(args),
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            confirmations=confirmations,
            network=self.network,
        )
        self._records[name] = record
        if log:
            logger.info(
                'deploying "%s" (tx: %s)...: deployed at %s with %d gas',
                name,
                receipt.tx_hash,
                instance.address,
                receipt.gas_used,
            )
        return record

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> DeploymentRecord:
        try:
            return self._records[name]
        except KeyError:
            raise DeploymentError(f"No deployment found for: {name}") from None

    def get_or_none(self, name: str) -> DeploymentRecord | None:
        return self._records.get(name)

    def all(self) -> dict[str, DeploymentRecord]:
        return dict(self._records)

    def get_contract(self, name: str, signer: str | None = None) -> ContractHandle:
        """Handle to a named deployment, bound to ``signer`` (default: deployer)."""
        record = self.get(name)
        return ContractHandle(
            self.chain, record.address, signer or self.get_named_accounts()["deployer"]
        )

    def load_from_journal(self, journal: TransactionJournal) -> int:
        """Register the deployments recorded in a replayed journal.

        Each deployment is named after its contract type. Returns the number
        of records added.
        """
        added = 0
        for entry in journal.get_entries():
            if entry.kind != "deploy" or entry.contract in self._records:
                continue
            receipt = self.chain.get_receipt(entry.tx_hash)
            self._records[entry.contract] = DeploymentRecord(
                name=entry.contract,
                address=entry.contract_address,
                deployer=entry.caller,
                args=entry.args,
                tx_hash=entry.tx_hash,
                block_number=receipt.block_number if receipt else entry.block_number,
                confirmations=self.chain.confirmations(receipt) if receipt else 1,
                network=self.network,
            )
            added += 1
        return added

    # ------------------------------------------------------------------
    # Fixtures
    # ------------------------------------------------------------------

    def fixture(self, tags: list[str] | None = None) -> dict[str, DeploymentRecord]:
        """Run every not-yet-executed deploy script matching ``tags``.

        Returns all deployments known after the run.
        """
        for script in select_scripts(tags):
            if script.script_id in self._executed:
                continue
            logger.debug("Running deploy script %s.", script.script_id)
            script.func(self)
            self._executed.append(script.script_id)
        return self.all()
