"""Local chain runtime — caller identity, balances and atomic transactions.

The runtime plays the part of the blockchain virtual machine the
marketplace was written for:

- Funded externally owned accounts with deterministic addresses.
- Contract deployment at addresses derived from deployer + nonce.
- ``transact()`` runs one transaction atomically. Every contract's
  ``state`` and every balance is snapshotted first; any exception restores
  the snapshot and is re-raised unchanged. A reverted transaction is not
  mined, consumes no nonce and costs no gas.
- Nested contract calls get their own frame (``msg_sender`` is the calling
  contract) and their own snapshot, so a revert caught by the caller
  discards only the callee's effects and logs.
- Committed transactions are mined one per block, charged a flat gas fee,
  journaled, and their logs published on the event bus.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, NamedTuple

from nftmarketplace.config import MarketplaceSettings, settings as default_settings
from nftmarketplace.contracts.base import PAYABLE, VIEW, mutability_of
from nftmarketplace.core.errors import RevertError
from nftmarketplace.core.event_bus import EventBus
from nftmarketplace.core.hasher import account_address, compute_tx_hash, contract_address
from nftmarketplace.models.chain import ZERO_ADDRESS, Receipt
from nftmarketplace.models.events import ContractEvent
from nftmarketplace.models.journal import JournalEntry

if TYPE_CHECKING:
    from nftmarketplace.contracts.base import Contract
    from nftmarketplace.core.journal import TransactionJournal

logger = logging.getLogger(__name__)


class Frame(NamedTuple):
    """One level of the call stack."""

    sender: str
    value: int
    address: str


class _Snapshot(NamedTuple):
    states: dict[str, Any]
    balances: dict[str, int]
    log_count: int


class Chain:
    """An in-process, single-threaded chain.

    Parameters
    ----------
    settings:
        Source of account count, starting balances, gas price and network
        name. Defaults to the module-level settings.
    journal:
        Optional journal that receives one entry per committed transaction.
    event_bus:
        Bus that committed logs are published on. A new one is created if
        not provided.
    """

    def __init__(
        self,
        settings: MarketplaceSettings | None = None,
        *,
        journal: TransactionJournal | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.network = self.settings.network
        self.journal = journal
        self.event_bus = event_bus or EventBus()
        self.gas_price = self.settings.gas_price_wei
        self.gas_per_tx = self.settings.gas_per_tx

        self.accounts: list[str] = [
            account_address(i) for i in range(self.settings.accounts)
        ]
        self._balances: dict[str, int] = {
            account: self.settings.initial_balance_wei for account in self.accounts
        }
        self._nonces: dict[str, int] = {}
        self._contracts: dict[str, Contract] = {}
        self._frames: list[Frame] = []
        self._logs: list[ContractEvent] = []
        self._receipts: dict[str, Receipt] = {}
        self.block_number = 0

    # ------------------------------------------------------------------
    # Accounts & contracts
    # ------------------------------------------------------------------

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def get_nonce(self, address: str) -> int:
        return self._nonces.get(address, 0)

    def is_contract(self, address: str) -> bool:
        return address in self._contracts

    def get_contract(self, address: str) -> Contract:
        try:
            return self._contracts[address]
        except KeyError:
            raise RevertError(f"no contract at {address}") from None

    @property
    def contracts(self) -> dict[str, Contract]:
        return dict(self._contracts)

    @property
    def tx_cost(self) -> int:
        """Fee charged to the sender of every committed transaction."""
        return self.gas_per_tx * self.gas_price

    # ------------------------------------------------------------------
    # Call context
    # ------------------------------------------------------------------

    @property
    def msg_sender(self) -> str:
        if not self._frames:
            raise RuntimeError("msg_sender is only defined inside a call")
        return self._frames[-1].sender

    @property
    def msg_value(self) -> int:
        if not self._frames:
            raise RuntimeError("msg_value is only defined inside a call")
        return self._frames[-1].value

    @property
    def in_call(self) -> bool:
        return bool(self._frames)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def deploy_contract(
        self, contract_cls: type[Contract], *args: Any, sender: str
    ) -> tuple[Contract, Receipt]:
        """Create a contract from ``sender`` and run its constructor."""
        self._require_top_level()
        self._require_funds(sender, 0)
        address = contract_address(sender, self.get_nonce(sender))

        snapshot = self._snapshot()
        contract = contract_cls(self, address)
        self._contracts[address] = contract
        try:
            self._frames.append(Frame(sender=sender, value=0, address=address))
            try:
                contract.constructor(*args)
            finally:
                self._frames.pop()
        except Exception as exc:
            del self._contracts[address]
            self._restore(snapshot)
            logger.info("Deployment of %s reverted: %s", contract_cls.contract_name, exc)
            raise

        try:
            receipt = self._commit(
                kind="deploy",
                contract=contract,
                method="constructor",
                args=list(args),
                sender=sender,
                value=0,
            )
        except Exception:
            del self._contracts[address]
            self._restore(snapshot)
            raise
        logger.debug("Deployed %s at %s.", contract.contract_name, address)
        return contract, receipt

    def transact(
        self, to: str, method: str, *args: Any, sender: str, value: int = 0
    ) -> Receipt:
        """Send a transaction calling ``method`` on the contract at ``to``.

        Raises
        ------
        RevertError
            If the call reverts. No state, balance or nonce has changed.
        """
        self._require_top_level()
        contract = self.get_contract(to)
        self._require_funds(sender, value)

        snapshot = self._snapshot()
        try:
            self._invoke(contract, method, args, sender, value)
        except Exception as exc:
            self._restore(snapshot)
            logger.info(
                "Reverted %s.%s from %s: %s", contract.contract_name, method, sender, exc
            )
            raise

        try:
            return self._commit(
                kind="call",
                contract=contract,
                method=method,
                args=list(args),
                sender=sender,
                value=value,
            )
        except Exception:
            self._restore(snapshot)
            raise

    def call(self, to: str, method: str, *args: Any, sender: str = ZERO_ADDRESS) -> Any:
        """Execute ``method`` without committing anything (``eth_call``)."""
        self._require_top_level()
        contract = self.get_contract(to)
        snapshot = self._snapshot()
        try:
            return self._invoke(contract, method, args, sender, 0)
        finally:
            self._restore(snapshot)

    def call_contract(
        self, caller: str, to: str, method: str, *args: Any, value: int = 0
    ) -> Any:
        """Nested call from the executing contract ``caller`` to ``to``."""
        if not self._frames:
            raise RuntimeError("call_contract() is only valid inside a transaction")
        contract = self.get_contract(to)
        if mutability_of(getattr(contract, method, None)) == VIEW:
            return self._invoke(contract, method, args, caller, value)

        snapshot = self._snapshot()
        try:
            return self._invoke(contract, method, args, caller, value)
        except Exception:
            self._restore(snapshot)
            raise

    def send_value(self, sender: str, to: str, amount: int) -> None:
        """Move native value; contracts receive it through ``receive()``."""
        if self.is_contract(to):
            self.call_contract(sender, to, "receive", value=amount)
            return
        self._move_value(sender, to, amount)

    def log_event(self, address: str, event: ContractEvent) -> None:
        self._logs.append(event.model_copy(update={"address": address}))

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def mine(self, blocks: int = 1) -> int:
        self.block_number += blocks
        return self.block_number

    def confirmations(self, receipt: Receipt) -> int:
        return self.block_number - receipt.block_number + 1

    def wait_for_confirmations(self, receipt: Receipt, confirmations: int = 1) -> int:
        """Mine empty blocks until ``receipt`` has ``confirmations``."""
        missing = confirmations - self.confirmations(receipt)
        if missing > 0:
            self.mine(missing)
        return self.confirmations(receipt)

    def get_receipt(self, tx_hash: str) -> Receipt | None:
        return self._receipts.get(tx_hash)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_top_level(self) -> None:
        if self._frames:
            raise RuntimeError("transactions cannot be started from inside a call")

    def _require_funds(self, sender: str, value: int) -> None:
        if value < 0:
            raise RevertError("value must not be negative")
        if self.balance_of(sender) < value + self.tx_cost:
            raise RevertError(
                "sender doesn't have enough funds to send tx "
                f"(balance {self.balance_of(sender)}, needs {value + self.tx_cost})"
            )

    def _invoke(
        self, contract: Contract, method: str, args: tuple[Any, ...], sender: str, value: int
    ) -> Any:
        fn = getattr(contract, method, None) if not method.startswith("_") else None
        mutability = mutability_of(fn)
        if mutability is None:
            raise RevertError(
                f"{contract.contract_name} has no external method {method!r}"
            )
        if value and mutability != PAYABLE:
            raise RevertError(
                f"{contract.contract_name}.{method} is not payable"
            )
        if value:
            self._move_value(sender, contract.address, value)

        self._frames.append(Frame(sender=sender, value=value, address=contract.address))
        try:
            return fn(*args)
        finally:
            self._frames.pop()

    def _move_value(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise RevertError("value must not be negative")
        if self.balance_of(sender) < amount:
            raise RevertError(f"insufficient balance in {sender}")
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[to] = self.balance_of(to) + amount

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            states={
                address: copy.deepcopy(contract.state)
                for address, contract in self._contracts.items()
            },
            balances=dict(self._balances),
            log_count=len(self._logs),
        )

    def _restore(self, snapshot: _Snapshot) -> None:
        for address, state in snapshot.states.items():
            self._contracts[address].state = state
        self._balances = snapshot.balances
        del self._logs[snapshot.log_count:]

    def _commit(
        self,
        *,
        kind: str,
        contract: Contract,
        method: str,
        args: list[Any],
        sender: str,
        value: int,
    ) -> Receipt:
        """Journal, then mine, the transaction that has just executed.

        The journal entry is written before the nonce, the gas fee or the
        block number change, so a failed append leaves those untouched and
        the caller only has to restore its snapshot.
        """
        nonce = self.get_nonce(sender)
        to = None if kind == "deploy" else contract.address
        tx_hash = compute_tx_hash(sender, nonce, to, method, args, value)
        block_number = self.block_number + 1

        logs = [
            log.model_copy(
                update={"block_number": block_number, "tx_hash": tx_hash, "log_index": i}
            )
            for i, log in enumerate(self._logs)
        ]

        if self.journal is not None:
            self.journal.append(
                JournalEntry(
                    tx_hash=tx_hash,
                    block_number=block_number,
                    kind=kind,
                    contract=contract.contract_name,
                    contract_address=contract.address,
                    method=method,
                    caller=sender,
                    value=value,
                    args=args,
                    events=[log.model_dump(mode="json") for log in logs],
                )
            )

        self._nonces[sender] = nonce + 1
        self._balances[sender] = self.balance_of(sender) - self.tx_cost
        self.mine()
        self._logs = []

        receipt = Receipt(
            tx_hash=tx_hash,
            block_number=block_number,
            from_address=sender,
            to_address=to,
            contract_address=contract.address if kind == "deploy" else None,
            gas_used=self.gas_per_tx,
            effective_gas_price=self.gas_price,
            value=value,
            logs=logs,
        )
        self._receipts[tx_hash] = receipt

        for log in logs:
            self.event_bus.publish(log)
        logger.debug(
            "Mined %s.%s in block %d (tx %s, %d log(s)).",
            contract.contract_name,
            method,
            block_number,
            tx_hash[:18],
            len(logs),
        )
        return receipt
