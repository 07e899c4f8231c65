"""Tests for the local Chain runtime: atomicity, frames, value and blocks."""

from __future__ import annotations

import sqlite3

import pytest

from nftmarketplace.chain.replay import replay
from nftmarketplace.chain.runtime import Chain
from nftmarketplace.config import MarketplaceSettings
from nftmarketplace.contracts.base import Contract, external, payable, view
from nftmarketplace.core.errors import RevertError
from nftmarketplace.core.hasher import contract_address
from nftmarketplace.core.journal import TransactionJournal
from nftmarketplace.models.events import ContractEvent


class Counter(Contract):
    contract_name = "Counter"

    def __init__(self, chain: Chain, address: str) -> None:
        super().__init__(chain, address)
        self.state = {"count": 0, "callers": []}

    def constructor(self, start: int = 0) -> None:
        self.state["count"] = start

    @external
    def bump(self) -> int:
        self.state["count"] += 1
        self.state["callers"].append(self.msg_sender)
        self.emit(ContractEvent(event_name="Bumped"))
        return self.state["count"]

    @external
    def bump_then_fail(self) -> None:
        self.bump()
        raise RevertError("boom")

    @payable
    def deposit(self) -> int:
        return self.msg_value

    @external
    def pay_out(self, to: str, amount: int) -> None:
        self.send_value(to, amount)

    @external
    def start_transaction(self) -> None:
        self.chain.transact(self.address, "bump", sender=self.address)

    @view
    def count(self) -> int:
        return self.state["count"]

    def internal_helper(self) -> None:
        self.state["count"] = -1


class Caller(Contract):
    contract_name = "Caller"

    def __init__(self, chain: Chain, address: str) -> None:
        super().__init__(chain, address)
        self.state = {"caught": 0}

    @external
    def bump_both(self, target: str) -> None:
        self.call_contract(target, "bump")
        try:
            self.call_contract(target, "bump_then_fail")
        except RevertError:
            self.state["caught"] += 1

    @external
    def bump_and_fail(self, target: str) -> None:
        self.call_contract(target, "bump")
        raise RevertError("outer failure")


@pytest.fixture
def sender(chain: Chain) -> str:
    return chain.accounts[0]


@pytest.fixture
def counter(chain: Chain, sender: str) -> Counter:
    contract, _ = chain.deploy_contract(Counter, sender=sender)
    return contract


class TestAccounts:
    def test_funded_deterministic_accounts(self, local_settings: MarketplaceSettings):
        a, b = Chain(local_settings), Chain(local_settings)
        assert a.accounts == b.accounts
        assert len(a.accounts) == local_settings.accounts
        assert len(set(a.accounts)) == len(a.accounts)
        assert all(a.balance_of(acct) == local_settings.initial_balance_wei for acct in a.accounts)

    def test_unknown_address_has_zero_balance(self, chain: Chain):
        assert chain.balance_of("0xnobody") == 0


class TestDeployment:
    def test_address_derived_from_deployer_and_nonce(self, chain: Chain, sender: str):
        expected = contract_address(sender, 0)
        contract, receipt = chain.deploy_contract(Counter, 5, sender=sender)
        assert contract.address == expected
        assert receipt.contract_address == expected
        assert receipt.to_address is None
        assert chain.get_nonce(sender) == 1
        assert contract.state["count"] == 5
        assert chain.is_contract(expected)

    def test_failing_constructor_leaves_no_contract(self, chain: Chain, sender: str):
        with pytest.raises(TypeError):
            chain.deploy_contract(Counter, 1, 2, 3, sender=sender)
        assert chain.contracts == {}
        assert chain.get_nonce(sender) == 0
        assert chain.block_number == 0

    def test_unknown_contract(self, chain: Chain, sender: str):
        with pytest.raises(RevertError, match="no contract"):
            chain.transact("0xmissing", "bump", sender=sender)


class TestTransactions:
    def test_commit_mines_block_and_charges_gas(self, chain: Chain, counter: Counter, sender: str):
        balance = chain.balance_of(sender)
        block = chain.block_number
        receipt = chain.transact(counter.address, "bump", sender=sender)
        assert receipt.block_number == block + 1
        assert receipt.gas_cost == chain.tx_cost
        assert chain.balance_of(sender) == balance - chain.tx_cost
        assert chain.get_receipt(receipt.tx_hash) == receipt

    def test_logs_are_stamped(self, chain: Chain, counter: Counter, sender: str):
        receipt = chain.transact(counter.address, "bump", sender=sender)
        (log,) = receipt.logs
        assert log.address == counter.address
        assert log.tx_hash == receipt.tx_hash
        assert log.block_number == receipt.block_number

    def test_revert_restores_state_and_costs_nothing(
        self, chain: Chain, counter: Counter, sender: str
    ):
        balance = chain.balance_of(sender)
        nonce = chain.get_nonce(sender)
        with pytest.raises(RevertError, match="boom"):
            chain.transact(counter.address, "bump_then_fail", sender=sender)
        assert chain.call(counter.address, "count") == 0
        assert counter.state["callers"] == []
        assert chain.balance_of(sender) == balance
        assert chain.get_nonce(sender) == nonce

    def test_reverted_logs_are_discarded(self, chain: Chain, counter: Counter, sender: str):
        with pytest.raises(RevertError):
            chain.transact(counter.address, "bump_then_fail", sender=sender)
        receipt = chain.transact(counter.address, "bump", sender=sender)
        assert len(receipt.logs) == 1

    def test_internal_methods_are_unreachable(self, chain: Chain, counter: Counter, sender: str):
        with pytest.raises(RevertError, match="no external method"):
            chain.transact(counter.address, "internal_helper", sender=sender)
        with pytest.raises(RevertError, match="no external method"):
            chain.transact(counter.address, "_snapshot", sender=sender)

    def test_value_to_payable_method(self, chain: Chain, counter: Counter, sender: str):
        chain.transact(counter.address, "deposit", sender=sender, value=500)
        assert chain.balance_of(counter.address) == 500

    def test_value_to_nonpayable_method(self, chain: Chain, counter: Counter, sender: str):
        with pytest.raises(RevertError, match="not payable"):
            chain.transact(counter.address, "bump", sender=sender, value=1)

    def test_insufficient_funds(self, chain: Chain, counter: Counter, sender: str):
        too_much = chain.balance_of(sender)
        with pytest.raises(RevertError, match="enough funds"):
            chain.transact(counter.address, "deposit", sender=sender, value=too_much)

    def test_send_value_to_account(self, chain: Chain, counter: Counter, sender: str):
        recipient = chain.accounts[3]
        before = chain.balance_of(recipient)
        chain.transact(counter.address, "deposit", sender=sender, value=1_000)
        chain.transact(counter.address, "pay_out", recipient, 400, sender=sender)
        assert chain.balance_of(recipient) == before + 400
        assert chain.balance_of(counter.address) == 600

    def test_overdrawn_send_value_reverts(self, chain: Chain, counter: Counter, sender: str):
        with pytest.raises(RevertError, match="insufficient balance"):
            chain.transact(counter.address, "pay_out", chain.accounts[3], 1, sender=sender)

    def test_call_never_commits(self, chain: Chain, counter: Counter, sender: str):
        assert chain.call(counter.address, "bump", sender=sender) == 1
        assert chain.call(counter.address, "count") == 0
        assert chain.get_nonce(sender) == 1  # deployment only

    def test_msg_sender_outside_call(self, chain: Chain):
        assert not chain.in_call
        with pytest.raises(RuntimeError):
            chain.msg_sender


class TestNestedCalls:
    def test_nested_frame_sees_calling_contract(self, chain: Chain, counter: Counter, sender: str):
        caller, _ = chain.deploy_contract(Caller, sender=sender)
        chain.transact(caller.address, "bump_both", counter.address, sender=sender)
        assert counter.state["callers"] == [caller.address]

    def test_caught_nested_revert_discards_only_callee_effects(
        self, chain: Chain, counter: Counter, sender: str
    ):
        caller, _ = chain.deploy_contract(Caller, sender=sender)
        receipt = chain.transact(caller.address, "bump_both", counter.address, sender=sender)
        assert chain.call(counter.address, "count") == 1
        assert caller.state["caught"] == 1
        assert len(receipt.logs) == 1

    def test_outer_revert_discards_nested_effects(
        self, chain: Chain, counter: Counter, sender: str
    ):
        caller, _ = chain.deploy_contract(Caller, sender=sender)
        with pytest.raises(RevertError, match="outer failure"):
            chain.transact(caller.address, "bump_and_fail", counter.address, sender=sender)
        assert chain.call(counter.address, "count") == 0

    def test_transactions_cannot_nest(self, chain: Chain, counter: Counter, sender: str):
        with pytest.raises(RuntimeError, match="inside a call"):
            chain.transact(counter.address, "start_transaction", sender=sender)
        assert not chain.in_call
        assert chain.call(counter.address, "count") == 0


class TestBlocks:
    def test_confirmations_grow_with_blocks(self, chain: Chain, counter: Counter, sender: str):
        receipt = chain.transact(counter.address, "bump", sender=sender)
        assert chain.confirmations(receipt) == 1
        chain.mine(2)
        assert chain.confirmations(receipt) == 3

    def test_wait_for_confirmations_mines_missing_blocks(
        self, chain: Chain, counter: Counter, sender: str
    ):
        receipt = chain.transact(counter.address, "bump", sender=sender)
        assert chain.wait_for_confirmations(receipt, 6) == 6
        assert chain.block_number == receipt.block_number + 5
        assert chain.wait_for_confirmations(receipt, 2) == 6


class TestJournalFailure:
    """A transaction whose journal append fails must not commit."""

    @pytest.fixture
    def journaled_chain(
        self, local_settings: MarketplaceSettings, journal: TransactionJournal
    ) -> Chain:
        return Chain(local_settings, journal=journal)

    @staticmethod
    def _fail_appends(monkeypatch: pytest.MonkeyPatch, journal: TransactionJournal) -> None:
        def append(entry):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(journal, "append", append)

    def test_failed_append_rolls_back_transaction(
        self,
        journaled_chain: Chain,
        journal: TransactionJournal,
        monkeypatch: pytest.MonkeyPatch,
    ):
        chain = journaled_chain
        sender = chain.accounts[0]
        counter, _ = chain.deploy_contract(Counter, sender=sender)
        balance = chain.balance_of(sender)
        nonce = chain.get_nonce(sender)
        block = chain.block_number

        self._fail_appends(monkeypatch, journal)
        with pytest.raises(sqlite3.OperationalError):
            chain.transact(counter.address, "bump", sender=sender)

        assert chain.call(counter.address, "count") == 0
        assert counter.state["callers"] == []
        assert chain.balance_of(sender) == balance
        assert chain.get_nonce(sender) == nonce
        assert chain.block_number == block
        assert journal.count() == 1

    def test_failed_append_discards_deployment(
        self,
        journaled_chain: Chain,
        journal: TransactionJournal,
        monkeypatch: pytest.MonkeyPatch,
    ):
        chain = journaled_chain
        sender = chain.accounts[0]
        address = contract_address(sender, 0)

        self._fail_appends(monkeypatch, journal)
        with pytest.raises(sqlite3.OperationalError):
            chain.deploy_contract(Counter, sender=sender)

        assert not chain.is_contract(address)
        assert chain.get_nonce(sender) == 0
        assert chain.block_number == 0
        assert chain.balance_of(sender) == chain.settings.initial_balance_wei

    def test_journal_still_replays_after_failed_append(
        self,
        journaled_chain: Chain,
        journal: TransactionJournal,
        monkeypatch: pytest.MonkeyPatch,
    ):
        chain = journaled_chain
        sender = chain.accounts[0]
        counter, _ = chain.deploy_contract(Counter, sender=sender)

        with monkeypatch.context() as patched:
            self._fail_appends(patched, journal)
            with pytest.raises(sqlite3.OperationalError):
                chain.transact(counter.address, "bump", sender=sender)

        receipt = chain.transact(counter.address, "bump", sender=sender)
        assert journal.count() == 2
        assert journal.get_latest().tx_hash == receipt.tx_hash

        replayed = replay(journal, chain.settings, {"Counter": Counter})
        assert replayed.call(counter.address, "count") == 1
        assert replayed.get_nonce(sender) == chain.get_nonce(sender)
