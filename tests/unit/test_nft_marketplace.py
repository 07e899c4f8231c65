"""Tests for the NftMarketplace contract on the local chain."""

from __future__ import annotations

import re

import pytest

from nftmarketplace.chain.handle import ContractHandle
from nftmarketplace.chain.runtime import Chain
from nftmarketplace.core.errors import (
    AlreadyListed,
    NoProceeds,
    NotApprovedForMarketplace,
    NotListed,
    NotOwner,
    PriceMustBeAboveZero,
    PriceNotMet,
    RevertError,
)
from nftmarketplace.models.chain import ZERO_ADDRESS

PRICE = 10**17  # 0.1 ETH
TOKEN_ID = 0


class TestListItem:
    def test_emits_event_after_listing(self, marketplace, basic_nft, deployer):
        receipt = marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        (event,) = receipt.events_named("ItemListed")
        assert event.seller == deployer
        assert event.nft_address == basic_nft.address
        assert event.token_id == TOKEN_ID
        assert event.price == PRICE
        assert event.address == marketplace.address

    def test_exclusively_lists_unlisted_items(self, marketplace, basic_nft):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        error = f'NftMarketplace__AlreadyListed("{basic_nft.address}", {TOKEN_ID})'
        with pytest.raises(AlreadyListed, match=re.escape(error)):
            marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)

    def test_exclusively_allows_owners_to_list(self, marketplace, basic_nft, user):
        basic_nft.approve(user, TOKEN_ID)
        with pytest.raises(NotOwner, match="NftMarketplace__NotOwner"):
            marketplace.connect(user).list_item(basic_nft.address, TOKEN_ID, PRICE)

    def test_needs_approvals_to_list_item(self, marketplace, basic_nft):
        basic_nft.approve(ZERO_ADDRESS, TOKEN_ID)
        with pytest.raises(
            NotApprovedForMarketplace, match="NftMarketplace__NotApprovedForMarketplace"
        ):
            marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)

    def test_rejects_zero_price(self, marketplace, basic_nft):
        with pytest.raises(NotApprovedForMarketplace) as exc_info:
            marketplace.list_item(basic_nft.address, TOKEN_ID, 0)
        assert isinstance(exc_info.value, PriceMustBeAboveZero)

    def test_updates_listing_with_seller_and_price(self, marketplace, basic_nft, deployer):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        listing = marketplace.get_listing(basic_nft.address, TOKEN_ID)
        assert listing.price == PRICE
        assert listing.seller == deployer

    def test_listing_leaves_token_with_seller(self, marketplace, basic_nft, deployer):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        assert basic_nft.owner_of(TOKEN_ID) == deployer

    def test_unminted_token_reverts(self, marketplace, basic_nft):
        with pytest.raises(RevertError, match="ERC721: invalid token ID"):
            marketplace.list_item(basic_nft.address, 99, PRICE)


class TestCancelListing:
    def test_reverts_if_there_is_no_listing(self, marketplace, basic_nft):
        error = f'NftMarketplace__NotListed("{basic_nft.address}", {TOKEN_ID})'
        with pytest.raises(NotListed, match=re.escape(error)):
            marketplace.cancel_listing(basic_nft.address, TOKEN_ID)

    def test_reverts_if_anyone_but_the_owner_tries_to_call(
        self, marketplace, basic_nft, user
    ):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        basic_nft.approve(user, TOKEN_ID)
        with pytest.raises(NotOwner):
            marketplace.connect(user).cancel_listing(basic_nft.address, TOKEN_ID)

    def test_emits_event_and_removes_listing(self, marketplace, basic_nft, deployer):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        receipt = marketplace.cancel_listing(basic_nft.address, TOKEN_ID)
        (event,) = receipt.events_named("ItemCancel")
        assert event.seller == deployer
        assert event.token_id == TOKEN_ID
        listing = marketplace.get_listing(basic_nft.address, TOKEN_ID)
        assert listing.price == 0
        assert listing.seller == ZERO_ADDRESS

    def test_token_can_be_relisted_after_cancel(self, marketplace, basic_nft):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        marketplace.cancel_listing(basic_nft.address, TOKEN_ID)
        marketplace.list_item(basic_nft.address, TOKEN_ID, 2 * PRICE)
        assert marketplace.get_listing(basic_nft.address, TOKEN_ID).price == 2 * PRICE


class TestBuyItem:
    def test_reverts_if_the_item_isnt_listed(self, marketplace, basic_nft, user):
        error = f'NftMarketplace__NotListed("{basic_nft.address}", {TOKEN_ID})'
        with pytest.raises(NotListed, match=re.escape(error)):
            marketplace.connect(user).buy_item(basic_nft.address, TOKEN_ID, value=PRICE)

    def test_reverts_if_the_price_isnt_met(self, marketplace, basic_nft, user):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        error = f'NftMarketplace__PriceNotMet("{basic_nft.address}", {TOKEN_ID}, {PRICE})'
        with pytest.raises(PriceNotMet, match=re.escape(error)):
            marketplace.connect(user).buy_item(basic_nft.address, TOKEN_ID)

    def test_transfers_the_nft_and_updates_proceeds(
        self, marketplace, basic_nft, deployer, user
    ):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        receipt = marketplace.connect(user).buy_item(
            basic_nft.address, TOKEN_ID, value=PRICE
        )

        assert basic_nft.owner_of(TOKEN_ID) == user
        assert marketplace.get_proceeds(deployer) == PRICE
        (event,) = receipt.events_named("ItemBought")
        assert event.buyer == user
        assert event.price == PRICE

    def test_removes_the_listing(self, marketplace, basic_nft, user):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        marketplace.connect(user).buy_item(basic_nft.address, TOKEN_ID, value=PRICE)
        assert marketplace.get_listing(basic_nft.address, TOKEN_ID).price == 0

    def test_buyer_pays_price_and_gas(
        self, chain: Chain, marketplace, basic_nft, user
    ):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        before = chain.balance_of(user)
        receipt = marketplace.connect(user).buy_item(
            basic_nft.address, TOKEN_ID, value=PRICE
        )
        assert chain.balance_of(user) == before - PRICE - receipt.gas_cost
        assert chain.balance_of(marketplace.address) == PRICE

    def test_overpayment_is_credited_to_the_seller(
        self, marketplace, basic_nft, deployer, user
    ):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        receipt = marketplace.connect(user).buy_item(
            basic_nft.address, TOKEN_ID, value=3 * PRICE
        )
        assert marketplace.get_proceeds(deployer) == 3 * PRICE
        assert receipt.events_named("ItemBought")[0].price == PRICE

    def test_bought_token_cannot_be_bought_again(self, marketplace, basic_nft, user):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        buyer = marketplace.connect(user)
        buyer.buy_item(basic_nft.address, TOKEN_ID, value=PRICE)
        with pytest.raises(NotListed):
            buyer.buy_item(basic_nft.address, TOKEN_ID, value=PRICE)

    def test_stale_listing_reverts_and_keeps_payment(
        self, chain: Chain, deployments, marketplace, basic_nft, deployer, user
    ):
        # The seller moves the token away after listing it.
        third = chain.accounts[2]
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        basic_nft.transfer_from(deployer, third, TOKEN_ID)
        before = chain.balance_of(user)

        with pytest.raises(RevertError, match="ERC721"):
            marketplace.connect(user).buy_item(basic_nft.address, TOKEN_ID, value=PRICE)

        assert chain.balance_of(user) == before
        assert marketplace.get_proceeds(deployer) == 0
        assert marketplace.get_listing(basic_nft.address, TOKEN_ID).price == PRICE


class TestUpdateListing:
    def test_must_be_owner_and_listed(self, marketplace, basic_nft, user):
        with pytest.raises(NotListed):
            marketplace.update_listing(basic_nft.address, TOKEN_ID, PRICE)
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        with pytest.raises(NotOwner):
            marketplace.connect(user).update_listing(basic_nft.address, TOKEN_ID, PRICE)

    def test_updates_the_price_of_the_item(self, marketplace, basic_nft, deployer):
        updated_price = 2 * 10**17  # 0.2 ETH
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        receipt = marketplace.update_listing(basic_nft.address, TOKEN_ID, updated_price)

        (event,) = receipt.events_named("ItemListed")
        assert event.price == updated_price
        listing = marketplace.get_listing(basic_nft.address, TOKEN_ID)
        assert listing.price == updated_price
        assert listing.seller == deployer

    def test_rejects_zero_price(self, marketplace, basic_nft):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        with pytest.raises(PriceMustBeAboveZero):
            marketplace.update_listing(basic_nft.address, TOKEN_ID, 0)
        assert marketplace.get_listing(basic_nft.address, TOKEN_ID).price == PRICE


class TestWithdrawProceeds:
    def test_doesnt_allow_0_proceed_withdrawls(self, marketplace):
        with pytest.raises(NoProceeds, match="NftMarketplace__NoProceeds"):
            marketplace.withdraw_proceeds()

    def test_withdraws_proceeds(
        self, chain: Chain, marketplace: ContractHandle, basic_nft, deployer, user
    ):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        marketplace.connect(user).buy_item(basic_nft.address, TOKEN_ID, value=PRICE)

        deployer_proceeds_before = marketplace.get_proceeds(deployer)
        deployer_balance_before = chain.balance_of(deployer)
        receipt = marketplace.withdraw_proceeds()
        deployer_balance_after = chain.balance_of(deployer)

        assert deployer_balance_after + receipt.gas_cost == (
            deployer_proceeds_before + deployer_balance_before
        )
        assert marketplace.get_proceeds(deployer) == 0
        assert chain.balance_of(marketplace.address) == 0

    def test_second_withdrawal_has_no_proceeds(self, marketplace, basic_nft, user):
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        marketplace.connect(user).buy_item(basic_nft.address, TOKEN_ID, value=PRICE)
        marketplace.withdraw_proceeds()
        with pytest.raises(NoProceeds):
            marketplace.withdraw_proceeds()

    def test_proceeds_accumulate_across_sales(
        self, deployments, marketplace, basic_nft, deployer, user
    ):
        basic_nft.mint_nft()
        basic_nft.approve(marketplace.address, 1)
        marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE)
        marketplace.list_item(basic_nft.address, 1, 2 * PRICE)
        buyer = marketplace.connect(user)
        buyer.buy_item(basic_nft.address, TOKEN_ID, value=PRICE)
        buyer.buy_item(basic_nft.address, 1, value=2 * PRICE)
        assert marketplace.get_proceeds(deployer) == 3 * PRICE


class TestFailedTransactions:
    def test_revert_costs_nothing(self, chain: Chain, marketplace, deployer):
        balance = chain.balance_of(deployer)
        nonce = chain.get_nonce(deployer)
        block = chain.block_number
        with pytest.raises(NoProceeds):
            marketplace.withdraw_proceeds()
        assert chain.balance_of(deployer) == balance
        assert chain.get_nonce(deployer) == nonce
        assert chain.block_number == block

    def test_nonpayable_methods_reject_value(self, marketplace, basic_nft):
        with pytest.raises(RevertError, match="not payable"):
            marketplace.list_item(basic_nft.address, TOKEN_ID, PRICE, value=1)
