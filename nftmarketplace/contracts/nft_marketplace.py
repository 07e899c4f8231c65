"""NftMarketplace — the Marketplace Ledger deployed on the local chain.

This contract is a thin binding: caller identity and payment come from
the current call frame, token reads and transfers go to the token contract
through the chain, and all rules live in ``MarketplaceLedger``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nftmarketplace.contracts.base import Contract, external, payable, view
from nftmarketplace.core.errors import RevertError, TransferFailed
from nftmarketplace.core.marketplace import MarketplaceLedger
from nftmarketplace.core.state import MarketplaceState
from nftmarketplace.models.listing import Listing

if TYPE_CHECKING:
    from nftmarketplace.chain.runtime import Chain


class ChainOwnershipOracle:
    """Reads ownership and approvals from token contracts on the chain."""

    def __init__(self, marketplace: Contract) -> None:
        self._marketplace = marketplace

    def owner_of(self, nft_address: str, token_id: int) -> str:
        return self._marketplace.call_contract(nft_address, "owner_of", token_id)

    def get_approved(self, nft_address: str, token_id: int) -> str:
        return self._marketplace.call_contract(nft_address, "get_approved", token_id)


class NftMarketplace(Contract):
    contract_name = "NftMarketplace"

    def __init__(self, chain: Chain, address: str, state: MarketplaceState | None = None) -> None:
        super().__init__(chain, address)
        self.ledger = MarketplaceLedger(address, ChainOwnershipOracle(self), state)

    @property
    def state(self) -> MarketplaceState:
        return self.ledger.state

    @state.setter
    def state(self, value: MarketplaceState | None) -> None:
        # Contract.__init__ assigns None before the ledger exists.
        if value is not None:
            self.ledger.state = value

    # ------------------------------------------------------------------
    # External methods
    # ------------------------------------------------------------------

    @external
    def list_item(self, nft_address: str, token_id: int, price: int) -> None:
        self.emit(self.ledger.list_item(nft_address, token_id, price, self.msg_sender))

    @external
    def cancel_listing(self, nft_address: str, token_id: int) -> None:
        self.emit(self.ledger.cancel_listing(nft_address, token_id, self.msg_sender))

    @payable
    def buy_item(self, nft_address: str, token_id: int) -> None:
        buyer = self.msg_sender
        listing, bought = self.ledger.buy_item(nft_address, token_id, self.msg_value, buyer)
        self.call_contract(nft_address, "safe_transfer_from", listing.seller, buyer, token_id)
        self.emit(bought)

    @external
    def update_listing(self, nft_address: str, token_id: int, new_price: int) -> None:
        self.emit(self.ledger.update_listing(nft_address, token_id, new_price, self.msg_sender))

    @external
    def withdraw_proceeds(self) -> None:
        recipient = self.msg_sender
        amount = self.ledger.withdraw_proceeds(recipient)
        try:
            self.send_value(recipient, amount)
        except RevertError as exc:
            raise TransferFailed() from exc

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @view
    def get_listing(self, nft_address: str, token_id: int) -> Listing:
        return self.ledger.get_listing(nft_address, token_id)

    @view
    def get_proceeds(self, seller: str) -> int:
        return self.ledger.get_proceeds(seller)
