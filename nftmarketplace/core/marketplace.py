"""Marketplace Ledger — list, cancel, update, buy and withdraw.

The ledger is the whole of the marketplace's logic. It knows nothing about
the chain it runs on: the caller and the attached payment are passed in
explicitly, token ownership is read through an ``OwnershipOracle`` and the
state lives in an injected ``MarketplaceState``.

Checks-effects-interactions
---------------------------
Every operation validates all of its preconditions before touching state,
and never performs an external interaction itself. Operations that imply
one (``buy_item`` moves a token, ``withdraw_proceeds`` moves funds) commit
their state change first and return what the caller needs to perform the
interaction afterwards. A re-entrant call made during that interaction
therefore observes the already-updated state.
"""

from __future__ import annotations

import logging
from typing import Protocol

from nftmarketplace.core.errors import (
    AlreadyListed,
    NoProceeds,
    NotApprovedForMarketplace,
    NotListed,
    NotOwner,
    PriceMustBeAboveZero,
    PriceNotMet,
)
from nftmarketplace.core.state import MarketplaceState
from nftmarketplace.models.events import ItemBought, ItemCancel, ItemListed
from nftmarketplace.models.listing import Listing

logger = logging.getLogger(__name__)


class OwnershipOracle(Protocol):
    """Read access to the system of record for token ownership."""

    def owner_of(self, nft_address: str, token_id: int) -> str: ...

    def get_approved(self, nft_address: str, token_id: int) -> str: ...


class MarketplaceLedger:
    """Listings and proceeds of one marketplace, with their invariants.

    Parameters
    ----------
    address:
        The marketplace's own address, the operator that must be approved
        on a token before it can be listed.
    oracle:
        Ownership/approval oracle for listed tokens.
    state:
        The state to operate on. A fresh, empty ``MarketplaceState`` is
        created if not provided.
    """

    def __init__(
        self,
        address: str,
        oracle: OwnershipOracle,
        state: MarketplaceState | None = None,
    ) -> None:
        self.address = address
        self.oracle = oracle
        self.state = state if state is not None else MarketplaceState()

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_not_listed(self, nft_address: str, token_id: int) -> None:
        if self.state.get_listing(nft_address, token_id).is_active:
            raise AlreadyListed(nft_address, token_id)

    def _require_listed(self, nft_address: str, token_id: int) -> Listing:
        listing = self.state.get_listing(nft_address, token_id)
        if not listing.is_active:
            raise NotListed(nft_address, token_id)
        return listing

    def _require_token_owner(self, nft_address: str, token_id: int, caller: str) -> None:
        if self.oracle.owner_of(nft_address, token_id) != caller:
            raise NotOwner()

    @staticmethod
    def _require_seller(listing: Listing, caller: str) -> None:
        if listing.seller != caller:
            raise NotOwner()

    @staticmethod
    def _require_positive_price(price: int) -> None:
        if price <= 0:
            raise PriceMustBeAboveZero()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list_item(
        self, nft_address: str, token_id: int, price: int, caller: str
    ) -> ItemListed:
        """List a token the caller owns at ``price`` wei.

        Raises
        ------
        AlreadyListed
            If the token already has an active listing.
        NotOwner
            If the caller does not own the token.
        NotApprovedForMarketplace
            If the price is not positive (``PriceMustBeAboveZero``) or the
            marketplace is not the token's approved operator.
        """
        self._require_not_listed(nft_address, token_id)
        self._require_token_owner(nft_address, token_id, caller)
        self._require_positive_price(price)
        if self.oracle.get_approved(nft_address, token_id) != self.address:
            raise NotApprovedForMarketplace()

        self.state.put_listing(nft_address, token_id, Listing(price=price, seller=caller))
        logger.info("Listed %s #%d at %d wei by %s.", nft_address, token_id, price, caller)
        return ItemListed(
            seller=caller, nft_address=nft_address, token_id=token_id, price=price
        )

    def cancel_listing(self, nft_address: str, token_id: int, caller: str) -> ItemCancel:
        """Remove the caller's listing for a token."""
        listing = self._require_listed(nft_address, token_id)
        self._require_seller(listing, caller)

        self.state.delete_listing(nft_address, token_id)
        logger.info("Cancelled listing of %s #%d.", nft_address, token_id)
        return ItemCancel(seller=caller, nft_address=nft_address, token_id=token_id)

    def buy_item(
        self, nft_address: str, token_id: int, payment: int, caller: str
    ) -> tuple[Listing, ItemBought]:
        """Settle a purchase of a listed token.

        The listing is removed and the seller credited with the full
        ``payment`` before anything else happens. The caller of this method
        is responsible for moving the token from ``listing.seller`` to the
        buyer afterwards.

        Returns
        -------
        tuple[Listing, ItemBought]
            The listing that was bought and the event to log once the token
            has been transferred.
        """
        listing = self._require_listed(nft_address, token_id)
        if payment < listing.price:
            raise PriceNotMet(nft_address, token_id, listing.price)

        self.state.credit_proceeds(listing.seller, payment)
        self.state.delete_listing(nft_address, token_id)
        logger.info(
            "Sold %s #%d to %s for %d wei (listed at %d).",
            nft_address,
            token_id,
            caller,
            payment,
            listing.price,
        )
        return listing, ItemBought(
            buyer=caller, nft_address=nft_address, token_id=token_id, price=listing.price
        )

    def update_listing(
        self, nft_address: str, token_id: int, new_price: int, caller: str
    ) -> ItemListed:
        """Change the price of the caller's listing."""
        listing = self._require_listed(nft_address, token_id)
        self._require_seller(listing, caller)
        self._require_positive_price(new_price)

        self.state.put_listing(
            nft_address, token_id, listing.model_copy(update={"price": new_price})
        )
        logger.info(
            "Repriced %s #%d from %d to %d wei.", nft_address, token_id, listing.price, new_price
        )
        return ItemListed(
            seller=caller, nft_address=nft_address, token_id=token_id, price=new_price
        )

    def withdraw_proceeds(self, caller: str) -> int:
        """Zero the caller's proceeds and return the amount to pay out."""
        if self.state.get_proceeds(caller) <= 0:
            raise NoProceeds()
        amount = self.state.clear_proceeds(caller)
        logger.info("Withdrawing %d wei of proceeds for %s.", amount, caller)
        return amount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_listing(self, nft_address: str, token_id: int) -> Listing:
        return self.state.get_listing(nft_address, token_id)

    def get_proceeds(self, seller: str) -> int:
        return self.state.get_proceeds(seller)
