"""Explicitly owned marketplace state.

``MarketplaceState`` holds the two mappings the marketplace is made of:

- ``(nft_address, token_id) -> Listing``
- ``seller -> proceeds`` (wei)

There is no module-level registry. A state object is handed to the ledger
at construction, which makes it trivial to snapshot, restore and inspect in
tests.
"""

from __future__ import annotations

from typing import Any

from nftmarketplace.models.listing import Listing, ListingKey


class MarketplaceState:
    """Listings and accumulated proceeds of one marketplace instance."""

    def __init__(
        self,
        listings: dict[ListingKey, Listing] | None = None,
        proceeds: dict[str, int] | None = None,
    ) -> None:
        self.listings: dict[ListingKey, Listing] = dict(listings or {})
        self.proceeds: dict[str, int] = dict(proceeds or {})

    # -- Listings -----------------------------------------------------------

    def get_listing(self, nft_address: str, token_id: int) -> Listing:
        """Return the listing for a token, or the zero ``Listing``."""
        return self.listings.get((nft_address, token_id), Listing())

    def put_listing(self, nft_address: str, token_id: int, listing: Listing) -> None:
        self.listings[(nft_address, token_id)] = listing

    def delete_listing(self, nft_address: str, token_id: int) -> None:
        self.listings.pop((nft_address, token_id), None)

    def active_listings(self) -> dict[ListingKey, Listing]:
        """All listings with a positive price, sorted by key."""
        return {
            key: listing
            for key, listing in sorted(self.listings.items())
            if listing.is_active
        }

    # -- Proceeds -----------------------------------------------------------

    def get_proceeds(self, seller: str) -> int:
        return self.proceeds.get(seller, 0)

    def credit_proceeds(self, seller: str, amount: int) -> int:
        """Add ``amount`` to a seller's proceeds and return the new balance."""
        balance = self.proceeds.get(seller, 0) + amount
        self.proceeds[seller] = balance
        return balance

    def clear_proceeds(self, seller: str) -> int:
        """Reset a seller's proceeds to zero and return the previous balance."""
        return self.proceeds.pop(seller, 0)

    def total_proceeds(self) -> int:
        return sum(self.proceeds.values())

    # -- Snapshots ----------------------------------------------------------

    def copy(self) -> MarketplaceState:
        # Listing is frozen, so a shallow copy of each mapping is enough.
        return MarketplaceState(self.listings, self.proceeds)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view of the state, used for comparisons and display."""
        return {
            "listings": [
                {
                    "nft_address": nft_address,
                    "token_id": token_id,
                    "price": listing.price,
                    "seller": listing.seller,
                }
                for (nft_address, token_id), listing in self.active_listings().items()
            ],
            "proceeds": {
                seller: amount
                for seller, amount in sorted(self.proceeds.items())
                if amount > 0
            },
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MarketplaceState):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"MarketplaceState(listings={len(self.active_listings())}, "
            f"proceeds_total={self.total_proceeds()})"
        )
