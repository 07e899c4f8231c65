"""Listing model — an offer to sell one token at one price."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from nftmarketplace.models.chain import ZERO_ADDRESS


class Listing(BaseModel):
    """A marketplace listing keyed by ``(nft_address, token_id)``.

    A listing whose price is 0 is logically absent. Reads of unknown keys
    return ``Listing()``, mirroring the zero value of a contract mapping.
    """

    model_config = ConfigDict(frozen=True)

    price: int = 0  # wei
    seller: str = ZERO_ADDRESS

    @property
    def is_active(self) -> bool:
        return self.price > 0


# (nft_address, token_id)
ListingKey = tuple[str, int]
