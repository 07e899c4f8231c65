"""Revert errors raised by contracts on the local chain.

A revert aborts the whole transaction: the chain runtime restores every
contract state and balance it snapshotted before execution and re-raises
the error to the caller unchanged.

Marketplace errors render the way the contract's custom errors are
reported, e.g. ``NftMarketplace__NotListed("0xab…", 0)``, so callers can
match on the string as well as on the type.
"""

from __future__ import annotations

from typing import Any


class RevertError(RuntimeError):
    """Raised when a transaction reverts with a plain reason string."""

    def __init__(self, reason: str = "") -> None:
        super().__init__(reason)
        self.reason = reason


class MarketplaceError(RevertError):
    """Base class for the marketplace's named custom errors.

    Subclasses list their identifying fields in ``fields``; the values are
    exposed as attributes and rendered into the reason string.
    """

    contract_name = "NftMarketplace"
    fields: tuple[str, ...] = ()

    def __init__(self, *values: Any) -> None:
        if len(values) != len(self.fields):
            raise TypeError(
                f"{type(self).__name__} expects {len(self.fields)} value(s), "
                f"got {len(values)}"
            )
        for name, value in zip(self.fields, values):
            setattr(self, name, value)
        self.values = values
        super().__init__(self._render())

    @property
    def error_name(self) -> str:
        return f"{self.contract_name}__{type(self).__name__}"

    def _render(self) -> str:
        rendered = ", ".join(
            f'"{v}"' if isinstance(v, str) else str(v) for v in self.values
        )
        return f"{self.error_name}({rendered})"


class AlreadyListed(MarketplaceError):
    fields = ("nft_address", "token_id")


class NotOwner(MarketplaceError):
    """The caller does not own the token, or is not the listing's seller."""


class NotApprovedForMarketplace(MarketplaceError):
    """The marketplace may not transfer the token on the seller's behalf."""


class PriceMustBeAboveZero(NotApprovedForMarketplace):
    """A zero or negative price was offered.

    Subclasses ``NotApprovedForMarketplace`` so callers that match the
    broader error keep working.
    """


class NotListed(MarketplaceError):
    fields = ("nft_address", "token_id")


class PriceNotMet(MarketplaceError):
    fields = ("nft_address", "token_id", "price")


class NoProceeds(MarketplaceError):
    """The caller has nothing to withdraw."""


class TransferFailed(MarketplaceError):
    """Sending native value to the withdrawing account failed."""
