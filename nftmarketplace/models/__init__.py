"""Marketplace data models — all Pydantic v2, all frozen (immutable)."""

from nftmarketplace.models.chain import ZERO_ADDRESS, Receipt
from nftmarketplace.models.deployment import DeploymentRecord
from nftmarketplace.models.events import (
    EVENT_TYPE_MAP,
    Approval,
    ApprovalForAll,
    ContractEvent,
    ItemBought,
    ItemCancel,
    ItemListed,
    Transfer,
    decode_event,
)
from nftmarketplace.models.journal import JournalEntry
from nftmarketplace.models.listing import Listing, ListingKey

__all__ = [
    # chain
    "ZERO_ADDRESS",
    "Receipt",
    # events
    "ContractEvent",
    "ItemListed",
    "ItemCancel",
    "ItemBought",
    "Transfer",
    "Approval",
    "ApprovalForAll",
    "EVENT_TYPE_MAP",
    "decode_event",
    # listing
    "Listing",
    "ListingKey",
    # journal
    "JournalEntry",
    # deployment
    "DeploymentRecord",
]
