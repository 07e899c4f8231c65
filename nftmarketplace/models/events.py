"""Contract events emitted for external observers and indexers.

Every event is a frozen Pydantic model. The chain runtime stamps the
emitting contract ``address``, ``block_number`` and ``tx_hash`` when the
event is logged into a receipt.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class ContractEvent(BaseModel):
    """Base fields shared by all logged events."""

    model_config = ConfigDict(frozen=True)

    event_name: str
    address: str = ""  # emitting contract
    block_number: int = 0
    tx_hash: str = ""
    log_index: int = 0


# ---------------------------------------------------------------------------
# Marketplace events
# ---------------------------------------------------------------------------


class ItemListed(ContractEvent):
    """A token was listed, or its listing price was updated."""

    event_name: str = "ItemListed"
    seller: str
    nft_address: str
    token_id: int
    price: int


class ItemCancel(ContractEvent):
    """A listing was removed by its seller."""

    event_name: str = "ItemCancel"
    seller: str
    nft_address: str
    token_id: int


class ItemBought(ContractEvent):
    """A listed token was bought."""

    event_name: str = "ItemBought"
    buyer: str
    nft_address: str
    token_id: int
    price: int


# ---------------------------------------------------------------------------
# ERC-721 events
# ---------------------------------------------------------------------------


class Transfer(ContractEvent):
    event_name: str = "Transfer"
    from_address: str
    to_address: str
    token_id: int


class Approval(ContractEvent):
    event_name: str = "Approval"
    owner: str
    approved: str
    token_id: int


class ApprovalForAll(ContractEvent):
    event_name: str = "ApprovalForAll"
    owner: str
    operator: str
    approved: bool


EVENT_TYPE_MAP: dict[str, type[ContractEvent]] = {
    "ItemListed": ItemListed,
    "ItemCancel": ItemCancel,
    "ItemBought": ItemBought,
    "Transfer": Transfer,
    "Approval": Approval,
    "ApprovalForAll": ApprovalForAll,
}


def decode_event(data: dict[str, Any]) -> ContractEvent:
    """Rebuild a typed event from its JSON dump.

    Unknown event names fall back to the ``ContractEvent`` base model.
    """
    model_cls = EVENT_TYPE_MAP.get(data.get("event_name", ""), ContractEvent)
    return model_cls.model_validate(data)
