"""Transaction journal entry model (append-only, hash-chained).

One entry per committed transaction. The journal is the audit trail of the
local chain and the input to deterministic replay.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JournalEntry(BaseModel):
    """A single committed transaction in the journal."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tx_hash: str
    block_number: int
    kind: str = "call"  # "call" or "deploy"
    contract: str  # contract name, e.g. "NftMarketplace"
    contract_address: str
    method: str  # method name, or the contract name for deployments
    caller: str
    value: int = 0
    args: list[Any] = []
    events: list[dict[str, Any]] = []  # JSON dumps of the logged events
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed on append, seals this entry
