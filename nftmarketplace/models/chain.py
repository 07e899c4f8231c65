"""Chain-level records: addresses and transaction receipts."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from nftmarketplace.models.events import ContractEvent

ZERO_ADDRESS = "0x" + "0" * 40


class Receipt(BaseModel):
    """Receipt of a mined transaction.

    ``confirmations`` is not stored here; it depends on the current block
    height and is computed by the chain (``Chain.confirmations``).
    """

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    block_number: int
    from_address: str
    to_address: str | None = None  # None for contract creation
    contract_address: str | None = None
    status: int = 1  # 1 = success, 0 = reverted
    gas_used: int = 0
    effective_gas_price: int = 0
    value: int = 0
    logs: list[ContractEvent] = Field(default_factory=list)

    @property
    def gas_cost(self) -> int:
        return self.gas_used * self.effective_gas_price

    def events_named(self, event_name: str) -> list[ContractEvent]:
        """Return the logs whose ``event_name`` matches."""
        return [log for log in self.logs if log.event_name == event_name]
