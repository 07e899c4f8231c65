"""Contract base class and ABI mutability markers.

Only methods marked with ``@external``, ``@payable`` or ``@view`` can be
reached through the chain runtime; everything else on a contract is
internal. A contract keeps all of its storage in ``self.state`` so the
runtime can snapshot and restore it around a transaction.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

if TYPE_CHECKING:
    from nftmarketplace.chain.runtime import Chain
    from nftmarketplace.models.events import ContractEvent

F = TypeVar("F", bound=Callable[..., Any])

NONPAYABLE = "nonpayable"
PAYABLE = "payable"
VIEW = "view"


def external(fn: F) -> F:
    """Mark a state-changing method that rejects attached value."""
    fn.mutability = NONPAYABLE  # type: ignore[attr-defined]
    return fn


def payable(fn: F) -> F:
    """Mark a state-changing method that accepts attached value."""
    fn.mutability = PAYABLE  # type: ignore[attr-defined]
    return fn


def view(fn: F) -> F:
    """Mark a read-only method."""
    fn.mutability = VIEW  # type: ignore[attr-defined]
    return fn


def mutability_of(fn: Any) -> str | None:
    """Return the ABI mutability of a contract attribute, or None if internal."""
    return getattr(fn, "mutability", None)


class Contract:
    """A contract instance living at ``address`` on a ``Chain``.

    Subclasses set ``contract_name`` and keep their storage in ``state``.
    Inside an external method, ``msg_sender`` and ``msg_value`` describe
    the current call frame.
    """

    contract_name: ClassVar[str] = "Contract"

    def __init__(self, chain: Chain, address: str) -> None:
        self.chain = chain
        self.address = address
        self.state: Any = None

    def constructor(self, *args: Any) -> None:
        """Run once at deployment, inside the deployer's call frame."""

    # -- Call context -------------------------------------------------------

    @property
    def msg_sender(self) -> str:
        return self.chain.msg_sender

    @property
    def msg_value(self) -> int:
        return self.chain.msg_value

    @property
    def balance(self) -> int:
        return self.chain.balance_of(self.address)

    # -- Interactions -------------------------------------------------------

    def emit(self, event: ContractEvent) -> None:
        self.chain.log_event(self.address, event)

    def call_contract(self, target: str, method: str, *args: Any, value: int = 0) -> Any:
        """Call another contract with this contract as ``msg_sender``."""
        return self.chain.call_contract(self.address, target, method, *args, value=value)

    def send_value(self, to: str, amount: int) -> None:
        self.chain.send_value(self.address, to, amount)

    def __repr__(self) -> str:
        return f"{self.contract_name}({self.address})"
