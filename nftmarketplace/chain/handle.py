"""Signer-bound contract handles.

A ``ContractHandle`` exposes a deployed contract's external methods as
Python methods bound to one signer: views return their value, every other
method sends a transaction and returns its ``Receipt``.

>>> marketplace = deployments.get_contract("NftMarketplace")   # doctest: +SKIP
>>> marketplace.connect(user).buy_item(nft.address, 0, value=price)  # doctest: +SKIP
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from nftmarketplace.contracts.base import VIEW, mutability_of

if TYPE_CHECKING:
    from nftmarketplace.chain.runtime import Chain
    from nftmarketplace.contracts.base import Contract


class ContractHandle:
    """A deployed contract seen through one signer.

    Parameters
    ----------
    chain:
        The chain the contract lives on.
    address:
        The contract's address.
    signer:
        Account used as ``msg_sender`` for calls made through this handle.
    """

    def __init__(self, chain: Chain, address: str, signer: str) -> None:
        self._chain = chain
        self.address = address
        self.signer = signer

    @property
    def contract(self) -> Contract:
        return self._chain.get_contract(self.address)

    def connect(self, signer: str) -> ContractHandle:
        """Return a handle to the same contract for another signer."""
        return ContractHandle(self._chain, self.address, signer)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        contract = self.contract
        mutability = mutability_of(getattr(contract, name, None))
        if mutability is None:
            raise AttributeError(
                f"{contract.contract_name} has no external method {name!r}"
            )

        if mutability == VIEW:

            def _call(*args: Any) -> Any:
                return self._chain.call(self.address, name, *args, sender=self.signer)

            return _call

        def _send(*args: Any, value: int = 0) -> Any:
            return self._chain.transact(
                self.address, name, *args, sender=self.signer, value=value
            )

        return _send

    def __repr__(self) -> str:
        return f"ContractHandle({self.contract.contract_name} at {self.address}, signer={self.signer})"
