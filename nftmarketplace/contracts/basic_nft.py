"""BasicNft — a minimal ERC-721 used as the marketplace's ownership oracle.

Anyone can mint; every token shares one metadata URI. Reverts carry the
OpenZeppelin ERC-721 reason strings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nftmarketplace.contracts.base import Contract, external, view
from nftmarketplace.core.errors import RevertError
from nftmarketplace.models.chain import ZERO_ADDRESS
from nftmarketplace.models.events import Approval, ApprovalForAll, Transfer

if TYPE_CHECKING:
    from nftmarketplace.chain.runtime import Chain

TOKEN_URI = (
    "ipfs://bafybeig37ioir76s7mg5oobetncojcm3c3hxasyd4rvid4jqhy4gkaheg4/"
    "?filename=0-PUG.json"
)


class NftState:
    """Storage of a BasicNft contract."""

    def __init__(self) -> None:
        self.token_counter = 0
        self.owners: dict[int, str] = {}
        self.balances: dict[str, int] = {}
        self.token_approvals: dict[int, str] = {}
        self.operator_approvals: set[tuple[str, str]] = set()  # (owner, operator)


class BasicNft(Contract):
    contract_name = "BasicNft"
    name = "Dogie"
    symbol = "DOG"

    def __init__(self, chain: Chain, address: str) -> None:
        super().__init__(chain, address)
        self.state = NftState()

    # ------------------------------------------------------------------
    # Minting & metadata
    # ------------------------------------------------------------------

    @external
    def mint_nft(self) -> int:
        token_id = self.state.token_counter
        self._mint(self.msg_sender, token_id)
        self.state.token_counter += 1
        return token_id

    @view
    def token_uri(self, token_id: int) -> str:
        self._require_minted(token_id)
        return TOKEN_URI

    @view
    def get_token_counter(self) -> int:
        return self.state.token_counter

    # ------------------------------------------------------------------
    # ERC-721 reads
    # ------------------------------------------------------------------

    @view
    def owner_of(self, token_id: int) -> str:
        owner = self.state.owners.get(token_id)
        if owner is None:
            raise RevertError("ERC721: invalid token ID")
        return owner

    @view
    def balance_of(self, owner: str) -> int:
        if owner == ZERO_ADDRESS:
            raise RevertError("ERC721: address zero is not a valid owner")
        return self.state.balances.get(owner, 0)

    @view
    def get_approved(self, token_id: int) -> str:
        self._require_minted(token_id)
        return self.state.token_approvals.get(token_id, ZERO_ADDRESS)

    @view
    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return (owner, operator) in self.state.operator_approvals

    # ------------------------------------------------------------------
    # ERC-721 writes
    # ------------------------------------------------------------------

    @external
    def approve(self, to: str, token_id: int) -> None:
        owner = self.owner_of(token_id)
        if to == owner:
            raise RevertError("ERC721: approval to current owner")
        sender = self.msg_sender
        if sender != owner and not self.is_approved_for_all(owner, sender):
            raise RevertError(
                "ERC721: approve caller is not token owner or approved for all"
            )
        self._approve(to, token_id)

    @external
    def set_approval_for_all(self, operator: str, approved: bool) -> None:
        owner = self.msg_sender
        if owner == operator:
            raise RevertError("ERC721: approve to caller")
        if approved:
            self.state.operator_approvals.add((owner, operator))
        else:
            self.state.operator_approvals.discard((owner, operator))
        self.emit(ApprovalForAll(owner=owner, operator=operator, approved=approved))

    @external
    def transfer_from(self, from_address: str, to_address: str, token_id: int) -> None:
        if not self._is_approved_or_owner(self.msg_sender, token_id):
            raise RevertError("ERC721: caller is not token owner or approved")
        self._transfer(from_address, to_address, token_id)

    @external
    def safe_transfer_from(self, from_address: str, to_address: str, token_id: int) -> None:
        """Transfer, then require a contract recipient to accept the token."""
        operator = self.msg_sender
        self.transfer_from(from_address, to_address, token_id)
        if self.chain.is_contract(to_address):
            try:
                accepted = self.call_contract(
                    to_address, "on_erc721_received", operator, from_address, token_id
                )
            except RevertError as exc:
                raise RevertError(
                    "ERC721: transfer to non ERC721Receiver implementer"
                ) from exc
            if accepted is not True:
                raise RevertError("ERC721: transfer to non ERC721Receiver implementer")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_minted(self, token_id: int) -> None:
        if token_id not in self.state.owners:
            raise RevertError("ERC721: invalid token ID")

    def _is_approved_or_owner(self, spender: str, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return (
            spender == owner
            or self.is_approved_for_all(owner, spender)
            or self.state.token_approvals.get(token_id) == spender
        )

    def _approve(self, to: str, token_id: int) -> None:
        if to == ZERO_ADDRESS:
            self.state.token_approvals.pop(token_id, None)
        else:
            self.state.token_approvals[token_id] = to
        self.emit(Approval(owner=self.owner_of(token_id), approved=to, token_id=token_id))

    def _mint(self, to: str, token_id: int) -> None:
        if to == ZERO_ADDRESS:
            raise RevertError("ERC721: mint to the zero address")
        if token_id in self.state.owners:
            raise RevertError("ERC721: token already minted")
        self.state.balances[to] = self.state.balances.get(to, 0) + 1
        self.state.owners[token_id] = to
        self.emit(Transfer(from_address=ZERO_ADDRESS, to_address=to, token_id=token_id))

    def _transfer(self, from_address: str, to_address: str, token_id: int) -> None:
        if self.owner_of(token_id) != from_address:
            raise RevertError("ERC721: transfer from incorrect owner")
        if to_address == ZERO_ADDRESS:
            raise RevertError("ERC721: transfer to the zero address")
        self.state.token_approvals.pop(token_id, None)
        self.state.balances[from_address] -= 1
        self.state.balances[to_address] = self.state.balances.get(to_address, 0) + 1
        self.state.owners[token_id] = to_address
        self.emit(Transfer(from_address=from_address, to_address=to_address, token_id=token_id))
