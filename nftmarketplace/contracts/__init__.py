"""Contracts that can be deployed on the local chain.

``CONTRACT_TYPES`` maps contract names to their classes; deployments and
journal replay resolve contracts through it.
"""

from nftmarketplace.contracts.base import Contract, external, payable, view
from nftmarketplace.contracts.basic_nft import BasicNft
from nftmarketplace.contracts.nft_marketplace import NftMarketplace

CONTRACT_TYPES: dict[str, type[Contract]] = {
    NftMarketplace.contract_name: NftMarketplace,
    BasicNft.contract_name: BasicNft,
}

__all__ = [
    "CONTRACT_TYPES",
    "BasicNft",
    "Contract",
    "NftMarketplace",
    "external",
    "payable",
    "view",
]
