"""Shipped deploy scripts. Importing this package registers them."""

from nftmarketplace.deploy.scripts import d01_nft_marketplace, d02_basic_nft

__all__ = ["d01_nft_marketplace", "d02_basic_nft"]
