"""nftmarketplace: an NFT marketplace ledger on a local, journaled chain.

  - Marketplace Ledger: list, cancel, update, buy and withdraw, with
    checks-effects-interactions ordering and named revert errors
  - Local chain runtime with atomic, snapshot-rolled-back transactions
  - BasicNft ERC-721 token as the ownership/approval oracle
  - hardhat-deploy style tagged deploy scripts and fixtures
  - Append-only, hash-chained SQLite transaction journal with replay
"""

__version__ = "0.1.0"
__description__ = "NFT marketplace ledger on a local, journaled chain"

from nftmarketplace.chain.runtime import Chain
from nftmarketplace.core.marketplace import MarketplaceLedger
from nftmarketplace.core.state import MarketplaceState
from nftmarketplace.deploy.deployments import Deployments

__all__ = ["Chain", "Deployments", "MarketplaceLedger", "MarketplaceState", "__version__"]
