"""Deploy the NftMarketplace contract (no constructor arguments)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nftmarketplace.deploy.registry import deploy_script

if TYPE_CHECKING:
    from nftmarketplace.deploy.deployments import Deployments


@deploy_script("01-deploy-nft-marketplace", tags=["all", "nftmarketplace"])
def deploy_nft_marketplace(deployments: Deployments) -> None:
    deployer = deployments.get_named_accounts()["deployer"]

    args: list = []

    deployments.deploy(
        "NftMarketplace",
        from_=deployer,
        args=args,
        log=True,
        wait_confirmations=deployments.settings.block_confirmations or 1,
    )
