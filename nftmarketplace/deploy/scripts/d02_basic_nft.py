"""Deploy the BasicNft token used as the marketplace's test asset."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nftmarketplace.deploy.registry import deploy_script

if TYPE_CHECKING:
    from nftmarketplace.deploy.deployments import Deployments

logger = logging.getLogger(__name__)


@deploy_script("02-deploy-basic-nft", tags=["all", "basicnft"])
def deploy_basic_nft(deployments: Deployments) -> None:
    deployer = deployments.get_named_accounts()["deployer"]

    record = deployments.deploy(
        "BasicNft",
        from_=deployer,
        args=[],
        log=True,
        wait_confirmations=deployments.settings.block_confirmations or 1,
    )
    if deployments.settings.is_development_chain:
        logger.info("BasicNft ready for local testing at %s", record.address)
