"""Deployment framework: named deployments, tagged scripts, fixtures."""

from nftmarketplace.deploy.deployments import Deployments, DeploymentError
from nftmarketplace.deploy.registry import DeployScript, deploy_script, select_scripts

__all__ = ["Deployments", "DeploymentError", "DeployScript", "deploy_script", "select_scripts"]
