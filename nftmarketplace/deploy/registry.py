"""Deploy script registry — tagged, ordered deployment steps.

Deploy scripts are plain functions taking a ``Deployments`` object,
registered with ``@deploy_script``. Their ids sort in execution order
(``"01-..."``, ``"02-..."``) and their tags select which scripts a fixture
runs, the way ``deployments.fixture(["all"])`` does.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from nftmarketplace.deploy.deployments import Deployments

DeployFunc = Callable[["Deployments"], None]


class DeployScript(BaseModel):
    """A registered deploy step."""

    model_config = ConfigDict(frozen=True)

    script_id: str
    func: Callable[..., None]
    tags: list[str] = []

    def matches(self, tags: list[str] | None) -> bool:
        return tags is None or bool(set(tags) & set(self.tags))


_SCRIPTS: dict[str, DeployScript] = {}


def deploy_script(script_id: str, tags: list[str]) -> Callable[[DeployFunc], DeployFunc]:
    """Register the decorated function as deploy step ``script_id``."""

    def _register(func: DeployFunc) -> DeployFunc:
        if script_id in _SCRIPTS and _SCRIPTS[script_id].func is not func:
            raise ValueError(f"Deploy script {script_id!r} is already registered")
        _SCRIPTS[script_id] = DeployScript(script_id=script_id, func=func, tags=tags)
        return func

    return _register


def registered_scripts() -> list[DeployScript]:
    """Every registered script, in execution order."""
    # Importing the package registers the shipped scripts.
    import nftmarketplace.deploy.scripts  # noqa: F401

    return [_SCRIPTS[script_id] for script_id in sorted(_SCRIPTS)]


def select_scripts(tags: list[str] | None = None) -> list[DeployScript]:
    """Scripts carrying at least one of ``tags`` (all scripts if None)."""
    return [script for script in registered_scripts() if script.matches(tags)]
