"""Resolve and install the oxlint JS plugins a matrix command needs."""

from __future__ import annotations

import logging
from typing import Optional

from constants import Constants
from plugins.allowlist import filter_installable
from plugins.collector import collect_specifiers
from plugins.installer import InstallResult, PeerLookup, install_packages

logger = logging.getLogger(__name__)


def prepare_plugins(
    command: Optional[str],
    cwd: str,
    *,
    npm_bin: str = Constants.NPM_BIN,
    registry_url: str = Constants.REGISTRY_URL_NPM,
    dry_run: bool = False,
    peer_lookup: Optional[PeerLookup] = None,
) -> Optional[InstallResult]:
    """Collect, filter and install plugins for one matrix command.

    Returns:
        The InstallResult, or None when there was nothing to install.

    Raises:
        PluginInstallError: On any fatal installation problem.
    """
    specifiers = collect_specifiers(command, cwd)
    if specifiers:
        logger.info("JS plugins detected: %s", ", ".join(sorted(specifiers)))

    plan = filter_installable(specifiers)
    if not plan:
        logger.info("No plugin packages to install.")
        return None

    return install_packages(
        plan,
        cwd,
        npm_bin=npm_bin,
        registry_url=registry_url,
        dry_run=dry_run,
        peer_lookup=peer_lookup,
    )
