"""Place a prebuilt oxlint package into a checkout's node_modules.

Local JS plugins import ``oxlint`` at runtime, so the binary under test has
to be resolvable from the checkout as a regular package.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional

from constants import Constants

logger = logging.getLogger(__name__)


@dataclass
class ArtifactSource:
    """Where a usable oxlint build was found."""

    kind: str  # "artifact", "install" or "global"
    base: str
    package_json: str
    dist_dir: str


def _candidate_bases(cwd: str):
    current = os.path.abspath(cwd)
    for _ in range(Constants.ARTIFACT_SEARCH_DEPTH):
        for name in Constants.ARTIFACT_DIR_NAMES:
            yield os.path.join(current, name)
        current = os.path.dirname(current)


def _global_npm_root(npm_bin: str) -> Optional[str]:
    try:
        result = subprocess.run(  # noqa: S603
            [npm_bin, "root", "-g"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        logger.debug("Could not query global npm root: %s", exc)
        return None
    root = result.stdout.strip()
    return root if result.returncode == 0 and root else None


def find_artifact(cwd: str, npm_bin: str = Constants.NPM_BIN) -> Optional[ArtifactSource]:
    """Search the usual CI locations for a built oxlint package.

    Checks ``oxlint-package`` (artifact layout: ``npm/oxlint/package.json``
    plus ``apps/oxlint/dist``) and ``oxlint-install`` (``package.json`` plus
    ``dist``) in ``cwd`` and its parents, then the global npm install.
    """
    for base in _candidate_bases(cwd):
        package_json = os.path.join(base, "npm", Constants.BINARY_PACKAGE, "package.json")
        dist_dir = os.path.join(base, "apps", Constants.BINARY_PACKAGE, "dist")
        if os.path.isfile(package_json) and os.path.isdir(dist_dir):
            return ArtifactSource("artifact", base, package_json, dist_dir)
        package_json = os.path.join(base, "package.json")
        dist_dir = os.path.join(base, "dist")
        if os.path.isfile(package_json) and os.path.isdir(dist_dir):
            return ArtifactSource("install", base, package_json, dist_dir)

    global_root = _global_npm_root(npm_bin)
    if global_root:
        base = os.path.join(global_root, Constants.BINARY_PACKAGE)
        package_json = os.path.join(base, "package.json")
        dist_dir = os.path.join(base, "dist")
        if os.path.isfile(package_json) and os.path.isdir(dist_dir):
            return ArtifactSource("global", base, package_json, dist_dir)
    return None


def install_artifact(cwd: str, npm_bin: str = Constants.NPM_BIN) -> bool:
    """Copy a found oxlint build to ``cwd/node_modules/oxlint``.

    An existing ``node_modules/oxlint`` is left alone. Copy errors are
    logged, never raised.

    Returns:
        True if a copy was made.
    """
    dest = os.path.join(cwd, Constants.NODE_MODULES, Constants.BINARY_PACKAGE)
    if os.path.lexists(dest):
        logger.info("%s already exists; leaving it in place", dest)
        return False

    source = find_artifact(cwd, npm_bin)
    if source is None:
        logger.info("No built `oxlint` artifact found to install.")
        return False

    try:
        os.makedirs(dest)
        shutil.copyfile(source.package_json, os.path.join(dest, "package.json"))
        shutil.copytree(source.dist_dir, os.path.join(dest, "dist"))
        bin_dir = os.path.join(source.base, "bin")
        if os.path.isdir(bin_dir):
            shutil.copytree(bin_dir, os.path.join(dest, "bin"))
    except OSError as exc:
        logger.warning("Failed to copy built oxlint: %s", exc)
        return False

    logger.info("Copied built oxlint (%s) from %s => %s", source.kind, source.base, dest)
    return True
