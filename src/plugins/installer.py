"""Install validated plugin packages with npm.

The primary attempt runs ``npm install`` directly in the target checkout.
Checkouts of pnpm/yarn/bun monorepos often declare ``workspace:``
dependencies that npm cannot resolve; in that case the packages (plus
their peer dependencies) are installed into a clean temporary directory
and merged into the target's ``node_modules`` without replacing anything
already there. Lifecycle scripts are never run.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from plugins.errors import InstallerFailure, InvalidSpecifierError
from registry.peers import get_peer_dependencies

logger = logging.getLogger(__name__)

_WORKSPACE_FAILURE_RE = re.compile("|".join(Constants.WORKSPACE_FAILURE_PATTERNS))
# Independent of plugins.allowlist; applied to every npm install batch.
_PLUGIN_PACKAGE_RE = re.compile(r"eslint-plugin-[\w-]+|@[\w-]+/eslint-plugin(?:-[\w-]+)?", re.ASCII)
# npm package names as they appear in peerDependencies; no leading dash or dot
_NPM_NAME_RE = re.compile(r"(?:@\w[\w.-]*/)?\w[\w.-]*", re.ASCII)

PeerLookup = Callable[[str], Optional[List[str]]]


@dataclass
class InstallResult:
    """Outcome of a successful installation."""

    packages: List[str]
    target_dir: str
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    used_fallback: bool = False
    peers: List[str] = field(default_factory=list)
    merged: List[str] = field(default_factory=list)


def is_workspace_protocol_failure(output: str) -> bool:
    """True when npm output shows it choked on a ``workspace:`` dependency."""
    return bool(_WORKSPACE_FAILURE_RE.search(output or ""))


def _is_plugin_package(name: object) -> bool:
    if not isinstance(name, str):
        return False
    return name == Constants.PLUGIN_RUNTIME_PACKAGE or bool(_PLUGIN_PACKAGE_RE.fullmatch(name))


def verify_install_batch(packages: Iterable[str], peers: Iterable[str] = ()) -> List[str]:
    """Check every name about to be handed to npm.

    Requested packages must be plugin packages (or the plugin runtime);
    discovered peers must be plain npm package names.

    Returns:
        The combined list, requested packages first.

    Raises:
        InvalidSpecifierError: Listing every offender; nothing is installed.
    """
    requested = list(packages)
    extra = list(peers)
    invalid = [pkg for pkg in requested if not _is_plugin_package(pkg)]
    invalid += [peer for peer in extra if not isinstance(peer, str) or not _NPM_NAME_RE.fullmatch(peer)]
    if invalid:
        raise InvalidSpecifierError(invalid)
    return requested + extra


def _npm_env(registry_url: str) -> Dict[str, str]:
    env = os.environ.copy()
    if registry_url.rstrip("/") != Constants.REGISTRY_URL_NPM.rstrip("/"):
        logger.info("Using npm registry %s", safe_url(registry_url))
        env["npm_config_registry"] = registry_url
    return env


def run_npm(
    args: List[str],
    cwd: str,
    *,
    npm_bin: str = Constants.NPM_BIN,
    registry_url: str = Constants.REGISTRY_URL_NPM,
) -> subprocess.CompletedProcess:
    """Run npm with captured output, then echo that output.

    Raises:
        InstallerFailure: If npm could not be started at all.
    """
    cmd = [npm_bin] + args
    logger.info("Running: %s (in %s)", " ".join(cmd), cwd)
    with Timer() as timer:
        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                cwd=cwd,
                env=_npm_env(registry_url),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            message = str(exc)
            raise InstallerFailure(
                f"Could not start {npm_bin}: {message}",
                workspace_protocol=is_workspace_protocol_failure(message),
            ) from exc

    if result.stdout:
        sys.stdout.write(result.stdout)
    if result.stderr:
        sys.stderr.write(result.stderr)
    if is_debug_enabled(logger):
        logger.debug(
            "npm finished",
            extra=extra_context(
                event="subprocess_exit",
                component="installer",
                action=args[0] if args else None,
                returncode=result.returncode,
                duration_ms=timer.duration_ms(),
            ),
        )
    return result


def discover_peer_dependencies(
    packages: Iterable[str],
    lookup: PeerLookup = get_peer_dependencies,
) -> List[str]:
    """Collect the peer dependency names of ``packages``.

    Lookup failures for one package are logged and skipped. Names already in
    ``packages`` and names that are not plain npm package names are left out.
    """
    requested = list(packages)
    peers = set()
    for pkg in requested:
        found = lookup(pkg)
        if found is None:
            logger.warning("Could not read peer dependencies of %s; continuing without them", pkg)
            continue
        for peer in found:
            if not _NPM_NAME_RE.fullmatch(peer):
                logger.warning("Ignoring malformed peer dependency %r of %s", peer, pkg)
                continue
            peers.add(peer)
    discovered = sorted(peers - set(requested))
    if discovered:
        logger.info("Discovered peer dependencies: %s", ", ".join(discovered))
    return discovered


def _copy_entry(src: str, dest: str) -> None:
    if os.path.islink(src):
        os.symlink(os.readlink(src), dest)
    elif os.path.isdir(src):
        shutil.copytree(src, dest, symlinks=True)
    else:
        shutil.copy2(src, dest)


def merge_node_modules(src_dir: str, dest_dir: str) -> List[str]:
    """Copy packages from ``src_dir`` into ``dest_dir`` without overwriting.

    Scope directories (``@scope``) and ``.bin`` are merged entry by entry;
    any package or link already present in ``dest_dir`` wins. Other hidden
    files (npm's ``.package-lock.json``) are not copied.

    Returns:
        Names (relative to ``dest_dir``) that were copied.
    """
    merged: List[str] = []
    if not os.path.isdir(src_dir):
        return merged
    os.makedirs(dest_dir, exist_ok=True)

    for name in sorted(os.listdir(src_dir)):
        src = os.path.join(src_dir, name)
        dest = os.path.join(dest_dir, name)
        nested = name == ".bin" or (name.startswith("@") and os.path.isdir(src) and not os.path.islink(src))
        if nested:
            merged.extend(name + "/" + child for child in merge_node_modules(src, dest))
            continue
        if name.startswith("."):
            continue
        if os.path.lexists(dest):
            logger.debug("Keeping existing %s", dest)
            continue
        _copy_entry(src, dest)
        merged.append(name)
    return merged


def _remove_temp_dir(path: str) -> None:
    try:
        shutil.rmtree(path)
    except OSError as exc:
        logger.warning("Could not remove temporary directory %s: %s", path, exc)


def install_isolated(
    packages: List[str],
    target_dir: str,
    *,
    npm_bin: str = Constants.NPM_BIN,
    registry_url: str = Constants.REGISTRY_URL_NPM,
    peer_lookup: Optional[PeerLookup] = None,
) -> InstallResult:
    """Install into a fresh temporary directory and merge into ``target_dir``.

    Raises:
        InstallerFailure: If the temporary install fails.
    """
    if peer_lookup is None:
        peer_lookup = lambda name: get_peer_dependencies(name, registry_url)  # noqa: E731
    peers = discover_peer_dependencies(packages, peer_lookup)
    full_list = verify_install_batch(packages, peers)

    try:
        temp_dir = tempfile.mkdtemp(prefix=Constants.TEMP_DIR_PREFIX)
    except OSError as exc:
        raise InstallerFailure(f"Could not create a temporary directory: {exc}") from exc
    logger.info("Installing %s in temporary directory %s", ", ".join(full_list), temp_dir)
    dest = os.path.join(target_dir, Constants.NODE_MODULES)
    try:
        try:
            with open(os.path.join(temp_dir, "package.json"), "w", encoding="utf-8") as f:
                json.dump({"name": "oxc-matrix-plugins", "private": True}, f)
        except OSError as exc:
            raise InstallerFailure(f"Writing package.json in {temp_dir} failed: {exc}") from exc

        result = run_npm(
            ["install"] + Constants.NPM_ISOLATED_INSTALL_FLAGS + full_list,
            temp_dir,
            npm_bin=npm_bin,
            registry_url=registry_url,
        )
        if result.returncode != 0:
            raise InstallerFailure(
                f"npm install in temporary directory failed with exit code {result.returncode}",
                exit_code=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        try:
            merged = merge_node_modules(os.path.join(temp_dir, Constants.NODE_MODULES), dest)
        except OSError as exc:
            raise InstallerFailure(f"Merging into {dest} failed: {exc}") from exc
        logger.info("Merged %d entries into %s", len(merged), dest)
    finally:
        _remove_temp_dir(temp_dir)

    return InstallResult(
        packages=full_list,
        target_dir=target_dir,
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        used_fallback=True,
        peers=peers,
        merged=merged,
    )


def install_packages(
    packages: Iterable[str],
    target_dir: str,
    *,
    npm_bin: str = Constants.NPM_BIN,
    registry_url: str = Constants.REGISTRY_URL_NPM,
    dry_run: bool = False,
    peer_lookup: Optional[PeerLookup] = None,
) -> Optional[InstallResult]:
    """Install plugin packages into ``target_dir/node_modules``.

    Args:
        packages: Package names; all must pass the allowlist.
        target_dir: Checkout to install into.
        npm_bin: npm executable.
        registry_url: npm registry base URL.
        dry_run: Log the command instead of running it.
        peer_lookup: Peer dependency lookup used by the fallback.

    Returns:
        InstallResult, or None when there was nothing to do.

    Raises:
        InvalidSpecifierError: If any package fails the allowlist.
        InstallerFailure: If npm fails for a reason the fallback can't fix,
            or the fallback itself fails.
    """
    batch = verify_install_batch(packages)
    if not batch:
        return None

    args = ["install"] + Constants.NPM_INSTALL_FLAGS + batch
    if dry_run:
        logger.info("[dryRun] %s %s (in %s)", npm_bin, " ".join(args), target_dir)
        return None

    logger.info("Installing plugin packages into %s: %s", target_dir, ", ".join(batch))
    try:
        result = run_npm(args, target_dir, npm_bin=npm_bin, registry_url=registry_url)
    except InstallerFailure as exc:
        if not exc.workspace_protocol:
            raise
        logger.warning("npm could not start (%s); retrying in a temporary directory", exc)
        return install_isolated(
            batch, target_dir, npm_bin=npm_bin, registry_url=registry_url, peer_lookup=peer_lookup
        )

    if result.returncode == 0:
        logger.info("Installed plugin packages: %s", ", ".join(batch))
        return InstallResult(
            packages=batch,
            target_dir=target_dir,
            returncode=0,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    if is_workspace_protocol_failure(result.stdout + "\n" + result.stderr):
        logger.warning(
            "npm install exited with %s on a workspace: dependency; retrying in a temporary directory",
            result.returncode,
        )
        return install_isolated(
            batch, target_dir, npm_bin=npm_bin, registry_url=registry_url, peer_lookup=peer_lookup
        )

    raise InstallerFailure(
        f"npm install failed with exit code {result.returncode}",
        exit_code=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
    )
