"""Matrix of real-world repositories used to exercise oxlint and oxfmt."""

from __future__ import annotations

import json
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from constants import Constants, Tools
from artifact import install_artifact
from plugins.errors import PluginInstallError
from plugins.prepare import prepare_plugins

logger = logging.getLogger(__name__)

_BINARY_PREFIX_RE = re.compile(r"^(oxfmt|oxlint|\./oxlint)")


@dataclass(frozen=True)
class MatrixEntry:
    """One repository checkout and the command run against it."""

    repository: str
    path: str
    ref: str
    command: str
    options: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatrixEntry":
        return cls(
            repository=data["repository"],
            path=data["path"],
            ref=data["ref"],
            command=data["command"],
            options=data.get("options"),
        )


def default_matrix_file(tool: str) -> str:
    return Constants.MATRIX_FILE_TEMPLATE.format(tool=tool)


def load_matrix(matrix_file: str) -> List[MatrixEntry]:
    """Load matrix entries from a JSON list.

    Raises:
        OSError, ValueError, KeyError: If the file is missing or malformed.
    """
    with open(matrix_file, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{matrix_file}: expected a JSON list of entries")
    return [MatrixEntry.from_dict(item) for item in data]


def clone_command(entry: MatrixEntry, repos_dir: str = Constants.REPOS_DIR) -> List[str]:
    return [
        "git", "clone",
        "--depth=1", "--filter=blob:none", "--no-tags",
        "-b", entry.ref,
        Constants.GIT_CLONE_URL.format(repository=entry.repository),
        os.path.join(repos_dir, entry.path),
    ]


def clone_all(entries: List[MatrixEntry], repos_dir: str = Constants.REPOS_DIR) -> int:
    """Shallow-clone every entry. Failures are logged and skipped.

    Returns:
        Number of entries that failed to clone.
    """
    failures = 0
    for entry in entries:
        cmd = clone_command(entry, repos_dir)
        logger.info("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, check=False)  # noqa: S603
        except OSError as exc:
            logger.error("Could not run git for %s: %s", entry.repository, exc)
            failures += 1
            continue
        if result.returncode != 0:
            logger.error("Cloning %s failed with exit code %s", entry.repository, result.returncode)
            failures += 1
            continue
        logger.info("Cloned %s", entry.repository)
    return failures


def substitute_binary(command: str, binary: str) -> str:
    """Point a leading ``oxlint``/``oxfmt``/``./oxlint`` at ``binary``."""
    return _BINARY_PREFIX_RE.sub(lambda _m: binary, command, count=1)


def write_formatter_config(repo_path: str, options: Dict[str, Any]) -> str:
    config_path = os.path.join(repo_path, Constants.OXFMT_CONFIG_FILE)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(options, f, indent=2)
    logger.info("Created config at %s", config_path)
    return config_path


def run_entry(
    entry: MatrixEntry,
    tool: str,
    binary: str,
    extra_args: Optional[List[str]] = None,
    *,
    repos_dir: str = Constants.REPOS_DIR,
    npm_bin: str = Constants.NPM_BIN,
    registry_url: str = Constants.REGISTRY_URL_NPM,
) -> int:
    """Run the tool against one checkout and return the command's exit code.

    For oxlint, plugins are installed first; a failure there is logged and
    the command still runs.
    """
    repo_path = os.path.join(repos_dir, entry.path)
    if entry.options:
        write_formatter_config(repo_path, entry.options)

    command = substitute_binary(entry.command, binary)
    if tool == Tools.OXLINT.value:
        logger.info("Preparing oxlint jsPlugins in %s", repo_path)
        try:
            prepare_plugins(command, repo_path, npm_bin=npm_bin, registry_url=registry_url)
        except PluginInstallError as exc:
            logger.error("Error preparing oxlint jsPlugins: %s", exc)
        install_artifact(repo_path, npm_bin)

    full_command = " ".join([command] + list(extra_args or []))
    logger.info("cd %s && %s", repo_path, full_command)
    result = subprocess.run(full_command, shell=True, cwd=repo_path, check=False)  # noqa: S602
    return result.returncode


def run_matrix(
    entries: List[MatrixEntry],
    tool: str,
    binary: str,
    extra_args: Optional[List[str]] = None,
    **kwargs: Any,
) -> int:
    """Run every entry in order, stopping at the first failing command."""
    for entry in entries:
        code = run_entry(entry, tool, binary, extra_args, **kwargs)
        if code != 0:
            logger.error("%s failed on %s with exit code %s", tool, entry.repository, code)
            return code
    return 0
