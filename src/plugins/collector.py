"""Collect plugin specifiers referenced by a matrix command line."""

from __future__ import annotations

import logging
import os
import re
from typing import List, Optional, Set

from constants import Constants
from plugins.allowlist import is_path_specifier
from plugins.config_parser import parse_js_plugins

logger = logging.getLogger(__name__)

# -c <arg> / --config <arg> / --config=<arg>; <arg> is '...', "..." or bare
_CONFIG_FLAG_RE = re.compile(
    r"""(?:^|\s)(?:-c\s+|--config(?:\s+|=))(?:'([^']*)'|"([^"]*)"|([^\s'"]+))"""
)
_SKIP_RE = re.compile(r"\b%s\b" % re.escape(Constants.SKIP_WORD))


def is_skipped(command: str) -> bool:
    """Matrix entries are disabled with a command such as ``echo "skip"``."""
    return bool(_SKIP_RE.search(command))


def find_config_args(command: str) -> List[str]:
    """Return every ``-c``/``--config`` argument in command order, unquoted."""
    found = []
    for match in _CONFIG_FLAG_RE.finditer(command):
        value = next((group for group in match.groups() if group is not None), "")
        if value:
            found.append(value)
    return found


def find_default_config(cwd: str) -> Optional[str]:
    """Return the first default config file present in ``cwd``, if any."""
    for name in Constants.DEFAULT_CONFIG_FILES:
        candidate = os.path.join(cwd, name)
        if os.path.isfile(candidate):
            return candidate
    return None


def collect_specifiers(command: Optional[str], cwd: str) -> Set[str]:
    """Gather every plugin specifier a matrix command refers to.

    Args:
        command: Shell command line of the matrix entry; empty means none.
        cwd: Directory the command runs in; config paths resolve against it.

    Returns:
        Set of trimmed specifiers. Contains the plugin runtime package when
        any specifier is a local path.
    """
    specifiers: Set[str] = set()
    if not command:
        logger.debug("No command given; nothing to collect")
        return specifiers
    if is_skipped(command):
        logger.info("Command is marked skip; not collecting plugins: %s", command)
        return specifiers

    for raw_path in find_config_args(command):
        config_path = os.path.abspath(os.path.join(cwd, raw_path))
        logger.debug("Reading config passed on command line: %s", config_path)
        specifiers.update(parse_js_plugins(config_path))

    if not specifiers:
        default_config = find_default_config(cwd)
        if default_config:
            logger.debug("Falling back to default config: %s", default_config)
            specifiers.update(parse_js_plugins(default_config))

    if any(is_path_specifier(spec) for spec in specifiers):
        logger.debug("Local plugin found; adding %s", Constants.PLUGIN_RUNTIME_PACKAGE)
        specifiers.add(Constants.PLUGIN_RUNTIME_PACKAGE)

    return specifiers
