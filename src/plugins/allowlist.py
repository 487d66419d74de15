"""Allowlist of plugin specifiers that may be handed to the package manager.

Specifiers come from configuration files of arbitrary cloned repositories.
Only names shaped like ESLint plugin packages (plus the plugin runtime
package) ever reach ``npm install``.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List

from constants import Constants

logger = logging.getLogger(__name__)

_UNSCOPED_PLUGIN_RE = re.compile(r"^eslint-plugin-[\w-]+$", re.ASCII)
_SCOPED_PLUGIN_RE = re.compile(r"^@[\w-]+/eslint-plugin(?:-[\w-]+)?$", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s")


def is_path_specifier(spec: str) -> bool:
    """True for filesystem references (``./x``, ``../x`` or ``/x``)."""
    return spec.startswith(("./", "../", "/"))


def is_allowed_specifier(spec: object) -> bool:
    """True when ``spec`` is a package name the installer may receive."""
    if not isinstance(spec, str) or not spec:
        return False
    if _WHITESPACE_RE.search(spec):
        return False
    if is_path_specifier(spec):
        return False
    if spec == Constants.PLUGIN_RUNTIME_PACKAGE:
        return True
    return bool(_UNSCOPED_PLUGIN_RE.match(spec) or _SCOPED_PLUGIN_RE.match(spec))


def filter_installable(specifiers: Iterable[object]) -> List[str]:
    """Keep the installable specifiers, deduplicated after trimming.

    Args:
        specifiers: Raw specifiers; non-strings are discarded.

    Returns:
        Sorted list of unique accepted package names. Local plugin paths are
        dropped but pull in the plugin runtime package.
    """
    accepted = set()
    saw_local = False
    for raw in specifiers:
        if not isinstance(raw, str):
            logger.info("Discarding non-string plugin specifier: %r", raw)
            continue
        spec = raw.strip()
        if spec in accepted:
            continue
        if is_allowed_specifier(spec):
            accepted.add(spec)
        elif is_path_specifier(spec):
            logger.info("Skipping local plugin path (not installable): %s", spec)
            saw_local = True
        else:
            logger.info("Discarding plugin specifier outside the allowlist: %r", spec)
    if saw_local:
        accepted.add(Constants.PLUGIN_RUNTIME_PACKAGE)
    return sorted(accepted)
