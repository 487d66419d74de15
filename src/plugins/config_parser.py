"""Read ``jsPlugins`` declarations from oxlint configuration files.

Configuration files are JSON with comments (JSONC) and come from arbitrary
cloned repositories, so every failure here is logged and turned into an
empty result.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from constants import Constants

logger = logging.getLogger(__name__)


def strip_jsonc_comments(content: str) -> str:
    """Strip comments and trailing commas from JSONC content.

    Walks the text once, tracking whether the cursor is inside a string
    literal, so ``//`` and ``/*`` inside strings are preserved. Newlines
    inside block comments are kept so JSON error positions still line up.

    Args:
        content: JSONC string content

    Returns:
        JSON string with comments removed
    """
    out: List[str] = []
    i = 0
    length = len(content)
    in_string = False

    while i < length:
        ch = content[i]
        nxt = content[i + 1] if i + 1 < length else ""

        if in_string:
            out.append(ch)
            if ch == "\\" and nxt:
                out.append(nxt)
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif ch == "/" and nxt == "/":
            end = content.find("\n", i)
            i = length if end == -1 else end
        elif ch == "/" and nxt == "*":
            end = content.find("*/", i + 2)
            comment = content[i:] if end == -1 else content[i:end + 2]
            out.append("\n" * comment.count("\n"))
            i = length if end == -1 else end + 2
        elif ch in "}]":
            _drop_trailing_comma(out)
            out.append(ch)
            i += 1
        else:
            out.append(ch)
            i += 1

    return "".join(out)


def _drop_trailing_comma(out: List[str]) -> None:
    j = len(out) - 1
    while j >= 0 and (out[j] == "" or out[j].isspace()):
        j -= 1
    if j >= 0 and out[j] == ",":
        del out[j]


class EntryKind(Enum):
    """How a ``jsPlugins`` entry spelled its specifier."""

    STRING = "string"
    SPECIFIER = "specifier"
    NAME = "name"


@dataclass(frozen=True)
class PluginEntry:
    """One decoded ``jsPlugins`` entry."""

    kind: EntryKind
    specifier: str

    @classmethod
    def decode(cls, raw: Any) -> Optional["PluginEntry"]:
        """Decode a raw JSON value; returns None for unsupported shapes.

        Strings are used as-is. Objects use ``specifier`` when it is a
        string, otherwise ``name``.
        """
        if isinstance(raw, str):
            return cls._make(EntryKind.STRING, raw)
        if isinstance(raw, dict):
            if isinstance(raw.get("specifier"), str):
                return cls._make(EntryKind.SPECIFIER, raw["specifier"])
            if isinstance(raw.get("name"), str):
                return cls._make(EntryKind.NAME, raw["name"])
        return None

    @classmethod
    def _make(cls, kind: EntryKind, text: str) -> Optional["PluginEntry"]:
        text = text.strip()
        if not text:
            return None
        return cls(kind=kind, specifier=text)


def parse_plugin_entries(config_path: str) -> List[PluginEntry]:
    """Decode every supported ``jsPlugins`` entry in a config file.

    Args:
        config_path: Path to an oxlint JSONC config file.

    Returns:
        Decoded entries in file order; empty when the file is missing or
        unreadable, or has no ``jsPlugins`` list.
    """
    if not os.path.isfile(config_path):
        logger.debug("Config file not found: %s", config_path)
        return []

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = f.read()
        data = json.loads(strip_jsonc_comments(raw))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Could not parse oxlint config at %s: %s", config_path, exc)
        return []

    if not isinstance(data, dict):
        logger.warning("Ignoring oxlint config at %s: top level is not an object", config_path)
        return []

    plugins = data.get(Constants.PLUGINS_KEY)
    if not isinstance(plugins, list):
        return []

    entries: List[PluginEntry] = []
    for raw_entry in plugins:
        entry = PluginEntry.decode(raw_entry)
        if entry is None:
            logger.debug("Ignoring unsupported %s entry in %s: %r", Constants.PLUGINS_KEY, config_path, raw_entry)
            continue
        entries.append(entry)
    return entries


def parse_js_plugins(config_path: str) -> List[str]:
    """Return the trimmed plugin specifiers declared in ``config_path``."""
    return [entry.specifier for entry in parse_plugin_entries(config_path)]
