"""NPM registry client: peer dependency lookups for plugin packages."""

from __future__ import annotations

import json
import logging
from typing import List, Optional
from urllib.parse import quote

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, redact, safe_url, Timer

logger = logging.getLogger(__name__)

_HEADERS = {"Accept": "application/json"}


def package_url(name: str, registry_url: str = Constants.REGISTRY_URL_NPM) -> str:
    """Manifest URL for the ``latest`` dist-tag of ``name``.

    Scoped names keep their ``@`` and have the slash encoded, as the npm
    registry expects.
    """
    return registry_url.rstrip("/") + "/" + quote(name, safe="@") + "/latest"


def get_peer_dependencies(
    name: str,
    registry_url: str = Constants.REGISTRY_URL_NPM,
) -> Optional[List[str]]:
    """Return the peer dependency names declared by the latest ``name``.

    Args:
        name: Package name.
        registry_url: Registry base URL.

    Returns:
        Sorted peer dependency names, or None when the registry could not
        be queried or answered with something unusable.
    """
    url = package_url(name, registry_url)
    with Timer() as timer:
        try:
            res = requests.get(url, headers=_HEADERS, timeout=Constants.REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            logger.warning("npm registry lookup for %s failed: %s", name, redact(str(exc)))
            return None

    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="registry",
                action="GET",
                target=safe_url(url),
                status_code=res.status_code,
                duration_ms=timer.duration_ms(),
            ),
        )

    if res.status_code != 200:
        logger.warning("npm registry returned HTTP %s for %s", res.status_code, name)
        return None

    try:
        manifest = json.loads(res.text)
    except json.JSONDecodeError:
        logger.warning("Couldn't decode registry JSON for %s", name)
        return None

    peers = manifest.get("peerDependencies") if isinstance(manifest, dict) else None
    if not isinstance(peers, dict):
        return []
    return sorted(peers)
