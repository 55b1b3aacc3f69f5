"""
Storage key canonicalization.

Every resolver derives its storage keys through :func:`join_key`, so the
registry, latest-pointer and artifact read paths share one addressing
scheme with each other and with whatever writes the stores.

Layout::

    catalog/<kind>/registry.json
    catalog/<kind>/<id>/latest.json
    catalog/<kind>/<id>/<version>/<file>
"""

from __future__ import annotations

import re

KEY_ROOT = "catalog"
REGISTRY_FILE = "registry.json"
LATEST_FILE = "latest.json"

_SEPARATOR_RUN = re.compile(r"/{2,}")


def join_key(*segments: str) -> str:
    """
    Join path segments into a canonical storage key.

    Backslashes become forward slashes, runs of slashes collapse to one
    and a leading slash is dropped. Canonicalizing a canonical key
    returns it unchanged.

    Example:
        >>> join_key("catalog", "/tools\\\\x", "1.0//a.json")
        'catalog/tools/x/1.0/a.json'
    """
    key = "/".join(segments).replace("\\", "/")
    key = _SEPARATOR_RUN.sub("/", key)
    return key.lstrip("/")


def registry_key(kind: str, root: str = KEY_ROOT) -> str:
    return join_key(root, kind, REGISTRY_FILE)


def latest_key(kind: str, entry_id: str, root: str = KEY_ROOT) -> str:
    return join_key(root, kind, entry_id, LATEST_FILE)


def artifact_key(kind: str, entry_id: str, version: str, file: str, root: str = KEY_ROOT) -> str:
    return join_key(root, kind, entry_id, version, file)
