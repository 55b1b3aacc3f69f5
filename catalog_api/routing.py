"""
Path routing - classifies a request into exactly one route shape.

Shapes, in match order::

    Root         /  /catalog  /catalog/            (any method)
    Health       /_health                          (any method)
    Ingest       /_ingest/github                   (POST)
    Registry     /<kind>/registry.json             (GET)
    LatestAlias  /<kind>/<id>/latest/<file>        (GET)
    Artifact     /<kind>/<id>/<version>/<file>     (GET)
    Unmatched    anything else

Artifact is a catch-all over four or more segments, so it is tried only
after Registry and LatestAlias fail. A legacy prefix (``/catalog`` by
default) is stripped once by :func:`normalize_path` before matching.

Matching runs on the raw, still percent-encoded path; captured
parameters are percent-decoded afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union
from urllib.parse import unquote


# ============================================================================
# Path Normalization
# ============================================================================

@dataclass(frozen=True)
class NormalizedPath:
    """
    One internal representation for canonical and legacy-mounted paths.

    Attributes:
        raw: Path as received (percent-encoded, no query string)
        api_path: Path with the legacy prefix removed, leading ``/`` kept
        legacy: Whether the request arrived under the legacy prefix
    """

    raw: str
    api_path: str
    legacy: bool


def normalize_path(raw_path: str, legacy_prefix: str = "/catalog") -> NormalizedPath:
    """Strip the legacy prefix exactly once."""
    if not legacy_prefix:
        return NormalizedPath(raw=raw_path, api_path=raw_path, legacy=False)

    nested = legacy_prefix + "/"
    legacy = raw_path == legacy_prefix or raw_path.startswith(nested)
    api_path = raw_path[len(legacy_prefix):] if raw_path.startswith(nested) else raw_path
    return NormalizedPath(raw=raw_path, api_path=api_path, legacy=legacy)


# ============================================================================
# Route Shapes
# ============================================================================

@dataclass(frozen=True)
class Root:
    """Human-facing entrypoint; redirects to the catalog browsing page."""


@dataclass(frozen=True)
class Health:
    legacy: bool


@dataclass(frozen=True)
class Ingest:
    source: str = "github"


@dataclass(frozen=True)
class Registry:
    kind: str


@dataclass(frozen=True)
class LatestAlias:
    """
    ``latest`` alias for an entry.

    ``raw_file`` is the file path exactly as requested; it is what the
    redirect appends to the resolved version.
    """

    kind: str
    entry_id: str
    file: str
    raw_file: str


@dataclass(frozen=True)
class Artifact:
    kind: str
    entry_id: str
    version: str
    file: str


@dataclass(frozen=True)
class Unmatched:
    path: str


Route = Union[Root, Health, Ingest, Registry, LatestAlias, Artifact, Unmatched]


# ============================================================================
# Matchers
# ============================================================================

_REGISTRY = re.compile(r"^/([^/]+)/registry\.json$")
_LATEST = re.compile(r"^/([^/]+)/([^/]+)/latest/(.+)$")
_ARTIFACT = re.compile(r"^/([^/]+)/([^/]+)/([^/]+)/(.+)$")

ROOT_PATHS = frozenset({"", "/"})
HEALTH_PATH = "/_health"
INGEST_PATH = "/_ingest/github"

Matcher = Callable[[NormalizedPath, str], Optional[Route]]


def _match_root(path: NormalizedPath, method: str) -> Optional[Route]:
    if path.raw in ROOT_PATHS:
        return Root()
    # "/catalog/" strips to "/"; a bare "/catalog" is legacy but never stripped.
    if path.legacy and path.api_path in ("/", path.raw):
        return Root()
    return None


def _match_health(path: NormalizedPath, method: str) -> Optional[Route]:
    if path.api_path == HEALTH_PATH:
        return Health(legacy=path.legacy)
    return None


def _match_ingest(path: NormalizedPath, method: str) -> Optional[Route]:
    if path.api_path == INGEST_PATH and method == "POST":
        return Ingest()
    return None


def _match_registry(path: NormalizedPath, method: str) -> Optional[Route]:
    m = _REGISTRY.match(path.api_path)
    if m and method == "GET":
        return Registry(kind=unquote(m.group(1)))
    return None


def _match_latest(path: NormalizedPath, method: str) -> Optional[Route]:
    m = _LATEST.match(path.api_path)
    if m and method == "GET":
        kind, entry_id, raw_file = m.groups()
        return LatestAlias(
            kind=unquote(kind),
            entry_id=unquote(entry_id),
            file=unquote(raw_file),
            raw_file=raw_file,
        )
    return None


def _match_artifact(path: NormalizedPath, method: str) -> Optional[Route]:
    m = _ARTIFACT.match(path.api_path)
    if m and method == "GET":
        kind, entry_id, version, file = (unquote(g) for g in m.groups())
        return Artifact(kind=kind, entry_id=entry_id, version=version, file=file)
    return None


# Order is precedence. The artifact catch-all must stay last.
MATCHERS: Tuple[Matcher, ...] = (
    _match_root,
    _match_health,
    _match_ingest,
    _match_registry,
    _match_latest,
    _match_artifact,
)


def classify(path: NormalizedPath, method: str) -> Route:
    """Return the first route shape whose matcher accepts *path*."""
    for matcher in MATCHERS:
        route = matcher(path, method)
        if route is not None:
            return route
    return Unmatched(path=path.raw)


def resolve_route(raw_path: str, method: str, legacy_prefix: str = "/catalog") -> Tuple[NormalizedPath, Route]:
    """Normalize then classify in one step."""
    path = normalize_path(raw_path, legacy_prefix)
    return path, classify(path, method)
