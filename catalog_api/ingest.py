"""
Ingest gate - placeholder boundary for the publish pipeline.

Webhook signature verification, tarball extraction and store writes do
not exist yet. The gate only reports that: 501 ``disabled`` while the
feature flag is off, 501 ``not_implemented`` once it is on.
"""

from __future__ import annotations

from typing import NoReturn

from .faults import IngestDisabled, IngestNotImplemented
from .request import Request


class IngestGate:
    """Feature-flagged stub for ``POST /_ingest/github``."""

    def __init__(self, enabled: bool = False):
        self.enabled = enabled

    async def handle(self, request: Request) -> NoReturn:
        if not self.enabled:
            raise IngestDisabled()
        raise IngestNotImplemented()
