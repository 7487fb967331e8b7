"""FastAPI webhook receiver for label-sync.

Design intent:
- Keep reconciliation logic in `label_sync.*`
- Keep server-specific concerns (signature checks, routing, background work) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from label_sync.server.app import create_app
