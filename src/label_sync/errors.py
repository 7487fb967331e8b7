"""Exceptions raised while building and reconciling label sets."""

from __future__ import annotations

from dataclasses import dataclass


class LabelSyncError(Exception):
    """Base class for all label-sync failures."""


@dataclass(frozen=True, slots=True)
class RetrievalError(LabelSyncError):
    """Raised when an external document cannot be fetched or has an unexpected shape."""

    source: str
    detail: str

    def __str__(self) -> str:
        return f"Failed to retrieve {self.source}: {self.detail}"


@dataclass(frozen=True, slots=True)
class LabelOperationError(LabelSyncError):
    """Raised when a single label create/update/delete call fails."""

    operation: str
    repository: str
    label: str
    status_code: int | None = None
    detail: str = ""

    def __str__(self) -> str:
        status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
        return f"Failed to {self.operation} label {self.label!r} in {self.repository}{status}: {self.detail}"


@dataclass(frozen=True, slots=True)
class LabelAlreadyExists(LabelOperationError):
    """Raised when a create is rejected because the label was created concurrently."""


class InvalidEventPayload(LabelSyncError):
    """Raised when a webhook payload lacks the fields needed for dispatch."""
