"""Webhook event dispatch.

Repository and label events reconcile the repository they were delivered for.
A push to the metadata repository's default branch may have changed
``labels.json``, so it refreshes the base labels and resyncs every tracked
repository.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from label_sync.errors import InvalidEventPayload, LabelSyncError
from label_sync.labels import BaseLabelCache
from label_sync.models import TrackedRepo
from label_sync.reconciler import Reconciler, ReconcileReport

logger = logging.getLogger(__name__)

RECONCILE_EVENTS: frozenset[str] = frozenset(
    {
        "repository.created",
        "repository.transferred",
        "label.edited",
        "label.deleted",
    }
)


def event_key(event: str, payload: Mapping[str, Any]) -> str:
    """Combine the `X-GitHub-Event` name with the payload `action` (``label.edited``)."""

    action = payload.get("action")
    if isinstance(action, str) and action:
        return f"{event}.{action}"
    return event


def repository_from_payload(payload: Mapping[str, Any]) -> tuple[str, str]:
    """Return ``(owner, repo)`` of the repository an event was delivered for."""

    repository = payload.get("repository")
    if not isinstance(repository, Mapping):
        raise InvalidEventPayload("payload has no repository")

    name = repository.get("name")
    owner = repository.get("owner")
    login = None
    if isinstance(owner, Mapping):
        # Push payloads carry both `login` and `name` on the owner object.
        login = owner.get("login") or owner.get("name")
    if not isinstance(login, str) or not login or not isinstance(name, str) or not name:
        full_name = repository.get("full_name")
        if isinstance(full_name, str) and full_name.count("/") == 1:
            login, name = full_name.split("/")
    if not isinstance(login, str) or not login or not isinstance(name, str) or not name:
        raise InvalidEventPayload("payload repository lacks owner or name")
    return login, name


@dataclass(slots=True)
class DispatchResult:
    event: str
    handled: bool = False
    reports: list[ReconcileReport] = field(default_factory=list)
    failed_repositories: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_repositories and all(r.ok for r in self.reports)


class EventDispatcher:
    def __init__(
        self,
        *,
        reconciler: Reconciler,
        cache: BaseLabelCache,
        fetch_tracked_repos: Callable[[], list[TrackedRepo]],
        metadata_repo: str,
        metadata_ref: str = "refs/heads/master",
    ) -> None:
        self._reconciler = reconciler
        self._cache = cache
        self._fetch_tracked_repos = fetch_tracked_repos
        self._metadata_repo = metadata_repo
        self._metadata_ref = metadata_ref

    def is_metadata_push(self, event: str, payload: Mapping[str, Any]) -> bool:
        """Return True for a push to the default branch of the metadata repository."""

        if event != "push":
            return False
        try:
            owner, repo = repository_from_payload(payload)
        except InvalidEventPayload:
            return False
        # TODO: Limit this to pushes that touch labels.json (commits[].modified).
        return f"{owner}/{repo}" == self._metadata_repo and payload.get("ref") == self._metadata_ref

    def dispatch(self, event: str, payload: Mapping[str, Any]) -> DispatchResult:
        """Route a webhook delivery.

        Raises:
            InvalidEventPayload: If a reconcile event lacks its repository.
            RetrievalError: If the single repository reconcile cannot fetch its inputs,
                or a metadata push cannot refresh the base labels or registry.
        """

        key = event_key(event, payload)
        if key in RECONCILE_EVENTS:
            owner, repo = repository_from_payload(payload)
            logger.info("Reconciling repository", extra={"event": key, "repo": f"{owner}/{repo}"})
            report = self._reconciler.reconcile(owner, repo)
            return DispatchResult(event=key, handled=True, reports=[report])

        if self.is_metadata_push(event, payload):
            return self.sync_all(event=key)

        logger.debug("Ignoring event", extra={"event": key})
        return DispatchResult(event=key)

    def sync_all(self, *, event: str = "sync-all") -> DispatchResult:
        """Refresh the base labels then reconcile every tracked repository, one at a time."""

        self._cache.refresh()
        tracked = self._fetch_tracked_repos()
        logger.info("Resyncing tracked repositories", extra={"event": event, "count": len(tracked)})

        result = DispatchResult(event=event, handled=True)
        for entry in tracked:
            try:
                result.reports.append(self._reconciler.reconcile(entry.owner, entry.name))
            except LabelSyncError:
                logger.exception("Repository reconcile failed", extra={"repo": entry.repo})
                result.failed_repositories.append(entry.repo)
        return result
