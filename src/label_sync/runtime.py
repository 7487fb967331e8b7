"""Wiring of the label-sync components from settings.

One runtime is built per process (the CLI builds it per command, the webhook
app on first delivery). Its :class:`BaseLabelCache` therefore lives for the
process lifetime.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

import requests

from label_sync.config import LabelSyncSettings
from label_sync.events import EventDispatcher
from label_sync.github.client import GitHubClient
from label_sync.labels import BaseLabelCache, LabelSetBuilder
from label_sync.reconciler import Reconciler
from label_sync.sources import (
    BucketReader,
    MetadataSources,
    ObjectReader,
    fetch_base_labels,
    fetch_tracked_repos,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LabelSyncRuntime:
    github: GitHubClient
    cache: BaseLabelCache
    builder: LabelSetBuilder
    reconciler: Reconciler
    dispatcher: EventDispatcher

    def close(self) -> None:
        self.github.close()


def build_runtime(
    settings: LabelSyncSettings,
    *,
    github: GitHubClient | None = None,
    object_reader: ObjectReader | None = None,
    http_session: requests.Session | None = None,
) -> LabelSyncRuntime:
    """Assemble the runtime. Collaborators may be injected (tests, alternate storage).

    Raises:
        ValueError: If no GitHub client is injected and no token is configured.
    """

    if github is None:
        github = GitHubClient(
            token=settings.require_github_token(),
            base_url=settings.github_base_url,
            timeout=settings.http_timeout_seconds,
        )

    cache = BaseLabelCache(
        partial(
            fetch_base_labels,
            github,
            repository=settings.metadata_repo,
            path=settings.labels_path,
            ref=settings.metadata_branch,
        )
    )
    metadata = MetadataSources(
        reader=object_reader
        or BucketReader(settings.bucket, timeout=settings.http_timeout_seconds),
        public_repos_object=settings.public_repos_object,
        apis_object=settings.apis_object,
    )
    builder = LabelSetBuilder(cache=cache, metadata=metadata)
    reconciler = Reconciler(
        github=github, builder=builder, labels_page_size=settings.labels_page_size
    )
    dispatcher = EventDispatcher(
        reconciler=reconciler,
        cache=cache,
        fetch_tracked_repos=partial(
            fetch_tracked_repos,
            settings.repos_url,
            session=http_session,
            timeout=settings.http_timeout_seconds,
        ),
        metadata_repo=settings.metadata_repo,
        metadata_ref=settings.metadata_ref,
    )
    logger.debug(
        "Runtime assembled",
        extra={"metadata_repo": settings.metadata_repo, "bucket": settings.bucket},
    )
    return LabelSyncRuntime(
        github=github,
        cache=cache,
        builder=builder,
        reconciler=reconciler,
        dispatcher=dispatcher,
    )
