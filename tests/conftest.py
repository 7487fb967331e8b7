"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

import pytest

from label_sync.config import LabelSyncSettings
from label_sync.errors import LabelAlreadyExists, RetrievalError
from label_sync.github.client import RepoLabel
from label_sync.labels import BaseLabelCache, LabelSetBuilder
from label_sync.models import Label
from label_sync.reconciler import Reconciler
from label_sync.sources import MetadataSources

BASE_LABELS: list[dict[str, str]] = [
    {"name": "priority: p0", "color": "b60205", "description": "Highest priority."},
    {"name": "type: bug", "color": "db4437", "description": "Error or flaw in code."},
]

API_CATALOG: dict[str, Any] = {
    "apis": [
        {
            "display_name": "Access Approval",
            "github_label": "api: accessapproval",
            "api_shortname": "accessapproval",
        },
        {
            "display_name": "BigQuery",
            "github_label": "api: bigquery",
            "api_shortname": "bigquery",
        },
    ]
}

PUBLIC_REPOS: dict[str, Any] = {
    "repos": [
        {"repo": "googleapis/nodejs-bigquery", "github_label": "api: bigquery"},
        {"repo": "googleapis/google-cloud-node", "github_label": ""},
    ]
}


class FakeObjectReader:
    """In-memory stand-in for the metadata bucket."""

    def __init__(self, documents: dict[str, Any]) -> None:
        self.documents = documents
        self.reads: list[str] = []

    def read_json(self, object_name: str) -> Any:
        self.reads.append(object_name)
        if object_name not in self.documents:
            raise RetrievalError(source=object_name, detail="404 Not Found")
        return self.documents[object_name]


class InMemoryGitHub:
    """Stateful label store exposing the label methods of GitHubClient."""

    def __init__(self, labels: list[RepoLabel] | None = None) -> None:
        self.labels: dict[str, list[RepoLabel]] = {}
        self.calls: list[tuple[str, str]] = []
        self.seed("octo-org/octo-repo", labels or [])

    def seed(self, repository: str, labels: list[RepoLabel]) -> None:
        self.labels[repository] = list(labels)

    def list_labels(self, *, repository: str, per_page: int = 100) -> list[RepoLabel]:
        return list(self.labels.get(repository, []))[:per_page]

    def create_label(self, *, repository: str, label: Label) -> None:
        self.calls.append(("create", label.name))
        existing = self.labels.setdefault(repository, [])
        if any(x.name.lower() == label.name.lower() for x in existing):
            raise LabelAlreadyExists(
                operation="create", repository=repository, label=label.name, status_code=422
            )
        existing.append(RepoLabel(label.name, label.color, label.description))

    def update_label(self, *, repository: str, current_name: str, label: Label) -> None:
        self.calls.append(("update", current_name))
        existing = self.labels[repository]
        for i, x in enumerate(existing):
            if x.name == current_name:
                existing[i] = RepoLabel(current_name, label.color, label.description)

    def delete_label(self, *, repository: str, name: str) -> None:
        self.calls.append(("delete", name))
        self.labels[repository] = [x for x in self.labels[repository] if x.name != name]


@pytest.fixture
def settings() -> LabelSyncSettings:
    """Settings that ignore any developer `.env`."""
    return LabelSyncSettings(_env_file=None, LABEL_SYNC_GITHUB_TOKEN="test-token")


@pytest.fixture
def make_object_reader() -> Callable[[dict[str, Any]], FakeObjectReader]:
    """Build a bucket stand-in holding arbitrary documents."""
    return FakeObjectReader


@pytest.fixture
def object_reader(make_object_reader: Callable[[dict[str, Any]], FakeObjectReader]) -> FakeObjectReader:
    return make_object_reader({"public_repos.json": PUBLIC_REPOS, "apis.json": API_CATALOG})


@pytest.fixture
def base_labels() -> list[Label]:
    return [Label.model_validate(x) for x in BASE_LABELS]


@pytest.fixture
def metadata(object_reader: FakeObjectReader) -> MetadataSources:
    return MetadataSources(reader=object_reader)


@pytest.fixture
def base_loader(base_labels: list[Label]) -> Mock:
    return Mock(side_effect=lambda: list(base_labels))


@pytest.fixture
def cache(base_loader: Mock) -> BaseLabelCache:
    return BaseLabelCache(base_loader)


@pytest.fixture
def builder(cache: BaseLabelCache, metadata: MetadataSources) -> LabelSetBuilder:
    return LabelSetBuilder(cache=cache, metadata=metadata)


@pytest.fixture
def github() -> InMemoryGitHub:
    return InMemoryGitHub()


@pytest.fixture
def reconciler(github: InMemoryGitHub, builder: LabelSetBuilder) -> Reconciler:
    return Reconciler(github=github, builder=builder)  # type: ignore[arg-type]
