"""Readers for the external metadata documents.

Three independent sources feed the bot:
- ``labels.json`` in the metadata repository (read through the GitHub client)
- ``public_repos.json`` and ``apis.json`` in a Cloud Storage bucket (DRIFT)
- the tracked repository registry served from a public URL (sloth)

Every reader returns validated models and raises :class:`RetrievalError` on
any failure.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, TypeVar

import requests
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud import storage
from pydantic import BaseModel, ValidationError

from label_sync.errors import RetrievalError
from label_sync.github.client import GitHubClient
from label_sync.models import (
    ApiCatalog,
    BaseLabelsDocument,
    Label,
    PublicReposDocument,
    TrackedRepo,
    TrackedReposDocument,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_document(model: type[ModelT], raw: Any, *, source: str) -> ModelT:
    """Validate ``raw`` against ``model``, mapping schema errors onto RetrievalError."""

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise RetrievalError(
            source=source, detail=f"unexpected document shape ({e.error_count()} errors)"
        ) from e


class ObjectReader(Protocol):
    def read_json(self, object_name: str) -> Any: ...


class BucketReader:
    """Read JSON objects from a Cloud Storage bucket.

    The storage client is created on first use so that constructing the reader
    never requires application default credentials.
    """

    def __init__(
        self,
        bucket_name: str,
        *,
        client: storage.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._bucket_name = bucket_name
        self._client = client
        self._timeout = timeout

    def _bucket(self) -> storage.Bucket:
        if self._client is None:
            self._client = storage.Client()
        return self._client.bucket(self._bucket_name)

    def read_json(self, object_name: str) -> Any:
        source = f"gs://{self._bucket_name}/{object_name}"
        try:
            data = self._bucket().blob(object_name).download_as_bytes(timeout=self._timeout)
        except (
            google_exceptions.GoogleAPIError,
            google_auth_exceptions.GoogleAuthError,
            requests.RequestException,
        ) as e:
            raise RetrievalError(source=source, detail=str(e)) from e

        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RetrievalError(source=source, detail=f"invalid JSON: {e}") from e


class MetadataSources:
    """DRIFT metadata: which repositories map to a single product, and the API catalog."""

    def __init__(
        self,
        *,
        reader: ObjectReader,
        public_repos_object: str = "public_repos.json",
        apis_object: str = "apis.json",
    ) -> None:
        self._reader = reader
        self._public_repos_object = public_repos_object
        self._apis_object = apis_object

    def public_repos(self) -> PublicReposDocument:
        raw = self._reader.read_json(self._public_repos_object)
        return parse_document(PublicReposDocument, raw, source=self._public_repos_object)

    def api_catalog(self) -> ApiCatalog:
        raw = self._reader.read_json(self._apis_object)
        return parse_document(ApiCatalog, raw, source=self._apis_object)


def fetch_base_labels(
    github: GitHubClient, *, repository: str, path: str, ref: str = ""
) -> list[Label]:
    """Fetch ``labels.json`` from HEAD of the metadata repository.

    The document is read from GitHub rather than bundled with the package: the
    push that changes it is also what triggers the refresh, so a deployed copy
    would always be one revision behind.
    """

    raw = github.get_json_file(repository=repository, path=path, ref=ref)
    document = parse_document(BaseLabelsDocument, raw, source=f"{repository}:{path}")
    logger.info(
        "Base labels fetched",
        extra={"repo": repository, "path": path, "count": len(document.labels)},
    )
    return document.labels


def fetch_tracked_repos(
    url: str, *, session: requests.Session | None = None, timeout: float = 30.0
) -> list[TrackedRepo]:
    """Fetch the registry of every repository the bot manages."""

    http = session or requests.Session()
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
        raw = resp.json()
    except requests.RequestException as e:
        raise RetrievalError(source=url, detail=str(e)) from e
    except ValueError as e:
        raise RetrievalError(source=url, detail=f"invalid JSON: {e}") from e

    document = parse_document(TrackedReposDocument, raw, source=url)
    logger.info("Tracked repositories fetched", extra={"url": url, "count": len(document.repos)})
    return document.repos
