"""GitHub API client wrapper.

Repository contents are read through PyGithub; label CRUD goes through a plain
requests session so the REST error payloads (`errors[].code`) stay available
for mapping onto :mod:`label_sync.errors`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests
from github import Auth, Github, GithubException

from label_sync.errors import LabelAlreadyExists, LabelOperationError, RetrievalError
from label_sync.models import Label

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RepoLabel:
    """A label as currently present on a repository."""

    name: str
    color: str
    description: str


class GitHubClient:
    """Small wrapper around the GitHub REST API for the label operations we need.

    Unlike a per-repository client, every method takes the target ``repository``
    ("owner/repo") because a single event may fan out across many repositories.
    """

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._rest_base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "label-sync",
            }
        )

        auth = Auth.Token(token)
        self._github = github_api or Github(auth=auth, base_url=base_url, timeout=int(timeout))

    def _repo_url(self, *, repository: str, path: str) -> str:
        path = path.lstrip("/")
        return f"{self._rest_base_url}/repos/{repository}/{path}"

    def _label_url(self, *, repository: str, name: str) -> str:
        return self._repo_url(repository=repository, path=f"labels/{quote(name, safe='')}")

    def get_json_file(self, *, repository: str, path: str, ref: str = "") -> Any:
        """Fetch and decode a JSON file from a repository at ``ref`` (default branch if empty)."""

        source = f"{repository}:{path}"
        try:
            repo = self._github.get_repo(repository)
            if ref.strip():
                contents = repo.get_contents(path, ref=ref)
            else:
                contents = repo.get_contents(path)
        except GithubException as e:
            raise RetrievalError(source=source, detail=f"HTTP {e.status}: {e.data}") from e
        except requests.RequestException as e:
            raise RetrievalError(source=source, detail=str(e)) from e

        if isinstance(contents, list):
            raise RetrievalError(source=source, detail="path is a directory")

        try:
            return json.loads(contents.decoded_content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RetrievalError(source=source, detail=f"invalid JSON: {e}") from e

    def list_labels(self, *, repository: str, per_page: int = 100) -> list[RepoLabel]:
        """Return the first page of labels on ``repository``.

        Notes:
            Only a single page is requested. Repositories with more than
            ``per_page`` labels will have the remainder ignored.
        """

        url = self._repo_url(repository=repository, path="labels")
        source = f"{repository} labels"
        try:
            resp = self._session.get(url, params={"per_page": per_page}, timeout=self._timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise RetrievalError(source=source, detail=str(e)) from e
        except ValueError as e:
            raise RetrievalError(source=source, detail=f"invalid JSON: {e}") from e

        if not isinstance(payload, list):
            raise RetrievalError(source=source, detail="expected a JSON list")

        labels: list[RepoLabel] = []
        for item in payload:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise RetrievalError(source=source, detail=f"unexpected label entry: {item!r}")
            color = item.get("color")
            description = item.get("description")
            labels.append(
                RepoLabel(
                    name=item["name"],
                    color=color if isinstance(color, str) else "",
                    description=description if isinstance(description, str) else "",
                )
            )

        logger.debug(
            "Labels fetched", extra={"repo": repository, "count": len(labels), "per_page": per_page}
        )
        return labels

    def create_label(self, *, repository: str, label: Label) -> None:
        url = self._repo_url(repository=repository, path="labels")
        payload = {"name": label.name, "color": label.color, "description": label.description}
        resp = self._send("create", repository, label.name, "POST", url, payload)
        if resp.status_code == 422 and _has_error_code(resp, "already_exists"):
            raise LabelAlreadyExists(
                operation="create",
                repository=repository,
                label=label.name,
                status_code=resp.status_code,
                detail="already_exists",
            )
        self._raise_for_status("create", repository, label.name, resp)

    def update_label(self, *, repository: str, current_name: str, label: Label) -> None:
        """Update color and description of the label currently named ``current_name``."""

        url = self._label_url(repository=repository, name=current_name)
        payload = {"color": label.color, "description": label.description}
        resp = self._send("update", repository, current_name, "PATCH", url, payload)
        self._raise_for_status("update", repository, current_name, resp)

    def delete_label(self, *, repository: str, name: str) -> None:
        url = self._label_url(repository=repository, name=name)
        resp = self._send("delete", repository, name, "DELETE", url, None)
        self._raise_for_status("delete", repository, name, resp)

    def _send(
        self,
        operation: str,
        repository: str,
        name: str,
        method: str,
        url: str,
        payload: dict[str, str] | None,
    ) -> requests.Response:
        try:
            return self._session.request(method, url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            raise LabelOperationError(
                operation=operation, repository=repository, label=name, detail=str(e)
            ) from e

    @staticmethod
    def _raise_for_status(
        operation: str, repository: str, name: str, resp: requests.Response
    ) -> None:
        if resp.status_code < 400:
            return
        raise LabelOperationError(
            operation=operation,
            repository=repository,
            label=name,
            status_code=resp.status_code,
            detail=_error_message(resp),
        )

    def close(self) -> None:
        self._session.close()
        self._github.close()


def _error_payload(resp: requests.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _has_error_code(resp: requests.Response, code: str) -> bool:
    errors = _error_payload(resp).get("errors")
    if not isinstance(errors, list):
        return False
    return any(isinstance(err, dict) and err.get("code") == code for err in errors)


def _error_message(resp: requests.Response) -> str:
    message = _error_payload(resp).get("message")
    if isinstance(message, str) and message.strip():
        return message
    return resp.reason or ""
