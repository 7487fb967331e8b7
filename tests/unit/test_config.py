"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from label_sync.config import DEFAULT_REPOS_URL, LabelSyncSettings

_ENV_VARS = (
    "LABEL_SYNC_GITHUB_TOKEN",
    "GITHUB_BASE_URL",
    "LOG_LEVEL",
    "LABEL_SYNC_WEBHOOK_SECRET",
    "LABEL_SYNC_METADATA_REPO",
    "LABEL_SYNC_METADATA_REF",
    "LABEL_SYNC_LABELS_PAGE_SIZE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_settings_defaults() -> None:
    settings = LabelSyncSettings()

    assert settings.github_token == ""
    assert settings.github_base_url == "https://api.github.com"
    assert settings.metadata_repo == "googleapis/repo-automation-bots"
    assert settings.metadata_owner == "googleapis"
    assert settings.metadata_name == "repo-automation-bots"
    assert settings.metadata_ref == "refs/heads/master"
    assert settings.metadata_branch == "master"
    assert settings.labels_path == "packages/label-sync/src/labels.json"
    assert settings.bucket == "devrel-prod-settings"
    assert settings.public_repos_object == "public_repos.json"
    assert settings.apis_object == "apis.json"
    assert settings.repos_url == DEFAULT_REPOS_URL
    assert settings.labels_page_size == 100


def test_settings_loads_from_dotenv(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "LABEL_SYNC_GITHUB_TOKEN=test-token",
                "LOG_LEVEL=DEBUG",
                "LABEL_SYNC_METADATA_REF=refs/heads/main",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = LabelSyncSettings()

    assert settings.github_token == "test-token"
    assert settings.log_level == "DEBUG"
    assert settings.metadata_branch == "main"


def test_environment_overrides_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("LABEL_SYNC_LABELS_PAGE_SIZE=10\n", encoding="utf-8")
    monkeypatch.setenv("LABEL_SYNC_LABELS_PAGE_SIZE", "50")

    assert LabelSyncSettings().labels_page_size == 50


def test_require_github_token() -> None:
    with pytest.raises(ValueError, match="LABEL_SYNC_GITHUB_TOKEN"):
        LabelSyncSettings().require_github_token()

    settings = LabelSyncSettings(LABEL_SYNC_GITHUB_TOKEN=" tok ")
    assert settings.require_github_token() == "tok"


@pytest.mark.parametrize("value", ["googleapis", "a/b/c", "/repo"])
def test_metadata_repo_must_be_owner_and_name(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("LABEL_SYNC_METADATA_REPO", value)

    with pytest.raises(ValidationError):
        LabelSyncSettings()


def test_labels_page_size_is_bounded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LABEL_SYNC_LABELS_PAGE_SIZE", "500")

    with pytest.raises(ValidationError):
        LabelSyncSettings()
