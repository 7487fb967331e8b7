"""Configuration for the label-sync bot.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

To avoid collisions with other tools that may also use `GITHUB_TOKEN`, this
project uses a dedicated token variable: `LABEL_SYNC_GITHUB_TOKEN`.

The token is not required at startup so the webhook app can boot (and answer
health checks) before credentials are provisioned. Commands and endpoints that
talk to GitHub call :meth:`LabelSyncSettings.require_github_token`.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REPOS_URL = "https://raw.githubusercontent.com/googleapis/sloth/master/repos.json"


class LabelSyncSettings(BaseSettings):
    """Settings for the label-sync bot.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `LabelSyncSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="LABEL_SYNC_GITHUB_TOKEN",
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    webhook_secret: str = Field(
        default="",
        validation_alias="LABEL_SYNC_WEBHOOK_SECRET",
        description="Shared secret for X-Hub-Signature-256 verification (disabled when empty)",
    )

    metadata_repo: str = Field(
        default="googleapis/repo-automation-bots",
        validation_alias="LABEL_SYNC_METADATA_REPO",
        description="Repository ('owner/repo') holding the base labels.json",
    )
    metadata_ref: str = Field(
        default="refs/heads/master",
        validation_alias="LABEL_SYNC_METADATA_REF",
        description="Push ref on the metadata repository that triggers a full resync",
    )
    labels_path: str = Field(
        default="packages/label-sync/src/labels.json",
        validation_alias="LABEL_SYNC_LABELS_PATH",
        description="Path of the base labels document inside the metadata repository",
    )

    bucket: str = Field(
        default="devrel-prod-settings",
        validation_alias="LABEL_SYNC_BUCKET",
        description="Cloud Storage bucket holding the DRIFT metadata documents",
    )
    public_repos_object: str = Field(
        default="public_repos.json",
        validation_alias="LABEL_SYNC_PUBLIC_REPOS_OBJECT",
    )
    apis_object: str = Field(
        default="apis.json",
        validation_alias="LABEL_SYNC_APIS_OBJECT",
    )

    repos_url: str = Field(
        default=DEFAULT_REPOS_URL,
        validation_alias="LABEL_SYNC_REPOS_URL",
        description="Public URL of the tracked repository registry",
    )

    labels_page_size: int = Field(
        default=100,
        validation_alias="LABEL_SYNC_LABELS_PAGE_SIZE",
        description="Number of existing labels fetched per repository (single page)",
        ge=1,
        le=100,
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="LABEL_SYNC_HTTP_TIMEOUT_SECONDS",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("metadata_repo")
    @classmethod
    def _validate_metadata_repo(cls, value: str) -> str:
        value = value.strip()
        parts = value.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError("LABEL_SYNC_METADATA_REPO must be in the form 'owner/repo'")
        return value

    @property
    def metadata_owner(self) -> str:
        return self.metadata_repo.split("/")[0]

    @property
    def metadata_name(self) -> str:
        return self.metadata_repo.split("/")[1]

    @property
    def metadata_branch(self) -> str:
        """Branch name of :attr:`metadata_ref` (used as the contents API ref)."""

        return self.metadata_ref.removeprefix("refs/heads/")

    def require_github_token(self) -> str:
        token = self.github_token.strip()
        if not token:
            raise ValueError("LABEL_SYNC_GITHUB_TOKEN is required")
        return token
