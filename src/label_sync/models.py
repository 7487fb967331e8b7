"""Schemas for the external JSON documents the bot consumes.

Every document is validated when it crosses into the process so that an
unexpected shape fails fast instead of leaking ``None`` into the reconciler.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_HEX_COLOR = re.compile(r"^[0-9a-f]{6}$")


class Label(BaseModel):
    """A label as it should exist on a repository."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    color: str
    description: str = Field(default="")

    @field_validator("color")
    @classmethod
    def _normalize_color(cls, value: str) -> str:
        color = value.strip().lstrip("#").lower()
        if not _HEX_COLOR.match(color):
            raise ValueError(f"color must be 6 hex digits, got {value!r}")
        return color

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: object) -> object:
        return "" if value is None else value


class BaseLabelsDocument(BaseModel):
    """`labels.json` in the metadata repository."""

    labels: list[Label]


class ApiDescriptor(BaseModel):
    """One product/API known to DRIFT."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    display_name: str  # Access Approval
    github_label: str = Field(min_length=1)  # api: accessapproval
    api_shortname: str  # accessapproval


class ApiCatalog(BaseModel):
    """`apis.json` in the metadata bucket."""

    apis: list[ApiDescriptor]


class PublicRepoEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repo: str
    github_label: str = Field(default="")

    @field_validator("github_label", mode="before")
    @classmethod
    def _none_label(cls, value: object) -> object:
        return "" if value is None else value


class PublicReposDocument(BaseModel):
    """`public_repos.json` in the metadata bucket."""

    repos: list[PublicRepoEntry]

    def find_label_mapping(self, repo_path: str) -> PublicRepoEntry | None:
        """Return the entry mapping ``repo_path`` to a single product, if any."""

        for entry in self.repos:
            if entry.repo == repo_path and entry.github_label != "":
                return entry
        return None


class TrackedRepo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repo: str
    language: str | None = None

    @field_validator("repo")
    @classmethod
    def _validate_repo(cls, value: str) -> str:
        parts = value.strip().split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"repo must be in the form 'owner/name', got {value!r}")
        return value.strip()

    @property
    def owner(self) -> str:
        return self.repo.split("/")[0]

    @property
    def name(self) -> str:
        return self.repo.split("/")[1]


class TrackedReposDocument(BaseModel):
    """The sloth `repos.json` registry of every repository the bot manages."""

    repos: list[TrackedRepo]
