"""Pydantic models for the webhook server."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

AckStatus = Literal["pong", "accepted", "handled", "ignored"]


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class RepositoryOutcome(BaseModel):
    repo: str
    planned: int
    applied: int
    skipped_existing: int
    failed: int


class WebhookAck(BaseModel):
    status: AckStatus
    event: str
    repositories: list[RepositoryOutcome] = Field(default_factory=list)
