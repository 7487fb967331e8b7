"""FastAPI app factory.

Endpoints are intentionally thin wrappers over :class:`label_sync.events.EventDispatcher`.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging

from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool

from label_sync import __version__
from label_sync.config import LabelSyncSettings
from label_sync.errors import InvalidEventPayload, LabelSyncError, RetrievalError
from label_sync.events import DispatchResult, EventDispatcher, event_key
from label_sync.runtime import LabelSyncRuntime, build_runtime
from label_sync.server.models import HealthResponse, RepositoryOutcome, WebhookAck

logger = logging.getLogger(__name__)


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Check a GitHub `X-Hub-Signature-256` header against the raw request body."""

    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header)


def _outcomes(result: DispatchResult) -> list[RepositoryOutcome]:
    return [RepositoryOutcome.model_validate(r.summary()) for r in result.reports]


def _sync_all_in_background(dispatcher: EventDispatcher, event: str) -> None:
    # Nobody awaits this task; failures can only surface in the logs.
    try:
        result = dispatcher.sync_all(event=event)
    except LabelSyncError:
        logger.exception("Resync of tracked repositories failed", extra={"event": event})
        return
    logger.info(
        "Resync of tracked repositories finished",
        extra={
            "event": event,
            "reconciled": len(result.reports),
            "failed_repositories": result.failed_repositories,
        },
    )


def create_app(
    settings: LabelSyncSettings | None = None,
    *,
    runtime: LabelSyncRuntime | None = None,
) -> FastAPI:
    settings = settings or LabelSyncSettings()

    app = FastAPI(
        title="label-sync",
        version=__version__,
        description="Keeps GitHub repository labels in sync with the shared label metadata.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url=None,
    )

    # Expose settings for request handlers that want to read it.
    app.state.settings = settings
    # Built on first delivery so the app can start before credentials exist.
    app.state.runtime = runtime

    def _runtime() -> LabelSyncRuntime:
        if app.state.runtime is None:
            try:
                app.state.runtime = build_runtime(settings)
            except ValueError as e:
                raise HTTPException(status_code=409, detail=str(e)) from e
        return app.state.runtime

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(version=__version__)

    @app.post("/api/webhooks/github", response_model=WebhookAck)
    async def github_webhook(
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        x_github_event: str | None = Header(default=None),
        x_hub_signature_256: str | None = Header(default=None),
    ) -> WebhookAck:
        body = await request.body()

        if settings.webhook_secret and not verify_signature(
            settings.webhook_secret, body, x_hub_signature_256
        ):
            raise HTTPException(status_code=401, detail="Invalid webhook signature")
        if not x_github_event:
            raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise HTTPException(status_code=400, detail="Body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")

        if x_github_event == "ping":
            return WebhookAck(status="pong", event="ping")

        dispatcher = _runtime().dispatcher
        key = event_key(x_github_event, payload)

        if dispatcher.is_metadata_push(x_github_event, payload):
            # The fan-out can easily outlast GitHub's delivery timeout.
            background_tasks.add_task(_sync_all_in_background, dispatcher, key)
            response.status_code = 202
            return WebhookAck(status="accepted", event=key)

        try:
            result = await run_in_threadpool(dispatcher.dispatch, x_github_event, payload)
        except InvalidEventPayload as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except RetrievalError as e:
            logger.exception("Event failed", extra={"event": key})
            raise HTTPException(status_code=502, detail=str(e)) from e

        if not result.handled:
            return WebhookAck(status="ignored", event=key)
        return WebhookAck(status="handled", event=key, repositories=_outcomes(result))

    return app
