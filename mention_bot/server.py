"""
FastAPI application receiving GitHub webhooks.

POST / accepts pull_request events and processes them in the background;
GET / answers with a short banner.
Run with: uvicorn mention_bot.server:create_app --factory --port 5000
"""

import json
import logging
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from .config import Settings
from .inference import ReviewerInference
from .user_status import UserStatusCache
from .webhook import handle_pull_request_event, verify_signature

BANNER = (
    'GitHub Mention Bot Active. '
    'Go to https://github.com/facebook/mention-bot for more information.'
)


class WebhookAck(BaseModel):
    """POST / response."""

    accepted: bool = Field(..., description="True if the event was queued for processing")
    reason: Optional[str] = Field(None, description="Why the event was not queued")


def process_event(payload: dict, inference: ReviewerInference, user_cache: UserStatusCache) -> None:
    """Background task: run the pull request handler and log failures."""
    try:
        result = handle_pull_request_event(payload, inference, user_cache)
        logging.debug(f"Webhook processed: {result}")
    except Exception as e:
        logging.error(f"Error processing webhook event: {e}", exc_info=True)


def create_app(settings: Settings = None, inference: ReviewerInference = None,
               user_cache: UserStatusCache = None) -> FastAPI:
    """Build the webhook application.

    Args:
        settings: Runtime settings; read from the environment when omitted
        inference: Reviewer inference engine; built from settings when omitted
        user_cache: Account liveness cache shared by all deliveries
    """
    if settings is None:
        settings = Settings.from_env()
    if inference is None:
        inference = ReviewerInference(settings=settings)
    if user_cache is None:
        user_cache = UserStatusCache(settings.user_cache_file, settings.user_cache_ttl_hours)

    app = FastAPI(title="mention-bot")
    app.state.settings = settings
    app.state.inference = inference
    app.state.user_cache = user_cache

    @app.get("/", response_class=PlainTextResponse)
    def banner() -> str:
        return BANNER

    @app.post("/", response_model=WebhookAck)
    async def webhook(request: Request, background_tasks: BackgroundTasks) -> WebhookAck:
        body = await request.body()
        if not verify_signature(settings.webhook_secret, body, request.headers.get('X-Hub-Signature-256')):
            raise HTTPException(status_code=401, detail="Invalid webhook signature")

        event = request.headers.get('X-GitHub-Event')
        if event and event != 'pull_request':
            logging.info(f"Skipping {event} event")
            return WebhookAck(accepted=False, reason=f"event {event}")

        try:
            payload = json.loads(body.decode() or '{}')
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        background_tasks.add_task(process_event, payload, inference, user_cache)
        return WebhookAck(accepted=True)

    return app
