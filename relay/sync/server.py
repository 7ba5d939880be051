"""
Relay Server

FastAPI application that owns the relay's public endpoints.

Endpoints:
- POST /monday/webhook?sig=...: monday.com board webhooks
- POST /slack/events: Slack Events API
- GET /health: Health check

Startup:
1. Validate configuration (exit 1 if anything required is missing)
2. Build the store, clients and handlers and attach them to app.state
3. If a public URL is known, reconcile the board's webhooks
"""

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, HTTPException, Header, Query, BackgroundTasks
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from ..common.board_client import BoardClient
from ..common.config import RelayConfig, ConfigError, load_config, validate_config
from ..common.correlation import CorrelationStore
from .board_inbound import InboundBoardHandler
from .chat_inbound import InboundChatHandler
from .handlers import MondayHandler, SlackHandler, TRACKED_EVENTS
from .poster import ChatPoster, SlackPoster
from .reconciler import WebhookReconciler, build_webhook_url

logger = logging.getLogger("relay.sync.server")


class HealthStatus(BaseModel):
    """Health check response"""
    status: str = "healthy"
    service: str = "nar-relay"
    board_id: Optional[int] = None
    channel_id: str = ""
    tracked_items: int = 0
    webhooks: Optional[dict] = None  # ReconcileReport.summary(), None if skipped


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Register board webhooks on startup, release clients on shutdown"""
    config: RelayConfig = app.state.config
    public_url = config.server.public_url

    logger.info("NAR relay started on port %s", config.server.port)

    if public_url:
        webhook_url = build_webhook_url(
            public_url, config.server.webhook_path, config.monday.webhook_secret
        )
        logger.info("Slack events endpoint: %s/slack/events", public_url)
        logger.info("monday.com webhook endpoint: %s", webhook_url)

        reconciler = WebhookReconciler(app.state.board_client)
        report = await reconciler.reconcile(
            config.monday.board_id, webhook_url, TRACKED_EVENTS
        )
        app.state.reconcile_report = report
        if report.ok:
            logger.info("Webhook reconciliation: %s", report.summary())
        else:
            logger.warning("Webhook reconciliation incomplete: %s", report.summary())
    else:
        logger.warning(
            "No public URL set (RENDER_EXTERNAL_URL, PUBLIC_URL or NGROK_URL), "
            "monday.com webhooks not configured"
        )

    yield

    logger.info("Shutting down...")
    await app.state.board_client.close()


def create_app(
    config: RelayConfig,
    board_client: Optional[BoardClient] = None,
    poster: Optional[ChatPoster] = None,
    store: Optional[CorrelationStore] = None,
) -> FastAPI:
    """
    Build the relay application.

    Components not passed in are built from config. Everything the
    endpoints need lives on app.state; there is no module-level state.
    """
    app = FastAPI(
        title="NAR Relay",
        description="monday.com board <-> Slack channel relay",
        version="0.1.0",
        lifespan=lifespan,
    )

    board_client = board_client or BoardClient(
        api_token=config.monday.api_token,
        api_url=config.monday.api_url,
        api_version=config.monday.api_version,
    )
    poster = poster or SlackPoster(bot_token=config.slack.bot_token)
    store = store if store is not None else CorrelationStore()

    app.state.config = config
    app.state.board_client = board_client
    app.state.store = store
    app.state.reconcile_report = None
    app.state.slack_handler = SlackHandler(signing_secret=config.slack.signing_secret)
    app.state.board_handler = InboundBoardHandler(
        monday=MondayHandler(webhook_secret=config.monday.webhook_secret),
        store=store,
        poster=poster,
        channel_id=config.slack.channel_id,
        board_id=config.monday.board_id,
        account_url=config.monday.account_url,
    )
    app.state.chat_handler = InboundChatHandler(
        poster=poster,
        channel_id=config.slack.channel_id,
        restrict_to_channel=config.slack.restrict_to_channel,
    )

    # =========================================================================
    # Endpoints
    # =========================================================================

    @app.get("/health", response_model=HealthStatus)
    async def health():
        """Health check endpoint"""
        report = app.state.reconcile_report
        return HealthStatus(
            board_id=config.monday.board_id,
            channel_id=config.slack.channel_id,
            tracked_items=len(app.state.store),
            webhooks=report.summary() if report else None,
        )

    @app.post(config.server.webhook_path)
    async def monday_webhook(request: Request, sig: Optional[str] = Query(None)):
        """Handle monday.com board webhooks."""
        body = await request.body()
        try:
            payload = json.loads(body) if body else None
        except ValueError:
            payload = None

        result = await app.state.board_handler.handle(sig, payload, body)
        if result.is_json:
            return JSONResponse(result.body, status_code=result.status_code)
        return PlainTextResponse(result.body, status_code=result.status_code)

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        background_tasks: BackgroundTasks,
        x_slack_signature: Optional[str] = Header(None),
        x_slack_request_timestamp: Optional[str] = Header(None),
    ):
        """
        Handle Slack Events API deliveries.

        Slack expects an answer within 3 seconds, so replies are posted in a
        background task after the acknowledgement.
        """
        slack_handler: SlackHandler = app.state.slack_handler

        body = await request.body()

        if not slack_handler.verify_signature(
            body,
            x_slack_signature or "",
            x_slack_request_timestamp or ""
        ):
            raise HTTPException(status_code=401, detail="Invalid signature")

        try:
            data = json.loads(body)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON")
        if not isinstance(data, dict):
            raise HTTPException(status_code=400, detail="Invalid JSON")

        if slack_handler.is_url_verification(data):
            return JSONResponse({"challenge": slack_handler.get_challenge(data)})

        event = await slack_handler.parse_event(data)
        if event is not None:
            background_tasks.add_task(app.state.chat_handler.handle, event)

        return JSONResponse({"ok": True})

    return app


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Validate configuration and run the relay"""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = validate_config(load_config())
    except ConfigError as e:
        for problem in e.problems:
            logger.error("Configuration error: %s", problem)
        logger.error("Create a .env file with the required variables.")
        sys.exit(1)

    logger.info("Configuration validated")
    app = create_app(config)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
    )


if __name__ == "__main__":
    run_server()
