import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

import anyio
import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.requests import ClientDisconnect

from config_management.loader import load_config

from . import __version__, tracing
from .errors import DecodeError, DeliveryError, NotifierError, ReadError
from .gchat_client import GChatWebhookClient
from .models import Build, parse_build, parse_envelope
from .notifier import BuildNotifier, NotifyOutcome

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# How often a pending delivery checks whether the push request was dropped
DISCONNECT_POLL_INTERVAL = 0.1

# Status code for each way a request can fail
RESPONSE_STATUS = {
    ReadError: 400,
    DecodeError: 400,
    DeliveryError: 500,
}


# --- FastAPI App Lifespan (Startup/Shutdown) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # The command line entry point attaches its config before starting the server
    config = getattr(app.state, "config", None) or load_config()
    logging.getLogger().setLevel(config.log_level.upper())
    logger.info(f"{config.service_name} {__version__} starting up...")

    tracing.init_tracing(config.tracing, config.service_name)
    if not config.gchat_webhook:
        logger.warning("gchat webhook endpoint not configured, every finished build will fail delivery")

    http_client = httpx.AsyncClient(timeout=config.gchat_timeout)
    webhook = GChatWebhookClient(endpoint=config.gchat_webhook, client=http_client)
    app.state.notifier = BuildNotifier(webhook, repo_base_url=config.repo_base_url)

    yield
    logger.info(f"{config.service_name} shutting down...")
    await http_client.aclose()


app = FastAPI(title="Cloud Build Google Chat notifier", version=__version__, lifespan=lifespan)


def get_notifier(request: Request) -> BuildNotifier:
    return request.app.state.notifier


async def handle(request: Request, notifier: BuildNotifier, context: Dict[str, str]) -> NotifyOutcome:
    """read body -> decode envelope -> decode build -> filter, format and deliver"""
    try:
        body = await request.body()
    except ClientDisconnect as e:
        raise ReadError("client disconnected before the request body was read") from e

    envelope = parse_envelope(body)
    context["message"] = envelope.message.id
    context["subscription"] = envelope.subscription
    # Attributes set by Cloud Build, replaced by the decoded record below
    context["build"] = envelope.message.build_id
    context["status"] = envelope.message.status

    build = parse_build(envelope.message.data)
    context["build"] = build.id
    context["status"] = build.status.name
    tracing.set_build_context(build.id, build.status.name)

    return await notify_until_disconnect(request, notifier, build)


async def notify_until_disconnect(request: Request, notifier: BuildNotifier, build: Build) -> NotifyOutcome:
    """
    Runs the delivery while watching the push request. If Pub/Sub drops the
    request first, the outbound call is cancelled.
    """
    outcome: Optional[NotifyOutcome] = None
    error: Optional[NotifierError] = None

    async with anyio.create_task_group() as tg:
        async def deliver():
            nonlocal outcome, error
            try:
                outcome = await notifier.notify(build)
            except NotifierError as e:
                error = e
            tg.cancel_scope.cancel()

        async def watch():
            while not await request.is_disconnected():
                await anyio.sleep(DISCONNECT_POLL_INTERVAL)
            logger.warning(f"Push request dropped while build {build.id} was being delivered")
            tg.cancel_scope.cancel()

        tg.start_soon(deliver)
        tg.start_soon(watch)

    if error is not None:
        raise error
    if outcome is None:
        raise DeliveryError(f"request cancelled before build {build.id} was delivered")
    return outcome


# --- API Endpoints ---

@app.api_route("/", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], response_class=PlainTextResponse)
async def serve(request: Request, notifier: BuildNotifier = Depends(get_notifier)):
    """
    Pub/Sub push endpoint for the cloud-builds topic.

    4xx responses are not redelivered by Pub/Sub, 5xx responses are.
    """
    context = {"method": request.method, "path": request.url.path}
    with tracing.span("http.server", "serve"):
        try:
            outcome = await handle(request, notifier, context)
        except NotifierError as e:
            status_code = RESPONSE_STATUS.get(type(e), 500)
            logger.error(f"{e.reason}: {e} [{_format_context(context)}]")
            return PlainTextResponse(e.reason, status_code=status_code)

    return PlainTextResponse(outcome.value, status_code=200)


def _format_context(context: Dict[str, str]) -> str:
    return " ".join(f"{k}={v}" for k, v in context.items())
