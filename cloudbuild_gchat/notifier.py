import logging
from datetime import timedelta
from enum import Enum

from config_management.schemas import DEFAULT_REPO_BASE_URL

from . import tracing
from .gchat_client import GChatWebhookClient
from .models import (
    BRANCH_NAME,
    COMMIT_SHA,
    REPO_NAME,
    SHORT_SHA,
    TRIGGER_NAME,
    Build,
    BuildStatus,
    WebhookPayload,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({
    BuildStatus.CANCELLED,
    BuildStatus.TIMEOUT,
    BuildStatus.FAILURE,
    BuildStatus.SUCCESS,
})


class NotifyOutcome(str, Enum):
    IGNORED = "ignored"
    DELIVERED = "ok"


def is_terminal(status: BuildStatus) -> bool:
    return status in TERMINAL_STATUSES


def format_duration(delta: timedelta) -> str:
    """Formats a duration as 1h2m3.5s, 1m30s, 1.5s, 250ms or 0s."""
    us = delta // timedelta(microseconds=1)
    if us == 0:
        return "0s"
    sign = "-" if us < 0 else ""
    us = abs(us)

    if us < 1_000:
        return f"{sign}{us}µs"
    if us < 1_000_000:
        ms, frac = divmod(us, 1_000)
        return f"{sign}{ms}{_fraction(frac, 3)}ms"

    seconds, frac = divmod(us, 1_000_000)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    out = f"{seconds}{_fraction(frac, 6)}s"
    if hours:
        out = f"{hours}h{minutes}m{out}"
    elif minutes:
        out = f"{minutes}m{out}"
    return sign + out


def _fraction(value: int, width: int) -> str:
    if not value:
        return ""
    return "." + f"{value:0{width}d}".rstrip("0")


def build_duration(build: Build) -> timedelta:
    if build.start_time is None or build.finish_time is None:
        return timedelta(0)
    return build.finish_time - build.start_time


def format_message(build: Build, repo_base_url: str = DEFAULT_REPO_BASE_URL) -> str:
    """
    Renders the chat message for a finished build:

        status | trigger-name | repo@branch:commit
        duration | build-log

    Missing substitutions render as empty strings.
    """
    base = repo_base_url.rstrip("/")
    repo = build.substitution(REPO_NAME)
    branch = build.substitution(BRANCH_NAME)
    repo_url = f"{base}/{repo}"

    parts = [
        f"{build.status.name} | {build.substitution(TRIGGER_NAME)} | ",
        f"<{repo_url}|{repo}>",
        f"@<{repo_url}/tree/{branch}|{branch}>",
        f":<{repo_url}/commit/{build.substitution(COMMIT_SHA)}|{build.substitution(SHORT_SHA)}>",
        f"\n{format_duration(build_duration(build))} | <{build.log_url}|build log>",
    ]
    return "".join(parts)


class BuildNotifier:
    """Forwards finished builds to Google Chat and drops everything else."""

    def __init__(self, webhook: GChatWebhookClient, repo_base_url: str = DEFAULT_REPO_BASE_URL):
        self.webhook = webhook
        self.repo_base_url = repo_base_url

    async def notify(self, build: Build) -> NotifyOutcome:
        if not is_terminal(build.status):
            logger.debug(f"Ignoring status {build.status.name} for build {build.id}")
            return NotifyOutcome.IGNORED

        with tracing.span("http.client", "send message"):
            payload = WebhookPayload(text=format_message(build, self.repo_base_url))
            # DeliveryError is logged and answered by the request handler
            await self.webhook.post(payload)

        logger.info(f"Status {build.status.name} reported for build {build.id}")
        return NotifyOutcome.DELIVERED
