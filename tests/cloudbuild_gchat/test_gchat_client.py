import asyncio
import json

import httpx
import pytest
from respx import MockRouter

from cloudbuild_gchat.errors import DeliveryError
from cloudbuild_gchat.gchat_client import GChatWebhookClient
from cloudbuild_gchat.models import WebhookPayload

WEBHOOK_URL = "https://chat.googleapis.com/v1/spaces/AAAA/messages?key=k&token=t"


def _post(endpoint: str, payload: WebhookPayload) -> None:
    async def run():
        async with httpx.AsyncClient(timeout=5.0) as client:
            await GChatWebhookClient(endpoint=endpoint, client=client).post(payload)
    asyncio.run(run())


def test_post_sends_text_as_json(respx_mock: MockRouter):
    route = respx_mock.post(WEBHOOK_URL).respond(status_code=200, json={"name": "spaces/AAAA/messages/1"})

    _post(WEBHOOK_URL, WebhookPayload(text="SUCCESS | ci"))

    assert route.call_count == 1
    request = route.calls.last.request
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content.decode("utf-8")) == {"text": "SUCCESS | ci"}


@pytest.mark.parametrize("status_code", [400, 404, 500, 503])
def test_post_non_success_status_raises(respx_mock: MockRouter, status_code: int):
    route = respx_mock.post(WEBHOOK_URL).respond(status_code=status_code)

    with pytest.raises(DeliveryError) as excinfo:
        _post(WEBHOOK_URL, WebhookPayload(text="x"))

    assert str(status_code) in str(excinfo.value)
    assert route.call_count == 1


def test_post_transport_error_raises(respx_mock: MockRouter):
    route = respx_mock.post(WEBHOOK_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(DeliveryError) as excinfo:
        _post(WEBHOOK_URL, WebhookPayload(text="x"))

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    assert route.call_count == 1


def test_post_timeout_raises(respx_mock: MockRouter):
    respx_mock.post(WEBHOOK_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

    with pytest.raises(DeliveryError):
        _post(WEBHOOK_URL, WebhookPayload(text="x"))


def test_post_without_endpoint_raises(respx_mock: MockRouter):
    with pytest.raises(DeliveryError, match="not configured"):
        _post("", WebhookPayload(text="x"))

    assert respx_mock.calls.call_count == 0


def test_post_invalid_endpoint_raises():
    with pytest.raises(DeliveryError):
        _post("not a url", WebhookPayload(text="x"))
