import pytest
import sentry_sdk
from fastapi.testclient import TestClient
from respx import MockRouter
from sentry_sdk.transport import Transport

from cloudbuild_gchat import tracing
from cloudbuild_gchat.main import app
from config_management.schemas import AppConfig, TracingConfig
from tests.cloudbuild_gchat.helpers import build_record, push_body

WEBHOOK_URL = "https://chat.example.com/v1/spaces/AAAA/messages"
DSN = "https://public@sentry.example.com/1"


class RecordingTransport(Transport):
    """Keeps envelopes in memory instead of sending them to Sentry."""

    def __init__(self):
        super().__init__()
        self.envelopes = []

    def capture_envelope(self, envelope):
        self.envelopes.append(envelope)

    def span_names(self) -> set:
        names = set()
        for envelope in self.envelopes:
            event = envelope.get_transaction_event()
            if event:
                names.update(s.get("description") for s in event.get("spans", []))
        return names


@pytest.fixture
def transport():
    transport = RecordingTransport()
    assert tracing.init_tracing(TracingConfig(dsn=DSN, traces_sample_rate=1.0), "cloudbuild-gchat", transport=transport)
    yield transport
    sentry_sdk.init()


def test_init_tracing_without_dsn_is_disabled():
    assert tracing.init_tracing(TracingConfig(dsn=None), "cloudbuild-gchat") is False


def test_request_records_serve_and_send_message_spans(transport: RecordingTransport, respx_mock: MockRouter):
    respx_mock.post(WEBHOOK_URL).respond(status_code=200)
    # No DSN in the app config, so the lifespan leaves the test client in place
    app.state.config = AppConfig(gchat_webhook=WEBHOOK_URL, tracing=TracingConfig(dsn=None))
    try:
        with TestClient(app) as c:
            response = c.post("/", json=push_body(build_record()))
    finally:
        app.state.config = None
    sentry_sdk.flush()

    assert response.status_code == 200
    assert {"serve", "send message"} <= transport.span_names()


def test_ignored_build_has_no_send_message_span(transport: RecordingTransport, respx_mock: MockRouter):
    app.state.config = AppConfig(gchat_webhook=WEBHOOK_URL, tracing=TracingConfig(dsn=None))
    try:
        with TestClient(app) as c:
            response = c.post("/", json=push_body(build_record(status="WORKING")))
    finally:
        app.state.config = None
    sentry_sdk.flush()

    assert response.text == "ignored"
    assert "serve" in transport.span_names()
    assert "send message" not in transport.span_names()
