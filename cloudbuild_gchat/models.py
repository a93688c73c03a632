import base64
import re
from enum import IntEnum
from typing import Dict, Optional

from pydantic import AliasChoices, AwareDatetime, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import DecodeError

# Keys of Build.substitutions used in notifications
REPO_NAME = "REPO_NAME"
TRIGGER_NAME = "TRIGGER_NAME"
BRANCH_NAME = "BRANCH_NAME"
COMMIT_SHA = "COMMIT_SHA"
SHORT_SHA = "SHORT_SHA"

# RFC 3339 timestamps from Cloud Build carry nanoseconds, datetime keeps microseconds.
# Timestamps must carry an offset so durations never mix naive and aware values.
_FRACTION_TOO_LONG = re.compile(r"(\.\d{6})\d+")


def _trim_fraction(v):
    if isinstance(v, str):
        return _FRACTION_TOO_LONG.sub(r"\1", v)
    return v


# --- Pub/Sub push envelope ---
# https://cloud.google.com/pubsub/docs/reference/rest/v1/PubsubMessage

class PubSubMessage(BaseModel):
    model_config = ConfigDict(extra='ignore')

    attributes: Dict[str, str] = Field(default_factory=dict)
    data: bytes = b""
    id: str = Field(default="", validation_alias=AliasChoices("id", "messageId", "message_id"))
    publish_time: Optional[AwareDatetime] = Field(default=None, validation_alias=AliasChoices("publishTime", "publish_time"))

    @field_validator("publish_time", mode="before")
    @classmethod
    def trim_nanoseconds(cls, v):
        return _trim_fraction(v)

    @field_validator("attributes", mode="before")
    @classmethod
    def null_attributes(cls, v):
        return {} if v is None else v

    @field_validator("data", mode="before")
    @classmethod
    def decode_base64(cls, v):
        if v is None:
            return b""
        if isinstance(v, str):
            # binascii.Error is a ValueError, reported as a validation error
            return base64.b64decode(v, validate=True)
        return v

    @property
    def build_id(self) -> str:
        return self.attributes.get("buildId", "")

    @property
    def status(self) -> str:
        return self.attributes.get("status", "")


class PubSubEnvelope(BaseModel):
    model_config = ConfigDict(extra='ignore')

    message: PubSubMessage = Field(default_factory=PubSubMessage)
    subscription: str = ""

    @field_validator("message", mode="before")
    @classmethod
    def null_message(cls, v):
        return {} if v is None else v


# --- Cloud Build status record ---

class BuildStatus(IntEnum):
    STATUS_UNKNOWN = 0
    PENDING = 10
    QUEUED = 1
    WORKING = 2
    SUCCESS = 3
    FAILURE = 4
    INTERNAL_ERROR = 5
    TIMEOUT = 6
    CANCELLED = 7
    EXPIRED = 9


class Build(BaseModel):
    """Subset of a Cloud Build `Build` resource in its JSON encoding."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    id: str = ""
    project_id: str = ""
    build_trigger_id: str = ""
    status: BuildStatus = BuildStatus.STATUS_UNKNOWN
    status_detail: str = ""
    create_time: Optional[AwareDatetime] = None
    start_time: Optional[AwareDatetime] = None
    finish_time: Optional[AwareDatetime] = None
    log_url: str = ""
    substitutions: Dict[str, str] = Field(default_factory=dict)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        if v is None:
            return BuildStatus.STATUS_UNKNOWN
        if isinstance(v, str):
            try:
                return BuildStatus[v]
            except KeyError:
                raise ValueError(f"unknown build status {v!r}")
        if isinstance(v, int) and not isinstance(v, bool):
            try:
                return BuildStatus(v)
            except ValueError:
                # Statuses added after this enum was written
                return BuildStatus.STATUS_UNKNOWN
        return v

    @field_validator("create_time", "start_time", "finish_time", mode="before")
    @classmethod
    def trim_nanoseconds(cls, v):
        return _trim_fraction(v)

    @field_validator("substitutions", mode="before")
    @classmethod
    def null_substitutions(cls, v):
        return {} if v is None else v

    def substitution(self, key: str) -> str:
        return self.substitutions.get(key, "")


# --- Google Chat webhook ---

class WebhookPayload(BaseModel):
    text: str


def parse_envelope(raw: bytes) -> PubSubEnvelope:
    """Decode the push request body. An empty `data` field is not an error here."""
    try:
        return PubSubEnvelope.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"invalid pubsub envelope: {e}", reason="unmarshal pubsub") from e


def parse_build(data: bytes) -> Build:
    """Decode the build record carried in the Pub/Sub message data.

    Unknown fields are ignored. Empty or non-object input is rejected.
    """
    try:
        return Build.model_validate_json(data)
    except ValidationError as e:
        raise DecodeError(f"invalid build: {e}", reason="unmarshal build") from e
