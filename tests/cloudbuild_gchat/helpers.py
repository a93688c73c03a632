import base64
import json

SUBSTITUTIONS = {
    "REPO_NAME": "foo",
    "TRIGGER_NAME": "ci",
    "BRANCH_NAME": "main",
    "COMMIT_SHA": "abcdef123456",
    "SHORT_SHA": "abcdef1",
}


def build_record(status="SUCCESS", **fields) -> dict:
    record = {
        "id": "b-123",
        "projectId": "my-project",
        "status": status,
        "startTime": "2024-01-01T00:00:00Z",
        "finishTime": "2024-01-01T00:01:30Z",
        "logUrl": "http://log",
        "substitutions": dict(SUBSTITUTIONS),
    }
    record.update(fields)
    return record


def push_body(data, message_id="m-1") -> dict:
    """Pub/Sub push request body. `data` is a dict (JSON encoded) or raw bytes."""
    if isinstance(data, dict):
        data = json.dumps(data).encode("utf-8")
    return {
        "message": {
            "attributes": {"buildId": "b-123", "status": "SUCCESS"},
            "data": base64.b64encode(data).decode("ascii"),
            "id": message_id,
        },
        "subscription": "projects/my-project/subscriptions/cloud-builds-gchat",
    }
