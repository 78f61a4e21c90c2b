import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api.dependencies import Providers
from config import Settings


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

PROVIDER_ENV = (
    "TAVUS_API_KEY",
    "REPLICA_ID",
    "LEET_CODE_PERSONA_ID",
    "GENERAL_RECRUITER_ID",
    "GENERAL_PERSONA_STRATEGY",
    "OPENAI_API_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "S3_BUCKET_NAME",
    "S3_BUCKET_REGION",
)


def make_settings(**overrides) -> Settings:
    values = {
        "TAVUS_API_KEY": "tavus-test-key",
        "TAVUS_BASE_URL": "https://tavus.test/v2",
        "REPLICA_ID": "r-replica",
        "LEET_CODE_PERSONA_ID": "p-leetcode",
        "GENERAL_RECRUITER_ID": "p-recruiter",
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_BASE_URL": "https://llm.test",
        "AWS_ACCESS_KEY_ID": "AKIATEST",
        "AWS_SECRET_ACCESS_KEY": "secret",
        "S3_BUCKET_NAME": "recordings",
        "S3_BUCKET_REGION": "us-east-1",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeTavus:
    """Route table for an ``httpx.MockTransport`` standing in for the Tavus API."""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.transport = httpx.MockTransport(self.handle)

    def on(self, method, path, status=200, json=None, text=None):
        self.routes.setdefault((method, path), []).append((status, json, text))
        return self

    def calls(self, method=None, path=None):
        return [
            req for req in self.requests
            if (method is None or req["method"] == method) and (path is None or req["path"] == path)
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v2"):
            path = path[len("/v2"):]
        body = json.loads(request.content) if request.content else None
        self.requests.append(
            {
                "method": request.method,
                "path": path,
                "params": dict(request.url.params),
                "headers": dict(request.headers),
                "json": body,
            }
        )
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"message": f"no fake route for {request.method} {path}"})
        status, payload, text = queue.pop(0) if len(queue) > 1 else queue[0]
        if text is not None:
            return httpx.Response(status, text=text)
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)


class FakeLlmResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeLlm:
    def __init__(self, content="## Overall Performance\nSolid answers."):
        self.calls = []
        self.response = FakeLlmResponse(200, {"choices": [{"message": {"content": content}}]})

    def post(self, url, *, json, headers, timeout):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.response


class FakeS3:
    def __init__(self, contents=None, error=None):
        self.contents = contents or []
        self.error = error
        self.listed = []
        self.signed = []

    def list_objects_v2(self, **kwargs):
        self.listed.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"Contents": list(self.contents), "KeyCount": len(self.contents)}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.signed.append({"operation": operation, "params": Params, "expires": ExpiresIn})
        return f"https://signed.test/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_settings():
    return make_settings()


@pytest.fixture
def fake_tavus():
    return FakeTavus()


@pytest.fixture
def fake_llm():
    return FakeLlm()


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def providers(test_settings, fake_tavus, fake_llm, fake_s3, sleeps):
    return Providers(
        test_settings,
        tavus_transport=fake_tavus.transport,
        llm_client=fake_llm,
        s3_client_factory=lambda _storage: fake_s3,
        sleep=sleeps.append,
        clock=lambda: NOW,
    )


@pytest.fixture
def api_client(providers):
    from fastapi.testclient import TestClient

    from api.dependencies import get_providers
    from api_server import app
    from services.sessions import SessionStore

    store = SessionStore()
    app.state.session_store = store
    app.dependency_overrides[get_providers] = lambda: providers
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        store.shutdown(wait=True)
