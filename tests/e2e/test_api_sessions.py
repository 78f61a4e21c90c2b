from fastapi.testclient import TestClient

from api_server import app
from services.sessions import SessionStore


GENERAL = {
    "category": "general",
    "role": "PM",
    "industry": "Retail",
    "experienceLevel": "mid",
    "interviewType": "behavioral",
}


def _wait_notifications():
    app.state.session_store.wait_for_notifications(timeout=5)


def _create(api_client):
    created = api_client.post("/api/sessions")
    assert created.status_code == 200
    return created.json()["session_id"]


def test_session_lifecycle(api_client, fake_tavus):
    fake_tavus.on("POST", "/conversations", json={"conversation_id": "c1", "conversation_url": "https://tavus.daily.co/c1"})
    fake_tavus.on("POST", "/conversations/c1/end", json={})

    created = api_client.post("/api/sessions").json()
    assert created["status"] == "idle"
    assert fake_tavus.requests == []

    started = api_client.post(f"/api/sessions/{created['session_id']}/start", json={"category": "leetcode"})
    assert started.status_code == 200
    session = started.json()
    assert session["session_id"] == created["session_id"]
    assert session["status"] == "active"
    assert session["conversation_id"] == "c1"
    assert session["start_time"] is not None

    fetched = api_client.get(f"/api/sessions/{session['session_id']}")
    assert fetched.json()["status"] == "active"

    ended = api_client.post(f"/api/sessions/{session['session_id']}/end")
    assert ended.status_code == 200
    assert ended.json()["status"] == "ended"
    _wait_notifications()
    assert len(fake_tavus.calls("POST", "/conversations/c1/end")) == 1

    reset = api_client.post(f"/api/sessions/{session['session_id']}/reset")
    assert reset.json()["status"] == "idle"
    assert reset.json()["conversation_id"] is None


def test_reset_session_can_start_again(api_client, fake_tavus):
    fake_tavus.on("POST", "/conversations", json={"conversation_id": "c1", "conversation_url": "u1"})
    fake_tavus.on("POST", "/conversations", json={"conversation_id": "c2", "conversation_url": "u2"})
    fake_tavus.on("POST", "/conversations/c1/end", json={})
    session_id = _create(api_client)

    api_client.post(f"/api/sessions/{session_id}/start", json={"category": "leetcode"})
    api_client.post(f"/api/sessions/{session_id}/end")
    api_client.post(f"/api/sessions/{session_id}/reset")

    restarted = api_client.post(f"/api/sessions/{session_id}/start", json={"category": "leetcode"})
    assert restarted.status_code == 200
    assert restarted.json()["status"] == "active"
    assert restarted.json()["conversation_id"] == "c2"


def test_failed_start_keeps_session_readable(api_client, fake_tavus):
    fake_tavus.on("PATCH", "/personas/p-recruiter", status=500, text="boom")
    fake_tavus.on("PATCH", "/personas/p-recruiter", status=304)
    fake_tavus.on("POST", "/conversations", json={"conversation_id": "c9", "conversation_url": "u"})
    session_id = _create(api_client)

    resp = api_client.post(f"/api/sessions/{session_id}/start", json=GENERAL)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to update persona"

    failed = api_client.get(f"/api/sessions/{session_id}").json()
    assert failed["status"] == "error"
    assert failed["error"]

    assert api_client.post(f"/api/sessions/{session_id}/reset").json()["status"] == "idle"
    retried = api_client.post(f"/api/sessions/{session_id}/start", json=GENERAL)
    assert retried.status_code == 200
    assert retried.json()["conversation_id"] == "c9"


def test_end_notification_failure_does_not_fail_end(api_client, fake_tavus):
    fake_tavus.on("POST", "/conversations", json={"conversation_id": "c1", "conversation_url": "u"})
    fake_tavus.on("POST", "/conversations/c1/end", status=500, text="boom")
    session_id = _create(api_client)
    api_client.post(f"/api/sessions/{session_id}/start", json={"category": "leetcode"})

    ended = api_client.post(f"/api/sessions/{session_id}/end")
    assert ended.status_code == 200
    _wait_notifications()
    assert api_client.get(f"/api/sessions/{session_id}").json()["status"] == "ended"


def test_invalid_transitions(api_client, fake_tavus):
    fake_tavus.on("POST", "/conversations", json={"conversation_id": "c1", "conversation_url": "u"})
    session_id = _create(api_client)
    api_client.post(f"/api/sessions/{session_id}/start", json={"category": "leetcode"})

    reset = api_client.post(f"/api/sessions/{session_id}/reset")
    assert reset.status_code == 409
    assert "while active" in reset.json()["error"]

    again = api_client.post(f"/api/sessions/{session_id}/start", json={"category": "leetcode"})
    assert again.status_code == 409
    assert len(fake_tavus.calls("POST", "/conversations")) == 1


def test_remove_session(api_client, fake_tavus):
    fake_tavus.on("POST", "/conversations", json={"conversation_id": "c1", "conversation_url": "u"})
    fake_tavus.on("POST", "/conversations/c1/end", json={})
    session_id = _create(api_client)
    api_client.post(f"/api/sessions/{session_id}/start", json={"category": "leetcode"})

    busy = api_client.delete(f"/api/sessions/{session_id}")
    assert busy.status_code == 409

    api_client.post(f"/api/sessions/{session_id}/end")
    removed = api_client.delete(f"/api/sessions/{session_id}")
    assert removed.status_code == 200
    assert removed.json() == {"success": True}
    assert api_client.get(f"/api/sessions/{session_id}").status_code == 404
    assert len(app.state.session_store) == 0


def test_unknown_session(api_client):
    resp = api_client.get("/api/sessions/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "session not found"}

    start = api_client.post("/api/sessions/nope/start", json={"category": "leetcode"})
    assert start.status_code == 404


def test_general_session_requires_role(api_client, fake_tavus):
    session_id = _create(api_client)
    resp = api_client.post(f"/api/sessions/{session_id}/start", json={**GENERAL, "role": " "})
    assert resp.status_code == 400
    assert resp.json() == {"error": "role is required for general interviews"}
    assert fake_tavus.requests == []
    assert api_client.get(f"/api/sessions/{session_id}").json()["status"] == "idle"


def test_session_start_requires_category(api_client, fake_tavus):
    session_id = _create(api_client)
    resp = api_client.post(f"/api/sessions/{session_id}/start", json={"role": "PM"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid interview category"}
    assert fake_tavus.requests == []


def test_lifespan_owns_the_session_store(monkeypatch):
    stale = SessionStore()
    app.state.session_store = stale
    closed = []
    real_shutdown = SessionStore.shutdown

    def _shutdown(self, *, wait=False):
        closed.append(self)
        real_shutdown(self, wait=wait)

    monkeypatch.setattr(SessionStore, "shutdown", _shutdown)
    with TestClient(app):
        live = app.state.session_store
        assert live is not stale
    assert closed == [live]
    stale.shutdown()
