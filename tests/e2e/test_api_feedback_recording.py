from datetime import timedelta

from conftest import NOW
from feedback_synthesis import NO_TRANSCRIPT_FEEDBACK


TRANSCRIPT_EVENT = {
    "event_type": "application.transcription_ready",
    "properties": {
        "transcript": [
            {"role": "assistant", "content": "Walk me through your background."},
            {"role": "user", "content": "I spent five years on payments."},
        ]
    },
}


def _iso(moment):
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def test_recording_missing_on_old_conversation(api_client, fake_tavus, fake_s3):
    fake_tavus.on("GET", "/conversations/c1", json={"conversation_id": "c1", "created_at": _iso(NOW - timedelta(hours=3))})
    resp = api_client.get("/api/get-recording-url", params={"conversation_id": "c1"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "not_available"
    assert data["recording_url"] is None
    assert fake_s3.listed[0]["Prefix"] == "tavus/c1/"
    assert fake_tavus.calls("GET", "/conversations/c1")[0]["params"] == {}


def test_recording_ready(api_client, fake_s3):
    fake_s3.contents = [{"Key": "tavus/c1/"}, {"Key": "tavus/c1/session.webm"}]
    resp = api_client.get("/api/get-recording-url", params={"conversation_id": "c1"})
    assert resp.json() == {
        "recording_url": "https://signed.test/tavus/c1/session.webm?expires=3600",
        "status": "ready",
        "message": "Recording is ready to watch",
    }


def test_recording_recent_conversation_still_processing(api_client, fake_tavus):
    fake_tavus.on("GET", "/conversations/c1", json={"conversation_id": "c1", "created_at": _iso(NOW - timedelta(minutes=30))})
    resp = api_client.get("/api/get-recording-url", params={"conversation_id": "c1"})
    assert resp.json()["status"] == "processing"


def test_recording_storage_error_is_soft(api_client, fake_s3):
    fake_s3.error = RuntimeError("AccessDenied")
    resp = api_client.get("/api/get-recording-url", params={"conversation_id": "c1"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "error"


def test_recording_requires_conversation_id(api_client):
    resp = api_client.get("/api/get-recording-url")
    assert resp.status_code == 400
    assert resp.json() == {"error": "conversation_id is required"}


def test_generate_feedback(api_client, fake_tavus, fake_llm, sleeps):
    fake_tavus.on("GET", "/conversations/c1", json={"conversation_id": "c1", "events": [TRANSCRIPT_EVENT]})
    resp = api_client.post(
        "/api/generate-feedback",
        json={"conversationId": "c1", "interviewConfig": {"role": "Payments Engineer", "experienceLevel": "senior"}},
    )
    assert resp.status_code == 200
    assert resp.json() == {"feedback": "## Overall Performance\nSolid answers."}
    assert sleeps == []
    user_message = fake_llm.calls[0]["json"]["messages"][1]["content"]
    assert "- Role: Payments Engineer" in user_message
    assert "user: I spent five years on payments." in user_message


def test_generate_feedback_placeholder_after_retry(api_client, fake_tavus, fake_llm, sleeps):
    fake_tavus.on("GET", "/conversations/c1", json={"conversation_id": "c1", "events": []})
    resp = api_client.post("/api/generate-feedback", json={"conversationId": "c1"})
    assert resp.status_code == 200
    assert resp.json() == {"feedback": NO_TRANSCRIPT_FEEDBACK}
    assert sleeps == [10.0]
    assert fake_llm.calls == []


def test_generate_feedback_requires_conversation(api_client, fake_tavus):
    resp = api_client.post("/api/generate-feedback", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "conversationId is required"}
    assert fake_tavus.requests == []


def test_feedback_report_pdf(api_client):
    resp = api_client.post(
        "/api/feedback-report",
        json={"feedback": "## Key Strengths\n- **Clarity**", "conversationId": "c1", "interviewConfig": {"role": "PM"}},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"] == 'attachment; filename="interview-feedback-c1.pdf"'
    assert resp.content.startswith(b"%PDF")
