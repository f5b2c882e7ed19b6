import pytest
from fastapi.testclient import TestClient

from app.api.routes import get_recognizer
from app.main import app
from app.nlu.config import MAX_TRANSCRIPT_CHARS

from conftest import PhraseRecognizer, RaisingRecognizer


@pytest.fixture
def client():
    app.dependency_overrides[get_recognizer] = lambda: PhraseRecognizer()
    yield TestClient(app)
    app.dependency_overrides.clear()


def post(client, path, body):
    return client.post(path, json=body)


def test_extract_two_tasks(client):
    r = post(client, "/api/tasks/extract", {
        "transcript": "okay call mom at 5pm and then pick up groceries tomorrow morning",
        "referenceTime": "2024-01-10T09:00:00",
    })
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert body["tasks"] == [
        {"text": "Call mom", "reminderTime": "2024-01-10T17:00:00", "originalTimeText": "at 5pm"},
        {"text": "Pick up groceries", "reminderTime": "2024-01-11T09:00:00", "originalTimeText": "tomorrow morning"},
    ]


def test_extract_without_time(client):
    r = post(client, "/api/tasks/extract", {"transcript": "buy milk"})
    assert r.status_code == 200
    assert r.json()["tasks"] == [{"text": "Buy milk", "reminderTime": None, "originalTimeText": None}]


def test_extract_empty_body_defaults(client):
    r = post(client, "/api/tasks/extract", {})
    assert r.status_code == 200
    assert r.json()["tasks"][0]["text"] == "Task scheduled"


def test_extract_rejects_long_transcript(client):
    r = post(client, "/api/tasks/extract", {"transcript": "a" * (MAX_TRANSCRIPT_CHARS + 1)})
    assert r.status_code == 422


def test_extract_recognizer_failure_is_502():
    app.dependency_overrides[get_recognizer] = lambda: RaisingRecognizer()
    try:
        r = TestClient(app).post("/api/tasks/extract", json={"transcript": "call mom at 5pm"})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 502
    assert r.json()["detail"] == "time_recognizer_failed"


def test_parse_time_match(client):
    r = post(client, "/api/time/parse", {"text": "tomorrow morning", "referenceTime": "2024-01-10T09:00:00"})
    assert r.status_code == 200
    assert r.json() == {"reminderTime": "2024-01-11T09:00:00", "originalTimeText": "tomorrow morning"}


def test_parse_time_no_match(client):
    r = post(client, "/api/time/parse", {"text": "buy milk"})
    assert r.json() == {"reminderTime": None, "originalTimeText": None}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_metrics_exposes_extract_counter(client):
    post(client, "/api/tasks/extract", {"transcript": "buy milk"})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "task_extract_requests_total" in r.text
    assert "tasks_per_transcript" in r.text


def test_lifespan_logs_start_and_stop(monkeypatch):
    import app.main as main_module

    events = []
    monkeypatch.setattr(main_module, "log_event", lambda event, **fields: events.append((event, fields)))
    with TestClient(app) as c:
        assert c.get("/health").status_code == 200
        assert [e for e, _ in events] == ["service_start"]
    assert [e for e, _ in events] == ["service_start", "service_stop"]
    assert events[0][1]["max_transcript_chars"] == MAX_TRANSCRIPT_CHARS
