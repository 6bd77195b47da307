import httpx
from anthropic import APIConnectionError

from ai_gateway import GenerationState


def _add(client, text):
    return client.post("/api/tasks", json={"text": text})


def test_health(client):
    assert client.get("/").json()["status"] == "healthy"

    body = client.get("/health").json()
    assert body["claude_configured"] is True
    assert body["task_count"] == 0
    assert body["generation_state"] == "idle"
    assert body["generation_in_flight"] is False


def test_add_and_list_most_recent_first(client):
    _add(client, "Buy milk")
    response = _add(client, "  Walk dog ")

    assert response.status_code == 200
    tasks = response.json()["tasks"]
    assert [t["text"] for t in tasks] == ["Walk dog", "Buy milk"]
    assert tasks[0]["completed"] is False
    assert tasks[0]["subtasks"] == []
    assert client.get("/api/tasks").json() == response.json()


def test_blank_text_and_missing_key_are_noops(client):
    _add(client, "Buy milk")
    assert len(_add(client, "   ").json()["tasks"]) == 1
    assert len(client.post("/api/tasks", json={}).json()["tasks"]) == 1


def test_toggle_subtasks_and_delete(client):
    task_id = _add(client, "Trip").json()["tasks"][0]["id"]

    client.post(f"/api/tasks/{task_id}/subtasks", json={"text": "Book flight"})
    tasks = client.post(f"/api/tasks/{task_id}/subtasks", json={"text": "Pack bags"}).json()["tasks"]
    subtasks = tasks[0]["subtasks"]
    assert [s["text"] for s in subtasks] == ["Book flight", "Pack bags"]

    tasks = client.post(f"/api/tasks/{task_id}/subtasks/{subtasks[0]['id']}/toggle").json()["tasks"]
    assert tasks[0]["subtasks"][0]["completed"] is True
    assert tasks[0]["completed"] is False

    tasks = client.post(f"/api/tasks/{task_id}/toggle").json()["tasks"]
    assert tasks[0]["completed"] is True

    assert client.delete(f"/api/tasks/{task_id}").json()["tasks"] == []
    second = client.delete(f"/api/tasks/{task_id}")
    assert second.status_code == 200
    assert second.json()["tasks"] == []


def test_unknown_ids_are_noops(client):
    _add(client, "Trip")
    before = client.get("/api/tasks").json()

    for response in [
        client.post("/api/tasks/missing/toggle"),
        client.post("/api/tasks/missing/subtasks", json={"text": "x"}),
        client.post("/api/tasks/missing/subtasks/nope/toggle"),
        client.delete("/api/tasks/missing"),
    ]:
        assert response.status_code == 200
        assert response.json() == before


def test_ai_generate_success(client):
    response = client.post("/api/ai-generate", json={"prompt": "Plan my trip"})

    assert response.status_code == 200
    assert response.json() == {
        "tasks": [{"task": "Plan trip", "subtasks": ["Book flight", "Pack bags"]}]
    }


def test_ai_generate_malformed_is_empty_200(client, fake_client):
    fake_client.text = "not json"

    response = client.post("/api/ai-generate", json={"prompt": "Plan my trip"})

    assert response.status_code == 200
    assert response.json() == {"tasks": []}


def test_ai_generate_network_failure_is_500(client, fake_client):
    fake_client.error = APIConnectionError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    )

    response = client.post("/api/ai-generate", json={"prompt": "Plan my trip"})

    assert response.status_code == 500
    assert response.json() == {"tasks": []}


def test_ai_generate_blank_prompt_skips_backend(client, fake_client):
    response = client.post("/api/ai-generate", json={"prompt": "  "})

    assert response.status_code == 200
    assert response.json() == {"tasks": []}
    assert fake_client.calls == []


def test_session_generate_prepends(client, fake_client):
    _add(client, "Existing")
    fake_client.text = (
        '[{"task": "Plan trip", "subtasks": ["Book flight"]},'
        ' {"task": "Book hotel", "subtasks": []}]'
    )

    response = client.post("/api/tasks/generate", json={"prompt": "Plan my trip"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "succeeded"
    assert body["generated"] == 2
    assert body["failure"] is None
    assert [t["text"] for t in body["tasks"]] == ["Plan trip", "Book hotel", "Existing"]
    assert body["tasks"][0]["subtasks"][0]["text"] == "Book flight"
    assert client.get("/health").json()["generation_state"] == "succeeded"


def test_session_generate_failure_leaves_store_untouched(client, fake_client):
    _add(client, "Existing")
    fake_client.text = '[{"task": "Good"}, {"task": 42}]'

    body = client.post("/api/tasks/generate", json={"prompt": "Plan my trip"}).json()

    assert body["status"] == "failed"
    assert body["failure"] == "malformed"
    assert body["generated"] == 0
    assert [t["text"] for t in body["tasks"]] == ["Existing"]


def test_session_generate_in_flight_conflict(client, store, fake_client):
    client.app.state.tracker.state = GenerationState.REQUESTING

    response = client.post("/api/tasks/generate", json={"prompt": "Plan my trip"})

    assert response.status_code == 409
    assert len(store) == 0
    assert fake_client.calls == []
