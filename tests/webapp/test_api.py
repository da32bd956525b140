"""Tests for the world JSON API."""

import pytest

pytestmark = pytest.mark.webapp


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_rulers(client):
    rulers = client.get("/api/rulers").get_json()
    assert [r["id"] for r in rulers] == ["sage", "rex", "vera", "plato", "diddy"]
    assert "secrets" not in rulers[0]


class TestJoin:
    def test_join_assigns_viewer_id(self, client):
        data = client.post("/api/worlds/test/join", json={}).get_json()
        assert data["viewer_id"].startswith("v_")
        assert data["type"] == "init"
        assert len(data["agents"]) == 5
        assert data["mission"] is not None

    def test_join_keeps_viewer_id(self, client):
        data = client.post("/api/worlds/test/join", json={"viewer_id": "v_me", "name": "Bo"}).get_json()
        assert data["viewer_id"] == "v_me"
        assert data["influence"]["name"] == "Bo"
        assert data["world"]["nations"]["rex"]["is_fogged"] is True


class TestWhisper:
    def test_silent_ruler_reply(self, client, joined):
        response = client.post(
            "/api/worlds/test/whisper",
            json={"viewer_id": joined, "to": "rex", "text": "Greetings, Emperor."},
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["type"] == "whisper_reply"
        assert data["agent_id"] == "rex"
        assert "regards you in silence" in data["text"]

    def test_command_reply(self, client, joined):
        data = client.post(
            "/api/worlds/test/whisper",
            json={"viewer_id": joined, "to": "rex", "text": "/memory"},
        ).get_json()
        assert data["command"] == "memory"
        assert "🔒" in data["text"]

    @pytest.mark.parametrize("body", [{"to": "rex"}, {"text": "hi"}, {"to": "rex", "text": "  "}])
    def test_missing_fields(self, client, joined, body):
        response = client.post("/api/worlds/test/whisper", json={"viewer_id": joined, **body})
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_missing_viewer(self, client):
        response = client.post("/api/worlds/test/whisper", json={"to": "rex", "text": "hi"})
        assert response.status_code == 400

    def test_unknown_ruler(self, client, joined):
        response = client.post("/api/worlds/test/whisper", json={"viewer_id": joined, "to": "zeus", "text": "hi"})
        assert response.status_code == 404


class TestEvents:
    def test_long_poll_returns_world_update(self, client, joined):
        data = client.get(f"/api/worlds/test/events?viewer_id={joined}").get_json()
        assert "world_update" in [m["type"] for m in data["messages"]]

    def test_whisper_reply_is_delivered_privately(self, client, joined):
        client.post("/api/worlds/test/join", json={"viewer_id": "v_other"})
        client.get(f"/api/worlds/test/events?viewer_id={joined}")
        client.get("/api/worlds/test/events?viewer_id=v_other")

        client.post("/api/worlds/test/whisper", json={"viewer_id": joined, "to": "sage", "text": "Hello"})

        mine = client.get(f"/api/worlds/test/events?viewer_id={joined}").get_json()["messages"]
        theirs = client.get("/api/worlds/test/events?viewer_id=v_other").get_json()["messages"]
        assert "whisper_reply" in [m["type"] for m in mine]
        assert "whisper_reply" not in [m["type"] for m in theirs]

    def test_unsubscribed_viewer(self, client):
        response = client.get("/api/worlds/test/events?viewer_id=v_nobody")
        assert response.status_code == 404

    def test_bad_timeout(self, client, joined):
        response = client.get(f"/api/worlds/test/events?viewer_id={joined}&timeout=soon")
        assert response.status_code == 400


class TestWorldControl:
    def test_snapshot_for_anonymous_observer(self, client):
        data = client.get("/api/worlds/test/snapshot").get_json()
        assert set(data["nations"]) == {"sage", "rex", "vera", "plato", "diddy"}
        assert data["influence"] is None

    def test_request_mission(self, client, joined):
        data = client.post("/api/worlds/test/missions", json={"viewer_id": joined}).get_json()
        assert data["mission"]["viewer_id"] == joined

    def test_reset(self, client, joined):
        data = client.post("/api/worlds/test/reset").get_json()
        assert data == {"type": "world_reset", "year": 1}
        messages = client.get(f"/api/worlds/test/events?viewer_id={joined}").get_json()["messages"]
        assert "world_reset" in [m["type"] for m in messages]

    def test_worlds_are_independent(self, client):
        client.post("/api/worlds/alpha/join", json={"viewer_id": "v1"})
        client.post("/api/worlds/beta/join", json={"viewer_id": "v1"})
        assert client.get("/health").get_json()["worlds"] == ["alpha", "beta"]


def test_file_storage_uses_configured_path(tmp_path):
    from blissnexus.storage import FileWorldRepository
    from blissnexus.webapp import create_app
    from blissnexus.webapp.config import TestConfig
    from blissnexus.webapp.services import get_engine_runner

    class FileConfig(TestConfig):
        STORAGE_BACKEND = "file"
        WORLDS_PATH = str(tmp_path / "worlds")

    app = create_app(FileConfig)
    with app.app_context():
        runner = get_engine_runner()
        try:
            repository = runner.manager.repository
            assert isinstance(repository, FileWorldRepository)
            assert repository.worlds_path == tmp_path / "worlds"
        finally:
            runner.shutdown()
