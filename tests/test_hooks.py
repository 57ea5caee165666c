"""Tests for host hooks, the health check and error rendering."""

from fastapi.testclient import TestClient

from app.config import get_config_store, get_settings
from app.dependencies import USER_ID_HEADER
from app.models.plugin_store import KVEntry
from app.models.post import EphemeralPost
from app.routers.hooks import HOOK_SECRET_HEADER


class TestConfigurationHook:
    """Tests for POST /hooks/configuration."""

    def test_replaces_configuration(self, client: TestClient, users):
        resp = client.post(
            "/hooks/configuration",
            json={
                "MaxRecordingDurationSeconds": 120,
                "EnableTranscription": True,
                "TranscriptionProvider": "openai",
                "TranscriptionAPIKey": "sk-hook-0123456789",
                "AutoTranscribe": True,
                "UnrelatedSetting": "ignored",
            },
        )
        assert resp.status_code == 200

        config = get_config_store().get()
        assert config.max_recording_duration_seconds() == 120
        assert config.transcription().provider == "openai"
        assert config.transcription().api_key == "sk-hook-0123456789"

        public = client.get("/api/v1/config", headers={USER_ID_HEADER: users["alice"].id}).json()
        assert public["maxDurationSeconds"] == 120
        assert public["autoTranscribe"] is True

    def test_missing_values_use_defaults(self, client: TestClient):
        client.post("/hooks/configuration", json={"MaxRecordingDurationSeconds": None})
        config = get_config_store().get()
        assert config.max_recording_duration_seconds() == 600
        assert config.EnableTranscription is False

    def test_api_key_not_logged(self, client: TestClient, caplog):
        client.post("/hooks/configuration", json={"TranscriptionAPIKey": "sk-never-log-me-123"})
        assert "sk-never-log-me-123" not in caplog.text


class TestHookSecret:
    """Tests for the shared hook secret."""

    def test_rejects_missing_secret(self, client: TestClient):
        del client.headers[HOOK_SECRET_HEADER]
        resp = client.post("/hooks/configuration", json={})
        assert resp.status_code == 401

    def test_rejects_wrong_secret(self, client: TestClient):
        resp = client.post("/hooks/configuration", json={}, headers={HOOK_SECRET_HEADER: "guess"})
        assert resp.status_code == 401

    def test_accepts_secret(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(get_settings(), "PLUGIN_HOOK_SECRET", "s3cret")
        resp = client.post("/hooks/configuration", json={}, headers={HOOK_SECRET_HEADER: "s3cret"})
        assert resp.status_code == 200

    def test_unconfigured_secret_closes_command_hook(self, client: TestClient, db_session, monkeypatch, users, channel):
        """Without a configured secret no caller can mint a recording token for another user."""
        monkeypatch.setattr(get_settings(), "PLUGIN_HOOK_SECRET", "")
        del client.headers[HOOK_SECRET_HEADER]

        resp = client.post(
            "/hooks/commands/execute",
            json={"command": "/voice", "user_id": users["alice"].id, "channel_id": channel.id},
        )

        assert resp.status_code == 503
        assert db_session.query(KVEntry).count() == 0
        assert db_session.query(EphemeralPost).count() == 0

    def test_unconfigured_secret_closes_configuration_hook(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(get_settings(), "PLUGIN_HOOK_SECRET", "")
        before = get_config_store().get()

        resp = client.post(
            "/hooks/configuration",
            json={"TranscriptionProvider": "custom", "TranscriptionServiceURL": "https://elsewhere.example/v1"},
            headers={HOOK_SECRET_HEADER: ""},
        )

        assert resp.status_code == 503
        assert get_config_store().get() is before

    def test_validate_warns_without_secret(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "PLUGIN_HOOK_SECRET", "")
        assert any("PLUGIN_HOOK_SECRET" in warning for warning in get_settings().validate())


class TestApp:
    """Tests for application-level endpoints and handlers."""

    def test_health(self, client: TestClient):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "app": "voice-message", "version": "2.0.0"}

    def test_security_headers(self, client: TestClient):
        resp = client.get("/api/health")
        assert resp.headers["x-content-type-options"] == "nosniff"
        assert resp.headers["x-frame-options"] == "DENY"

    def test_errors_are_plain_text(self, client: TestClient):
        resp = client.get("/api/v1/config")
        assert resp.status_code == 401
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "Unauthorized"
