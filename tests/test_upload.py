"""Tests for voice message upload and the public config endpoint."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.config import PluginConfiguration
from app.dependencies import USER_ID_HEADER
from app.models.file_info import FileInfo
from app.models.post import Post
from app.ports import PROP_DURATION, PROP_MIME_TYPE, VOICE_MESSAGE_POST_TYPE, HostError
from app.services.voice_message import VoiceMessageService

AUDIO = b"\x1a\x45\xdf\xa3" + b"\x00" * 2048


def _headers(user, content_type: str = "audio/webm;codecs=opus") -> dict:
    return {USER_ID_HEADER: user.id, "Content-Type": content_type}


class TestUpload:
    """Tests for POST /api/v1/upload."""

    def test_upload_creates_voice_post(self, client: TestClient, db_session, users, channel, upload_dir):
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id, "duration": "7.5"},
            content=AUDIO,
            headers=_headers(users["alice"]),
        )
        assert resp.status_code == 201
        data = resp.json()

        post = db_session.get(Post, data["post_id"])
        assert post.type == VOICE_MESSAGE_POST_TYPE
        assert post.file_ids == [data["file_id"]]
        assert post.props[PROP_DURATION] == "7.5"
        assert post.props[PROP_MIME_TYPE] == "audio/webm;codecs=opus"
        assert post.root_id is None

        info = db_session.get(FileInfo, data["file_id"])
        assert info.name.startswith("voice_") and info.name.endswith(".webm")
        assert info.size == len(AUDIO)
        assert (upload_dir / info.path).read_bytes() == AUDIO

    def test_upload_thread_reply(self, client: TestClient, db_session, users, channel):
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id, "root_id": "rootpost"},
            content=AUDIO,
            headers=_headers(users["alice"], "audio/mp4"),
        )
        assert resp.status_code == 201
        post = db_session.get(Post, resp.json()["post_id"])
        assert post.root_id == "rootpost"
        assert post.props[PROP_DURATION] == "0"

    @pytest.mark.parametrize("content_type", ["video/webm", "text/plain"])
    def test_any_content_type_is_stored(self, client: TestClient, db_session, users, channel, content_type):
        """Recorders label audio inconsistently, so the body is stored whatever its declared type."""
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=AUDIO,
            headers=_headers(users["alice"], content_type),
        )
        assert resp.status_code == 201
        post = db_session.get(Post, resp.json()["post_id"])
        assert post.props[PROP_MIME_TYPE] == content_type
        assert db_session.get(FileInfo, resp.json()["file_id"]).name.endswith(".bin")

    @pytest.mark.parametrize("duration", ["abc", "inf", "nan", ""])
    def test_bad_duration_becomes_zero(self, client: TestClient, db_session, users, channel, duration):
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id, "duration": duration},
            content=AUDIO,
            headers=_headers(users["alice"]),
        )
        assert db_session.get(Post, resp.json()["post_id"]).props[PROP_DURATION] == "0"

    def test_requires_user(self, client: TestClient, channel):
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=AUDIO,
            headers={"Content-Type": "audio/webm"},
        )
        assert resp.status_code == 401

    def test_requires_channel(self, client: TestClient, users, channel):
        resp = client.post("/api/v1/upload", content=AUDIO, headers=_headers(users["alice"]))
        assert resp.status_code == 400
        assert resp.text == "channel_id required"

    def test_non_member_forbidden(self, client: TestClient, db_session, users, channel):
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=AUDIO,
            headers=_headers(users["bob"]),
        )
        assert resp.status_code == 403
        assert db_session.query(Post).count() == 0

    def test_role_restriction(self, client: TestClient, configure, users, channel):
        """A non-'all' role setting admits admins only."""
        configure(AllowedRoles="admins")
        params = {"channel_id": channel.id}

        denied = client.post("/api/v1/upload", params=params, content=AUDIO, headers=_headers(users["alice"]))
        allowed = client.post("/api/v1/upload", params=params, content=AUDIO, headers=_headers(users["admin"]))

        assert denied.status_code == 403
        assert allowed.status_code == 201

    def test_rejects_non_audio(self, client: TestClient, users, channel):
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=b"<html></html>",
            headers=_headers(users["alice"], "text/html"),
        )
        assert resp.status_code == 400
        assert "Must be an audio recording" in resp.text

    def test_empty_body(self, client: TestClient, users, channel):
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=b"",
            headers=_headers(users["alice"]),
        )
        assert resp.status_code == 400
        assert resp.text == "Failed to read audio data"

    def test_too_large(self, client: TestClient, db_session, configure, users, channel):
        configure(MaxFileSizeMB="1")
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=b"\x00" * (1024 * 1024 + 1),
            headers=_headers(users["alice"]),
        )
        assert resp.status_code == 413
        assert "Maximum: 1MB" in resp.text
        assert db_session.query(FileInfo).count() == 0

    def test_auto_transcribe_submitted(self, client: TestClient, configure, users, channel, auto_transcriber):
        configure(EnableTranscription=True, AutoTranscribe=True, TranscriptionAPIKey="sk-auto-123456789")
        resp = client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=AUDIO,
            headers=_headers(users["alice"]),
        )
        auto_transcriber.submit.assert_called_once_with(resp.json()["post_id"], AUDIO, "audio/webm;codecs=opus")

    def test_auto_transcribe_off_by_default(self, client: TestClient, users, channel, auto_transcriber):
        client.post(
            "/api/v1/upload",
            params={"channel_id": channel.id},
            content=AUDIO,
            headers=_headers(users["alice"]),
        )
        auto_transcriber.submit.assert_not_called()


class TestPublicConfig:
    """Tests for GET /api/v1/config."""

    def test_config(self, client: TestClient, configure, users):
        configure(MaxRecordingDurationSeconds="90", EnableTranscription=True, TranscriptionAPIKey="secret-value-123")
        resp = client.get("/api/v1/config", headers={USER_ID_HEADER: users["alice"].id})

        assert resp.status_code == 200
        assert resp.json() == {
            "maxDurationSeconds": 90,
            "enableTranscription": True,
            "autoTranscribe": False,
            "transcriptionMaxDuration": 300,
        }
        assert "secret-value-123" not in resp.text

    def test_config_requires_user(self, client: TestClient):
        assert client.get("/api/v1/config").status_code == 401


class TestVoiceMessageService:
    """Tests for VoiceMessageService helpers."""

    def test_allowed_roles_all(self):
        users = MagicMock()
        assert VoiceMessageService().is_user_allowed(users, PluginConfiguration(AllowedRoles=""), "u1")
        users.get_user_roles.assert_not_called()

    def test_team_admin_allowed(self):
        users = MagicMock()
        users.get_user_roles.return_value = "system_user team_admin"
        assert VoiceMessageService().is_user_allowed(users, PluginConfiguration(AllowedRoles="admins"), "u1")

    def test_unknown_user_denied(self):
        users = MagicMock()
        users.get_user_roles.side_effect = HostError("gone")
        assert not VoiceMessageService().is_user_allowed(users, PluginConfiguration(AllowedRoles="admins"), "u1")

    def test_build_filename(self):
        name = VoiceMessageService().build_filename("audio/ogg", datetime(2026, 3, 4, 5, 6, 7))
        assert name == "voice_20260304_050607.ogg"
