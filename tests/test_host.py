"""Tests for the SQLAlchemy host adapter."""

import pytest

from app.ports import NotFoundError
from app.services.host import SqlAlchemyHost


@pytest.fixture(name="host")
def host_fixture(db_session, upload_dir):
    return SqlAlchemyHost(db_session, upload_dir=str(upload_dir))


class TestPosts:
    def test_set_post_prop_keeps_other_props(self, host, users, channel):
        post = host.create_post(users["alice"].id, channel.id, None, "custom_voice_message", ["f1"], {"a": "1"})
        updated = host.set_post_prop(post.id, "b", "2")
        assert updated.props == {"a": "1", "b": "2"}
        assert host.get_post(post.id).props == {"a": "1", "b": "2"}

    def test_missing_post(self, host):
        with pytest.raises(NotFoundError):
            host.get_post("missing")
        with pytest.raises(NotFoundError):
            host.set_post_prop("missing", "k", "v")


class TestFiles:
    def test_round_trip(self, host, channel, upload_dir):
        file_id = host.upload_file(b"audio", channel.id, "voice.webm", "audio/webm")
        assert host.get_file(file_id) == b"audio"
        assert list((upload_dir / channel.id).iterdir())[0].suffix == ".webm"

    def test_unknown_file(self, host):
        with pytest.raises(NotFoundError):
            host.get_file("missing")


class TestKVStore:
    def test_delete_reports_winner(self, host):
        """Only the first delete of a key reports success."""
        host.kv_set("k", b"v")
        assert host.kv_get("k") == b"v"
        assert host.kv_delete("k") is True
        assert host.kv_delete("k") is False
        assert host.kv_get("k") is None

    def test_overwrite(self, host):
        host.kv_set("k", b"one")
        host.kv_set("k", b"two")
        assert host.kv_get("k") == b"two"


class TestDirectory:
    def test_membership_and_roles(self, host, users, channel):
        assert host.is_channel_member(channel.id, users["alice"].id)
        assert not host.is_channel_member(channel.id, users["bob"].id)
        assert host.get_channel_display_name(channel.id) == "Town Square"
        assert host.get_channel_display_name("missing") is None
        assert "system_admin" in host.get_user_roles(users["admin"].id)
        with pytest.raises(NotFoundError):
            host.get_user_roles("missing")
