"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import PluginConfiguration, get_config_store, get_settings
from app.database import Base, get_db
from app.models.channel import Channel, ChannelMember
from app.models.file_info import FileInfo  # noqa: F401
from app.models.plugin_store import Command, KVEntry  # noqa: F401
from app.models.post import EphemeralPost, Post  # noqa: F401
from app.models.user import User
from app.ports import PROP_DURATION, PROP_MIME_TYPE, VOICE_MESSAGE_POST_TYPE
from app.services.host import SqlAlchemyHost
from app.services.transcription import TranscriptionResult

TEST_API_KEY = "sk-test-0123456789abcdef"
TEST_HOOK_SECRET = "hook-secret-for-tests"


class StubTranscriptionClient:
    """Records calls and returns canned results instead of calling a provider."""

    def __init__(self, result: TranscriptionResult | None = None):
        self.result = result or TranscriptionResult(success=True, text="hello from the stub", attempts=1)
        self.calls = []

    def transcribe(self, audio, mime_type, settings=None):
        self.calls.append({"audio": audio, "mime_type": mime_type, "settings": settings})
        return self.result


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="upload_dir")
def upload_dir_fixture(tmp_path, monkeypatch):
    """Store uploaded files under a per-test directory."""
    directory = tmp_path / "uploads"
    monkeypatch.setattr(get_settings(), "UPLOAD_DIR", str(directory))
    return directory


@pytest.fixture(name="configure")
def configure_fixture():
    """Return a function that installs a configuration snapshot; the previous one is restored afterwards."""
    store = get_config_store()
    original = store.get()

    def _configure(**values) -> PluginConfiguration:
        config = PluginConfiguration(**values)
        store.replace(config)
        return config

    _configure()
    yield _configure
    store.replace(original)


@pytest.fixture(name="transcription_enabled")
def transcription_enabled_fixture(configure):
    return configure(EnableTranscription=True, TranscriptionAPIKey=TEST_API_KEY)


@pytest.fixture(name="stub_client")
def stub_client_fixture(monkeypatch):
    """Route request-driven transcriptions through a stub client."""
    from app.services import transcript as transcript_module

    stub = StubTranscriptionClient()
    monkeypatch.setattr(transcript_module, "_transcript_service", transcript_module.TranscriptService(client=stub))
    return stub


@pytest.fixture(name="auto_transcriber")
def auto_transcriber_fixture(monkeypatch):
    """Replace the background transcriber with a mock so uploads never start threads."""
    from app.services import auto_transcribe as auto_module

    mock = MagicMock()
    monkeypatch.setattr(auto_module, "_auto_transcriber", mock)
    return mock


@pytest.fixture(name="client")
def client_fixture(db_session: Session, upload_dir, configure, auto_transcriber, monkeypatch):
    """Create a test client with overridden DB dependency, disabled rate limiting and the hook secret set."""
    from app.rate_limit import limiter
    from app.routers.hooks import HOOK_SECRET_HEADER
    from app.services import host as host_module
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Work done outside a request gets its own sessions on the test engine
    host_module._session_factory = sessionmaker(bind=db_session.get_bind(), autocommit=False, autoflush=False)

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    monkeypatch.setattr(get_settings(), "PLUGIN_HOOK_SECRET", TEST_HOOK_SECRET)
    with TestClient(app, headers={HOOK_SECRET_HEADER: TEST_HOOK_SECRET}) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()
    host_module._session_factory = None


@pytest.fixture(name="users")
def users_fixture(db_session: Session) -> dict:
    """Seed a regular user, an admin and a user outside the test channel."""
    users = {
        "alice": User(username="alice", roles="system_user"),
        "admin": User(username="admin", roles="system_user system_admin"),
        "bob": User(username="bob", roles="system_user"),
    }
    db_session.add_all(users.values())
    db_session.commit()
    return users


@pytest.fixture(name="channel")
def channel_fixture(db_session: Session, users: dict) -> Channel:
    """Seed a channel with alice and admin as members."""
    channel = Channel(name="town-square", display_name="Town Square")
    db_session.add(channel)
    db_session.commit()
    for name in ("alice", "admin"):
        db_session.add(ChannelMember(channel_id=channel.id, user_id=users[name].id))
    db_session.commit()
    return channel


@pytest.fixture(name="voice_post")
def voice_post_fixture(db_session: Session, upload_dir, users: dict, channel: Channel):
    """Return a function creating a voice message post by alice with stored audio."""

    def _create(duration: str = "12", mime_type: str = "audio/webm", audio: bytes = b"\x1a\x45\xdf\xa3" * 64, **props):
        host = SqlAlchemyHost(db_session, upload_dir=str(upload_dir))
        file_id = host.upload_file(audio, channel.id, "voice_20260101_120000.webm", mime_type)
        return host.create_post(
            user_id=users["alice"].id,
            channel_id=channel.id,
            root_id=None,
            post_type=VOICE_MESSAGE_POST_TYPE,
            file_ids=[file_id],
            props={PROP_DURATION: duration, PROP_MIME_TYPE: mime_type, **props},
        )

    return _create
