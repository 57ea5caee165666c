"""Local host adapter: implements the host ports on SQLAlchemy and the file system."""

import logging
import os
import uuid
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import session_scope
from app.models.channel import Channel, ChannelMember
from app.models.file_info import FileInfo
from app.models.plugin_store import Command, KVEntry
from app.models.post import EphemeralPost, Post
from app.models.user import User
from app.ports import HostAPI, HostError, NotFoundError, PostRecord

logger = logging.getLogger("voice_message.host")


def _to_record(post: Post) -> PostRecord:
    return PostRecord(
        id=post.id,
        user_id=post.user_id,
        channel_id=post.channel_id,
        root_id=post.root_id,
        type=post.type,
        message=post.message,
        file_ids=list(post.file_ids or []),
        props=dict(post.props or {}),
    )


class SqlAlchemyHost(HostAPI):
    """Host API backed by one database session."""

    def __init__(self, db: Session, upload_dir: str | None = None) -> None:
        self.db = db
        self.upload_dir = Path(upload_dir or get_settings().UPLOAD_DIR)

    # --- posts ---

    def get_post(self, post_id: str) -> PostRecord:
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError(f"post {post_id} not found")
        return _to_record(post)

    def create_post(
        self,
        user_id: str,
        channel_id: str,
        root_id: str | None,
        post_type: str,
        file_ids: list[str],
        props: dict,
        message: str = "",
    ) -> PostRecord:
        post = Post(
            user_id=user_id,
            channel_id=channel_id,
            root_id=root_id or None,
            type=post_type,
            message=message,
            file_ids=list(file_ids),
            props=dict(props),
        )
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return _to_record(post)

    def set_post_prop(self, post_id: str, key: str, value: str) -> PostRecord:
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError(f"post {post_id} not found")
        self.db.refresh(post)
        # JSON columns only track reassignment.
        post.props = {**(post.props or {}), key: value}
        self.db.commit()
        self.db.refresh(post)
        return _to_record(post)

    # --- files ---

    def upload_file(self, data: bytes, channel_id: str, filename: str, mime_type: str | None) -> str:
        ext = Path(filename).suffix.lower()
        relative = Path(channel_id) / f"{uuid.uuid4().hex}{ext}"
        file_path = self.upload_dir / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(file_path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise HostError(f"failed to store file: {e}") from e

        info = FileInfo(
            channel_id=channel_id,
            name=filename,
            path=str(relative),
            size=len(data),
            mime_type=mime_type or None,
        )
        self.db.add(info)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            if file_path.exists():
                os.remove(file_path)
            raise
        return info.id

    def get_file(self, file_id: str) -> bytes:
        info = self.db.get(FileInfo, file_id)
        if info is None:
            raise NotFoundError(f"file {file_id} not found")
        file_path = self.upload_dir / info.path
        try:
            return file_path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"file {file_id} missing from storage") from None
        except OSError as e:
            raise HostError(f"failed to read file {file_id}: {e}") from e

    # --- channels and users ---

    def is_channel_member(self, channel_id: str, user_id: str) -> bool:
        member = (
            self.db.query(ChannelMember)
            .filter(ChannelMember.channel_id == channel_id, ChannelMember.user_id == user_id)
            .first()
        )
        return member is not None

    def get_channel_display_name(self, channel_id: str) -> str | None:
        channel = self.db.get(Channel, channel_id)
        if channel is None:
            return None
        return channel.display_name or None

    def get_user_roles(self, user_id: str) -> str:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")
        return user.roles or ""

    # --- key-value store ---

    def kv_set(self, key: str, value: bytes) -> None:
        entry = self.db.get(KVEntry, key)
        if entry is None:
            self.db.add(KVEntry(key=key, value=value))
        else:
            entry.value = value
        self.db.commit()

    def kv_get(self, key: str) -> bytes | None:
        entry = self.db.get(KVEntry, key)
        if entry is None:
            return None
        self.db.refresh(entry)
        return entry.value

    def kv_delete(self, key: str) -> bool:
        deleted = self.db.query(KVEntry).filter(KVEntry.key == key).delete(synchronize_session="fetch")
        self.db.commit()
        return deleted > 0

    # --- ephemeral posts ---

    def send_ephemeral_post(self, user_id: str, channel_id: str, message: str) -> str:
        post = EphemeralPost(user_id=user_id, channel_id=channel_id, message=message)
        self.db.add(post)
        self.db.commit()
        return post.id

    def update_ephemeral_post(self, user_id: str, post_id: str, message: str) -> None:
        post = self.db.get(EphemeralPost, post_id)
        if post is None or post.user_id != user_id:
            return
        post.message = message
        self.db.commit()

    def delete_ephemeral_post(self, user_id: str, post_id: str) -> None:
        self.db.query(EphemeralPost).filter(EphemeralPost.id == post_id, EphemeralPost.user_id == user_id).delete()
        self.db.commit()

    # --- commands ---

    def register_command(self, trigger: str, display_name: str, description: str) -> None:
        self.db.merge(Command(trigger=trigger, display_name=display_name, description=description))
        self.db.commit()

    def unregister_command(self, trigger: str) -> None:
        self.db.query(Command).filter(Command.trigger == trigger).delete()
        self.db.commit()


# Work outside a request (background jobs, timers) opens its own session;
# tests point this at the test session.
_session_factory = None


@contextmanager
def open_host():
    """Host adapter bound to a fresh session, closed on exit."""
    with session_scope(_session_factory) as db:
        yield SqlAlchemyHost(db)
