"""Voice message upload: permission checks, size-limited reads, file storage and post creation."""

import logging
import math
from collections.abc import AsyncIterator
from datetime import datetime

from app.config import PluginConfiguration
from app.ports import (
    PROP_DURATION,
    PROP_MIME_TYPE,
    VOICE_MESSAGE_POST_TYPE,
    FileStore,
    HostError,
    PostRecord,
    PostStore,
    UserDirectory,
)
from app.services.provider import ext_for_content_type

logger = logging.getLogger("voice_message.upload")

ADMIN_ROLES = ("system_admin", "team_admin")


class UploadTooLarge(ValueError):
    """Body exceeded the configured maximum file size."""


class VoiceMessageService:
    """Handles voice message upload and post creation."""

    def is_user_allowed(self, users: UserDirectory, config: PluginConfiguration, user_id: str) -> bool:
        """AllowedRoles 'all' (or empty) admits everyone; anything else admits only admins."""
        if config.allowed_roles() == "all":
            return True
        try:
            roles = users.get_user_roles(user_id).lower()
        except HostError:
            return False
        return any(role in roles for role in ADMIN_ROLES)

    async def read_limited(self, chunks: AsyncIterator[bytes], max_bytes: int) -> bytes:
        """Collect a streamed body, stopping as soon as it passes max_bytes.

        Raises UploadTooLarge when the limit is exceeded.
        """
        data = bytearray()
        async for chunk in chunks:
            if not chunk:
                continue
            data.extend(chunk)
            if len(data) > max_bytes:
                raise UploadTooLarge(
                    f"File too large ({len(data) // (1024 * 1024)}MB). Maximum: {max_bytes // (1024 * 1024)}MB"
                )
        return bytes(data)

    def normalize_duration(self, raw: str | None) -> str:
        """Keep the client supplied duration only when it is a finite number."""
        raw = (raw or "").strip()
        if not raw:
            return "0"
        try:
            value = float(raw)
        except ValueError:
            return "0"
        if not math.isfinite(value):
            return "0"
        return raw

    def build_filename(self, content_type: str | None, now: datetime | None = None) -> str:
        now = now or datetime.now()
        return f"voice_{now.strftime('%Y%m%d_%H%M%S')}{ext_for_content_type(content_type)}"

    def create_voice_message(
        self,
        posts: PostStore,
        files: FileStore,
        user_id: str,
        channel_id: str,
        root_id: str | None,
        data: bytes,
        content_type: str | None,
        duration: str,
    ) -> tuple[PostRecord, str]:
        """Store the audio and create the voice message post. Returns (post, file_id).

        Raises HostError when storage or post creation fails.
        """
        filename = self.build_filename(content_type)
        try:
            file_id = files.upload_file(data, channel_id, filename, content_type)
        except HostError as e:
            logger.error("Upload failed err=%s", e)
            raise

        try:
            post = posts.create_post(
                user_id=user_id,
                channel_id=channel_id,
                root_id=root_id,
                post_type=VOICE_MESSAGE_POST_TYPE,
                file_ids=[file_id],
                props={PROP_DURATION: duration, PROP_MIME_TYPE: content_type or ""},
            )
        except HostError as e:
            logger.error("CreatePost failed err=%s", e)
            raise
        return post, file_id


_voice_message_service: VoiceMessageService | None = None


def get_voice_message_service() -> VoiceMessageService:
    """Get singleton voice message service instance."""
    global _voice_message_service
    if _voice_message_service is None:
        _voice_message_service = VoiceMessageService()
    return _voice_message_service
