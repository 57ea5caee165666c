"""On-demand transcription of voice message posts, with the post as the transcript cache."""

import logging
from dataclasses import dataclass

from app.config import PluginConfiguration
from app.ports import (
    PROP_DURATION,
    PROP_MIME_TYPE,
    PROP_TRANSCRIPT,
    ChannelDirectory,
    FileStore,
    HostError,
    PostStore,
)
from app.services.provider import (
    KIND_API_ERROR,
    KIND_CONFIG,
    KIND_INPUT,
    KIND_NETWORK,
    KIND_PARSE_ERROR,
    TranscriptionError,
    redact,
)
from app.services.transcription import TranscriptionClient, get_transcription_client

logger = logging.getLogger("voice_message.transcript")

MSG_NOT_CONFIGURED = "Transcription not configured properly."
MSG_AUDIO_UNREADABLE = "Audio file is empty or unreadable."
MSG_UNREACHABLE = "Could not reach transcription service."
MSG_AUTH_FAILED = "Transcription API auth failed."
MSG_RATE_LIMITED = "Rate limit exceeded. Try again later."
MSG_SERVICE_ERROR = "Transcription service error."
MSG_UNEXPECTED_RESPONSE = "Unexpected response from transcription service."
MSG_GENERIC = "Transcription failed."


class TranscribeRejected(Exception):
    """A precondition gate refused the request before any provider call."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


@dataclass
class TranscribeOutcome:
    """Result of a transcription request that passed every gate."""

    transcript: str | None = None
    cached: bool = False
    error: str | None = None
    detail: str | None = None

    @property
    def success(self) -> bool:
        return self.transcript is not None


def user_message(error: TranscriptionError | None) -> str:
    """Short user-facing text for a failure kind."""
    if error is None:
        return MSG_GENERIC
    if error.kind == KIND_CONFIG:
        return MSG_NOT_CONFIGURED
    if error.kind == KIND_INPUT:
        return MSG_AUDIO_UNREADABLE
    if error.kind == KIND_NETWORK:
        return MSG_UNREACHABLE
    if error.kind == KIND_API_ERROR and error.status_code is not None:
        if error.status_code in (401, 403):
            return MSG_AUTH_FAILED
        if error.status_code == 429:
            return MSG_RATE_LIMITED
        if error.status_code >= 500:
            return MSG_SERVICE_ERROR
    if error.kind == KIND_PARSE_ERROR:
        return MSG_UNEXPECTED_RESPONSE
    return MSG_GENERIC


def recorded_duration(props: dict) -> float:
    """Recorded duration in seconds from post metadata; 0 when absent or malformed."""
    try:
        return float(props.get(PROP_DURATION) or 0)
    except (TypeError, ValueError):
        return 0.0


class TranscriptService:
    """Gates, caches and persists transcriptions of voice message posts."""

    def __init__(self, client: TranscriptionClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> TranscriptionClient:
        return self._client or get_transcription_client()

    def transcribe_post(
        self,
        posts: PostStore,
        files: FileStore,
        channels: ChannelDirectory,
        config: PluginConfiguration,
        user_id: str,
        post_id: str,
    ) -> TranscribeOutcome:
        """Transcribe a voice message for a user.

        Raises:
            TranscribeRejected: When a gate fails (disabled, bad post, no access, too long, unreadable file).
        """
        settings = config.transcription()
        if not settings.enabled:
            raise TranscribeRejected(403, "Transcription is disabled")
        if not post_id:
            raise TranscribeRejected(400, "post_id required")

        try:
            post = posts.get_post(post_id)
        except HostError:
            raise TranscribeRejected(404, "Post not found") from None

        if not post.is_voice_message:
            raise TranscribeRejected(400, "Not a voice message")

        if not channels.is_channel_member(post.channel_id, user_id):
            raise TranscribeRejected(403, "Forbidden")

        cached = post.props.get(PROP_TRANSCRIPT)
        if cached:
            return TranscribeOutcome(transcript=cached, cached=True)

        duration = recorded_duration(post.props)
        max_duration = settings.max_duration_seconds
        if max_duration > 0 and duration > max_duration:
            raise TranscribeRejected(
                400, f"Voice message too long for transcription ({duration:.0f}s > {max_duration}s limit)"
            )

        try:
            audio = files.get_file(post.file_ids[0])
        except HostError as e:
            logger.error("GetFile failed post_id=%s err=%s", post_id, e)
            raise TranscribeRejected(500, "Failed to read audio file") from None

        mime_type = post.props.get(PROP_MIME_TYPE) or ""
        result = self.client.transcribe(audio, mime_type, settings)

        if not result.success:
            detail = redact(str(result.error) if result.error else "unknown error", settings.api_key)
            logger.error("Transcription failed post_id=%s err=%s", post_id, detail)
            return TranscribeOutcome(error=user_message(result.error), detail=detail)

        try:
            posts.set_post_prop(post_id, PROP_TRANSCRIPT, result.text)
        except HostError as e:
            logger.error("UpdatePost failed after transcription post_id=%s err=%s", post_id, e)

        return TranscribeOutcome(transcript=result.text, cached=False)


_transcript_service: TranscriptService | None = None


def get_transcript_service() -> TranscriptService:
    """Get singleton transcript service instance."""
    global _transcript_service
    if _transcript_service is None:
        _transcript_service = TranscriptService()
    return _transcript_service
