"""Provider-specific multipart request construction for Whisper-compatible APIs."""

from dataclasses import dataclass, field

import httpx

from app.config import TranscriptionSettings

KIND_CONFIG = "config"
KIND_INPUT = "input"
KIND_NETWORK = "network"
KIND_API_ERROR = "api_error"
KIND_PARSE_ERROR = "parse_error"

REDACTED = "***"

_EXTENSIONS = {
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "application/ogg": ".ogg",
    "audio/mp4": ".m4a",
    "video/mp4": ".m4a",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
}

_MIME_BY_EXTENSION = {
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".flac": "audio/flac",
}


class TranscriptionError(Exception):
    """A classified transcription failure.

    `kind` is one of config, input, network, api_error, parse_error.
    The message is already redacted when built through `redact`.
    """

    def __init__(self, kind: str, message: str, retryable: bool = False, status_code: int | None = None):
        self.kind = kind
        self.message = message
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


def redact(text: str, api_key: str) -> str:
    """Mask the credential in text. Keys of 8 characters or fewer are left alone."""
    api_key = (api_key or "").strip()
    if len(api_key) > 8:
        return text.replace(api_key, REDACTED)
    return text


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


def ext_for_content_type(content_type: str | None) -> str:
    """File extension for an audio MIME type; parameters after ';' are ignored."""
    base = (content_type or "").strip().lower().split(";")[0].strip()
    if not base:
        return ".bin"
    return _EXTENSIONS.get(base, ".bin")


def mime_for_filename(filename: str) -> str:
    lowered = filename.lower()
    for ext, mime in _MIME_BY_EXTENSION.items():
        if lowered.endswith(ext):
            return mime
    return "application/octet-stream"


@dataclass
class ProviderRequest:
    """A ready-to-send multipart request."""

    url: str
    field_name: str
    filename: str
    content_type: str
    audio: bytes
    headers: dict[str, str] = field(default_factory=dict)
    data: dict[str, str] = field(default_factory=dict)

    @property
    def files(self) -> dict:
        return {self.field_name: (self.filename, self.audio, self.content_type)}


def build_request(audio: bytes, mime_type: str | None, settings: TranscriptionSettings) -> ProviderRequest:
    """Build the provider request.

    Raises:
        TranscriptionError: config when the URL is missing or malformed or the key is missing,
            input when the audio is empty.
    """
    if not settings.url:
        raise TranscriptionError(KIND_CONFIG, "transcription URL not configured")
    try:
        url = httpx.URL(settings.url)
    except httpx.InvalidURL as e:
        raise TranscriptionError(KIND_CONFIG, f"invalid transcription URL: {e}") from None
    if url.scheme not in ("http", "https") or not url.host:
        raise TranscriptionError(KIND_CONFIG, "transcription URL must be an absolute http(s) URL")
    if not settings.api_key:
        raise TranscriptionError(KIND_CONFIG, "transcription API key not configured")
    if not audio:
        raise TranscriptionError(KIND_INPUT, "audio data is empty")

    ext = ext_for_content_type(mime_type)
    if ext == ".bin":
        ext = ".webm"
    filename = "voice" + ext

    # DeepInfra's inference endpoint carries the model in its URL.
    if settings.is_deepinfra:
        field_name = "audio"
        data: dict[str, str] = {}
    else:
        field_name = "file"
        data = {"model": settings.model, "response_format": "json"}
    if settings.language:
        data["language"] = settings.language

    return ProviderRequest(
        url=settings.url,
        field_name=field_name,
        filename=filename,
        content_type=mime_for_filename(filename),
        audio=audio,
        headers={"Authorization": f"Bearer {settings.api_key}"},
        data=data,
    )
