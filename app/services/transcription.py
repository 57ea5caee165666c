"""Transcription client for remote Whisper-compatible speech-to-text APIs."""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from app.config import TranscriptionSettings, get_config_store, get_settings
from app.services.provider import (
    KIND_API_ERROR,
    KIND_CONFIG,
    KIND_NETWORK,
    KIND_PARSE_ERROR,
    TranscriptionError,
    build_request,
    redact,
    truncate,
)

logger = logging.getLogger("voice_message.transcription")

MAX_ATTEMPTS = 2


@dataclass
class TranscriptionResult:
    """Outcome of a transcription call."""

    success: bool
    text: str | None = None
    error: TranscriptionError | None = None
    attempts: int = 0


def parse_transcript(body: str, api_key: str = "") -> str:
    """Extract the transcript from a provider response body.

    Prefers a non-empty top-level `text`, then the joined non-empty `segments[].text`.
    Body previews in errors have api_key masked before they are shortened.

    Raises:
        TranscriptionError: parse_error when the body is not JSON or carries no transcript.
    """
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise TranscriptionError(
            KIND_PARSE_ERROR, f"invalid JSON: {e} (body: {truncate(redact(body, api_key), 200)})"
        ) from None

    if isinstance(payload, dict):
        text = payload.get("text")
        if isinstance(text, str) and text.strip():
            return text.strip()

        # Some providers leave `text` empty and only fill the segments.
        segments = payload.get("segments")
        if isinstance(segments, list):
            parts = []
            for segment in segments:
                if not isinstance(segment, dict):
                    continue
                segment_text = segment.get("text")
                if isinstance(segment_text, str) and segment_text.strip():
                    parts.append(segment_text.strip())
            if parts:
                return " ".join(parts)

    raise TranscriptionError(
        KIND_PARSE_ERROR, f"no transcript text found in response (body: {truncate(redact(body, api_key), 300)})"
    )


class TranscriptionClient:
    """Sends audio to the configured provider, retrying transient failures once."""

    def __init__(
        self,
        settings_provider: Callable[[], TranscriptionSettings] | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings_provider = settings_provider or (lambda: get_config_store().get().transcription())
        self._transport = transport
        self._timeout = timeout if timeout is not None else get_settings().TRANSCRIPTION_TIMEOUT_SECONDS
        self._sleep = sleep
        self._clock = clock

    def transcribe(
        self, audio: bytes, mime_type: str | None, settings: TranscriptionSettings | None = None
    ) -> TranscriptionResult:
        """Transcribe audio. Never raises for provider, network or parse failures."""
        settings = settings or self._settings_provider()

        try:
            request = build_request(audio, mime_type, settings)
        except TranscriptionError as e:
            return TranscriptionResult(success=False, error=e)

        logger.debug(
            "Transcription request provider=%s url=%s field=%s filename=%s audio_bytes=%d mime=%s",
            settings.provider,
            request.url,
            request.field_name,
            request.filename,
            len(audio),
            mime_type,
        )

        last_error: TranscriptionError | None = None
        attempt = 0
        for attempt in range(1, MAX_ATTEMPTS + 1):
            if attempt > 1:
                delay = float(attempt - 1)
                logger.info("Transcription retry attempt=%d delay=%.0fs", attempt, delay)
                self._sleep(delay)

            try:
                text = self._send(request, settings.api_key)
            except TranscriptionError as e:
                last_error = e
                logger.warning(
                    "Transcription attempt failed attempt=%d retryable=%s err=%s", attempt, e.retryable, e
                )
                if not e.retryable:
                    break
                continue
            return TranscriptionResult(success=True, text=text, attempts=attempt)

        return TranscriptionResult(success=False, error=last_error, attempts=attempt)

    def _send(self, request, api_key: str) -> str:
        """Perform one provider call and classify its outcome.

        The timeout bounds the whole attempt, including a body that trickles in slowly.
        """
        deadline = self._clock() + self._timeout
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                with client.stream(
                    "POST", request.url, headers=request.headers, data=request.data, files=request.files
                ) as response:
                    chunks = []
                    for chunk in response.iter_bytes():
                        if self._clock() > deadline:
                            raise TranscriptionError(
                                KIND_NETWORK, f"request exceeded {self._timeout:g}s timeout", retryable=True
                            )
                        chunks.append(chunk)
                    body = b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")
        except httpx.InvalidURL as e:
            raise TranscriptionError(KIND_CONFIG, redact(f"invalid transcription URL: {e}", api_key)) from None
        except httpx.RemoteProtocolError as e:
            # The server dropped the connection without answering; treat it as down.
            raise TranscriptionError(KIND_NETWORK, redact(str(e), api_key), retryable=False) from None
        except httpx.HTTPError as e:
            raise TranscriptionError(KIND_NETWORK, redact(str(e) or type(e).__name__, api_key), retryable=True) from None

        logger.debug(
            "Transcription API response status=%d body_len=%d body_preview=%s",
            response.status_code,
            len(body),
            truncate(redact(body, api_key), 500),
        )

        if not response.is_success:
            retryable = response.status_code >= 500 or response.status_code == 429
            raise TranscriptionError(
                KIND_API_ERROR,
                f"status {response.status_code}, body: {truncate(redact(body, api_key), 300)}",
                retryable=retryable,
                status_code=response.status_code,
            )

        return parse_transcript(body, api_key)


_transcription_client: TranscriptionClient | None = None


def get_transcription_client() -> TranscriptionClient:
    """Get singleton transcription client instance."""
    global _transcription_client
    if _transcription_client is None:
        _transcription_client = TranscriptionClient()
    return _transcription_client
