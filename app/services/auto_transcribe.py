"""Best-effort background transcription right after upload."""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import AbstractContextManager

from app.config import PluginConfiguration, get_config_store, get_settings
from app.ports import PROP_TRANSCRIPT, HostError, PostStore
from app.services.host import open_host
from app.services.transcription import TranscriptionClient, get_transcription_client

logger = logging.getLogger("voice_message.auto_transcribe")

PostStoreFactory = Callable[[], AbstractContextManager[PostStore]]


def should_auto_transcribe(config: PluginConfiguration) -> bool:
    settings = config.transcription()
    return settings.enabled and settings.auto_transcribe and bool(settings.api_key)


class AutoTranscriber:
    """Runs at most `capacity` transcriptions at once; extra submissions are dropped, never queued."""

    def __init__(
        self,
        posts_factory: PostStoreFactory,
        client: TranscriptionClient | None = None,
        config_provider: Callable[[], PluginConfiguration] | None = None,
        capacity: int | None = None,
        settle_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        settings = get_settings()
        capacity = capacity or settings.AUTO_TRANSCRIBE_CONCURRENCY
        self._posts_factory = posts_factory
        self._client = client
        self._config_provider = config_provider or get_config_store().get
        self._slots = threading.BoundedSemaphore(capacity)
        self._executor = ThreadPoolExecutor(max_workers=capacity, thread_name_prefix="auto-transcribe")
        self._settle_seconds = settings.AUTO_TRANSCRIBE_SETTLE_SECONDS if settle_seconds is None else settle_seconds
        self._sleep = sleep

    @property
    def client(self) -> TranscriptionClient:
        return self._client or get_transcription_client()

    def submit(self, post_id: str, audio: bytes, mime_type: str | None) -> Future | None:
        """Start a background transcription. Returns None when no slot is free."""
        if not self._slots.acquire(blocking=False):
            logger.warning("Auto-transcribe skipped: too many in flight post_id=%s", post_id)
            return None
        try:
            return self._executor.submit(self._run, post_id, audio, mime_type)
        except RuntimeError:
            # Executor already shut down.
            self._slots.release()
            logger.warning("Auto-transcribe skipped: shutting down post_id=%s", post_id)
            return None

    def _run(self, post_id: str, audio: bytes, mime_type: str | None) -> str | None:
        try:
            self._sleep(self._settle_seconds)

            config = self._config_provider()
            if not should_auto_transcribe(config):
                return None

            result = self.client.transcribe(audio, mime_type, config.transcription())
            if not result.success:
                logger.error("Auto-transcription failed post_id=%s err=%s", post_id, result.error)
                return None

            with self._posts_factory() as posts:
                try:
                    posts.set_post_prop(post_id, PROP_TRANSCRIPT, result.text)
                except HostError as e:
                    logger.error("UpdatePost failed after auto-transcription post_id=%s err=%s", post_id, e)
                    return None
            return result.text
        except Exception:
            logger.exception("Auto-transcription crashed post_id=%s", post_id)
            return None
        finally:
            self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_auto_transcriber: AutoTranscriber | None = None


def get_auto_transcriber() -> AutoTranscriber:
    """Get singleton auto-transcriber instance."""
    global _auto_transcriber
    if _auto_transcriber is None:
        _auto_transcriber = AutoTranscriber(posts_factory=open_host)
    return _auto_transcriber


def shutdown_auto_transcriber() -> None:
    global _auto_transcriber
    if _auto_transcriber is not None:
        _auto_transcriber.shutdown(wait=True)
        _auto_transcriber = None
