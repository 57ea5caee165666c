"""Configuration settings for the voice message service."""

import os
import threading
from dataclasses import dataclass, fields
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MAX_RECORDING_DURATION_SECONDS = 600
DEFAULT_MAX_FILE_SIZE_MB = 50
DEFAULT_MOBILE_TOKEN_TTL_SECONDS = 15 * 60
DEFAULT_TRANSCRIPTION_MAX_DURATION_SECONDS = 300
DEFAULT_ALLOWED_ROLES = "all"
DEFAULT_PROVIDER = "deepinfra"
DEFAULT_MODEL = "openai/whisper-large-v3-turbo"

PROVIDER_DEEPINFRA = "deepinfra"
PROVIDER_OPENAI = "openai"
PROVIDER_CUSTOM = "custom"

PROVIDER_URLS = {
    PROVIDER_DEEPINFRA: "https://api.deepinfra.com/v1/inference/openai/whisper-large-v3-turbo",
    PROVIDER_OPENAI: "https://api.openai.com/v1/audio/transcriptions",
}


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./voice_message.db")

    # Storage
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")

    # Host
    SITE_URL: str = os.getenv("SITE_URL", "")

    # Transcription runtime
    TRANSCRIPTION_TIMEOUT_SECONDS: float = float(os.getenv("TRANSCRIPTION_TIMEOUT_SECONDS", "30"))
    AUTO_TRANSCRIBE_CONCURRENCY: int = int(os.getenv("AUTO_TRANSCRIBE_CONCURRENCY", "2"))
    AUTO_TRANSCRIBE_SETTLE_SECONDS: float = float(os.getenv("AUTO_TRANSCRIBE_SETTLE_SECONDS", "0.5"))

    # Host hooks; when set, hook calls must carry it in X-Plugin-Hook-Secret
    PLUGIN_HOOK_SECRET: str = os.getenv("PLUGIN_HOOK_SECRET", "")
    EPHEMERAL_CLEANUP_SECONDS: float = float(os.getenv("EPHEMERAL_CLEANUP_SECONDS", "6"))

    # Rate limiting
    UPLOAD_RATE_LIMIT: str = os.getenv("UPLOAD_RATE_LIMIT", "20/minute")

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not self.SITE_URL:
            errors.append("SITE_URL is not set - recording links and permalinks will be relative")
        if not self.PLUGIN_HOOK_SECRET:
            errors.append("PLUGIN_HOOK_SECRET is not set - host hooks will reject every call")
        if self.AUTO_TRANSCRIBE_CONCURRENCY < 1:
            errors.append("AUTO_TRANSCRIBE_CONCURRENCY must be at least 1")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def int_from_config(value: str | None, default: int) -> int:
    """Parse a non-negative integer setting, falling back to the default on bad input."""
    value = (value or "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    if parsed < 0:
        return default
    return parsed


@dataclass(frozen=True)
class TranscriptionSettings:
    """Effective transcription settings for one request."""

    provider: str
    url: str
    api_key: str
    model: str
    language: str
    max_duration_seconds: int
    enabled: bool
    auto_transcribe: bool

    @property
    def is_deepinfra(self) -> bool:
        return self.provider == PROVIDER_DEEPINFRA


@dataclass(frozen=True)
class PluginConfiguration:
    """Raw plugin settings as pushed by the host (System Console values)."""

    MaxRecordingDurationSeconds: str = str(DEFAULT_MAX_RECORDING_DURATION_SECONDS)
    MaxFileSizeMB: str = ""
    MobileTokenTTLSeconds: str = ""
    AllowedRoles: str = DEFAULT_ALLOWED_ROLES
    EnableTranscription: bool = False
    TranscriptionProvider: str = ""
    TranscriptionAPIKey: str = ""
    TranscriptionServiceURL: str = ""
    TranscriptionModel: str = ""
    TranscriptionLanguage: str = ""
    TranscriptionMaxDurationSeconds: str = ""
    AutoTranscribe: bool = False

    @classmethod
    def from_env(cls) -> "PluginConfiguration":
        """Build the initial configuration from VM_* environment variables."""
        return cls(
            MaxRecordingDurationSeconds=os.getenv(
                "VM_MAX_RECORDING_DURATION_SECONDS", str(DEFAULT_MAX_RECORDING_DURATION_SECONDS)
            ),
            MaxFileSizeMB=os.getenv("VM_MAX_FILE_SIZE_MB", ""),
            MobileTokenTTLSeconds=os.getenv("VM_MOBILE_TOKEN_TTL_SECONDS", ""),
            AllowedRoles=os.getenv("VM_ALLOWED_ROLES", DEFAULT_ALLOWED_ROLES),
            EnableTranscription=_env_bool("VM_ENABLE_TRANSCRIPTION"),
            TranscriptionProvider=os.getenv("VM_TRANSCRIPTION_PROVIDER", ""),
            TranscriptionAPIKey=os.getenv("VM_TRANSCRIPTION_API_KEY", ""),
            TranscriptionServiceURL=os.getenv("VM_TRANSCRIPTION_SERVICE_URL", ""),
            TranscriptionModel=os.getenv("VM_TRANSCRIPTION_MODEL", ""),
            TranscriptionLanguage=os.getenv("VM_TRANSCRIPTION_LANGUAGE", ""),
            TranscriptionMaxDurationSeconds=os.getenv("VM_TRANSCRIPTION_MAX_DURATION_SECONDS", ""),
            AutoTranscribe=_env_bool("VM_AUTO_TRANSCRIBE"),
        )

    @classmethod
    def from_mapping(cls, raw: dict) -> "PluginConfiguration":
        """Build from a host payload, ignoring unknown keys and coercing None to the field default."""
        known = {f.name: f for f in fields(cls)}
        values = {}
        for key, value in raw.items():
            if key not in known or value is None:
                continue
            if known[key].type is bool:
                values[key] = bool(value)
            else:
                values[key] = str(value)
        return cls(**values)

    def max_recording_duration_seconds(self) -> int:
        return int_from_config(self.MaxRecordingDurationSeconds, DEFAULT_MAX_RECORDING_DURATION_SECONDS)

    def mobile_token_ttl_seconds(self) -> int:
        return int_from_config(self.MobileTokenTTLSeconds, DEFAULT_MOBILE_TOKEN_TTL_SECONDS)

    def max_file_size_bytes(self) -> int:
        mb = int_from_config(self.MaxFileSizeMB, DEFAULT_MAX_FILE_SIZE_MB)
        if mb <= 0:
            mb = DEFAULT_MAX_FILE_SIZE_MB
        return mb * 1024 * 1024

    def allowed_roles(self) -> str:
        return self.AllowedRoles.strip() or DEFAULT_ALLOWED_ROLES

    def transcription_max_duration_seconds(self) -> int:
        return int_from_config(self.TranscriptionMaxDurationSeconds, DEFAULT_TRANSCRIPTION_MAX_DURATION_SECONDS)

    def provider(self) -> str:
        """Normalized provider name; unknown or empty values resolve to the default provider."""
        name = self.TranscriptionProvider.strip().lower()
        if name in (PROVIDER_DEEPINFRA, PROVIDER_OPENAI, PROVIDER_CUSTOM):
            return name
        return DEFAULT_PROVIDER

    def transcription_url(self) -> str:
        provider = self.provider()
        if provider == PROVIDER_CUSTOM:
            return self.TranscriptionServiceURL.strip()
        return PROVIDER_URLS[provider]

    def transcription_model(self) -> str:
        return self.TranscriptionModel.strip() or DEFAULT_MODEL

    def transcription(self) -> TranscriptionSettings:
        """Resolve the effective transcription settings."""
        return TranscriptionSettings(
            provider=self.provider(),
            url=self.transcription_url(),
            api_key=self.TranscriptionAPIKey.strip(),
            model=self.transcription_model(),
            language=self.TranscriptionLanguage.strip(),
            max_duration_seconds=self.transcription_max_duration_seconds(),
            enabled=self.EnableTranscription,
            auto_transcribe=self.AutoTranscribe,
        )

    def public_view(self) -> dict:
        """Settings the webapp is allowed to see."""
        return {
            "maxDurationSeconds": self.max_recording_duration_seconds(),
            "enableTranscription": self.EnableTranscription,
            "autoTranscribe": self.AutoTranscribe,
            "transcriptionMaxDuration": self.transcription_max_duration_seconds(),
        }


class ConfigStore:
    """Holds the current configuration snapshot; replaced whole on every change."""

    def __init__(self, initial: PluginConfiguration | None = None) -> None:
        self._lock = threading.Lock()
        self._config = initial or PluginConfiguration()

    def get(self) -> PluginConfiguration:
        with self._lock:
            return self._config

    def replace(self, config: PluginConfiguration) -> None:
        with self._lock:
            self._config = config


_config_store: ConfigStore | None = None


def get_config_store() -> ConfigStore:
    """Get singleton config store, seeded from the environment."""
    global _config_store
    if _config_store is None:
        _config_store = ConfigStore(PluginConfiguration.from_env())
    return _config_store
