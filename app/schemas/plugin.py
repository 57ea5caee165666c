"""Pydantic schemas for host-to-plugin hooks."""

from pydantic import BaseModel, ConfigDict, field_validator


class PluginSettingsPayload(BaseModel):
    """System Console settings as pushed by the host. Numeric values arrive as strings."""

    model_config = ConfigDict(extra="ignore")

    MaxRecordingDurationSeconds: str | None = None
    MaxFileSizeMB: str | None = None
    MobileTokenTTLSeconds: str | None = None
    AllowedRoles: str | None = None
    EnableTranscription: bool = False
    TranscriptionProvider: str | None = None
    TranscriptionAPIKey: str | None = None
    TranscriptionServiceURL: str | None = None
    TranscriptionModel: str | None = None
    TranscriptionLanguage: str | None = None
    TranscriptionMaxDurationSeconds: str | None = None
    AutoTranscribe: bool = False

    @field_validator(
        "MaxRecordingDurationSeconds",
        "MaxFileSizeMB",
        "MobileTokenTTLSeconds",
        "TranscriptionMaxDurationSeconds",
        mode="before",
    )
    @classmethod
    def numbers_as_text(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CommandArgs(BaseModel):
    """Slash command invocation forwarded by the host."""

    command: str
    user_id: str
    channel_id: str
    root_id: str = ""


class CommandResponse(BaseModel):
    response_type: str = "ephemeral"
    text: str = ""
    channel_id: str = ""
    goto_location: str = ""
