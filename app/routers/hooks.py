"""Host-to-plugin hooks: configuration pushes and slash command execution."""

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import PluginConfiguration, get_config_store, get_settings
from app.dependencies import get_host, get_plugin_config
from app.schemas.plugin import CommandArgs, CommandResponse, PluginSettingsPayload
from app.services.commands import execute_command
from app.services.host import SqlAlchemyHost

logger = logging.getLogger("voice_message.hooks")

HOOK_SECRET_HEADER = "X-Plugin-Hook-Secret"


def require_hook_secret(request: Request) -> None:
    """Reject hook calls that do not carry the shared secret. Hooks stay closed until one is configured."""
    expected = get_settings().PLUGIN_HOOK_SECRET
    if not expected:
        logger.warning("Rejected hook call to %s: PLUGIN_HOOK_SECRET is not set", request.url.path)
        raise HTTPException(status_code=503, detail="Host hooks are not configured")
    supplied = request.headers.get(HOOK_SECRET_HEADER, "")
    if not secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")


router = APIRouter(prefix="/hooks", tags=["Host Hooks"], dependencies=[Depends(require_hook_secret)])


@router.post("/configuration")
def configuration_changed(payload: PluginSettingsPayload) -> dict:
    """Replace the configuration snapshot with the host's new settings."""
    config = PluginConfiguration.from_mapping(payload.model_dump())
    get_config_store().replace(config)
    logger.info(
        "Configuration updated transcription=%s provider=%s auto=%s",
        config.EnableTranscription,
        config.provider(),
        config.AutoTranscribe,
    )
    return {"detail": "Configuration updated"}


@router.post("/commands/execute", response_model=CommandResponse)
def command_executed(
    args: CommandArgs,
    host: SqlAlchemyHost = Depends(get_host),
    config: PluginConfiguration = Depends(get_plugin_config),
) -> CommandResponse:
    """Run a slash command on behalf of the host."""
    return execute_command(host, config, args)
