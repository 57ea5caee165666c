"""Slash command handling: `/voice` and `/audiomsg` open the mobile recorder."""

import logging

from app.config import PluginConfiguration
from app.plugin import COMMAND_TRIGGERS
from app.ports import HostAPI, HostError
from app.schemas.plugin import CommandArgs, CommandResponse
from app.services.links import LinkBuilder
from app.services.mobile_token import MobileTokenService, TokenInvalid, get_mobile_token_service
from app.services.voice_message import get_voice_message_service

logger = logging.getLogger("voice_message.commands")

MSG_NO_PERMISSION = "⛔ You don't have permission to send voice messages."
MSG_PREPARE_FAILED = "Failed to prepare recording. Check server logs."


def recording_prompt(record_url: str, max_duration_seconds: int, ttl_seconds: int) -> str:
    return (
        "🎤 **Voice Message**\n\n"
        f"Open the recording page:\n{record_url}\n\n"
        f"*Recording limit: {max_duration_seconds // 60} min. "
        f"Link valid for ~{ttl_seconds // 60} min (one-time use).*"
    )


def execute_command(
    host: HostAPI,
    config: PluginConfiguration,
    args: CommandArgs,
    links: LinkBuilder | None = None,
    tokens: MobileTokenService | None = None,
) -> CommandResponse:
    """Issue a one-time recording link for the invoking user."""
    split = args.command.split()
    if not split:
        return CommandResponse()
    trigger = split[0].lstrip("/")
    if trigger not in COMMAND_TRIGGERS:
        return CommandResponse()

    links = links or LinkBuilder()
    tokens = tokens or get_mobile_token_service()

    if not get_voice_message_service().is_user_allowed(host, config, args.user_id):
        return CommandResponse(text=MSG_NO_PERMISSION, channel_id=args.channel_id)

    root_id = args.root_id or None
    try:
        token = tokens.issue(host, args.user_id, args.channel_id, root_id, config.mobile_token_ttl_seconds())
    except HostError as e:
        logger.error("failed to issue mobile token err=%s", e)
        return CommandResponse(text=MSG_PREPARE_FAILED, channel_id=args.channel_id)

    record_url = links.mobile_record_url(token, args.channel_id, root_id)
    text = recording_prompt(record_url, config.max_recording_duration_seconds(), config.mobile_token_ttl_seconds())

    try:
        ephemeral_id = host.send_ephemeral_post(args.user_id, args.channel_id, text)
    except HostError as e:
        logger.warning("failed to send recording prompt err=%s", e)
        ephemeral_id = ""
    if ephemeral_id:
        try:
            tokens.set_ephemeral_post_id(host, token, ephemeral_id)
        except (HostError, TokenInvalid) as e:
            logger.warning("failed to remember prompt post err=%s", e)

    return CommandResponse(channel_id=args.channel_id, goto_location=record_url)
