"""Plugin identity and lifecycle hooks."""

import logging

from app.ports import CommandRegistry

logger = logging.getLogger("voice_message")

PLUGIN_ID = "com.scientia.voice-message"
PLUGIN_VERSION = "2.0.0"

COMMAND_VOICE = "voice"
COMMAND_AUDIOMSG = "audiomsg"
COMMAND_TRIGGERS = (COMMAND_VOICE, COMMAND_AUDIOMSG)


def register_slash_commands(registry: CommandRegistry) -> None:
    """Register both triggers, replacing any stale registration."""
    for trigger in COMMAND_TRIGGERS:
        registry.unregister_command(trigger)
        registry.register_command(trigger, display_name="Voice Message", description="Record a voice message")


def on_activate(registry: CommandRegistry) -> None:
    register_slash_commands(registry)
    logger.info("Voice Message plugin activated version=%s", PLUGIN_VERSION)


def on_deactivate(registry: CommandRegistry) -> None:
    for trigger in COMMAND_TRIGGERS:
        try:
            registry.unregister_command(trigger)
        except Exception as e:
            logger.warning("Failed to unregister /%s: %s", trigger, e)
