"""
GearshiftBot — discord.py bot client.

Manages the bot lifecycle:
- Builds the command dispatcher (registry, type converter, entity resolver) once
- Registers the bundled gears in setup_hook, before the gateway connects
- Feeds every incoming message through the dispatcher
"""

from __future__ import annotations

from typing import Any

import discord

from gearshift.bot.resolver import DiscordResolver
from gearshift.commands import Command, CommandDispatcher
from gearshift.config.logging import get_logger
from gearshift.config.settings import Settings

logger = get_logger(__name__)


def default_gears(bot: GearshiftBot) -> list[Any]:
    """Instantiate the gears that ship with Gearshift."""
    from gearshift.bot.gears.dice import DiceGear
    from gearshift.bot.gears.general import GeneralGear
    from gearshift.bot.gears.moderation import ModerationGear

    return [GeneralGear(bot), DiceGear(), ModerationGear()]


class GearshiftBot(discord.Client):
    """
    Discord client that dispatches prefixed text commands to gears.

    Args:
        settings: Full application settings (token, prefix, dispatch options, ...)
        gears: Gears to register at startup; the bundled gears if None
    """

    def __init__(self, settings: Settings, gears: list[Any] | None = None) -> None:
        intents = discord.Intents.default()
        intents.message_content = True  # Required to read command text
        super().__init__(intents=intents)
        self.settings = settings
        self.dispatcher = CommandDispatcher(settings.bot, resolver=DiscordResolver(self))
        self._gears = gears

    @property
    def commands(self) -> list[Command]:
        return self.dispatcher.registry.commands()

    async def add_gear(self, gear: Any) -> None:
        """Register a gear's commands and run its setup hook."""
        await self.dispatcher.registry.register_owner(gear)

    async def setup_hook(self) -> None:
        """
        Called after login, before connecting to the Gateway.

        All gears are registered here so the registry is complete before the
        first message is dispatched.
        """
        gears = self._gears if self._gears is not None else default_gears(self)
        for gear in gears:
            await self.add_gear(gear)
        logger.info(f"{len(self.dispatcher.registry)} command(s) ready")

    async def on_ready(self) -> None:
        """Called when the bot successfully connects to Discord."""
        logger.info(f"Logged in as {self.user} (id: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

    async def on_message(self, message: discord.Message) -> None:
        """
        Dispatch a message as a command.

        Ignores:
        - Messages from bots, when `ignore_bots` is set (always ignores itself)
        - Messages in non-allowed channels (if restriction is configured)
        """
        if message.author == self.user:
            return
        if self.settings.bot.ignore_bots and message.author.bot:
            return
        if not self.is_allowed_channel(message.channel.id):
            return

        await self.dispatcher.handle_message(message)

    def is_allowed_channel(self, channel_id: int) -> bool:
        """
        Return True if the bot should respond in this channel.

        If `allowed_channel_ids` is empty (the default), the bot responds everywhere.
        If it's non-empty, the bot only responds in the listed channel IDs.
        """
        allowed = self.settings.bot.allowed_channel_ids
        return not allowed or channel_id in allowed
