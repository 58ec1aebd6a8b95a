"""
DiscordResolver — entity lookups for command arguments.

Implements the PlatformResolver protocol on top of a discord.py client.
Cached objects are used when available; otherwise the API is queried.
"Not found" responses become None so the converter can apply its lookup
policy. Other HTTP errors propagate.
"""

from __future__ import annotations

import discord

from gearshift.config.logging import get_logger

logger = get_logger(__name__)


class DiscordResolver:
    """
    Resolves users, members, channels and guilds by id.

    Args:
        client: Connected discord.py client
    """

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    async def fetch_user(self, user_id: int) -> discord.User | None:
        user = self._client.get_user(user_id)
        if user is not None:
            return user
        try:
            return await self._client.fetch_user(user_id)
        except discord.NotFound:
            logger.debug(f"User {user_id} not found")
            return None

    async def fetch_member(self, guild: discord.Guild | None, member_id: int) -> discord.Member | None:
        if guild is None:
            logger.debug(f"Member {member_id} requested outside a guild")
            return None
        member = guild.get_member(member_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(member_id)
        except discord.NotFound:
            logger.debug(f"Member {member_id} not found in guild {guild.id}")
            return None

    async def fetch_channel(self, channel_id: int) -> discord.abc.GuildChannel | None:
        channel = self._client.get_channel(channel_id)
        if channel is not None:
            return channel
        try:
            return await self._client.fetch_channel(channel_id)
        except discord.NotFound:
            logger.debug(f"Channel {channel_id} not found")
            return None

    async def fetch_guild(self, guild_id: int) -> discord.Guild | None:
        # Only guilds the bot is in are meaningful as arguments.
        return self._client.get_guild(guild_id)
