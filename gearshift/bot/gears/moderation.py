"""
ModerationGear — !ban.

    !ban <member> [days]

Bans a member and deletes up to `days` (0-7) of their recent messages.
Only usable in a guild by members who may ban.
"""

from __future__ import annotations

import discord

from gearshift.commands import CheckResult, Context, Gear, Manifest, Param
from gearshift.config.logging import get_logger

logger = get_logger(__name__)

MAX_DELETE_DAYS = 7


def guild_only(ctx: Context) -> CheckResult:
    if ctx.guild is None:
        return CheckResult.fail("This command can only be used in a server.")
    return CheckResult.ok()


def can_ban(ctx: Context) -> CheckResult:
    permissions = getattr(ctx.author, "guild_permissions", None)
    if permissions is None or not permissions.ban_members:
        return CheckResult.fail("You need the Ban Members permission to do that.")
    return CheckResult.ok()


class ModerationGear(Gear):
    """Member moderation commands."""

    manifest = Manifest().command(
        "ban",
        "ban",
        params=[Param(Context), Param(discord.Member), Param(float, optional=True)],
        checks=[guild_only, can_ban],
    )

    async def ban(self, ctx: Context, member: discord.Member | None, days: float | None) -> None:
        """!ban <member> [days]"""
        if member is None:
            await ctx.send("I couldn't find that member.")
            return

        days = min(max(days or 0, 0), MAX_DELETE_DAYS)
        await member.ban(
            delete_message_seconds=int(days * 86400),
            reason=f"Banned by {ctx.author}",
        )
        logger.info(f"{ctx.author} banned {member} ({member.id}) in {ctx.guild}")
        await ctx.send(f"Banned {member}.")
