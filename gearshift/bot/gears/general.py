"""
GeneralGear — everyday utility commands.

    !ping               latency check
    !echo <text...>     repeat text exactly as typed
    !whois <member>     show basic member info
    !help [command]     list commands or show one command's usage
"""

from __future__ import annotations

import discord

from gearshift.commands import Context, Gear, Manifest, Param


class GeneralGear(Gear):
    """Utility commands. Needs the bot for latency and the command list."""

    manifest = (
        Manifest()
        .command("ping", "ping", params=[Param(Context)])
        .command("echo", "echo", params=[Param(Context), Param(str, rest=True)])
        .command("whois", "whois", params=[Param(Context), Param(discord.Member)])
        .command("help", "help", params=[Param(Context), Param(str, optional=True)])
    )

    def __init__(self, bot) -> None:
        self.bot = bot

    async def ping(self, ctx: Context) -> None:
        await ctx.send(f"Pong! {round(self.bot.latency * 1000)} ms")

    async def echo(self, ctx: Context, text: str) -> None:
        await ctx.send(text or "Nothing to echo.")

    async def whois(self, ctx: Context, member: discord.Member | None) -> None:
        if member is None:
            await ctx.send("I couldn't find that member.")
            return

        embed = discord.Embed(title=str(member), color=member.color)
        embed.add_field(name="ID", value=str(member.id), inline=True)
        embed.add_field(name="Display name", value=member.display_name, inline=True)
        if member.joined_at:
            embed.add_field(name="Joined", value=member.joined_at.strftime("%Y-%m-%d"), inline=True)
        await ctx.send(embed=embed)

    async def help(self, ctx: Context, name: str | None) -> None:
        prefix = self.bot.settings.bot.command_prefix
        commands = self.bot.commands

        if name is not None:
            matching = [c for c in commands if c.name == name]
            if not matching:
                await ctx.send(f"unknown command '{name}'")
                return
            await ctx.send(f"`{prefix}{matching[0].signature()}`")
            return

        lines = [f"`{prefix}{c.signature()}`" for c in commands]
        await ctx.send("Available commands:\n" + "\n".join(lines))
