"""
Tests for CommandDispatcher.

End-to-end dispatch of fake discord.Message objects through a registry:
- Prefix handling and unknown commands
- Checks (order, short-circuit, async checks)
- Binding errors turned into channel replies
- Handler invocation and failure replies (sync and async)
"""

from __future__ import annotations

import math
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from gearshift.commands import (
    CheckFailed,
    CheckResult,
    CommandDispatcher,
    Context,
    Flags,
    Gear,
    HandlerFailure,
    InvalidArgument,
    Manifest,
    Param,
    TooFewArguments,
    UnknownFlag,
)
from gearshift.config.settings import BotSettings


class LoudFlags(Flags):
    loud: bool = False
    times: int = 1


class RecordingGear(Gear):
    """Records every handler call as (command, args)."""

    manifest = (
        Manifest()
        .command("echo", "echo", params=[Param(Context), Param(str, rest=True)])
        .command(
            "ban",
            "ban",
            params=[Param(Context), Param(discord.Member), Param(float, optional=True)],
        )
        .command("add", "add", params=[Param(float), Param(float)])
        .command("say", "say", params=[Param(str), Param(LoudFlags)])
        .command("nan", "nan", params=[Param(float)])
        .command("price", "price", params=[Param(Decimal)])
        .command("boom", "boom")
        .command("aboom", "aboom")
    )

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []

    async def echo(self, ctx, text):
        self.calls.append(("echo", (ctx, text)))

    async def ban(self, ctx, member, days):
        self.calls.append(("ban", (ctx, member, days)))

    def add(self, a, b):
        self.calls.append(("add", (a, b)))

    async def say(self, text, flags):
        self.calls.append(("say", (text, flags)))

    def nan(self, value):
        self.calls.append(("nan", (value,)))

    def price(self, amount):
        self.calls.append(("price", (amount,)))

    def boom(self):
        raise RuntimeError("sync kaboom")

    async def aboom(self):
        raise ValueError("async kaboom")


def _make_message(content: str, guild=None) -> MagicMock:
    message = MagicMock(spec=discord.Message)
    message.content = content
    message.guild = guild
    message.author = MagicMock()
    message.channel = MagicMock()
    message.channel.send = AsyncMock()
    message.reply = AsyncMock()
    return message


def _make_resolver(member=None):
    resolver = MagicMock()
    resolver.fetch_member = AsyncMock(return_value=member)
    resolver.fetch_user = AsyncMock(return_value=None)
    resolver.fetch_channel = AsyncMock(return_value=None)
    resolver.fetch_guild = AsyncMock(return_value=None)
    return resolver


async def _make_dispatcher(resolver=None, **settings) -> tuple[CommandDispatcher, RecordingGear]:
    dispatcher = CommandDispatcher(BotSettings(**settings), resolver=resolver or _make_resolver())
    gear = RecordingGear()
    await dispatcher.registry.register_owner(gear)
    return dispatcher, gear


def _assert_no_platform_calls(message, resolver) -> None:
    message.reply.assert_not_called()
    message.channel.send.assert_not_called()
    resolver.fetch_member.assert_not_called()
    resolver.fetch_user.assert_not_called()


class TestPrefix:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["echo hi", "", "hello !echo hi", " !echo hi"])
    async def test_unprefixed_messages_are_ignored(self, content):
        resolver = _make_resolver()
        dispatcher, gear = await _make_dispatcher(resolver)
        message = _make_message(content)

        assert await dispatcher.handle_message(message) is None

        _assert_no_platform_calls(message, resolver)
        assert gear.calls == []

    @pytest.mark.asyncio
    async def test_bare_prefix_is_ignored(self):
        dispatcher, gear = await _make_dispatcher()
        message = _make_message("!   ")

        assert await dispatcher.handle_message(message) is None
        message.reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_prefix(self):
        dispatcher, gear = await _make_dispatcher(command_prefix="$$")
        await dispatcher.handle_message(_make_message("$$add 1 2"))
        await dispatcher.handle_message(_make_message("!add 3 4"))
        assert gear.calls == [("add", (1.0, 2.0))]


class TestUnknownCommand:
    @pytest.mark.asyncio
    async def test_replies_when_enabled(self):
        dispatcher, _ = await _make_dispatcher(unknown_command_response=True)
        message = _make_message("!frobnicate now")

        await dispatcher.handle_message(message)

        message.reply.assert_awaited_once_with("unknown command 'frobnicate'")
        message.channel.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_silent_when_disabled(self):
        dispatcher, _ = await _make_dispatcher(unknown_command_response=False)
        message = _make_message("!frobnicate")

        await dispatcher.handle_message(message)

        message.reply.assert_not_called()
        message.channel.send.assert_not_called()


class TestBindingAndInvocation:
    @pytest.mark.asyncio
    async def test_rest_parameter_receives_exact_text(self):
        dispatcher, gear = await _make_dispatcher()
        message = _make_message("!echo hello   world")

        assert await dispatcher.handle_message(message) is None

        name, (ctx, text) = gear.calls[0]
        assert text == "hello   world"
        assert isinstance(ctx, Context)
        assert ctx.message is message
        assert ctx.channel is message.channel
        message.channel.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_ban_scenario(self):
        """`!ban <@123> 5` → handler(ctx, member 123, 5)."""
        member = MagicMock(spec=discord.Member)
        guild = MagicMock(spec=discord.Guild)
        resolver = _make_resolver(member=member)
        dispatcher, gear = await _make_dispatcher(resolver)

        await dispatcher.handle_message(_make_message("!ban <@123> 5", guild=guild))

        resolver.fetch_member.assert_awaited_once_with(guild, 123)
        name, (ctx, resolved, days) = gear.calls[0]
        assert name == "ban"
        assert ctx.guild is guild
        assert resolved is member
        assert days == 5

    @pytest.mark.asyncio
    async def test_absent_optional_still_runs_handler(self):
        dispatcher, gear = await _make_dispatcher(_make_resolver(member=MagicMock()))
        await dispatcher.handle_message(_make_message("!ban <@123>"))
        assert gear.calls[0][1][2] is None

    @pytest.mark.asyncio
    async def test_member_not_found_is_passed_as_none(self):
        dispatcher, gear = await _make_dispatcher(_make_resolver(member=None))
        message = _make_message("!ban <@999>")

        await dispatcher.handle_message(message)

        assert gear.calls[0][1][1] is None
        message.channel.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_member_not_found_rejected_when_strict(self):
        dispatcher, gear = await _make_dispatcher(_make_resolver(member=None), strict_entity_lookup=True)
        message = _make_message("!ban <@999>")

        result = await dispatcher.handle_message(message)

        assert isinstance(result, InvalidArgument)
        message.channel.send.assert_awaited_once_with(
            "Invalid argument '<@999>', expected argument of type 'Member'"
        )
        assert gear.calls == []

    @pytest.mark.asyncio
    async def test_nan_literal(self):
        dispatcher, gear = await _make_dispatcher()
        await dispatcher.handle_message(_make_message("!nan NaN"))
        assert math.isnan(gear.calls[0][1][0])

    @pytest.mark.asyncio
    async def test_flags_object_is_populated(self):
        dispatcher, gear = await _make_dispatcher()
        await dispatcher.handle_message(_make_message("!say --loud hi --times=2"))

        text, flags = gear.calls[0][1]
        assert text == "hi"
        assert flags.loud is True
        assert flags.times == 2


class TestErrorReplies:
    @pytest.mark.asyncio
    async def test_invalid_argument(self):
        dispatcher, gear = await _make_dispatcher()
        message = _make_message("!add 1 two")

        result = await dispatcher.handle_message(message)

        assert result == InvalidArgument("two", "number")
        message.channel.send.assert_awaited_once_with(
            "Invalid argument 'two', expected argument of type 'number'"
        )
        assert gear.calls == []

    @pytest.mark.asyncio
    async def test_too_few_arguments(self):
        dispatcher, gear = await _make_dispatcher()
        message = _make_message("!add 1")

        result = await dispatcher.handle_message(message)

        assert result == TooFewArguments(expected=2, got=1)
        message.channel.send.assert_awaited_once_with("Expected 2 argument(s), but got 1 argument(s)")
        assert gear.calls == []

    @pytest.mark.asyncio
    async def test_unknown_flag(self):
        dispatcher, gear = await _make_dispatcher()
        message = _make_message("!say hi --loud --whisper")

        result = await dispatcher.handle_message(message)

        assert result == UnknownFlag("say", "whisper")
        message.channel.send.assert_awaited_once_with('Command "say" has no flag "whisper"')
        assert gear.calls == []

    @pytest.mark.asyncio
    async def test_factory_raising_arithmetic_error_gets_a_reply(self):
        dispatcher, gear = await _make_dispatcher()
        dispatcher.converter.register(Decimal, Decimal)
        message = _make_message("!price abc")

        result = await dispatcher.handle_message(message)

        assert result == InvalidArgument("abc", "Decimal")
        message.channel.send.assert_awaited_once_with(
            "Invalid argument 'abc', expected argument of type 'Decimal'"
        )
        assert gear.calls == []

    @pytest.mark.asyncio
    async def test_registered_factory_value_reaches_handler(self):
        dispatcher, gear = await _make_dispatcher()
        dispatcher.converter.register(Decimal, Decimal)

        await dispatcher.handle_message(_make_message("!price 9.99"))

        assert gear.calls == [("price", (Decimal("9.99"),))]

    @pytest.mark.asyncio
    async def test_sync_handler_failure(self):
        dispatcher, _ = await _make_dispatcher()
        message = _make_message("!boom")

        result = await dispatcher.handle_message(message)

        assert isinstance(result, HandlerFailure)
        message.channel.send.assert_awaited_once_with(
            "An error occurred while executing command: sync kaboom"
        )

    @pytest.mark.asyncio
    async def test_async_handler_failure(self):
        dispatcher, _ = await _make_dispatcher()
        message = _make_message("!aboom")

        await dispatcher.handle_message(message)

        message.channel.send.assert_awaited_once_with(
            "An error occurred while executing command: async kaboom"
        )


class TestChecks:
    @pytest.mark.asyncio
    async def test_first_failing_check_stops_dispatch(self):
        seen = []

        def passes(ctx):
            seen.append("passes")
            return CheckResult.ok()

        def fails(ctx):
            seen.append("fails")
            return CheckResult.fail("Not allowed here.")

        def never(ctx):
            seen.append("never")
            return CheckResult.ok()

        resolver = _make_resolver()
        dispatcher = CommandDispatcher(BotSettings(), resolver=resolver)
        handler = MagicMock()
        dispatcher.registry.add_command(
            None, "guarded", [Param(Context), Param(discord.Member)], [passes, fails, never], handler
        )
        message = _make_message("!guarded <@1>")

        result = await dispatcher.handle_message(message)

        assert result == CheckFailed("Not allowed here.")
        assert seen == ["passes", "fails"]
        message.channel.send.assert_awaited_once_with("Not allowed here.")
        handler.assert_not_called()
        resolver.fetch_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_checks_receive_context(self):
        received = []

        def check(ctx):
            received.append(ctx)
            return CheckResult.ok()

        dispatcher = CommandDispatcher(BotSettings())
        dispatcher.registry.add_command(None, "ping", [], [check], MagicMock())
        message = _make_message("!ping")

        await dispatcher.handle_message(message)

        assert received[0].message is message
        assert received[0].author is message.author

    @pytest.mark.asyncio
    async def test_async_check(self):
        async def deny(ctx):
            return CheckResult.fail("Nope.")

        dispatcher = CommandDispatcher(BotSettings())
        handler = MagicMock()
        dispatcher.registry.add_command(None, "ping", [], [deny], handler)
        message = _make_message("!ping")

        await dispatcher.handle_message(message)

        message.channel.send.assert_awaited_once_with("Nope.")
        handler.assert_not_called()
