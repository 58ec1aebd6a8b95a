"""
Command dispatcher.

Turns an incoming chat message into a handler call:

    prefix → tokenize → extract flags → look up command → run checks
           → bind parameters → invoke handler → reply on error

Each stage can end the dispatch. Messages without the prefix end it silently;
every other failure sends exactly one reply to the channel and is returned
to the caller as a DispatchError.
"""

from __future__ import annotations

import inspect
from typing import Sequence

import discord

from gearshift.commands.binder import Bound, ParameterBinder
from gearshift.commands.converters import PlatformResolver, TypeConverter
from gearshift.commands.errors import CheckFailed, DispatchError, HandlerFailure
from gearshift.commands.flags import extract_flags
from gearshift.commands.models import Check, Command, Context
from gearshift.commands.registry import CommandRegistry
from gearshift.commands.tokenizer import tokenize
from gearshift.config.logging import get_logger
from gearshift.config.settings import BotSettings

logger = get_logger(__name__)


async def run_checks(checks: Sequence[Check], ctx: Context) -> CheckFailed | None:
    """Evaluate checks in order; return the first failure, or None if all pass."""
    for check in checks:
        result = check(ctx)
        if inspect.isawaitable(result):
            result = await result
        if not result.passed:
            return CheckFailed(result.message)
    return None


class CommandDispatcher:
    """
    Routes prefixed messages to registered commands.

    Args:
        settings: Bot settings (command prefix, unknown-command reply, lookup policy)
        registry: Registry this dispatcher owns; a new one is created if omitted
        resolver: Platform lookups for entity-typed parameters
        converter: Conversion engine; defaults to one built from settings
    """

    def __init__(
        self,
        settings: BotSettings,
        registry: CommandRegistry | None = None,
        resolver: PlatformResolver | None = None,
        converter: TypeConverter | None = None,
    ) -> None:
        self._settings = settings
        self.registry = registry if registry is not None else CommandRegistry()
        self.converter = converter or TypeConverter(
            strict_entity_lookup=settings.strict_entity_lookup
        )
        self._binder = ParameterBinder(self.converter, resolver)

    async def handle_message(self, message: discord.Message) -> DispatchError | None:
        """
        Dispatch one message.

        Returns:
            The DispatchError that ended the dispatch (after its reply was
            sent), or None if the handler ran successfully or the message
            was not a command
        """
        prefix = self._settings.command_prefix
        if not message.content.startswith(prefix):
            return None
        content = message.content[len(prefix):]

        tokens = list(tokenize(content))
        if not tokens:
            return None
        name = tokens[0].text

        command = self.registry.lookup(name)
        if command is None:
            logger.debug(f"Unknown command {name!r}")
            if self._settings.unknown_command_response:
                await message.reply(f"unknown command '{name}'")
            return None

        positional, flags = extract_flags(tokens[1:])
        ctx = Context.from_message(message)
        logger.debug(
            f"Dispatching {name!r} for {ctx.author}: "
            f"{len(positional)} argument(s), flags={sorted(flags)}"
        )

        failure = await run_checks(command.checks, ctx)
        if failure is not None:
            logger.info(f"Check rejected {name!r} for {ctx.author}: {failure.message}")
            return await self._report(message, failure)

        bound = await self._binder.bind(command, positional, flags, ctx, content, tokens)
        if not isinstance(bound, Bound):
            logger.debug(f"Binding {name!r} failed: {bound}")
            return await self._report(message, bound)

        failure = await self._invoke(command, bound)
        if failure is not None:
            return await self._report(message, failure)
        return None

    @staticmethod
    async def _invoke(command: Command, bound: Bound) -> HandlerFailure | None:
        try:
            result = command.handler(*bound.args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception(f"Command {command.name!r} raised: {e}")
            return HandlerFailure(e)
        return None

    @staticmethod
    async def _report(message: discord.Message, error: DispatchError) -> DispatchError:
        await message.channel.send(error.reply_text())
        return error
