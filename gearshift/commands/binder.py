"""
Parameter binding.

Aligns the positional tokens and flags of one message with a command's
declared parameters and produces the handler's argument list.

Binding runs in two phases:
1. Plan - walk the parameters in order, inject the Context, assign tokens,
   and detect missing arguments or unknown flags. Nothing is converted yet,
   so these failures never touch the platform.
2. Convert - start every conversion as its own task and join them. The first
   failure to complete is returned and the remaining tasks are cancelled.

A trailing rest parameter receives the raw text of the message from the first
unconsumed token to the end, with flag tokens cut out.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Sequence

from gearshift.commands.converters import PlatformResolver, TypeConverter
from gearshift.commands.errors import (
    Converted,
    DispatchError,
    HandlerFailure,
    TooFewArguments,
    UnknownFlag,
)
from gearshift.commands.flags import Flags, is_flag
from gearshift.commands.models import Command, Context
from gearshift.commands.tokenizer import Token
from gearshift.config.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Bound:
    """Successful binding: handler arguments in declared order."""

    args: tuple[Any, ...]


def raw_remainder(content: str, start: int, tokens: Sequence[Token]) -> str:
    """
    Return content[start:] with the spans of flag tokens removed.

    Whitespace and quote characters between the remaining words are kept
    exactly as typed.
    """
    pieces = []
    cursor = start
    for token in tokens:
        if token.index < start or not is_flag(token):
            continue
        pieces.append(content[cursor:token.index])
        cursor = token.end
    pieces.append(content[cursor:])
    return "".join(pieces)


class ParameterBinder:
    """
    Binds message tokens to command parameters.

    Args:
        converter: Conversion engine for token → typed value
        resolver: Platform lookups used for user/member/channel/guild parameters
    """

    def __init__(self, converter: TypeConverter, resolver: PlatformResolver | None = None) -> None:
        self._converter = converter
        self._resolver = resolver

    async def bind(
        self,
        command: Command,
        positional: Sequence[Token],
        flags: dict[str, str],
        ctx: Context,
        content: str,
        tokens: Sequence[Token] = (),
    ) -> Bound | DispatchError:
        """
        Build handler arguments for one dispatch.

        Args:
            command: Resolved command
            positional: Flag-free tokens after the command name
            flags: Flag map extracted from the message
            ctx: Execution context for this dispatch
            content: Prefix-stripped message text the tokens index into
            tokens: Every token of the message, flags included; used to cut
                flag spans out of a rest argument

        Returns:
            Bound arguments, or the first DispatchError encountered
        """
        params = command.bound_parameters
        args: list[Any] = [None] * len(params)
        planned: dict[int, Callable[[], Awaitable[Converted | DispatchError]]] = {}
        consumed = 0

        for position, param in enumerate(params):
            if param.is_context:
                args[position] = ctx
                continue

            if param.is_flags:
                for name in flags:
                    if param.type.field_for(name) is None:
                        return UnknownFlag(command.name, name)
                planned[position] = partial(self._build_flags, param.type, flags, ctx)
                continue

            if consumed >= len(positional):
                if param.optional:
                    continue
                expected = sum(1 for p in params if not p.optional)
                return TooFewArguments(expected=expected, got=len(positional))

            planned[position] = partial(
                self._converter.convert,
                positional[consumed].text,
                param.type,
                self._resolver,
                ctx.guild,
            )
            consumed += 1

        failure = await self._join(planned, args)
        if failure is not None:
            return failure

        rest = command.rest_parameter
        if rest is not None:
            if consumed < len(positional):
                args.append(raw_remainder(content, positional[consumed].index, tokens))
            else:
                args.append(None if rest.optional else "")

        return Bound(tuple(args))

    async def _build_flags(
        self, schema: type[Flags], flags: dict[str, str], ctx: Context
    ) -> Converted | DispatchError:
        """Convert every supplied flag and build a fresh instance of schema."""
        values: dict[str, Any] = {}
        for name, raw in flags.items():
            field_name = schema.field_for(name)
            outcome = await self._converter.convert(
                raw, schema.field_type(field_name), self._resolver, ctx.guild
            )
            if isinstance(outcome, DispatchError):
                return outcome
            values[field_name] = outcome.value
        # Values are already converted; skip pydantic re-validation, keep field defaults.
        return Converted(schema.model_construct(**values))

    @staticmethod
    async def _join(
        planned: dict[int, Callable[[], Awaitable[Converted | DispatchError]]], args: list[Any]
    ) -> DispatchError | None:
        """Run conversions concurrently, filling args; return the first failure observed."""
        if not planned:
            return None

        tasks = {
            asyncio.ensure_future(start()): position for position, start in planned.items()
        }
        remaining = set(tasks)
        while remaining:
            done, remaining = await asyncio.wait(remaining, return_when=asyncio.FIRST_COMPLETED)
            for task in sorted(done, key=tasks.__getitem__):
                try:
                    outcome = task.result()
                except Exception as e:
                    logger.exception("Conversion raised during binding")
                    outcome = HandlerFailure(e)
                if isinstance(outcome, DispatchError):
                    await _discard(tasks)
                    return outcome
                args[tasks[task]] = outcome.value
        return None


async def _discard(tasks) -> None:
    """Cancel unfinished tasks and collect every outcome so none goes unretrieved."""
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

