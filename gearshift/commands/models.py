"""
Command data structures.

This module defines the values the registry and dispatcher pass around:
- Context: per-message execution context injected into handlers
- CheckResult / Check: precondition predicates run before binding
- Param: one declared handler parameter
- Command: a registered command (name, parameters, checks, handler, owner)
- Manifest: builder used by gears to declare their commands
- Gear: optional base class for command owners
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar, Iterator, Sequence, Union

import discord

from gearshift.commands.flags import Flags


@dataclass(frozen=True)
class Context:
    """
    Execution context for a single dispatch.

    Created fresh from the triggering message and discarded once the dispatch
    finishes. Handlers receive it by declaring a Context parameter.
    """

    channel: discord.abc.Messageable
    message: discord.Message
    author: discord.abc.User
    guild: discord.Guild | None = None

    @classmethod
    def from_message(cls, message: discord.Message) -> Context:
        return cls(
            channel=message.channel,
            message=message,
            author=message.author,
            guild=message.guild,
        )

    async def send(self, content: str | None = None, **kwargs: Any) -> discord.Message:
        """Send a message to the channel the command was issued in."""
        return await self.channel.send(content, **kwargs)

    async def reply(self, content: str | None = None, **kwargs: Any) -> discord.Message:
        """Reply to the triggering message."""
        return await self.message.reply(content, **kwargs)


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a check predicate: pass, or fail with a message for the channel."""

    passed: bool
    message: str = ""

    @classmethod
    def ok(cls) -> CheckResult:
        return cls(passed=True)

    @classmethod
    def fail(cls, message: str) -> CheckResult:
        return cls(passed=False, message=message)


# Checks may be plain functions or coroutines.
Check = Callable[[Context], Union[CheckResult, Awaitable[CheckResult]]]


@dataclass(frozen=True)
class Param:
    """
    A declared handler parameter.

    Args:
        type: Target type for conversion. Context and Flags subclasses are
              special: they are injected rather than read from a token.
        optional: Bind None instead of failing when no token is left
        rest: Receive the raw remainder of the message (last parameter, str only)
    """

    type: Any
    optional: bool = False
    rest: bool = False
    is_context: bool = field(init=False)
    is_flags: bool = field(init=False)

    def __post_init__(self) -> None:
        # frozen dataclass: derived fields must be set through object.__setattr__
        object.__setattr__(self, "is_context", self.type is Context)
        object.__setattr__(
            self,
            "is_flags",
            inspect.isclass(self.type) and issubclass(self.type, Flags),
        )

    @property
    def type_name(self) -> str:
        return getattr(self.type, "__name__", str(self.type))


@dataclass(frozen=True)
class Command:
    """A registered command."""

    name: str
    parameters: tuple[Param, ...]
    checks: tuple[Check, ...]
    handler: Callable[..., Any]
    owner: Any

    @property
    def rest_parameter(self) -> Param | None:
        if self.parameters and self.parameters[-1].rest:
            return self.parameters[-1]
        return None

    @property
    def bound_parameters(self) -> tuple[Param, ...]:
        """Parameters bound one by one, i.e. all but a trailing rest parameter."""
        if self.rest_parameter is not None:
            return self.parameters[:-1]
        return self.parameters

    def signature(self) -> str:
        """Human-readable usage string, e.g. `ban <Member> [float]`."""
        parts = [self.name]
        for param in self.parameters:
            if param.is_context:
                continue
            if param.is_flags:
                parts.extend(f"[--{name.replace('_', '-')}]" for name in param.type.model_fields)
                continue
            label = f"{param.type_name}..." if param.rest else param.type_name
            parts.append(f"[{label}]" if param.optional else f"<{label}>")
        return " ".join(parts)


@dataclass(frozen=True)
class ManifestEntry:
    name: str
    handler: Callable[..., Any] | str
    params: tuple[Param, ...]
    checks: tuple[Check, ...]


class Manifest:
    """
    Declarative list of the commands a gear exposes.

    Built once at class definition and read by CommandRegistry.register_owner():

        class General(Gear):
            manifest = (
                Manifest()
                .command("ping", "ping", params=[Param(Context)])
                .command("echo", "echo", params=[Param(Context), Param(str, rest=True)])
            )
    """

    def __init__(self) -> None:
        self._entries: list[ManifestEntry] = []

    def command(
        self,
        name: str,
        handler: Callable[..., Any] | str,
        params: Sequence[Param] = (),
        checks: Sequence[Check] = (),
    ) -> Manifest:
        """Declare a command. `handler` is a function or the name of a method on the gear."""
        self._entries.append(ManifestEntry(name, handler, tuple(params), tuple(checks)))
        return self

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class Gear:
    """
    Base class for command owners.

    Subclasses must set `manifest`; registering a gear without one raises
    RegistrationError. They may override setup(), which the registry calls
    (and awaits) once all of the gear's commands are registered.
    """

    manifest: ClassVar[Manifest]

    async def setup(self) -> None:
        pass
