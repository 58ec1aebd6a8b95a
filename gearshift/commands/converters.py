"""
Type conversion for command arguments.

TypeConverter turns a raw token into the type a handler parameter declares:

    float                         parsed number ("NaN" allowed literally)
    bool                          y/t/yes/true or n/f/no/false, any case
    str, object, Any              passed through unchanged
    discord.User / Member /       looked up through a PlatformResolver;
    GuildChannel / TextChannel /  mention syntax like <@123> is accepted
    VoiceChannel / Guild
    anything else                 a factory registered with register()

Conversions never raise. They return Converted(value) or a DispatchError so
that many of them can run side by side and be joined without exception
juggling.
"""

from __future__ import annotations

import math
import re
import types
import typing
from typing import Any, Callable, Protocol

import discord

from gearshift.commands.errors import (
    Converted,
    DispatchError,
    InvalidArgument,
    InvalidType,
)
from gearshift.config.logging import get_logger

logger = get_logger(__name__)

_TRUE = frozenset({"y", "t", "yes", "true"})
_FALSE = frozenset({"n", "f", "no", "false"})
_NON_DIGITS_RE = re.compile(r"\D")

# Friendly names used in "expected argument of type" replies.
_TYPE_NAMES: dict[Any, str] = {
    float: "number",
    int: "integer",
    bool: "boolean",
    str: "string",
}


class PlatformResolver(Protocol):
    """
    Entity lookups offered by the chat platform.

    Each method returns None when the platform reports that the entity does
    not exist.
    """

    async def fetch_user(self, user_id: int) -> discord.User | None: ...

    async def fetch_member(self, guild: discord.Guild | None, member_id: int) -> discord.Member | None: ...

    async def fetch_channel(self, channel_id: int) -> discord.abc.GuildChannel | None: ...

    async def fetch_guild(self, guild_id: int) -> discord.Guild | None: ...


def type_name(target: Any) -> str:
    if target in _TYPE_NAMES:
        return _TYPE_NAMES[target]
    return getattr(target, "__name__", str(target))


def unwrap_optional(target: Any) -> Any:
    """Reduce Optional[X] / X | None to X; other annotations are returned as-is."""
    origin = typing.get_origin(target)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(target) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return target


def _snowflake(raw: str) -> int | None:
    """Parse an entity id, stripping a mention wrapper such as <@123>, <@!123> or <#123>."""
    text = _NON_DIGITS_RE.sub("", raw) if raw.startswith("<") else raw
    try:
        return int(text)
    except ValueError:
        return None


class TypeConverter:
    """
    Converts raw strings into declared parameter types.

    Args:
        strict_entity_lookup: When True, an entity the platform cannot find is
            an InvalidArgument. When False (default) it is logged and converted
            to None.
    """

    def __init__(self, strict_entity_lookup: bool = False) -> None:
        self._strict_entity_lookup = strict_entity_lookup
        self._factories: dict[Any, Callable[[str], Any]] = {int: int}

    def register(self, target: Any, factory: Callable[[str], Any]) -> None:
        """Register a single-argument factory used to build values of `target`."""
        self._factories[target] = factory

    async def convert(
        self,
        raw: str,
        target: Any,
        resolver: PlatformResolver | None = None,
        guild: discord.Guild | None = None,
    ) -> Converted | DispatchError:
        """
        Convert raw to target.

        Args:
            raw: Token text
            target: Declared parameter type
            resolver: Platform lookups, required for entity types
            guild: Guild the message came from, used for member lookups

        Returns:
            Converted wrapping the value, or the DispatchError describing the failure
        """
        target = unwrap_optional(target)

        if target is float:
            return self._to_number(raw)
        if target is bool:
            return self._to_bool(raw)
        if target in (str, object, typing.Any):
            return Converted(raw)
        if _is_entity_type(target):
            return await self._to_entity(raw, target, resolver, guild)

        factory = self._factories.get(target)
        if factory is None:
            return InvalidType(raw, type_name(target))
        try:
            return Converted(factory(raw))
        except Exception as e:
            logger.debug(f"Factory for {type_name(target)} rejected {raw!r}: {e!r}")
            return InvalidArgument(raw, type_name(target))

    @staticmethod
    def _to_number(raw: str) -> Converted | DispatchError:
        try:
            value = float(raw)
        except ValueError:
            return InvalidArgument(raw, type_name(float))
        if math.isnan(value) and raw != "NaN":
            return InvalidArgument(raw, type_name(float))
        return Converted(value)

    @staticmethod
    def _to_bool(raw: str) -> Converted | DispatchError:
        lowered = raw.lower()
        if lowered in _TRUE:
            return Converted(True)
        if lowered in _FALSE:
            return Converted(False)
        return InvalidArgument(raw, type_name(bool))

    async def _to_entity(
        self,
        raw: str,
        target: type,
        resolver: PlatformResolver | None,
        guild: discord.Guild | None,
    ) -> Converted | DispatchError:
        entity_id = _snowflake(raw)
        if entity_id is None or resolver is None:
            return InvalidArgument(raw, type_name(target))

        try:
            if issubclass(target, discord.Member):
                entity = await resolver.fetch_member(guild, entity_id)
            elif issubclass(target, discord.User):
                entity = await resolver.fetch_user(entity_id)
            elif issubclass(target, discord.Guild):
                entity = await resolver.fetch_guild(entity_id)
            else:
                entity = await resolver.fetch_channel(entity_id)
        except discord.HTTPException as e:
            logger.warning(f"Lookup of {type_name(target)} {entity_id} failed: {e}")
            return InvalidArgument(raw, type_name(target))
        except Exception:
            logger.exception(f"Resolver raised while looking up {type_name(target)} {entity_id}")
            return InvalidArgument(raw, type_name(target))

        if entity is None:
            logger.warning(f"Couldn't resolve {raw!r} to {type_name(target)}")
            if self._strict_entity_lookup:
                return InvalidArgument(raw, type_name(target))
            return Converted(None)
        return Converted(entity)


_ENTITY_TYPES: tuple[type, ...] = (
    discord.User,
    discord.Member,
    discord.Guild,
    discord.abc.GuildChannel,
)


def _is_entity_type(target: Any) -> bool:
    return isinstance(target, type) and issubclass(target, _ENTITY_TYPES)
