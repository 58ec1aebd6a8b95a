"""
Command flags.

Flags are `--name=value` (or bare `--name`, meaning "true") tokens that can
appear anywhere after the command name. They are pulled out of the positional
stream before binding and delivered to the handler through a Flags object:

    class RollFlags(Flags):
        times: int = 1
        sum: bool = False

    !roll 2d6 --times=3 --sum   →   RollFlags(times=3, sum=True)
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict

from gearshift.commands.tokenizer import Token

FLAG_PREFIX = "--"


class Flags(BaseModel):
    """
    Base class for a command's flags schema.

    Each declared field is one accepted flag; the field annotation is the type
    the raw flag value is converted to and the field default is used when the
    flag is not given. Dashes in flag names map to underscores in field names,
    so `--dry-run` fills `dry_run`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def field_for(cls, flag_name: str) -> str | None:
        """Return the field name a flag populates, or None if it is not declared."""
        field_name = flag_name.replace("-", "_")
        return field_name if field_name in cls.model_fields else None

    @classmethod
    def field_type(cls, field_name: str) -> Any:
        return cls.model_fields[field_name].annotation


def is_flag(token: Token) -> bool:
    return token.text.startswith(FLAG_PREFIX)


def extract_flags(tokens: Iterable[Token]) -> tuple[list[Token], dict[str, str]]:
    """
    Separate flag tokens from positional tokens.

    `--name=value` is split on the first '=', `--name` alone gets the value
    "true". When a name repeats, the later occurrence wins. Positional tokens
    keep their order and their original offsets.

    Args:
        tokens: Tokens following the command name

    Returns:
        Tuple of (positional tokens, flag map)
    """
    positional: list[Token] = []
    flags: dict[str, str] = {}

    for token in tokens:
        if not is_flag(token):
            positional.append(token)
            continue

        body = token.text[len(FLAG_PREFIX):]
        name, sep, value = body.partition("=")
        flags[name] = value if sep else "true"

    return positional, flags
