"""
Dispatch errors.

Binding, conversion and invocation report failure by returning one of these
values instead of raising. The dispatcher turns whichever one ends a dispatch
into exactly one chat reply via reply_text().

RegistrationError is the exception: it is raised at startup when a gear's
manifest is malformed, since there is no chat message to reply to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class RegistrationError(ValueError):
    """Raised when a command or gear cannot be registered."""


@dataclass(frozen=True)
class Converted:
    """Successful conversion result wrapping the typed value."""

    value: Any


@dataclass(frozen=True)
class DispatchError:
    """Base class for every terminal dispatch failure."""

    def reply_text(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class InvalidArgument(DispatchError):
    """A value failed the parse rule for its declared type."""

    value: str
    type_name: str

    def reply_text(self) -> str:
        return f"Invalid argument '{self.value}', expected argument of type '{self.type_name}'"


@dataclass(frozen=True)
class InvalidType(DispatchError):
    """No conversion rule and no registered factory exists for the declared type."""

    value: str
    type_name: str

    def reply_text(self) -> str:
        return f"Invalid argument '{self.value}', expected argument of type '{self.type_name}'"


@dataclass(frozen=True)
class TooFewArguments(DispatchError):
    expected: int
    got: int

    def reply_text(self) -> str:
        return f"Expected {self.expected} argument(s), but got {self.got} argument(s)"


@dataclass(frozen=True)
class UnknownFlag(DispatchError):
    command: str
    flag: str

    def reply_text(self) -> str:
        return f'Command "{self.command}" has no flag "{self.flag}"'


@dataclass(frozen=True)
class CheckFailed(DispatchError):
    """A check predicate rejected the dispatch; its message is sent as-is."""

    message: str

    def reply_text(self) -> str:
        return self.message


@dataclass(frozen=True)
class HandlerFailure(DispatchError):
    """The handler, or a conversion outside the known failure modes, raised."""

    error: BaseException

    def reply_text(self) -> str:
        return f"An error occurred while executing command: {self.error}"
