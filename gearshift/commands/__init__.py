"""
Command Dispatch Layer.

Parses prefixed chat messages and routes them to gear handlers with typed
arguments:

    "!ban <@123> 7"
        ↓ tokenize / extract_flags
    ["ban", "<@123>", "7"], {}
        ↓ CommandRegistry.lookup("ban")
    Command(params=[Context, Member, optional float])
        ↓ ParameterBinder (TypeConverter, concurrently per parameter)
    handler(ctx, <Member 123>, 7.0)

Failures at any step become a single chat reply (see errors.py).
"""

from gearshift.commands.binder import Bound, ParameterBinder
from gearshift.commands.converters import PlatformResolver, TypeConverter
from gearshift.commands.dispatcher import CommandDispatcher, run_checks
from gearshift.commands.errors import (
    CheckFailed,
    Converted,
    DispatchError,
    HandlerFailure,
    InvalidArgument,
    InvalidType,
    RegistrationError,
    TooFewArguments,
    UnknownFlag,
)
from gearshift.commands.flags import Flags, extract_flags
from gearshift.commands.models import (
    Check,
    CheckResult,
    Command,
    Context,
    Gear,
    Manifest,
    Param,
)
from gearshift.commands.registry import CommandRegistry
from gearshift.commands.tokenizer import Token, tokenize

__all__ = [
    "Bound",
    "Check",
    "CheckFailed",
    "CheckResult",
    "Command",
    "CommandDispatcher",
    "CommandRegistry",
    "Context",
    "Converted",
    "DispatchError",
    "Flags",
    "Gear",
    "HandlerFailure",
    "InvalidArgument",
    "InvalidType",
    "Manifest",
    "Param",
    "ParameterBinder",
    "PlatformResolver",
    "RegistrationError",
    "Token",
    "TooFewArguments",
    "TypeConverter",
    "UnknownFlag",
    "extract_flags",
    "run_checks",
    "tokenize",
]
