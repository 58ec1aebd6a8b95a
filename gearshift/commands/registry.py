"""
Command registry.

Maps command names to Command descriptors. Gears are registered once at
startup from their Manifest; after that the registry is only read. It is not
a process-wide singleton: each CommandDispatcher owns one.

Registration is not synchronised with dispatch. Register every gear before
the bot starts handling messages.
"""

from __future__ import annotations

import inspect
import types
from typing import Any, Callable, Iterator, Sequence

from gearshift.commands.errors import RegistrationError
from gearshift.commands.models import Check, Command, Manifest, Param
from gearshift.config.logging import get_logger

logger = get_logger(__name__)


def _validate_parameters(name: str, parameters: Sequence[Param]) -> None:
    for position, param in enumerate(parameters):
        if not param.rest:
            continue
        if position != len(parameters) - 1:
            raise RegistrationError(
                f"Command {name!r}: rest parameter must be the last parameter"
            )
        if param.type is not str:
            raise RegistrationError(
                f"Command {name!r}: rest parameter must be of type str, not {param.type_name}"
            )


def _bind_handler(owner: Any, handler: Callable[..., Any] | str) -> Callable[..., Any]:
    """Resolve a handler reference to a callable bound to its owner."""
    if isinstance(handler, str):
        bound = getattr(owner, handler, None)
        if bound is None or not callable(bound):
            raise RegistrationError(
                f"{type(owner).__name__} has no handler method {handler!r}"
            )
        return bound
    if owner is None or inspect.ismethod(handler):
        return handler
    return types.MethodType(handler, owner)


class CommandRegistry:
    """Name → Command mapping built from gear manifests."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def add_command(
        self,
        owner: Any,
        name: str,
        parameters: Sequence[Param],
        checks: Sequence[Check],
        handler: Callable[..., Any] | str,
    ) -> Command:
        """
        Store a command, replacing any command already registered under `name`.

        Args:
            owner: Instance the handler belongs to (None for a free function)
            name: Command name as typed after the prefix
            parameters: Declared parameters in handler order
            checks: Predicates run in order before binding
            handler: Function, bound method, or method name on `owner`

        Returns:
            The stored Command

        Raises:
            RegistrationError: If a rest parameter is misplaced or not a str,
                or a named handler does not exist on `owner`
        """
        _validate_parameters(name, parameters)

        if name in self._commands:
            previous = self._commands[name]
            logger.warning(
                f"Command {name!r} from {type(owner).__name__} replaces the one "
                f"from {type(previous.owner).__name__}"
            )

        command = Command(
            name=name,
            parameters=tuple(parameters),
            checks=tuple(checks),
            handler=_bind_handler(owner, handler),
            owner=owner,
        )
        self._commands[name] = command
        logger.debug(f"Registered command {command.signature()!r}")
        return command

    def lookup(self, name: str) -> Command | None:
        return self._commands.get(name)

    async def register_owner(self, owner: Any) -> list[Command]:
        """
        Register every command declared in owner's manifest, then run its setup hook.

        The hook (`owner.setup()`) may be a plain method or a coroutine; a
        returned awaitable is awaited before this method returns.

        Raises:
            RegistrationError: If owner has no Manifest or an entry is invalid
        """
        manifest = getattr(owner, "manifest", None)
        if not isinstance(manifest, Manifest):
            raise RegistrationError(f"{type(owner).__name__} does not declare a command manifest")

        registered = [
            self.add_command(owner, entry.name, entry.params, entry.checks, entry.handler)
            for entry in manifest
        ]
        logger.info(f"Registered {len(registered)} command(s) from {type(owner).__name__}")

        setup = getattr(owner, "setup", None)
        if callable(setup):
            result = setup()
            if inspect.isawaitable(result):
                await result

        return registered

    def commands(self) -> list[Command]:
        """All registered commands, sorted by name."""
        return [self._commands[name] for name in sorted(self._commands)]

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands())
