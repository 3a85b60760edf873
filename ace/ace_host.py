"""
A minimal host platform: command sources, command dispatch and client
connection tracking. Enough to run ACE from a terminal or under test.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from rich.console import Console
from rich.text import Text

from ace.ace_commands import CommandCallable, CommandException, CommandResult

logger = logging.getLogger(__name__)

HOST_ERROR_STYLE = "red"


class CommandSource(ABC):
    """Something that issues commands and receives messages: a client."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def has_permission(self, permission: Optional[str]) -> bool: raise NotImplementedError
    @abstractmethod
    def send_message(self, message: Text): raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class ConsoleSource(CommandSource):
    """The server operator, printing to a terminal. Holds every permission."""

    def __init__(self, name: str = "Console", console: Optional[Console] = None):
        super().__init__(name)
        self.console = console or Console(highlight=False)

    def has_permission(self, permission: Optional[str]) -> bool:
        return True

    def send_message(self, message: Text):
        self.console.print(message)


class CommandManager:
    """Routes command lines (`alias arguments`) to registered commands."""

    def __init__(self):
        self._commands: Dict[str, Tuple[object, CommandCallable]] = {}

    def register(self, plugin, command: CommandCallable, *aliases: str):
        for alias in aliases:
            alias = alias.lower()
            if alias in self._commands:
                logger.warning("Command alias %r is already registered, skipping", alias)
                continue
            self._commands[alias] = (plugin, command)

    def get(self, alias: str) -> Optional[CommandCallable]:
        mapping = self._commands.get(alias.lower())
        return mapping[1] if mapping else None

    @property
    def aliases(self) -> List[str]:
        return sorted(self._commands)

    def process(self, source: CommandSource, command_line: str) -> CommandResult:
        alias, _, arguments = command_line.partition(" ")
        command = self.get(alias)
        if command is None:
            source.send_message(Text(f"Unknown command: {alias}", style=HOST_ERROR_STYLE))
            return CommandResult.empty()
        if not command.test_permission(source):
            source.send_message(Text("You do not have permission to use this command", style=HOST_ERROR_STYLE))
            return CommandResult.empty()
        try:
            return command.process(source, arguments)
        except CommandException as e:
            source.send_message(Text(e.message, style=HOST_ERROR_STYLE))
            source.send_message(Text.assemble(("Usage: ", HOST_ERROR_STYLE), alias, " ", command.get_usage(source)))
            return CommandResult.empty()


class Server:
    """The game a plugin is loaded into: commands plus connected clients."""

    def __init__(self, name: str = "server"):
        self.name = name
        self.command_manager = CommandManager()
        self.sources: List[CommandSource] = []
        self._disconnect_listeners: List[Callable[[CommandSource], None]] = []

    def on_disconnect(self, listener: Callable[[CommandSource], None]):
        self._disconnect_listeners.append(listener)

    def connect(self, source: CommandSource):
        if source not in self.sources:
            self.sources.append(source)
            logger.info("%s connected", source.name)

    def disconnect(self, source: CommandSource):
        if source in self.sources:
            self.sources.remove(source)
            logger.info("%s disconnected", source.name)
        for listener in self._disconnect_listeners:
            listener(source)

    def __repr__(self):
        return f"Server({self.name!r})"
