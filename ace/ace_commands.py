"""
The commands ACE registers with the host: `eval` and `context`.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from rich.text import Text

from ace.ace_config import AceConfig
from ace.ace_session import SessionRegistry


class CommandException(Exception):
    """A command-level failure; the host shows it along with the usage."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class CommandResult:
    status: str

    @classmethod
    def success(cls) -> "CommandResult":
        return cls("success")

    @classmethod
    def empty(cls) -> "CommandResult":
        return cls("empty")


class CommandCallable(ABC):
    """The capability set a host needs to expose a command."""

    @abstractmethod
    def get_short_description(self, source) -> Text: raise NotImplementedError
    @abstractmethod
    def get_usage(self, source) -> Text: raise NotImplementedError
    @abstractmethod
    def test_permission(self, source) -> bool: raise NotImplementedError
    @abstractmethod
    def process(self, source, arguments: str) -> CommandResult: raise NotImplementedError

    def get_help(self, source) -> Text:
        return self.get_usage(source)

    def get_suggestions(self, source, arguments: str) -> List[str]:
        return []


class EvalCommand(CommandCallable):
    def __init__(self, sessions: SessionRegistry, config: AceConfig):
        self.sessions = sessions
        self.config = config

    def get_short_description(self, source) -> Text:
        return Text("Evaluates Python expressions and statements")

    def get_usage(self, source) -> Text:
        return Text(f"{self.config.aliases('eval')[0]} expression | statement")

    def test_permission(self, source) -> bool:
        return source.has_permission(self.config.permission("eval"))

    def process(self, source, arguments: str) -> CommandResult:
        self.sessions.get_or_create(source).eval(arguments)
        return CommandResult.success()


def parse_int(string: str, default: int) -> int:
    try:
        return int(string)
    except ValueError:
        return default


class ContextCommand(CommandCallable):
    def __init__(self, sessions: SessionRegistry, config: AceConfig):
        self.sessions = sessions
        self.config = config
        self._subcommands = {
            "imports": lambda session, page: session.print_imports(page),
            "variables": lambda session, page: session.print_variables(page),
            "reset": lambda session, page: session.reset_environment(),
        }

    def get_short_description(self, source) -> Text:
        return Text("Manage the source's ACE context")

    def get_usage(self, source) -> Text:
        return Text("imports [page] | variables [page] | reset")

    def test_permission(self, source) -> bool:
        return source.has_permission(self.config.permission("context"))

    def process(self, source, arguments: str) -> CommandResult:
        parts = arguments.split(" ")
        command = parts[0]
        # A page that is not a number fails the page check downstream
        page = parse_int(parts[1], -1) if len(parts) >= 2 else 1
        action = self._subcommands.get(command)
        if action is None:
            raise CommandException(self.config.message("unknown_command", command=command))
        action(self.sessions.get_or_create(source), page)
        return CommandResult.success()
