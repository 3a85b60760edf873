"""
Rendering of everything ACE sends back to a client.

Messages are `rich.text.Text` values so the host decides how colours reach the
client. All of them carry the same blue `[ACE] ` prefix.
"""
from rich.text import Text

from ace.ace_datatypes import ErrorInformation, TypeEntry, VariableEntry

ACE_PREFIX = "[ACE] "
PREFIX_STYLE = "blue"
OK_STYLE = "dark_green"
ERROR_STYLE = "dark_red"
PLACEHOLDER = "_"


def ace_message(message) -> Text:
    """Prefix `message` (str or Text) for delivery to a client."""
    return Text.assemble((ACE_PREFIX, PREFIX_STYLE), message)


def send_ace_message(source, message):
    source.send_message(ace_message(message))


def ok_text(message: str) -> Text:
    return Text(message, style=OK_STYLE)


def error_text(message: str) -> Text:
    return Text(message, style=ERROR_STYLE)


def result_text(type_name: str, value: str) -> Text:
    return Text.assemble(("Type: ", OK_STYLE), type_name, (" Value: ", OK_STYLE), value)


def entry_to_text(entry) -> Text:
    match entry:
        case TypeEntry(name=name):
            return ok_text(name)
        case VariableEntry(name=name, type_name=type_name, value=value):
            text = Text.assemble(("Name: ", OK_STYLE), name, (" Type: ", OK_STYLE), type_name)
            if value is not None:
                text.append(" Value: ", style=OK_STYLE)
                text.append(value)
            return text
        case _:
            raise TypeError(f"Not a display entry: {entry!r}")


class ErrorFormatter:
    """Renders a source error as its message and the highlighted source line."""

    def format(self, error: ErrorInformation) -> tuple[Text, Text]:
        # The extra space lets an error at end of line highlight something
        line = error.line + " "
        start = error.start
        end = error.end + 1
        problem = line[start:end]
        if len(problem) == 1 and problem.isspace():
            problem = PLACEHOLDER
        highlighted = Text.assemble(line[:start], (problem, ERROR_STYLE), line[end:])
        return error_text(error.message), highlighted


class Printer:
    """Exposed to evaluated code as `printer`: prints values to its client.

    Every kind of value is turned into text through the handler registered
    for its type, falling back to `str`.
    """

    def __init__(self, receiver):
        self.receiver = receiver
        self._handlers = self._create_handlers()

    def _create_handlers(self):
        return {
            str: self._format_str,
            bool: self._format_primitive,
            int: self._format_primitive,
            float: self._format_primitive,
            complex: self._format_primitive,
            bytes: self._format_bytes,
            bytearray: self._format_bytes,
            type(None): self._format_primitive,
        }

    def _format_str(self, message):
        return message

    def _format_primitive(self, message):
        return str(message)

    def _format_bytes(self, message):
        return bytes(message).decode("utf-8", errors="replace")

    def _get_handler(self, message):
        handler = self._handlers.get(type(message))
        if handler is not None:
            return handler
        # Subclasses of the primitives (IntEnum, str subclasses) use their base
        for kind, candidate in self._handlers.items():
            if kind is not type(None) and isinstance(message, kind):
                return candidate
        return str

    def print(self, message):
        send_ace_message(self.receiver, Text(self._get_handler(message)(message)))

    def __repr__(self):
        # The receiver may be a weak proxy, whose own repr is not helpful
        return f"Printer({getattr(self.receiver, 'name', '?')!r})"
