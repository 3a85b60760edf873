"""
Per-client evaluation sessions and the registry that hands them out.

A session buffers partial submissions, owns the client's environment, drives
submissions through decode, lex, parse and execute, and renders whatever
comes out of that, results and failures alike.
"""
import logging
import threading
import weakref
from typing import Any, List, Literal, Optional

from ace.ace_config import AceConfig, default_config
from ace.ace_datatypes import (
    SourceError, NoActiveContextError, InvalidPageError, NoEntriesError,
    DisplayEntry, TypeEntry, VariableEntry,
)
from ace.ace_decoder import SourceMetadata, decode
from ace.ace_interpreter import (
    Environment, lex, parse_statements, parse_expression, canonical_name, type_name,
)
from ace.ace_pager import paginate
from ace.ace_printer import (
    ErrorFormatter, Printer, send_ace_message, ok_text, error_text, result_text, entry_to_text,
)

logger = logging.getLogger(__name__)

BUILTIN_NAMESPACE = "builtins."


def is_builtin_top_level(name: str) -> bool:
    """True for `builtins.int`, false for anything nested deeper."""
    return name.startswith(BUILTIN_NAMESPACE) and "." not in name[len(BUILTIN_NAMESPACE):]


class Session:
    """The evaluation state of one client.

    Idle while `source_buffer` is None, buffering otherwise. The environment
    is created on the first submission and dropped whole by a reset.
    """

    def __init__(self, source, game: Any = None, config: Optional[AceConfig] = None):
        # A proxy, so neither the session nor its bindings keep the client alive
        self.source = weakref.proxy(source)
        self.source_type = type(source)
        self.game = game
        self.config = config or default_config()
        self.environment: Optional[Environment] = None
        self.source_buffer: Optional[str] = None
        self.formatter = ErrorFormatter()

    # -- replies ---------------------------------------------------------

    def _reply(self, message):
        send_ace_message(self.source, message)

    def _ok(self, key: str, **context):
        self._reply(ok_text(self.config.message(key, **context)))

    def _fail(self, key: str, **context):
        self._reply(error_text(self.config.message(key, **context)))

    def _display_error(self, metadata: SourceMetadata, error: SourceError):
        for text in self.formatter.format(metadata.generate_error_information(error)):
            self._reply(text)

    # -- environment -----------------------------------------------------

    def _create_environment(self):
        self.environment = Environment()
        self._add_variable("game", self.game)
        self._add_variable("me", self.source, self.source_type)
        self._add_variable("printer", Printer(self.source))
        logger.debug("Created environment for %s", self.source)

    def _add_variable(self, name: str, value: Any, type_: Optional[type] = None):
        self.environment.declare_binding(name, type_ or type(value), value)

    def reset_environment(self):
        if self.environment is None:
            self._fail("no_context")
            return
        self.environment = None
        logger.debug("Deleted environment for %s", self.source)
        self._ok("context_deleted")

    # -- evaluation ------------------------------------------------------

    def eval(self, code: str):
        if self.environment is None:
            self._create_environment()
        continuation = self.config.continuation
        if code.endswith(continuation):
            self.source_buffer = (self.source_buffer or "") + code[:-len(continuation)] or None
            self._ok("buffered")
            return
        if self.source_buffer is not None:
            code = self.source_buffer + code
            self.source_buffer = None
        self._execute(code)

    def _execute(self, code: str):
        metadata = SourceMetadata(code)
        environment = self.environment
        try:
            decoded = decode(code, metadata)
            tokens = lex(decoded)
            if not tokens:
                self._fail("nothing_to_evaluate")
                return
            if tokens[-1].is_symbol(";"):
                for statement in parse_statements(tokens):
                    statement.execute(environment)
                self._ok("success")
            else:
                expression = parse_expression(tokens)
                value_type = expression.evaluate_type(environment)
                value = expression.evaluate_value(environment)
                self._reply(result_text(type_name(value_type), str(value)))
        except SourceError as e:
            self._display_error(metadata, e)
        except Exception:
            self._fail("unknown_error")
            logger.exception("Error while evaluating code")

    # -- introspection ---------------------------------------------------

    def print_imports(self, page: int):
        self._print_entries("classes", page)

    def print_variables(self, page: int):
        self._print_entries("variables", page)

    def _print_entries(self, kind: Literal["classes", "variables"], page: int):
        try:
            shown = paginate(self._fetch_entries(kind, page), page, self.config.entries_per_page)
        except NoActiveContextError:
            self._fail("no_context")
            return
        except InvalidPageError:
            self._fail("invalid_page")
            return
        except NoEntriesError as e:
            self._fail("no_entries", page=e.page)
            return
        # Only the page's own entries are rendered, all before the first reply
        try:
            texts = [entry_to_text(self._display_entry(kind, raw)) for raw in shown]
        except Exception:
            self._fail("unknown_error")
            logger.exception("Error while listing %s", kind)
            return
        for text in texts:
            self._reply(text)

    def _fetch_entries(self, kind: Literal["classes", "variables"], page: int) -> List[Any]:
        if self.environment is None:
            raise NoActiveContextError()
        if page < 1:
            raise InvalidPageError(page)
        if kind == "classes":
            return [t for t in self.environment.list_types() if not is_builtin_top_level(canonical_name(t))]
        return self.environment.list_variables()

    @staticmethod
    def _display_entry(kind: Literal["classes", "variables"], raw: Any) -> DisplayEntry:
        if kind == "classes":
            return TypeEntry(canonical_name(raw))
        return VariableEntry(
            raw.name,
            type_name(raw.type),
            str(raw.value) if raw.initialized else None,
        )

    def __repr__(self):
        state = "buffering" if self.source_buffer is not None else "idle"
        return f"Session({self.source}, {state})"


class SessionRegistry:
    """Sessions keyed by client, never keeping a client alive.

    Entries go away when the client is garbage collected or when the host
    reports a disconnect through `discard`.
    """

    def __init__(self, game: Any = None, config: Optional[AceConfig] = None):
        self.game = game
        self.config = config
        self._sessions: "weakref.WeakKeyDictionary[Any, Session]" = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def get_or_create(self, source) -> Session:
        with self._lock:
            session = self._sessions.get(source)
            if session is None:
                session = Session(source, self.game, self.config)
                self._sessions[source] = session
                logger.debug("Created session for %s", source)
            return session

    def discard(self, source):
        with self._lock:
            if self._sessions.pop(source, None) is not None:
                logger.debug("Dropped session for %s", source)

    def __contains__(self, source) -> bool:
        with self._lock:
            return source in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
