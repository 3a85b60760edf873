"""
The interpreter service used by sessions: Python source, tokenized, parsed
and executed against a per-session environment.

Every failure the evaluated code can cause is reported as a SourceError
pointing at the offending span of the decoded source.
"""
import ast
import builtins
import io
import tokenize
import types
from typing import Any, List, Optional, Tuple

from ace.ace_datatypes import SourceError, Token, TokenStream, Variable

FILENAME = "<ace>"
CONSOLE_MODULE = "__console__"

_SKIPPED_TOKENS = {
    tokenize.NEWLINE, tokenize.NL, tokenize.COMMENT, tokenize.INDENT,
    tokenize.DEDENT, tokenize.ENDMARKER, tokenize.ENCODING,
}


# ===================================================================
# Positions
# ===================================================================

class _Lines:
    """Converts (line, column) positions of a text into absolute offsets.

    `base` is the offset of the text inside the decoded source it was cut from.
    """
    def __init__(self, text: str, base: int = 0):
        self.text = text
        self.base = base
        self.starts = [0]
        for i, c in enumerate(text):
            if c == "\n":
                self.starts.append(i + 1)

    def line(self, lineno: int) -> str:
        if lineno < 1 or lineno > len(self.starts):
            return ""
        start = self.starts[lineno - 1]
        end = self.text.find("\n", start)
        return self.text[start:] if end == -1 else self.text[start:end]

    def offset(self, lineno: Optional[int], col: int) -> int:
        if lineno is None or lineno < 1:
            return self.base
        if lineno > len(self.starts):
            return self.base + len(self.text)
        return self.base + self.starts[lineno - 1] + max(col, 0)

    def byte_offset(self, lineno: Optional[int], byte_col: int) -> int:
        # Compiled code reports columns as UTF-8 byte offsets
        if lineno is None:
            return self.base
        encoded = self.line(lineno).encode("utf-8")
        col = len(encoded[:max(byte_col, 0)].decode("utf-8", errors="ignore"))
        if byte_col > len(encoded):
            col += byte_col - len(encoded)
        return self.offset(lineno, col)


def _syntax_error(error: SyntaxError, lines: _Lines) -> SourceError:
    message = error.msg or "invalid syntax"
    lineno = error.lineno or 1
    start = lines.offset(lineno, (error.offset or 1) - 1)
    end = start
    if error.end_lineno and error.end_offset:
        end = lines.offset(error.end_lineno, error.end_offset - 1) - 1
    return SourceError(message, start, max(start, end))


def _traceback_span(tb, code) -> Optional[Tuple[int, int, int, int]]:
    """The position of the failing instruction inside `code`, if it is known."""
    span = None
    while tb is not None:
        if tb.tb_frame.f_code is code and tb.tb_lasti >= 0:
            positions = getattr(code, "co_positions", None)
            if positions is not None:
                entries = list(positions())
                index = tb.tb_lasti // 2
                if index < len(entries) and None not in entries[index]:
                    lineno, end_lineno, col, end_col = entries[index]
                    span = (lineno, col, end_lineno, end_col)
        tb = tb.tb_next
    return span


def _runtime_error(error: BaseException, code, node: ast.AST, lines: _Lines) -> SourceError:
    detail = str(error)
    message = f"{type(error).__name__}: {detail}" if detail else type(error).__name__
    span = _traceback_span(error.__traceback__, code)
    if span is None:
        span = (node.lineno, node.col_offset, node.end_lineno, node.end_col_offset)
    lineno, col, end_lineno, end_col = span
    start = lines.byte_offset(lineno, col)
    if end_col is None:
        return SourceError(message, start)
    end = lines.byte_offset(end_lineno or lineno, end_col) - 1
    return SourceError(message, start, max(start, end))


# ===================================================================
# Lexing & parsing
# ===================================================================

def lex(source: str) -> TokenStream:
    """Split decoded source into tokens, dropping layout and comments."""
    lines = _Lines(source)
    tokens = []
    readline = io.StringIO(source).readline
    try:
        for tok in tokenize.generate_tokens(readline):
            if tok.type in _SKIPPED_TOKENS:
                continue
            start = lines.offset(*tok.start)
            end = lines.offset(*tok.end) - 1
            if tok.type == tokenize.ERRORTOKEN:
                if tok.string.isspace():
                    continue
                raise SourceError(f"Unexpected character {tok.string!r}", start)
            tokens.append(Token(tokenize.tok_name[tok.type], tok.string, start, max(start, end)))
    except tokenize.TokenError as e:
        message = e.args[0] if e.args else "invalid token"
        position = e.args[1] if len(e.args) > 1 else None
        if position:
            start = lines.offset(position[0], position[1])
        else:
            start = len(source)
        raise SourceError(str(message), start) from e
    except SyntaxError as e:
        raise _syntax_error(e, lines) from e
    return TokenStream(source, tokens)


def _parse(tokens: TokenStream, mode: str):
    # Parse from the first token so a leading indent is not an error
    base = tokens[0].start if len(tokens) else 0
    code = tokens.source[base:]
    lines = _Lines(code, base)
    try:
        tree = ast.parse(code, FILENAME, mode=mode)
    except SyntaxError as e:
        raise _syntax_error(e, lines) from e
    except ValueError as e:
        raise SourceError(str(e), base) from e
    return tree, lines


def parse_statements(tokens: TokenStream) -> List['Statement']:
    module, lines = _parse(tokens, "exec")
    return [Statement(node, lines) for node in module.body]


def parse_expression(tokens: TokenStream) -> 'Expression':
    expression, lines = _parse(tokens, "eval")
    return Expression(expression, lines)


# ===================================================================
# Execution
# ===================================================================

def _declared_annotation(node: ast.AnnAssign, environment: 'Environment') -> Any:
    """The annotation `exec` already evaluated for `node`, else its source text."""
    # Lazily evaluated module annotations (3.14+) never reach `__annotations__`
    annotations = environment.namespace.get("__annotations__")
    if isinstance(annotations, dict) and node.target.id in annotations:
        return annotations[node.target.id]
    return ast.unparse(node.annotation)


class Statement:
    """A single top-level statement, executed on its own."""

    def __init__(self, node: ast.stmt, lines: _Lines):
        self.node = node
        self._lines = lines

    def execute(self, environment: 'Environment'):
        node = self.node
        try:
            code = compile(ast.Module(body=[node], type_ignores=[]), FILENAME, "exec")
        except SyntaxError as e:
            raise _syntax_error(e, self._lines) from e
        try:
            exec(code, environment.namespace)
        except (Exception, SystemExit) as e:
            raise _runtime_error(e, code, node, self._lines) from e
        if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            environment.declare_type(node.target.id, _declared_annotation(node, environment))

    def __repr__(self):
        return f"Statement({ast.unparse(self.node)!r})"


class Expression:
    """A single expression.

    Python has no static types: the type of an expression is the type of the
    value it evaluates to. The expression is evaluated once, on whichever of
    `evaluate_type` and `evaluate_value` is called first.
    """

    def __init__(self, node: ast.Expression, lines: _Lines):
        self.node = node
        self._lines = lines
        self._outcome: Optional[Tuple[Any]] = None

    def evaluate_type(self, environment: 'Environment') -> type:
        return type(self._evaluate(environment))

    def evaluate_value(self, environment: 'Environment') -> Any:
        return self._evaluate(environment)

    def _evaluate(self, environment: 'Environment') -> Any:
        if self._outcome is None:
            try:
                code = compile(self.node, FILENAME, "eval")
            except SyntaxError as e:
                raise _syntax_error(e, self._lines) from e
            try:
                value = eval(code, environment.namespace)
            except (Exception, SystemExit) as e:
                raise _runtime_error(e, code, self.node.body, self._lines) from e
            self._outcome = (value,)
        return self._outcome[0]


# ===================================================================
# Environment
# ===================================================================

def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def canonical_name(obj: Any) -> str:
    """Fully qualified name of a class or module (`builtins.int`, `os.path`)."""
    if isinstance(obj, types.ModuleType):
        return obj.__name__
    qualname = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None)
    if qualname is None:
        return str(obj)
    module = getattr(obj, "__module__", None)
    return f"{module}.{qualname}" if module else qualname


def type_name(tp: Any) -> str:
    """Display name of a type; built-in classes go by their short name."""
    if isinstance(tp, type):
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return canonical_name(tp)
    return str(tp)


class Environment:
    """The bindings of one session: a namespace plus declared variable types."""

    def __init__(self):
        self.namespace = {"__name__": CONSOLE_MODULE, "__builtins__": builtins}
        self._declared = {}

    def declare_binding(self, name: str, type_: Any, value: Any):
        self.namespace[name] = value
        self._declared[name] = type_

    def declare_type(self, name: str, type_: Any):
        self._declared[name] = type_

    def list_types(self) -> List[Any]:
        """Every class and module known to the environment, built-ins first."""
        found = []
        seen = set()
        for scope in (vars(builtins), self.namespace):
            for name, value in scope.items():
                if _is_dunder(name) or not isinstance(value, (type, types.ModuleType)):
                    continue
                if id(value) in seen:
                    continue
                seen.add(id(value))
                found.append(value)
        return found

    def list_variables(self) -> List[Variable]:
        variables = []
        for name, value in self.namespace.items():
            if _is_dunder(name) or isinstance(value, (type, types.ModuleType)):
                continue
            variables.append(Variable(name, self._declared.get(name, type(value)), value))
        for name, type_ in self._declared.items():
            if name not in self.namespace:
                variables.append(Variable(name, type_, initialized=False))
        return variables
