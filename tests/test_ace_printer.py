import pytest
from rich.text import Text

from ace.ace_datatypes import ErrorInformation, TypeEntry, VariableEntry
from ace.ace_printer import (
    ErrorFormatter, Printer, ace_message, entry_to_text, result_text,
    ERROR_STYLE, PREFIX_STYLE,
)


def styled(text, style):
    return [text.plain[s.start:s.end] for s in text.spans if s.style == style]


@pytest.fixture
def formatter():
    return ErrorFormatter()


def test_ace_message_is_prefixed():
    message = ace_message("hello")
    assert message.plain == "[ACE] hello"
    assert styled(message, PREFIX_STYLE) == ["[ACE] "]


def test_error_renders_message_then_highlighted_line(formatter):
    message, line = formatter.format(ErrorInformation("NameError: boom", "x = boom + 1", 4, 7))
    assert message.plain == "NameError: boom"
    assert line.plain == "x = boom + 1 "
    assert styled(line, ERROR_STYLE) == ["boom"]


def test_single_whitespace_span_gets_a_placeholder(formatter):
    _, line = formatter.format(ErrorInformation("invalid syntax", "x = 1", 3, 3))
    assert line.plain == "x =_1 "
    assert styled(line, ERROR_STYLE) == ["_"]


def test_error_at_end_of_line_highlights_a_placeholder(formatter):
    _, line = formatter.format(ErrorInformation("unexpected EOF", "foo(", 4, 4))
    assert line.plain == "foo(_"


def test_multi_character_spans_render_verbatim(formatter):
    _, line = formatter.format(ErrorInformation("bad", "a  b", 1, 2))
    assert line.plain == "a  b "
    assert styled(line, ERROR_STYLE) == ["  "]


def test_type_entry_text():
    assert entry_to_text(TypeEntry("collections.OrderedDict")).plain == "collections.OrderedDict"


def test_variable_entry_text():
    text = entry_to_text(VariableEntry("x", "int", "1"))
    assert text.plain == "Name: x Type: int Value: 1"


def test_uninitialized_variable_has_no_value():
    text = entry_to_text(VariableEntry("x", "int"))
    assert text.plain == "Name: x Type: int"


def test_result_text():
    assert result_text("int", "3").plain == "Type: int Value: 3"


def test_unknown_entry_is_rejected():
    with pytest.raises(TypeError):
        entry_to_text("not an entry")


PRINT_CASES = [
    ("str", "hello", "hello"),
    ("bool", True, "True"),
    ("int", 42, "42"),
    ("float", 1.5, "1.5"),
    ("bytes", b"raw", "raw"),
    ("none", None, "None"),
    ("list", [1, 2], "[1, 2]"),
]


@pytest.mark.parametrize("test_id, value, expected", PRINT_CASES, ids=[c[0] for c in PRINT_CASES])
def test_printer_prints_any_value(source, test_id, value, expected):
    Printer(source).print(value)
    assert source.lines == [f"[ACE] {expected}"]


def test_printer_uses_base_type_handler_for_subclasses(source):
    class Name(str):
        pass

    Printer(source).print(Name("alice"))
    assert source.lines == ["[ACE] alice"]
    assert isinstance(source.messages[0], Text)
