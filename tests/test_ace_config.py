from textwrap import dedent

import pytest

from ace.ace_config import AceConfig, default_config, load_config
from ace.ace_session import Session


def test_defaults():
    config = load_config()
    assert config.entries_per_page == 5
    assert config.continuation == "#"
    assert config.log_level == "INFO"
    assert config.aliases("eval") == ["acee"]
    assert config.aliases("context") == ["acec"]
    assert config.permission("eval") == "ace.eval"
    assert config.message("success") == "Success"


def test_default_config_is_loaded_once():
    assert default_config() is default_config()


def test_messages_are_mustache_templates_without_escaping():
    config = load_config()
    assert config.message("no_entries", page=4) == "No entries for page 4"
    assert config.message("unknown_command", command="<b>") == "Unknown command: <b>"


def test_user_file_overrides_only_given_keys(tmp_path):
    path = tmp_path / "ace.yaml"
    path.write_text(dedent("""
        entries_per_page: 2
        log_level: debug
        commands:
          eval:
            aliases: [py, eval]
        messages:
          success: "Done"
    """))
    config = load_config(path)
    assert config.entries_per_page == 2
    assert config.log_level == "DEBUG"
    assert config.aliases("eval") == ["py", "eval"]
    assert config.permission("eval") == "ace.eval"
    assert config.message("success") == "Done"
    assert config.message("buffered") == "Buffered code"


def test_empty_user_file_keeps_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == load_config()


@pytest.mark.parametrize("content", [
    "entries_per_page: 0",
    "entries_per_page: many",
    "continuation: ''",
    "- not a mapping",
])
def test_invalid_files_are_rejected(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content)
    with pytest.raises(ValueError):
        load_config(path)


def test_unknown_command_falls_back_to_its_name():
    assert AceConfig().aliases("other") == ["other"]
    assert AceConfig().permission("other") is None


def test_sessions_follow_the_config(tmp_path, source):
    path = tmp_path / "ace.yaml"
    path.write_text(dedent("""
        entries_per_page: 2
        continuation: "\\\\"
        messages:
          buffered: "More..."
    """))
    session = Session(source, config=load_config(path))
    session.eval("x = 1 \\")
    session.eval("+ 1;")
    session.print_variables(2)
    assert source.lines[:2] == ["[ACE] More...", "[ACE] Success"]
    assert len(source.lines) == 4
    assert source.lines[2] == "[ACE] Name: printer Type: ace.ace_printer.Printer Value: Printer('tester')"
    assert source.lines[3] == "[ACE] Name: x Type: int Value: 2"
