import pytest

from ace.ace_config import load_config
from ace.ace_host import CommandSource
from ace.ace_session import Session


class RecordingSource(CommandSource):
    """A client that keeps every message it receives."""

    def __init__(self, name="tester", permissions=None):
        super().__init__(name)
        self.permissions = permissions
        self.messages = []

    def has_permission(self, permission):
        return self.permissions is None or permission in self.permissions

    def send_message(self, message):
        self.messages.append(message)

    @property
    def lines(self):
        return [m.plain for m in self.messages]

    def clear(self):
        self.messages.clear()


@pytest.fixture
def make_source():
    return RecordingSource


@pytest.fixture
def source():
    return RecordingSource()


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def session(source, config):
    return Session(source, game=None, config=config)
