"""
Defines the core data types shared by the ACE evaluation session manager.

This module holds the token representation handed between the lexer and the
parser, the error taxonomy raised during evaluation, and the display entries
used to render the contents of an environment.
"""

import collections.abc
from dataclasses import dataclass
from typing import Any, List, Optional, Union


# =================================================================
# Errors
# =================================================================

class SourceError(Exception):
    """An evaluation failure attributed to a span of the decoded source.

    `start` and `end` are offsets into the decoded source text; `end` is
    inclusive.
    """
    def __init__(self, message: str, start: int, end: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.start = start
        self.end = start if end is None else max(start, end)

    def __repr__(self):
        return f"SourceError({self.message!r}, {self.start}, {self.end})"


class UserInputError(Exception):
    """Invalid request from the client; rendered as a plain reply."""
    pass


class NoActiveContextError(UserInputError):
    pass


class InvalidPageError(UserInputError):
    def __init__(self, page: int):
        super().__init__(page)
        self.page = page


class NoEntriesError(UserInputError):
    def __init__(self, page: int):
        super().__init__(page)
        self.page = page


@dataclass
class ErrorInformation:
    """A SourceError resolved against the raw line it occurred on."""
    message: str
    line: str
    start: int
    end: int


# =================================================================
# Tokens
# =================================================================

@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int

    def is_symbol(self, symbol: str) -> bool:
        return self.kind == "OP" and self.text == symbol


class TokenStream(collections.abc.Sequence):
    """The tokens of one source text, keeping the text they were read from."""
    __slots__ = ("source", "_tokens")

    def __init__(self, source: str, tokens: List[Token]):
        self.source = source
        self._tokens = list(tokens)

    def __len__(self):
        return len(self._tokens)

    def __getitem__(self, idx):
        return self._tokens[idx]

    def __iter__(self):
        return iter(self._tokens)

    def __repr__(self):
        return f"TokenStream({[t.text for t in self._tokens]!r})"


# =================================================================
# Environment entries
# =================================================================

@dataclass
class Variable:
    """A named binding of an environment.

    A variable can be declared without a value; `initialized` tells the two
    apart since `None` is a legitimate value.
    """
    name: str
    type: Any
    value: Any = None
    initialized: bool = True


@dataclass(frozen=True)
class TypeEntry:
    name: str


@dataclass(frozen=True)
class VariableEntry:
    name: str
    type_name: str
    value: Optional[str] = None


DisplayEntry = Union[TypeEntry, VariableEntry]
