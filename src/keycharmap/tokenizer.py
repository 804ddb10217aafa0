# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import enum
import re
import typing

import msgspec

from .commontypes import ParseError

TOKEN_MATCHER = re.compile(
    r"""
    \s*(?:
        (?P<comment>\#.*)
      | (?P<literal>'(?:\\.|[^'\\])*')
      | (?P<punct>[{}:;,])
      | (?P<word>[^\s{}:;,'\#]+)
      | (?P<bad>\S.*)
    )
    """,
    re.VERBOSE,
)


class TokenKind(enum.Enum):
    WORD = enum.auto()
    LITERAL = enum.auto()
    PUNCT = enum.auto()


class Token(msgspec.Struct, frozen=True):
    kind: TokenKind
    text: str
    line: int

    def is_punct(self, text: str):
        return self.kind is TokenKind.PUNCT and self.text == text


def tokenize_line(line: str, line_number: int, source_name: typing.Optional[str] = None) -> list[Token]:
    tokens = []
    pos = 0
    line = line.rstrip()
    while pos < len(line):
        found = TOKEN_MATCHER.match(line, pos)
        if found is None:
            # only trailing whitespace left
            break
        pos = found.end()
        match found.lastgroup:
            case "comment":
                break
            case "literal":
                tokens.append(Token(TokenKind.LITERAL, found.group("literal"), line_number))
            case "punct":
                tokens.append(Token(TokenKind.PUNCT, found.group("punct"), line_number))
            case "word":
                tokens.append(Token(TokenKind.WORD, found.group("word"), line_number))
            case "bad":
                raise ParseError(line_number, f"Unterminated character literal: {found.group('bad')!r}", source_name)
    return tokens


class Tokenizer:
    """Walks the tokens of a key map, one line at a time.

    Within a line, `peek_token` and `next_token` return None at the end of the line;
    `next_line` moves on to the next line that has any tokens."""

    def __init__(self, name: str, contents: str):
        self.name = name
        self._lines = []
        for index, line in enumerate(contents.splitlines(), start=1):
            tokens = tokenize_line(line, index, name)
            if tokens:
                self._lines.append((index, tokens))
        self._line_index = 0
        self._token_index = 0
        self._last_line_number = self._lines[-1][0] if self._lines else 1

    @property
    def line_number(self) -> int:
        if self.is_eof():
            return self._last_line_number
        return self._lines[self._line_index][0]

    def is_eof(self) -> bool:
        return self._line_index >= len(self._lines)

    def is_eol(self) -> bool:
        return self.is_eof() or self._token_index >= len(self._lines[self._line_index][1])

    def peek_token(self) -> typing.Optional[Token]:
        if self.is_eol():
            return None
        return self._lines[self._line_index][1][self._token_index]

    def next_token(self) -> typing.Optional[Token]:
        token = self.peek_token()
        if token is not None:
            self._token_index += 1
        return token

    def expect_token(self, what: str) -> Token:
        token = self.next_token()
        if token is None:
            raise self.error(f"Expected {what}, found end of line")
        return token

    def next_line(self):
        if not self.is_eof():
            self._line_index += 1
            self._token_index = 0

    def remainder_of_line(self) -> str:
        if self.is_eol():
            return ""
        return " ".join(token.text for token in self._lines[self._line_index][1][self._token_index :])

    def error(self, message: str) -> ParseError:
        return ParseError(self.line_number, message, self.name)
