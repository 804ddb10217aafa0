# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
"""Parser for the key character map text format.

    type FULL

    map key 30 A
    map key usage 0x070004 A

    key A {
        label:                          'A'
        base:                           'a'
        shift, capslock:                'A'
        ctrl, alt, meta:                none
    }

    map key 51 COMMA { label: ','; number: '?'; 0 ','; shift '<'; }

A `map key` line followed by `{` opens the block for the key it maps to.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import re
import string
import typing

import msgspec

from .commontypes import Format, KeyboardType, ParseError
from .keycodes import KeyCode, key_label
from .keytypes import Behavior, Key
from .matcher import sort_behaviors
from .metastate import format_meta_state, parse_modifiers
from .tokenizer import Token, Tokenizer, TokenKind

if typing.TYPE_CHECKING:
    from .keymap import KeyCharacterMap

logger = logging.getLogger(__name__)

NAMED_CHARACTERS = {
    "space": " ",
    "tab": "\t",
    "newline": "\n",
}
CODEPOINT_MATCHER = re.compile(r"^U\+([0-9A-Fa-f]{1,6})$")
# A leading zero means octal, as with C strtol.
OCTAL_NUMBER_MATCHER = re.compile(r"^0[0-9]+$")
ESCAPES = {
    "n": "\n",
    "t": "\t",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
}
# Characters other than digits that make sense on a dialing pad.
DIALING_SYMBOLS = "()#*-+,.':;/"


class ParserState(enum.Enum):
    TOP = enum.auto()
    KEY = enum.auto()


class PropertyKind(enum.Enum):
    LABEL = enum.auto()
    NUMBER = enum.auto()
    META = enum.auto()


class Property(msgspec.Struct, frozen=True):
    kind: PropertyKind
    meta_state: int = 0


@dataclasses.dataclass(kw_only=True)
class BehaviorValue:
    has_character: bool = False
    character: typing.Optional[str] = None
    fallback_key_code: typing.Optional[int] = None
    replacement_key_code: typing.Optional[int] = None

    @property
    def is_plain_character(self):
        return self.character is not None and self.fallback_key_code is None and self.replacement_key_code is None


@dataclasses.dataclass(kw_only=True)
class PendingKey:
    key_code: int
    line: int
    label: typing.Optional[str] = None
    number: typing.Optional[str] = None
    behaviors: dict[int, Behavior] = dataclasses.field(default_factory=dict)

    @property
    def is_empty(self):
        return not self.behaviors and self.label is None and self.number is None

    def finish(self) -> Key:
        behaviors = sort_behaviors(self.behaviors.values())
        number = self.number
        if number is None:
            number = default_number(behaviors)
        return Key(label=self.label, number=number, behaviors=behaviors)


def default_number(behaviors: tuple[Behavior, ...]) -> typing.Optional[str]:
    "Pick a dialing pad character from the behaviors, least specific first: a digit, else a dialing symbol."
    characters = [behavior.character for behavior in reversed(behaviors) if behavior.character is not None]
    for ch in characters:
        if ch in string.digits:
            return ch
    for ch in characters:
        if ch in DIALING_SYMBOLS:
            return ch
    return None


def decode_character_literal(text: str) -> str:
    "Decode a quoted literal such as 'a', '\\n' or '\\u00e9'. Raises ValueError if malformed."
    body = text[1:-1]
    if body.startswith("\\"):
        escaped = body[1:]
        if escaped in ESCAPES:
            return ESCAPES[escaped]
        if len(escaped) == 5 and escaped[0] == "u" and all(c in string.hexdigits for c in escaped[1:]):
            return chr(int(escaped[1:], base=16))
        raise ValueError(f"Malformed escape sequence in character literal {text}")
    if len(body) != 1:
        raise ValueError(f"Character literal must contain exactly one character: {text}")
    return body


class Parser:
    def __init__(self, keymap: KeyCharacterMap, tokenizer: Tokenizer, format: Format):
        self.keymap = keymap
        self.tokenizer = tokenizer
        self.format = format
        self.state = ParserState.TOP
        self.pending: typing.Optional[PendingKey] = None
        self.type_declared = False
        self.seen_key_block = False

    def error(self, message: str) -> ParseError:
        return self.tokenizer.error(message)

    def parse(self):
        tokenizer = self.tokenizer
        while not tokenizer.is_eof():
            if tokenizer.is_eol():
                tokenizer.next_line()
                continue
            match self.state:
                case ParserState.TOP:
                    self.parse_top_level()
                case ParserState.KEY:
                    self.parse_key_statement()
        if self.state is ParserState.KEY:
            raise ParseError(
                self.pending.line,
                f"Unterminated key block for {key_label(self.pending.key_code)}",
                tokenizer.name,
            )
        self.finish_keyboard_type()
        return self.keymap

    def expect_end_of_line(self):
        if not self.tokenizer.is_eol():
            raise self.error(f"Expected end of line, got {self.tokenizer.remainder_of_line()!r}")
        self.tokenizer.next_line()

    def expect_word(self, what: str) -> Token:
        token = self.tokenizer.expect_token(what)
        if token.kind is not TokenKind.WORD:
            raise self.error(f"Expected {what}, got {token.text!r}")
        return token

    def parse_key_code(self, token: Token) -> int:
        try:
            return int(KeyCode.from_label(token.text))
        except KeyError:
            raise self.error(f"Unknown key code name {token.text!r}") from None

    def parse_number(self, token: Token) -> int:
        if OCTAL_NUMBER_MATCHER.match(token.text):
            try:
                return int(token.text, 8)
            except ValueError:
                raise self.error(f"Expected an octal integer after a leading zero, got {token.text!r}") from None
        try:
            value = int(token.text, 0)
        except ValueError:
            raise self.error(f"Expected an integer, got {token.text!r}") from None
        if value < 0:
            raise self.error(f"Expected a non-negative integer, got {token.text!r}")
        return value

    ### top level

    def parse_top_level(self):
        token = self.expect_word("a directive")
        match token.text:
            case "type":
                self.parse_type()
            case "map":
                self.parse_map()
            case "key":
                self.parse_key_header()
            case _:
                raise self.error(f"Unrecognized directive {token.text!r}")

    def parse_type(self):
        if self.format is Format.OVERLAY:
            raise self.error("Directive 'type' is not allowed in an overlay key map")
        if self.type_declared:
            raise self.error("Duplicate keyboard type declaration")
        if self.seen_key_block:
            raise self.error("Keyboard type must be declared before any key block")
        token = self.expect_word("a keyboard type")
        try:
            keyboard_type = KeyboardType[token.text]
        except KeyError:
            raise self.error(f"Unknown keyboard type {token.text!r}") from None
        if keyboard_type is KeyboardType.UNKNOWN:
            raise self.error("Keyboard type UNKNOWN cannot be declared")
        if keyboard_type is KeyboardType.OVERLAY and self.format is Format.BASE:
            raise self.error("A base key map must declare a keyboard type other than OVERLAY")
        self.keymap.keyboard_type = keyboard_type
        self.type_declared = True
        logger.debug("%s: keyboard type %s", self.tokenizer.name, keyboard_type.name)
        self.expect_end_of_line()

    def parse_map(self):
        token = self.expect_word("'key'")
        if token.text != "key":
            raise self.error(f"Expected 'key' after 'map', got {token.text!r}")
        token = self.tokenizer.expect_token("a scan code or 'usage'")
        if token.text == "usage":
            table = self.keymap.keys_by_usage_code
            kind = "usage"
            token = self.tokenizer.expect_token("a usage code")
        else:
            table = self.keymap.keys_by_scan_code
            kind = "scan"
        code = self.parse_number(token)
        key_code = self.parse_key_code(self.expect_word("a key code name"))
        if code in table:
            raise self.error(f"Duplicate entry for {kind} code {code:#x}")
        table[code] = key_code
        following = self.tokenizer.peek_token()
        if following is not None and following.is_punct("{"):
            self.tokenizer.next_token()
            self.open_key(key_code)
        else:
            self.expect_end_of_line()

    def parse_key_header(self):
        key_code = self.parse_key_code(self.expect_word("a key code name"))
        token = self.tokenizer.expect_token("'{'")
        if not token.is_punct("{"):
            raise self.error(f"Expected '{{' after key name, got {token.text!r}")
        self.open_key(key_code)

    def open_key(self, key_code: int):
        if key_code in self.keymap.keys:
            raise self.error(f"Duplicate entry for key code {key_label(key_code)}")
        self.pending = PendingKey(key_code=key_code, line=self.tokenizer.line_number)
        self.state = ParserState.KEY
        self.seen_key_block = True

    ### inside a key block

    def parse_key_statement(self):
        tokenizer = self.tokenizer
        token = tokenizer.next_token()
        if token.is_punct("}"):
            self.close_key()
            self.expect_end_of_line()
            return
        if token.is_punct(";"):
            return
        properties = []
        if token.is_punct(":"):
            properties.append(Property(PropertyKind.META, 0))
        else:
            properties.append(self.parse_property(token))
            while (following := tokenizer.peek_token()) is not None and following.is_punct(","):
                tokenizer.next_token()
                properties.append(self.parse_property(tokenizer.expect_token("a key property")))
            following = tokenizer.peek_token()
            if following is not None and following.is_punct(":"):
                tokenizer.next_token()
        value = self.parse_value()
        for prop in properties:
            self.apply_property(prop, value)

    def parse_property(self, token: Token) -> Property:
        if token.kind is not TokenKind.WORD:
            raise self.error(f"Expected a key property, got {token.text!r}")
        match token.text:
            case "label":
                return Property(PropertyKind.LABEL)
            case "number":
                return Property(PropertyKind.NUMBER)
        try:
            return Property(PropertyKind.META, parse_modifiers(token.text))
        except ValueError as e:
            raise self.error(str(e)) from e

    def parse_value(self) -> BehaviorValue:
        tokenizer = self.tokenizer
        value = BehaviorValue()
        while (token := tokenizer.peek_token()) is not None and not (token.is_punct(";") or token.is_punct("}")):
            tokenizer.next_token()
            if token.kind is TokenKind.LITERAL:
                try:
                    self.set_character(value, decode_character_literal(token.text))
                except ValueError as e:
                    raise self.error(str(e)) from e
                continue
            if token.kind is not TokenKind.WORD:
                raise self.error(f"Unexpected {token.text!r} in key behavior")
            match token.text:
                case "none":
                    self.set_character(value, None)
                case "fallback" | "replace":
                    if value.fallback_key_code is not None or value.replacement_key_code is not None:
                        raise self.error("Cannot combine multiple fallback or replacement key codes")
                    key_code = self.parse_key_code(self.expect_word("a key code name"))
                    if token.text == "fallback":
                        value.fallback_key_code = key_code
                    else:
                        value.replacement_key_code = key_code
                case name if name in NAMED_CHARACTERS:
                    self.set_character(value, NAMED_CHARACTERS[name])
                case name if codepoint_match := CODEPOINT_MATCHER.match(name):
                    codepoint = int(codepoint_match.group(1), base=16)
                    if codepoint > 0x10FFFF:
                        raise self.error(f"Code point out of range: {name}")
                    self.set_character(value, chr(codepoint))
                case _:
                    raise self.error(f"Malformed key behavior value {token.text!r}")
        if not value.has_character and value.fallback_key_code is None and value.replacement_key_code is None:
            raise self.error("Expected a character literal, 'none', 'fallback' or 'replace'")
        return value

    def set_character(self, value: BehaviorValue, character: typing.Optional[str]):
        if value.has_character:
            raise self.error("Cannot combine multiple character literals or 'none'")
        value.has_character = True
        value.character = character

    def apply_property(self, prop: Property, value: BehaviorValue):
        pending = self.pending
        match prop.kind:
            case PropertyKind.LABEL:
                if pending.label is not None:
                    raise self.error("Duplicate label for key")
                if not value.is_plain_character:
                    raise self.error("A key label must be a single character")
                pending.label = value.character
            case PropertyKind.NUMBER:
                if pending.number is not None:
                    raise self.error("Duplicate number for key")
                if not value.is_plain_character:
                    raise self.error("A key number must be a single character")
                pending.number = value.character
            case PropertyKind.META:
                if prop.meta_state in pending.behaviors:
                    raise self.error(f"Duplicate key behavior for modifier {format_meta_state(prop.meta_state)}")
                pending.behaviors[prop.meta_state] = Behavior(
                    meta_state=prop.meta_state,
                    character=value.character,
                    fallback_key_code=value.fallback_key_code,
                    replacement_key_code=value.replacement_key_code,
                )

    def close_key(self):
        pending = self.pending
        if pending.is_empty:
            raise self.error(f"Empty key {key_label(pending.key_code)}: no label, number or behaviors")
        self.keymap.keys[pending.key_code] = pending.finish()
        logger.debug("%s: finished key %s", self.tokenizer.name, key_label(pending.key_code))
        self.pending = None
        self.state = ParserState.TOP

    def finish_keyboard_type(self):
        if self.format is Format.OVERLAY:
            self.keymap.keyboard_type = KeyboardType.OVERLAY
        elif not self.type_declared and self.format is Format.BASE:
            logger.warning("%s: no keyboard type declared, assuming UNKNOWN", self.tokenizer.name)


def parse(keymap: KeyCharacterMap, tokenizer: Tokenizer, format: Format) -> KeyCharacterMap:
    return Parser(keymap, tokenizer, format).parse()
