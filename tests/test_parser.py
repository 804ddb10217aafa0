# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import logging

import pytest
from keycharmap.commontypes import Format, KeyboardType, ParseError
from keycharmap.keycodes import KeyCode
from keycharmap.keymap import KeyCharacterMap
from keycharmap.keytypes import Behavior, Key
from keycharmap.matcher import specificity
from keycharmap.metastate import MetaState
from keycharmap.parser import decode_character_literal, default_number


def load(text, format=Format.BASE):
    return KeyCharacterMap.load_contents("test", text, format)


def test_parse_generic(keymap):
    assert keymap.keyboard_type is KeyboardType.FULL
    assert keymap.keys_by_scan_code[30] == KeyCode.KEYCODE_A
    assert keymap.keys_by_usage_code[0x070004] == KeyCode.KEYCODE_A
    assert keymap.get_key(KeyCode.KEYCODE_A) == Key(
        label="A",
        number=None,
        behaviors=(
            Behavior(meta_state=MetaState.SHIFT_ON | MetaState.CAPS_LOCK_ON, character="a"),
            Behavior(meta_state=MetaState.SHIFT_ON, character="A"),
            Behavior(meta_state=MetaState.CAPS_LOCK_ON, character="A"),
            Behavior(meta_state=MetaState.CTRL_ON, character=None),
            Behavior(meta_state=MetaState.ALT_ON, character=None),
            Behavior(meta_state=MetaState.META_ON, character=None),
            Behavior(meta_state=0, character="a"),
        ),
    )


def test_behaviors_sorted_by_specificity(keymap):
    for key in keymap.keys.values():
        specificities = [specificity(behavior.meta_state) for behavior in key.behaviors]
        assert specificities == sorted(specificities, reverse=True)


def test_inline_map_key_block():
    keymap = load("type FULL\nmap key 99 COMMA { label: ','; number: '?'; 0 ','; shift '<'; }\n")
    assert keymap.keys_by_scan_code == {99: KeyCode.KEYCODE_COMMA}
    key = keymap.get_key(KeyCode.KEYCODE_COMMA)
    assert key.label == ","
    assert key.number == "?"
    assert key.behaviors == (
        Behavior(meta_state=MetaState.SHIFT_ON, character="<"),
        Behavior(meta_state=0, character=","),
    )



def test_device_code_bases():
    keymap = load("type FULL\nmap key 036 A\nmap key 0x30 B\nmap key 0 SPACE\nmap key usage 0x070004 A\n")
    assert keymap.keys_by_scan_code == {30: KeyCode.KEYCODE_A, 48: KeyCode.KEYCODE_B, 0: KeyCode.KEYCODE_SPACE}
    assert keymap.keys_by_usage_code == {0x070004: KeyCode.KEYCODE_A}

def test_values():
    keymap = load(
        r"""
type FULL
key A {
    base:                               U+00E9
    shift:                              '\u00c9'
    alt:                                tab
    ralt:                               newline
    ctrl:                               'a' fallback B
    meta:                               replace C
    sym:                                none
    fn:                                 '\''
}
"""
    )
    behaviors = {behavior.meta_state: behavior for behavior in keymap.get_key(KeyCode.KEYCODE_A).behaviors}
    assert behaviors[0].character == "é"
    assert behaviors[MetaState.SHIFT_ON].character == "É"
    assert behaviors[MetaState.ALT_ON].character == "\t"
    assert behaviors[MetaState.ALT_RIGHT_ON].character == "\n"
    assert behaviors[MetaState.CTRL_ON] == Behavior(
        meta_state=MetaState.CTRL_ON, character="a", fallback_key_code=KeyCode.KEYCODE_B
    )
    assert behaviors[MetaState.META_ON] == Behavior(
        meta_state=MetaState.META_ON, replacement_key_code=KeyCode.KEYCODE_C
    )
    assert behaviors[MetaState.SYM_ON] == Behavior(meta_state=MetaState.SYM_ON)
    assert behaviors[MetaState.FUNCTION_ON].character == "'"


def test_empty_property_list_means_base():
    keymap = load("type FULL\nkey A {\n    : 'a'\n}\n")
    assert keymap.character(KeyCode.KEYCODE_A, 0) == "a"


def test_default_number(keymap):
    assert keymap.number(KeyCode.KEYCODE_1) == "1"
    assert keymap.number(KeyCode.KEYCODE_PERIOD) == "."
    assert keymap.number(KeyCode.KEYCODE_COMMA) == "?"
    assert keymap.number(KeyCode.KEYCODE_A) is None


def test_default_number_prefers_digits():
    behaviors = (
        Behavior(meta_state=MetaState.SHIFT_ON, character="2"),
        Behavior(meta_state=0, character="#"),
    )
    assert default_number(behaviors) == "2"


@pytest.mark.parametrize(
    "literal, expected",
    [
        ("'a'", "a"),
        (r"'\n'", "\n"),
        (r"'\t'", "\t"),
        (r"'\0'", "\0"),
        (r"'\\'", "\\"),
        (r"'\''", "'"),
        (r"'\"'", '"'),
        (r"'\u20ac'", "€"),
    ],
)
def test_decode_character_literal(literal, expected):
    assert decode_character_literal(literal) == expected


@pytest.mark.parametrize("literal", ["''", "'ab'", r"'\q'", r"'\u12'"])
def test_decode_bad_character_literal(literal):
    with pytest.raises(ValueError):
        decode_character_literal(literal)


def test_overlay_format():
    keymap = load("key A {\n    base: 'q'\n}\n", Format.OVERLAY)
    assert keymap.keyboard_type is KeyboardType.OVERLAY
    assert keymap.character(KeyCode.KEYCODE_A, 0) == "q"


def test_any_format_accepts_overlay_type():
    keymap = load("type OVERLAY\nkey A {\n    base: 'q'\n}\n", Format.ANY)
    assert keymap.keyboard_type is KeyboardType.OVERLAY


def test_missing_type_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="keycharmap.parser"):
        keymap = load("key A {\n    base: 'a'\n}\n")
    assert keymap.keyboard_type is KeyboardType.UNKNOWN
    assert "no keyboard type declared" in caplog.text


@pytest.mark.parametrize(
    "text, format, line, message",
    [
        ("type FULL\ntype FULL\n", Format.BASE, 2, "Duplicate keyboard type"),
        ("key A { base: 'a' }\ntype FULL\n", Format.BASE, 2, "before any key block"),
        ("type NUMERIC\n", Format.OVERLAY, 1, "not allowed in an overlay"),
        ("type OVERLAY\n", Format.BASE, 1, "other than OVERLAY"),
        ("type UNKNOWN\n", Format.BASE, 1, "cannot be declared"),
        ("type BOGUS\n", Format.BASE, 1, "Unknown keyboard type"),
        ("type FULL extra\n", Format.BASE, 1, "Expected end of line"),
        ("frobnicate\n", Format.BASE, 1, "Unrecognized directive"),
        ("map keys 30 A\n", Format.BASE, 1, "Expected 'key' after 'map'"),
        ("map key thirty A\n", Format.BASE, 1, "Expected an integer"),
        ("map key 039 A\n", Format.BASE, 1, "Expected an octal integer after a leading zero, got '039'"),
        ("map key -1 A\n", Format.BASE, 1, "non-negative"),
        ("map key 30 A\nmap key 30 B\n", Format.BASE, 2, "Duplicate entry for scan code"),
        ("map key usage 4 A\nmap key usage 4 B\n", Format.BASE, 2, "Duplicate entry for usage code"),
        ("key A { base: 'a' }\nkey A { base: 'b' }\n", Format.BASE, 2, "Duplicate entry for key code A"),
        ("key NOPE {\n}\n", Format.BASE, 1, "Unknown key code name 'NOPE'"),
        ("key KEYCODE_A {\n}\n", Format.BASE, 1, "Unknown key code name"),
        ("key A\n", Format.BASE, 1, "Expected '{', found end of line"),
        ("key A {\n    hyper: 'a'\n}\n", Format.BASE, 2, "Unknown modifier 'hyper'"),
        ("key A {\n    shift+shift: 'a'\n}\n", Format.BASE, 2, "Duplicate modifier"),
        ("key A {\n    base: 'a'\n    0: 'b'\n}\n", Format.BASE, 3, "Duplicate key behavior for modifier base"),
        ("key A {\n    label: 'a'\n    label: 'b'\n}\n", Format.BASE, 3, "Duplicate label"),
        ("key A {\n    number: '1'\n    number: '2'\n}\n", Format.BASE, 3, "Duplicate number"),
        ("key A {\n    label: none\n}\n", Format.BASE, 2, "label must be a single character"),
        ("key A {\n    number: fallback B\n}\n", Format.BASE, 2, "number must be a single character"),
        ("key A {\n}\n", Format.BASE, 2, "Empty key A"),
        ("\n\nkey A {\n    base: 'a'\n", Format.BASE, 3, "Unterminated key block for A"),
        ("key A {\n    base: 'a' 'b'\n}\n", Format.BASE, 2, "Cannot combine multiple character"),
        ("key A {\n    base: none 'b'\n}\n", Format.BASE, 2, "Cannot combine multiple character"),
        ("key A {\n    base: fallback B replace C\n}\n", Format.BASE, 2, "Cannot combine multiple fallback"),
        ("key A {\n    base: fallback B fallback C\n}\n", Format.BASE, 2, "Cannot combine multiple fallback"),
        ("key A {\n    base: fallback NOPE\n}\n", Format.BASE, 2, "Unknown key code name"),
        ("key A {\n    base: 'ab'\n}\n", Format.BASE, 2, "exactly one character"),
        ("key A {\n    base: '\\q'\n}\n", Format.BASE, 2, "Malformed escape"),
        ("key A {\n    base: bogus\n}\n", Format.BASE, 2, "Malformed key behavior value 'bogus'"),
        ("key A {\n    base: U+110000\n}\n", Format.BASE, 2, "Code point out of range"),
        ("key A {\n    base:\n}\n", Format.BASE, 2, "Expected a character literal"),
        ("key A {\n    'a'\n}\n", Format.BASE, 2, "Expected a key property"),
        ("key A {\n    base: 'a' }  }\n", Format.BASE, 2, "Expected end of line"),
    ],
)
def test_parse_errors(text, format, line, message):
    with pytest.raises(ParseError) as excinfo:
        load(text, format)
    assert excinfo.value.line == line
    assert excinfo.value.source_name == "test"
    assert message in excinfo.value.message
