# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import pytest
from keycharmap.commontypes import Format
from keycharmap.keymap import KeyCharacterMap
from keycharmap.sources import MemorySource


GENERIC_KEYMAP = r"""
# A small full keyboard.
type FULL

map key 30 A
map key 48 B
map key 2 1
map key 3 2
map key 57 SPACE
map key usage 0x070004 A
map key usage 0x070005 B

key A {
    label:                              'A'
    base:                               'a'
    shift, capslock:                    'A'
    shift+capslock:                     'a'
    ctrl, alt, meta:                    none
}

key B {
    label:                              'B'
    base:                               'b'
    shift, capslock:                    'B'
    shift+capslock:                     'b'
}

key 1 {
    label:                              '1'
    base:                               '1'
    shift:                              '!'
    ralt:                               '¹'
}

key 2 {
    label:                              '2'
    base:                               '2'
    shift:                              '@'
}

key SPACE {
    label:                              ' '
    base:                               space
    alt, meta:                          fallback SEARCH
    ctrl:                               fallback LANGUAGE_SWITCH
}

key ENTER {
    label:                              '\n'
    base:                               '\n'
}

key ESCAPE {
    base:                               fallback BACK
    alt, meta:                          fallback HOME
    ctrl:                               fallback MENU
}

key PERIOD { label: '.'; base: '.'; shift: '>' }

map key 51 COMMA { label: ','; number: '?'; 0 ','; shift '<'; }

key NUMPAD_1 {
    label:                              '1'
    base:                               fallback MOVE_END
    numlock:                            '1'
}

key DPAD_CENTER {
    base:                               replace ENTER
}
"""

QWERTZ_OVERLAY = r"""
# Swap the letters printed on a couple of keys.
key A {
    label:                              'Q'
    base:                               'q'
    shift, capslock:                    'Q'
}

key B {
    label:                              'Z'
    base:                               'z'
    shift:                              'Z'
}

map key 31 B
"""


@pytest.fixture
def keymap():
    return KeyCharacterMap.load_contents("Generic", GENERIC_KEYMAP, Format.BASE)


@pytest.fixture
def overlay():
    return KeyCharacterMap.load_contents("qwertz", QWERTZ_OVERLAY, Format.OVERLAY)


@pytest.fixture
def source():
    return MemorySource({"Generic": GENERIC_KEYMAP, "qwertz": QWERTZ_OVERLAY})
