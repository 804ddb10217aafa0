# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
"""Meta state bits and the modifier groups they belong to.

A meta state is a plain integer bitmask. Each modifier group owns a generic bit and, for
the keys that come in pairs, a left and a right bit. Key events normally carry the side
bit of the key actually held together with the generic bit; a key map behavior may ask
for either the generic bit (any side will do) or a particular side.
"""
from __future__ import annotations

import enum
import typing

from .keycodes import KeyCode


class MetaState(enum.IntFlag):
    NONE = 0
    SHIFT_ON = 0x01
    ALT_ON = 0x02
    SYM_ON = 0x04
    FUNCTION_ON = 0x08
    ALT_LEFT_ON = 0x10
    ALT_RIGHT_ON = 0x20
    SHIFT_LEFT_ON = 0x40
    SHIFT_RIGHT_ON = 0x80
    CTRL_ON = 0x1000
    CTRL_LEFT_ON = 0x2000
    CTRL_RIGHT_ON = 0x4000
    META_ON = 0x10000
    META_LEFT_ON = 0x20000
    META_RIGHT_ON = 0x40000
    CAPS_LOCK_ON = 0x100000
    NUM_LOCK_ON = 0x200000
    SCROLL_LOCK_ON = 0x400000


class Side(enum.Flag):
    NONE = 0
    GENERIC = enum.auto()
    LEFT = enum.auto()
    RIGHT = enum.auto()


class ModifierGroup(enum.Enum):
    # Declaration order is the order modifier keys get pressed in; they are released in reverse.
    SHIFT = (MetaState.SHIFT_ON, MetaState.SHIFT_LEFT_ON, MetaState.SHIFT_RIGHT_ON, KeyCode.KEYCODE_SHIFT_LEFT, KeyCode.KEYCODE_SHIFT_RIGHT)
    ALT = (MetaState.ALT_ON, MetaState.ALT_LEFT_ON, MetaState.ALT_RIGHT_ON, KeyCode.KEYCODE_ALT_LEFT, KeyCode.KEYCODE_ALT_RIGHT)
    CTRL = (MetaState.CTRL_ON, MetaState.CTRL_LEFT_ON, MetaState.CTRL_RIGHT_ON, KeyCode.KEYCODE_CTRL_LEFT, KeyCode.KEYCODE_CTRL_RIGHT)
    META = (MetaState.META_ON, MetaState.META_LEFT_ON, MetaState.META_RIGHT_ON, KeyCode.KEYCODE_META_LEFT, KeyCode.KEYCODE_META_RIGHT)
    SYM = (MetaState.SYM_ON, 0, 0, KeyCode.KEYCODE_SYM, None)
    FUNCTION = (MetaState.FUNCTION_ON, 0, 0, KeyCode.KEYCODE_FUNCTION, None)
    CAPS_LOCK = (MetaState.CAPS_LOCK_ON, 0, 0, KeyCode.KEYCODE_CAPS_LOCK, None)
    NUM_LOCK = (MetaState.NUM_LOCK_ON, 0, 0, KeyCode.KEYCODE_NUM_LOCK, None)
    SCROLL_LOCK = (MetaState.SCROLL_LOCK_ON, 0, 0, KeyCode.KEYCODE_SCROLL_LOCK, None)

    def __init__(self, generic: int, left: int, right: int, left_key: KeyCode, right_key: typing.Optional[KeyCode]):
        self.generic = int(generic)
        self.left = int(left)
        self.right = int(right)
        self.left_key = left_key
        self.right_key = right_key

    @property
    def bits(self) -> int:
        return self.generic | self.left | self.right

    @property
    def keys(self) -> tuple[KeyCode, ...]:
        if self.right_key is None:
            return (self.left_key,)
        return (self.left_key, self.right_key)

    @property
    def is_lock(self) -> bool:
        return self in LOCK_GROUPS

    @property
    def is_paired(self) -> bool:
        return self.right_key is not None

    def sides(self, meta_state: int) -> Side:
        result = Side.NONE
        if meta_state & self.generic:
            result |= Side.GENERIC
        if meta_state & self.left:
            result |= Side.LEFT
        if meta_state & self.right:
            result |= Side.RIGHT
        return result

    def key_bit(self, key_code: int) -> int:
        "The meta state bit a modifier key of this group sets when held."
        if key_code == self.right_key:
            return self.right
        if key_code == self.left_key:
            return self.left or self.generic
        raise ValueError(f"{key_code!r} is not a key of the {self.name} group")


LOCK_GROUPS = frozenset((ModifierGroup.CAPS_LOCK, ModifierGroup.NUM_LOCK, ModifierGroup.SCROLL_LOCK))
EPHEMERAL_GROUPS = tuple(group for group in ModifierGroup if group not in LOCK_GROUPS)

ALL_MODIFIER_BITS = 0
for _group in ModifierGroup:
    ALL_MODIFIER_BITS |= _group.bits
LOCK_BITS = 0
for _group in LOCK_GROUPS:
    LOCK_BITS |= _group.bits
del _group

MODIFIER_KEYS: dict[int, ModifierGroup] = {key: group for group in ModifierGroup for key in group.keys}

MODIFIER_NAMES = {
    "shift": MetaState.SHIFT_ON,
    "lshift": MetaState.SHIFT_LEFT_ON,
    "rshift": MetaState.SHIFT_RIGHT_ON,
    "alt": MetaState.ALT_ON,
    "lalt": MetaState.ALT_LEFT_ON,
    "ralt": MetaState.ALT_RIGHT_ON,
    "ctrl": MetaState.CTRL_ON,
    "lctrl": MetaState.CTRL_LEFT_ON,
    "rctrl": MetaState.CTRL_RIGHT_ON,
    "meta": MetaState.META_ON,
    "super": MetaState.META_ON,
    "lmeta": MetaState.META_LEFT_ON,
    "rmeta": MetaState.META_RIGHT_ON,
    "sym": MetaState.SYM_ON,
    "fn": MetaState.FUNCTION_ON,
    "capslock": MetaState.CAPS_LOCK_ON,
    "numlock": MetaState.NUM_LOCK_ON,
    "scrolllock": MetaState.SCROLL_LOCK_ON,
}
NO_MODIFIERS = frozenset(("", "0", "base"))


def groups_of(meta_state: int) -> tuple[ModifierGroup, ...]:
    return tuple(group for group in ModifierGroup if meta_state & group.bits)


def clear_groups(meta_state: int, mask: int) -> int:
    "Clear every bit of every group that `mask` touches."
    for group in groups_of(mask):
        meta_state &= ~group.bits
    return meta_state


def parse_modifiers(text: str) -> int:
    """Parse a `+`-joined modifier combination such as "shift+ralt" into a meta state.

    Raises ValueError for unknown or repeated names."""
    if text in NO_MODIFIERS:
        return 0
    combined = 0
    for name in text.split("+"):
        if name not in MODIFIER_NAMES:
            raise ValueError(f"Unknown modifier {name!r}")
        bit = int(MODIFIER_NAMES[name])
        if combined & bit:
            raise ValueError(f"Duplicate modifier {name!r} in combination {text!r}")
        combined |= bit
    return combined


def format_meta_state(meta_state: int) -> str:
    if not meta_state & ALL_MODIFIER_BITS:
        return "base"
    names = []
    for group in ModifierGroup:
        sides = group.sides(meta_state)
        if not sides:
            continue
        generic_name = next(name for name, bit in MODIFIER_NAMES.items() if bit == group.generic)
        if Side.LEFT in sides:
            names.append("l" + generic_name)
        if Side.RIGHT in sides:
            names.append("r" + generic_name)
        if sides == Side.GENERIC:
            names.append(generic_name)
    return "+".join(names)


def update_meta_state(key_code: int, down: bool, meta_state: int) -> int:
    """Return the meta state after a key goes down or up.

    Held modifiers set their side bit plus the group's generic bit, and clear the generic
    bit again once neither side is held. Lock keys toggle when pressed."""
    group = MODIFIER_KEYS.get(key_code)
    if group is None:
        return meta_state
    if group.is_lock:
        return meta_state ^ group.generic if down else meta_state
    bit = group.key_bit(key_code)
    if down:
        return meta_state | bit | group.generic
    meta_state &= ~(bit | group.generic)
    if meta_state & (group.left | group.right):
        meta_state |= group.generic
    return meta_state
