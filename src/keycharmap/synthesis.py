# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
"""Work out the key presses that would type a piece of text.

Modifiers are pressed and released like a person would: only when a character needs
them, and kept down while the following character needs them too. Lock modifiers are
never toggled; a character that needs a different lock state cannot be typed."""
from __future__ import annotations

import collections.abc
import itertools
import logging
import typing

from .commontypes import Unmappable
from .events import KeyEvent
from .keycodes import key_label
from .matcher import group_compatible
from .metastate import EPHEMERAL_GROUPS, LOCK_BITS, MODIFIER_KEYS, ModifierGroup, Side, format_meta_state, update_meta_state

if typing.TYPE_CHECKING:
    from .keymap import KeyCharacterMap

logger = logging.getLogger(__name__)

SIDED = Side.LEFT | Side.RIGHT
GROUP_ORDER = {group: index for index, group in enumerate(ModifierGroup)}


def modifier_order(key_code: int):
    group = MODIFIER_KEYS[key_code]
    return (GROUP_ORDER[group], group.keys.index(key_code))


def held_state(held: collections.abc.Iterable[int], locks: int = 0) -> int:
    meta_state = locks
    for key_code in held:
        meta_state = update_meta_state(key_code, True, meta_state)
    return meta_state


def keys_for_state(meta_state: int) -> list[int]:
    "The modifier keys that account for the held (not locked) modifiers in `meta_state`."
    keys = []
    for group in EPHEMERAL_GROUPS:
        sides = group.sides(meta_state)
        if not sides:
            continue
        if group.is_paired and sides & SIDED:
            if Side.LEFT in sides:
                keys.append(group.left_key)
            if Side.RIGHT in sides:
                keys.append(group.right_key)
        else:
            keys.append(group.left_key)
    return keys


def group_options(group: ModifierGroup, mask: int, held: collections.abc.Container[int]) -> list[tuple[int, ...]]:
    wanted = group.sides(mask)
    if not wanted:
        return [()]
    options = []
    held_keys = tuple(key for key in group.keys if key in held)
    if held_keys and group_compatible(group, mask, held_state(held_keys)):
        options.append(held_keys)
    if group.is_paired and wanted & SIDED:
        options.append(tuple(key for key, side in ((group.left_key, Side.LEFT), (group.right_key, Side.RIGHT)) if side in wanted))
    else:
        # left first
        options.extend((key,) for key in group.keys)
    return list(dict.fromkeys(options))


def plan_modifiers(
    keymap: KeyCharacterMap, key_code: int, mask: int, character: str, held: collections.abc.Container[int], locks: int
) -> typing.Optional[tuple[int, ...]]:
    "Choose the modifier keys to hold while typing `key_code`, favoring the ones already down."
    per_group = [group_options(group, mask, held) for group in EPHEMERAL_GROUPS]
    for choice in itertools.product(*per_group):
        target = tuple(itertools.chain.from_iterable(choice))
        if keymap.character(key_code, held_state(target, locks)) == character:
            return target
    return None


class EventSynthesizer:
    def __init__(self, keymap: KeyCharacterMap, device_id: int, meta_state: int = 0):
        self.keymap = keymap
        self.device_id = device_id
        self.locks = meta_state & LOCK_BITS
        self.held: list[int] = keys_for_state(meta_state)
        # Modifiers pressed by us, as opposed to ones already held when we started.
        self.ephemeral: set[int] = set()
        self.events: list[KeyEvent] = []

    @property
    def meta_state(self) -> int:
        return held_state(self.held, self.locks)

    def plan(self, character: str) -> tuple[int, tuple[int, ...]]:
        candidates = self.keymap.reverse_matches({character}, self.meta_state, locks=self.locks, include_labels=False)
        for key_code, mask in candidates:
            target = plan_modifiers(self.keymap, key_code, mask, character, self.held, self.locks)
            if target is not None:
                return key_code, target
            logger.debug("%r: %s on %s is shadowed", character, format_meta_state(mask), key_label(key_code))
        raise Unmappable(character)

    def press(self, key_code: int):
        self.held.append(key_code)
        self.events.append(KeyEvent.pressed(self.device_id, key_code, self.meta_state))

    def release(self, key_code: int):
        self.held.remove(key_code)
        self.ephemeral.discard(key_code)
        self.events.append(KeyEvent.released(self.device_id, key_code, self.meta_state))

    def release_unless(self, keep: collections.abc.Container[int], only_ephemeral: bool):
        for key_code in sorted(self.held, key=modifier_order, reverse=True):
            if key_code in keep:
                continue
            if only_ephemeral and key_code not in self.ephemeral:
                continue
            self.release(key_code)

    def hold(self, target: tuple[int, ...]):
        self.release_unless(target, only_ephemeral=False)
        for key_code in target:
            if key_code not in self.held:
                self.press(key_code)
                self.ephemeral.add(key_code)

    def tap(self, key_code: int):
        meta_state = self.meta_state
        self.events.append(KeyEvent.pressed(self.device_id, key_code, meta_state))
        self.events.append(KeyEvent.released(self.device_id, key_code, meta_state))

    def type_text(self, text: str) -> list[KeyEvent]:
        for index, character in enumerate(text):
            key_code, target = self.plan(character)
            logger.debug("%r: %s with %s", character, key_label(key_code), [key_label(key) for key in target])
            self.hold(target)
            self.tap(key_code)
            if index + 1 < len(text):
                _, upcoming = self.plan(text[index + 1])
            else:
                upcoming = ()
            self.release_unless(upcoming, only_ephemeral=True)
        return self.events


def synthesize(keymap: KeyCharacterMap, device_id: int, text: str, meta_state: int = 0) -> list[KeyEvent]:
    """Key events that would type `text`, starting from `meta_state`.

    Raises Unmappable, and produces nothing, if any character can't be typed."""
    return EventSynthesizer(keymap, device_id, meta_state).type_text(text)
