# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import typing

import msgspec

from . import synthesis
from .commontypes import Format, KeyboardType, OverlaySourceUnavailable
from .keycodes import MAX_KEYS
from .keytypes import DeviceCodeValue, FallbackAction, Key, KeyCodeValue
from .matcher import compatible, find_behavior, group_compatible
from .metastate import LOCK_GROUPS, clear_groups
from .parser import parse
from .tokenizer import Tokenizer

if typing.TYPE_CHECKING:
    from .events import KeyEvent
    from .sources import Source

logger = logging.getLogger(__name__)


class KeyCharacterMap(msgspec.Struct, kw_only=True):
    """Maps key codes plus meta state to characters, and characters back to keys.

    Once loaded, the only mutations are `combine`, `clear_layout_overlay` and
    `add_key_remapping`; anything sharing a map between readers has to keep those
    apart from lookups."""

    load_file_name: str
    keyboard_type: KeyboardType = KeyboardType.UNKNOWN
    keys: dict[KeyCodeValue, Key] = msgspec.field(default_factory=dict)
    keys_by_scan_code: dict[DeviceCodeValue, KeyCodeValue] = msgspec.field(default_factory=dict)
    keys_by_usage_code: dict[DeviceCodeValue, KeyCodeValue] = msgspec.field(default_factory=dict)
    key_remapping: dict[KeyCodeValue, KeyCodeValue] = msgspec.field(default_factory=dict)
    layout_overlay_applied: bool = False

    ### loading

    @classmethod
    def load_contents(cls, name: str, contents: str, format: Format) -> KeyCharacterMap:
        keymap = cls(load_file_name=name)
        parse(keymap, Tokenizer(name, contents), format)
        logger.debug("Loaded %d keys from %s", len(keymap.keys), name)
        return keymap

    @classmethod
    def load(cls, source: Source, name: str, format: Format) -> KeyCharacterMap:
        return cls.load_contents(name, source.read(name), format)

    def to_bytes(self) -> bytes:
        return msgspec.msgpack.encode(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> KeyCharacterMap:
        return msgspec.msgpack.decode(data, type=cls)

    ### lookups

    def get_key(self, key_code: int) -> typing.Optional[Key]:
        return self.keys.get(key_code)

    def character(self, key_code: int, meta_state: int) -> typing.Optional[str]:
        key = self.get_key(key_code)
        if key is None:
            return None
        behavior = find_behavior(key.behaviors, meta_state)
        if behavior is None:
            return None
        return behavior.character

    def display_label(self, key_code: int) -> typing.Optional[str]:
        key = self.get_key(key_code)
        return None if key is None else key.label

    def number(self, key_code: int) -> typing.Optional[str]:
        key = self.get_key(key_code)
        return None if key is None else key.number

    def fallback_action(self, key_code: int, meta_state: int) -> typing.Optional[FallbackAction]:
        key = self.get_key(key_code)
        if key is None:
            return None
        behavior = find_behavior(key.behaviors, meta_state)
        if behavior is not None and behavior.fallback_key_code is not None:
            return FallbackAction(behavior.fallback_key_code, clear_groups(meta_state, behavior.meta_state))
        base = key.behaviors[-1] if key.behaviors and key.behaviors[-1].meta_state == 0 else None
        if base is not None and base is not behavior and base.fallback_key_code is not None:
            return FallbackAction(base.fallback_key_code, meta_state)
        return None

    def match(self, key_code: int, chars: collections.abc.Container[str], meta_state: int) -> typing.Optional[str]:
        """The character in `chars` this key can produce.

        A behavior compatible with `meta_state` wins outright; otherwise the least specific
        behavior producing one of the characters."""
        key = self.get_key(key_code)
        if key is None:
            return None
        result = None
        for behavior in key.behaviors:
            if behavior.character is not None and behavior.character in chars:
                if compatible(behavior.meta_state, meta_state):
                    return behavior.character
                result = behavior.character
        return result

    def reverse_matches(
        self,
        chars: collections.abc.Container[str],
        preferred_meta_state: int = 0,
        *,
        locks: typing.Optional[int] = None,
        include_labels: bool = True,
    ) -> collections.abc.Iterator[tuple[int, int]]:
        """Every key and behavior mask producing one of `chars`, best first.

        A mask equal to `preferred_meta_state` comes first, then masks with fewer bits;
        ties keep ascending key code order, then the stored behavior order. Labels and
        numbers count as needing no modifiers, but only when no behavior matches at all.
        With `locks`, behaviors whose lock modifiers disagree with it are skipped."""
        found = []
        label_matches = []
        for key_code in sorted(self.keys):
            key = self.keys[key_code]
            for behavior in key.behaviors:
                if behavior.character is None or behavior.character not in chars:
                    continue
                if locks is not None and not all(group_compatible(group, behavior.meta_state, locks) for group in LOCK_GROUPS):
                    continue
                found.append((key_code, behavior.meta_state))
            if include_labels:
                if (key.label is not None and key.label in chars) or (key.number is not None and key.number in chars):
                    label_matches.append((key_code, 0))
        if not found:
            yield from label_matches
            return
        found.sort(key=lambda match: (match[1] != preferred_meta_state, match[1].bit_count()))
        yield from found

    def reverse_match(
        self,
        chars: collections.abc.Container[str],
        preferred_meta_state: int = 0,
        *,
        locks: typing.Optional[int] = None,
        include_labels: bool = True,
    ) -> typing.Optional[tuple[int, int]]:
        "The best of `reverse_matches`, or None if no key produces any of `chars`."
        return next(self.reverse_matches(chars, preferred_meta_state, locks=locks, include_labels=include_labels), None)

    def characters(self) -> set[str]:
        return {behavior.character for key in self.keys.values() for behavior in key.behaviors if behavior.character is not None}

    ### remapping

    def map_device_code(self, scan_code: typing.Optional[int], usage_code: typing.Optional[int]) -> typing.Optional[int]:
        if usage_code is not None and usage_code in self.keys_by_usage_code:
            return self.keys_by_usage_code[usage_code]
        if scan_code is not None and scan_code in self.keys_by_scan_code:
            return self.keys_by_scan_code[scan_code]
        return None

    def add_key_remapping(self, from_key_code: int, to_key_code: int):
        if not (0 <= from_key_code < MAX_KEYS and 0 <= to_key_code < MAX_KEYS):
            raise ValueError(f"Key codes out of range: {from_key_code} -> {to_key_code}")
        self.key_remapping[int(from_key_code)] = int(to_key_code)

    def apply_key_remapping(self, key_code: int) -> int:
        # One hop only, so remapping cycles are harmless.
        return self.key_remapping.get(key_code, key_code)

    def apply_key_behavior(self, key_code: int, meta_state: int) -> tuple[int, int]:
        key = self.get_key(key_code)
        if key is None:
            return (key_code, meta_state)
        behavior = find_behavior(key.behaviors, meta_state)
        if behavior is None or behavior.replacement_key_code is None:
            return (key_code, meta_state)
        return (behavior.replacement_key_code, clear_groups(meta_state, behavior.meta_state))

    ### events

    def synthesize(self, device_id: int, text: str, meta_state: int = 0) -> list[KeyEvent]:
        return synthesis.synthesize(self, device_id, text, meta_state)

    ### overlays

    def combine(self, overlay: KeyCharacterMap):
        self.keys.update(overlay.keys)
        self.keys_by_scan_code.update(overlay.keys_by_scan_code)
        self.keys_by_usage_code.update(overlay.keys_by_usage_code)
        self.key_remapping.update(overlay.key_remapping)
        self.layout_overlay_applied = True
        logger.debug("Combined overlay %s into %s", overlay.load_file_name, self.load_file_name)

    def clear_layout_overlay(self, source: Source):
        if not self.layout_overlay_applied:
            return
        try:
            contents = source.read(self.load_file_name)
        except OSError as e:
            raise OverlaySourceUnavailable(self.load_file_name) from e
        reloaded = KeyCharacterMap.load_contents(self.load_file_name, contents, Format.BASE)
        for field in self.__struct_fields__:
            setattr(self, field, getattr(reloaded, field))
        logger.debug("Cleared layout overlay from %s", self.load_file_name)
