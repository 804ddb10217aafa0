# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import abc
import logging
from contextlib import aclosing, asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterable, cast

import msgspec
import trio

from .events import AnnotatedKeyEvent, KeyEvent, RawKeyEvent
from .keycodes import KeyPress
from .metastate import MODIFIER_KEYS, update_meta_state

if TYPE_CHECKING:
    from .keymap import KeyCharacterMap

logger = logging.getLogger(__name__)


class Section(abc.ABC):
    @abc.abstractmethod
    async def pump(self, source: trio.MemoryReceiveChannel[Any], sink: trio.MemorySendChannel[Any]): ...


# stage 0: turn device scan/usage codes into key codes
class DeviceCodeMapping(Section):
    def __init__(self, keymap: KeyCharacterMap):
        self.keymap = keymap

    async def pump(self, source: trio.MemoryReceiveChannel[RawKeyEvent], sink: trio.MemorySendChannel[KeyEvent]):
        async with aclosing(source), aclosing(sink):
            async for event in source:
                key_code = self.keymap.map_device_code(event.scan_code, event.usage_code)
                if key_code is None:
                    logger.debug("Dropping unmapped device code: scan %r usage %r", event.scan_code, event.usage_code)
                    continue
                key_code = self.keymap.apply_key_remapping(key_code)
                await sink.send(KeyEvent(device_id=event.device_id, key_code=key_code, press=event.press))


# stage 1: track modifier keydown/up and stamp each event with the current meta state
class ModifierTracking(Section):
    def __init__(self, meta_state: int = 0):
        self.meta_state = meta_state

    async def pump(self, source: trio.MemoryReceiveChannel[KeyEvent], sink: trio.MemorySendChannel[KeyEvent]):
        async with aclosing(source), aclosing(sink):
            async for event in source:
                if event.press is not KeyPress.REPEATED:
                    self.meta_state = update_meta_state(event.key_code, event.press is KeyPress.PRESSED, self.meta_state)
                await sink.send(msgspec.structs.replace(event, meta_state=self.meta_state))


# stage 1.25: substitute keys whose behavior replaces them outright
class KeyBehavior(Section):
    def __init__(self, keymap: KeyCharacterMap):
        self.keymap = keymap

    async def pump(self, source: trio.MemoryReceiveChannel[KeyEvent], sink: trio.MemorySendChannel[KeyEvent]):
        async with aclosing(source), aclosing(sink):
            async for event in source:
                key_code, meta_state = self.keymap.apply_key_behavior(event.key_code, event.meta_state)
                await sink.send(msgspec.structs.replace(event, key_code=key_code, meta_state=meta_state))


# stage 1.5: drop KeyPress.RELEASED events
class OnlyPresses(Section):
    async def pump(self, source: trio.MemoryReceiveChannel[KeyEvent], sink: trio.MemorySendChannel[KeyEvent]):
        async with aclosing(source), aclosing(sink):
            async for event in source:
                if event.press == KeyPress.PRESSED:
                    await sink.send(event)


# stage 2: convert key event + meta state into character
class MakeCharacter(Section):
    def __init__(self, keymap: KeyCharacterMap):
        self.keymap = keymap

    async def pump(self, source: trio.MemoryReceiveChannel[KeyEvent], sink: trio.MemorySendChannel[AnnotatedKeyEvent]):
        async with aclosing(source), aclosing(sink):
            async for event in source:
                await sink.send(
                    AnnotatedKeyEvent(
                        device_id=event.device_id,
                        key_code=event.key_code,
                        press=event.press,
                        meta_state=event.meta_state,
                        character=self.keymap.character(event.key_code, event.meta_state),
                        fallback=self.keymap.fallback_action(event.key_code, event.meta_state),
                        is_modifier=event.key_code in MODIFIER_KEYS,
                    )
                )


@asynccontextmanager
async def pump_all(first_source: AsyncIterable[Any], *sections: Section):
    async with trio.open_nursery() as nursery:
        section_input = first_source
        for section in sections:
            section_send_channel, section_receive_channel = trio.open_memory_channel(0)
            nursery.start_soon(section.pump, section_input, section_send_channel)
            section_input = section_receive_channel
        yield section_input
        nursery.cancel_scope.cancel()


@asynccontextmanager
async def make_keystream(
    key_event_channel: trio.MemoryReceiveChannel[KeyEvent],
    keymap: KeyCharacterMap,
    meta_state: int = 0,
):
    sections = [
        ModifierTracking(meta_state),
        KeyBehavior(keymap),
        OnlyPresses(),
        MakeCharacter(keymap),
    ]

    async with pump_all(key_event_channel, *sections) as keystream:
        yield cast(trio.MemoryReceiveChannel[AnnotatedKeyEvent], keystream)


@asynccontextmanager
async def make_raw_keystream(
    raw_event_channel: trio.MemoryReceiveChannel[RawKeyEvent],
    keymap: KeyCharacterMap,
    meta_state: int = 0,
):
    async with (
        pump_all(raw_event_channel, DeviceCodeMapping(keymap)) as key_events,
        make_keystream(key_events, keymap, meta_state) as keystream,
    ):
        yield keystream
