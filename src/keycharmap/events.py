# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import typing

import msgspec

from .keycodes import KeyPress
from .keytypes import FallbackAction


class RawKeyEvent(msgspec.Struct, frozen=True, kw_only=True):
    # As reported by a device, before the key map turns it into a key code.
    device_id: int
    press: KeyPress
    scan_code: typing.Optional[int] = None
    usage_code: typing.Optional[int] = None


class KeyEvent(msgspec.Struct, frozen=True, kw_only=True):
    device_id: int
    key_code: int
    press: KeyPress
    # The meta state after this event took effect.
    meta_state: int = 0

    @classmethod
    def pressed(cls, device_id: int, key_code: int, meta_state: int = 0):
        return cls(device_id=device_id, key_code=key_code, press=KeyPress.PRESSED, meta_state=meta_state)

    @classmethod
    def released(cls, device_id: int, key_code: int, meta_state: int = 0):
        return cls(device_id=device_id, key_code=key_code, press=KeyPress.RELEASED, meta_state=meta_state)


class AnnotatedKeyEvent(msgspec.Struct, frozen=True, kw_only=True):
    device_id: int
    key_code: int
    press: KeyPress
    meta_state: int
    character: typing.Optional[str] = None
    fallback: typing.Optional[FallbackAction] = None
    is_modifier: bool = False
