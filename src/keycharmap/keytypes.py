# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import typing

import msgspec

from .keycodes import MAX_KEYS

KeyCodeValue = typing.Annotated[int, msgspec.Meta(ge=0, lt=MAX_KEYS)]
DeviceCodeValue = typing.Annotated[int, msgspec.Meta(ge=0)]
MetaStateValue = typing.Annotated[int, msgspec.Meta(ge=0)]
Character = typing.Annotated[str, msgspec.Meta(min_length=1, max_length=1)]


class Behavior(msgspec.Struct, frozen=True, kw_only=True):
    meta_state: MetaStateValue = 0
    # The character to insert.
    character: typing.Optional[Character] = None
    # The key code to report instead if nobody handles this key.
    fallback_key_code: typing.Optional[KeyCodeValue] = None
    # The key code to treat this key as, outright.
    replacement_key_code: typing.Optional[KeyCodeValue] = None


class Key(msgspec.Struct, frozen=True, kw_only=True):
    # The character printed on the key cap.
    label: typing.Optional[Character] = None
    # The character produced when the keyboard is used as a dialing pad.
    number: typing.Optional[Character] = None
    # Most specific meta state first.
    behaviors: tuple[Behavior, ...] = ()


class FallbackAction(msgspec.Struct, frozen=True):
    key_code: int
    meta_state: int
