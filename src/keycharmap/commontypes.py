# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import enum
import typing


class KeyboardType(enum.IntEnum):
    UNKNOWN = 0
    NUMERIC = 1
    PREDICTIVE = 2
    ALPHA = 3
    FULL = 4
    SPECIAL_FUNCTION = 5
    OVERLAY = 6


@enum.unique
class Format(enum.Enum):
    # Full authority; may declare the keyboard type.
    BASE = "base"
    # Restricted; may only add or override key entries.
    OVERLAY = "overlay"
    # Either kind is acceptable.
    ANY = "any"


class KeyCharMapError(Exception):
    pass


class ParseError(KeyCharMapError):
    def __init__(self, line: int, message: str, source_name: typing.Optional[str] = None):
        self.line = line
        self.message = message
        self.source_name = source_name
        super().__init__(f"{self.location}: {message}")

    @property
    def location(self):
        if self.source_name is None:
            return f"line {self.line}"
        return f"{self.source_name}:{self.line}"


class Unmappable(KeyCharMapError):
    def __init__(self, character: str):
        self.character = character
        super().__init__(f"No key produces the character {character!r}")


class OverlaySourceUnavailable(KeyCharMapError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot reload key map source {name!r}")
