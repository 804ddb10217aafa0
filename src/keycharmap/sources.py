# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import pathlib
import typing

from .commontypes import Format
from .keymap import KeyCharacterMap

if typing.TYPE_CHECKING:
    from .settings import Settings

logger = logging.getLogger(__name__)

KEYMAP_SUFFIX = ".kcm"


@typing.runtime_checkable
class Source(typing.Protocol):
    def read(self, name: str) -> str:
        "Return the text of the named key map. Raises FileNotFoundError if there's no such key map."
        ...


class DirectorySource:
    def __init__(self, paths: collections.abc.Sequence[pathlib.Path]):
        self.paths = tuple(paths)

    def find(self, name: str) -> pathlib.Path:
        candidates = [name] if name.endswith(KEYMAP_SUFFIX) else [name + KEYMAP_SUFFIX, name]
        for directory in self.paths:
            for candidate in candidates:
                path = directory / candidate
                if path.is_file():
                    return path
        raise FileNotFoundError(f"No key map named {name!r} in {[str(p) for p in self.paths]}")

    def read(self, name: str) -> str:
        path = self.find(name)
        logger.debug("Reading key map %s from %s", name, path)
        return path.read_text(encoding="utf-8")


class MemorySource:
    def __init__(self, contents: typing.Optional[collections.abc.Mapping[str, str]] = None):
        self.contents = dict(contents or {})

    def read(self, name: str) -> str:
        try:
            return self.contents[name]
        except KeyError:
            raise FileNotFoundError(name) from None


def load_configured_keymap(settings: Settings, source: typing.Optional[Source] = None) -> KeyCharacterMap:
    "Load the base layout named in the settings, then apply its key remapping and overlays."
    if source is None:
        source = DirectorySource(settings.keymap_paths)
    keymap = KeyCharacterMap.load(source, settings.base_layout, Format.BASE)
    for from_key, to_key in settings.key_remapping.items():
        keymap.add_key_remapping(from_key, to_key)
    for overlay_name in settings.overlay_layouts:
        keymap.combine(KeyCharacterMap.load(source, overlay_name, Format.OVERLAY))
    return keymap
