# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import dataclasses
import json
import operator
import pathlib
import typing

import cattrs
import cattrs.gen

from .keycodes import KeyCode
from .metastate import format_meta_state, parse_modifiers

settings_converter = cattrs.Converter()
settings_converter.register_unstructure_hook(KeyCode, operator.attrgetter("label"))
settings_converter.register_structure_hook(KeyCode, lambda v, _: KeyCode.from_label(v))
settings_converter.register_unstructure_hook(pathlib.Path, str)
settings_converter.register_structure_hook(pathlib.Path, lambda v, _: pathlib.Path(v))


@dataclasses.dataclass(kw_only=True)
class Settings:
    _path: pathlib.Path
    keymap_paths: list[pathlib.Path]
    base_layout: str
    overlay_layouts: list[str] = dataclasses.field(default_factory=list)
    key_remapping: dict[KeyCode, KeyCode] = dataclasses.field(default_factory=dict)
    device_id: int = 0
    # Modifiers considered held or locked before any synthesized key press, e.g. "capslock".
    meta_state: str = "base"

    @property
    def initial_meta_state(self) -> int:
        return parse_modifiers(self.meta_state)

    def set_initial_meta_state(self, meta_state: int):
        self.meta_state = format_meta_state(meta_state)

    def save(self, dest: typing.Optional[pathlib.Path] = None):
        if dest is None:
            dest = self._path
        raw = settings_converter.unstructure(self)
        del raw["_path"]
        with dest.open("w") as outfile:
            json.dump(raw, outfile, indent=2)

    @classmethod
    def load(cls, src: pathlib.Path):
        with src.open() as infile:
            raw = json.load(infile)
        raw["_path"] = src
        return settings_converter.structure(raw, cls)

    @classmethod
    def for_test(cls):
        return settings_converter.structure(
            {
                "_path": "test.settings.json",
                "keymap_paths": ["keymaps"],
                "base_layout": "Generic",
                "overlay_layouts": [],
                "key_remapping": {},
                "device_id": 1,
                "meta_state": "base",
            },
            cls,
        )


settings_converter.register_structure_hook(Settings, cattrs.gen.make_dict_structure_fn(Settings, settings_converter))
