# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import argparse
import logging
import pathlib
import sys

from .commontypes import Format, KeyCharMapError
from .keycodes import KeyCode, key_label
from .keymap import KeyCharacterMap
from .metastate import format_meta_state, parse_modifiers
from .settings import Settings
from .sources import load_configured_keymap


def configure_logging(verbose: bool):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


def load_file(path: pathlib.Path, format: Format) -> KeyCharacterMap:
    return KeyCharacterMap.load_contents(str(path), path.read_text(encoding="utf-8"), format)


def add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--format", choices=[f.value for f in Format], default=Format.ANY.value)
    parser.add_argument("-v", "--verbose", action="store_true")


check_parser = argparse.ArgumentParser(description="Check that key character map files parse.")
check_parser.add_argument("files", type=pathlib.Path, nargs="+")
add_common_arguments(check_parser)


def check_cli(argv=None):
    args = check_parser.parse_args(argv)
    configure_logging(args.verbose)
    failed = False
    for path in args.files:
        try:
            keymap = load_file(path, Format(args.format))
        except (KeyCharMapError, OSError) as e:
            print(e, file=sys.stderr)
            failed = True
            continue
        print(f"{path}: {keymap.keyboard_type.name}, {len(keymap.keys)} keys, {len(keymap.characters())} characters")
    return 1 if failed else 0


type_parser = argparse.ArgumentParser(description="Print the key events that would type some text.")
type_parser.add_argument("keymap", type=pathlib.Path, nargs="?")
type_parser.add_argument("text")
type_parser.add_argument("--settings", type=pathlib.Path, help="load the layouts, device id and meta state from a settings file")
type_parser.add_argument("--meta-state", help="modifiers held or locked at the start, e.g. capslock")
type_parser.add_argument("--device-id", type=int)
type_parser.add_argument("-v", "--verbose", action="store_true")


def type_cli(argv=None):
    args = type_parser.parse_args(argv)
    if (args.keymap is None) == (args.settings is None):
        type_parser.error("give either a key map file or --settings")
    configure_logging(args.verbose)
    try:
        if args.settings is not None:
            settings = Settings.load(args.settings)
            keymap = load_configured_keymap(settings)
            device_id, meta_state = settings.device_id, settings.initial_meta_state
        else:
            keymap = load_file(args.keymap, Format.BASE)
            device_id, meta_state = 0, 0
        if args.device_id is not None:
            device_id = args.device_id
        if args.meta_state is not None:
            meta_state = parse_modifiers(args.meta_state)
        events = keymap.synthesize(device_id, args.text, meta_state)
    except (KeyCharMapError, OSError, ValueError) as e:
        print(e, file=sys.stderr)
        return 1
    for event in events:
        print(f"{event.press.name:<8} {key_label(event.key_code):<16} {format_meta_state(event.meta_state)}")
    return 0


lookup_parser = argparse.ArgumentParser(description="Show what a key produces.")
lookup_parser.add_argument("keymap", type=pathlib.Path)
lookup_parser.add_argument("key")
lookup_parser.add_argument("modifiers", nargs="?", default="base")
add_common_arguments(lookup_parser)


def lookup_cli(argv=None):
    args = lookup_parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        keymap = load_file(args.keymap, Format(args.format))
        key_code = KeyCode.from_label(args.key)
        meta_state = parse_modifiers(args.modifiers)
    except KeyError:
        print(f"Unknown key code name {args.key!r}", file=sys.stderr)
        return 1
    except (KeyCharMapError, OSError, ValueError) as e:
        print(e, file=sys.stderr)
        return 1
    fallback = keymap.fallback_action(key_code, meta_state)
    print(f"character: {keymap.character(key_code, meta_state)!r}")
    print(f"label:     {keymap.display_label(key_code)!r}")
    print(f"number:    {keymap.number(key_code)!r}")
    if fallback is None:
        print("fallback:  None")
    else:
        print(f"fallback:  {key_label(fallback.key_code)} {format_meta_state(fallback.meta_state)}")
    return 0


def check_main():
    sys.exit(check_cli())


def type_main():
    sys.exit(type_cli())


def lookup_main():
    sys.exit(lookup_cli())
