# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Keyboard event stages
# device level:
# stage 0: translate device scan/usage codes into key codes, then apply key remapping

# key map level:
# stage 1: track modifier keydown/up and stamp events with the current meta state
# stage 2: convert key code + meta state into character, or fallback key code
# and in reverse: text into the key events that would type it
from .commontypes import Format, KeyboardType, KeyCharMapError, OverlaySourceUnavailable, ParseError, Unmappable
from .events import AnnotatedKeyEvent, KeyEvent, RawKeyEvent
from .keycodes import KeyCode, KeyPress
from .keymap import KeyCharacterMap
from .keytypes import Behavior, FallbackAction, Key
from .metastate import MetaState, format_meta_state, parse_modifiers
from .sources import DirectorySource, MemorySource, load_configured_keymap
