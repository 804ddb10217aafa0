# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import typing

from .metastate import ModifierGroup, Side

if typing.TYPE_CHECKING:
    from .keytypes import Behavior

SIDED = Side.LEFT | Side.RIGHT


def group_compatible(group: ModifierGroup, behavior_mask: int, event_meta_state: int) -> bool:
    wanted = group.sides(behavior_mask)
    held = group.sides(event_meta_state)
    if not wanted:
        return not held
    if not held:
        return False
    # An event with only the generic bit doesn't say which side is down, so it satisfies either.
    if held & SIDED:
        for side in (Side.LEFT, Side.RIGHT):
            if side in wanted and side not in held:
                return False
    return True


def compatible(behavior_mask: int, event_meta_state: int) -> bool:
    """Whether a behavior declared for `behavior_mask` applies to an event with `event_meta_state`.

    Every modifier group the behavior mentions must be held (on the requested side, if it
    names one), and every group it does not mention must not be held at all. Bits outside
    of any modifier group are ignored."""
    return all(group_compatible(group, behavior_mask, event_meta_state) for group in ModifierGroup)


def specificity(mask: int) -> tuple[int, int, int]:
    groups = 0
    sided = 0
    for group in ModifierGroup:
        sides = group.sides(mask)
        if sides:
            groups += 1
            sided += len([side for side in (Side.LEFT, Side.RIGHT) if side in sides])
    return (groups, sided, mask.bit_count())


def sort_behaviors(behaviors: collections.abc.Iterable[Behavior]) -> tuple[Behavior, ...]:
    "Most specific first; the no-modifier behavior, if any, ends up last."
    return tuple(sorted(behaviors, key=lambda behavior: specificity(behavior.meta_state), reverse=True))


def find_behavior(behaviors: collections.abc.Iterable[Behavior], meta_state: int) -> typing.Optional[Behavior]:
    for behavior in behaviors:
        if compatible(behavior.meta_state, meta_state):
            return behavior
    return None
