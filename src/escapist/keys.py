# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import enum
import typing

import msgspec

from .commontypes import KeyNotationError

# Key notation follows the familiar editor convention: plain characters stand for
# themselves, and named keys go inside angle brackets, such as <BS> or <C-c>.
# A literal "<" is written <lt>.


class SpecialKey(enum.Enum):
    BS = "BS"
    ESC = "Esc"
    CR = "CR"
    TAB = "Tab"
    DEL = "Del"
    LEFT = "Left"
    RIGHT = "Right"
    UP = "Up"
    DOWN = "Down"


class Ctrl(msgspec.Struct, frozen=True):
    char: str


Key = typing.Union[str, SpecialKey, Ctrl]

NAMED_KEYS: dict[str, Key] = {
    "bs": SpecialKey.BS,
    "backspace": SpecialKey.BS,
    "esc": SpecialKey.ESC,
    "escape": SpecialKey.ESC,
    "cr": SpecialKey.CR,
    "enter": SpecialKey.CR,
    "return": SpecialKey.CR,
    "tab": SpecialKey.TAB,
    "del": SpecialKey.DEL,
    "delete": SpecialKey.DEL,
    "left": SpecialKey.LEFT,
    "right": SpecialKey.RIGHT,
    "up": SpecialKey.UP,
    "down": SpecialKey.DOWN,
    "space": " ",
    "lt": "<",
    "bslash": "\\",
    "bar": "|",
}


def _named_key(name: str) -> Key:
    lowered = name.lower()
    if lowered in NAMED_KEYS:
        return NAMED_KEYS[lowered]
    if lowered.startswith("c-") and len(name) == 3:
        char = name[2]
        return Ctrl(char=char.lower() if char.isalpha() else char)
    raise KeyNotationError(f"Unknown key name <{name}>")


def parse_keys(notation: str) -> tuple[Key, ...]:
    keys: list[Key] = []
    index = 0
    while index < len(notation):
        char = notation[index]
        if char != "<":
            keys.append(char)
            index += 1
            continue
        end = notation.find(">", index + 1)
        if end == -1:
            raise KeyNotationError(f"Unterminated key name in {notation!r}")
        keys.append(_named_key(notation[index + 1 : end]))
        index = end + 1
    return tuple(keys)


def format_key(key: Key) -> str:
    match key:
        case SpecialKey():
            return f"<{key.value}>"
        case Ctrl(char=char):
            return f"<C-{char}>"
        case "<":
            return "<lt>"
        case _:
            return key


def format_keys(keys: typing.Iterable[Key]) -> str:
    return "".join(format_key(k) for k in keys)


def is_character(key: Key) -> bool:
    return isinstance(key, str)
