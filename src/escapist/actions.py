from __future__ import annotations

import collections.abc
import dataclasses
import logging
import typing

from .commontypes import KeyNotationError, Mode
from .keys import Key, format_keys, parse_keys

logger = logging.getLogger(__name__)

EscapeCallback = collections.abc.Callable[[str, str], typing.Optional[str]]


@dataclasses.dataclass(kw_only=True, frozen=True)
class FixedSequence:
    notation: str
    keys: tuple[Key, ...] = dataclasses.field(init=False, compare=False, repr=False)

    def __post_init__(self):
        # parse eagerly so a bad notation is caught when settings are validated
        object.__setattr__(self, "keys", parse_keys(self.notation))


@dataclasses.dataclass(kw_only=True, frozen=True)
class Computed:
    callback: EscapeCallback


@dataclasses.dataclass(kw_only=True, frozen=True)
class Disabled:
    pass


EscapeAction = FixedSequence | Computed | Disabled


def is_enabled(action: typing.Optional[EscapeAction]) -> bool:
    return action is not None and not isinstance(action, Disabled)


def resolve(action: EscapeAction, first_char: str, second_char: str) -> tuple[Key, ...]:
    """Turn the configured action for a mode into the keys to feed back to the host.

    An empty tuple means the match is swallowed without any effect. Callbacks may
    return None or the empty string for that.
    """
    match action:
        case FixedSequence(keys=keys):
            return keys
        case Computed(callback=callback):
            result = callback(first_char, second_char)
            if not result:
                return ()
            try:
                return parse_keys(result)
            except KeyNotationError:
                logger.warning("Escape callback returned unusable keys %r for %r%r", result, first_char, second_char, exc_info=True)
                return ()
        case Disabled():
            raise ValueError("Disabled actions cannot be resolved")
        case _:
            typing.assert_never(action)


def describe(action: EscapeAction) -> str:
    match action:
        case FixedSequence(keys=keys):
            return format_keys(keys)
        case Computed(callback=callback):
            return f"<computed by {getattr(callback, '__qualname__', repr(callback))}>"
        case Disabled():
            return "<disabled>"
        case _:
            typing.assert_never(action)


class ActionResolver:
    def __init__(self, escape_sequences: collections.abc.Mapping[Mode, EscapeAction]):
        self.escape_sequences = dict(escape_sequences)

    def action_for(self, mode: Mode) -> typing.Optional[EscapeAction]:
        return self.escape_sequences.get(mode)

    def enabled(self, mode: Mode) -> bool:
        return is_enabled(self.action_for(mode))

    def resolve(self, mode: Mode, first_char: str, second_char: str) -> tuple[Key, ...]:
        action = self.action_for(mode)
        if not is_enabled(action):
            raise ValueError(f"No escape action is enabled for {mode.name}")
        return resolve(action, first_char, second_char)
