# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import typing

import msgspec
import trio

from .actions import ActionResolver, describe
from .commontypes import Mode
from .keys import format_keys, is_character
from .settings import Diagnostic, Settings
from .timer import TimeoutTimer
from .tracker import ModificationTracker, Reconciliation

if typing.TYPE_CHECKING:
    from .host import Document, Host
    from .keys import Key


logger = logging.getLogger(__name__)


class Pending(msgspec.Struct, frozen=True):
    char: str
    since: float


class SequenceDetector:
    """Watches every keystroke for a configured two-character combination.

    The detector never swallows keys: both characters reach the document as usual,
    and on a match the configured escape action is fed back to the host, which
    normally backspaces over them and leaves the mode.
    """

    pending: typing.Optional[Pending]

    def __init__(self, host: Host, settings: typing.Optional[Settings] = None):
        self.host = host
        self.timer = TimeoutTimer()
        self.pending = None
        self.matches = 0
        self.setup(settings if settings is not None else Settings.defaults())

    def setup(self, config: typing.Union[Settings, collections.abc.Mapping[str, typing.Any], None] = None) -> list[Diagnostic]:
        if isinstance(config, Settings):
            settings, diagnostics = config, []
        else:
            settings, diagnostics = Settings.from_options(config)
        self.settings = settings
        self.combinations = settings.combination_table()
        self.resolver = ActionResolver(settings.escape_sequences)
        self.tracker = ModificationTracker(enabled=settings.check_modified)
        self.reset()
        logger.debug(
            "Configured combinations %s, timeout %dms, actions %s",
            list(self.combinations),
            settings.timeout,
            {mode.value: describe(action) for mode, action in settings.escape_sequences.items()},
        )
        return diagnostics

    def reset(self):
        self.pending = None
        self.timer.cancel()

    async def run(self, *, task_status=trio.TASK_STATUS_IGNORED):
        async with trio.open_nursery() as nursery:
            await nursery.start(self.timer.run)
            task_status.started()

    def on_key(self, key: Key, mode: Mode):
        if not self.resolver.enabled(mode):
            return
        if not is_character(key):
            self.pending = None
            self.timer.cancel()
            return
        char = typing.cast(str, key)
        # the timer task may not have run yet even though the deadline has passed
        if self.pending is not None and self._timed_out(self.pending):
            self._expire(self.pending.char)
            self.timer.cancel()

        if self.pending is not None and self.combinations.completes(self.pending.char, char):
            first_char = self.pending.char
            self.timer.cancel()
            self.pending = None
            self._escape(mode, first_char, char)
        elif self.combinations.starts_combination(char):
            self.pending = Pending(char=char, since=trio.current_time())
            self.timer.arm(self.settings.timeout_seconds, lambda: self._expire(char))
        else:
            self.pending = None
            self.timer.cancel()

    def on_mode_entry(self, mode: Mode, document: Document):
        if mode.edits_buffer:
            self.tracker.snapshot_on_mode_entry(document)

    def _timed_out(self, pending: Pending):
        return trio.current_time() - pending.since >= self.settings.timeout_seconds

    def _expire(self, char: str):
        if self.pending is not None and self.pending.char == char:
            logger.debug("Combination starting with %r timed out", char)
            self.pending = None

    def _escape(self, mode: Mode, first_char: str, second_char: str):
        self.matches += 1
        keys = self.resolver.resolve(mode, first_char, second_char)
        logger.debug("Matched %r%r in %s; feeding %s", first_char, second_char, mode.name, format_keys(keys))
        if keys:
            self.host.feed_keys(keys)
        if self.settings.check_modified and mode.edits_buffer:
            reconciliation = self.tracker.take_snapshot()
            if reconciliation is not None:
                self.host.schedule(_reconcile_later(reconciliation))


def _reconcile_later(reconciliation: Reconciliation):
    def continuation():
        ModificationTracker.reconcile(reconciliation)

    return continuation
