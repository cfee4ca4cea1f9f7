# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import math
import typing

import trio

logger = logging.getLogger(__name__)

ExpiryCallback = collections.abc.Callable[[], None]


class TimeoutTimer:
    """A single restartable countdown, driven by one long-lived task.

    arm() and cancel() are plain synchronous calls; they only move the deadline and
    wake the task, so the timer is never reallocated per keystroke.
    """

    _on_expire: typing.Optional[ExpiryCallback]

    def __init__(self):
        self._deadline = math.inf
        self._on_expire = None
        self._wakeup = trio.Event()
        self.running = False

    @property
    def armed(self):
        return self._on_expire is not None

    @property
    def deadline(self):
        return self._deadline

    def arm(self, duration: float, on_expire: ExpiryCallback):
        self._deadline = trio.current_time() + duration
        self._on_expire = on_expire
        self._wakeup.set()

    def cancel(self):
        if not self.armed:
            return
        self._deadline = math.inf
        self._on_expire = None
        self._wakeup.set()

    def _fire(self):
        # a wakeup can race with the old deadline; only fire if the current one has passed
        if not self.armed or trio.current_time() < self._deadline:
            return
        callback = self._on_expire
        self._deadline = math.inf
        self._on_expire = None
        callback()

    async def run(self, *, task_status=trio.TASK_STATUS_IGNORED):
        self.running = True
        task_status.started()
        try:
            while True:
                self._wakeup = trio.Event()
                with trio.move_on_at(self._deadline) as cancel_scope:
                    await self._wakeup.wait()
                if cancel_scope.cancelled_caught:
                    self._fire()
        finally:
            self.running = False
            self._deadline = math.inf
            self._on_expire = None
