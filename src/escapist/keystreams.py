# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import pathlib
import typing

import msgspec
import trio

from .durations import parse_timeout, to_seconds
from .keys import Key, format_key, parse_keys

logger = logging.getLogger(__name__)


# A recording is a list of [offset, keys] pairs. The offset is measured from the start
# of the recording, either in milliseconds or as a duration string such as "1.5s".
# All the keys of one entry arrive at the same instant.
class RecordedKeys(msgspec.Struct, frozen=True, array_like=True):
    offset: int | str
    keys: str

    @property
    def offset_ms(self) -> int:
        if isinstance(self.offset, str):
            return parse_timeout(self.offset)
        return self.offset


recording_decoder = msgspec.json.Decoder(list[RecordedKeys])
recording_encoder = msgspec.json.Encoder()


def load_recording(path: pathlib.Path) -> list[RecordedKeys]:
    return recording_decoder.decode(path.read_bytes())


def save_recording(events: collections.abc.Iterable[RecordedKeys], path: pathlib.Path):
    path.write_bytes(recording_encoder.encode(list(events)))


class Replayer:
    def __init__(self, events: collections.abc.Sequence[RecordedKeys]):
        self.events = sorted(events, key=lambda e: e.offset_ms)

    async def pump(self, sink: trio.MemorySendChannel[Key]):
        async with sink:
            zero_time = trio.current_time()
            try:
                for event in self.events:
                    await trio.sleep_until(zero_time + to_seconds(event.offset_ms))
                    for key in parse_keys(event.keys):
                        await sink.send(key)
            except trio.BrokenResourceError:
                logger.debug("Keystream closed before the recording finished")


class Recorder:
    events: list[RecordedKeys]

    def __init__(self):
        self.zero_time: typing.Optional[float] = None
        self.events = []

    def save_events(self, path: pathlib.Path):
        save_recording(self.events, path)

    async def pump(self, source: trio.MemoryReceiveChannel[Key], sink: trio.MemorySendChannel[Key]):
        async with source, sink:
            async for key in source:
                now = trio.current_time()
                if self.zero_time is None:
                    self.zero_time = now
                offset = round((now - self.zero_time) * 1000)
                if self.events and self.events[-1].offset == offset:
                    last = self.events.pop()
                    self.events.append(RecordedKeys(offset=offset, keys=last.keys + format_key(key)))
                else:
                    self.events.append(RecordedKeys(offset=offset, keys=format_key(key)))
                await sink.send(key)
