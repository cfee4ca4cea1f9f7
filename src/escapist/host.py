# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import abc
import collections.abc
import typing

if typing.TYPE_CHECKING:
    from .commontypes import Mode, Position
    from .keys import Key

KeyObserver = collections.abc.Callable[["Key", "Mode"], None]
ModeEntryObserver = collections.abc.Callable[["Mode", "Document"], None]
Continuation = collections.abc.Callable[[], None]


class Document(abc.ABC):
    """The parts of a host text buffer that modification suppression needs.

    Every method raises DocumentClosed once the document has been closed.
    """

    @property
    @abc.abstractmethod
    def is_valid(self) -> bool: ...

    @property
    @abc.abstractmethod
    def modified(self) -> bool: ...

    @abc.abstractmethod
    def mark_unmodified(self): ...

    @abc.abstractmethod
    def content(self) -> str: ...

    @property
    @abc.abstractmethod
    def cursor(self) -> Position: ...

    @abc.abstractmethod
    def set_cursor(self, position: Position):
        "Raises InvalidPosition if the position does not exist in the document."


class Host(abc.ABC):
    @property
    @abc.abstractmethod
    def mode(self) -> Mode: ...

    @abc.abstractmethod
    def feed_keys(self, keys: collections.abc.Sequence[Key]):
        "Insert keys into the input stream ahead of anything already typed."

    @abc.abstractmethod
    def schedule(self, continuation: Continuation):
        "Run continuation once every key fed so far has been applied."

    @abc.abstractmethod
    def add_key_observer(self, observer: KeyObserver): ...

    @abc.abstractmethod
    def add_mode_entry_observer(self, observer: ModeEntryObserver): ...
