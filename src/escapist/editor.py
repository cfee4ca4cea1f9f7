# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections
import collections.abc
import logging
import typing
import unicodedata

import timeflake
import trio
import trio_util

from .commontypes import DocumentClosed, InvalidPosition, Mode, Position
from .host import Continuation, Document, Host, KeyObserver, ModeEntryObserver
from .keys import Ctrl, Key, SpecialKey, parse_keys

if typing.TYPE_CHECKING:
    from .detector import SequenceDetector


logger = logging.getLogger(__name__)

TERMINAL_ESCAPE = (Ctrl(char="\\"), Ctrl(char="n"))


# The cursor sits between characters: column 0 is before the first character of the
# line and column len(line) is after the last one. Normal mode is sloppy about this and
# lets the cursor rest after the last character too.
class Buffer(Document):
    def __init__(self, text: str = "", name: typing.Optional[str] = None):
        self.id: timeflake.Timeflake = timeflake.random()
        self.name = name
        self.lines: list[str] = text.split("\n")
        self._cursor = Position.origin()
        self._modified = False
        self._closed = False
        # characters overwritten in replace mode, None where the line was extended
        self._replaced: list[typing.Optional[str]] = []

    def _check_open(self):
        if self._closed:
            raise DocumentClosed(self.id)

    @property
    def is_valid(self):
        return not self._closed

    @property
    def modified(self):
        self._check_open()
        return self._modified

    def mark_unmodified(self):
        self._check_open()
        self._modified = False

    def content(self):
        self._check_open()
        return "\n".join(self.lines)

    @property
    def cursor(self):
        self._check_open()
        return self._cursor

    def set_cursor(self, position: Position):
        self._check_open()
        if not (0 <= position.line < len(self.lines) and 0 <= position.column <= len(self.lines[position.line])):
            raise InvalidPosition(position)
        self._cursor = position

    def close(self):
        self._closed = True

    @property
    def current_line(self):
        return self.lines[self._cursor.line]

    def _set_current_line(self, text: str, column: int):
        self.lines[self._cursor.line] = text
        self._cursor = Position(line=self._cursor.line, column=column)
        self._modified = True

    def keystroke(self, keystroke: str):
        self._check_open()
        line, column = self.current_line, self._cursor.column
        self._set_current_line(line[:column] + keystroke + line[column:], column + len(keystroke))

    def backspace(self):
        self._check_open()
        line, column = self.current_line, self._cursor.column
        if column > 0:
            self._set_current_line(line[: column - 1] + line[column:], column - 1)
        elif self._cursor.line > 0:
            # join with the previous line
            previous_index = self._cursor.line - 1
            previous = self.lines[previous_index]
            del self.lines[self._cursor.line]
            self._cursor = Position(line=previous_index, column=len(previous))
            self._set_current_line(previous + line, len(previous))
        # at the very start of the document there is nothing to delete

    def new_line(self):
        self._check_open()
        line, column = self.current_line, self._cursor.column
        self.lines.insert(self._cursor.line + 1, line[column:])
        self._set_current_line(line[:column], column)
        self._cursor = Position(line=self._cursor.line + 1, column=0)

    def begin_replace(self):
        self._replaced = []

    def overwrite(self, keystroke: str):
        self._check_open()
        line, column = self.current_line, self._cursor.column
        self._replaced.append(line[column] if column < len(line) else None)
        self._set_current_line(line[:column] + keystroke + line[column + 1 :], column + 1)

    def restore(self):
        "Backspace in replace mode: put back what was overwritten, or just move left."
        self._check_open()
        line, column = self.current_line, self._cursor.column
        if column == 0:
            return
        if not self._replaced:
            self._cursor = Position(line=self._cursor.line, column=column - 1)
            return
        original = self._replaced.pop()
        if original is None:
            self._set_current_line(line[: column - 1] + line[column:], column - 1)
        else:
            self._set_current_line(line[: column - 1] + original + line[column:], column - 1)

    def move(self, delta: int, allow_past_end: bool = True):
        self._check_open()
        limit = len(self.current_line) if allow_past_end else max(len(self.current_line) - 1, 0)
        column = min(max(self._cursor.column + delta, 0), limit)
        self._cursor = Position(line=self._cursor.line, column=column)

    def move_to(self, column: int):
        self._check_open()
        self._cursor = Position(line=self._cursor.line, column=min(max(column, 0), len(self.current_line)))

    @staticmethod
    def graphical_char(c: typing.Optional[str]):
        if c is None or len(c) != 1:
            return False
        category = unicodedata.category(c)
        return category == "Zs" or category[0] in ("L", "M", "N", "P", "S")


class Editor(Host):
    """A small modal editor that stands in for the host application.

    Keys are processed strictly one at a time. Every key is shown to the key observers
    before it is applied, keys fed back by an observer jump the queue, and scheduled
    continuations run only once the queue is empty.
    """

    mode_value: trio_util.AsyncValue[Mode]
    typeahead: collections.deque[Key]

    def __init__(self, buffer: typing.Optional[Buffer] = None):
        self.buffer = buffer if buffer is not None else Buffer()
        self.mode_value = trio_util.AsyncValue(Mode.NORMAL)
        self.typeahead = collections.deque()
        self.key_observers: list[KeyObserver] = []
        self.mode_entry_observers: list[ModeEntryObserver] = []
        self.continuations: list[Continuation] = []
        self.command_line = ""
        self.terminal_line = ""
        self.terminal_output: list[str] = []
        self.messages: list[str] = []
        self.keys_processed = trio_util.AsyncValue(0)
        self.quit = trio_util.AsyncBool(False)
        self._terminal_escape_started = False

    @property
    def mode(self):
        return self.mode_value.value

    def feed_keys(self, keys: collections.abc.Sequence[Key]):
        self.typeahead.extendleft(reversed(keys))

    def schedule(self, continuation: Continuation):
        self.continuations.append(continuation)

    def add_key_observer(self, observer: KeyObserver):
        self.key_observers.append(observer)

    def add_mode_entry_observer(self, observer: ModeEntryObserver):
        self.mode_entry_observers.append(observer)

    def attach(self, detector: SequenceDetector):
        self.add_key_observer(detector.on_key)
        self.add_mode_entry_observer(detector.on_mode_entry)

    def edit(self, buffer: Buffer):
        "Switch to another buffer, closing the current one."
        self.buffer.close()
        self.buffer = buffer
        self._set_mode(Mode.NORMAL)

    async def type(self, notation: str):
        "Type keys as if from the keyboard, and wait until they have all been handled."
        self.typeahead.extend(parse_keys(notation))
        await self._drain()

    async def run(self, keystream: trio.MemoryReceiveChannel[Key], *, task_status=trio.TASK_STATUS_IGNORED):
        task_status.started()
        async with keystream:
            async for key in keystream:
                self.typeahead.append(key)
                await self._drain()
                if self.quit.value:
                    logger.debug("Editor quit")
                    return

    async def _drain(self):
        while self.typeahead or self.continuations:
            while self.typeahead:
                self._handle_key(self.typeahead.popleft())
            # let the dispatched keys settle before anything scheduled looks at the buffer
            await trio.lowlevel.checkpoint()
            continuations, self.continuations = self.continuations, []
            for continuation in continuations:
                continuation()

    def _handle_key(self, key: Key):
        mode = self.mode
        for observer in self.key_observers:
            observer(key, mode)
        match mode:
            case Mode.NORMAL:
                self._normal_key(key)
            case Mode.INSERT:
                self._insert_key(key)
            case Mode.REPLACE:
                self._replace_key(key)
            case Mode.COMMAND_LINE:
                self._command_line_key(key)
            case Mode.TERMINAL:
                self._terminal_key(key)
            case _:
                typing.assert_never(mode)
        self.keys_processed.value += 1

    def _set_mode(self, mode: Mode):
        if mode is self.mode:
            return
        logger.debug("Mode %s -> %s", self.mode.name, mode.name)
        self.mode_value.value = mode
        if mode is not Mode.NORMAL:
            for observer in self.mode_entry_observers:
                observer(mode, self.buffer)

    def _leave_editing_mode(self):
        self._set_mode(Mode.NORMAL)
        self.buffer.move(-1, allow_past_end=False)

    def _normal_key(self, key: Key):
        match key:
            case "i":
                self._set_mode(Mode.INSERT)
            case "a":
                self.buffer.move(1)
                self._set_mode(Mode.INSERT)
            case "A":
                self.buffer.move_to(len(self.buffer.current_line))
                self._set_mode(Mode.INSERT)
            case "R":
                self.buffer.begin_replace()
                self._set_mode(Mode.REPLACE)
            case ":":
                self.command_line = ""
                self._set_mode(Mode.COMMAND_LINE)
            case "T":
                self.terminal_line = ""
                self._terminal_escape_started = False
                self._set_mode(Mode.TERMINAL)
            case "h" | SpecialKey.LEFT:
                self.buffer.move(-1, allow_past_end=False)
            case "l" | SpecialKey.RIGHT:
                self.buffer.move(1, allow_past_end=False)
            case "0":
                self.buffer.move_to(0)
            case "$":
                self.buffer.move_to(len(self.buffer.current_line) - 1)

    def _insert_key(self, key: Key):
        match key:
            case SpecialKey.ESC:
                self._leave_editing_mode()
            case SpecialKey.BS:
                self.buffer.backspace()
            case SpecialKey.CR:
                self.buffer.new_line()
            case SpecialKey.TAB:
                self.buffer.keystroke("\t")
            case SpecialKey.LEFT:
                self.buffer.move(-1)
            case SpecialKey.RIGHT:
                self.buffer.move(1)
            case str() if self.buffer.graphical_char(key):
                self.buffer.keystroke(key)

    def _replace_key(self, key: Key):
        match key:
            case SpecialKey.ESC:
                self._leave_editing_mode()
            case SpecialKey.BS:
                self.buffer.restore()
            case SpecialKey.CR:
                self.buffer.new_line()
            case str() if self.buffer.graphical_char(key):
                self.buffer.overwrite(key)

    def _command_line_key(self, key: Key):
        match key:
            case SpecialKey.ESC:
                self._set_mode(Mode.NORMAL)
            case Ctrl(char="c"):
                self._set_mode(Mode.NORMAL)
            case SpecialKey.BS:
                if not self.command_line:
                    self._set_mode(Mode.NORMAL)
                self.command_line = self.command_line[:-1]
            case SpecialKey.CR:
                command, self.command_line = self.command_line, ""
                self._set_mode(Mode.NORMAL)
                self.execute(command)
            case str() if self.buffer.graphical_char(key):
                self.command_line += key

    def _terminal_key(self, key: Key):
        if self._terminal_escape_started:
            self._terminal_escape_started = False
            if key == TERMINAL_ESCAPE[1]:
                self._set_mode(Mode.NORMAL)
                return
        match key:
            case Ctrl(char="\\"):
                self._terminal_escape_started = True
            case Ctrl(char="c"):
                self.terminal_output.append(self.terminal_line + "^C")
                self.terminal_line = ""
            case SpecialKey.BS:
                self.terminal_line = self.terminal_line[:-1]
            case SpecialKey.CR:
                self.terminal_output.append(self.terminal_line)
                self.terminal_line = ""
            case str() if self.buffer.graphical_char(key):
                self.terminal_line += key

    def execute(self, command: str):
        command = command.strip()
        logger.debug("Executing :%s", command)
        match command:
            case "":
                pass
            case "w":
                self.buffer.mark_unmodified()
            case "wq" | "x":
                self.buffer.mark_unmodified()
                self.quit.value = True
            case "q":
                if self.buffer.modified:
                    self.messages.append("E37: No write since last change (add ! to override)")
                else:
                    self.quit.value = True
            case "q!":
                self.quit.value = True
            case _:
                self.messages.append(f"E492: Not an editor command: {command}")
