# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Keystroke flow
# host level: the editor pulls one key at a time off its typeahead and shows it to every key observer
# detector level: pending first character, timeout, match, escape keys fed back ahead of the typeahead
# after the typeahead drains: reconcile the modified flag if the net edit was a no-op
from .actions import Computed, Disabled, EscapeAction, FixedSequence
from .commontypes import DocumentClosed, EscapistError, InvalidPosition, KeyNotationError, Mode, Position, SettingsError
from .detector import SequenceDetector
from .editor import Buffer, Editor
from .settings import Diagnostic, Settings

__all__ = [
    "Buffer",
    "Computed",
    "Diagnostic",
    "Disabled",
    "DocumentClosed",
    "Editor",
    "EscapeAction",
    "EscapistError",
    "FixedSequence",
    "InvalidPosition",
    "KeyNotationError",
    "Mode",
    "Position",
    "SequenceDetector",
    "SettingsError",
    "Settings",
]
