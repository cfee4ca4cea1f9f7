# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import dataclasses
import logging
import typing

from .commontypes import DocumentClosed, InvalidPosition

if typing.TYPE_CHECKING:
    from .host import Document


logger = logging.getLogger(__name__)


@dataclasses.dataclass(kw_only=True, frozen=True)
class Reconciliation:
    document: Document
    snapshot: str


# Typing two characters and then backspacing over them leaves the text exactly as it
# was, but the host still considers the document modified. If the document was
# unmodified when the editing mode was entered, and the text afterwards is identical
# to what it was then, the modified flag can safely be cleared again.
class ModificationTracker:
    _snapshot: typing.Optional[Reconciliation]

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._snapshot = None

    @property
    def has_snapshot(self):
        return self._snapshot is not None

    def snapshot_on_mode_entry(self, document: Document):
        self._snapshot = None
        if not self.enabled:
            return
        try:
            if document.modified:
                return
            self._snapshot = Reconciliation(document=document, snapshot=document.content())
        except DocumentClosed:
            logger.debug("Not taking a snapshot of a closed document")

    def take_snapshot(self) -> typing.Optional[Reconciliation]:
        snapshot, self._snapshot = self._snapshot, None
        return snapshot

    @staticmethod
    def reconcile(reconciliation: Reconciliation) -> bool:
        "Returns True if the modified flag was cleared."
        document = reconciliation.document
        try:
            if not document.is_valid:
                return False
            if document.content() != reconciliation.snapshot:
                return False
            position = document.cursor
            # some hosts reset the flag by undoing, which moves the cursor
            document.mark_unmodified()
            try:
                document.set_cursor(position)
            except InvalidPosition:
                logger.debug("Cursor position %r no longer exists", position)
        except DocumentClosed:
            logger.debug("Document closed before reconciliation")
            return False
        logger.debug("Net edit was a no-op; document is unmodified again")
        return True
