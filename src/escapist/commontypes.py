import enum

import msgspec


class Mode(enum.Enum):
    NORMAL = "n"
    INSERT = "i"
    REPLACE = "R"
    TERMINAL = "t"
    COMMAND_LINE = "c"

    @enum.property
    def can_escape(self):
        return self is not Mode.NORMAL

    @enum.property
    def edits_buffer(self):
        return self is Mode.INSERT or self is Mode.REPLACE

    @classmethod
    def from_identifier(cls, identifier: str):
        try:
            return cls(identifier)
        except ValueError:
            return None


ESCAPABLE_MODES = tuple(m for m in Mode if m.can_escape)


class Position(msgspec.Struct, frozen=True, order=True):
    line: int
    column: int

    @classmethod
    def origin(cls):
        return cls(line=0, column=0)


class EscapistError(Exception):
    pass


class DocumentClosed(EscapistError):
    def __init__(self, document_id):
        super().__init__(f"Document {document_id} is closed")
        self.document_id = document_id


class InvalidPosition(EscapistError):
    def __init__(self, position: Position):
        super().__init__(f"Position {position.line}:{position.column} is outside the document")
        self.position = position


class KeyNotationError(EscapistError):
    pass


class SettingsError(EscapistError):
    pass
