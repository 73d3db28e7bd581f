"""
Exceptions raised while building an Anki deck.

Internal steps raise :class:`SchemaError`, :class:`InsertError` or
:class:`PackagingError`. The public entry point wraps any of them in a single
:class:`DeckCreationError`. Cleanup problems are reported as
:class:`CleanupWarning` through :mod:`warnings` and are never raised.
"""


class AnkiDeckError(Exception):
    """Base exception for deck generation errors."""


class SchemaError(AnkiDeckError):
    """Raised when a table or index statement fails."""

    def __init__(self, message: str, statement: str | None = None) -> None:
        super().__init__(message)
        self.statement = statement


class InsertError(AnkiDeckError):
    """Raised when a row cannot be inserted into the collection database.

    :param table: Table the row was destined for (``col``, ``notes``, ``cards``).
    :param position: Zero-based card position, or ``None`` for the collection row.
    :param cause: Underlying driver error message.
    """

    def __init__(self, table: str, position: int | None, cause: str) -> None:
        if position is None:
            message = f"Failed to insert {table} row: {cause}"
        else:
            message = f"Failed to insert {table} row for card {position}: {cause}"
        super().__init__(message)
        self.table = table
        self.position = position
        self.cause = cause


class PackagingError(AnkiDeckError):
    """Raised when the .apkg archive cannot be assembled."""

    def __init__(self, message: str, step: str, path: str | None = None) -> None:
        super().__init__(message)
        self.step = step
        self.path = path


class DeckCreationError(AnkiDeckError):
    """The only error raised by :func:`anki_deck.deck.create_deck`."""


class CleanupWarning(UserWarning):
    """Temporary files could not be removed after building a deck."""
