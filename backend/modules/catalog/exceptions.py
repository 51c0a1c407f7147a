"""
Exceptions raised by the server catalogue and its reconcilers.

Not-found is deliberately absent: lookups return None and mutations return
False when the id does not exist.
"""


class CatalogError(Exception):
    """Base exception for all catalogue errors."""


class ServerValidationError(CatalogError, ValueError):
    """Malformed server input, e.g. a command-kind server without a command."""


class DuplicateNameError(CatalogError):
    """A server with the same name already exists in the catalogue."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Server with name "{name}" already exists.')


class MigrationError(CatalogError):
    """
    The store could not be brought to the current schema.

    Fatal: no store handle is produced and the catalogue is unusable until
    the underlying problem is resolved.
    """
