"""Exception hierarchy shared by the scanner, the assembler and the sync engine."""

from __future__ import annotations


class ReversoError(Exception):
    """Base class for all reverso errors."""


class ConfigError(ReversoError):
    """Raised when the configuration file cannot be read or is invalid."""


class ParseError(ReversoError):
    """A source file could not be read or parsed."""

    def __init__(self, file: str, cause: BaseException | str) -> None:
        self.file = file
        self.cause = cause
        super().__init__(f"{file}: {cause}")


class ValidationError(ReversoError):
    """A marker or schema element violates the path grammar or the schema rules."""


class PathError(ValidationError):
    """A field path does not follow ``segment ("." segment)+``."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f'Invalid path "{path}": {reason}')


class SchemaConflictError(ValidationError):
    """The same path is declared with different modifiers in two places."""

    def __init__(self, path: str, first: str, second: str, differing: list[str]) -> None:
        self.path = path
        self.first = first
        self.second = second
        self.differing = differing
        super().__init__(
            f'Conflicting declarations for "{path}" ({", ".join(differing)}) in {first} and {second}'
        )


class SyncError(ReversoError):
    """Synchronizing a schema into the store failed; nothing was applied."""

    def __init__(self, entity: str, key: str, cause: BaseException) -> None:
        self.entity = entity
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to sync {entity} '{key}': {cause}")


class FieldNotFoundError(ReversoError):
    """No persisted field has the requested path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No field with path '{path}'")
