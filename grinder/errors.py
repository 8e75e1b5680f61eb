"""Exceptions raised by the grinder persistence layer."""


class GrinderError(Exception):
    """Base class for all grinder storage errors."""


class SchemaError(GrinderError):
    """A migration step failed to apply or revert.

    Fatal at startup: the process should not continue against a store
    whose schema is not at the expected version.
    """

    def __init__(self, message: str, identifier: str | None = None):
        super().__init__(message)
        self.identifier = identifier


class IrreversibleStepError(SchemaError):
    """The migration step has no reverse path (its forward path drops data)."""


class ConflictError(GrinderError):
    """A write violated a uniqueness constraint.

    Recoverable: retry the whole operation with a fresh read.
    """


class NotFoundError(GrinderError):
    """A referenced migration step does not exist."""
