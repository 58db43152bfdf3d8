"""Domain errors shared by the core and the shell."""


class CadenceError(Exception):
    """Base class for all Cadence errors."""

    pass


class ConfigError(CadenceError):
    """Raised when a recurrence definition cannot be understood."""

    pass


class ValidationError(CadenceError):
    """Raised when a submission or approval is rejected before any write."""

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code)
        self.code = code


class ConflictError(CadenceError):
    """Raised by a store when a uniqueness constraint is violated."""

    pass


class AuthorizationError(CadenceError):
    """Raised when someone other than the assignee's manager reviews a record."""

    pass


class NotFoundError(CadenceError):
    """Raised when a person, assignment or completion does not exist."""

    pass


class StoreUnavailableError(CadenceError):
    """Raised when the persistence layer cannot be reached."""

    pass
