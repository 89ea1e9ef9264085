"""Exception types raised by the task ledger core."""


class TaskLedgerError(Exception):
    """Base class for all task ledger errors."""


class DomainValidationError(TaskLedgerError, ValueError):
    """A value broke a Task or User rule (empty title, bad email, ...)."""


class DuplicateUserError(DomainValidationError):
    """A username or email is already taken by another user."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"{field.capitalize()} '{value}' is already in use")


class PersistenceError(TaskLedgerError):
    """The in-memory change was applied but could not be written to storage."""

    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"Failed to persist '{entity_name}' snapshot")
