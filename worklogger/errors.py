"""Exceptions raised while loading, validating and uploading work logs."""


class WorkLoggerError(Exception):
    """Base class for all work logger errors."""


class ConfigurationError(WorkLoggerError):
    """Missing or invalid configuration. Fatal before processing starts."""


class FormatError(WorkLoggerError):
    """Unparseable work log file, JSON document or date."""


class InvalidFormat(FormatError):
    pass


class UnknownMonth(FormatError):
    pass


class InvalidCalendarDate(FormatError):
    pass


class ValidationError(WorkLoggerError):
    """A single work log entry failed validation."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class RemoteOperationError(WorkLoggerError):
    """A call to the OpenProject API failed."""

    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = list(details or [])


class DuplicateLookupError(WorkLoggerError):
    """The remote duplicate check could not be completed."""


class ServerDuplicatesError(WorkLoggerError):
    """Entries collide with work packages that already exist on the server."""

    def __init__(self, duplicates):
        self.duplicates = list(duplicates)
        lines = [dup.message for dup in self.duplicates]
        super().__init__(
            f"{len(self.duplicates)} entr{'y' if len(self.duplicates) == 1 else 'ies'} "
            f"already exist on the server:\n" + "\n".join(lines)
        )
