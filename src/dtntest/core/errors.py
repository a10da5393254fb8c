"""Exceptions raised by the harness before any test runs."""


class UsageError(Exception):
    """Raised for bad flags, malformed arguments or unknown test names."""

    pass


class UnknownTestError(UsageError):
    """Raised when a test name is not in the registry."""

    def __init__(self, name: str):
        super().__init__(f"Incorrect test name: {name}")
        self.name = name


class SetupError(Exception):
    """Raised when the suite cannot be assembled."""

    pass
