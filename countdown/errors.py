from typing import List

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


class CountdownError(Exception):
    """Base class for failures that stop a countdown before it starts."""

    exit_code = EXIT_FAILURE


class ParseError(CountdownError):
    """Raised when a duration or until value matches no accepted form."""


class ConfirmationDeclined(CountdownError):
    """Raised when the user refuses a long rolled-over wait."""


class RenderDependencyMissing(CountdownError):
    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing dependencies: {' '.join(self.missing)}")


class Interrupted(Exception):
    """Cooperative cancellation observed at a safe point."""

    exit_code = EXIT_INTERRUPTED
