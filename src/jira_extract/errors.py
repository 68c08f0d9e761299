"""Exceptions raised by jira-extract."""

from typing import Iterable, List, Optional


class JiraExtractError(Exception):
    """Base class for every error this package raises on purpose."""


class ConfigurationError(JiraExtractError):
    """A required configuration key is missing or malformed."""


class ValidationError(JiraExtractError):
    """One or more requested attributes are not in the supported set."""

    def __init__(
        self,
        unsupported: Iterable[str],
        supported: Iterable[str],
        message: Optional[str] = None,
    ):
        self.unsupported: List[str] = list(unsupported)
        self.supported: List[str] = list(supported)
        if message is None:
            names = ", ".join(f"'{name}'" for name in self.unsupported)
            message = (
                f"Unsupported Jira attributes specified: {names}. "
                f"Supported attributes are: {', '.join(self.supported)}"
            )
        super().__init__(message)


class TrackerError(JiraExtractError):
    """The Jira API returned an error or could not be reached."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"JIRA returned status ({status_code}): {message}")


class SinkError(JiraExtractError):
    """A row sink was misused or failed to write."""
