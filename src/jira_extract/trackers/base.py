"""Abstract base class for issue trackers."""

from abc import ABC, abstractmethod
from typing import Iterator

from jira_extract.models import Issue


class BaseTracker(ABC):
    @abstractmethod
    def search_issues(self, query: str) -> Iterator[Issue]:
        """Yield issues matching ``query`` lazily, fetching pages on demand."""
        ...

    @abstractmethod
    def check_credentials(self) -> None:
        """Raise ConfigurationError if the tracker rejects the credentials."""
        ...
