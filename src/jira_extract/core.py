"""Orchestrator: config -> columns -> tracker -> runner -> sink."""

import logging
from itertools import islice
from typing import Any, Callable, List, Optional, Sequence

from jira_extract.catalog import columns_for, resolve
from jira_extract.config import RunConfig
from jira_extract.models import Column, CompletionReport, project
from jira_extract.output import MemoryRowSink, RowSink
from jira_extract.runner import run
from jira_extract.trackers import setup_from_config
from jira_extract.trackers.base import BaseTracker

logger = logging.getLogger(__name__)

SinkFactory = Callable[[Sequence[Column]], RowSink]


class JiraExtractor:
    def __init__(self, config: RunConfig, tracker: Optional[BaseTracker] = None):
        self.config = config
        # Resolving first means a bad attribute list fails before any network call.
        self.attributes = resolve(config.attributes)
        self.columns: List[Column] = columns_for(self.attributes)
        self._tracker = tracker

    @property
    def tracker(self) -> BaseTracker:
        if self._tracker is None:
            self._tracker = setup_from_config(self.config)
        return self._tracker

    def transaction(self, sink_factory: SinkFactory) -> CompletionReport:
        """Run the extraction into a sink built for this run's columns."""
        tracker = self.tracker
        tracker.check_credentials()
        logger.info(
            "Extracting %d column(s) for JQL %r", len(self.columns), self.config.jql
        )
        with sink_factory(self.columns) as sink:
            return run(self.config.jql, self.attributes, tracker, sink)

    def preview(self, limit: int) -> List[List[Any]]:
        """Return up to ``limit`` rows without writing anything."""
        tracker = self.tracker
        tracker.check_credentials()
        with MemoryRowSink(self.columns) as sink:
            for issue in islice(tracker.search_issues(self.config.jql), limit):
                sink.add(project(issue, self.attributes))
        return sink.rows
