"""Extraction runner: stream one query's issues into a row sink."""

import logging
from typing import Sequence

from jira_extract.models import AttributeSpec, CompletionReport, project
from jira_extract.output import RowSink
from jira_extract.trackers.base import BaseTracker

logger = logging.getLogger(__name__)


def run(
    query: str,
    attributes: Sequence[AttributeSpec],
    tracker: BaseTracker,
    sink: RowSink,
) -> CompletionReport:
    """Project every issue matching ``query`` into ``sink``, then finish it.

    Issues are pulled one at a time and each row is pushed as soon as it is
    built. Errors from the tracker or the sink propagate as they are and leave
    the sink unfinished; finishing it after a failure is the caller's job.
    """
    attributes = list(attributes)
    count = 0
    for issue in tracker.search_issues(query):
        sink.add(project(issue, attributes))
        count += 1

    sink.finish()
    logger.debug("Emitted %d row(s) for query %r", count, query)
    return {}
