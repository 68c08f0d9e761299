"""Static table of extractable Jira attributes and their output types."""

from types import MappingProxyType
from typing import List, Sequence

from jira_extract.errors import ValidationError
from jira_extract.models import AttributeSpec, Column, ColumnType

_S = ColumnType.STRING
_L = ColumnType.LONG
_D = ColumnType.DOUBLE
_B = ColumnType.BOOLEAN
_T = ColumnType.TIMESTAMP
_J = ColumnType.JSON

SUPPORTED_ATTRIBUTES = MappingProxyType({
    "id": _L,
    "key": _S,
    "self": _S,
    "summary": _S,
    "description": _S,
    "environment": _S,
    "project": _S,
    "issuetype": _S,
    "issuetype.subtask": _B,
    "status": _S,
    "priority": _S,
    "resolution": _S,
    "assignee": _S,
    "reporter": _S,
    "creator": _S,
    "labels": _S,
    "components": _J,
    "fixVersions": _J,
    "versions": _J,
    "subtasks": _J,
    "issuelinks": _J,
    "attachment": _J,
    "comment": _J,
    "watches": _J,
    "watches.watchCount": _L,
    "watches.isWatching": _B,
    "votes": _J,
    "votes.votes": _L,
    "votes.hasVoted": _B,
    "progress": _J,
    "progress.percent": _D,
    "aggregateprogress": _J,
    "aggregateprogress.percent": _D,
    "workratio": _L,
    "timeestimate": _L,
    "timeoriginalestimate": _L,
    "timespent": _L,
    "aggregatetimespent": _L,
    "aggregatetimeestimate": _L,
    "aggregatetimeoriginalestimate": _L,
    "created": _T,
    "updated": _T,
    "resolutiondate": _T,
    "duedate": _T,
    "lastViewed": _T,
})

SUPPORTED_ATTRIBUTE_NAMES = tuple(SUPPORTED_ATTRIBUTES)


def resolve(requested_names: Sequence[str]) -> List[AttributeSpec]:
    """Validate ``requested_names`` and pair each with its output type.

    Every unsupported name is reported at once. Duplicates are kept, each
    occurrence becoming its own column, and the input order is preserved.
    """
    if not requested_names:
        raise ValidationError(
            [], SUPPORTED_ATTRIBUTE_NAMES,
            message="At least one attribute must be specified",
        )

    unsupported = [
        name for name in dict.fromkeys(requested_names)
        if name not in SUPPORTED_ATTRIBUTES
    ]
    if unsupported:
        raise ValidationError(unsupported, SUPPORTED_ATTRIBUTE_NAMES)

    return [AttributeSpec(name, SUPPORTED_ATTRIBUTES[name]) for name in requested_names]


def columns_for(attributes: Sequence[AttributeSpec]) -> List[Column]:
    return [Column(i, attr.name, attr.type) for i, attr in enumerate(attributes)]
