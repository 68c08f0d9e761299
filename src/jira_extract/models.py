"""Column types, attribute specs and the Issue view shared by every module."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# Object keys tried, in order, when a Jira object lands in a string column.
DISPLAY_KEYS = ("name", "displayName", "key", "value")

TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)
DATE_FORMAT = "%Y-%m-%d"


class ColumnType(str, Enum):
    STRING = "string"
    LONG = "long"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    JSON = "json"


@dataclass(frozen=True)
class AttributeSpec:
    name: str
    type: ColumnType


@dataclass(frozen=True)
class Column:
    index: int
    name: str
    type: ColumnType


# Nothing is carried between runs; the empty report is the whole contract.
CompletionReport = Dict[str, Any]


class Issue:
    """Read-only view over one issue returned by the search API.

    The ``fields`` object is merged into the top level, so ``issue["status"]``
    and ``issue["key"]`` look the same to callers. Dotted names walk nested
    objects (``issue["status.name"]``). A missing key or a JSON ``null`` both
    read as ``None``.
    """

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Issue":
        data = {k: v for k, v in payload.items() if k != "fields"}
        data.update(payload.get("fields") or {})
        return cls(data)

    @property
    def key(self) -> Optional[str]:
        return self._data.get("key")

    def __getitem__(self, name: str) -> Any:
        if name in self._data:
            return self._data[name]
        value: Any = self._data
        for part in name.split("."):
            if not isinstance(value, dict):
                return None
            value = value.get(part)
        return value

    def get(self, name: str, default: Any = None) -> Any:
        value = self[name]
        return default if value is None else value

    def __contains__(self, name: str) -> bool:
        return self[name] is not None

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"Issue(key={self.key!r})"


def cast_value(column_type: ColumnType, value: Any) -> Any:
    """Project a raw attribute value onto its column type.

    Returns ``None`` for absent values and for values whose shape does not fit
    the column (a dict in a long column, an unparseable date).
    """
    if value is None:
        return None
    caster = _CASTERS[column_type]
    return caster(value)


def _as_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        for key in DISPLAY_KEYS:
            if isinstance(value.get(key), str):
                return value[key]
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, list):
        return ",".join(_list_item_string(item) for item in value if item is not None)
    return str(value)


def _list_item_string(item: Any) -> str:
    if isinstance(item, list):
        return json.dumps(item, separators=(",", ":"))
    return _as_string(item)


def _as_long(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_double(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _as_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    return None


def _as_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.strptime(text, DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def _as_json(value: Any) -> Any:
    return value


_CASTERS = {
    ColumnType.STRING: _as_string,
    ColumnType.LONG: _as_long,
    ColumnType.DOUBLE: _as_double,
    ColumnType.BOOLEAN: _as_boolean,
    ColumnType.TIMESTAMP: _as_timestamp,
    ColumnType.JSON: _as_json,
}


def project(issue: Issue, attributes: List[AttributeSpec]) -> List[Any]:
    """Build one row from ``issue`` in attribute order."""
    return [cast_value(attr.type, issue[attr.name]) for attr in attributes]
