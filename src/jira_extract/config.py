"""Run configuration: typed, fail-fast extraction from a plain mapping."""

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping, Tuple
from urllib.parse import urlparse

from jira_extract.errors import ConfigurationError

DEFAULT_API_VERSION = "latest"
DEFAULT_AUTH_TYPE = "basic"
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
DEFAULT_TIMEOUT = 300
DEFAULT_RETRY_LIMIT = 5
MAX_RETRY_LIMIT = 10
DEFAULT_INITIAL_RETRY_INTERVAL_MILLIS = 1000
DEFAULT_MAXIMUM_RETRY_INTERVAL_MILLIS = 120000

SUPPORTED_AUTH_TYPES = ("basic",)

_MISSING = object()


@dataclass(frozen=True)
class RunConfig:
    username: str
    password: str
    uri: str
    jql: str
    attributes: Tuple[str, ...]
    api_version: str = DEFAULT_API_VERSION
    auth_type: str = DEFAULT_AUTH_TYPE
    page_size: int = DEFAULT_PAGE_SIZE
    expand: Tuple[str, ...] = ()
    timeout: int = DEFAULT_TIMEOUT
    retry_limit: int = DEFAULT_RETRY_LIMIT
    initial_retry_interval_millis: int = DEFAULT_INITIAL_RETRY_INTERVAL_MILLIS
    maximum_retry_interval_millis: int = DEFAULT_MAXIMUM_RETRY_INTERVAL_MILLIS

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "RunConfig":
        """Build a validated config, raising ConfigurationError on the first problem."""
        config = cls(
            username=_require(mapping, "username", str),
            password=_require(mapping, "password", str),
            uri=_require(mapping, "uri", str),
            jql=_require(mapping, "jql", str),
            attributes=_require_names(mapping, "attributes"),
            api_version=_optional(mapping, "api_version", str, DEFAULT_API_VERSION),
            auth_type=_optional(mapping, "auth_type", str, DEFAULT_AUTH_TYPE),
            page_size=_optional(mapping, "page_size", int, DEFAULT_PAGE_SIZE),
            expand=_optional_names(mapping, "expand"),
            timeout=_optional(mapping, "timeout", int, DEFAULT_TIMEOUT),
            retry_limit=_optional(mapping, "retry_limit", int, DEFAULT_RETRY_LIMIT),
            initial_retry_interval_millis=_optional(
                mapping, "initial_retry_interval_millis", int,
                DEFAULT_INITIAL_RETRY_INTERVAL_MILLIS,
            ),
            maximum_retry_interval_millis=_optional(
                mapping, "maximum_retry_interval_millis", int,
                DEFAULT_MAXIMUM_RETRY_INTERVAL_MILLIS,
            ),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if not self.username.strip():
            raise ConfigurationError("Username or email could not be empty")
        if not self.password.strip():
            raise ConfigurationError("Password could not be empty")
        if not self.uri.strip():
            raise ConfigurationError("JIRA API endpoint could not be empty")
        if not _is_valid_uri(self.uri):
            raise ConfigurationError("JIRA API endpoint is incorrect or not available")
        if self.auth_type not in SUPPORTED_AUTH_TYPES:
            raise ConfigurationError(f"Unsupported auth_type: '{self.auth_type}'")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ConfigurationError(
                f"Page size should between 1 and {MAX_PAGE_SIZE}"
            )
        if self.timeout < 1:
            raise ConfigurationError("Timeout should be equal or greater than 1")
        if not 0 <= self.retry_limit <= MAX_RETRY_LIMIT:
            raise ConfigurationError(
                f"Retry limit should between 0 and {MAX_RETRY_LIMIT}"
            )
        if self.initial_retry_interval_millis < 1:
            raise ConfigurationError(
                "Initial retry delay should be equal or greater than 1"
            )
        if self.maximum_retry_interval_millis < self.initial_retry_interval_millis:
            raise ConfigurationError(
                "Maximum retry delay should be equal or greater than the initial retry delay"
            )


def load_config(filepath: str) -> dict:
    """Read a JSON config object from ``filepath``."""
    try:
        with open(filepath, encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {filepath}")
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Config file is not valid JSON: {filepath} ({exc})")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a JSON object: {filepath}")
    return data


def _require(mapping: Mapping[str, Any], key: str, kind: type) -> Any:
    value = mapping.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise ConfigurationError(f"Missing required config key: '{key}'")
    return _check_type(key, value, kind)


def _optional(mapping: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = mapping.get(key)
    if value is None:
        return default
    return _check_type(key, value, kind)


def _check_type(key: str, value: Any, kind: type) -> Any:
    # bool is an int subclass; a flag is never a valid count.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigurationError(f"Config key '{key}' must be {_TYPE_NAMES[kind]}")
    return value


def _require_names(mapping: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = mapping.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise ConfigurationError(f"Missing required config key: '{key}'")
    return _check_names(key, value)


def _optional_names(mapping: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = mapping.get(key)
    if value is None:
        return ()
    return _check_names(key, value)


def _check_names(key: str, value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"Config key '{key}' must be a list of strings")
    return tuple(value)


def _is_valid_uri(uri: str) -> bool:
    if re.search(r"\s", uri):
        return False
    parsed = urlparse(uri)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


_TYPE_NAMES = {str: "a string", int: "an integer"}
