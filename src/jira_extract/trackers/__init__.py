"""Issue tracker clients."""

from jira_extract.trackers.base import BaseTracker
from jira_extract.trackers.jira import JiraClient, setup, setup_from_config

__all__ = ["BaseTracker", "JiraClient", "setup", "setup_from_config"]
