"""Command-line interface for jira-extract."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from jira_extract.catalog import SUPPORTED_ATTRIBUTES
from jira_extract.config import RunConfig, load_config
from jira_extract.core import JiraExtractor
from jira_extract.errors import JiraExtractError
from jira_extract.output import csv_sink, rows_to_bytes, tsv_sink

PASSWORD_ENV = "JIRA_PASSWORD"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jira-extract",
        description="Extract Jira issues matching a JQL query into a TSV/CSV table.",
    )
    parser.add_argument(
        "-c", "--config", type=str, default=None,
        help="JSON config file (keys: username, password, uri, jql, attributes, ...)",
    )
    parser.add_argument("--uri", type=str, default=None, help="Jira base URI")
    parser.add_argument("--username", type=str, default=None, help="Jira username or email")
    parser.add_argument(
        "--password", type=str, default=None,
        help=f"Jira password or API token (env: {PASSWORD_ENV})",
    )
    parser.add_argument("--jql", type=str, default=None, help="JQL query, passed verbatim")
    parser.add_argument(
        "-a", "--attribute", action="append", dest="attributes", default=None,
        help="Attribute to extract; repeat for several columns, in output order",
    )
    parser.add_argument(
        "-o", "--output", type=str, default="jira_issues.tsv",
        help="Output file path (default: jira_issues.tsv)",
    )
    parser.add_argument(
        "--format", choices=["tsv", "csv"], default="tsv", dest="fmt",
        help="Output format (default: tsv)",
    )
    parser.add_argument(
        "--preview", type=int, default=None, metavar="N",
        help="Print the first N rows to stdout instead of writing a file",
    )
    parser.add_argument(
        "--list-attributes", action="store_true",
        help="List supported attributes and their types, then exit",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose/debug logging",
    )
    return parser


def collect_settings(args: argparse.Namespace) -> dict:
    """Merge the config file, command-line overrides and the environment."""
    settings = load_config(args.config) if args.config else {}
    for key in ("uri", "username", "password", "jql", "attributes"):
        value = getattr(args, key)
        if value is not None:
            settings[key] = value
    if settings.get("password") is None and os.environ.get(PASSWORD_ENV):
        settings["password"] = os.environ[PASSWORD_ENV]
    return settings


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if args.list_attributes:
        for name, column_type in SUPPORTED_ATTRIBUTES.items():
            print(f"{name}\t{column_type.value}")
        return

    if args.preview is not None and args.preview < 1:
        parser.error("--preview must be a positive number of rows.")

    try:
        config = RunConfig.from_mapping(collect_settings(args))
        extractor = JiraExtractor(config)

        if args.preview is not None:
            rows = extractor.preview(args.preview)
            sys.stdout.write(rows_to_bytes(extractor.columns, rows, args.fmt).decode("utf-8"))
            return

        make_sink = csv_sink if args.fmt == "csv" else tsv_sink
        print(f"Extracting {', '.join(config.attributes)} for: {config.jql or '(all issues)'}")
        sink = make_sink(args.output, extractor.columns)
        extractor.transaction(lambda columns: sink)
    except JiraExtractError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Done. {sink.rows_written} row(s) written.")
    print(f"Output: {args.output}")


if __name__ == "__main__":
    main()
