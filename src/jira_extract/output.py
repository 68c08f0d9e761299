"""Row sinks: stream projected rows to TSV/CSV files or keep them in memory."""

import csv
import io
import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional, Sequence

from jira_extract.errors import SinkError
from jira_extract.models import Column, ColumnType


class RowSink(ABC):
    """Append-only, single-writer destination for rows.

    ``finish`` must be called exactly once; ``add`` after ``finish`` is an
    error. Used as a context manager, a sink is finished on exit unless the
    caller already finished it; after an error it is only closed, so the
    original exception is the one that surfaces.
    """

    def __init__(self, columns: Sequence[Column]):
        self.columns = list(columns)
        self.finished = False

    def add(self, values: Sequence[Any]) -> None:
        if self.finished:
            raise SinkError("Cannot add a row to a finished sink")
        if len(values) != len(self.columns):
            raise SinkError(
                f"Row has {len(values)} value(s) but the sink has {len(self.columns)} column(s)"
            )
        self._add(values)

    def finish(self) -> None:
        if self.finished:
            raise SinkError("Sink is already finished")
        self.finished = True
        self._finish()

    @abstractmethod
    def _add(self, values: Sequence[Any]) -> None:
        ...

    @abstractmethod
    def _finish(self) -> None:
        ...

    def __enter__(self) -> "RowSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.finished:
            return
        if exc_type is None:
            self.finish()
            return
        self.finished = True
        self._close()

    def _close(self) -> None:
        self._finish()


class MemoryRowSink(RowSink):
    """Collect rows in a list (previews and tests)."""

    def __init__(self, columns: Sequence[Column]):
        super().__init__(columns)
        self.rows: List[List[Any]] = []

    def _add(self, values: Sequence[Any]) -> None:
        self.rows.append(list(values))

    def _finish(self) -> None:
        pass


class DelimitedRowSink(RowSink):
    """Write rows to a delimited text file, header first."""

    def __init__(self, filepath: str, columns: Sequence[Column], delimiter: str = "\t"):
        super().__init__(columns)
        self.filepath = filepath
        self.delimiter = delimiter
        self._fh: Optional[io.TextIOBase] = None
        self._writer = None
        self.rows_written = 0

    def _open(self) -> None:
        try:
            self._fh = open(self.filepath, "w", newline="", encoding="utf-8")
        except OSError as exc:
            raise SinkError(f"Cannot open {self.filepath}: {exc}") from exc
        self._writer = csv.writer(self._fh, delimiter=self.delimiter)
        self._write([col.name for col in self.columns])

    def _write(self, cells: List[str]) -> None:
        try:
            self._writer.writerow(cells)
        except OSError as exc:
            raise SinkError(f"Cannot write to {self.filepath}: {exc}") from exc

    def _add(self, values: Sequence[Any]) -> None:
        if self._writer is None:
            self._open()
        self._write([format_cell(col, v) for col, v in zip(self.columns, values)])
        self.rows_written += 1

    def _finish(self) -> None:
        if self._writer is None:
            self._open()
        try:
            self._fh.close()
        except OSError as exc:
            raise SinkError(f"Cannot close {self.filepath}: {exc}") from exc

    def _close(self) -> None:
        if self._fh is not None:
            self._fh.close()


def tsv_sink(filepath: str, columns: Sequence[Column]) -> DelimitedRowSink:
    return DelimitedRowSink(filepath, columns, delimiter="\t")


def csv_sink(filepath: str, columns: Sequence[Column]) -> DelimitedRowSink:
    return DelimitedRowSink(filepath, columns, delimiter=",")


def format_cell(column: Column, value: Any) -> str:
    """Render one value as text; ``None`` becomes an empty cell."""
    if value is None:
        return ""
    if column.type is ColumnType.JSON:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def rows_to_bytes(columns: Sequence[Column], rows: Sequence[Sequence[Any]], fmt: str = "tsv") -> bytes:
    """Serialize rows to bytes, header included."""
    buf = io.StringIO()
    delimiter = "\t" if fmt == "tsv" else ","
    writer = csv.writer(buf, delimiter=delimiter)
    writer.writerow([col.name for col in columns])
    for row in rows:
        writer.writerow([format_cell(col, v) for col, v in zip(columns, row)])
    return buf.getvalue().encode("utf-8")
