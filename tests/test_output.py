import csv
from datetime import datetime, timezone

import pytest

from jira_extract.catalog import columns_for, resolve
from jira_extract.errors import SinkError
from jira_extract.output import (
    MemoryRowSink,
    csv_sink,
    format_cell,
    rows_to_bytes,
    tsv_sink,
)


def _columns():
    return columns_for(resolve(["key", "created", "components", "votes.hasVoted", "timespent"]))


def _sample_rows():
    return [
        ["DEMO-1", datetime(2019, 1, 1, tzinfo=timezone.utc), [{"name": "auth"}], True, 3600],
        ["DEMO-2", None, None, None, None],
    ]


def test_tsv_sink_writes_header_and_rows(tmp_path):
    path = str(tmp_path / "issues.tsv")
    sink = tsv_sink(path, _columns())
    for row in _sample_rows():
        sink.add(row)
    sink.finish()

    with open(path, newline="") as fh:
        rows = list(csv.reader(fh, delimiter="\t"))
    assert rows == [
        ["key", "created", "components", "votes.hasVoted", "timespent"],
        ["DEMO-1", "2019-01-01T00:00:00+00:00", '[{"name":"auth"}]', "true", "3600"],
        ["DEMO-2", "", "", "", ""],
    ]
    assert sink.rows_written == 2


def test_csv_sink_uses_commas(tmp_path):
    path = str(tmp_path / "issues.csv")
    with csv_sink(path, _columns()) as sink:
        sink.add(_sample_rows()[1])

    with open(path, newline="") as fh:
        rows = list(csv.DictReader(fh))
    assert len(rows) == 1
    assert rows[0]["key"] == "DEMO-2"


def test_empty_run_writes_header_only(tmp_path):
    path = str(tmp_path / "issues.tsv")
    sink = tsv_sink(path, _columns())
    sink.finish()

    with open(path) as fh:
        assert fh.read().strip() == "key\tcreated\tcomponents\tvotes.hasVoted\ttimespent"


def test_add_after_finish_fails():
    sink = MemoryRowSink(_columns())
    sink.finish()
    with pytest.raises(SinkError, match="finished"):
        sink.add(_sample_rows()[0])


def test_double_finish_fails():
    sink = MemoryRowSink(_columns())
    sink.finish()
    with pytest.raises(SinkError, match="already finished"):
        sink.finish()


def test_row_width_must_match_columns():
    sink = MemoryRowSink(_columns())
    with pytest.raises(SinkError, match="1 value"):
        sink.add(["DEMO-1"])


def test_context_manager_finishes_after_error():
    sink = MemoryRowSink(_columns())
    with pytest.raises(RuntimeError):
        with sink:
            sink.add(_sample_rows()[0])
            raise RuntimeError("tracker went away")
    assert sink.finished
    assert len(sink.rows) == 1


def test_context_manager_does_not_finish_twice():
    with MemoryRowSink(_columns()) as sink:
        sink.finish()
    assert sink.finished


def test_unwritable_path_raises_sink_error(tmp_path):
    sink = tsv_sink(str(tmp_path / "missing-dir" / "issues.tsv"), _columns())
    with pytest.raises(SinkError, match="Cannot open"):
        sink.add(_sample_rows()[0])


def test_open_failure_inside_with_block_surfaces_once(tmp_path):
    path = tmp_path / "missing-dir" / "issues.tsv"
    with pytest.raises(SinkError, match="Cannot open") as exc_info:
        with tsv_sink(str(path), _columns()) as sink:
            sink.add(_sample_rows()[0])
    chained = []
    err = exc_info.value.__context__
    while err is not None:
        chained.append(err)
        err = err.__context__
    assert not any(isinstance(e, SinkError) for e in chained)
    assert sink.finished
    assert not path.parent.exists()


def test_error_inside_with_block_keeps_written_rows(tmp_path):
    path = str(tmp_path / "issues.tsv")
    with pytest.raises(RuntimeError):
        with tsv_sink(path, _columns()) as sink:
            sink.add(_sample_rows()[0])
            raise RuntimeError("tracker went away")

    with open(path, newline="") as fh:
        rows = list(csv.reader(fh, delimiter="\t"))
    assert [r[0] for r in rows] == ["key", "DEMO-1"]


def test_format_cell_json_string_is_quoted():
    column = columns_for(resolve(["comment"]))[0]
    assert format_cell(column, "plain") == '"plain"'


def test_rows_to_bytes():
    data = rows_to_bytes(_columns(), _sample_rows(), fmt="csv")
    lines = data.decode("utf-8").strip().splitlines()
    assert len(lines) == 3  # header + 2 rows
    assert lines[0] == "key,created,components,votes.hasVoted,timespent"
