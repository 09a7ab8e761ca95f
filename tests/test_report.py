"""Tests for report rows and text rendering."""

from datetime import datetime

import pytest

from conftest import NOW, make_record
from pyps.models import Metrics, ProcessEntry
from pyps.monitor import Snapshot
from pyps.report import (
    HEADER,
    ReportRow,
    SortKey,
    build_row,
    build_rows,
    command_for,
    exe_for,
    format_cpu_time,
    format_kb,
    format_start,
    printable,
    render_text,
    sort_rows,
)


def make_entry(start_time=NOW - 60, **record_fields):
    metrics = Metrics(
        cpu_percent=12.345,
        memory_percent=1.5,
        rss_kb=2048,
        vsz_kb=10240,
        cpu_seconds=125.7,
        start_time=start_time,
    )
    return ProcessEntry(record=make_record(**record_fields), metrics=metrics)


def make_row(pid, user="alice", cpu=0.0, mem=0.0, exe=""):
    return ReportRow(
        user=user,
        pid=pid,
        cpu_percent=cpu,
        memory_percent=mem,
        vsz_kb=0,
        rss_kb=0,
        tty="?",
        stat="S",
        start="00:00",
        time="0:00",
        command="cmd",
        exe=exe,
    )


def test_format_kb():
    """Test format_kb picks a sensible unit."""
    assert format_kb(500).endswith("K")
    assert format_kb(2048).endswith("M")
    assert format_kb(5 * 1024 * 1024).endswith("G")


def test_format_cpu_time():
    assert format_cpu_time(0) == "0:00"
    assert format_cpu_time(125.7) == "2:05"
    assert format_cpu_time(3600) == "60:00"


def test_format_start():
    """Test ps style start times for today, this year and earlier years."""
    now = datetime(2024, 6, 15, 12, 0).timestamp()
    assert format_start(datetime(2024, 6, 15, 9, 30).timestamp(), now) == "09:30"
    assert format_start(datetime(2024, 3, 2, 9, 30).timestamp(), now) == "Mar02"
    assert format_start(datetime(2021, 3, 2, 9, 30).timestamp(), now) == "2021"


def test_printable():
    """Test control characters and undecodable bytes are made printable."""
    assert printable("a\nb\tc") == "a?b?c"
    assert printable(b"caf\xe9".decode("utf-8", "surrogateescape")) == "caf�"


class TestCommand:
    """Tests for command_for."""

    def test_joined_arguments(self):
        assert command_for(make_entry(cmdline=("sleep", "60"))) == "sleep 60"

    def test_empty_cmdline_uses_name(self):
        """Test kernel threads show their bracketed name."""
        assert command_for(make_entry(cmdline=(), name="kworker/0:1")) == "[kworker/0:1]"

    def test_withheld_cmdline(self):
        entry = make_entry(cmdline=(), withheld=frozenset({"cmdline"}))
        assert command_for(entry) == "-"


class TestExe:
    """Tests for exe_for."""

    def test_path(self):
        assert exe_for(make_entry(exe="/usr/bin/sleep")) == "/usr/bin/sleep"

    def test_no_executable_is_blank(self):
        """Test kernel threads and zombies leave the column empty."""
        assert exe_for(make_entry(exe=None)) == ""

    def test_withheld_exe(self):
        """Test an unreadable link is told apart from a missing one."""
        entry = make_entry(exe=None, withheld=frozenset({"exe"}))
        assert exe_for(entry) == "-"


def test_build_row():
    """Test every output column is populated."""
    entry = make_entry(pid=77, uid=0, tty="pts/3", state_code="Z", cmdline=("a", "b"), exe="/bin/a")
    row = build_row(entry, NOW, resolve=lambda uid: "root" if uid == 0 else str(uid))

    assert row.user == "root"
    assert row.pid == 77
    assert row.cpu_percent == 12.345
    assert row.memory_percent == 1.5
    assert row.vsz_kb == 10240
    assert row.rss_kb == 2048
    assert row.tty == "pts/3"
    assert row.stat == "Z"
    assert row.time == "2:05"
    assert row.command == "a b"
    assert row.exe == "/bin/a"


def test_build_row_without_tty():
    row = build_row(make_entry(tty=None), NOW, resolve=str)
    assert row.tty == "?"


def test_build_rows_unresolvable_user(context):
    """Test an unknown uid falls back to the numeric id."""
    snapshot = Snapshot(context=context, entries=[make_entry(uid=123456789)], taken_at=NOW)

    rows = build_rows(snapshot, resolve=str)

    assert [row.user for row in rows] == ["123456789"]


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        (SortKey.CPU, [2, 3, 1]),
        (SortKey.MEM, [1, 3, 2]),
        (SortKey.PID, [1, 2, 3]),
        (SortKey.USER, [3, 1, 2]),
    ],
)
def test_sort_rows(key, expected):
    rows = [
        make_row(1, user="bob", cpu=1.0, mem=9.0),
        make_row(2, user="carol", cpu=5.0, mem=1.0),
        make_row(3, user="Alice", cpu=2.0, mem=4.0),
    ]
    assert [row.pid for row in sort_rows(rows, key)] == expected


def test_render_text():
    """Test the header and one aligned line per row."""
    rows = [make_row(1, user="averyverylongname", cpu=3.14159), make_row(22, exe="/usr/bin/cmd")]
    lines = render_text(rows).splitlines()

    assert lines[0].split() == list(HEADER)
    assert len(lines) == 3
    assert lines[1].startswith("averyve+")
    assert lines[1].split()[1:4] == ["1", "3.1", "0.0"]
    assert lines[2].endswith("cmd")
    assert lines[2].split()[-2:] == ["/usr/bin/cmd", "cmd"]


def test_render_empty():
    """Test an empty report is just the header."""
    assert len(render_text([]).splitlines()) == 1
