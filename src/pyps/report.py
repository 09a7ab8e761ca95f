"""Report rows in the style of ps aux, and their plain-text rendering."""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pyps.models import ProcessEntry
from pyps.monitor import Snapshot
from pyps.users import resolve_username

NO_TTY = "?"
WITHHELD = "-"
USER_WIDTH = 8

HEADER = ("USER", "PID", "%CPU", "%MEM", "VSZ", "RSS", "TTY", "STAT", "START", "TIME", "EXE", "COMMAND")

_DAY_SECONDS = 24 * 60 * 60


class SortKey(Enum):
    """Sort keys for the report."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    USER = "user"


@dataclass(slots=True, frozen=True)
class ReportRow:
    """One displayable line of the report."""

    user: str
    pid: int
    cpu_percent: float
    memory_percent: float
    vsz_kb: int
    rss_kb: int
    tty: str
    stat: str
    start: str
    time: str
    command: str
    exe: str = ""


def printable(text: str) -> str:
    """Make kernel-provided text safe to print, replacing control characters."""
    text = text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    return "".join(ch if ch.isprintable() else "?" for ch in text)


def format_start(start_time: float, now: float) -> str:
    """Format a start time the way ps does: HH:MM today, MonDD this year, else the year."""
    started = datetime.fromtimestamp(start_time)
    if now - start_time < _DAY_SECONDS:
        return started.strftime("%H:%M")
    if started.year == datetime.fromtimestamp(now).year:
        return started.strftime("%b%d")
    return started.strftime("%Y")


def format_cpu_time(seconds: float) -> str:
    """Format accumulated CPU time as M:SS."""
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def format_kb(size_kb: int) -> str:
    """Format kilobytes as a short human-readable string."""
    size = float(size_kb)
    for unit in ["K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "K" else f"{int(size):5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def exe_for(entry: ProcessEntry) -> str:
    """Executable path, "-" when unreadable, empty when the process has none."""
    record = entry.record
    if "exe" in record.withheld:
        return WITHHELD
    if record.exe is None:
        return ""
    return printable(record.exe)


def command_for(entry: ProcessEntry) -> str:
    """Joined command line, or the bracketed name when the kernel exposes none."""
    record = entry.record
    if "cmdline" in record.withheld:
        return WITHHELD
    if not record.cmdline:
        return f"[{printable(record.name)}]"
    return printable(" ".join(record.cmdline))


def build_row(
    entry: ProcessEntry,
    now: float,
    resolve: Callable[[int], str] = resolve_username,
) -> ReportRow:
    """Turn a process entry into a report row."""
    record, metrics = entry.record, entry.metrics
    return ReportRow(
        user=resolve(record.uid),
        pid=record.pid,
        cpu_percent=metrics.cpu_percent,
        memory_percent=metrics.memory_percent,
        vsz_kb=metrics.vsz_kb,
        rss_kb=metrics.rss_kb,
        tty=record.tty or NO_TTY,
        stat=record.state_code,
        start=format_start(metrics.start_time, now),
        time=format_cpu_time(metrics.cpu_seconds),
        command=command_for(entry),
        exe=exe_for(entry),
    )


def build_rows(
    snapshot: Snapshot,
    resolve: Callable[[int], str] = resolve_username,
) -> list[ReportRow]:
    """Build report rows for every entry of a snapshot, in snapshot order."""
    now = snapshot.taken_at or time.time()
    return [build_row(entry, now, resolve) for entry in snapshot.entries]


def sort_rows(rows: Iterable[ReportRow], key: SortKey) -> list[ReportRow]:
    """Sort rows; CPU and memory sort descending, pid and user ascending."""
    key_func = {
        SortKey.CPU: lambda r: r.cpu_percent,
        SortKey.MEM: lambda r: r.memory_percent,
        SortKey.PID: lambda r: r.pid,
        SortKey.USER: lambda r: r.user.lower(),
    }
    reverse = key in (SortKey.CPU, SortKey.MEM)
    return sorted(rows, key=key_func[key], reverse=reverse)


def _truncate_user(user: str) -> str:
    if len(user) > USER_WIDTH:
        return user[: USER_WIDTH - 1] + "+"
    return user


def render_text(rows: Iterable[ReportRow]) -> str:
    """Render rows as ps aux style column-aligned text, header included."""
    line = "{:<8} {:>7} {:>4} {:>4} {:>7} {:>6} {:<8} {:<4} {:>5} {:>6} {:<24} {}"
    lines = [line.format(*HEADER)]
    for row in rows:
        lines.append(
            line.format(
                _truncate_user(row.user),
                row.pid,
                f"{row.cpu_percent:.1f}",
                f"{row.memory_percent:.1f}",
                row.vsz_kb,
                row.rss_kb,
                row.tty,
                row.stat,
                row.start,
                row.time,
                row.exe,
                row.command,
            )
        )
    return "\n".join(lines)
