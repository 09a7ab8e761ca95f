"""Shared fixtures: a synthetic /proc tree."""

from pathlib import Path

import pytest

from pyps.models import ProcessRecord, RunState, SystemContext

CLOCK_TICKS = 100
PAGE_SIZE = 4096
TOTAL_MEMORY_KB = 1024 * 1024  # 1 GiB
UPTIME = 1000.0
NOW = 1_700_000_000.0


def stat_line(
    pid: int,
    name: str = "proc",
    state: str = "S",
    ppid: int = 1,
    tty_nr: int = 0,
    utime: int = 0,
    stime: int = 0,
    nice: int = 0,
    num_threads: int = 1,
    starttime: int = 0,
    vsize: int = 0,
    rss: int = 0,
) -> str:
    """Build a /proc/<pid>/stat line with 52 fields, as on a current kernel."""
    tail = [
        state, str(ppid), str(pid), str(pid), str(tty_nr), "-1", "4194304",
        "0", "0", "0", "0", str(utime), str(stime), "0", "0", "20", str(nice),
        str(num_threads), "0", str(starttime), str(vsize), str(rss),
    ]
    tail += ["0"] * (52 - 2 - len(tail))
    return f"{pid} ({name}) " + " ".join(tail) + "\n"


class FakeProc:
    """Builds a directory that looks like /proc."""

    def __init__(self, root: Path) -> None:
        self.root = root
        (root / "uptime").write_text(f"{UPTIME:.2f} 3500.00\n")
        (root / "meminfo").write_text(
            f"MemTotal:       {TOTAL_MEMORY_KB} kB\nMemFree:          524288 kB\n"
        )
        # Non-process entries that enumeration must skip.
        (root / "self").mkdir()
        (root / "sys").mkdir()
        (root / "cpuinfo").write_text("processor : 0\n")

    def add(
        self,
        pid: int,
        uid: int = 1000,
        cmdline: bytes = b"/bin/proc\0",
        stat: str | None = None,
        status: str | None = None,
        **stat_fields,
    ) -> Path:
        proc_dir = self.root / str(pid)
        proc_dir.mkdir()
        (proc_dir / "stat").write_text(stat if stat is not None else stat_line(pid, **stat_fields))
        if status is None:
            status = f"Name:\tproc\nState:\tS (sleeping)\nPid:\t{pid}\nUid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
        (proc_dir / "status").write_text(status)
        (proc_dir / "cmdline").write_bytes(cmdline)
        return proc_dir


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """A synthetic /proc root."""
    return FakeProc(tmp_path)


@pytest.fixture
def context() -> SystemContext:
    """A fixed SystemContext matching FakeProc."""
    return SystemContext(
        clock_ticks=CLOCK_TICKS,
        page_size=PAGE_SIZE,
        boot_time=NOW - UPTIME,
        total_memory_kb=TOTAL_MEMORY_KB,
        uptime_seconds=UPTIME,
    )


def make_record(**overrides) -> ProcessRecord:
    """Build a ProcessRecord with sensible defaults."""
    fields = dict(
        pid=100,
        ppid=1,
        uid=1000,
        state=RunState.SLEEPING,
        state_code="S",
        name="proc",
        cmdline=("/bin/proc",),
        utime=0,
        stime=0,
        start_ticks=0,
        vsize=0,
        rss_pages=0,
        num_threads=1,
        tty=None,
    )
    fields.update(overrides)
    return ProcessRecord(**fields)
