"""Access to the Linux /proc filesystem.

Acquires the system constants, lists live pids and reads one process's
records into a ProcessRecord. Per-process failures are reported as a
ReadResult instead of an exception so that callers can skip them uniformly.
"""

import errno
import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pyps.errors import FatalEnvironmentError, RecordParseError
from pyps.models import ProcessRecord, RunState, SystemContext
from pyps.parsing import (
    decode_tty,
    parse_cmdline,
    parse_meminfo,
    parse_stat,
    parse_status,
    parse_uid,
    parse_uptime,
)

logger = logging.getLogger(__name__)

DEFAULT_PROC_ROOT = Path("/proc")

# Errors meaning the process exited between listing and reading.
_VANISHED_ERRNOS = frozenset({errno.ENOENT, errno.ESRCH})


def acquire_context(
    proc_root: Path = DEFAULT_PROC_ROOT,
    sysconf: Callable[[str], int] = os.sysconf,
    clock: Callable[[], float] = time.time,
) -> SystemContext:
    """
    Read the machine-wide constants needed to normalise process records.

    Args:
        proc_root: Root of the proc filesystem.
        sysconf: Runtime configuration lookup (os.sysconf in production).
        clock: Wall clock returning epoch seconds.

    Returns:
        The SystemContext for this run.

    Raises:
        FatalEnvironmentError: If any constant is unreadable, unparsable or
            not positive.
    """
    try:
        clock_ticks = int(sysconf("SC_CLK_TCK"))
        page_size = int(sysconf("SC_PAGE_SIZE"))
    except (OSError, ValueError) as exc:
        raise FatalEnvironmentError(f"cannot query runtime constants: {exc}") from exc

    try:
        uptime = parse_uptime((proc_root / "uptime").read_text())
        total_memory_kb = parse_meminfo((proc_root / "meminfo").read_text())
    except OSError as exc:
        raise FatalEnvironmentError(f"cannot read system record: {exc}") from exc
    except RecordParseError as exc:
        raise FatalEnvironmentError(f"malformed system record: {exc}") from exc

    boot_time = clock() - uptime
    values = {
        "clock ticks": clock_ticks,
        "page size": page_size,
        "boot time": boot_time,
        "total memory": total_memory_kb,
    }
    for what, value in values.items():
        if value <= 0:
            raise FatalEnvironmentError(f"{what} is not positive: {value}")

    return SystemContext(
        clock_ticks=clock_ticks,
        page_size=page_size,
        boot_time=boot_time,
        total_memory_kb=total_memory_kb,
        uptime_seconds=uptime,
    )


def list_pids(proc_root: Path = DEFAULT_PROC_ROOT) -> list[int]:
    """
    List the ids of the processes currently visible under proc_root.

    Only entries whose name is made of ASCII digits are kept. The order is
    whatever the directory listing yields.

    Raises:
        FatalEnvironmentError: If the directory cannot be listed.
    """
    try:
        with os.scandir(proc_root) as entries:
            return [int(entry.name) for entry in entries if entry.name.isascii() and entry.name.isdigit()]
    except OSError as exc:
        raise FatalEnvironmentError(f"cannot list {proc_root}: {exc}") from exc


class ReadOutcome(Enum):
    """Result kinds of reading one process."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    PARSE_ERROR = "parse_error"


@dataclass(slots=True, frozen=True)
class ReadResult:
    """Outcome of ProcessRecordReader.read for one pid."""

    pid: int
    outcome: ReadOutcome
    record: ProcessRecord | None = None
    detail: str = ""

    @property
    def found(self) -> bool:
        """Check if the process was read successfully."""
        return self.outcome is ReadOutcome.FOUND


class _Vanished(Exception):
    """The process directory disappeared while being read."""


def _is_vanished(exc: OSError) -> bool:
    return isinstance(exc, (FileNotFoundError, ProcessLookupError)) or exc.errno in _VANISHED_ERRNOS


class ProcessRecordReader:
    """
    Reads the stat, status and cmdline records of a process.

    Handles the races inherent to /proc: a process listed a moment ago may be
    gone by the time its records are opened.
    """

    def __init__(self, proc_root: Path = DEFAULT_PROC_ROOT) -> None:
        """
        Initialize the reader.

        Args:
            proc_root: Root of the proc filesystem.
        """
        self._proc_root = Path(proc_root)

    @property
    def proc_root(self) -> Path:
        """Get the root of the proc filesystem."""
        return self._proc_root

    def read(self, pid: int) -> ReadResult:
        """Read one process and classify the outcome."""
        try:
            record = self._read_record(pid)
        except _Vanished:
            logger.debug("process %d vanished before it could be read", pid)
            return ReadResult(pid, ReadOutcome.NOT_FOUND)
        except PermissionError as exc:
            logger.debug("permission denied reading process %d: %s", pid, exc)
            return ReadResult(pid, ReadOutcome.PERMISSION_DENIED, detail=str(exc))
        except RecordParseError as exc:
            logger.warning("skipping process %d: %s", pid, exc)
            return ReadResult(pid, ReadOutcome.PARSE_ERROR, detail=str(exc))
        except OSError as exc:
            logger.warning("skipping process %d, unreadable record: %s", pid, exc)
            return ReadResult(pid, ReadOutcome.PARSE_ERROR, detail=str(exc))
        return ReadResult(pid, ReadOutcome.FOUND, record=record)

    def _read_bytes(self, pid: int, name: str) -> bytes:
        try:
            return (self._proc_root / str(pid) / name).read_bytes()
        except PermissionError:
            raise
        except OSError as exc:
            if _is_vanished(exc):
                raise _Vanished from exc
            raise

    def _read_text(self, pid: int, name: str) -> str:
        return self._read_bytes(pid, name).decode("utf-8", "surrogateescape")

    def _directory_uid(self, pid: int) -> int:
        try:
            return os.stat(self._proc_root / str(pid)).st_uid
        except OSError as exc:
            if _is_vanished(exc):
                raise _Vanished from exc
            raise

    def _read_exe(self, pid: int) -> str | None:
        try:
            return os.readlink(self._proc_root / str(pid) / "exe")
        except PermissionError:
            raise
        except OSError as exc:
            if _is_vanished(exc) and not (self._proc_root / str(pid)).exists():
                raise _Vanished from exc
            # Kernel threads and zombies have no executable.
            return None

    def _read_record(self, pid: int) -> ProcessRecord:
        stat = parse_stat(self._read_text(pid, "stat"))
        if stat.pid != pid:
            raise RecordParseError("stat", f"record belongs to pid {stat.pid}")

        withheld: set[str] = set()

        try:
            uid = parse_uid(parse_status(self._read_text(pid, "status")))
        except PermissionError:
            withheld.add("status")
            uid = self._directory_uid(pid)

        try:
            cmdline = parse_cmdline(self._read_bytes(pid, "cmdline"))
        except PermissionError:
            withheld.add("cmdline")
            cmdline = ()

        try:
            exe = self._read_exe(pid)
        except PermissionError:
            # Usual for other users' processes; renders as "-", unlike a
            # process with no executable at all.
            withheld.add("exe")
            exe = None

        return ProcessRecord(
            pid=pid,
            ppid=stat.ppid,
            uid=uid,
            state=RunState.from_code(stat.state_code),
            state_code=stat.state_code,
            name=stat.name,
            cmdline=cmdline,
            utime=stat.utime,
            stime=stat.stime,
            start_ticks=stat.start_ticks,
            vsize=stat.vsize,
            rss_pages=stat.rss_pages,
            num_threads=stat.num_threads,
            tty=decode_tty(stat.tty_nr),
            tty_nr=stat.tty_nr,
            nice=stat.nice,
            exe=exe,
            withheld=frozenset(withheld),
        )
