"""Data models for pyps."""

from dataclasses import dataclass, field
from enum import Enum


class RunState(Enum):
    """Scheduling state of a process as reported by the kernel."""

    RUNNING = "R"
    SLEEPING = "S"
    DISK_WAIT = "D"
    ZOMBIE = "Z"
    STOPPED = "T"
    OTHER = "?"

    @classmethod
    def from_code(cls, code: str) -> "RunState":
        """Map a single kernel state character onto the closed set."""
        if code == "t":  # tracing stop
            return cls.STOPPED
        try:
            return cls(code)
        except ValueError:
            return cls.OTHER


@dataclass(slots=True, frozen=True)
class SystemContext:
    """Machine-wide constants acquired once per run."""

    clock_ticks: int  # ticks per second
    page_size: int  # bytes
    boot_time: float  # epoch seconds
    total_memory_kb: int
    uptime_seconds: float = 0.0


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable record of one process, parsed from its /proc entries."""

    pid: int
    ppid: int
    uid: int
    state: RunState
    state_code: str
    name: str
    cmdline: tuple[str, ...]
    utime: int
    stime: int
    start_ticks: int
    vsize: int  # bytes
    rss_pages: int
    num_threads: int
    tty: str | None
    tty_nr: int = 0
    nice: int = 0
    exe: str | None = None
    withheld: frozenset[str] = field(default_factory=frozenset)

    @property
    def cpu_ticks(self) -> int:
        """Total user plus kernel ticks."""
        return self.utime + self.stime


@dataclass(slots=True, frozen=True)
class Metrics:
    """Values derived from a ProcessRecord and the SystemContext."""

    cpu_percent: float
    memory_percent: float
    rss_kb: int
    vsz_kb: int
    cpu_seconds: float
    start_time: float  # epoch seconds


@dataclass(slots=True, frozen=True)
class ProcessEntry:
    """A process record paired with its derived metrics."""

    record: ProcessRecord
    metrics: Metrics

    @property
    def pid(self) -> int:
        """Get the process id of the record."""
        return self.record.pid
