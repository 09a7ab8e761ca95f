"""Parsers for the textual records exposed under /proc.

All functions here are pure: they take the raw contents of a record and
either return structured values or raise RecordParseError. Reading the
records from disk is the job of pyps.procfs.
"""

from dataclasses import dataclass

from pyps.errors import RecordParseError

# Field numbers as documented in proc(5), 1-based. Fields 1 and 2 (pid and
# comm) are handled separately because comm may contain spaces and parens.
STAT_STATE = 3
STAT_PPID = 4
STAT_TTY_NR = 7
STAT_UTIME = 14
STAT_STIME = 15
STAT_NICE = 19
STAT_NUM_THREADS = 20
STAT_STARTTIME = 22
STAT_VSIZE = 23
STAT_RSS = 24

# Offset of field 3 within the whitespace-split tail after the closing paren.
_TAIL_OFFSET = 3

# Major device numbers used by ps to name terminals.
_TTY_MAJOR = 4
_PTS_MAJOR_FIRST = 136
_PTS_MAJOR_LAST = 143
_TTY_SERIAL_FIRST_MINOR = 64


@dataclass(slots=True, frozen=True)
class StatFields:
    """The subset of /proc/<pid>/stat that pyps uses."""

    pid: int
    name: str
    state_code: str
    ppid: int
    tty_nr: int
    utime: int
    stime: int
    nice: int
    num_threads: int
    start_ticks: int
    vsize: int
    rss_pages: int


def _int_field(tail: list[str], number: int, what: str) -> int:
    try:
        return int(tail[number - _TAIL_OFFSET])
    except IndexError:
        raise RecordParseError("stat", f"missing field {number} ({what})") from None
    except ValueError:
        raise RecordParseError(
            "stat", f"field {number} ({what}) is not an integer: {tail[number - _TAIL_OFFSET]!r}"
        ) from None


def parse_stat(text: str) -> StatFields:
    """
    Parse a /proc/<pid>/stat line.

    The executable name is bounded by the first "(" and the last ")" so that
    names such as "weird (name)" or "a) b" survive intact. Everything after
    the closing paren is split on whitespace and read by position.

    Args:
        text: Contents of the stat record.

    Returns:
        The parsed fields.

    Raises:
        RecordParseError: If the line does not follow the stat grammar.
    """
    open_paren = text.find("(")
    close_paren = text.rfind(")")
    if open_paren < 0 or close_paren < open_paren:
        raise RecordParseError("stat", "executable name is not parenthesised")

    head = text[:open_paren].split()
    if len(head) != 1:
        raise RecordParseError("stat", f"expected a single pid before the name, got {head!r}")
    try:
        pid = int(head[0])
    except ValueError:
        raise RecordParseError("stat", f"pid is not an integer: {head[0]!r}") from None

    name = text[open_paren + 1 : close_paren]
    tail = text[close_paren + 1 :].split()
    if not tail or len(tail[0]) != 1:
        raise RecordParseError("stat", "missing or malformed state field")

    fields = StatFields(
        pid=pid,
        name=name,
        state_code=tail[0],
        ppid=_int_field(tail, STAT_PPID, "ppid"),
        tty_nr=_int_field(tail, STAT_TTY_NR, "tty_nr"),
        utime=_int_field(tail, STAT_UTIME, "utime"),
        stime=_int_field(tail, STAT_STIME, "stime"),
        nice=_int_field(tail, STAT_NICE, "nice"),
        num_threads=_int_field(tail, STAT_NUM_THREADS, "num_threads"),
        start_ticks=_int_field(tail, STAT_STARTTIME, "starttime"),
        vsize=_int_field(tail, STAT_VSIZE, "vsize"),
        rss_pages=_int_field(tail, STAT_RSS, "rss"),
    )
    if min(fields.utime, fields.stime, fields.start_ticks, fields.vsize) < 0:
        raise RecordParseError("stat", "negative counter")
    return fields


def decode_tty(tty_nr: int) -> str | None:
    """
    Turn the combined tty_nr device number into a terminal name.

    Returns None when the process has no controlling terminal.
    """
    if tty_nr == 0:
        return None
    major = (tty_nr >> 8) & 0xFFF
    minor = (tty_nr & 0xFF) | ((tty_nr >> 12) & 0xFFF00)
    if _PTS_MAJOR_FIRST <= major <= _PTS_MAJOR_LAST:
        return f"pts/{(major - _PTS_MAJOR_FIRST) * 256 + minor}"
    if major == _TTY_MAJOR:
        if minor < _TTY_SERIAL_FIRST_MINOR:
            return f"tty{minor}"
        return f"ttyS{minor - _TTY_SERIAL_FIRST_MINOR}"
    return f"{major}:{minor}"


def parse_status(text: str) -> dict[str, str]:
    """Parse the "key:\\tvalue" lines of /proc/<pid>/status."""
    result: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        key, sep, value = line.partition(":")
        if not sep or not key:
            raise RecordParseError("status", f"line without key: {line!r}")
        result[key.strip()] = value.strip()
    return result


def parse_uid(status: dict[str, str]) -> int:
    """Extract the real user id from a parsed status record."""
    raw = status.get("Uid")
    if not raw:
        raise RecordParseError("status", "missing Uid line")
    try:
        return int(raw.split()[0])
    except ValueError:
        raise RecordParseError("status", f"invalid Uid line: {raw!r}") from None


def parse_cmdline(data: bytes) -> tuple[str, ...]:
    """
    Split a NUL-separated command line.

    Kernel threads expose an empty record, which yields an empty tuple.
    """
    if not data:
        return ()
    if data.endswith(b"\0"):
        data = data[:-1]
    return tuple(arg.decode("utf-8", "surrogateescape") for arg in data.split(b"\0"))


def parse_uptime(text: str) -> float:
    """Return seconds since boot from /proc/uptime."""
    parts = text.split()
    if not parts:
        raise RecordParseError("uptime", "empty record")
    try:
        return float(parts[0])
    except ValueError:
        raise RecordParseError("uptime", f"not a number: {parts[0]!r}") from None


def parse_meminfo(text: str) -> int:
    """Return MemTotal in kilobytes from /proc/meminfo."""
    for line in text.splitlines():
        key, _, value = line.partition(":")
        if key.strip() != "MemTotal":
            continue
        parts = value.split()
        try:
            total = int(parts[0])
        except (IndexError, ValueError):
            raise RecordParseError("meminfo", f"invalid MemTotal line: {line!r}") from None
        if len(parts) > 1 and parts[1].lower() != "kb":
            raise RecordParseError("meminfo", f"unexpected MemTotal unit: {parts[1]!r}")
        return total
    raise RecordParseError("meminfo", "missing MemTotal line")
