"""pyps - Textual viewer for a single process snapshot."""

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from pyps.monitor import Snapshot
from pyps.procfs import ReadOutcome
from pyps.report import ReportRow, SortKey, format_kb, sort_rows


class HeaderStats(Static):
    """Header widget showing system constants and snapshot totals."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 3;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, snapshot: Snapshot | None = None, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(**kwargs)
        self._memory_total_kb: int = 0
        self._uptime_seconds: float = 0.0
        self._process_count: int = 0
        self._denied_count: int = 0
        self._vanished_count: int = 0
        if snapshot is not None:
            self._memory_total_kb = snapshot.context.total_memory_kb
            self._uptime_seconds = snapshot.context.uptime_seconds
            self._process_count = len(snapshot.entries)
            self._denied_count = snapshot.skipped_count(ReadOutcome.PERMISSION_DENIED)
            self._vanished_count = snapshot.skipped_count(ReadOutcome.NOT_FOUND)

    def render(self) -> str:
        """Render the header text."""
        return self.render_stats()

    def render_stats(self) -> str:
        """Get the header text."""
        if self._memory_total_kb == 0:
            return "Loading..."

        uptime = self._uptime_seconds
        days = int(uptime // 86400)
        hours = int((uptime % 86400) // 3600)
        minutes = int((uptime % 3600) // 60)
        if days > 0:
            uptime_str = f"{days} days, {hours:02d}:{minutes:02d}"
        else:
            uptime_str = f"{hours:02d}:{minutes:02d}"

        return (
            f"Processes: {self._process_count}  "
            f"(vanished {self._vanished_count}, denied {self._denied_count})\n"
            f"Mem total: {format_kb(self._memory_total_kb).strip()}  Uptime: {uptime_str}"
        )


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, rows: list[ReportRow] | None = None, sort: SortKey = SortKey.CPU, **kwargs) -> None:
        """
        Initialize ProcessTable.

        Args:
            rows: Report rows to show.
            sort: Initial sort key.
        """
        super().__init__(**kwargs)
        self._rows: list[ReportRow] = list(rows or [])
        self._sort_key: SortKey = sort
        self._ready = False

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key, re-sort the table and return the key."""
        keys = list(SortKey)
        next_index = (keys.index(self._sort_key) + 1) % len(keys)
        self._sort_key = keys[next_index]
        if self._ready:
            self._populate()
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("USER", key="user", width=10)
        table.add_column("PID", key="pid", width=8)
        table.add_column("%CPU", key="cpu", width=6)
        table.add_column("%MEM", key="mem", width=6)
        table.add_column("VSZ", key="vsz", width=8)
        table.add_column("RSS", key="rss", width=8)
        table.add_column("TTY", key="tty", width=8)
        table.add_column("S", key="stat", width=3)
        table.add_column("START", key="start", width=6)
        table.add_column("TIME", key="time", width=7)
        table.add_column("EXE", key="exe", width=24)
        table.add_column("Command", key="command")
        self._ready = True
        self._populate()

    def ordered_pids(self) -> list[int]:
        """Pids in display order."""
        return [row.pid for row in sort_rows(self._rows, self._sort_key)]

    def _populate(self) -> None:
        table = self.query_one("#process-table", DataTable)
        table.clear()
        for row in sort_rows(self._rows, self._sort_key):
            table.add_row(
                row.user[:10],
                str(row.pid),
                f"{row.cpu_percent:5.1f}",
                f"{row.memory_percent:5.1f}",
                format_kb(row.vsz_kb),
                format_kb(row.rss_kb),
                row.tty,
                row.stat,
                row.start,
                row.time,
                row.exe,
                row.command,
                key=str(row.pid),
            )


class PypsApp(App):
    """Viewer for one pyps snapshot. There is no periodic refresh."""

    TITLE = "pyps"
    SUB_TITLE = "Process snapshot"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, snapshot: Snapshot, rows: list[ReportRow], sort: SortKey | None = None) -> None:
        """
        Initialize the PypsApp.

        Args:
            snapshot: The snapshot to show.
            rows: Report rows built from the snapshot.
            sort: Initial sort key. Defaults to CPU.
        """
        super().__init__()
        self._snapshot = snapshot
        self._rows = rows
        self._initial_sort = sort or SortKey.CPU

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(self._snapshot, id="header-stats")
        yield ProcessTable(self._rows, sort=self._initial_sort)
        yield Footer()

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        process_table = self.query_one(ProcessTable)
        new_sort_key = process_table.cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")
