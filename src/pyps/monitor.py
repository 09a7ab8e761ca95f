"""Snapshot assembly for pyps."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from pyps.metrics import derive
from pyps.models import ProcessEntry, SystemContext
from pyps.procfs import ProcessRecordReader, ReadOutcome, ReadResult, list_pids

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Snapshot:
    """One enumerate-read-derive pass over the system."""

    context: SystemContext
    entries: list[ProcessEntry]
    skipped: dict[int, ReadOutcome] = field(default_factory=dict)
    taken_at: float = 0.0

    @property
    def pids(self) -> list[int]:
        """Get the reported pids in snapshot order."""
        return [entry.pid for entry in self.entries]

    def skipped_count(self, outcome: ReadOutcome) -> int:
        """Count the processes skipped with the given outcome."""
        return sum(1 for value in self.skipped.values() if value is outcome)


class SnapshotAssembler:
    """
    Builds a Snapshot by reading every listed process once.

    A failure to read one process never aborts the pass: the pid is recorded
    in Snapshot.skipped and left out of the entries. Only a failure to list
    the process root propagates.
    """

    def __init__(
        self,
        context: SystemContext,
        reader: ProcessRecordReader | None = None,
        max_workers: int = 1,
    ) -> None:
        """
        Initialize the SnapshotAssembler.

        Args:
            context: System constants shared by every derivation.
            reader: Reader for per-process records. Defaults to one on /proc.
            max_workers: Size of the reader pool. 1 reads sequentially.
        """
        self._context = context
        self._reader = reader or ProcessRecordReader()
        self._max_workers = max(1, max_workers)

    @property
    def max_workers(self) -> int:
        """Get the size of the reader pool."""
        return self._max_workers

    def assemble(self, now: float | None = None) -> Snapshot:
        """
        Take a snapshot of all visible processes.

        Entries keep the order in which the process root listed them.

        Raises:
            FatalEnvironmentError: If the process root cannot be listed.
        """
        pids = list_pids(self._reader.proc_root)
        if now is None:
            now = time.time()

        results = self._read_all(pids)

        entries: list[ProcessEntry] = []
        skipped: dict[int, ReadOutcome] = {}
        for result in results:
            if not result.found or result.record is None:
                skipped[result.pid] = result.outcome
                continue
            metrics = derive(result.record, self._context, now)
            entries.append(ProcessEntry(record=result.record, metrics=metrics))

        logger.info(
            "snapshot: %d processes listed, %d reported, %d skipped",
            len(pids),
            len(entries),
            len(skipped),
        )
        return Snapshot(context=self._context, entries=entries, skipped=skipped, taken_at=now)

    def _read_all(self, pids: list[int]) -> list[ReadResult]:
        if self._max_workers == 1 or len(pids) < 2:
            return [self._reader.read(pid) for pid in pids]
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="pyps-reader") as pool:
            # map() preserves input order regardless of completion order.
            return list(pool.map(self._reader.read, pids))
