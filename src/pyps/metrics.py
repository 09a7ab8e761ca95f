"""Derivation of CPU and memory metrics from raw process counters."""

import time

from pyps.models import Metrics, ProcessRecord, SystemContext


def cpu_percent(record: ProcessRecord, context: SystemContext, now: float) -> float:
    """
    Lifetime-average CPU share of a process.

    Process ticks divided by the ticks elapsed since the process started. No
    second sample is taken, so this is not a short-interval rate. Multi-core
    processes can exceed 100.
    """
    boot_to_now_ticks = (now - context.boot_time) * context.clock_ticks
    elapsed_ticks = boot_to_now_ticks - record.start_ticks
    if elapsed_ticks <= 0:
        return 0.0
    return max(0.0, 100.0 * record.cpu_ticks / elapsed_ticks)


def resident_kb(record: ProcessRecord, context: SystemContext) -> int:
    """Resident set size in kilobytes."""
    return max(0, record.rss_pages * context.page_size // 1024)


def memory_percent(rss_kb: int, context: SystemContext) -> float:
    """Resident memory as a percentage of physical memory, within [0, 100]."""
    return min(100.0, max(0.0, 100.0 * rss_kb / context.total_memory_kb))


def derive(record: ProcessRecord, context: SystemContext, now: float | None = None) -> Metrics:
    """
    Derive the report metrics of one process.

    Args:
        record: The parsed process record.
        context: System constants for this run.
        now: Epoch seconds to measure against. Defaults to the current time.

    Returns:
        The derived Metrics.
    """
    if now is None:
        now = time.time()
    rss_kb = resident_kb(record, context)
    return Metrics(
        cpu_percent=cpu_percent(record, context, now),
        memory_percent=memory_percent(rss_kb, context),
        rss_kb=rss_kb,
        vsz_kb=record.vsize // 1024,
        cpu_seconds=record.cpu_ticks / context.clock_ticks,
        start_time=context.boot_time + record.start_ticks / context.clock_ticks,
    )
