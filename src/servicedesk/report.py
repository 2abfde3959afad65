from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .models import CompletionRecord, Job, PhoneSeries

RULE = "=" * 60


@dataclass(slots=True)
class WorkerStats:
    name: str
    count: int = 0
    total_duration: float = 0.0

    @property
    def average_duration(self) -> float:
        if not self.count:
            return 0.0
        return self.total_duration / self.count


@dataclass(slots=True)
class RunSummary:
    records: list[CompletionRecord]
    workers: dict[str, WorkerStats] = field(default_factory=dict)
    series: dict[PhoneSeries, int] = field(default_factory=dict)


def summarize(records: Iterable[CompletionRecord], worker_names: Sequence[str] = ()) -> RunSummary:
    """Aggregate finished records per worker and per phone series.

    ``worker_names`` seeds the per-worker table so idle workers still show up
    with zero repairs; other workers are added in first-seen order.
    """
    summary = RunSummary(records=list(records))
    for name in worker_names:
        summary.workers.setdefault(name, WorkerStats(name=name))
    for record in summary.records:
        stats = summary.workers.setdefault(record.worker, WorkerStats(name=record.worker))
        stats.count += 1
        stats.total_duration += record.duration
        summary.series[record.category] = summary.series.get(record.category, 0) + 1
    return summary


def format_summary(summary: RunSummary, total_seconds: float | None = None) -> list[str]:
    lines: list[str] = []
    if total_seconds is not None:
        lines.append(f"Total operation time: {total_seconds:.1f} seconds")
        lines.append("")

    lines.append("DAILY REPAIR SUMMARY")
    lines.append(RULE)
    if not summary.records:
        lines.append("  (no repairs recorded)")
    for index, record in enumerate(summary.records, start=1):
        lines.append(
            f"{index}. {record.worker} -> {record.subject} "
            f"({record.category.value}) - {record.duration:.1f}s"
        )

    lines.append("")
    lines.append("STATISTICS")
    lines.append(RULE)
    for stats in summary.workers.values():
        lines.append(f"{stats.name}: {stats.count} repairs, avg: {stats.average_duration:.1f}s")

    lines.append("")
    lines.append("PHONE SERIES BREAKDOWN")
    lines.append(RULE)
    for series in PhoneSeries:
        count = summary.series.get(series, 0)
        if count:
            lines.append(f"{series.value}: {count} repairs")
    return lines


def format_queue(jobs: Iterable[Job]) -> list[str]:
    lines = ["CUSTOMERS IN QUEUE:", f"  {'#':>3}  {'Name':<24} Phone Series"]
    for index, job in enumerate(jobs, start=1):
        lines.append(f"  {index:>3}  {job.subject:<24} {job.category.value}")
    if len(lines) == 2:
        lines.append("  (queue is empty)")
    return lines
