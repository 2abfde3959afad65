from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from .models import Job, PhoneSeries
from .utils import make_jobs
from .worker import Worker


class NoWorkersPolicy(str, Enum):
    DROP = "drop"
    RAISE = "raise"


@dataclass(slots=True)
class CenterConfig:
    name: str = "Service Center"
    location: str = ""


@dataclass(slots=True)
class PollConfig:
    interval_seconds: float = 0.1


@dataclass(slots=True)
class DispatchConfig:
    poll: PollConfig = field(default_factory=PollConfig)
    on_no_workers: NoWorkersPolicy = NoWorkersPolicy.DROP


@dataclass(slots=True)
class WorkerConfig:
    name: str
    average_duration: float


@dataclass(slots=True)
class JobConfig:
    subject: str
    category: PhoneSeries


@dataclass(slots=True)
class JobsConfig:
    count: int = 0
    subject_template: str = "Customer {index}"
    items: list[JobConfig] = field(default_factory=list)


@dataclass(slots=True)
class AppConfig:
    center: CenterConfig
    dispatch: DispatchConfig
    workers: list[WorkerConfig]
    jobs: JobsConfig
    log: Path | None = None


def _require(mapping: dict, key: str, section: str) -> object:
    if key not in mapping:
        raise ValueError(f"Missing `{section}.{key}` in config")
    return mapping[key]


def _mapping(raw: dict, key: str) -> dict:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"`{key}` must be a mapping")
    return value


def _number(value: object, where: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"`{where}` must be a number")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"`{where}` must be a number") from exc


def _series(value: object, where: str) -> PhoneSeries:
    try:
        return PhoneSeries(str(value))
    except ValueError as exc:
        allowed = ", ".join(series.value for series in PhoneSeries)
        raise ValueError(f"`{where}` must be one of: {allowed}") from exc


def load_config(path: str | Path) -> AppConfig:
    config_path = Path(path).expanduser().resolve()
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("Config root must be a mapping")

    center_raw = _mapping(raw, "center")
    poll_raw = _mapping(raw, "poll")
    dispatch_raw = _mapping(raw, "dispatch")
    jobs_raw = _mapping(raw, "jobs")
    workers_raw = _require(raw, "workers", "root")
    if workers_raw is None:
        workers_raw = []
    if not isinstance(workers_raw, list):
        raise ValueError("`workers` must be a list")

    center = CenterConfig(
        name=str(center_raw.get("name", "Service Center")),
        location=str(center_raw.get("location", "")),
    )

    poll = PollConfig(
        interval_seconds=_number(poll_raw.get("interval_seconds", 0.1), "poll.interval_seconds"),
    )
    if poll.interval_seconds <= 0:
        raise ValueError("`poll.interval_seconds` must be > 0")

    policy_raw = str(dispatch_raw.get("on_no_workers", NoWorkersPolicy.DROP.value)).lower()
    try:
        policy = NoWorkersPolicy(policy_raw)
    except ValueError as exc:
        raise ValueError("`dispatch.on_no_workers` must be either `drop` or `raise`") from exc
    dispatch = DispatchConfig(poll=poll, on_no_workers=policy)

    workers: list[WorkerConfig] = []
    seen_names: set[str] = set()
    for idx, item in enumerate(workers_raw):
        if not isinstance(item, dict):
            raise ValueError(f"`workers[{idx}]` must be a mapping")
        worker = WorkerConfig(
            name=str(_require(item, "name", f"workers[{idx}]")),
            average_duration=_number(
                _require(item, "average_duration", f"workers[{idx}]"),
                f"workers[{idx}].average_duration",
            ),
        )
        if worker.average_duration < 0:
            raise ValueError(f"`workers[{idx}].average_duration` must be >= 0")
        if worker.name in seen_names:
            raise ValueError(f"Duplicate worker name: {worker.name}")
        seen_names.add(worker.name)
        workers.append(worker)

    items_raw = jobs_raw.get("items") or []
    if not isinstance(items_raw, list):
        raise ValueError("`jobs.items` must be a list")
    items: list[JobConfig] = []
    for idx, item in enumerate(items_raw):
        if not isinstance(item, dict):
            raise ValueError(f"`jobs.items[{idx}]` must be a mapping")
        items.append(
            JobConfig(
                subject=str(_require(item, "subject", f"jobs.items[{idx}]")),
                category=_series(
                    _require(item, "category", f"jobs.items[{idx}]"),
                    f"jobs.items[{idx}].category",
                ),
            )
        )

    count = jobs_raw.get("count", 0)
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError("`jobs.count` must be a non-negative integer")
    subject_template = str(jobs_raw.get("subject_template", "Customer {index}"))
    try:
        subject_template.format(index=1)
    except (AttributeError, KeyError, IndexError, ValueError) as exc:
        raise ValueError(
            "`jobs.subject_template` may only use the `{index}` placeholder"
        ) from exc
    jobs = JobsConfig(
        count=count,
        subject_template=subject_template,
        items=items,
    )

    log_path: Path | None = None
    if raw.get("log"):
        log_path = Path(str(raw["log"])).expanduser()
        if not log_path.is_absolute():
            log_path = config_path.parent / log_path

    return AppConfig(center=center, dispatch=dispatch, workers=workers, jobs=jobs, log=log_path)


def build_workers(config: AppConfig) -> list[Worker]:
    return [Worker(item.name, item.average_duration) for item in config.workers]


def build_jobs(config: AppConfig, rng: random.Random | None = None) -> list[Job]:
    """Explicit ``jobs.items`` win; otherwise ``jobs.count`` random-series jobs are generated."""
    if config.jobs.items:
        return [Job(subject=item.subject, category=item.category) for item in config.jobs.items]
    return make_jobs(config.jobs.count, rng=rng, subject_template=config.jobs.subject_template)
