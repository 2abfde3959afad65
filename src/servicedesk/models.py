from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class PhoneSeries(str, Enum):
    JAGUAR = "Jaguar"
    LEOPARD = "Leopard"
    LION = "Lion"


class WorkerStatus(str, Enum):
    IDLE = "idle"
    WORKING = "working"


@dataclass(slots=True)
class Job:
    subject: str
    category: PhoneSeries

    def __post_init__(self) -> None:
        self.category = PhoneSeries(self.category)


@dataclass(frozen=True, slots=True)
class CompletionRecord:
    worker: str
    subject: str
    category: PhoneSeries
    started_at: datetime
    finished_at: datetime
    duration: float

    def to_dict(self) -> dict[str, object]:
        return {
            "worker": self.worker,
            "subject": self.subject,
            "category": self.category.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration": round(self.duration, 3),
        }
