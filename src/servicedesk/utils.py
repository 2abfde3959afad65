from __future__ import annotations

import random
from datetime import UTC, datetime

from .models import Job, PhoneSeries

SERIES = tuple(PhoneSeries)

_default_rng = random.Random()


def utc_now() -> datetime:
    return datetime.now(UTC)


def random_series(rng: random.Random | None = None) -> PhoneSeries:
    source = rng if rng is not None else _default_rng
    return source.choice(SERIES)


def make_jobs(
    count: int,
    rng: random.Random | None = None,
    subject_template: str = "Customer {index}",
) -> list[Job]:
    if count < 0:
        raise ValueError("job count must be >= 0")
    return [
        Job(subject=subject_template.format(index=index), category=random_series(rng))
        for index in range(1, count + 1)
    ]
