from collections import Counter
import random
import unittest

from servicedesk.models import PhoneSeries
from servicedesk.utils import make_jobs, random_series, utc_now


class UtilsTest(unittest.TestCase):
    def test_random_series_is_valid(self) -> None:
        rng = random.Random(1)
        for _ in range(100):
            self.assertIn(random_series(rng), set(PhoneSeries))

    def test_random_series_without_rng(self) -> None:
        self.assertIsInstance(random_series(), PhoneSeries)

    def test_random_series_follows_rng(self) -> None:
        first = [random_series(random.Random(42)) for _ in range(5)]
        second = [random_series(random.Random(42)) for _ in range(5)]
        self.assertEqual(first, second)

    def test_random_series_distribution(self) -> None:
        rng = random.Random(2024)
        iterations = 10000
        counts = Counter(random_series(rng) for _ in range(iterations))
        self.assertEqual(set(counts), set(PhoneSeries))
        self.assertEqual(sum(counts.values()), iterations)
        for series in PhoneSeries:
            self.assertGreater(counts[series], iterations * 0.2)

    def test_make_jobs(self) -> None:
        jobs = make_jobs(3, random.Random(5))
        self.assertEqual([job.subject for job in jobs], ["Customer 1", "Customer 2", "Customer 3"])
        self.assertEqual(make_jobs(0), [])
        with self.assertRaises(ValueError):
            make_jobs(-1)

    def test_utc_now_is_timezone_aware(self) -> None:
        now = utc_now()
        self.assertIsNotNone(now.tzinfo)
        self.assertEqual(now.utcoffset().total_seconds(), 0)  # type: ignore[union-attr]


if __name__ == "__main__":
    unittest.main()
