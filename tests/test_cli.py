from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path
from tempfile import TemporaryDirectory
import logging
import unittest

from servicedesk.app_logging import LOGGER_NAME
from servicedesk.cli import build_parser, main

RUN_CONFIG = """
center:
  name: Test Center
  location: Test Street
workers:
  - name: Dalton
    average_duration: 0
  - name: Wapol
    average_duration: 0.01
jobs:
  items:
    - {subject: Alice, category: Jaguar}
    - {subject: Bob, category: Leopard}
    - {subject: Charlie, category: Lion}
"""


class CliTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = TemporaryDirectory()
        self.root = Path(self._temp_dir.name)

    def tearDown(self) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        self._temp_dir.cleanup()

    def write(self, text: str) -> str:
        config_path = self.root / "servicedesk.yaml"
        config_path.write_text(text, encoding="utf-8")
        return str(config_path)

    def invoke(self, argv: list[str]) -> tuple[int, str, str]:
        stdout = StringIO()
        stderr = StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_run_seed_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "servicedesk.yaml", "run", "--seed", "3"])
        self.assertEqual(args.command, "run")
        self.assertEqual(args.seed, 3)
        self.assertFalse(args.verbose)

    def test_queue_command(self) -> None:
        config = self.write("workers: []\njobs: {count: 4}\n")
        code, stdout, _ = self.invoke(["--config", config, "queue", "--seed", "1"])
        self.assertEqual(code, 0)
        self.assertIn("Customer 4", stdout)
        self.assertNotIn("Customer 5", stdout)

    def test_run_command_prints_summary(self) -> None:
        config = self.write(RUN_CONFIG)
        code, stdout, _ = self.invoke(["--config", config, "run"])
        self.assertEqual(code, 0)
        self.assertIn("DAILY REPAIR SUMMARY", stdout)
        for subject in ["Alice", "Bob", "Charlie"]:
            self.assertIn(f"-> {subject}", stdout)
        self.assertIn("Total operation time:", stdout)

    def test_run_without_workers_under_raise_policy(self) -> None:
        config = self.write("workers: []\ndispatch: {on_no_workers: raise}\njobs: {count: 2}\n")
        code, _, stderr = self.invoke(["--config", config, "run"])
        self.assertEqual(code, 1)
        self.assertIn("no workers", stderr)

    def test_run_writes_json_log(self) -> None:
        config = self.write(RUN_CONFIG + "log: ./servicedesk.log\n")
        code, _, _ = self.invoke(["--config", config, "run"])
        self.assertEqual(code, 0)
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()
        log_text = (self.root / "servicedesk.log").read_text(encoding="utf-8")
        self.assertIn('"message": "job_recorded"', log_text)
        self.assertIn('"message": "center_closed"', log_text)


if __name__ == "__main__":
    unittest.main()
