import json
import logging
import unittest

from servicedesk.app_logging import FieldsFormatter, JsonFormatter, log_with_fields


class CapturingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class AppLoggingTest(unittest.TestCase):
    def setUp(self) -> None:
        self.handler = CapturingHandler()
        self.logger = logging.getLogger("test_servicedesk.app_logging")
        self.logger.handlers.clear()
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

    def test_json_formatter_includes_fields(self) -> None:
        log_with_fields(self.logger, logging.INFO, "job_finished", worker="Dalton", duration=1.5)
        payload = json.loads(JsonFormatter().format(self.handler.records[0]))
        self.assertEqual(payload["message"], "job_finished")
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["worker"], "Dalton")
        self.assertEqual(payload["duration"], 1.5)
        self.assertIn("timestamp", payload)

    def test_fields_formatter_appends_pairs(self) -> None:
        log_with_fields(self.logger, logging.WARNING, "jobs_abandoned", abandoned=3)
        line = FieldsFormatter("%(levelname)s %(message)s").format(self.handler.records[0])
        self.assertEqual(line, "WARNING jobs_abandoned abandoned=3")


if __name__ == "__main__":
    unittest.main()
