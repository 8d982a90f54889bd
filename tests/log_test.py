import io
import logging
from unittest import TestCase

from esexporter.log import configure_logging


class ConfigureLoggingTests(TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.handlers = list(self.root.handlers)
        self.level = self.root.level

    def tearDown(self):
        for h in list(self.root.handlers):
            self.root.removeHandler(h)
        for h in self.handlers:
            self.root.addHandler(h)
        self.root.setLevel(self.level)

    def test_installs_single_handler(self):
        out = io.StringIO()

        configure_logging("warning", stream=out)
        configure_logging("warning", stream=out)
        logging.getLogger("esexporter.test").warning("cluster unreachable")
        logging.getLogger("esexporter.test").info("not shown")

        self.assertEqual(1, len(self.root.handlers))
        lines = out.getvalue().splitlines()
        self.assertEqual(1, len(lines))
        self.assertIn("esexporter.test WARNING cluster unreachable", lines[0])

    def test_quiets_client_request_logging(self):
        configure_logging("DEBUG", stream=io.StringIO())

        self.assertEqual(logging.WARNING, logging.getLogger("elastic_transport").level)
