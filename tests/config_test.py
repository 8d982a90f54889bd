from unittest import TestCase

from esexporter import exceptions
from esexporter.config import ExporterConfig, parse_listen_address


class ExporterConfigTests(TestCase):
    def test_defaults(self):
        cfg = ExporterConfig().validate()

        self.assertEqual("http://localhost:9200", cfg.uri)
        self.assertEqual(5.0, cfg.timeout)
        self.assertFalse(cfg.all_nodes)
        self.assertFalse(cfg.insecure)
        self.assertEqual(":9108", cfg.listen_address)
        self.assertEqual("/metrics", cfg.metrics_path)

    def test_node_stats_path_depends_on_all_nodes(self):
        self.assertEqual("/_nodes/_local/stats", ExporterConfig().node_stats_path)
        self.assertEqual("_local", ExporterConfig().node_id)
        self.assertEqual("/_nodes/stats", ExporterConfig(all_nodes=True).node_stats_path)
        self.assertIsNone(ExporterConfig(all_nodes=True).node_id)

    def test_strips_trailing_slash_from_uri(self):
        self.assertEqual("http://es:9200", ExporterConfig(uri="http://es:9200/").uri)

    def test_is_immutable(self):
        cfg = ExporterConfig()

        with self.assertRaises(AttributeError):
            cfg.timeout = 1

    def test_rejects_non_positive_timeout(self):
        with self.assertRaisesRegex(exceptions.SystemSetupError, "timeout"):
            ExporterConfig(timeout=0).validate()

    def test_rejects_relative_metrics_path(self):
        with self.assertRaises(exceptions.SystemSetupError):
            ExporterConfig(metrics_path="metrics").validate()

    def test_rejects_non_http_uri(self):
        with self.assertRaises(exceptions.SystemSetupError):
            ExporterConfig(uri="localhost:9200").validate()


class ParseListenAddressTests(TestCase):
    def test_port_only(self):
        self.assertEqual(("", 9108), parse_listen_address(":9108"))

    def test_host_and_port(self):
        self.assertEqual(("127.0.0.1", 9200), parse_listen_address("127.0.0.1:9200"))

    def test_ipv6_host(self):
        self.assertEqual(("::1", 9108), parse_listen_address("[::1]:9108"))

    def test_rejects_missing_port(self):
        with self.assertRaises(exceptions.SystemSetupError):
            parse_listen_address("localhost")

    def test_rejects_invalid_port(self):
        with self.assertRaises(exceptions.SystemSetupError):
            parse_listen_address(":http")
        with self.assertRaises(exceptions.SystemSetupError):
            parse_listen_address(":70000")
