from unittest import TestCase

from esexporter import catalog, exceptions
from esexporter.registry import MetricRegistry


class MetricRegistryTests(TestCase):
    def setUp(self):
        self.registry = MetricRegistry(catalog.build_catalog())

    def test_set_upserts_value(self):
        self.registry.set("indices_docs", ("c", "n1"), 10)
        self.registry.set("indices_docs", ("c", "n1"), 12)

        self.assertEqual(12.0, self.registry.get("indices_docs", ("c", "n1")))
        self.assertEqual(1, self.registry.series_count())

    def test_keeps_series_per_label_values(self):
        self.registry.set("thread_pool_queue_count", ("c", "n1", "search"), 1)
        self.registry.set("thread_pool_queue_count", ("c", "n1", "write"), 2)
        self.registry.set("thread_pool_queue_count", ("c", "n2", "search"), 3)

        self.assertEqual({
            ("c", "n1", "search"): 1.0,
            ("c", "n1", "write"): 2.0,
            ("c", "n2", "search"): 3.0,
        }, self.registry.snapshot()["thread_pool_queue_count"])

    def test_reset_removes_all_series(self):
        self.registry.set("indices_docs", ("c", "n1"), 10)
        self.registry.set("jvm_memory_used_bytes", ("c", "n1", "heap"), 10)

        self.registry.reset()

        self.assertEqual(0, self.registry.series_count())
        self.assertIsNone(self.registry.get("indices_docs", ("c", "n1")))
        # descriptors survive a reset
        self.registry.set("indices_docs", ("c", "n2"), 1)
        self.assertEqual(1.0, self.registry.get("indices_docs", ("c", "n2")))

    def test_rejects_label_arity_mismatch(self):
        with self.assertRaises(exceptions.InvalidMetricError):
            self.registry.set("indices_docs", ("c", "n1", "extra"), 1)
        with self.assertRaises(exceptions.InvalidMetricError):
            self.registry.set("breakers_limit_size_bytes", ("c", "n1"), 1)

    def test_rejects_unknown_metric(self):
        with self.assertRaises(exceptions.InvalidMetricError):
            self.registry.set("no_such_metric", ("c", "n1"), 1)

    def test_snapshot_is_a_copy_without_empty_metrics(self):
        self.registry.set("indices_docs", ("c", "n1"), 10)

        snapshot = self.registry.snapshot()
        self.registry.reset()

        self.assertEqual(["indices_docs"], list(snapshot.keys()))
        self.assertEqual({("c", "n1"): 10.0}, snapshot["indices_docs"])

    def test_snapshot_follows_catalog_order(self):
        self.registry.set("thread_pool_rejected_total", ("c", "n1", "search"), 1)
        self.registry.set("indices_docs", ("c", "n1"), 1)
        self.registry.set("cluster_health_status", ("c", "unknown"), 1)

        self.assertEqual(["cluster_health_status", "indices_docs", "thread_pool_rejected_total"],
                         list(self.registry.snapshot().keys()))
