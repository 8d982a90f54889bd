from unittest import TestCase

from esexporter import exceptions, stats
from tests import stats_fixtures


class NodeStatsResponseTests(TestCase):
    def test_parses_all_sections(self):
        response = stats.NodeStatsResponse.from_dict(stats_fixtures.node_stats_doc("10.0.0.1"))

        self.assertEqual("test-cluster", response.cluster_name)
        self.assertEqual(1, len(response.nodes))
        node = response.nodes[0]
        self.assertEqual("id-10.0.0.1", node.node_id)
        self.assertEqual("10.0.0.1", node.host)
        self.assertEqual(stats.GcCollectorStats(15161.0, 2500.0), node.gc_collectors["young"])
        self.assertEqual(stats.BreakerStats(16440.0, 5143501209.0), node.breakers["request"])
        self.assertEqual(stats.ThreadPoolStats(threads=13.0, queue=2.0, active=1.0, rejected=5.0, largest=13.0,
                                               completed=700.0), node.thread_pools["search"])
        self.assertEqual(894324928.0, node.jvm_memory.heap_used)
        self.assertEqual(395907072.0, node.jvm_memory.non_heap_committed)
        self.assertEqual(stats.CacheStats(1078.0, 2.0), node.indices.request_cache)
        self.assertEqual(stats.CacheStats(100.0, 1.0), node.indices.query_cache)
        self.assertEqual(404.0, node.indices.docs_count)
        self.assertEqual(12.0, node.indices.store_throttle_time_ms)
        self.assertEqual(53955.0, node.indices.merges_total_size)
        self.assertEqual(stats.TransportStats(10.0, 1000.0, 20.0, 2000.0), node.transport)
        self.assertEqual(5500.0, node.process.cpu_total_ms)
        self.assertEqual(1024000.0, node.process.max_file_descriptors)

    def test_values_are_floats(self):
        node = stats.NodeStatsResponse.from_dict(stats_fixtures.node_stats_doc("10.0.0.1")).nodes[0]

        self.assertIsInstance(node.indices.docs_count, float)
        self.assertIsInstance(node.thread_pools["write"].completed, float)

    def test_missing_sections_default_to_zero(self):
        response = stats.NodeStatsResponse.from_dict({"cluster_name": "c", "nodes": {"abc": {"host": "h"}}})

        node = response.nodes[0]
        self.assertEqual({}, node.gc_collectors)
        self.assertEqual({}, node.breakers)
        self.assertEqual({}, node.thread_pools)
        self.assertEqual(0.0, node.indices.docs_count)
        self.assertEqual(stats.CacheStats(0.0, 0.0), node.indices.filter_cache)
        self.assertEqual(0.0, node.process.open_file_descriptors)

    def test_missing_nodes_yields_empty_list(self):
        response = stats.NodeStatsResponse.from_dict({"cluster_name": "c"})

        self.assertEqual([], response.nodes)

    def test_host_falls_back_to_node_name(self):
        response = stats.NodeStatsResponse.from_dict({"cluster_name": "c", "nodes": {
            "a": {"name": "node-a"},
            "b": {},
        }})

        self.assertEqual(["node-a", "unknown"], [node.host for node in response.nodes])

    def test_rejects_non_object_document(self):
        with self.assertRaises(exceptions.DecodeError):
            stats.NodeStatsResponse.from_dict(["not", "an", "object"])

    def test_rejects_non_object_nodes(self):
        with self.assertRaises(exceptions.DecodeError):
            stats.NodeStatsResponse.from_dict({"cluster_name": "c", "nodes": []})

    def test_rejects_non_numeric_value(self):
        doc = stats_fixtures.node_stats_doc("10.0.0.1")
        doc["nodes"]["id-10.0.0.1"]["indices"]["docs"]["count"] = "many"

        with self.assertRaises(exceptions.DecodeError):
            stats.NodeStatsResponse.from_dict(doc)

    def test_rejects_boolean_as_number(self):
        doc = stats_fixtures.node_stats_doc("10.0.0.1")
        doc["nodes"]["id-10.0.0.1"]["process"]["open_file_descriptors"] = True

        with self.assertRaises(exceptions.DecodeError):
            stats.NodeStatsResponse.from_dict(doc)

    def test_rejects_non_object_section(self):
        doc = stats_fixtures.node_stats_doc("10.0.0.1")
        doc["nodes"]["id-10.0.0.1"]["jvm"]["gc"] = 42

        with self.assertRaises(exceptions.DecodeError):
            stats.NodeStatsResponse.from_dict(doc)


class ClusterHealthTests(TestCase):
    def test_parses_health(self):
        health = stats.ClusterHealth.from_dict(stats_fixtures.cluster_health_doc())

        self.assertEqual(stats.ClusterHealth("test-cluster", "yellow", False, 3.0, 2.0), health)

    def test_status_ordinals(self):
        for status, ordinal in [("green", 0), ("yellow", 1), ("red", 2), ("purple", 0), ("", 0)]:
            health = stats.ClusterHealth.from_dict(stats_fixtures.cluster_health_doc(status=status))
            self.assertEqual(ordinal, health.status_ordinal, status)

    def test_missing_timed_out_is_false(self):
        doc = stats_fixtures.cluster_health_doc()
        del doc["timed_out"]

        self.assertFalse(stats.ClusterHealth.from_dict(doc).timed_out)

    def test_rejects_non_boolean_timed_out(self):
        with self.assertRaises(exceptions.DecodeError):
            stats.ClusterHealth.from_dict(stats_fixtures.cluster_health_doc(timed_out="no"))

    def test_rejects_non_object_document(self):
        with self.assertRaises(exceptions.DecodeError):
            stats.ClusterHealth.from_dict("<html>Bad Gateway</html>")


class MsToSecondsTests(TestCase):
    def test_converts_with_fraction(self):
        self.assertEqual(2.5, stats.ms_to_seconds(2500.0))
        self.assertEqual(0.332, stats.ms_to_seconds(332))
