"""
Tests for the in-process Prometheus metrics registry.
"""
import pytest

from intent_engine.utils.metrics import Counter, Gauge, Histogram, MetricsRegistry, Timer, metrics


class TestMetricTypes:

    def test_counter_increments_per_label_set(self):
        counter = Counter("c", "test counter", ["source"])
        counter.inc(source="website")
        counter.inc(2, source="website")
        counter.inc(source="community")

        assert counter.value(source="website") == 3
        assert counter.value(source="community") == 1
        assert counter.value(source="event") == 0

    def test_counter_rejects_negative(self):
        with pytest.raises(ValueError):
            Counter("c", "test counter").inc(-1)

    def test_gauge_moves_both_ways(self):
        gauge = Gauge("g", "test gauge")
        gauge.set(5)
        gauge.inc()
        gauge.dec(3)

        assert gauge.value() == 3

    def test_histogram_buckets_are_cumulative(self):
        histogram = Histogram("h", "test histogram", buckets=(0.1, 1.0))
        histogram.observe(0.05)
        histogram.observe(0.5)
        histogram.observe(3.0)

        samples = {mv.labels.get("le", mv.labels.get("_metric")): mv.value for mv in histogram.collect()}
        assert samples["0.1"] == 1
        assert samples["1.0"] == 2
        assert samples["+Inf"] == 3
        assert samples["sum"] == pytest.approx(3.55)
        assert histogram.count() == 3

    def test_timer_observes_elapsed(self):
        histogram = Histogram("h", "test histogram")
        with Timer(histogram) as timer:
            pass

        assert histogram.count() == 1
        assert timer.elapsed >= 0


class TestMetricsRegistry:

    def test_singleton(self):
        assert MetricsRegistry() is metrics

    def test_export_format(self):
        metrics.captures.inc(channel="website")
        metrics.recompute_duration.observe(0.002)
        metrics.track_queue(pending=4, processing=1, deferred=0)

        text = metrics.export()

        assert "# HELP intent_captures_total Capture calls by channel" in text
        assert "# TYPE intent_recompute_duration_seconds histogram" in text
        assert 'intent_captures_total{channel="website"} 1.0' in text
        assert 'intent_recompute_duration_seconds_bucket{le="0.005"} 1' in text
        assert "intent_recompute_duration_seconds_count 1" in text
        assert "intent_queue_pending 4" in text

    def test_reset_clears_values(self):
        metrics.captures.inc(channel="website")
        metrics.reset()

        assert metrics.captures.value(channel="website") == 0
