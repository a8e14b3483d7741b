"""Tests for external field naming."""

from configapi.binding.naming import EXCLUDE, external_name, to_snake_case


class TestToSnakeCase:
    """Tests for to_snake_case function."""

    def test_camel_case(self):
        assert to_snake_case("MetricBatchSize") == "metric_batch_size"
        assert to_snake_case("metricBatchSize") == "metric_batch_size"

    def test_leading_acronym(self):
        assert to_snake_case("HTTPTimeout") == "http_timeout"

    def test_digits(self):
        assert to_snake_case("Ipv6Address") == "ipv6_address"
        assert to_snake_case("Level2Cache") == "level2_cache"

    def test_already_lowercase(self):
        assert to_snake_case("percpu") == "percpu"
        assert to_snake_case("metric_batch_size") == "metric_batch_size"


class TestExternalName:
    """Tests for external_name function."""

    def test_convention_name(self):
        assert external_name("FlushInterval") == "flush_interval"

    def test_override_wins(self):
        assert external_name("timestamp_units", "json_timestamp_units") == "json_timestamp_units"

    def test_exclusion_sentinel(self):
        assert external_name("filter", EXCLUDE) is None
