"""Unit tests for the sensor framework."""

import pytest
from unittest.mock import Mock, patch
from prometheus_client import CollectorRegistry
from pgcluster.sensors import (
    OperatorSensor,
    PrometheusMonitor,
    SensorDelegate,
    init_metrics_server,
)


class TestSensorDelegate:
    def test_events_reach_every_sensor(self):
        first, second = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        delegate = SensorDelegate()
        delegate.add(first)
        delegate.add(second)

        delegate.on_resource_drift_detected("pg", "pg-rw", "db", "Service", ["spec.selector"])

        for sensor in (first, second):
            sensor.on_resource_drift_detected.assert_called_once_with(
                "pg", "pg-rw", "db", "Service", ["spec.selector"]
            )

    def test_failing_sensor_does_not_interrupt(self):
        failing, healthy = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        failing.on_conflict_retry.side_effect = RuntimeError("boom")
        delegate = SensorDelegate()
        delegate.add(failing)
        delegate.add(healthy)

        delegate.on_conflict_retry("pg", "pg-rw", "db", "Service", 1)

        healthy.on_conflict_retry.assert_called_once()

    def test_state_is_routed_per_sensor(self):
        sensor = Mock(spec=OperatorSensor)
        sensor.on_reconcile_start.return_value = {"start_time": 1.0}
        delegate = SensorDelegate()
        delegate.add(sensor)

        state = delegate.on_reconcile_start("pg", "db", 3, "timer")
        delegate.on_reconcile_complete("pg", "db", state, True)

        sensor.on_reconcile_complete.assert_called_once_with(
            "pg", "db", {"start_time": 1.0}, True, None
        )

    def test_no_sensors(self):
        assert SensorDelegate().on_reconcile_start("pg", "db", 1, "timer") is None


class TestPrometheusMonitor:
    def test_resource_sync_is_counted(self):
        registry = CollectorRegistry()
        monitor = PrometheusMonitor(registry=registry)

        state = monitor.on_resource_sync_start("pg", "pg-rw", "db", "Service")
        monitor.on_resource_sync_complete(
            "pg", "pg-rw", "db", "Service", state, "created", True
        )

        assert registry.get_sample_value(
            "pgcluster_resource_sync_total",
            {
                "cluster_name": "pg",
                "resource_name": "pg-rw",
                "namespace": "db",
                "resource_type": "Service",
                "operation": "created",
                "result": "success",
            },
        ) == 1.0

    def test_capability_absent_is_counted(self):
        registry = CollectorRegistry()
        monitor = PrometheusMonitor(registry=registry)

        monitor.on_capability_absent("pg", "db", "monitoring.coreos.com/v1", "PodMonitor")
        monitor.on_capability_absent("pg", "db", "monitoring.coreos.com/v1", "PodMonitor")

        assert registry.get_sample_value(
            "pgcluster_capability_absent_total",
            {
                "cluster_name": "pg",
                "namespace": "db",
                "group_version": "monitoring.coreos.com/v1",
                "kind": "PodMonitor",
            },
        ) == 2.0

    def test_reconcile_errors_are_counted(self):
        registry = CollectorRegistry()
        monitor = PrometheusMonitor(registry=registry)

        state = monitor.on_reconcile_start("pg", "db", 1, "update")
        monitor.on_reconcile_complete("pg", "db", state, False, TimeoutError())

        assert registry.get_sample_value(
            "pgcluster_reconcile_errors_total",
            {"cluster_name": "pg", "namespace": "db", "error_type": "TimeoutError"},
        ) == 1.0


class TestMetricsServer:
    def test_bind_failure_reaches_the_caller(self):
        with patch(
            "pgcluster.sensors.server.start_http_server",
            side_effect=OSError("Address already in use"),
        ):
            with pytest.raises(OSError):
                init_metrics_server(9999)

    def test_server_started_on_port(self):
        with patch("pgcluster.sensors.server.start_http_server") as start:
            init_metrics_server(9999)

        start.assert_called_once_with(9999)
