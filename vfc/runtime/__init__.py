from vfc.runtime.telemetry import TelemetryCollector, TelemetryEvent

__all__ = ["TelemetryCollector", "TelemetryEvent"]
