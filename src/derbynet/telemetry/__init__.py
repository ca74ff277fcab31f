"""
Telemetry module - Race recording and export.

This module contains:
- TelemetryChannel: Individual data channel
- RaceRecorder: Records horse positions and speeds over a race
- TelemetryExporter: Export recordings to CSV or JSON
"""

from derbynet.telemetry.channel import TelemetryChannel, ChannelConfig
from derbynet.telemetry.recorder import RaceRecorder, RecorderConfig
from derbynet.telemetry.exporter import TelemetryExporter, ExporterConfig

__all__ = [
    "TelemetryChannel",
    "ChannelConfig",
    "RaceRecorder",
    "RecorderConfig",
    "TelemetryExporter",
    "ExporterConfig",
]
