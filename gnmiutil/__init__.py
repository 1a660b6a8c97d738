"""Building blocks for gNMI telemetry collectors: paths, trees, matching, latency and metadata."""

__version__ = "0.1.0"