"""fleetsim — synthetic solar-fleet telemetry and live SSE fan-out."""

__version__ = "0.1.0"
