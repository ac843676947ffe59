"""Live FPS and frame-time telemetry from PresentMon capture output."""

__version__ = "0.1.0"
