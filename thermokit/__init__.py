"""Thermal-analysis curve processing: derivatives, smoothing, extrema and
descriptor-driven algorithm orchestration."""

__version__ = "0.1.0"
