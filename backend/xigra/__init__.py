"""XIGRA+ print backend: encrypted uploads, unlock-on-demand and timed purge."""

__version__ = "1.0.0"
