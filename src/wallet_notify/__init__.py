"""wallet-notify — notification fan-out and push delivery pipeline."""

__version__ = "0.1.0"
