"""Job application tracker with remote storage and a local cache fallback."""

__version__ = "0.1.0"
