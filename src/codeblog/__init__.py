"""Code-sharing blog: API server and offline-capable client."""

__version__ = "0.1.0"
