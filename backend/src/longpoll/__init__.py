"""In-memory long-poll pub/sub with a single pending event per client."""

__version__ = "0.1.0"
