"""Term extraction benchmark: corpus indexing and precision/recall scoring."""

__version__ = "0.1.0"
