"""artrag: retrieval-augmented question answering over artwork records."""

__version__ = "0.1.0"
