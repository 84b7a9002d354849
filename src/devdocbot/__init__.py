"""DevDocBot: local vector search over a project's source tree."""

__version__ = "1.0.0"
