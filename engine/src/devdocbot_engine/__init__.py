"""DevDocBot Engine: HTTP service over the vector store."""

__version__ = "1.0.0"
