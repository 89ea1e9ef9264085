"""Task tracking with snapshot-persisted entity repositories."""

__version__ = "2.0.0"
