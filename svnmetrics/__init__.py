"""svnmetrics — added-line metrics from Subversion history."""

__version__ = "0.1.0"
