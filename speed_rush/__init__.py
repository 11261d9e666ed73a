"""Speed Rush: a timed single-player racing session engine."""

__version__ = "1.0.0"
