"""Client for the tweet digest dashboard job queue."""

__version__ = "0.1.0"
