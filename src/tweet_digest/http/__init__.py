"""HTTP access to the dashboard backend."""

from tweet_digest.http.client import HttpJobsApi

__all__ = ["HttpJobsApi"]
