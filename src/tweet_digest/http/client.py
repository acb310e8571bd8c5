"""Async HTTP client for the dashboard backend job endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tweet_digest.jobs.api import parse_job, parse_jobs, parse_tag_options
from tweet_digest.jobs.catalog import build_enqueue_request
from tweet_digest.jobs.errors import EnqueueError, JobClientError, PollError
from tweet_digest.jobs.models import Job, JobStatus, TagOptions, TaskKey

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
NO_CONTENT = 204


class HttpJobsApi:
    """``JobsApi`` over ``httpx.AsyncClient``.

    Transport failures and non-2xx responses are translated into the client
    error taxonomy; nothing is retried here.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        base_headers = {"Content-Type": "application/json"}
        if headers:
            base_headers.update(headers)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers=base_headers,
            transport=transport,
        )

    async def enqueue(self, key: TaskKey, params: dict[str, Any]) -> dict[str, Any]:
        request = build_enqueue_request(key, params)
        body = await self._request("POST", request.path, json=request.body, error=EnqueueError)
        if not isinstance(body, dict):
            raise EnqueueError(message=f"Unexpected enqueue response for {key}")
        return body

    async def get_job(self, job_id: str) -> Job:
        body = await self._request("GET", f"/tasks/jobs/{job_id}", error=PollError)
        try:
            return parse_job(body)
        except (TypeError, ValueError) as error:
            raise PollError(message=f"Malformed job {job_id}: {error}", job_id=job_id) from error

    async def list_jobs(
        self,
        *,
        job_type: str | None = None,
        status: JobStatus | None = None,
        limit: int = 20,
    ) -> list[Job]:
        params: dict[str, str | int] = {"limit": limit}
        if job_type:
            params["type"] = job_type
        if status is not None:
            params["status"] = status.value
        body = await self._request("GET", "/tasks/jobs", params=params, error=PollError)
        try:
            return parse_jobs(body)
        except (TypeError, ValueError) as error:
            raise PollError(message=f"Malformed job list: {error}") from error

    async def delete_job(self, job_id: str) -> None:
        await self._request("DELETE", f"/dev/jobs/{job_id}", error=JobClientError)

    async def list_tag_options(self, *, limit: int = 100) -> TagOptions:
        body = await self._request("GET", "/tags", params={"limit": limit}, error=JobClientError)
        try:
            return parse_tag_options(body)
        except (TypeError, ValueError) as error:
            raise JobClientError(message=f"Malformed tag options: {error}") from error

    async def _request(
        self,
        method: str,
        path: str,
        *,
        error: type[JobClientError],
        json: dict[str, Any] | None = None,
        params: dict[str, str | int] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("Timeout on %s %s", method, path)
            raise error(message=f"Request timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            logger.warning("HTTP error on %s %s: %s", method, path, exc)
            raise error(message=str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise error(message=_error_message(response), status_code=response.status_code)
        if response.status_code == NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise error(
                message=f"Invalid JSON from {method} {path}",
                status_code=response.status_code,
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpJobsApi:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return response.reason_phrase or f"HTTP {response.status_code}"
