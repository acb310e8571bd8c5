"""Tests for the httpx-backed jobs API client."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import allure
import httpx
import pytest

from conftest import job_payload
from tweet_digest.http import HttpJobsApi
from tweet_digest.jobs.errors import EnqueueError, JobClientError, PollError
from tweet_digest.jobs.models import JobStatus, TaskKey, TaskKind

pytestmark = [
    allure.epic("Job Orchestration"),
    allure.feature("Backend HTTP Client"),
]

BASE_URL = "http://backend.test/api"


def _run(
    handler: Callable[[httpx.Request], httpx.Response],
    operation: Callable[[HttpJobsApi], Any],
) -> Any:
    async def scenario() -> Any:
        async with HttpJobsApi(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as api:
            return await operation(api)

    return asyncio.run(scenario())


class TestEnqueue:
    def test_fetch_posts_dedupe_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"created": True, "job": job_payload("j1")})

        body = _run(handler, lambda api: api.enqueue(TaskKey(TaskKind.FETCH), {}))

        assert body["created"] is True
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/tasks/fetch"
        assert json.loads(seen[0].content) == {"dedupe": True}

    def test_report_profile_run_posts_notify(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"created": True, "job": job_payload("j1")})

        _run(
            handler,
            lambda api: api.enqueue(TaskKey(TaskKind.REPORT_PROFILE, "p1"), {"notify": True}),
        )

        assert seen[0].url.path == "/api/report-profiles/p1/run"
        assert json.loads(seen[0].content) == {"notify": True}

    def test_error_message_comes_from_response_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "Another fetch is running"})

        with pytest.raises(EnqueueError) as error:
            _run(handler, lambda api: api.enqueue(TaskKey(TaskKind.FETCH), {}))

        assert error.value.message == "Another fetch is running"
        assert error.value.status_code == 409
        assert error.value.code == "enqueue_failed"

    def test_error_message_falls_back_to_status_text(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        with pytest.raises(EnqueueError, match="Bad Gateway"):
            _run(handler, lambda api: api.enqueue(TaskKey(TaskKind.ANALYZE), {}))

    def test_transport_failure_is_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(EnqueueError, match="connection refused"):
            _run(handler, lambda api: api.enqueue(TaskKey(TaskKind.FETCH), {}))


class TestJobs:
    def test_get_job_parses_snapshot(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/tasks/jobs/j1"
            return httpx.Response(200, json=job_payload("j1", "COMPLETED"))

        job = _run(handler, lambda api: api.get_job("j1"))

        assert job.id == "j1"
        assert job.status is JobStatus.COMPLETED

    def test_get_job_timeout_raises_poll_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(PollError, match="Request timed out: GET /tasks/jobs/j1"):
            _run(handler, lambda api: api.get_job("j1"))

    def test_get_job_with_malformed_body_raises_poll_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "j1", "type": "x", "status": "LOST"})

        with pytest.raises(PollError, match="Malformed job j1"):
            _run(handler, lambda api: api.get_job("j1"))

    def test_list_jobs_sends_filters(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[job_payload("j1", "RUNNING")])

        jobs = _run(
            handler,
            lambda api: api.list_jobs(
                job_type="fetch-subscriptions",
                status=JobStatus.RUNNING,
                limit=5,
            ),
        )

        assert [job.id for job in jobs] == ["j1"]
        params = seen[0].url.params
        assert params["limit"] == "5"
        assert params["type"] == "fetch-subscriptions"
        assert params["status"] == "RUNNING"

    def test_delete_job_accepts_no_content(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        assert _run(handler, lambda api: api.delete_job("j1")) is None
        assert seen[0].method == "DELETE"
        assert seen[0].url.path == "/api/dev/jobs/j1"

    def test_delete_missing_job_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Job not found"})

        with pytest.raises(JobClientError, match="Job not found"):
            _run(handler, lambda api: api.delete_job("nope"))


def test_list_tag_options() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["limit"] == "100"
        return httpx.Response(
            200,
            json={"tweetTags": [{"tag": "eth", "count": 2}], "authorTags": []},
        )

    options = _run(handler, lambda api: api.list_tag_options())

    assert [option.tag for option in options.tweet_tags] == ["eth"]
    assert options.author_tags == []
