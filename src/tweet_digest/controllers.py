"""Controllers for dashboard CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx

from tweet_digest.config import Settings
from tweet_digest.http.client import HttpJobsApi
from tweet_digest.jobs.errors import JobFailed
from tweet_digest.jobs.models import Job, JobStatus, TagOptions, TaskKey, TaskKind
from tweet_digest.jobs.orchestrator import JobOrchestrator
from tweet_digest.jobs.poller import PollCallbacks
from tweet_digest.jobs.presenter import describe_job, describe_skip, short_job_id
from tweet_digest.tags import apply_suggestion, suggestions


@dataclass(slots=True)
class TaskRunCommand:
    """CLI input for triggering one workflow task."""

    api_base_url: str | None
    kind: str
    target: str | None = None
    notify: bool | None = None
    window_days: int | None = None
    sample_per_tag: int | None = None
    watch: bool = True


@dataclass(slots=True)
class TaskWatchCommand:
    """CLI input for hydrating and watching in-flight jobs."""

    api_base_url: str | None


@dataclass(slots=True)
class JobListCommand:
    """CLI input for job listing."""

    api_base_url: str | None
    job_type: str | None
    status: str | None
    limit: int


@dataclass(slots=True)
class JobInspectCommand:
    """CLI input for single-job operations."""

    api_base_url: str | None
    job_id: str


@dataclass(slots=True)
class TagSuggestCommand:
    """CLI input for tag suggestions."""

    api_base_url: str | None
    text: str
    vocabulary: str
    limit: int | None


@dataclass(slots=True)
class TaskRunResult:
    """Watch report to render in CLI."""

    lines: list[str]
    success: bool


@dataclass(slots=True)
class _StatusFeed:
    """Turns poll callbacks into printable status lines."""

    lines: list[str]
    last_text: dict[TaskKey, str] = field(default_factory=dict)
    poll_errors: dict[TaskKey, str] = field(default_factory=dict)

    def callbacks(self, key: TaskKey) -> PollCallbacks:
        return PollCallbacks(
            on_update=lambda job: self._on_update(key, job),
            on_error=lambda message: self._on_error(key, message),
        )

    def _on_update(self, key: TaskKey, job: Job) -> None:
        text = describe_job(job)
        if self.last_text.get(key) == text:
            return
        self.last_text[key] = text
        self.lines.append(f"[{key}] {text}")

    def _on_error(self, key: TaskKey, message: str) -> None:
        self.poll_errors[key] = message
        self.lines.append(f"[{key}] status query failed: {message}")


class DashboardCliController:
    """Coordinates task triggering, job watching and inspection CLI operations."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    def run_task(self, command: TaskRunCommand) -> TaskRunResult:
        settings = _settings(command.api_base_url)
        return asyncio.run(self._run_task(settings, command))

    def watch(self, command: TaskWatchCommand) -> TaskRunResult:
        settings = _settings(command.api_base_url)
        return asyncio.run(self._watch(settings))

    def list_jobs(self, command: JobListCommand) -> list[str]:
        settings = _settings(command.api_base_url)
        status = JobStatus(command.status.upper()) if command.status else None

        async def _list() -> list[Job]:
            async with self._api(settings) as api:
                return await api.list_jobs(
                    job_type=command.job_type,
                    status=status,
                    limit=command.limit,
                )

        jobs = asyncio.run(_list())
        lines = [f"Jobs: {len(jobs)}"]
        for job in jobs:
            scheduled = job.scheduled_at.isoformat() if job.scheduled_at is not None else "-"
            lines.append(
                f"  {job.id} type={job.type} status={job.status.value} "
                f"attempts={job.attempts}/{job.max_attempts} scheduled_at={scheduled}",
            )
        return lines

    def inspect_job(self, command: JobInspectCommand) -> list[str]:
        settings = _settings(command.api_base_url)

        async def _get() -> Job:
            async with self._api(settings) as api:
                return await api.get_job(command.job_id)

        job = asyncio.run(_get())
        return [
            f"Job: {job.id}",
            f"Type: {job.type}",
            f"Status: {job.status.value}",
            f"Attempts: {job.attempts}/{job.max_attempts}",
            f"Scheduled: {_iso(job.scheduled_at)}",
            f"Locked: {_iso(job.locked_at)} by {job.locked_by or '-'}",
            f"Completed: {_iso(job.completed_at)}",
            f"Error: {job.last_error or '-'}",
            f"Summary: {describe_job(job)}",
        ]

    def delete_job(self, command: JobInspectCommand) -> list[str]:
        settings = _settings(command.api_base_url)

        async def _delete() -> None:
            async with self._api(settings) as api:
                await api.delete_job(command.job_id)

        asyncio.run(_delete())
        return [f"Job deleted: {command.job_id}"]

    def suggest_tags(self, command: TagSuggestCommand) -> list[str]:
        settings = _settings(command.api_base_url)

        async def _options() -> TagOptions:
            async with self._api(settings) as api:
                return await api.list_tag_options(limit=settings.tags.options_limit)

        options = asyncio.run(_options())
        known = options.author_tags if command.vocabulary == "author" else options.tweet_tags
        matches = suggestions(
            command.text,
            known,
            limit=command.limit or settings.tags.suggestion_limit,
        )
        if not matches:
            return ["No matching tags."]
        return [f"Suggestions: {len(matches)}", *(f"  {tag}" for tag in matches)]

    def apply_tag(self, text: str, chosen: str) -> list[str]:
        return [apply_suggestion(text, chosen)]

    async def _run_task(self, settings: Settings, command: TaskRunCommand) -> TaskRunResult:
        lines: list[str] = []
        feed = _StatusFeed(lines)
        kind = TaskKind(command.kind)
        key = TaskKey(kind, command.target)
        params = _task_params(command)
        async with self._api(settings) as api, self._orchestrator(api, settings) as orchestrator:
            result = await orchestrator.trigger(
                kind,
                command.target,
                params,
                callbacks=feed.callbacks(key),
            )
            if result.skip is not None:
                lines.append(f"[{key}] {describe_skip(result.skip)}")
                return TaskRunResult(lines=lines, success=True)

            message = orchestrator.slot(kind, command.target).message
            lines.insert(0, f"[{key}] {message}")
            if not command.watch:
                return TaskRunResult(lines=lines, success=True)

            await orchestrator.join()
            return _summarize(orchestrator, feed)

    async def _watch(self, settings: Settings) -> TaskRunResult:
        lines: list[str] = []
        feed = _StatusFeed(lines)
        async with self._api(settings) as api, self._orchestrator(api, settings) as orchestrator:
            adopted = await orchestrator.hydrate(feed.callbacks)
            if not adopted:
                return TaskRunResult(lines=["No in-flight jobs."], success=True)
            header = [f"Watching {len(adopted)} in-flight job(s)"]
            for key in adopted:
                job_id = orchestrator.poller.observing(key) or "-"
                header.append(f"  {key} -> {short_job_id(job_id)}")
            lines[0:0] = header
            await orchestrator.join()
            return _summarize(orchestrator, feed)

    @asynccontextmanager
    async def _api(self, settings: Settings) -> AsyncIterator[HttpJobsApi]:
        api = HttpJobsApi(
            base_url=settings.api.base_url,
            timeout_seconds=settings.api.request_timeout_seconds,
            transport=self._transport,
        )
        async with api:
            yield api

    @asynccontextmanager
    async def _orchestrator(
        self,
        api: HttpJobsApi,
        settings: Settings,
    ) -> AsyncIterator[JobOrchestrator]:
        orchestrator = JobOrchestrator(
            api=api,
            interval_seconds=settings.polling.interval_seconds,
            job_list_limit=settings.polling.job_list_limit,
        )
        try:
            yield orchestrator
        finally:
            orchestrator.teardown()
            # late responses must land (and be dropped) before the client closes
            await orchestrator.settle()


def _summarize(orchestrator: JobOrchestrator, feed: _StatusFeed) -> TaskRunResult:
    failures = [
        JobFailed.from_job(slot.job)
        for slot in orchestrator.slots().values()
        if slot.job is not None and slot.job.status is JobStatus.FAILED
    ]
    for failure in failures:
        job_id = failure.job.id if failure.job is not None else "-"
        feed.lines.append(f"Job {short_job_id(job_id)} failed: {failure.message}")
    success = not failures and not feed.poll_errors
    return TaskRunResult(lines=feed.lines, success=success)


def _task_params(command: TaskRunCommand) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if command.notify is not None:
        params["notify"] = command.notify
    if command.window_days is not None:
        params["windowDays"] = command.window_days
    if command.sample_per_tag is not None:
        params["samplePerTag"] = command.sample_per_tag
    return params


def _settings(api_base_url: str | None) -> Settings:
    settings = Settings.from_env(api_base_url=api_base_url)
    settings.validate()
    return settings


def _iso(value: Any) -> str:
    return value.isoformat() if value is not None else "-"
