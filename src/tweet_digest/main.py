"""CLI entrypoint for tweet-digest."""

import logging
from collections.abc import Callable
from typing import TypeVar

import rich_click as click

from tweet_digest import __version__
from tweet_digest.controllers import (
    DashboardCliController,
    JobInspectCommand,
    JobListCommand,
    TagSuggestCommand,
    TaskRunCommand,
    TaskRunResult,
    TaskWatchCommand,
)
from tweet_digest.jobs.catalog import JOB_TYPES
from tweet_digest.jobs.errors import JobClientError
from tweet_digest.jobs.models import JobStatus, TaskKind

click.rich_click.USE_MARKDOWN = True
CONTROLLER = DashboardCliController()

_T = TypeVar("_T")

api_base_url_option = click.option(
    "--api-base-url",
    default=None,
    help="Backend API base URL. Defaults to TWEET_DIGEST_API_BASE_URL.",
)


@click.group()
@click.version_option(version=__version__, prog_name="tweet-digest")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
def tweet_digest(verbose: bool) -> None:
    """Tweet digest dashboard CLI."""

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@tweet_digest.group()
def tasks() -> None:
    """Trigger backend workflow tasks and follow their jobs."""


@tasks.command("run")
@click.argument("kind", type=click.Choice([kind.value for kind in TaskKind]))
@api_base_url_option
@click.option(
    "--target",
    default=None,
    help="Report profile id or tag name for per-target tasks.",
)
@click.option(
    "--notify/--no-notify",
    default=None,
    help="Report profiles only: send the report notification.",
)
@click.option(
    "--window-days",
    type=click.IntRange(min=1, max=365),
    default=None,
    help="Embedding cache refresh window in days.",
)
@click.option(
    "--sample-per-tag",
    type=click.IntRange(min=1),
    default=None,
    help="Embedding cache refresh sample size per tag.",
)
@click.option(
    "--watch/--no-watch",
    default=True,
    show_default=True,
    help="Poll the job until it finishes.",
)
def tasks_run(  # noqa: PLR0913
    kind: str,
    api_base_url: str | None,
    target: str | None,
    notify: bool | None,
    window_days: int | None,
    sample_per_tag: int | None,
    watch: bool,
) -> None:
    """Trigger one task. Duplicate triggers attach to the running job."""

    result = _call(
        CONTROLLER.run_task,
        TaskRunCommand(
            api_base_url=api_base_url,
            kind=kind,
            target=target,
            notify=notify,
            window_days=window_days,
            sample_per_tag=sample_per_tag,
            watch=watch,
        ),
    )
    _emit_result(result, f"Task {kind} failed.")


@tasks.command("watch")
@api_base_url_option
def tasks_watch(api_base_url: str | None) -> None:
    """Resume observation of jobs that are already queued or running."""

    result = _call(CONTROLLER.watch, TaskWatchCommand(api_base_url=api_base_url))
    _emit_result(result, "Watched jobs failed.")


@tweet_digest.group()
def jobs() -> None:
    """Inspect backend jobs."""


@jobs.command("list")
@api_base_url_option
@click.option(
    "--type",
    "job_type",
    type=click.Choice(list(JOB_TYPES)),
    default=None,
    help="Filter by job type.",
)
@click.option(
    "--status",
    type=click.Choice([status.value.lower() for status in JobStatus], case_sensitive=False),
    default=None,
    help="Filter by job status.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=100),
    default=20,
    show_default=True,
    help="Max jobs to list.",
)
def jobs_list(
    api_base_url: str | None,
    job_type: str | None,
    status: str | None,
    limit: int,
) -> None:
    """List the most recent jobs."""

    _emit_lines(
        _call(
            CONTROLLER.list_jobs,
            JobListCommand(
                api_base_url=api_base_url,
                job_type=job_type,
                status=status,
                limit=limit,
            ),
        ),
    )


@jobs.command("show")
@api_base_url_option
@click.option("--job-id", required=True, help="Job id.")
def jobs_show(api_base_url: str | None, job_id: str) -> None:
    """Show one job snapshot."""

    _emit_lines(
        _call(CONTROLLER.inspect_job, JobInspectCommand(api_base_url=api_base_url, job_id=job_id)),
    )


@jobs.command("delete")
@api_base_url_option
@click.option("--job-id", required=True, help="Job id.")
def jobs_delete(api_base_url: str | None, job_id: str) -> None:
    """Delete a job (development backends only)."""

    _emit_lines(
        _call(CONTROLLER.delete_job, JobInspectCommand(api_base_url=api_base_url, job_id=job_id)),
    )


@tweet_digest.group()
def tags() -> None:
    """Tag list editing helpers."""


@tags.command("suggest")
@click.argument("text")
@api_base_url_option
@click.option(
    "--vocabulary",
    type=click.Choice(["tweet", "author"]),
    default="tweet",
    show_default=True,
    help="Which known tag set to match against.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Max suggestions. Defaults to TWEET_DIGEST_TAG_SUGGESTION_LIMIT.",
)
def tags_suggest(text: str, api_base_url: str | None, vocabulary: str, limit: int | None) -> None:
    """Suggest known tags for the last token of a comma-separated list."""

    _emit_lines(
        _call(
            CONTROLLER.suggest_tags,
            TagSuggestCommand(
                api_base_url=api_base_url,
                text=text,
                vocabulary=vocabulary,
                limit=limit,
            ),
        ),
    )


@tags.command("apply")
@click.argument("text")
@click.argument("chosen")
def tags_apply(text: str, chosen: str) -> None:
    """Replace the last token with CHOSEN and print the normalized list."""

    _emit_lines(CONTROLLER.apply_tag(text, chosen))


def _call(operation: Callable[..., _T], command: object) -> _T:
    try:
        return operation(command)
    except (JobClientError, ValueError) as error:
        raise click.ClickException(str(error)) from error


def _emit_result(result: TaskRunResult, failure_message: str) -> None:
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException(failure_message)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    tweet_digest()
