# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import asyncio

import pytest

from app.services.job_poller import (
    AsyncJob,
    JobCancelledError,
    JobFailedError,
    JobPoller,
    JobTimeoutError,
    SyntheticProgress,
    normalize_status,
    poll_job,
)


class ScriptedFetcher:
    """Returns the given statuses in order and records every call."""

    def __init__(self, *jobs):
        self.jobs = list(jobs)
        self.calls = []

    def __call__(self, job_id):
        self.calls.append(job_id)
        return self.jobs.pop(0)


class Recorder:
    def __init__(self):
        self.progress = []
        self.completed = []
        self.errors = []

    def callbacks(self):
        return {
            "on_progress": self.progress.append,
            "on_complete": self.completed.append,
            "on_error": self.errors.append,
        }


def _run(poller):
    return asyncio.run(poller.run())


def test_polls_until_completed():
    fetch = ScriptedFetcher(
        AsyncJob("v1", "queued"),
        AsyncJob("v1", "generating", progress=40),
        AsyncJob("v1", "completed", result_url="https://cdn.example.com/v1.mp4"),
    )
    seen = Recorder()

    job = _run(JobPoller("v1", fetch, interval=0, **seen.callbacks()))

    assert job.result_url == "https://cdn.example.com/v1.mp4"
    assert fetch.calls == ["v1", "v1", "v1"]
    assert seen.completed == [job]
    assert seen.progress == [40]
    assert seen.errors == []


def test_synthetic_progress_fills_in_missing_numbers():
    fetch = ScriptedFetcher(*[AsyncJob("v1", "generating") for _ in range(11)], AsyncJob("v1", "completed"))
    seen = Recorder()

    _run(JobPoller("v1", fetch, interval=0, synthetic_progress=SyntheticProgress(), **seen.callbacks()))

    assert seen.progress[:3] == [10, 20, 30]
    assert seen.progress[-1] == 90
    assert seen.progress == sorted(seen.progress)


def test_error_status_reports_provider_message():
    fetch = ScriptedFetcher(AsyncJob("v1", "generating"), AsyncJob("v1", "failed", error_message="Bad script"))
    seen = Recorder()

    with pytest.raises(JobFailedError) as info:
        _run(JobPoller("v1", fetch, interval=0, **seen.callbacks()))

    assert info.value.message == "Bad script"
    assert info.value.job.status == "error"
    assert seen.errors == ["Bad script"]
    assert seen.completed == []


def test_error_status_without_message_uses_generic_text():
    seen = Recorder()
    with pytest.raises(JobFailedError):
        _run(JobPoller("v1", ScriptedFetcher(AsyncJob("v1", "error")), interval=0, **seen.callbacks()))
    assert seen.errors == ["Job failed"]


def test_fetch_failure_stops_polling_without_retry():
    calls = []

    def fetch(job_id):
        calls.append(job_id)
        raise ConnectionError("provider unreachable")

    seen = Recorder()
    with pytest.raises(JobFailedError) as info:
        _run(JobPoller("v1", fetch, interval=0, **seen.callbacks()))

    assert len(calls) == 1
    assert isinstance(info.value.__cause__, ConnectionError)
    assert seen.errors == ["provider unreachable"]


def test_fetch_failure_after_a_generating_status():
    statuses = [AsyncJob("v1", "generating", progress=30)]
    calls = []

    def fetch(job_id):
        calls.append(job_id)
        if statuses:
            return statuses.pop(0)
        raise RuntimeError("boom")

    seen = Recorder()
    with pytest.raises(JobFailedError):
        _run(JobPoller("v1", fetch, interval=0, **seen.callbacks()))

    assert len(calls) == 2
    assert seen.progress == [30]
    assert seen.errors == ["boom"]
    assert seen.completed == []


def test_async_fetcher_is_awaited():
    statuses = iter(["generating", "completed"])

    async def fetch(job_id):
        await asyncio.sleep(0)
        return AsyncJob(job_id, next(statuses))

    job = asyncio.run(poll_job("v2", fetch, interval=0))
    assert job.status == "completed"


def test_checks_never_overlap():
    in_flight = []
    overlaps = []
    statuses = iter(["generating", "generating", "generating", "completed"])

    async def fetch(job_id):
        if in_flight:
            overlaps.append(job_id)
        in_flight.append(job_id)
        await asyncio.sleep(0.01)
        in_flight.pop()
        return AsyncJob(job_id, next(statuses))

    asyncio.run(poll_job("v1", fetch, interval=0))
    assert overlaps == []


def test_cancel_during_fetch_suppresses_callbacks():
    seen = Recorder()
    poller = None

    def fetch(job_id):
        poller.cancel()
        return AsyncJob(job_id, "completed")

    poller = JobPoller("v1", fetch, interval=0, **seen.callbacks())
    with pytest.raises(JobCancelledError):
        _run(poller)

    assert poller.cancelled
    assert seen.completed == []
    assert seen.errors == []


def test_cancel_wakes_a_sleeping_poller():
    fetch = ScriptedFetcher(AsyncJob("v1", "generating"), AsyncJob("v1", "completed"))
    seen = Recorder()

    async def scenario():
        poller = JobPoller("v1", fetch, interval=30, **seen.callbacks())
        task = asyncio.ensure_future(poller.run())
        await asyncio.sleep(0.01)
        poller.cancel()
        with pytest.raises(JobCancelledError):
            await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())
    assert fetch.calls == ["v1"]
    assert seen.completed == []


def test_cancel_before_start_never_fetches():
    fetch = ScriptedFetcher()
    poller = JobPoller("v1", fetch, interval=0)
    poller.cancel()
    with pytest.raises(JobCancelledError):
        _run(poller)
    assert fetch.calls == []


def test_max_attempts_times_out():
    fetch = ScriptedFetcher(*[AsyncJob("v1", "generating") for _ in range(5)])
    seen = Recorder()
    poller = JobPoller("v1", fetch, interval=0, max_attempts=3, **seen.callbacks())

    with pytest.raises(JobTimeoutError):
        _run(poller)

    assert poller.attempts == 3
    assert len(fetch.calls) == 3
    assert len(seen.errors) == 1


@pytest.mark.parametrize("kwargs", [{"job_id": ""}, {"job_id": "v1", "max_attempts": 0}])
def test_invalid_arguments(kwargs):
    job_id = kwargs.pop("job_id")
    with pytest.raises(ValueError):
        JobPoller(job_id, ScriptedFetcher(), **kwargs)


def test_normalize_status_aliases():
    assert normalize_status("ready") == "completed"
    assert normalize_status("Training") == "generating"
    assert normalize_status("failed") == "error"
    assert normalize_status("pending") == "generating"
    assert normalize_status(None) == "queued"
    assert normalize_status("rendering") == "generating"


def test_synthetic_progress_caps_below_done():
    ticker = SyntheticProgress(step=40, cap=90)
    assert [ticker.advance() for _ in range(4)] == [40, 80, 90, 90]
