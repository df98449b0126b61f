"""
ASA Cluster - Provisioning Progress

Read-only projection of the provisioning job's progress events into what
the creating step displays. Events are applied in arrival order; a late
event with a lower percentage moves the display back.
"""

import logging
from collections import deque
from collections.abc import AsyncIterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from asa.config.settings import FINISHED_JOBS_KEPT

logger = logging.getLogger(__name__)

# Stages of cluster creation, in order
PROVISIONING_STEPS: tuple[str, ...] = (
    "Validating configuration",
    "Installing ASA server files",
    "Creating server configurations",
    "Setting up cluster settings",
    "Finalizing cluster creation",
)

INITIAL_MESSAGE = "Installing ASA server files and configuring your cluster..."


class JobStatus(str, Enum):
    """Provisioning job status"""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})


class StepState(str, Enum):
    DONE = "done"
    CURRENT = "current"
    PENDING = "pending"


class JobProgress(BaseModel):
    """One progress event from the provisioning job"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    progress: float = 0
    message: str = ""
    step: str | None = None
    job_id: str | None = None
    status: JobStatus = JobStatus.RUNNING
    error: str | None = None


class JobRecord(BaseModel):
    """Job as reported by a status poll: every event so far"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    status: JobStatus = JobStatus.RUNNING
    progress: list[JobProgress] = Field(default_factory=list)
    error: str | None = None


class ProgressSnapshot(BaseModel):
    """What the creating step shows"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    step: str = PROVISIONING_STEPS[0]
    percent: float = 0
    message: str = INITIAL_MESSAGE
    status: JobStatus = JobStatus.RUNNING
    error: str | None = None


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


class ProgressView:
    """Latest-event projection of one provisioning job"""

    def __init__(self, job_id: str | None = None) -> None:
        self.job_id = job_id
        self.snapshot = ProgressSnapshot()

    @property
    def finished(self) -> bool:
        return self.snapshot.status in TERMINAL_STATUSES

    def apply(self, event: JobProgress | dict[str, Any]) -> bool:
        """
        Project one event onto the snapshot.

        Returns:
            False when the event belongs to another job and was ignored
        """
        if isinstance(event, dict):
            event = JobProgress.model_validate(event)

        if self.job_id and event.job_id and event.job_id != self.job_id:
            logger.debug("Ignoring progress for job %s (watching %s)", event.job_id, self.job_id)
            return False

        previous_step = self.snapshot.step
        self.snapshot = ProgressSnapshot(
            step=event.step or self.snapshot.step,
            percent=_clamp_percent(event.progress),
            message=event.message,
            status=event.status,
            error=event.error,
        )

        if self.snapshot.step != previous_step:
            logger.info("Provisioning: %s", self.snapshot.step)
        if self.finished:
            logger.info("Provisioning job %s %s", self.job_id or "-", event.status.value)
        return True

    def step_states(self) -> list[tuple[str, StepState]]:
        """Each provisioning stage as done, current or pending"""
        if self.snapshot.status == JobStatus.COMPLETED:
            return [(name, StepState.DONE) for name in PROVISIONING_STEPS]

        try:
            current = PROVISIONING_STEPS.index(self.snapshot.step)
        except ValueError:
            current = -1

        states = []
        for index, name in enumerate(PROVISIONING_STEPS):
            if index < current:
                states.append((name, StepState.DONE))
            elif index == current:
                states.append((name, StepState.CURRENT))
            else:
                states.append((name, StepState.PENDING))
        return states

    async def observe(self, feed: AsyncIterable[JobProgress | dict[str, Any]]) -> ProgressSnapshot:
        """
        Consume a progress feed until the job finishes or the feed ends.

        The feed is closed (`aclose()`) on every exit path.
        """
        try:
            async for event in feed:
                self.apply(event)
                if self.finished:
                    break
        finally:
            aclose = getattr(feed, "aclose", None)
            if aclose is not None:
                await aclose()
        return self.snapshot


def estimate_from_job(
    job: JobRecord, total_steps: int = len(PROVISIONING_STEPS)
) -> JobProgress | None:
    """
    Progress event for a polled job.

    Percent is 100 once completed, 0 once failed, otherwise the share of
    stages reached judging by the number of events.

    Returns:
        None while the job has not reported anything
    """
    if not job.progress:
        return None

    if job.status == JobStatus.COMPLETED:
        percent = 100
    elif job.status == JobStatus.FAILED:
        percent = 0
    else:
        percent = round(min(len(job.progress), total_steps) / total_steps * 100)

    latest = job.progress[-1]
    return JobProgress(
        job_id=job.id,
        status=job.status,
        progress=percent,
        message=latest.message,
        step=latest.step,
        error=job.error,
    )


class JobRegistry:
    """
    Provisioning jobs submitted from this wizard, by job id.

    Running jobs are kept until they finish; only the `keep_finished` most
    recently finished jobs stay available afterwards.
    """

    def __init__(self, keep_finished: int = FINISHED_JOBS_KEPT) -> None:
        self.keep_finished = max(1, keep_finished)
        self._records: dict[str, JobRecord] = {}
        self._views: dict[str, ProgressView] = {}
        self._finished: deque[str] = deque()

    def register(self, job_id: str) -> ProgressView:
        self._records[job_id] = JobRecord(id=job_id)
        self._views[job_id] = ProgressView(job_id)
        return self._views[job_id]

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._views

    def view(self, job_id: str) -> ProgressView | None:
        return self._views.get(job_id)

    def record(self, job_id: str) -> JobRecord | None:
        return self._records.get(job_id)

    def ingest(self, job_id: str, event: JobProgress) -> ProgressView | None:
        """
        Record an event for a known job and apply it to its view.

        Events arriving after the job finished are ignored.
        """
        view = self._views.get(job_id)
        if view is None:
            return None
        if view.finished:
            logger.debug("Ignoring progress for finished job %s", job_id)
            return view

        event = event.model_copy(update={"job_id": event.job_id or job_id})
        if view.apply(event):
            record = self._records[job_id]
            record.progress.append(event)
            record.status = event.status
            record.error = event.error
            if view.finished:
                self._retire(job_id)
        return view

    def _retire(self, job_id: str) -> None:
        self._finished.append(job_id)
        while len(self._finished) > self.keep_finished:
            expired = self._finished.popleft()
            self._records.pop(expired, None)
            self._views.pop(expired, None)
            logger.debug("Dropped finished job %s", expired)
