"""
Provisioning Router

FastAPI router for the creating step:
- Ingest progress events of a submitted cluster job
- Current progress of a job (latest event, or the polling estimate)
"""

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from asa.config.models import WizardStep
from asa.core.progress import (
    JobProgress,
    JobRegistry,
    JobStatus,
    ProgressView,
    estimate_from_job,
)
from asa.core.wizard import WizardStateStore


def _progress_body(job_id: str, view: ProgressView, jobs: JobRegistry) -> dict[str, Any]:
    record = jobs.record(job_id)
    estimate = estimate_from_job(record) if record is not None else None
    return {
        "jobId": job_id,
        "finished": view.finished,
        "snapshot": view.snapshot.model_dump(by_alias=True, mode="json"),
        "steps": [{"name": name, "state": state.value} for name, state in view.step_states()],
        "estimate": estimate.model_dump(by_alias=True, mode="json") if estimate else None,
    }


def create_router(
    get_store_dependency: Callable[..., Any],
    get_jobs_dependency: Callable[..., Any],
) -> APIRouter:
    """Create and configure the provisioning router.

    Args:
        get_store_dependency: Dependency function that returns WizardStateStore
        get_jobs_dependency: Dependency function that returns JobRegistry

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter(prefix="/jobs", tags=["Provisioning"])

    @router.post("/{job_id}/progress")
    async def ingest_progress(
        job_id: str,
        event: JobProgress,
        store: WizardStateStore = Depends(get_store_dependency),  # noqa: B008
        jobs: JobRegistry = Depends(get_jobs_dependency),  # noqa: B008
    ) -> dict[str, Any]:
        """Apply a progress event from the provisioning job"""
        view = jobs.view(job_id)
        if view is None:
            raise HTTPException(status_code=404, detail=f"Unknown job: {job_id}")

        was_finished = view.finished
        jobs.ingest(job_id, event)

        # Only the event that finishes the job moves the wizard: it closes on
        # success and returns to review on failure
        if not was_finished and store.step == WizardStep.CREATING:
            if view.snapshot.status == JobStatus.COMPLETED:
                store.reset()
            elif view.snapshot.status == JobStatus.FAILED:
                store.go_to(WizardStep.REVIEW)

        return _progress_body(job_id, view, jobs)

    @router.get("/{job_id}/progress")
    async def get_progress(
        job_id: str,
        jobs: JobRegistry = Depends(get_jobs_dependency),  # noqa: B008
    ) -> dict[str, Any]:
        """Current progress of a job"""
        view = jobs.view(job_id)
        if view is None:
            raise HTTPException(status_code=404, detail=f"Unknown job: {job_id}")
        return _progress_body(job_id, view, jobs)

    return router
