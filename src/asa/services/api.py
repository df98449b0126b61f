#!/usr/bin/env python3
"""
ASA Cluster Planner API

HTTP surface over the cluster wizard:
- Wizard state, navigation and update commands
- Config import
- Server list, port preview and map catalogue
- Deployment plan and submission
- Mods and provisioning progress (routers)
"""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import Body, Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from asa.config.models import (
    HealthResponse,
    OperationResponse,
    PortPreviewResponse,
    StepRequest,
    WizardStateResponse,
    WizardStep,
)
from asa.config.settings import CORS_ORIGINS, PREVIEW_LIMIT, configure_logging
from asa.core.maps import list_available_maps
from asa.core.ports import preview_ports
from asa.core.progress import JobRegistry
from asa.core.steps import next_step, previous_step, validate_step
from asa.core.wizard import WizardStateStore
from asa.mods import router as mods_router
from asa.provisioning import router as provisioning_router

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown"""
    configure_logging()
    logger.info("ASA cluster planner API starting...")

    app.state.wizard = WizardStateStore()
    app.state.jobs = JobRegistry()

    yield

    logger.info("ASA cluster planner API shutting down...")


# =============================================================================
# Application
# =============================================================================

app = FastAPI(
    title="ASA Cluster Planner API",
    description="Guided planning of ARK: Survival Ascended server clusters",
    version="1.0.0",
    lifespan=lifespan,
)

# FastAPI parameter sentinels (avoid function calls in defaults per linter)
FILE_REQUIRED = File(...)
BODY_REQUIRED = Body(...)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_wizard() -> WizardStateStore:
    """Get wizard store from app state"""
    return cast(WizardStateStore, app.state.wizard)


def get_jobs() -> JobRegistry:
    """Get provisioning job registry from app state"""
    return cast(JobRegistry, app.state.jobs)


app.include_router(mods_router.create_router(get_wizard))
app.include_router(provisioning_router.create_router(get_wizard, get_jobs))


def _state(store: WizardStateStore) -> WizardStateResponse:
    return WizardStateResponse(
        step=store.step,
        data=store.data.model_dump(by_alias=True, mode="json"),
        servers=[s.model_dump(by_alias=True) for s in store.servers()],
        issues=validate_step(store.step, store.data),
    )


# =============================================================================
# Health
# =============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> HealthResponse:
    """Health check endpoint"""
    return HealthResponse(status="ok", step=store.step.value, message=store.data.cluster_name)


# =============================================================================
# Wizard State & Navigation
# =============================================================================


@app.get("/wizard", response_model=WizardStateResponse, tags=["Wizard"])
async def get_wizard_state(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> WizardStateResponse:
    """Current step, draft, derived servers and the current step's issues"""
    return _state(store)


@app.post("/wizard/commands", response_model=OperationResponse, tags=["Wizard"])
async def dispatch_command(
    payload: dict[str, Any] = BODY_REQUIRED,
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> OperationResponse:
    """Apply one update command.

    The body is a command object tagged by `type`, e.g.
    {"type": "set_cluster_name", "name": "My Cluster"} or
    {"type": "toggle_map", "map": "TheIsland_WP"}.

    Raises:
        HTTPException: If the command is malformed or its input is invalid
    """
    result = store.dispatch(payload)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return OperationResponse(success=True, message=result.message)


@app.post("/wizard/step", response_model=WizardStateResponse, tags=["Wizard"])
async def go_to_step(
    payload: StepRequest,
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> WizardStateResponse:
    """Jump to any step (no completeness checks)"""
    store.go_to(payload.step)
    return _state(store)


@app.post("/wizard/next", response_model=WizardStateResponse, tags=["Wizard"])
async def go_next(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> WizardStateResponse:
    """Advance when the current step is complete"""
    if store.step == WizardStep.REVIEW:
        raise HTTPException(status_code=400, detail="Submit the cluster to continue")

    issues = validate_step(store.step, store.data)
    if issues:
        raise HTTPException(status_code=400, detail=issues)

    target = next_step(store.step, store.data)
    if target is None:
        raise HTTPException(status_code=400, detail="Already at the last step")

    store.go_to(target)
    return _state(store)


@app.post("/wizard/back", response_model=WizardStateResponse, tags=["Wizard"])
async def go_back(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> WizardStateResponse:
    """Return to the previous step"""
    target = previous_step(store.step, store.data)
    if target is None:
        raise HTTPException(status_code=400, detail="No previous step")

    store.go_to(target)
    return _state(store)


@app.post("/wizard/reset", response_model=OperationResponse, tags=["Wizard"])
async def reset_wizard(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> OperationResponse:
    """Discard the draft and start over"""
    store.reset()
    return OperationResponse(success=True, message="Wizard reset")


# =============================================================================
# Servers, Ports & Maps
# =============================================================================


@app.get("/wizard/servers", tags=["Servers"])
async def list_servers(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> list[dict[str, Any]]:
    """Servers derived from the current draft"""
    return [s.model_dump(by_alias=True) for s in store.servers()]


@app.get("/wizard/ports/preview", response_model=PortPreviewResponse, tags=["Servers"])
async def port_preview(
    limit: int = Query(PREVIEW_LIMIT, ge=1, description="Servers to show"),
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> PortPreviewResponse:
    """Ports of the first servers under the current allocation mode"""
    ports, remaining = preview_ports(store.data, limit)
    return PortPreviewResponse(ports=ports, remaining=remaining)


@app.get("/wizard/maps", tags=["Servers"])
async def list_maps() -> list[dict]:
    """Map catalogue"""
    return list_available_maps()


# =============================================================================
# Import
# =============================================================================


@app.post("/wizard/import", response_model=OperationResponse, tags=["Import"])
async def import_config(
    file: UploadFile = FILE_REQUIRED,
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> OperationResponse:
    """Import a cluster configuration (JSON) into the draft.

    The import is all or nothing: a rejected document leaves the draft
    as it was.
    """
    content = await file.read()
    result = store.import_text(content)
    if not result.success:
        error = result.error.value if result.error else None
        raise HTTPException(status_code=400, detail={"error": error, "message": result.message})

    return OperationResponse(
        success=True,
        message=result.message,
        details={"fields": sorted(result.draft)},
    )


# =============================================================================
# Plan & Submission
# =============================================================================


@app.get("/wizard/plan", tags=["Provisioning"])
async def get_plan(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
) -> dict[str, Any]:
    """Cluster creation request for the current draft"""
    return store.plan().to_payload()


@app.post("/wizard/submit", tags=["Provisioning"])
async def submit_cluster(
    store: WizardStateStore = Depends(get_wizard),  # noqa: B008
    jobs: JobRegistry = Depends(get_jobs),  # noqa: B008
) -> dict[str, Any]:
    """Validate the draft, start tracking a provisioning job and move to creating.

    Raises:
        HTTPException: If the draft is incomplete or has port conflicts
    """
    issues = validate_step(WizardStep.REVIEW, store.data)
    if issues:
        raise HTTPException(status_code=400, detail=issues)

    payload = store.plan().to_payload()
    job_id = uuid.uuid4().hex
    jobs.register(job_id)
    store.go_to(WizardStep.CREATING)

    logger.info(
        "Submitted cluster %r (%d server(s)) as job %s",
        payload["name"],
        payload["serverCount"],
        job_id,
    )
    return {"success": True, "jobId": job_id, "cluster": payload}
