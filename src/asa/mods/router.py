"""
Mods Router

FastAPI router for the wizard's mod step:
- Popular mod catalogue
- Add/remove cluster-wide mods
- Add/remove per-server mods
- Exclude shared mods for a server
- Effective mod list of every server
"""

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from asa.config.models import CommandResult, OperationResponse
from asa.core.mods import list_popular_mods
from asa.core.wizard import (
    AddGlobalMod,
    AddServerMod,
    RemoveGlobalMod,
    RemoveServerMod,
    ToggleExcludeSharedMods,
    WizardCommand,
    WizardStateStore,
)


def _run(store: WizardStateStore, command: WizardCommand) -> OperationResponse:
    result: CommandResult = store.dispatch(command)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return OperationResponse(success=True, message=result.message)


def create_router(get_store_dependency: Callable[..., Any]) -> APIRouter:
    """Create and configure the mods router.

    Args:
        get_store_dependency: Dependency function that returns WizardStateStore

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter(prefix="/mods", tags=["Mods"])

    @router.get("/popular")
    async def popular_mods() -> list[dict[str, str]]:
        """Popular mods offered as one-click toggles"""
        return list_popular_mods()

    @router.post("/global/{mod_id}", response_model=OperationResponse)
    async def add_global_mod(
        mod_id: str,
        store: WizardStateStore = Depends(get_store_dependency),  # noqa: B008
    ) -> OperationResponse:
        """Add a mod to every server"""
        return _run(store, AddGlobalMod(mod_id=mod_id))

    @router.delete("/global/{mod_id}", response_model=OperationResponse)
    async def remove_global_mod(
        mod_id: str,
        store: WizardStateStore = Depends(get_store_dependency),  # noqa: B008
    ) -> OperationResponse:
        """Remove a cluster-wide mod"""
        return _run(store, RemoveGlobalMod(mod_id=mod_id))

    @router.post("/servers/{server}/exclude-shared", response_model=OperationResponse)
    async def exclude_shared_mods(
        server: str,
        exclude: bool | None = Query(None, description="Omit to toggle"),
        store: WizardStateStore = Depends(get_store_dependency),  # noqa: B008
    ) -> OperationResponse:
        """Run a server with only its own mods"""
        return _run(store, ToggleExcludeSharedMods(server=server, exclude=exclude))

    @router.post("/servers/{server}/{mod_id}", response_model=OperationResponse)
    async def add_server_mod(
        server: str,
        mod_id: str,
        store: WizardStateStore = Depends(get_store_dependency),  # noqa: B008
    ) -> OperationResponse:
        """Add a mod to one server"""
        return _run(store, AddServerMod(server=server, mod_id=mod_id))

    @router.delete("/servers/{server}/{mod_id}", response_model=OperationResponse)
    async def remove_server_mod(
        server: str,
        mod_id: str,
        store: WizardStateStore = Depends(get_store_dependency),  # noqa: B008
    ) -> OperationResponse:
        """Remove a mod from one server"""
        return _run(store, RemoveServerMod(server=server, mod_id=mod_id))

    @router.get("/effective")
    async def effective_mods(
        store: WizardStateStore = Depends(get_store_dependency),  # noqa: B008
    ) -> dict[str, list[str]]:
        """Effective mod list of every server, by server name"""
        return {server.name: server.mods for server in store.servers()}

    return router
