"""
ASA Cluster - Mod Resolution

Combines cluster-wide mods with per-server overrides into the effective
mod list of each server, and validates mod ids before they enter a list.
"""

import logging
from collections.abc import Iterable

from asa.config.models import ModError, ModOperationResult, ServerModOverride
from asa.utils.text_utils import build_mod_url, is_valid_mod_id, normalize_mod_id

logger = logging.getLogger(__name__)

# Shown as one-click toggles on the mods step
POPULAR_MODS: list[dict[str, str]] = [
    {"id": "111111111", "name": "Structures Plus (S+)"},
    {"id": "880871931", "name": "Super Structures"},
    {"id": "731604991", "name": "StackMeMore"},
    {"id": "1404697612", "name": "Dino Storage v2"},
    {"id": "1565015734", "name": "Awesome SpyGlass!"},
    {"id": "1005639", "name": "Club ARK"},
]


def list_popular_mods() -> list[dict[str, str]]:
    """Popular mods with their CurseForge links"""
    return [{**mod, "url": build_mod_url(mod["id"])} for mod in POPULAR_MODS]


def _dedupe(mods: Iterable[str]) -> list[str]:
    """De-duplicate keeping the first occurrence"""
    result: list[str] = []
    for mod_id in mods:
        if mod_id not in result:
            result.append(mod_id)
    return result


def resolve_mods(
    global_mods: Iterable[str],
    override: ServerModOverride | None = None,
) -> list[str]:
    """
    Compute the effective mod list of one server.

    Args:
        global_mods: Cluster-wide mods, in load order
        override: The server's own mod configuration, if any

    Returns:
        The override's mods alone when shared mods are excluded; otherwise
        the global mods followed by additional mods not already present.
    """
    if override is None:
        return _dedupe(global_mods)

    if override.exclude_shared_mods:
        return _dedupe(override.additional_mods)

    return _dedupe([*global_mods, *override.additional_mods])


def validate_mod_id(mod_id: object) -> ModOperationResult:
    """Check a mod id without modifying anything"""
    normalized = normalize_mod_id(mod_id) if mod_id is not None else ""
    if not is_valid_mod_id(normalized):
        return ModOperationResult(
            success=False,
            message=f"Invalid mod id {mod_id!r}: mod ids are numbers (e.g. 928102085)",
            error=ModError.INVALID_ID,
        )
    return ModOperationResult(success=True, message=f"Valid mod id: {normalized}", mods=[normalized])


def add_mod(mods: list[str], mod_id: object) -> ModOperationResult:
    """
    Return the list with `mod_id` appended.

    Adding a mod already present is a no-op. The input list is never
    mutated; on success the new list is in `result.mods`.
    """
    check = validate_mod_id(mod_id)
    if not check.success:
        logger.debug("Rejected mod id %r", mod_id)
        return check.model_copy(update={"mods": list(mods)})

    normalized = check.mods[0]
    if normalized in mods:
        return ModOperationResult(
            success=True, message=f"Mod already added: {normalized}", mods=list(mods)
        )

    return ModOperationResult(
        success=True, message=f"Mod added: {normalized}", mods=[*mods, normalized]
    )


def remove_mod(mods: list[str], mod_id: object) -> ModOperationResult:
    """Return the list without `mod_id`; removing an absent mod is a no-op"""
    normalized = normalize_mod_id(mod_id) if mod_id is not None else ""
    if normalized not in mods:
        return ModOperationResult(
            success=True, message=f"Mod not present: {normalized}", mods=list(mods)
        )

    return ModOperationResult(
        success=True,
        message=f"Mod removed: {normalized}",
        mods=[m for m in mods if m != normalized],
    )


def with_required_mods(mods: list[str], required: Iterable[str]) -> list[str]:
    """Append mods a map needs when they are missing"""
    return _dedupe([*mods, *required])
