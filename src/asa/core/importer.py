"""
ASA Cluster - Config Import

Projects an externally supplied cluster document (JSON) into a partial
wizard draft. The projection either succeeds as a whole or fails with a
ConfigImportError; nothing is merged here.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from asa.config.models import (
    ConfigImportError,
    GameSettings,
    ImportResult,
    MapSelection,
    PortAllocationMode,
    PortConfiguration,
    ServerConfig,
    ServerModOverride,
    WizardData,
    check_mod_list,
    normalize_mod_list,
)
from asa.config.settings import DEFAULT_GAME_PORT
from asa.core.maps import display_name_for

logger = logging.getLogger(__name__)


class ImportDocument(BaseModel):
    """Accepted shape of an import document; unknown keys are ignored"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str
    description: str = ""
    server_count: int | None = None
    base_port: int = DEFAULT_GAME_PORT
    servers: list[ServerConfig] | None = None
    port_allocation_mode: PortAllocationMode = PortAllocationMode.SEQUENTIAL
    maps: list[str] = Field(default_factory=list)
    custom_dynamic_config_url: str = ""
    game_settings: GameSettings = Field(default_factory=GameSettings)
    global_mods: list[str] = Field(default_factory=list)
    server_mods: dict[str, ServerModOverride] = Field(default_factory=dict)
    game_ini: str = ""
    game_user_settings_ini: str = ""

    @field_validator("global_mods", mode="before")
    @classmethod
    def _normalize_mods(cls, v: Any) -> Any:
        return normalize_mod_list(v)

    @field_validator("global_mods")
    @classmethod
    def _validate_mods(cls, v: list[str]) -> list[str]:
        return check_mod_list(v)

    @field_validator("servers", mode="before")
    @classmethod
    def _accept_export_ports(cls, v: Any) -> Any:
        # Cluster exports store the game port under "port"
        if not isinstance(v, list):
            return v
        return [
            {**s, "gamePort": s["port"]}
            if isinstance(s, dict) and "port" in s and "gamePort" not in s and "game_port" not in s
            else s
            for s in v
        ]


def _error(error: ConfigImportError, message: str) -> ImportResult:
    logger.warning("Config import rejected (%s): %s", error.value, message)
    return ImportResult(success=False, message=message, error=error)


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"]) or "document"
        problems.append(f"{location}: {err['msg']}")
    return "; ".join(problems)


def import_config(document: Any) -> ImportResult:
    """
    Project an import document into a partial draft.

    Args:
        document: Parsed JSON document

    Returns:
        ImportResult with `draft` holding WizardData field values keyed by
        field name. Fails with MISSING_NAME when the document has no
        cluster name, PARSE_FAILURE when it is not an object or a field
        has the wrong shape.
    """
    if not isinstance(document, dict):
        return _error(
            ConfigImportError.PARSE_FAILURE,
            f"Import document must be a JSON object, got {type(document).__name__}",
        )

    name = document.get("name")
    if not isinstance(name, str) or not name.strip():
        return _error(ConfigImportError.MISSING_NAME, "Import document has no cluster name")

    # null counts as absent
    present = {k: v for k, v in document.items() if v is not None}

    try:
        parsed = ImportDocument.model_validate(present)
    except ValidationError as e:
        return _error(ConfigImportError.PARSE_FAILURE, _format_validation_error(e))

    draft: dict[str, Any] = {
        "cluster_name": parsed.name.strip(),
        "description": parsed.description,
        "base_port": parsed.base_port,
        "port_configuration": PortConfiguration(base_port=parsed.base_port),
        "custom_dynamic_config_url": parsed.custom_dynamic_config_url,
        "game_settings": parsed.game_settings,
        "global_mods": parsed.global_mods,
        "server_mods": parsed.server_mods,
        "game_ini": parsed.game_ini,
        "game_user_settings_ini": parsed.game_user_settings_ini,
        "server_configs": [],
    }

    if parsed.servers:
        # Explicit per-server ports supersede generated allocation
        draft["servers"] = parsed.servers
        draft["selected_maps"] = []
        draft["server_count"] = parsed.server_count or len(parsed.servers)
    else:
        draft["servers"] = []
        draft["port_allocation_mode"] = parsed.port_allocation_mode
        draft["selected_maps"] = [
            MapSelection(map=map_name, count=1, enabled=True, display_name=display_name_for(map_name))
            for map_name in parsed.maps
        ]
        draft["server_count"] = parsed.server_count or max(1, len(parsed.maps))

    # Whole-draft validation so a merge can never half-apply
    try:
        WizardData.model_validate(draft)
    except ValidationError as e:
        return _error(ConfigImportError.PARSE_FAILURE, _format_validation_error(e))

    logger.info("Imported cluster config %r (%d field(s))", draft["cluster_name"], len(draft))
    return ImportResult(
        success=True,
        message=f"Imported cluster configuration: {draft['cluster_name']}",
        draft=draft,
    )


def load_import_file(path: Path | str) -> ImportResult:
    """Read and parse an import document, then project it"""
    if isinstance(path, str):
        path = Path(path)

    try:
        with path.open(encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        return _error(ConfigImportError.PARSE_FAILURE, f"Failed to read {path}: {e}")

    return import_text(content)


def import_text(content: str | bytes) -> ImportResult:
    """Parse JSON text, then project it"""
    try:
        document = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return _error(ConfigImportError.PARSE_FAILURE, f"Invalid JSON: {e}")

    return import_config(document)
