"""
ASA Cluster Planner - Data Models

Shared Pydantic models and dataclasses used across the application.
Python attributes are snake_case; JSON uses the camelCase names of the
import document and the provisioning payload.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from asa.config.settings import (
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_GAME_PORT,
    DEFAULT_QUERY_PORT,
    DEFAULT_RCON_PORT,
)
from asa.utils.text_utils import is_valid_mod_id, normalize_mod_id

# =============================================================================
# Enums
# =============================================================================


class PortAllocationMode(str, Enum):
    """How consecutive servers' ports are spaced"""

    SEQUENTIAL = "sequential"
    EVEN = "even"


class WizardStep(str, Enum):
    """Wizard steps, in order"""

    WELCOME = "welcome"
    CLUSTER_BASIC = "cluster-basic"
    MAP_SELECTION = "map-selection"
    SERVER_CONFIG = "server-config"
    INDIVIDUAL_SERVERS = "individual-servers"
    GAME_SETTINGS = "game-settings"
    MODS = "mods"
    REVIEW = "review"
    CREATING = "creating"


class SessionNameMode(str, Enum):
    """Session name source: per-server name or one global name"""

    AUTO = "auto"
    CUSTOM = "custom"


class ServerConfigMode(str, Enum):
    """Which branch the wizard takes after map selection"""

    GLOBAL = "global"
    INDIVIDUAL = "individual"


class ConfigImportError(str, Enum):
    """Reasons an import document is rejected"""

    MISSING_NAME = "missing_name"
    PARSE_FAILURE = "parse_failure"


class ModError(str, Enum):
    """Reasons a mod operation is rejected"""

    INVALID_ID = "invalid_id"


def normalize_mod_list(value: Any) -> Any:
    """Accept numeric ids and null lists from import documents"""
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return [normalize_mod_id(v) for v in value]
    return value


def check_mod_list(value: list[str]) -> list[str]:
    """Reject malformed ids and drop duplicates, keeping order"""
    result: list[str] = []
    for mod_id in value:
        if not is_valid_mod_id(mod_id):
            raise ValueError(f"Invalid mod id {mod_id!r}: must be a non-empty string of digits")
        if mod_id not in result:
            result.append(mod_id)
    return result


# =============================================================================
# Base
# =============================================================================


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Ports, Maps, Mods
# =============================================================================


class ServerPorts(CamelModel):
    """Game/query/rcon ports of one server"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    game_port: int
    query_port: int
    rcon_port: int

    def as_tuple(self) -> tuple[int, int, int]:
        return self.game_port, self.query_port, self.rcon_port


class PortConfiguration(CamelModel):
    """Explicit port bases; query/rcon bases only apply in sequential mode"""

    base_port: int = DEFAULT_GAME_PORT
    query_port_base: int = DEFAULT_QUERY_PORT
    rcon_port_base: int = DEFAULT_RCON_PORT


class MapSelection(CamelModel):
    """One entry of the map selection"""

    map: str
    count: int = 1
    enabled: bool = True
    display_name: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.map


class ServerModOverride(CamelModel):
    """Per-server mod configuration"""

    additional_mods: list[str] = Field(default_factory=list)
    exclude_shared_mods: bool = False

    @field_validator("additional_mods", mode="before")
    @classmethod
    def _normalize_mods(cls, v: Any) -> Any:
        return normalize_mod_list(v)

    @field_validator("additional_mods")
    @classmethod
    def _validate_mods(cls, v: list[str]) -> list[str]:
        return check_mod_list(v)


# =============================================================================
# GameSettings Field Registry - SINGLE SOURCE OF TRUTH
# =============================================================================

GAME_USER_SETTINGS = "gameUserSettings"
GAME_INI = "gameIni"


@dataclass
class SettingDef:
    """Definition for a single game setting"""

    default: Any
    description: str
    section: str
    target: str | None  # gameUserSettings, gameIni, or None (launch flag)
    ini_section: str
    ini_key: str
    field_type: str = "float"  # int, float, bool


GAME_SETTING_FIELDS: dict[str, SettingDef] = {
    # Players
    "max_players": SettingDef(
        70, "Maximum players per server", "Players", GAME_USER_SETTINGS,
        "ServerSettings", "MaxPlayers", "int",
    ),
    "difficulty_offset": SettingDef(
        1.0, "Difficulty offset (0.0-1.0)", "Players", GAME_USER_SETTINGS,
        "ServerSettings", "DifficultyOffset",
    ),
    # Rates
    "harvest_multiplier": SettingDef(
        3.0, "How much resources you get per harvest", "Rates", GAME_USER_SETTINGS,
        "ServerSettings", "HarvestAmountMultiplier",
    ),
    "xp_multiplier": SettingDef(
        3.0, "Experience gain multiplier", "Rates", GAME_USER_SETTINGS,
        "ServerSettings", "XPMultiplier",
    ),
    "taming_multiplier": SettingDef(
        5.0, "How fast creatures tame", "Rates", GAME_USER_SETTINGS,
        "ServerSettings", "TamingSpeedMultiplier",
    ),
    # Interface
    "allow_third_person_player": SettingDef(
        True, "Allow third person camera", "Interface", GAME_USER_SETTINGS,
        "ServerSettings", "AllowThirdPersonPlayer", "bool",
    ),
    "server_crosshair": SettingDef(
        True, "Show crosshair", "Interface", GAME_USER_SETTINGS,
        "ServerSettings", "ServerCrosshair", "bool",
    ),
    "show_map_player_location": SettingDef(
        True, "Show player position on the map", "Interface", GAME_USER_SETTINGS,
        "ServerSettings", "ShowMapPlayerLocation", "bool",
    ),
    "always_notify_player_joined": SettingDef(
        True, "Announce joining players", "Interface", GAME_USER_SETTINGS,
        "ServerSettings", "AlwaysNotifyPlayerJoined", "bool",
    ),
    "always_notify_player_left": SettingDef(
        True, "Announce leaving players", "Interface", GAME_USER_SETTINGS,
        "ServerSettings", "AlwaysNotifyPlayerLeft", "bool",
    ),
    "server_hardcore": SettingDef(
        False, "Hardcore mode (respawn as level 1)", "Rules", GAME_USER_SETTINGS,
        "ServerSettings", "ServerHardcore", "bool",
    ),
    # Building
    "allow_cave_building_pve": SettingDef(
        True, "Allow building in caves on PvE", "Building", GAME_INI,
        "ServerSettings", "AllowCaveBuildingPvE", "bool",
    ),
    "max_platform_saddle_structure_limit": SettingDef(
        130, "Structures allowed on platform saddles", "Building", GAME_USER_SETTINGS,
        "SessionSettings", "MaxPlatformSaddleStructureLimit", "int",
    ),
    # Rules
    "allow_flying_stamina_recovery": SettingDef(
        True, "Flyers recover stamina while flying", "Rules", GAME_INI,
        "ServerSettings", "AllowFlyingStaminaRecovery", "bool",
    ),
    "allow_unlimited_respecs": SettingDef(
        True, "Unlimited mindwipe tonics", "Rules", GAME_INI,
        "ServerSettings", "AllowUnlimitedRespecs", "bool",
    ),
    "prevent_spawn_flier": SettingDef(
        True, "Spawn without flyers", "Rules", GAME_INI,
        "ServerSettings", "PreventSpawnFlier", "bool",
    ),
    # Offline raid protection
    "prevent_offline_pvp": SettingDef(
        True, "Offline raid protection", "Offline Raid Protection", GAME_INI,
        "ServerSettings", "PreventOfflinePvP", "bool",
    ),
    "prevent_offline_pvp_interval": SettingDef(
        300, "Seconds before protection kicks in", "Offline Raid Protection", GAME_INI,
        "ServerSettings", "PreventOfflinePvPInterval", "int",
    ),
    # Launch
    "disable_battleye": SettingDef(
        False, "Launch with -NoBattlEye", "Launch", None, "", "NoBattlEye", "bool",
    ),
}


def get_setting_defaults() -> dict[str, Any]:
    """Get default values for all game settings"""
    return {k: v.default for k, v in GAME_SETTING_FIELDS.items()}


def get_setting_sections() -> dict[str, list[str]]:
    """Get settings organized by UI section"""
    sections: dict[str, list[str]] = {}
    for name, setting in GAME_SETTING_FIELDS.items():
        sections.setdefault(setting.section, []).append(name)
    return sections


class GameSettings(CamelModel):
    """Cluster-wide game rules.

    Field definitions come from GAME_SETTING_FIELDS (single source of truth).
    """

    max_players: int = GAME_SETTING_FIELDS["max_players"].default
    difficulty_offset: float = GAME_SETTING_FIELDS["difficulty_offset"].default
    harvest_multiplier: float = GAME_SETTING_FIELDS["harvest_multiplier"].default
    xp_multiplier: float = GAME_SETTING_FIELDS["xp_multiplier"].default
    taming_multiplier: float = GAME_SETTING_FIELDS["taming_multiplier"].default
    allow_third_person_player: bool = GAME_SETTING_FIELDS["allow_third_person_player"].default
    server_crosshair: bool = GAME_SETTING_FIELDS["server_crosshair"].default
    show_map_player_location: bool = GAME_SETTING_FIELDS["show_map_player_location"].default
    always_notify_player_joined: bool = GAME_SETTING_FIELDS["always_notify_player_joined"].default
    always_notify_player_left: bool = GAME_SETTING_FIELDS["always_notify_player_left"].default
    server_hardcore: bool = GAME_SETTING_FIELDS["server_hardcore"].default
    allow_cave_building_pve: bool = GAME_SETTING_FIELDS["allow_cave_building_pve"].default
    max_platform_saddle_structure_limit: int = GAME_SETTING_FIELDS[
        "max_platform_saddle_structure_limit"
    ].default
    allow_flying_stamina_recovery: bool = GAME_SETTING_FIELDS[
        "allow_flying_stamina_recovery"
    ].default
    allow_unlimited_respecs: bool = GAME_SETTING_FIELDS["allow_unlimited_respecs"].default
    prevent_spawn_flier: bool = GAME_SETTING_FIELDS["prevent_spawn_flier"].default
    prevent_offline_pvp: bool = GAME_SETTING_FIELDS["prevent_offline_pvp"].default
    prevent_offline_pvp_interval: int = GAME_SETTING_FIELDS["prevent_offline_pvp_interval"].default
    disable_battleye: bool = GAME_SETTING_FIELDS["disable_battleye"].default

    def to_ini_sections(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Render settings into {target: {ini section: {key: value}}}."""
        rendered: dict[str, dict[str, dict[str, Any]]] = {GAME_USER_SETTINGS: {}, GAME_INI: {}}
        data = self.model_dump()

        for name, setting in GAME_SETTING_FIELDS.items():
            if setting.target is None:
                continue
            section = rendered[setting.target].setdefault(setting.ini_section, {})
            section[setting.ini_key] = data[name]

        return rendered

    def launch_flags(self) -> list[str]:
        """Command-line flags driven by settings"""
        return ["-NoBattlEye"] if self.disable_battleye else []


# =============================================================================
# Servers
# =============================================================================

# Server fields an operator may override on the individual-servers step
OVERRIDABLE_FIELDS: tuple[str, ...] = (
    "name",
    "session_name",
    "game_port",
    "query_port",
    "rcon_port",
    "max_players",
    "admin_password",
    "server_password",
)


class ServerOverride(CamelModel):
    """Operator edits for one server; None means 'use the computed default'"""

    name: str | None = None
    session_name: str | None = None
    game_port: int | None = None
    query_port: int | None = None
    rcon_port: int | None = None
    max_players: int | None = None
    admin_password: str | None = None
    server_password: str | None = None

    def sticky_fields(self) -> dict[str, Any]:
        """Fields the operator has set"""
        return self.model_dump(exclude_none=True)


class ServerConfig(CamelModel):
    """Fully specified configuration of one server instance"""

    name: str
    map: str
    game_port: int
    query_port: int
    rcon_port: int
    max_players: int = GAME_SETTING_FIELDS["max_players"].default
    admin_password: str = ""
    server_password: str = ""
    session_name: str = ""
    mods: list[str] = Field(default_factory=list)

    @field_validator("mods", mode="before")
    @classmethod
    def _normalize_mods(cls, v: Any) -> Any:
        return normalize_mod_list(v)

    @field_validator("mods")
    @classmethod
    def _validate_mods(cls, v: list[str]) -> list[str]:
        return check_mod_list(v)

    @property
    def ports(self) -> ServerPorts:
        return ServerPorts(
            game_port=self.game_port, query_port=self.query_port, rcon_port=self.rcon_port
        )


# =============================================================================
# Wizard Draft
# =============================================================================


class WizardData(CamelModel):
    """The in-progress cluster description (the draft)"""

    # Cluster basics
    cluster_name: str = ""
    description: str = ""
    server_count: int = 1
    base_port: int = DEFAULT_GAME_PORT
    port_allocation_mode: PortAllocationMode = PortAllocationMode.SEQUENTIAL
    port_configuration: PortConfiguration = Field(default_factory=PortConfiguration)

    # Map selection
    selected_maps: list[MapSelection] = Field(default_factory=list)
    custom_map_name: str = ""
    custom_map_display_name: str = ""
    custom_map_count: int = 1

    # Server configuration
    session_name_mode: SessionNameMode = SessionNameMode.AUTO
    global_session_name: str = ""
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    server_password: str = ""
    cluster_password: str = ""
    server_config_mode: ServerConfigMode = ServerConfigMode.GLOBAL
    server_configs: list[ServerOverride] = Field(default_factory=list)
    servers: list[ServerConfig] = Field(default_factory=list)

    # Game settings
    game_settings: GameSettings = Field(default_factory=GameSettings)
    custom_dynamic_config_url: str = ""
    game_ini: str = ""
    game_user_settings_ini: str = ""

    # Mods
    global_mods: list[str] = Field(default_factory=list)
    server_mods: dict[str, ServerModOverride] = Field(default_factory=dict)

    # Execution mode of the provisioning job
    foreground: bool = False

    @field_validator("global_mods", mode="before")
    @classmethod
    def _normalize_global_mods(cls, v: Any) -> Any:
        return normalize_mod_list(v)

    @field_validator("global_mods")
    @classmethod
    def _validate_global_mods(cls, v: list[str]) -> list[str]:
        return check_mod_list(v)

    @field_validator("selected_maps")
    @classmethod
    def _dedupe_maps(cls, v: list[MapSelection]) -> list[MapSelection]:
        seen: set[str] = set()
        result = []
        for selection in v:
            if selection.map in seen:
                continue
            seen.add(selection.map)
            result.append(selection)
        return result

    def find_map(self, map_name: str) -> MapSelection | None:
        return next((m for m in self.selected_maps if m.map == map_name), None)


# =============================================================================
# Operation Results
# =============================================================================


class ModOperationResult(BaseModel):
    """Result of a mod operation"""

    success: bool
    message: str
    mods: list[str] = Field(default_factory=list)
    error: ModError | None = None


class ImportResult(BaseModel):
    """Result of projecting an import document into a partial draft"""

    success: bool
    message: str
    error: ConfigImportError | None = None
    draft: dict[str, Any] = Field(default_factory=dict)


class CommandResult(BaseModel):
    """Result of a wizard command"""

    success: bool
    message: str
    error: str | None = None


# =============================================================================
# API Request/Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response"""

    status: str = "ok"
    step: str
    message: str = ""


class OperationResponse(BaseModel):
    """Generic operation result"""

    success: bool
    message: str
    details: dict | None = None


class StepRequest(BaseModel):
    """Request to move the wizard to a step"""

    step: WizardStep


class WizardStateResponse(BaseModel):
    """Current step, draft and derived servers"""

    step: WizardStep
    data: dict[str, Any]
    servers: list[dict[str, Any]]
    issues: list[str] = Field(default_factory=list)


class PortPreviewResponse(BaseModel):
    """First servers' ports plus how many were left out"""

    ports: list[ServerPorts]
    remaining: int = 0
