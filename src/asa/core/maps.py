"""
ASA Cluster - Map Catalogue

Official ARK: Survival Ascended maps that can be selected in the wizard.
Maps not in the catalogue (premium/mod maps) are still accepted as custom
maps; they just have no display name or required mods.
"""

from dataclasses import dataclass, field

# Map definitions - map id to map info
MAP_REGISTRY: dict[str, "MapDefinition"] = {}


@dataclass
class MapDefinition:
    """Definition for a selectable map"""

    name: str  # Map id passed to the server (e.g. TheIsland_WP)
    display_name: str  # Name shown to operators
    available: bool = True  # False = released for ASE only, not yet on ASA
    required_mods: list[str] = field(default_factory=list)  # Mods the map cannot load without

    def __post_init__(self) -> None:
        # Register in global registry
        MAP_REGISTRY[self.name] = self


# ============================================================================
# Built-in Map Definitions
# ============================================================================

MapDefinition(name="TheIsland_WP", display_name="The Island")
MapDefinition(name="TheCenter_WP", display_name="The Center")
MapDefinition(name="Ragnarok_WP", display_name="Ragnarok")
MapDefinition(name="ScorchedEarth_WP", display_name="Scorched Earth")
MapDefinition(name="Aberration_WP", display_name="Aberration")
MapDefinition(name="Extinction_WP", display_name="Extinction")

# Club ARK runs on a mod map
MapDefinition(name="BobsMissions_WP", display_name="Club ARK", required_mods=["1005639"])

MapDefinition(name="CrystalIsles_WP", display_name="Crystal Isles", available=False)
MapDefinition(name="Valguero_WP", display_name="Valguero", available=False)
MapDefinition(name="LostIsland_WP", display_name="Lost Island", available=False)
MapDefinition(name="Fjordur_WP", display_name="Fjordur", available=False)
MapDefinition(name="Genesis_WP", display_name="Genesis", available=False)
MapDefinition(name="Genesis2_WP", display_name="Genesis Part 2", available=False)


def list_available_maps() -> list[dict]:
    """List all catalogue maps in display order"""
    return [
        {
            "name": map_def.name,
            "displayName": map_def.display_name,
            "available": map_def.available,
            "requiredMods": list(map_def.required_mods),
        }
        for map_def in MAP_REGISTRY.values()
    ]


def get_map(name: str) -> MapDefinition | None:
    """Get catalogue entry for a map id"""
    return MAP_REGISTRY.get(name)


def display_name_for(name: str) -> str:
    """Display name of a map, falling back to the id for custom maps"""
    map_def = MAP_REGISTRY.get(name)
    return map_def.display_name if map_def else name


def required_mods_for(name: str) -> list[str]:
    """Mods a map needs to load"""
    map_def = MAP_REGISTRY.get(name)
    return list(map_def.required_mods) if map_def else []


def is_map_selectable(name: str) -> bool:
    """Custom maps are always selectable; catalogue maps only when available"""
    map_def = MAP_REGISTRY.get(name)
    return map_def is None or map_def.available
