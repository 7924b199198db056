"""
PA-Pedia - Data Models
=======================
Dataclasses for faction, unit and weapon records, plus the derived views
built on top of them (commander groups, group aggregates).

Loaded records are treated as immutable: a faction that is uploaded again
replaces its records wholesale instead of patching them.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional


# ---------------------------------------------------------------------------
# Weapons
# ---------------------------------------------------------------------------

@dataclass
class Weapon:
    safe_name: str
    count: int = 1
    rate_of_fire: float = 0.0
    damage: float = 0.0
    dps: float = 0.0

    name: Optional[str] = None
    resource_name: str = ""
    sustained_dps: Optional[float] = None  # ammo-limited rate
    max_range: Optional[float] = None
    splash_damage: Optional[float] = None
    splash_radius: Optional[float] = None
    full_damage_radius: Optional[float] = None
    self_destruct: Optional[bool] = None
    death_explosion: Optional[bool] = None
    target_layers: Optional[List[str]] = None
    ammo_source: Optional[str] = None
    ammo_per_shot: Optional[float] = None

    @property
    def display_name(self) -> str:
        return self.name or self.safe_name


# ---------------------------------------------------------------------------
# Unit specs
# ---------------------------------------------------------------------------

@dataclass
class Resources:
    metal: Optional[float] = None
    energy: Optional[float] = None


@dataclass
class CombatSpecs:
    health: float
    dps: Optional[float] = None
    salvo_damage: Optional[float] = None
    weapons: List[Weapon] = field(default_factory=list)


@dataclass
class EconomySpecs:
    build_cost: float
    build_rate: Optional[float] = None
    production: Optional[Resources] = None
    consumption: Optional[Resources] = None
    storage: Optional[Resources] = None
    tool_consumption: Optional[Resources] = None
    metal_rate: Optional[float] = None
    energy_rate: Optional[float] = None
    build_range: Optional[float] = None


@dataclass
class MobilitySpecs:
    move_speed: Optional[float] = None
    turn_speed: Optional[float] = None
    acceleration: Optional[float] = None
    brake: Optional[float] = None


@dataclass
class ReconSpecs:
    vision_radius: Optional[float] = None
    underwater_vision_radius: Optional[float] = None
    orbital_vision_radius: Optional[float] = None
    radar_radius: Optional[float] = None
    sonar_radius: Optional[float] = None
    orbital_radar_radius: Optional[float] = None


@dataclass
class SpecialSpecs:
    amphibious: Optional[bool] = None
    hover: Optional[bool] = None
    spawn_unit_on_death: Optional[str] = None


@dataclass
class UnitSpecs:
    combat: CombatSpecs
    economy: EconomySpecs
    mobility: Optional[MobilitySpecs] = None
    recon: Optional[ReconSpecs] = None
    special: Optional[SpecialSpecs] = None


@dataclass
class BuildRelationships:
    built_by: List[str] = field(default_factory=list)
    builds: List[str] = field(default_factory=list)


@dataclass
class Unit:
    identifier: str
    display_name: str
    specs: UnitSpecs
    unit_types: List[str] = field(default_factory=list)
    tier: Optional[int] = None
    accessible: bool = True
    description: str = ""
    image: str = ""
    build_relationships: Optional[BuildRelationships] = None


# ---------------------------------------------------------------------------
# Faction index & metadata
# ---------------------------------------------------------------------------

@dataclass
class UnitFile:
    path: str
    source: str


@dataclass
class UnitIndexEntry:
    identifier: str
    display_name: str
    unit: Unit
    unit_types: List[str] = field(default_factory=list)
    source: str = ""
    files: List[UnitFile] = field(default_factory=list)


@dataclass
class FactionIndex:
    units: List[UnitIndexEntry] = field(default_factory=list)


@dataclass
class FactionMetadata:
    identifier: str
    display_name: str
    version: str = ""
    type: str = "mod"  # "base-game" or "mod"
    folder_name: str = ""
    is_local: bool = False

    author: str = ""
    description: str = ""
    background_image: Optional[str] = None
    mods: List[str] = field(default_factory=list)
    is_addon: bool = False
    base_factions: List[str] = field(default_factory=list)


@dataclass
class ParsedFaction:
    """
    What the archive parser hands back for an uploaded bundle. metadata and
    index are the raw JSON payloads (metadata.json / units.json).
    """
    faction_id: str
    metadata: dict
    index: dict
    assets: Dict[str, bytes] = field(default_factory=dict)


@dataclass
class UploadResult:
    faction_id: str
    was_overwrite: bool


# ---------------------------------------------------------------------------
# Commander grouping
# ---------------------------------------------------------------------------

@dataclass
class CommanderGroup:
    representative: UnitIndexEntry
    variants: List[UnitIndexEntry] = field(default_factory=list)
    stats_hash: str = ""


@dataclass
class CommanderGroupingResult:
    commanders: List[CommanderGroup] = field(default_factory=list)
    non_commanders: List[UnitIndexEntry] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Group comparison
# ---------------------------------------------------------------------------

@dataclass
class GroupMember:
    """faction_id may carry a pinned version ("exiles@1.0.0")."""
    faction_id: str
    unit_id: str
    quantity: int = 1

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity}")


@dataclass
class WeaponSource:
    faction_id: str
    unit_id: str
    display_name: str
    quantity: int


@dataclass
class AggregatedWeapon:
    safe_name: str
    display_name: str
    target_layers: List[str] = field(default_factory=list)
    total_count: int = 0
    total_dps: float = 0.0
    total_sustained_dps: Optional[float] = None
    total_damage: float = 0.0
    max_range: Optional[float] = None
    rate_of_fire: Optional[float] = None  # from the first contributor, display only
    source_units: List[WeaponSource] = field(default_factory=list)


@dataclass
class AggregatedGroupStats:
    # Sums (scale with quantity)
    total_hp: float = 0.0
    total_build_cost: float = 0.0
    total_dps: float = 0.0
    total_sustained_dps: Optional[float] = None
    total_salvo_damage: float = 0.0
    total_metal_production: float = 0.0
    total_energy_production: float = 0.0
    total_metal_consumption: float = 0.0
    total_energy_consumption: float = 0.0
    total_metal_storage: float = 0.0
    total_energy_storage: float = 0.0
    total_build_rate: float = 0.0
    total_tool_energy_consumption: float = 0.0

    # Minimums (slowest unit type limits the group)
    min_move_speed: Optional[float] = None
    min_acceleration: Optional[float] = None
    min_brake: Optional[float] = None
    min_turn_speed: Optional[float] = None

    # Maximums (best capability in the group)
    max_vision_radius: Optional[float] = None
    max_underwater_vision_radius: Optional[float] = None
    max_radar_radius: Optional[float] = None
    max_sonar_radius: Optional[float] = None
    max_weapon_range: Optional[float] = None
    max_build_range: Optional[float] = None

    # Derived
    dps_per_metal: Optional[float] = None
    hp_per_metal: Optional[float] = None

    any_amphibious: bool = False
    all_amphibious: bool = False
    any_hover: bool = False
    all_hover: bool = False

    weapons: List[AggregatedWeapon] = field(default_factory=list)
    all_target_layers: List[str] = field(default_factory=list)
    all_builds: List[str] = field(default_factory=list)

    unit_count: int = 0
    distinct_unit_types: int = 0
