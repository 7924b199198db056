"""
PA-Pedia - I/O
===============
Decode faction JSON payloads (metadata.json / units.json) into models, and
load/save group compositions as YAML.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import yaml

from pa_pedia.errors import FactionDataError
from pa_pedia.models import (
    AggregatedGroupStats, BuildRelationships, CombatSpecs, EconomySpecs,
    FactionIndex, FactionMetadata, GroupMember, MobilitySpecs, ReconSpecs,
    Resources, SpecialSpecs, Unit, UnitFile, UnitIndexEntry, UnitSpecs, Weapon,
)
from pa_pedia.refs import build_faction_ref, parse_faction_ref


def _require(data: dict, key: str, context: str):
    if key not in data or data[key] is None:
        raise FactionDataError(f"Missing '{key}' in {context}")
    return data[key]


def _resources(data: Optional[dict]) -> Optional[Resources]:
    if data is None:
        return None
    return Resources(metal=data.get("metal"), energy=data.get("energy"))


# ---------------------------------------------------------------------------
# JSON -> models
# ---------------------------------------------------------------------------

def weapon_from_dict(data: dict) -> Weapon:
    return Weapon(
        safe_name=_require(data, "safeName", "weapon"),
        count=data.get("count", 1),
        rate_of_fire=data.get("rateOfFire", 0.0),
        damage=data.get("damage", 0.0),
        dps=data.get("dps", 0.0),
        name=data.get("name"),
        resource_name=data.get("resourceName", ""),
        sustained_dps=data.get("sustainedDps"),
        max_range=data.get("maxRange"),
        splash_damage=data.get("splashDamage"),
        splash_radius=data.get("splashRadius"),
        full_damage_radius=data.get("fullDamageRadius"),
        self_destruct=data.get("selfDestruct"),
        death_explosion=data.get("deathExplosion"),
        target_layers=data.get("targetLayers"),
        ammo_source=data.get("ammoSource"),
        ammo_per_shot=data.get("ammoPerShot"),
    )


def unit_from_dict(data: dict) -> Unit:
    ident = data.get("identifier") or data.get("id")
    if not ident:
        raise FactionDataError("Missing 'identifier' in unit")
    context = f"unit {ident}"
    specs = _require(data, "specs", context)
    combat = _require(specs, "combat", context)
    economy = _require(specs, "economy", context)

    mobility = specs.get("mobility")
    recon = specs.get("recon")
    special = specs.get("special")
    relationships = data.get("buildRelationships")

    return Unit(
        identifier=ident,
        display_name=data.get("displayName", ident),
        unit_types=list(data.get("unitTypes", [])),
        tier=data.get("tier"),
        accessible=data.get("accessible", True),
        description=data.get("description", ""),
        image=data.get("image", ""),
        specs=UnitSpecs(
            combat=CombatSpecs(
                health=_require(combat, "health", context),
                dps=combat.get("dps"),
                salvo_damage=combat.get("salvoDamage"),
                weapons=[weapon_from_dict(w) for w in combat.get("weapons") or []],
            ),
            economy=EconomySpecs(
                build_cost=_require(economy, "buildCost", context),
                build_rate=economy.get("buildRate"),
                production=_resources(economy.get("production")),
                consumption=_resources(economy.get("consumption")),
                storage=_resources(economy.get("storage")),
                tool_consumption=_resources(economy.get("toolConsumption")),
                metal_rate=economy.get("metalRate"),
                energy_rate=economy.get("energyRate"),
                build_range=economy.get("buildRange"),
            ),
            mobility=MobilitySpecs(
                move_speed=mobility.get("moveSpeed"),
                turn_speed=mobility.get("turnSpeed"),
                acceleration=mobility.get("acceleration"),
                brake=mobility.get("brake"),
            ) if mobility is not None else None,
            recon=ReconSpecs(
                vision_radius=recon.get("visionRadius"),
                underwater_vision_radius=recon.get("underwaterVisionRadius"),
                orbital_vision_radius=recon.get("orbitalVisionRadius"),
                radar_radius=recon.get("radarRadius"),
                sonar_radius=recon.get("sonarRadius"),
                orbital_radar_radius=recon.get("orbitalRadarRadius"),
            ) if recon is not None else None,
            special=SpecialSpecs(
                amphibious=special.get("amphibious"),
                hover=special.get("hover"),
                spawn_unit_on_death=special.get("spawnUnitOnDeath"),
            ) if special is not None else None,
        ),
        build_relationships=BuildRelationships(
            built_by=list(relationships.get("builtBy") or []),
            builds=list(relationships.get("builds") or []),
        ) if relationships is not None else None,
    )


def faction_index_from_dict(data: dict) -> FactionIndex:
    entries = []
    for raw in data.get("units", []):
        ident = _require(raw, "identifier", "unit index entry")
        entries.append(UnitIndexEntry(
            identifier=ident,
            display_name=raw.get("displayName", ident),
            unit_types=list(raw.get("unitTypes", [])),
            source=raw.get("source", ""),
            files=[UnitFile(path=f.get("path", ""), source=f.get("source", ""))
                   for f in raw.get("files", [])],
            unit=unit_from_dict(_require(raw, "unit", f"unit index entry {ident}")),
        ))
    return FactionIndex(units=entries)


def metadata_from_dict(data: dict, folder_name: str = "",
                       is_local: bool = False) -> FactionMetadata:
    ident = _require(data, "identifier", "faction metadata")
    return FactionMetadata(
        identifier=ident,
        display_name=data.get("displayName", ident),
        version=data.get("version", ""),
        type=data.get("type", "mod"),
        folder_name=folder_name or ident,
        is_local=is_local,
        author=data.get("author", ""),
        description=data.get("description", ""),
        background_image=data.get("backgroundImage"),
        mods=list(data.get("mods", [])),
        is_addon=data.get("isAddon", False),
        base_factions=list(data.get("baseFactions", [])),
    )


def read_json(filepath) -> dict:
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise FactionDataError(f"Malformed JSON in {filepath}: {e}") from e


# ---------------------------------------------------------------------------
# Group compositions (YAML)
# ---------------------------------------------------------------------------

def load_group(filepath: str) -> List[GroupMember]:
    """
    Load a composition file:

        name: Early raid
        members:
          - {faction: MLA, unit: tank_light_laser, quantity: 10}
          - {faction: exiles@1.0.0, unit: exodus}
    """
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}

    members = []
    for item in data.get("members", []):
        ref = parse_faction_ref(str(item["faction"]))
        version = item.get("version", ref.version)
        members.append(GroupMember(
            faction_id=build_faction_ref(ref.faction_id, version),
            unit_id=str(item["unit"]),
            quantity=int(item.get("quantity", 1)),
        ))
    return members


def group_name(filepath: str) -> str:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}
    return data.get("name", Path(filepath).stem)


def save_group(members: List[GroupMember], filepath: str, name: str = ""):
    data = {"name": name or Path(filepath).stem, "members": []}
    for m in members:
        item = {"faction": m.faction_id, "unit": m.unit_id, "quantity": m.quantity}
        data["members"].append(item)
    with open(filepath, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def export_group_stats_json(stats: AggregatedGroupStats, filepath: str):
    with open(filepath, "w") as f:
        json.dump(asdict(stats), f, indent=2)
