"""
PA-Pedia - Commander Deduplication
===================================
Mods often publish cosmetic re-skins of the same commander as separate
units. Commanders whose gameplay stats are identical collapse into one
group: a representative plus hidden variants.
"""

from collections import OrderedDict
from typing import Dict, List, Optional, Set, Tuple

from pa_pedia.models import (
    CommanderGroup, CommanderGroupingResult, Unit, UnitIndexEntry, Weapon,
)

COMMANDER_TYPE = "Commander"


def is_commander(entry: UnitIndexEntry) -> bool:
    return COMMANDER_TYPE in entry.unit_types


def _fmt(value) -> str:
    """Serialize one signature field. None becomes the empty placeholder."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _weapon_signature(weapon: Weapon) -> str:
    parts = [
        weapon.safe_name,
        weapon.count,
        weapon.damage,
        weapon.dps,
        weapon.rate_of_fire,
        weapon.max_range or 0,
        weapon.splash_damage or 0,
        weapon.splash_radius or 0,
        bool(weapon.self_destruct),
        bool(weapon.death_explosion),
        weapon.ammo_source or "",
        weapon.ammo_per_shot or 0,
    ]
    return "|".join(_fmt(p) for p in parts)


def _weapons_signature(weapons: Optional[List[Weapon]]) -> str:
    if not weapons:
        return ""
    # Sorted so declaration order does not matter
    return ";".join(sorted(_weapon_signature(w) for w in weapons))


def compute_stats_hash(unit: Unit) -> str:
    """
    Signature of every gameplay-affecting field of a unit.

    Covers combat (health, dps, salvo, weapons), economy (cost, build rate,
    metal/energy rate, build range), mobility, recon radii and special
    flags. Display name, description, image, identifier and tier are left
    out, so re-skins hash equal.
    """
    specs = unit.specs
    mobility = specs.mobility
    recon = specs.recon
    special = specs.special

    parts = [
        # Combat
        specs.combat.health,
        specs.combat.dps,
        specs.combat.salvo_damage,
        _weapons_signature(specs.combat.weapons),
        # Economy
        specs.economy.build_cost,
        specs.economy.build_rate,
        specs.economy.metal_rate,
        specs.economy.energy_rate,
        specs.economy.build_range,
        # Mobility
        mobility.move_speed if mobility else None,
        mobility.turn_speed if mobility else None,
        mobility.acceleration if mobility else None,
        mobility.brake if mobility else None,
        # Recon
        recon.vision_radius if recon else None,
        recon.radar_radius if recon else None,
        recon.sonar_radius if recon else None,
        recon.orbital_vision_radius if recon else None,
        recon.orbital_radar_radius if recon else None,
        # Special
        bool(special.amphibious) if special else False,
        bool(special.hover) if special else False,
        (special.spawn_unit_on_death or "") if special else "",
    ]
    return "::".join(_fmt(p) for p in parts)


def _name_key(entry: UnitIndexEntry):
    return (entry.display_name.casefold(), entry.display_name, entry.identifier)


def group_variants(entries: List[UnitIndexEntry]) -> CommanderGroupingResult:
    """
    Split units into commander groups and untouched non-commanders.

    Inside a group the alphabetically first commander is the representative
    and the rest are variants, also alphabetical. Groups are ordered by
    representative name. A group without variants is still a group.
    """
    by_hash: "OrderedDict[str, List[UnitIndexEntry]]" = OrderedDict()
    non_commanders: List[UnitIndexEntry] = []

    for entry in entries:
        if is_commander(entry):
            by_hash.setdefault(compute_stats_hash(entry.unit), []).append(entry)
        else:
            non_commanders.append(entry)

    groups = []
    for stats_hash, members in by_hash.items():
        ordered = sorted(members, key=_name_key)
        groups.append(CommanderGroup(
            representative=ordered[0],
            variants=ordered[1:],
            stats_hash=stats_hash,
        ))
    groups.sort(key=lambda g: _name_key(g.representative))

    return CommanderGroupingResult(commanders=groups, non_commanders=non_commanders)


def total_commander_count(result: CommanderGroupingResult) -> int:
    return sum(1 + len(g.variants) for g in result.commanders)


def hidden_variant_count(result: CommanderGroupingResult) -> int:
    return sum(len(g.variants) for g in result.commanders)


def build_group_maps(
    groups: Optional[List[CommanderGroup]],
) -> Tuple[Dict[str, CommanderGroup], Set[str]]:
    """
    Lookup tables for list views: identifier -> group (representatives and
    variants alike), and the set of variant identifiers to hide when
    collapsed.
    """
    group_by_id: Dict[str, CommanderGroup] = {}
    variant_ids: Set[str] = set()
    for group in groups or []:
        group_by_id[group.representative.identifier] = group
        for variant in group.variants:
            group_by_id[variant.identifier] = group
            variant_ids.add(variant.identifier)
    return group_by_id, variant_ids
