"""
PA-Pedia - Group Aggregation
=============================
Collapses an army composition (units with quantities) into one
AggregatedGroupStats record for group-vs-group comparison.

Aggregation policy per field:
  - sums scale with quantity (hp, cost, dps, economy, build rate)
  - minimums are taken once per unit type (the slowest type caps the group
    no matter how many fast units come along)
  - maximums are the best sensor / reach in the group
  - amphibious / hover are tracked as (any, all)
  - weapons with the same safe name and target layers merge into one entry
"""

from typing import Callable, Dict, List, Optional, Tuple

from pa_pedia.models import (
    AggregatedGroupStats, AggregatedWeapon, GroupMember, Unit, Weapon,
    WeaponSource,
)
from pa_pedia.weapons import is_combat_weapon, match_pairs

UnitLookup = Callable[[str, str], Optional[Unit]]
AggregatedWeaponPair = Tuple[Optional[AggregatedWeapon], Optional[AggregatedWeapon]]


def get_weapon_group_key(weapon: Weapon) -> str:
    """Key for "the same weapon": safe name plus sorted target layers."""
    layers = ",".join(sorted(weapon.target_layers or []))
    return f"{weapon.safe_name}|{layers}"


def _update_min(current: Optional[float], value: Optional[float]) -> Optional[float]:
    if value is None:
        return current
    if current is None:
        return value
    return min(current, value)


def _update_max(current: Optional[float], value: Optional[float]) -> Optional[float]:
    if value is None:
        return current
    if current is None:
        return value
    return max(current, value)


def _res(resources, attr: str) -> float:
    if resources is None:
        return 0.0
    return getattr(resources, attr) or 0.0


def _aggregate_weapons(collector: Dict[str, AggregatedWeapon], unit: Unit,
                       member: GroupMember):
    qty = member.quantity
    # Each member is one source per weapon group, however many of its weapons fall in it
    credited = set()
    for weapon in unit.specs.combat.weapons:
        if not is_combat_weapon(weapon):
            continue

        count = weapon.count if weapon.count is not None else 1
        w_count = count * qty
        w_dps = (weapon.dps or 0.0) * count * qty
        w_damage = (weapon.damage or 0.0) * count * qty
        w_sustained = None
        if weapon.sustained_dps is not None:
            w_sustained = weapon.sustained_dps * count * qty

        key = get_weapon_group_key(weapon)
        existing = collector.get(key)
        if existing is None:
            credited.add(key)
            collector[key] = AggregatedWeapon(
                safe_name=weapon.safe_name,
                display_name=weapon.display_name,
                target_layers=list(weapon.target_layers or []),
                total_count=w_count,
                total_dps=w_dps,
                total_sustained_dps=w_sustained,
                total_damage=w_damage,
                max_range=weapon.max_range,
                rate_of_fire=weapon.rate_of_fire,
                source_units=[WeaponSource(
                    faction_id=member.faction_id,
                    unit_id=member.unit_id,
                    display_name=unit.display_name,
                    quantity=qty,
                )],
            )
            continue

        existing.total_count += w_count
        existing.total_dps += w_dps
        if w_sustained is not None:
            existing.total_sustained_dps = (existing.total_sustained_dps or 0.0) + w_sustained
        existing.total_damage += w_damage
        existing.max_range = _update_max(existing.max_range, weapon.max_range)
        if key in credited:
            continue
        credited.add(key)

        source = next(
            (s for s in existing.source_units
             if s.faction_id == member.faction_id and s.unit_id == member.unit_id),
            None,
        )
        if source is not None:
            source.quantity += qty
        else:
            existing.source_units.append(WeaponSource(
                faction_id=member.faction_id,
                unit_id=member.unit_id,
                display_name=unit.display_name,
                quantity=qty,
            ))


def aggregate_group_stats(members: List[GroupMember],
                          get_unit: UnitLookup) -> Optional[AggregatedGroupStats]:
    """
    Aggregate stats across a group of units.

    get_unit(faction_id, unit_id) resolves members; unresolved members are
    dropped. Returns None when nothing resolves, which callers treat as
    "no data" rather than an all-zero group.
    """
    resolved = []
    for member in members:
        unit = get_unit(member.faction_id, member.unit_id)
        if unit is not None:
            resolved.append((member, unit))
    if not resolved:
        return None

    stats = AggregatedGroupStats()
    collector: Dict[str, AggregatedWeapon] = {}
    target_layers = set()
    builds = set()
    amphibious_flags = []
    hover_flags = []

    for member, unit in resolved:
        qty = member.quantity
        specs = unit.specs
        economy = specs.economy
        stats.unit_count += qty

        stats.total_hp += specs.combat.health * qty
        stats.total_build_cost += economy.build_cost * qty
        stats.total_dps += (specs.combat.dps or 0.0) * qty
        stats.total_salvo_damage += (specs.combat.salvo_damage or 0.0) * qty
        stats.total_metal_production += _res(economy.production, "metal") * qty
        stats.total_energy_production += _res(economy.production, "energy") * qty
        stats.total_metal_consumption += _res(economy.consumption, "metal") * qty
        stats.total_energy_consumption += _res(economy.consumption, "energy") * qty
        stats.total_metal_storage += _res(economy.storage, "metal") * qty
        stats.total_energy_storage += _res(economy.storage, "energy") * qty
        stats.total_build_rate += (economy.build_rate or 0.0) * qty
        stats.total_tool_energy_consumption += _res(economy.tool_consumption, "energy") * qty

        # One sample per unit type, quantity does not matter here
        mobility = specs.mobility
        if mobility is not None:
            stats.min_move_speed = _update_min(stats.min_move_speed, mobility.move_speed)
            stats.min_acceleration = _update_min(stats.min_acceleration, mobility.acceleration)
            stats.min_brake = _update_min(stats.min_brake, mobility.brake)
            stats.min_turn_speed = _update_min(stats.min_turn_speed, mobility.turn_speed)

        recon = specs.recon
        if recon is not None:
            stats.max_vision_radius = _update_max(stats.max_vision_radius, recon.vision_radius)
            stats.max_underwater_vision_radius = _update_max(
                stats.max_underwater_vision_radius, recon.underwater_vision_radius)
            stats.max_radar_radius = _update_max(stats.max_radar_radius, recon.radar_radius)
            stats.max_sonar_radius = _update_max(stats.max_sonar_radius, recon.sonar_radius)
        stats.max_build_range = _update_max(stats.max_build_range, economy.build_range)

        special = specs.special
        amphibious_flags.append(bool(special and special.amphibious))
        hover_flags.append(bool(special and special.hover))

        for weapon in specs.combat.weapons:
            if is_combat_weapon(weapon):
                target_layers.update(weapon.target_layers or [])
        if unit.build_relationships is not None:
            builds.update(unit.build_relationships.builds)

        _aggregate_weapons(collector, unit, member)

    for weapon in collector.values():
        stats.max_weapon_range = _update_max(stats.max_weapon_range, weapon.max_range)

    stats.any_amphibious = any(amphibious_flags)
    stats.all_amphibious = all(amphibious_flags)
    stats.any_hover = any(hover_flags)
    stats.all_hover = all(hover_flags)

    stats.weapons = sorted(collector.values(), key=lambda w: w.total_dps, reverse=True)

    # Reported only when ammo limits actually change the picture somewhere
    if any(w.total_sustained_dps is not None and w.total_sustained_dps != w.total_dps
           for w in stats.weapons):
        stats.total_sustained_dps = sum(
            w.total_sustained_dps if w.total_sustained_dps is not None else w.total_dps
            for w in stats.weapons
        )

    if stats.total_build_cost != 0:
        stats.dps_per_metal = stats.total_dps / stats.total_build_cost
        stats.hp_per_metal = stats.total_hp / stats.total_build_cost

    stats.all_target_layers = sorted(target_layers)
    stats.all_builds = sorted(builds)
    stats.distinct_unit_types = len(resolved)
    return stats


def match_aggregated_weapons(weapons_a: List[AggregatedWeapon],
                             weapons_b: List[AggregatedWeapon]) -> List[AggregatedWeaponPair]:
    """Same two-pass matching as single units, applied to group weapons."""
    return match_pairs(
        weapons_a, weapons_b,
        name_of=lambda w: w.safe_name,
        layers_of=lambda w: w.target_layers,
    )


def format_boolean_aggregation(any_value: bool, all_value: bool) -> str:
    if all_value:
        return "Yes (all)"
    if any_value:
        return "Some"
    return "None"
