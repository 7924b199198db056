"""
PA-Pedia - Comparison
======================
Side-by-side unit and group comparison reports.
"""

from typing import Callable, List, Optional, Tuple

from pa_pedia.catalog import is_different
from pa_pedia.format import fmt_layers, fmt_number, fmt_optional
from pa_pedia.groups import format_boolean_aggregation, match_aggregated_weapons
from pa_pedia.models import AggregatedGroupStats, Unit
from pa_pedia.weapons import combat_weapons, match_weapons_by_target_layers

LABEL_W = 18


def _row(label: str, values: List[str], col_w: int, marker: str = ""):
    line = f" {label:<{LABEL_W}}" + "".join(f"{v:>{col_w}}" for v in values)
    print(f"{line}{marker}")


def _header(title: str, names: List[str], col_w: int):
    width = LABEL_W + 2 + col_w * len(names)
    print()
    print("=" * width)
    print(f"  {title}")
    print("=" * width)
    print(f"{'':>{LABEL_W + 1}}" + "".join(f"{n[:col_w - 2]:>{col_w}}" for n in names))


def _unit_rows(unit: Unit) -> List[Tuple[str, Optional[float]]]:
    specs = unit.specs
    mobility = specs.mobility
    recon = specs.recon
    return [
        ("Health", specs.combat.health),
        ("Build cost", specs.economy.build_cost),
        ("DPS", specs.combat.dps),
        ("Salvo damage", specs.combat.salvo_damage),
        ("Build rate", specs.economy.build_rate),
        ("Move speed", mobility.move_speed if mobility else None),
        ("Turn speed", mobility.turn_speed if mobility else None),
        ("Vision", recon.vision_radius if recon else None),
        ("Radar", recon.radar_radius if recon else None),
    ]


def print_unit_comparison(unit_a: Unit, unit_b: Unit):
    names = [unit_a.display_name, unit_b.display_name]
    col_w = max(20, max(len(n) for n in names) + 2)
    _header("UNIT COMPARISON", names, col_w)

    print("\nSTATS")
    for (label, val_a), (_, val_b) in zip(_unit_rows(unit_a), _unit_rows(unit_b)):
        marker = "  *" if is_different(val_a, val_b) else ""
        _row(label, [fmt_optional(val_a), fmt_optional(val_b)], col_w, marker)

    print("\nWEAPONS")
    pairs = match_weapons_by_target_layers(combat_weapons(unit_a), combat_weapons(unit_b))
    if not pairs:
        print("  (no weapons)")
    for wa, wb in pairs:
        label = (wa or wb).display_name
        _row(label[:LABEL_W], [
            f"{fmt_number(wa.dps * wa.count)} dps" if wa else "--",
            f"{fmt_number(wb.dps * wb.count)} dps" if wb else "--",
        ], col_w)
        _row("  range / layers", [
            f"{fmt_optional(wa.max_range)} {fmt_layers(wa.target_layers)}" if wa else "",
            f"{fmt_optional(wb.max_range)} {fmt_layers(wb.target_layers)}" if wb else "",
        ], col_w)
    print()


_GROUP_ROWS: List[Tuple[str, Callable[[AggregatedGroupStats], Optional[float]]]] = [
    ("Units", lambda s: s.unit_count),
    ("Unit types", lambda s: s.distinct_unit_types),
    ("Total HP", lambda s: s.total_hp),
    ("Total cost", lambda s: s.total_build_cost),
    ("Total DPS", lambda s: s.total_dps),
    ("Sustained DPS", lambda s: s.total_sustained_dps),
    ("Salvo damage", lambda s: s.total_salvo_damage),
    ("DPS / metal", lambda s: s.dps_per_metal),
    ("HP / metal", lambda s: s.hp_per_metal),
    ("Build rate", lambda s: s.total_build_rate),
    ("Min speed", lambda s: s.min_move_speed),
    ("Min turn", lambda s: s.min_turn_speed),
    ("Max vision", lambda s: s.max_vision_radius),
    ("Max radar", lambda s: s.max_radar_radius),
    ("Max range", lambda s: s.max_weapon_range),
]


def print_group_comparison(name_a: str, stats_a: Optional[AggregatedGroupStats],
                           name_b: str, stats_b: Optional[AggregatedGroupStats]):
    names = [name_a, name_b]
    col_w = max(20, max(len(n) for n in names) + 2)
    _header("GROUP COMPARISON", names, col_w)

    if stats_a is None or stats_b is None:
        for name, stats in ((name_a, stats_a), (name_b, stats_b)):
            if stats is None:
                print(f"\n  {name}: no units could be resolved")
        if stats_a is None and stats_b is None:
            return

    print("\nTOTALS")
    for label, getter in _GROUP_ROWS:
        vals = [getter(s) if s is not None else None for s in (stats_a, stats_b)]
        _row(label, [fmt_optional(v) for v in vals], col_w)
    _row("Amphibious", [
        format_boolean_aggregation(s.any_amphibious, s.all_amphibious) if s else "--"
        for s in (stats_a, stats_b)
    ], col_w)
    _row("Hover", [
        format_boolean_aggregation(s.any_hover, s.all_hover) if s else "--"
        for s in (stats_a, stats_b)
    ], col_w)
    _row("Targets", [fmt_layers(s.all_target_layers) if s else "--"
                     for s in (stats_a, stats_b)], col_w)

    print("\nWEAPONS")
    pairs = match_aggregated_weapons(stats_a.weapons if stats_a else [],
                                     stats_b.weapons if stats_b else [])
    if not pairs:
        print("  (no weapons)")
    for wa, wb in pairs:
        label = (wa or wb).display_name
        _row(label[:LABEL_W], [
            f"{wa.total_count}x {fmt_number(wa.total_dps)} dps" if wa else "--",
            f"{wb.total_count}x {fmt_number(wb.total_dps)} dps" if wb else "--",
        ], col_w)
    print()
