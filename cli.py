"""
PA-Pedia - CLI Entry Point
===========================
Usage:
    python cli.py factions
    python cli.py units <faction[@version]> [--show-variants]
    python cli.py unit <faction[@version]> <unit_id>
    python cli.py compare <faction/unit> <faction/unit | faction>
    python cli.py group-compare <group_a.yaml> <group_b.yaml> [--export-json out.json]
    python cli.py delete <faction_id>
    python cli.py web [--port 8080]
"""

import argparse
import asyncio
import logging
import os
import sys

from pa_pedia.cache import FactionDataCache
from pa_pedia.catalog import group_units_by_category, sort_factions
from pa_pedia.commanders import (
    build_group_maps, group_variants, hidden_variant_count, total_commander_count,
)
from pa_pedia.compare import print_group_comparison, print_unit_comparison
from pa_pedia.config import FACTIONS_DIR, GROUPS_DIR, LOG_LEVEL
from pa_pedia.errors import FactionDataError
from pa_pedia.format import fmt_layers, fmt_optional
from pa_pedia.groups import aggregate_group_stats
from pa_pedia.io import group_name, load_group
from pa_pedia.refs import parse_comparison_ref, parse_faction_ref
from pa_pedia.web import build_default_cache
from pa_pedia.weapons import combat_weapons


def _fail(message: str):
    print(f"[error] {message}", file=sys.stderr)
    sys.exit(1)


def _group_path(path: str) -> str:
    """Bare names fall back to the bundled groups folder."""
    if os.path.exists(path):
        return path
    candidate = GROUPS_DIR / path
    return str(candidate) if candidate.exists() else path


async def _startup(cache: FactionDataCache):
    try:
        await cache.load_faction_metadata_all()
    except FactionDataError as e:
        print(f"[metadata] Warning: {e}")


async def cmd_factions(cache: FactionDataCache, args):
    await _startup(cache)
    if not cache.factions:
        print(f"No factions found in {FACTIONS_DIR}")
        return
    factions = sort_factions(list(cache.factions.values()))
    versions = await asyncio.gather(
        *(cache.list_versions(f.folder_name) for f in factions), return_exceptions=True,
    )
    print(f"{'Folder':<24} {'Name':<28} {'Type':<10} {'Local':>5}  Versions")
    print("-" * 81)
    for f, found in zip(factions, versions):
        local = "yes" if f.is_local else ""
        if isinstance(found, Exception):
            print(f"[versions] {f.folder_name}: {found}", file=sys.stderr)
            found = [f.version]
        print(f"{f.folder_name[:23]:<24} {f.display_name[:27]:<28} "
              f"{f.type:<10} {local:>5}  {', '.join(found) or '-'}")


async def cmd_units(cache: FactionDataCache, args):
    await _startup(cache)
    ref = parse_faction_ref(args.faction)
    try:
        index = await cache.wait_for_faction(ref.faction_id, ref.version)
    except (FactionDataError, OSError) as e:
        _fail(f"Could not load faction '{args.faction}': {e}")

    grouping = group_variants(index.units)
    group_by_id, variant_ids = build_group_maps(grouping.commanders)

    for category, entries in group_units_by_category(index.units).items():
        if not entries:
            continue
        print(f"\n{category.upper()} ({len(entries)})")
        for e in sorted(entries, key=lambda x: x.display_name.casefold()):
            if e.identifier in variant_ids and not args.show_variants:
                continue
            extra = ""
            group = group_by_id.get(e.identifier)
            if group is not None and group.variants and e.identifier == group.representative.identifier:
                extra = f"  (+{len(group.variants)} variants)"
            print(f"  {e.identifier:<32} {e.display_name}{extra}")

    hidden = hidden_variant_count(grouping)
    if hidden and not args.show_variants:
        print(f"\n[commanders] {total_commander_count(grouping)} commanders, "
              f"{hidden} identical variants hidden (use --show-variants)")


async def cmd_unit(cache: FactionDataCache, args):
    await _startup(cache)
    ref = parse_faction_ref(args.faction)
    try:
        unit = await cache.load_unit(ref.faction_id, args.unit_id, ref.version)
    except (FactionDataError, OSError) as e:
        _fail(str(e))

    specs = unit.specs
    print(f"{unit.display_name} ({unit.identifier})")
    print(f"  Types:       {', '.join(unit.unit_types)}")
    print(f"  Tier:        {unit.tier if unit.tier is not None else '-'}")
    print(f"  Health:      {fmt_optional(specs.combat.health)}")
    print(f"  Build cost:  {fmt_optional(specs.economy.build_cost)}")
    print(f"  DPS:         {fmt_optional(specs.combat.dps)}")
    if specs.mobility:
        print(f"  Move speed:  {fmt_optional(specs.mobility.move_speed)}")
    weapons = combat_weapons(unit)
    if weapons:
        print("  Weapons:")
        for w in weapons:
            print(f"    {w.count}x {w.display_name:<28} dps={fmt_optional(w.dps)} "
                  f"range={fmt_optional(w.max_range)} layers={fmt_layers(w.target_layers)}")


async def cmd_compare(cache: FactionDataCache, args):
    await _startup(cache)
    ref_a, ref_b = parse_comparison_ref(args.a), parse_comparison_ref(args.b)
    if not ref_a.unit_id:
        _fail(f"Expected faction/unit, got '{args.a}'")
    try:
        unit_a = await cache.load_unit(ref_a.faction_id, ref_a.unit_id, ref_a.version)
        if ref_b.unit_id:
            unit_b = await cache.load_unit(ref_b.faction_id, ref_b.unit_id, ref_b.version)
        else:
            unit_b = await cache.find_equivalent_unit(unit_a, ref_b.faction_id, ref_b.version)
            if unit_b is None:
                _fail(f"No unit in {ref_b.faction_id} resembles {unit_a.display_name}")
            print(f"[match] Closest {ref_b.faction_id} unit to {unit_a.display_name}: "
                  f"{unit_b.display_name} ({unit_b.identifier})")
    except (FactionDataError, OSError) as e:
        _fail(str(e))
    print_unit_comparison(unit_a, unit_b)


async def cmd_group_compare(cache: FactionDataCache, args):
    await _startup(cache)
    groups = []
    for path in (_group_path(args.a), _group_path(args.b)):
        try:
            members = load_group(path)
        except (OSError, KeyError, ValueError) as e:
            _fail(f"Error loading {path}: {e}")
        errors = await cache.load_members(members)
        for key, err in errors.items():
            print(f"[group] {path}: skipping {key}: {err}")
        groups.append((group_name(path), aggregate_group_stats(members, cache.unit_lookup())))

    (name_a, stats_a), (name_b, stats_b) = groups
    print_group_comparison(name_a, stats_a, name_b, stats_b)

    if args.export_json:
        from pa_pedia.io import export_group_stats_json
        for suffix, stats in (("a", stats_a), ("b", stats_b)):
            if stats is not None:
                out = args.export_json.replace(".json", f"_{suffix}.json")
                export_group_stats_json(stats, out)
                print(f"Exported JSON to {out}")


async def cmd_delete(cache: FactionDataCache, args):
    await _startup(cache)
    try:
        await cache.delete_faction(args.faction_id)
    except FactionDataError as e:
        _fail(str(e))
    print(f"Deleted local faction {args.faction_id}")


COMMANDS = {
    "factions": cmd_factions,
    "units": cmd_units,
    "unit": cmd_unit,
    "compare": cmd_compare,
    "cmp": cmd_compare,
    "group-compare": cmd_group_compare,
    "gcmp": cmd_group_compare,
    "delete": cmd_delete,
}


def main():
    parser = argparse.ArgumentParser(
        description="PA-Pedia unit browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", help="Command to run")

    sub.add_parser("factions", help="List available factions")

    p_units = sub.add_parser("units", help="List units of a faction by category")
    p_units.add_argument("faction", help="Faction folder, optionally @version")
    p_units.add_argument("--show-variants", action="store_true",
                         help="Also list commander variants with identical stats")

    p_unit = sub.add_parser("unit", help="Show one unit")
    p_unit.add_argument("faction", help="Faction folder, optionally @version")
    p_unit.add_argument("unit_id", help="Unit identifier")

    p_cmp = sub.add_parser("compare", aliases=["cmp"], help="Compare two units")
    p_cmp.add_argument("a", help="First unit: faction[@version]/unit")
    p_cmp.add_argument("b", help="Second unit: faction[@version]/unit, or just a faction "
                                 "to compare against its closest unit")

    p_gcmp = sub.add_parser("group-compare", aliases=["gcmp"],
                            help="Compare two group compositions from YAML")
    p_gcmp.add_argument("a", help="Group A YAML file")
    p_gcmp.add_argument("b", help="Group B YAML file")
    p_gcmp.add_argument("--export-json", default=None,
                        help="Export aggregated stats as JSON")

    p_del = sub.add_parser("delete", help="Delete an uploaded (local) faction")
    p_del.add_argument("faction_id", help="Local faction folder name")

    p_web = sub.add_parser("web", aliases=["serve"], help="Start the JSON API")
    p_web.add_argument("--port", type=int, default=8080,
                       help="Port to serve on (default: 8080)")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command in ("web", "serve"):
        from pa_pedia.web import start_server
        start_server(port=args.port)
    elif args.command in COMMANDS:
        asyncio.run(COMMANDS[args.command](build_default_cache(), args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
