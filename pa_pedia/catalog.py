"""
PA-Pedia - Catalog Helpers
===========================
Browsing helpers: unit categories, faction ordering and cross-faction
"closest equivalent" lookup by unit type overlap.
"""

from typing import Dict, Iterable, List, Optional, TypeVar

from pa_pedia.models import FactionMetadata, UnitIndexEntry

T = TypeVar("T")

CATEGORY_ORDER = [
    "Factories", "Defenses", "Structures", "Bots", "Tanks", "Vehicles",
    "Air", "Naval", "Orbital", "Titans", "Commanders", "Other",
]

FACTION_ORDER = ["mla", "legion", "bugs", "exiles", "second-wave"]


def get_unit_category(unit_types: Iterable[str]) -> str:
    """Exactly one category per unit, first match wins."""
    types = set(unit_types)
    if "Commander" in types:
        return "Commanders"
    if "Titan" in types:
        return "Titans"
    if "Structure" in types:
        if "Factory" in types:
            return "Factories"
        if "Defense" in types:
            return "Defenses"
        return "Structures"
    if "Bot" in types:
        return "Bots"
    if "Tank" in types:
        return "Tanks"
    if "Land" in types:
        return "Vehicles"
    for domain in ("Air", "Naval", "Orbital"):
        if domain in types:
            return domain
    return "Other"


def group_units_by_category(entries: List[UnitIndexEntry]) -> Dict[str, List[UnitIndexEntry]]:
    """Every category is present, in display order, even when empty."""
    groups: Dict[str, List[UnitIndexEntry]] = {c: [] for c in CATEGORY_ORDER}
    for entry in entries:
        groups[get_unit_category(entry.unit_types)].append(entry)
    return groups


def sort_factions(factions: List[FactionMetadata]) -> List[FactionMetadata]:
    def key(f: FactionMetadata):
        name = f.folder_name.lower()
        if name in FACTION_ORDER:
            return (0, FACTION_ORDER.index(name), "")
        return (1, 0, f.folder_name)
    return sorted(factions, key=key)


def type_match_score(source_types: Iterable[str], candidate_types: Iterable[str]) -> int:
    source = set(source_types)
    return sum(1 for t in candidate_types if t in source)


def find_best_matching_unit(source_types: List[str], candidates: List[UnitIndexEntry],
                            min_score: int = 2) -> Optional[UnitIndexEntry]:
    """
    Closest unit in another faction by shared unit types. Candidates are
    scanned by (display name, identifier) so ties resolve the same way every
    time. Returns None below min_score.
    """
    best = None
    best_score = 0
    ordered = sorted(candidates, key=lambda e: (e.display_name.casefold(), e.identifier))
    for entry in ordered:
        score = type_match_score(source_types, entry.unit_types)
        if score > best_score and score >= min_score:
            best = entry
            best_score = score
    return best


def is_different(a: Optional[T], b: Optional[T]) -> bool:
    if a is None and b is None:
        return False
    if a is None or b is None:
        return True
    return a != b
