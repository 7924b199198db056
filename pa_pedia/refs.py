"""
PA-Pedia - Faction References
==============================
Versioned faction ids ("exiles@1.0.0") and comparison refs
("exiles@1.0.0/exodus:2") as they appear in links and CLI arguments,
plus the cache keys derived from them.
"""

from dataclasses import dataclass
from typing import Optional

from pa_pedia.config import LOCAL_FACTION_SUFFIX


@dataclass
class FactionRef:
    faction_id: str
    version: Optional[str] = None  # None = latest


@dataclass
class ComparisonRef:
    faction_id: str
    unit_id: str
    version: Optional[str] = None
    quantity: int = 1


def parse_faction_ref(ref: str) -> FactionRef:
    """
    "exiles"       -> FactionRef("exiles", None)
    "exiles@1.0.0" -> FactionRef("exiles", "1.0.0")
    """
    if not ref:
        return FactionRef("", None)
    faction_id, sep, version = ref.partition("@")
    if not sep:
        return FactionRef(ref, None)
    return FactionRef(faction_id, version or None)


def build_faction_ref(faction_id: str, version: Optional[str] = None) -> str:
    if not version:
        return faction_id
    return f"{faction_id}@{version}"


def faction_cache_key(faction_id: str, version: Optional[str] = None) -> str:
    """Cache key for a faction: lower-cased id, optionally suffixed @version."""
    return build_faction_ref(faction_id.lower(), version)


def unit_cache_key(faction_key: str, unit_id: str) -> str:
    return f"{faction_key}:{unit_id}"


def is_local_faction_id(faction_id: str) -> bool:
    return faction_id.lower().endswith(LOCAL_FACTION_SUFFIX)


def parse_comparison_ref(ref: str) -> ComparisonRef:
    """
    Parse "faction[@version]/unit[:quantity]".

    A missing or non-numeric quantity becomes 1. A ref without a slash is
    treated as a faction with no unit selected yet.
    """
    ref_part, _, qty_part = ref.partition(":")
    try:
        quantity = int(qty_part) if qty_part else 1
    except ValueError:
        quantity = 1
    if quantity < 1:
        quantity = 1

    faction_part, sep, unit_id = ref_part.partition("/")
    parsed = parse_faction_ref(faction_part)
    return ComparisonRef(
        faction_id=parsed.faction_id,
        unit_id=unit_id if sep else "",
        version=parsed.version,
        quantity=quantity,
    )


def build_comparison_ref(ref: ComparisonRef) -> str:
    base = f"{build_faction_ref(ref.faction_id, ref.version)}/{ref.unit_id}"
    return f"{base}:{ref.quantity}" if ref.quantity > 1 else base
