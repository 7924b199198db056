"""
PA-Pedia - Errors
==================
Exceptions raised by the faction cache and its collaborators.
"""

from typing import List, Optional


class FactionDataError(Exception):
    """Base class for faction/unit data failures."""


class FactionNotFoundError(FactionDataError, LookupError):
    def __init__(self, faction_id: str, version: Optional[str] = None):
        self.faction_id = faction_id
        self.version = version
        label = f"{faction_id}@{version}" if version else faction_id
        super().__init__(f"Faction {label} not found.")


class UnitNotFoundError(FactionDataError, LookupError):
    def __init__(self, faction_id: str, unit_id: str):
        self.faction_id = faction_id
        self.unit_id = unit_id
        super().__init__(f"Unit {unit_id} not found for faction {faction_id}.")


class MetadataLoadError(FactionDataError):
    """Every faction metadata fetch failed."""

    def __init__(self, errors: List[BaseException]):
        self.errors = list(errors)
        first = f": {self.errors[0]}" if self.errors else ""
        super().__init__(
            f"Failed to load metadata for all {len(self.errors)} factions{first}"
        )


class InvalidOperationError(FactionDataError, ValueError):
    pass
