"""
PA-Pedia - Weapon Matching
===========================
Aligns two weapon lists into comparison rows.

Matching is greedy and order dependent: identical safe names pair first,
then remaining weapons pair by target-layer overlap. Results must stay
deterministic for the same input order, so this is deliberately not an
optimal assignment.
"""

from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from pa_pedia.models import Unit, Weapon

T = TypeVar("T")

WeaponPair = Tuple[Optional[Weapon], Optional[Weapon]]


def is_combat_weapon(weapon: Weapon) -> bool:
    """Self-destruct and death explosions are not sustained combat capability."""
    return not (weapon.self_destruct or weapon.death_explosion)


def combat_weapons(unit: Unit) -> List[Weapon]:
    return [w for w in unit.specs.combat.weapons if is_combat_weapon(w)]


def layer_overlap(layers_a: Optional[Iterable[str]],
                  layers_b: Optional[Iterable[str]]) -> int:
    """Number of target layers shared by both sides. Empty/missing scores 0."""
    set_a = set(layers_a or ())
    set_b = set(layers_b or ())
    if not set_a or not set_b:
        return 0
    return len(set_a & set_b)


def match_pairs(
    items_a: Sequence[T],
    items_b: Sequence[T],
    name_of: Callable[[T], str],
    layers_of: Callable[[T], Optional[Iterable[str]]],
) -> List[Tuple[Optional[T], Optional[T]]]:
    """Two-pass greedy matching shared by unit and group comparisons."""
    result: List[Tuple[Optional[T], Optional[T]]] = []
    used_a = [False] * len(items_a)
    used_b = [False] * len(items_b)

    # Pass 1: identity
    for i, a in enumerate(items_a):
        name = name_of(a)
        for j, b in enumerate(items_b):
            if used_b[j]:
                continue
            if name_of(b) == name:
                result.append((a, b))
                used_a[i] = True
                used_b[j] = True
                break

    # Pass 2: target-layer overlap, first candidate wins ties
    for i, a in enumerate(items_a):
        if used_a[i]:
            continue
        best_j = -1
        best_score = 0
        for j, b in enumerate(items_b):
            if used_b[j]:
                continue
            score = layer_overlap(layers_of(a), layers_of(b))
            if score > best_score:
                best_score = score
                best_j = j
        if best_j >= 0:
            result.append((a, items_b[best_j]))
            used_b[best_j] = True
        else:
            result.append((a, None))
        used_a[i] = True

    for j, b in enumerate(items_b):
        if not used_b[j]:
            result.append((None, b))

    return result


def match_weapons_by_target_layers(weapons_a: Sequence[Weapon],
                                   weapons_b: Sequence[Weapon]) -> List[WeaponPair]:
    """
    Pair weapons of two units for side-by-side display.

    Callers pass lists already stripped of self-destruct/death weapons
    (see combat_weapons). Every input weapon appears in exactly one pair and
    no pair is (None, None).
    """
    return match_pairs(
        weapons_a, weapons_b,
        name_of=lambda w: w.safe_name,
        layers_of=lambda w: w.target_layers,
    )
