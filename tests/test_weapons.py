"""Tests for weapon filtering and two-pass weapon matching."""

from conftest import make_unit, make_weapon

from pa_pedia.weapons import (
    combat_weapons, is_combat_weapon, layer_overlap, match_weapons_by_target_layers,
)

LAND = "WL_LandHorizontal"
WATER = "WL_WaterSurface"
AIR = "WL_Air"
ORBITAL = "WL_Orbital"


def _ids(pairs):
    return [(a.safe_name if a else None, b.safe_name if b else None) for a, b in pairs]


def test_death_and_self_destruct_are_not_combat_weapons():
    assert is_combat_weapon(make_weapon("laser"))
    assert not is_combat_weapon(make_weapon("boom", death_explosion=True))
    assert not is_combat_weapon(make_weapon("pop", self_destruct=True))


def test_combat_weapons_filters_unit_list():
    unit = make_unit(weapons=[
        make_weapon("laser"),
        make_weapon("death", death_explosion=True),
        make_weapon("cannon"),
    ])
    assert [w.safe_name for w in combat_weapons(unit)] == ["laser", "cannon"]


def test_layer_overlap():
    assert layer_overlap([LAND, WATER], [WATER, AIR]) == 1
    assert layer_overlap([LAND, LAND], [LAND]) == 1
    assert layer_overlap([], [LAND]) == 0
    assert layer_overlap(None, [LAND]) == 0


def test_identity_pairs_come_first():
    a = [make_weapon("x", [AIR]), make_weapon("same", [LAND])]
    b = [make_weapon("same", [LAND]), make_weapon("y", [AIR])]
    assert _ids(match_weapons_by_target_layers(a, b)) == [("same", "same"), ("x", "y")]


def test_identity_beats_layer_overlap():
    """Same safe name pairs even with disjoint layers and a better-overlapping rival."""
    a = [make_weapon("uber_cannon", [LAND, WATER])]
    b = [make_weapon("other_gun", [LAND, WATER]), make_weapon("uber_cannon", [ORBITAL])]
    pairs = match_weapons_by_target_layers(a, b)
    assert _ids(pairs) == [("uber_cannon", "uber_cannon"), (None, "other_gun")]


def test_overlap_picks_highest_score():
    a = [make_weapon("a1", [LAND, WATER, AIR])]
    b = [make_weapon("b1", [LAND]), make_weapon("b2", [LAND, WATER])]
    assert _ids(match_weapons_by_target_layers(a, b)) == [("a1", "b2"), (None, "b1")]


def test_overlap_tie_goes_to_first_candidate():
    a = [make_weapon("a1", [LAND])]
    b = [make_weapon("b1", [LAND]), make_weapon("b2", [LAND])]
    assert _ids(match_weapons_by_target_layers(a, b)) == [("a1", "b1"), (None, "b2")]


def test_untagged_weapons_only_match_by_identity():
    a = [make_weapon("a1", None), make_weapon("shared", [])]
    b = [make_weapon("b1", [LAND]), make_weapon("shared", [])]
    assert _ids(match_weapons_by_target_layers(a, b)) == [
        ("shared", "shared"), ("a1", None), (None, "b1"),
    ]


def test_leftovers_keep_b_order():
    a = []
    b = [make_weapon("b1"), make_weapon("b2"), make_weapon("b3")]
    assert _ids(match_weapons_by_target_layers(a, b)) == [
        (None, "b1"), (None, "b2"), (None, "b3"),
    ]


def test_matching_is_total():
    a = [make_weapon("a1", [LAND]), make_weapon("a2", [AIR]), make_weapon("dup", [LAND]),
         make_weapon("a3", None)]
    b = [make_weapon("dup", [ORBITAL]), make_weapon("b1", [AIR, LAND]), make_weapon("b2", [WATER])]
    pairs = match_weapons_by_target_layers(a, b)

    assert all(x is not None or y is not None for x, y in pairs)
    seen_a = [x for x, _ in pairs if x is not None]
    seen_b = [y for _, y in pairs if y is not None]
    assert sorted(map(id, seen_a)) == sorted(map(id, a))
    assert sorted(map(id, seen_b)) == sorted(map(id, b))


def test_matching_is_deterministic():
    a = [make_weapon("a1", [LAND]), make_weapon("a2", [LAND])]
    b = [make_weapon("b1", [LAND]), make_weapon("b2", [LAND])]
    first = _ids(match_weapons_by_target_layers(a, b))
    assert first == _ids(match_weapons_by_target_layers(a, b))
    assert first == [("a1", "b1"), ("a2", "b2")]
