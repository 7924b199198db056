"""Tests for unit categories, faction ordering and closest-unit lookup."""

from conftest import make_entry, make_unit, meta

from pa_pedia.catalog import (
    CATEGORY_ORDER, find_best_matching_unit, get_unit_category,
    group_units_by_category, is_different, sort_factions,
)


def test_unit_categories():
    assert get_unit_category(["Commander", "Land"]) == "Commanders"
    assert get_unit_category(["Titan", "Air"]) == "Titans"
    assert get_unit_category(["Structure", "Factory"]) == "Factories"
    assert get_unit_category(["Structure", "Defense"]) == "Defenses"
    assert get_unit_category(["Structure"]) == "Structures"
    assert get_unit_category(["Bot", "Land"]) == "Bots"
    assert get_unit_category(["Tank", "Land"]) == "Tanks"
    assert get_unit_category(["Land", "Mobile"]) == "Vehicles"
    assert get_unit_category(["Air", "Mobile"]) == "Air"
    assert get_unit_category(["Naval"]) == "Naval"
    assert get_unit_category(["Orbital"]) == "Orbital"
    assert get_unit_category([]) == "Other"


def test_group_units_by_category_keeps_every_category():
    tank = make_entry(make_unit("tank", unit_types=("Tank", "Land")))
    fac = make_entry(make_unit("fac", unit_types=("Structure", "Factory")))
    groups = group_units_by_category([tank, fac])
    assert list(groups) == CATEGORY_ORDER
    assert groups["Tanks"] == [tank]
    assert groups["Factories"] == [fac]
    assert groups["Naval"] == []


def test_sort_factions_known_order_first():
    factions = [meta("zeta-mod"), meta("Legion"), meta("alpha-mod"), meta("MLA")]
    assert [f.folder_name for f in sort_factions(factions)] == [
        "MLA", "Legion", "alpha-mod", "zeta-mod",
    ]


def test_find_best_matching_unit():
    candidates = [
        make_entry(make_unit("l_bot", "Grunt", unit_types=("Bot", "Land", "Mobile"))),
        make_entry(make_unit("l_tank", "Drifter", unit_types=("Tank", "Land", "Mobile", "Basic"))),
        make_entry(make_unit("l_air", "Wasp", unit_types=("Air", "Mobile"))),
    ]
    best = find_best_matching_unit(["Tank", "Land", "Mobile", "Basic"], candidates)
    assert best.identifier == "l_tank"
    assert find_best_matching_unit(["Naval", "Mobile"], candidates) is None


def test_find_best_matching_unit_ties_by_name():
    candidates = [
        make_entry(make_unit("b", "Zed", unit_types=("Tank", "Land"))),
        make_entry(make_unit("a", "Ant", unit_types=("Tank", "Land"))),
    ]
    assert find_best_matching_unit(["Tank", "Land"], candidates).identifier == "a"


def test_is_different():
    assert not is_different(None, None)
    assert is_different(None, 1)
    assert is_different(1, 2)
    assert not is_different(3.0, 3)
