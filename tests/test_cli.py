"""Tests for CLI integration (subprocess-based)."""

import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
CLI_PATH = PROJECT_ROOT / "cli.py"


@pytest.fixture
def run_cli(factions_dir, tmp_path):
    env = dict(os.environ)
    env["PA_PEDIA_FACTIONS_DIR"] = str(factions_dir)
    env["PA_PEDIA_DB_PATH"] = str(tmp_path / "local.db")

    def _run(*args, timeout=30):
        """Run CLI command and return CompletedProcess."""
        cmd = [sys.executable, str(CLI_PATH)] + list(args)
        return subprocess.run(
            cmd, capture_output=True, text=True, timeout=timeout,
            cwd=str(tmp_path), env=env,
        )
    return _run


def test_factions_lists_folders(run_cli):
    result = run_cli("factions")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "MLA" in result.stdout
    assert "Legion Expansion" in result.stdout


def test_factions_lists_versions(run_cli):
    result = run_cli("factions")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    mla_row = next(line for line in result.stdout.splitlines() if line.startswith("MLA "))
    assert mla_row.rstrip().endswith("1.0.0, 0.9.0")



def test_units_hides_commander_variants(run_cli):
    result = run_cli("units", "MLA")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "imperial_alpha" in result.stdout
    assert "(+1 variants)" in result.stdout
    assert "imperial_delta" not in result.stdout
    assert "1 identical variants hidden" in result.stdout


def test_units_show_variants(run_cli):
    result = run_cli("units", "MLA", "--show-variants")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "imperial_delta" in result.stdout


def test_unit_detail(run_cli):
    result = run_cli("unit", "MLA", "tank_light_laser")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "Ant (tank_light_laser)" in result.stdout
    assert "light_laser" in result.stdout


def test_unknown_unit_exits_1(run_cli):
    result = run_cli("unit", "MLA", "nope")
    assert result.returncode == 1
    assert "[error]" in result.stderr
    assert "nope" in result.stderr


def test_unknown_faction_exits_1(run_cli):
    result = run_cli("units", "Ghost")
    assert result.returncode == 1
    assert "Ghost" in result.stderr


def test_compare_units(run_cli):
    result = run_cli("compare", "MLA/tank_light_laser", "MLA@0.9.0/tank_light_laser")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "UNIT COMPARISON" in result.stdout


def test_compare_against_closest_unit(run_cli):
    result = run_cli("compare", "MLA/tank_light_laser", "Legion")
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "[match] Closest Legion unit to Ant: Drifter" in result.stdout
    assert "UNIT COMPARISON" in result.stdout


def test_compare_without_similar_unit_exits_1(run_cli):
    result = run_cli("compare", "MLA/imperial_alpha", "Legion/")
    assert result.returncode == 1
    assert "No unit in Legion" in result.stderr



def test_group_compare(run_cli, tmp_path):
    a = tmp_path / "a.yaml"
    b = tmp_path / "b.yaml"
    a.write_text("name: Ants\nmembers:\n  - {faction: MLA, unit: tank_light_laser, quantity: 10}\n")
    b.write_text("name: Drifters\nmembers:\n"
                 "  - {faction: Legion, unit: l_tank_light_laser, quantity: 4}\n"
                 "  - {faction: Legion, unit: ghost}\n")
    result = run_cli("group-compare", str(a), str(b))
    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "GROUP COMPARISON" in result.stdout
    assert "2,000" in result.stdout
    assert "skipping Legion/ghost" in result.stdout


def test_delete_static_faction_exits_1(run_cli):
    result = run_cli("delete", "MLA")
    assert result.returncode == 1
    assert "MLA" in result.stderr


def test_no_command_prints_help(run_cli):
    result = run_cli()
    assert result.returncode == 0
    assert "usage" in result.stdout.lower()
