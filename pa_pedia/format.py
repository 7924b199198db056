"""
PA-Pedia - Output Formatting
=============================
Number and label formatting shared by the CLI reports.
"""

from typing import Iterable, Optional


def fmt_number(val: Optional[float]) -> str:
    """Thousands separators, at most two decimals, trailing zeros dropped."""
    if val is None:
        return "--"
    if float(val).is_integer():
        return f"{int(val):,}"
    return f"{val:,.2f}".rstrip("0").rstrip(".")


def fmt_optional(val: Optional[float], suffix: str = "") -> str:
    if val is None:
        return "--"
    return f"{fmt_number(val)}{suffix}"


def fmt_layers(layers: Optional[Iterable[str]]) -> str:
    layers = list(layers or [])
    if not layers:
        return "-"
    # WL_LandHorizontal -> LandHorizontal
    return ",".join(l[3:] if l.startswith("WL_") else l for l in layers)


def fmt_bool(val: Optional[bool]) -> str:
    return "yes" if val else "no"
