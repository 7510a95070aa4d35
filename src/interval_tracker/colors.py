"""Stable chart colors for categories."""

from __future__ import annotations

from typing import Iterable, Mapping

PALETTE: tuple[str, ...] = (
    "#FF6384",
    "#36A2EB",
    "#FFCE56",
    "#4BC0C0",
    "#9966FF",
    "#FF9F40",
    "#8BC34A",
    "#E91E63",
    "#00BCD4",
    "#795548",
    "#607D8B",
    "#CDDC39",
)

FALLBACK_COLOR = "#CCCCCC"


def assign_colors(
    category_names: Iterable[str], palette: tuple[str, ...] = PALETTE
) -> dict[str, str]:
    """Map each name to a palette color by its first position in the input.

    The palette wraps around once there are more names than colors.
    """
    if not palette:
        raise ValueError("palette must contain at least one color")
    colors: dict[str, str] = {}
    for index, name in enumerate(category_names):
        colors.setdefault(name, palette[index % len(palette)])
    return colors


def color_for(colors: Mapping[str, str], name: str) -> str:
    return colors.get(name, FALLBACK_COLOR)
