"""
Sector color assignment.

Colors are indexed by the lexicographic position of a sector name within the
set of names being drawn, so the same set of sectors always gets the same
colors regardless of record order.
"""

from typing import Dict, Iterable, Optional

SECTOR_PALETTE = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FECA57", "#FF9FF3",
    "#54A0FF", "#5F27CD", "#00C887", "#FF7675", "#FDCB6E", "#E17055",
    "#A29BFE", "#6C5CE7", "#FD79A8", "#55A3FF", "#00B894", "#E84393",
    "#00CEC9", "#74B9FF", "#FF6B9D", "#C44569", "#F8B500", "#3B3B98",
    "#1B9CFC", "#FF5722", "#4CAF50", "#2196F3", "#9C27B0", "#FF9800",
    "#795548", "#607D8B", "#E91E63", "#009688", "#8BC34A", "#CDDC39",
    "#FFC107", "#F44336", "#3F51B5", "#00BCD4",
]


def sector_colors(names: Iterable[str], palette: Optional[list] = None) -> Dict[str, str]:
    """
    Map each distinct sector name to a palette color.

    Args:
        names: Sector names, duplicates and order are irrelevant
        palette: Override palette (defaults to SECTOR_PALETTE)

    Returns:
        Dict of sector name -> hex color
    """
    palette = palette or SECTOR_PALETTE
    ordered = sorted(set(names))
    return {name: palette[index % len(palette)] for index, name in enumerate(ordered)}


def hex_to_rgba(hex_color: str, alpha: float = 1.0) -> str:
    """Convert '#RRGGBB' to a CSS rgba() string for translucent fills."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) != 6:
        raise ValueError(f"Invalid hex color: #{hex_color}")
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"
