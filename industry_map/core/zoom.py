"""
Selection zoom for scatter views.

Points inside a selected rectangle are spread away from (or pulled toward)
the rectangle's centre, leaving everything outside untouched.
"""

from typing import List, NamedTuple, Optional, Sequence


class Point(NamedTuple):
    x: float
    y: float


class SelectionArea(NamedTuple):
    """Rectangle selected in the plot."""
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def center(self) -> Point:
        return Point((self.xmin + self.xmax) / 2, (self.ymin + self.ymax) / 2)

    def contains(self, point: Point) -> bool:
        return self.xmin <= point.x <= self.xmax and self.ymin <= point.y <= self.ymax


def scale_selection(
    points: Sequence[Point], area: Optional[SelectionArea], factor: float
) -> List[Point]:
    """
    Scale the distance of selected points from the selection centre.

    Args:
        points: Points to transform
        area: Selected rectangle, or None for no selection
        factor: Scale factor; 1 leaves points unchanged

    Returns:
        New list of points
    """
    points = [Point(*p) for p in points]
    if area is None or factor == 1:
        return points

    center = area.center
    scaled = []
    for point in points:
        if not area.contains(point):
            scaled.append(point)
            continue
        scaled.append(
            Point(
                center.x + (point.x - center.x) * factor,
                center.y + (point.y - center.y) * factor,
            )
        )
    return scaled
