"""
Occlusion region geometry.

Point-in-shape tests used by the image-occlusion editor to decide which
authored region a click lands on. Study-time evaluation never calls these;
an image card is scored by which regions the learner revealed.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field


class RectangleGeometry(BaseModel):
    """Axis-aligned rectangle anchored at its top-left corner."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)

    def contains(self, px: float, py: float) -> bool:
        return point_in_rectangle(px, py, self.x, self.y, self.width, self.height)


class EllipseGeometry(BaseModel):
    """Ellipse (a circle when rx == ry) given by centre and radii."""
    model_config = ConfigDict(frozen=True)

    cx: float
    cy: float
    rx: float = Field(..., gt=0)
    ry: float = Field(..., gt=0)

    def contains(self, px: float, py: float) -> bool:
        return point_in_ellipse(px, py, self.cx, self.cy, self.rx, self.ry)


class PolygonGeometry(BaseModel):
    """Simple polygon given by its vertices in drawing order."""
    model_config = ConfigDict(frozen=True)

    points: tuple[tuple[float, float], ...] = Field(..., min_length=3)

    def contains(self, px: float, py: float) -> bool:
        return point_in_polygon(px, py, self.points)


Geometry = RectangleGeometry | EllipseGeometry | PolygonGeometry


class _HasGeometry(Protocol):
    geometry: Geometry


def point_in_rectangle(px: float, py: float, x: float, y: float, width: float, height: float) -> bool:
    """Edges count as inside."""
    return x <= px <= x + width and y <= py <= y + height


def point_in_ellipse(px: float, py: float, cx: float, cy: float, rx: float, ry: float) -> bool:
    """
    Normalized distance test.

    Formula: ((px - cx) / rx)^2 + ((py - cy) / ry)^2 <= 1
    """
    if rx <= 0 or ry <= 0:
        return False
    dx = (px - cx) / rx
    dy = (py - cy) / ry
    return dx * dx + dy * dy <= 1.0


def point_in_polygon(px: float, py: float, points: Sequence[Sequence[float]]) -> bool:
    """
    Ray casting: count crossings of a horizontal ray from the point.

    An odd number of edge crossings means the point is inside.
    """
    inside = False
    n = len(points)
    if n < 3:
        return False

    j = n - 1
    for i in range(n):
        xi, yi = points[i][0], points[i][1]
        xj, yj = points[j][0], points[j][1]
        if (yi > py) != (yj > py):
            x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            if px < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_region(region: _HasGeometry, px: float, py: float) -> bool:
    return region.geometry.contains(px, py)


def hit_test(regions: Sequence[_HasGeometry], px: float, py: float) -> Optional[int]:
    """
    Index of the region under the point, or None.

    Later regions are drawn on top, so the last match wins.
    """
    for index in range(len(regions) - 1, -1, -1):
        if point_in_region(regions[index], px, py):
            return index
    return None
