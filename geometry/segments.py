"""Segment geometry shared by ray sensing and collision detection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


EPSILON = 1e-9


@dataclass(frozen=True)
class Point:
    """Immutable 2D point."""

    x: float
    y: float


@dataclass(frozen=True)
class Intersection:
    """Crossing point plus its normalized position along the first segment."""

    x: float
    y: float
    offset: float


Segment = tuple[Point, Point]
Polygon = Sequence[Point]


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between ``a`` and ``b``."""
    return a + (b - a) * t


def intersect(segment1: Segment, segment2: Segment) -> Intersection | None:
    """Return where ``segment1`` crosses ``segment2``, if it does.

    Solves ``A + t(B - A) = C + u(D - C)`` and reports a hit only when both
    ``t`` and ``u`` lie in ``[0, 1]``. The returned offset is ``t``.

    Invariants:
        - Parallel, collinear and zero-length inputs yield ``None``.
        - ``offset`` is always within ``[0, 1]``.
        - Pure: neither segment is modified.
    """
    a, b = segment1
    c, d = segment2

    bottom = (d.y - c.y) * (b.x - a.x) - (d.x - c.x) * (b.y - a.y)
    # bottom is the cross product of the two directions, so the parallel
    # test is relative to their lengths
    scale = math.hypot(b.x - a.x, b.y - a.y) * math.hypot(d.x - c.x, d.y - c.y)
    if scale == 0.0 or abs(bottom) <= EPSILON * scale:
        return None

    t_top = (d.x - c.x) * (a.y - c.y) - (d.y - c.y) * (a.x - c.x)
    u_top = (c.y - a.y) * (a.x - b.x) - (c.x - a.x) * (a.y - b.y)
    t = t_top / bottom
    u = u_top / bottom

    if not (-EPSILON <= t <= 1.0 + EPSILON and -EPSILON <= u <= 1.0 + EPSILON):
        return None

    t = min(1.0, max(0.0, t))
    return Intersection(x=lerp(a.x, b.x, t), y=lerp(a.y, b.y, t), offset=t)


def polygon_edges(polygon: Polygon) -> list[Segment]:
    """Edges between consecutive vertices, closing last back to first."""
    count = len(polygon)
    if count < 2:
        return []
    return [(polygon[i], polygon[(i + 1) % count]) for i in range(count)]


def polygons_intersect(poly1: Polygon, poly2: Polygon) -> bool:
    """Return true when any edge of ``poly1`` crosses any edge of ``poly2``."""
    edges2 = polygon_edges(poly2)
    for edge1 in polygon_edges(poly1):
        for edge2 in edges2:
            if intersect(edge1, edge2) is not None:
                return True
    return False
