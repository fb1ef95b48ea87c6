"""Straight multi-lane road geometry."""

from __future__ import annotations

from geometry.segments import Point, Segment, lerp


ROAD_EXTENT = 1_000_000.0


class Road:
    """Vertical road centred on ``x`` that extends (practically) forever."""

    def __init__(self, x: float, width: float, lane_count: int = 3) -> None:
        if width <= 0:
            raise ValueError("Road width must be > 0")
        if lane_count < 1:
            raise ValueError("lane_count must be >= 1")
        self.x = float(x)
        self.width = float(width)
        self.lane_count = int(lane_count)

        self.left = self.x - self.width / 2.0
        self.right = self.x + self.width / 2.0
        self.top = -ROAD_EXTENT
        self.bottom = ROAD_EXTENT

        top_left = Point(self.left, self.top)
        top_right = Point(self.right, self.top)
        bottom_left = Point(self.left, self.bottom)
        bottom_right = Point(self.right, self.bottom)
        self.borders: list[Segment] = [(top_left, bottom_left), (top_right, bottom_right)]

    def lane_center(self, lane_index: int) -> float:
        """Centre x of ``lane_index``, clamped to the rightmost lane."""
        lane_width = self.width / self.lane_count
        index = min(max(int(lane_index), 0), self.lane_count - 1)
        return self.left + lane_width / 2.0 + index * lane_width

    def lane_dividers(self) -> list[float]:
        """x positions of the dashed markings between lanes."""
        return [lerp(self.left, self.right, i / self.lane_count) for i in range(1, self.lane_count)]
