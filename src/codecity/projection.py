"""
Isometric projection and depth ordering.

The projection is a fixed oblique transform, not a perspective camera:

    screen_x = (x - y) * cos(a) * scale + offset_x
    screen_y = ((x + y) * sin(a) - z) * scale + offset_y

Height (z) only moves a point vertically on screen. Objects with a larger
x + y are nearer to the viewer, which gives the painter's algorithm its
sort key.
"""

import math
from typing import List, Protocol, Sequence, Tuple, Union

from .models import BuildingPlacement, PackagePlacement, ScreenBounds, ViewTransform

Point = Tuple[float, float]

# Corner indices of the three visible faces, as returned by box_corners()
TOP_FACE = (4, 5, 6, 7)
RIGHT_FACE = (5, 6, 2, 1)
LEFT_FACE = (7, 6, 2, 3)


class Box(Protocol):
    """Anything with a world-space origin and extent."""

    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float


Drawable = Union[PackagePlacement, BuildingPlacement]


def project_raw(x: float, y: float, z: float, angle: float = math.pi / 6) -> Point:
    """Project without scale or offset."""
    return (
        (x - y) * math.cos(angle),
        (x + y) * math.sin(angle) - z,
    )


def project(
    x: float,
    y: float,
    z: float,
    view: ViewTransform,
    angle: float = math.pi / 6,
) -> Point:
    """Project a world point to screen coordinates."""
    iso_x, iso_y = project_raw(x, y, z, angle)
    return (
        iso_x * view.scale + view.offset_x,
        iso_y * view.scale + view.offset_y,
    )


def box_corners(
    box: Box, view: ViewTransform, angle: float = math.pi / 6
) -> List[Point]:
    """
    Project the 8 corners of a box.

    Corners 0-3 are the bottom face and 4-7 the top face, each walking
    (x, y), (x + w, y), (x + w, y + d), (x, y + d).
    """
    x, y, z = box.x, box.y, box.z
    w, d, h = box.width, box.depth, box.height
    footprint = [(x, y), (x + w, y), (x + w, y + d), (x, y + d)]
    return [project(px, py, z, view, angle) for px, py in footprint] + [
        project(px, py, z + h, view, angle) for px, py in footprint
    ]


def screen_bounds(corners: Sequence[Point]) -> ScreenBounds:
    """Axis-aligned rectangle enclosing the projected corners."""
    xs = [c[0] for c in corners]
    ys = [c[1] for c in corners]
    return ScreenBounds(min(xs), min(ys), max(xs), max(ys))


def face(corners: Sequence[Point], indices: Sequence[int]) -> List[Point]:
    """Pick the polygon for one face out of the 8 projected corners."""
    return [corners[i] for i in indices]


def depth_key(box: Box) -> float:
    """Painter's algorithm key; larger values are drawn later."""
    return box.x + box.y


def depth_sorted(
    packages: Sequence[PackagePlacement], buildings: Sequence[BuildingPlacement]
) -> List[Drawable]:
    """
    Merge platforms and buildings into one back-to-front draw order.

    Ties keep insertion order (platforms before buildings), since sorted()
    is stable.
    """
    return sorted([*packages, *buildings], key=depth_key)
