"""
Layout module for the code city.

Places every package platform and every building in world space:

- Inside a package, classes are sorted by size and packed into rows whose
  length grows with the square root of the class count.
- Across packages, either a single wrapping grid ("grid") or four quadrants
  with the heaviest packages in the middle ("quadrant") is used.

Layouts are never updated incrementally; compute_layout rebuilds everything
from the input records, so the same input always produces the same result.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import LAYOUT_GRID, LAYOUT_QUADRANT, CityConfig
from .models import (
    BuildingPlacement,
    CityData,
    ClassRecord,
    PackagePlacement,
    PackageRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class BuildingSlot:
    """Package-local position of one class."""

    record: ClassRecord
    x: float
    y: float
    width: float
    depth: float


@dataclass
class PackageLayout:
    """Footprint of a package and the local slots of its buildings."""

    width: float
    depth: float
    height: float
    slots: List[BuildingSlot] = field(default_factory=list)


@dataclass
class Bounds3D:
    """Axis-aligned 3D bounding box."""

    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    def corners(self) -> List[Tuple[float, float, float]]:
        """The 8 corners, bottom face first."""
        return [
            (self.min_x, self.min_y, self.min_z),
            (self.max_x, self.min_y, self.min_z),
            (self.max_x, self.max_y, self.min_z),
            (self.min_x, self.max_y, self.min_z),
            (self.min_x, self.min_y, self.max_z),
            (self.max_x, self.min_y, self.max_z),
            (self.max_x, self.max_y, self.max_z),
            (self.min_x, self.max_y, self.max_z),
        ]


@dataclass
class CityLayout:
    """Result of the layout algorithm."""

    strategy: str = LAYOUT_QUADRANT
    packages: List[PackagePlacement] = field(default_factory=list)
    buildings: List[BuildingPlacement] = field(default_factory=list)

    def bounds(self) -> Optional[Bounds3D]:
        """Bounding box over all platforms and buildings, or None if empty."""
        boxes = [*self.packages, *self.buildings]
        if not boxes:
            return None
        return Bounds3D(
            min_x=min(b.x for b in boxes),
            min_y=min(b.y for b in boxes),
            min_z=min(b.z for b in boxes),
            max_x=max(b.x + b.width for b in boxes),
            max_y=max(b.y + b.depth for b in boxes),
            max_z=max(b.z + b.height for b in boxes),
        )


def building_footprint(
    lines_of_code: int, config: CityConfig
) -> Tuple[float, float]:
    """
    Footprint of a building.

    Square-root scaling keeps footprints growing slower than heights: a
    class at the reference size gets the base footprint, and the result is
    clamped to the configured minimum and maximum.
    """
    factor = math.sqrt(max(0, lines_of_code) / config.footprint_loc_divisor)
    width = min(
        config.max_building_width,
        max(config.min_building_width, config.building_width * factor),
    )
    depth = min(
        config.max_building_depth,
        max(config.min_building_depth, config.building_depth * factor),
    )
    return width, depth


def building_height(lines_of_code: int, config: CityConfig) -> float:
    """Height of a building, proportional to its lines of code."""
    return max(
        config.min_building_height,
        max(0, lines_of_code) * config.loc_to_height_scale,
    )


def layout_package(package: PackageRecord, config: CityConfig) -> PackageLayout:
    """
    Pack a package's buildings into rows.

    Args:
        package: The package to lay out.
        config: Geometry constants.

    Returns:
        PackageLayout with package-local slots; the footprint is the
        bounding box of all slots plus padding on every side.
    """
    # sorted() is stable, so equal sizes keep their input order
    classes = sorted(package.classes, key=lambda c: c.lines_of_code, reverse=True)
    per_row = min(
        config.max_buildings_per_row, math.ceil(math.sqrt(len(classes)))
    )

    padding = config.package_padding
    cursor_x = padding
    cursor_y = padding
    row_depth = 0.0
    max_right = padding
    max_bottom = padding
    slots: List[BuildingSlot] = []

    for index, record in enumerate(classes):
        width, depth = building_footprint(record.lines_of_code, config)

        if index > 0 and index % per_row == 0:
            cursor_x = padding
            cursor_y += row_depth + config.building_spacing
            row_depth = 0.0

        slots.append(BuildingSlot(record, cursor_x, cursor_y, width, depth))

        max_right = max(max_right, cursor_x + width)
        max_bottom = max(max_bottom, cursor_y + depth)
        cursor_x += width + config.building_spacing
        row_depth = max(row_depth, depth)

    return PackageLayout(
        width=max_right + padding,
        depth=max_bottom + padding,
        height=config.platform_height,
        slots=slots,
    )


class CityLayoutEngine:
    """
    Places packages and buildings for a whole dataset.

    Example:
        >>> engine = CityLayoutEngine(CityConfig())
        >>> layout = engine.layout(city_data, "grid")
        >>> len(layout.buildings)
        42
    """

    def __init__(self, config: Optional[CityConfig] = None):
        self.config = config or CityConfig()

    def layout(self, data: CityData, strategy: str = LAYOUT_QUADRANT) -> CityLayout:
        """
        Compute placements for every package and building.

        Args:
            data: The loaded snapshot.
            strategy: "quadrant" or "grid".

        Returns:
            A fresh CityLayout.

        Raises:
            ValueError: If the strategy is unknown.
        """
        ranked = sorted(data.packages, key=lambda p: p.mass, reverse=True)
        result = CityLayout(strategy=strategy)

        if strategy == LAYOUT_GRID:
            self._layout_grid(ranked, result)
        elif strategy == LAYOUT_QUADRANT:
            self._layout_quadrants(ranked, result)
        else:
            raise ValueError(
                f"Unknown layout strategy {strategy!r}; "
                f"expected '{LAYOUT_QUADRANT}' or '{LAYOUT_GRID}'"
            )

        logger.debug(
            "Laid out %d packages and %d buildings using %s strategy",
            len(result.packages),
            len(result.buildings),
            strategy,
        )
        return result

    def _row_width(self, count: int) -> float:
        return math.ceil(math.sqrt(count)) * self.config.estimated_package_size

    def _layout_grid(self, ranked: Sequence[PackageRecord], result: CityLayout):
        """All packages in one square-ish wrapping grid, largest first."""
        self._layout_region(ranked, 0, 0, self._row_width(len(ranked)), result)

    def _layout_quadrants(
        self, ranked: Sequence[PackageRecord], result: CityLayout
    ):
        """
        Split packages into four mass quartiles.

        The heaviest quartile forms the center, the next one sits to the
        right, then below, and the lightest packages go to the top-left.
        Quadrant offsets come from the estimated package size rather than
        measured widths, so crowded quadrants may spill into each other.
        """
        quartile = math.ceil(len(ranked) / 4)
        row_width = self._row_width(quartile)

        quadrants = [
            (ranked[:quartile], row_width, row_width),
            (ranked[quartile : quartile * 2], row_width * 2, 0),
            (ranked[quartile * 2 : quartile * 3], 0, row_width * 2),
            (ranked[quartile * 3 :], 0, 0),
        ]
        for packages, start_x, start_y in quadrants:
            self._layout_region(packages, start_x, start_y, row_width, result)

    def _layout_region(
        self,
        packages: Sequence[PackageRecord],
        start_x: float,
        start_y: float,
        max_row_width: float,
        result: CityLayout,
    ):
        """Place packages left to right, wrapping when a row gets too wide."""
        config = self.config
        package_x = start_x
        package_y = start_y
        row_depth = 0.0

        for index, package in enumerate(packages):
            local = layout_package(package, config)

            if index > 0 and package_x - start_x + local.width > max_row_width:
                package_x = start_x
                package_y += row_depth + config.package_spacing
                row_depth = 0.0

            placement = PackagePlacement(
                record=package,
                x=package_x,
                y=package_y,
                width=local.width,
                depth=local.depth,
                height=local.height,
            )

            for slot in local.slots:
                building = BuildingPlacement(
                    record=slot.record,
                    package_name=package.name,
                    x=package_x + slot.x,
                    y=package_y + slot.y,
                    z=local.height,
                    width=slot.width,
                    depth=slot.depth,
                    height=building_height(slot.record.lines_of_code, config),
                )
                placement.buildings.append(building)
                result.buildings.append(building)

            result.packages.append(placement)

            package_x += local.width + config.package_spacing
            row_depth = max(row_depth, local.depth)


def compute_layout(
    data: CityData,
    strategy: str = LAYOUT_QUADRANT,
    config: Optional[CityConfig] = None,
) -> CityLayout:
    """
    Convenience function to lay out a dataset.

    Args:
        data: The loaded snapshot.
        strategy: "quadrant" or "grid".
        config: Geometry constants; defaults to CityConfig().

    Returns:
        CityLayout with all placements.
    """
    return CityLayoutEngine(config).layout(data, strategy)
