"""
Data models for city generation.

Input records mirror the JSON snapshot produced by the extractor and are
frozen once loaded. Placements are derived from them by the layout engine
and are rebuilt from scratch whenever the dataset or layout strategy
changes.

Classes:
    GitMetadata: Commit history summary for one class.
    ClassRecord: One class (a future building).
    PackageRecord: A named group of classes (a future platform).
    CityData: The whole snapshot.
    ScreenBounds: Axis-aligned screen rectangle used for hit-testing.
    BuildingPlacement: A positioned 3D box for one class.
    PackagePlacement: A positioned platform owning its buildings.
    ViewTransform: Scale and pan applied by the projection.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class GitMetadata:
    """
    Commit history summary for one class.

    Attributes:
        commits: Number of commits touching the file.
        authors: Number of distinct authors.
        last_modified: Timezone-aware timestamp of the latest commit, or None.
    """

    commits: int = 0
    authors: int = 0
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class ClassRecord:
    """A class as reported by the extractor."""

    name: str
    lines_of_code: int = 0
    git_metadata: Optional[GitMetadata] = None


@dataclass(frozen=True)
class PackageRecord:
    """A package and its classes, in input order."""

    name: str
    classes: Tuple[ClassRecord, ...] = ()

    @property
    def mass(self) -> int:
        """Total lines of code across the package."""
        return sum(cls.lines_of_code for cls in self.classes)


@dataclass(frozen=True)
class CityData:
    """A complete metrics snapshot."""

    packages: Tuple[PackageRecord, ...] = ()

    def all_classes(self) -> Iterator[ClassRecord]:
        """Iterate over every class of every package."""
        for package in self.packages:
            yield from package.classes

    @property
    def has_git_data(self) -> bool:
        return any(cls.git_metadata is not None for cls in self.all_classes())


@dataclass
class ScreenBounds:
    """Axis-aligned rectangle in screen space."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def contains(self, x: float, y: float) -> bool:
        """Check whether a point lies inside the rectangle (edges included)."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


@dataclass(eq=False)
class BuildingPlacement:
    """
    A positioned building.

    Coordinates are world-space and already include the package origin.
    screen_bounds is refreshed on every render and is only meaningful for
    hit-testing against the frame that was last drawn.
    """

    record: ClassRecord
    package_name: str
    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float
    screen_bounds: Optional[ScreenBounds] = None

    @property
    def class_name(self) -> str:
        return self.record.name

    @property
    def lines_of_code(self) -> int:
        return self.record.lines_of_code

    @property
    def git_metadata(self) -> Optional[GitMetadata]:
        return self.record.git_metadata


@dataclass(eq=False)
class PackagePlacement:
    """A positioned package platform and the buildings standing on it."""

    record: PackageRecord
    x: float
    y: float
    width: float
    depth: float
    height: float
    z: float = 0
    buildings: List[BuildingPlacement] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.record.name


@dataclass
class ViewTransform:
    """Scale and screen offset applied after isometric projection."""

    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
