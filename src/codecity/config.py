"""
Configuration for city layout, rendering and view behaviour.

Two dataclasses hold every tunable value:

- CityConfig: geometry, palette and view constants. Constructed once and
  shared by the layout engine, renderer and view-fit calculator.
- VisualOptions: the user-facing toggles (git coloring, glow, color-blind
  mode and layout strategy). These change at runtime from the CLI flags or
  the viewer's check buttons.
"""

import math
from dataclasses import dataclass

LAYOUT_QUADRANT = "quadrant"
LAYOUT_GRID = "grid"
LAYOUT_STRATEGIES = (LAYOUT_QUADRANT, LAYOUT_GRID)


@dataclass(frozen=True)
class CityConfig:
    """
    Geometry, palette and view constants.

    Attributes:
        building_width: Base footprint width before LOC scaling.
        building_depth: Base footprint depth before LOC scaling.
        building_spacing: Gap between buildings inside a package.
        package_padding: Margin between a platform edge and its buildings.
        package_spacing: Gap between neighbouring platforms.
        platform_height: Fixed height of a package platform.
        loc_to_height_scale: World units of height per line of code.
        min_building_height: Lower bound for a building's height.
        footprint_loc_divisor: LOC at which the footprint equals the base size.
        max_buildings_per_row: Upper bound for buildings in one package row.
        estimated_package_size: Average platform width used for row wrapping.
        iso_angle: Isometric projection angle in radians.
        fit_padding: Canvas margin kept free by the auto-fit.
        fit_max_scale: Largest scale the auto-fit may choose.
        min_zoom: Smallest scale reachable by wheel zoom.
        max_zoom: Largest scale reachable by wheel zoom.
        zoom_intensity: Exponent step for a single wheel notch.
        recent_days: Age in days below which a building glows.
    """

    building_width: float = 30
    building_depth: float = 30
    building_spacing: float = 5
    package_padding: float = 20
    package_spacing: float = 0
    platform_height: float = 5
    loc_to_height_scale: float = 0.8
    min_building_height: float = 10

    min_building_width: float = 20
    max_building_width: float = 80
    min_building_depth: float = 20
    max_building_depth: float = 80
    footprint_loc_divisor: float = 50

    max_buildings_per_row: int = 6
    estimated_package_size: float = 150

    iso_angle: float = math.pi / 6

    # Palette
    package_color: str = "#7f8c8d"
    package_highlight: str = "#95a5a6"
    building_base_color: str = "#34495e"
    building_highlight_color: str = "#3498db"
    building_selected_color: str = "#e74c3c"
    background_color: str = "#2c3e50"
    glow_color: str = "#f39c12"
    glow_radius: int = 15
    dash_pattern: tuple = (5, 5)

    # View
    offset_x: float = 100
    offset_y: float = 100
    scale: float = 1.0
    fit_padding: float = 50
    fit_max_scale: float = 1.5
    min_zoom: float = 0.1
    max_zoom: float = 5.0
    zoom_intensity: float = 0.1

    recent_days: int = 7


@dataclass
class VisualOptions:
    """
    Runtime display toggles.

    Attributes:
        show_git_data: Master switch for metadata-driven coloring.
        show_frequency: Encode commit frequency as hue.
        show_age: Encode recency as saturation.
        show_recent_glow: Glow around recently modified buildings.
        color_blind: Use the purple to orange hue range.
        layout_strategy: Either "quadrant" or "grid".
    """

    show_git_data: bool = True
    show_frequency: bool = True
    show_age: bool = True
    show_recent_glow: bool = True
    color_blind: bool = False
    layout_strategy: str = LAYOUT_QUADRANT

    def __post_init__(self):
        if self.layout_strategy not in LAYOUT_STRATEGIES:
            raise ValueError(
                f"layout_strategy must be one of {', '.join(LAYOUT_STRATEGIES)}; "
                f"got {self.layout_strategy!r}"
            )
