"""
Code City - Isometric code base visualization

Turns a metrics snapshot (packages, classes, lines of code, git history)
into an isometric city: packages are platforms, classes are buildings whose
height follows their size and whose color follows how often and how
recently they changed.

Example:
    >>> from codecity import CitySession, load_city_data
    >>> session = CitySession(width=1600, height=1000)
    >>> session.load(load_city_data("data.json"))
    >>> session.render_png("city.png")

Debug Mode Example:
    >>> session = CitySession(debug=True)
    >>> session.load(load_city_data("data.json"))
    >>> session.draw_list()
    >>> print(session.trace.summary())
"""

from .colors import (
    GitColorMapper,
    HSLColor,
    NormalizationBounds,
    Shades,
    color_for,
    format_relative_date,
    frequency_label,
    is_deprecated,
    is_recent,
    shades_of,
)
from .config import CityConfig, VisualOptions
from .interaction import InteractionController, InteractionState, hit_test
from .layout import CityLayout, CityLayoutEngine, compute_layout
from .models import (
    BuildingPlacement,
    CityData,
    ClassRecord,
    GitMetadata,
    PackagePlacement,
    PackageRecord,
    ScreenBounds,
    ViewTransform,
)
from .parser import CityDataError, LoadError, load_city_data, parse_city_data
from .projection import depth_sorted, project
from .renderer import BoxCommand, PNGRenderer, build_draw_list
from .session import CitySession
from .tracer import PaintRecord, PipelineStage, RenderTrace
from .viewfit import fit_view

__version__ = "0.1.0"

__all__ = [
    # Main API
    "CitySession",
    "CityConfig",
    "VisualOptions",
    # Data
    "CityData",
    "PackageRecord",
    "ClassRecord",
    "GitMetadata",
    "CityDataError",
    "LoadError",
    "load_city_data",
    "parse_city_data",
    # Color
    "GitColorMapper",
    "HSLColor",
    "NormalizationBounds",
    "Shades",
    "color_for",
    "shades_of",
    "is_recent",
    "is_deprecated",
    "frequency_label",
    "format_relative_date",
    # Layout
    "CityLayout",
    "CityLayoutEngine",
    "compute_layout",
    "PackagePlacement",
    "BuildingPlacement",
    # Projection / rendering
    "ViewTransform",
    "ScreenBounds",
    "project",
    "depth_sorted",
    "build_draw_list",
    "BoxCommand",
    "PNGRenderer",
    "fit_view",
    # Interaction
    "InteractionController",
    "InteractionState",
    "hit_test",
    # Debug/Tracing
    "RenderTrace",
    "PipelineStage",
    "PaintRecord",
]
