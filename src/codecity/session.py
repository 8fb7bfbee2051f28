"""
Visualizer session: the single owner of all mutable view state.

A CitySession holds the loaded dataset, current placements, the color
mapper, the view transform, the display options and the interaction
controller. Components receive what they need from it explicitly, so
several independent sessions can coexist (one per viewer window, or one
per test).
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from PIL import Image

from .colors import GitColorMapper
from .config import LAYOUT_STRATEGIES, CityConfig, VisualOptions
from .interaction import InteractionController
from .layout import CityLayout, CityLayoutEngine
from .models import BuildingPlacement, CityData, ViewTransform
from .renderer import BoxCommand, PNGRenderer, build_draw_list
from .tracer import RenderTrace
from .viewfit import fit_view

logger = logging.getLogger(__name__)

OPTION_NAMES = (
    "show_git_data",
    "show_frequency",
    "show_age",
    "show_recent_glow",
    "color_blind",
)


class CitySession:
    """
    State and operations for one visualization.

    Args:
        config: Geometry, palette and view constants.
        options: Display toggles and layout strategy.
        width: Canvas width in pixels.
        height: Canvas height in pixels.
        on_hover: Called when the hovered building changes.
        on_select: Called when a building is selected.
        debug: Record a RenderTrace of pipeline stages.

    Example:
        >>> session = CitySession(width=1200, height=800)
        >>> session.load(load_city_data("data.json"))
        >>> session.render_png("city.png")
    """

    def __init__(
        self,
        config: Optional[CityConfig] = None,
        options: Optional[VisualOptions] = None,
        width: int = 1200,
        height: int = 800,
        on_hover: Optional[Callable[[Optional[BuildingPlacement]], None]] = None,
        on_select: Optional[Callable[[BuildingPlacement], None]] = None,
        debug: bool = False,
    ):
        self.config = config or CityConfig()
        self.options = options or VisualOptions()
        self.width = width
        self.height = height

        self.data: Optional[CityData] = None
        self.layout = CityLayout(strategy=self.options.layout_strategy)
        self.mapper: Optional[GitColorMapper] = None
        self.view = ViewTransform(
            scale=self.config.scale,
            offset_x=self.config.offset_x,
            offset_y=self.config.offset_y,
        )
        self.controller = InteractionController(
            self.view, self.config, on_hover=on_hover, on_select=on_select
        )
        self.layout_engine = CityLayoutEngine(self.config)
        self.png_renderer = PNGRenderer(self.config)
        self.trace: Optional[RenderTrace] = RenderTrace() if debug else None

    @property
    def buildings(self) -> List[BuildingPlacement]:
        return self.layout.buildings

    def _add_stage(self, name: str, **data) -> None:
        if self.trace is not None:
            self.trace.add_stage(name, data)

    def load(self, data: CityData, now: Optional[datetime] = None) -> None:
        """
        Replace the dataset.

        Recomputes normalization bounds, layout and auto-fit, and clears
        hover and selection.
        """
        self.data = data
        self.mapper = GitColorMapper.from_data(data, now)
        self._add_stage(
            "load",
            packages=len(data.packages),
            classes=sum(len(p.classes) for p in data.packages),
            git_bounds=self.mapper.bounds if self.mapper else None,
        )
        self._relayout()

    def set_strategy(self, strategy: str) -> None:
        """Switch layout strategy, discarding all placements."""
        if strategy not in LAYOUT_STRATEGIES:
            raise ValueError(
                f"layout strategy must be one of {', '.join(LAYOUT_STRATEGIES)}"
            )
        self.options.layout_strategy = strategy
        if self.data is not None:
            self._relayout()

    def set_option(self, name: str, value: bool) -> None:
        """Flip a display toggle; the next render picks it up."""
        if name not in OPTION_NAMES:
            raise ValueError(f"Unknown option {name!r}")
        setattr(self.options, name, bool(value))

    def resize(self, width: int, height: int) -> None:
        """Change the canvas size and refit."""
        self.width = width
        self.height = height
        self.fit()

    def fit(self) -> bool:
        """
        Auto-fit the view to the current layout.

        Returns:
            False if there was nothing to fit, in which case the view is
            left untouched.
        """
        fitted = fit_view(
            self.layout,
            self.width,
            self.height,
            padding=self.config.fit_padding,
            max_scale=self.config.fit_max_scale,
            angle=self.config.iso_angle,
        )
        if fitted is None:
            return False

        # Mutate in place; the controller holds a reference to self.view
        self.view.scale = fitted.scale
        self.view.offset_x = fitted.offset_x
        self.view.offset_y = fitted.offset_y
        self._add_stage(
            "fit",
            canvas=(self.width, self.height),
            scale=fitted.scale,
            offset=(fitted.offset_x, fitted.offset_y),
        )
        return True

    def _relayout(self) -> None:
        self.layout = self.layout_engine.layout(self.data, self.options.layout_strategy)
        self.controller.set_buildings(self.layout.buildings)
        self._add_stage(
            "layout",
            strategy=self.layout.strategy,
            packages=len(self.layout.packages),
            buildings=len(self.layout.buildings),
            bounds=self.layout.bounds(),
        )
        self.fit()

    def draw_list(self, now: Optional[datetime] = None) -> List[BoxCommand]:
        """Build the draw list for the current state."""
        commands = build_draw_list(
            self.layout,
            self.view,
            self.config,
            self.options,
            self.mapper,
            hovered=self.controller.hovered,
            selected=self.controller.selected,
            now=now,
        )
        if self.trace is not None:
            self._add_stage("draw_list", commands=len(commands))
            self.trace.record_paints(commands)
        return commands

    def render_image(self, now: Optional[datetime] = None) -> Image.Image:
        """Render the current state, or the load prompt if nothing is loaded."""
        if self.data is None:
            return self.png_renderer.render_placeholder(self.width, self.height)
        return self.png_renderer.render_image(
            self.draw_list(now), self.width, self.height
        )

    def render_png(self, output_path: str, now: Optional[datetime] = None) -> str:
        """Render and save as PNG; returns the output path."""
        path = self.png_renderer.save(self.render_image(now), output_path)
        logger.info("Wrote %s (%dx%d)", path, self.width, self.height)
        return path

    def find_building(self, class_name: str) -> Optional[BuildingPlacement]:
        """First building whose class name matches exactly."""
        for building in self.layout.buildings:
            if building.class_name == class_name:
                return building
        return None

    def select(self, building: Optional[BuildingPlacement]) -> None:
        """Select a building programmatically (or clear with None)."""
        self.controller.selected = building
