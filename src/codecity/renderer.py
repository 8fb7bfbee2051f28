"""
Renderer module for the code city.

Rendering is split in two:

- build_draw_list() turns placements, view and display options into a list
  of BoxCommand objects (three colored faces per box, plus dashed and glow
  flags). It is pure apart from refreshing each building's screen bounds
  for hit-testing, so layout and projection math can be tested without
  pixels.
- PNGRenderer paints a draw list with Pillow.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont

from .colors import RGB, GitColorMapper, is_deprecated, scale_hsl, scale_rgb
from .config import CityConfig, VisualOptions
from .layout import CityLayout
from .models import BuildingPlacement, PackagePlacement, ScreenBounds, ViewTransform
from .projection import (
    LEFT_FACE,
    RIGHT_FACE,
    TOP_FACE,
    Point,
    box_corners,
    depth_key,
    depth_sorted,
    face,
    screen_bounds,
)

logger = logging.getLogger(__name__)

KIND_PACKAGE = "package"
KIND_BUILDING = "building"

PROMPT_LINES = (
    "Please select a data.json file to visualize",
    "Run `codecity extract SOURCE data.json` to create one",
)


@dataclass
class Face:
    """One filled quadrilateral."""

    points: List[Point]
    fill: RGB
    outline: RGB


@dataclass
class BoxCommand:
    """
    Everything needed to paint one platform or building.

    Attributes:
        kind: "package" or "building".
        name: Package name or class name, for debugging and tracing.
        faces: Top, right and left faces, in paint order.
        bounds: Screen rectangle over all 8 projected corners.
        depth: Painter's algorithm key the command was sorted by.
        dashed: Draw outlines dashed (deprecated classes).
        glow: Draw a soft glow behind the box (recent changes).
    """

    kind: str
    name: str
    faces: List[Face]
    bounds: ScreenBounds
    depth: float
    dashed: bool = False
    glow: bool = False


@dataclass
class FacePalette:
    """Fill and outline colors for the three faces of a box."""

    fills: Tuple[RGB, RGB, RGB]
    outlines: Tuple[RGB, RGB, RGB] = field(default=((0, 0, 0),) * 3)


def _rgb(color: str) -> RGB:
    return ImageColor.getrgb(color)[:3]


def _hex_palette(base: str) -> FacePalette:
    """Shade a fixed palette color for the top, right and left faces."""
    return FacePalette(
        fills=(scale_rgb(base, 1.2), _rgb(base), scale_rgb(base, 0.7)),
        outlines=(scale_rgb(base, 0.7), scale_rgb(base, 0.7), scale_rgb(base, 0.5)),
    )


def _package_palette(config: CityConfig) -> FacePalette:
    outline = _rgb(config.package_color)
    return FacePalette(
        fills=(
            _rgb(config.package_highlight),
            scale_rgb(config.package_color, 0.8),
            scale_rgb(config.package_color, 0.6),
        ),
        outlines=(outline, outline, outline),
    )


def building_palette(
    building: BuildingPlacement,
    config: CityConfig,
    options: VisualOptions,
    mapper: Optional[GitColorMapper] = None,
    hovered: bool = False,
    selected: bool = False,
    now: Optional[datetime] = None,
) -> FacePalette:
    """
    Choose face colors for a building.

    Selection wins over hover, hover wins over git coloring, and buildings
    without metadata (or with git display turned off) use the base color.
    """
    if selected:
        return _hex_palette(config.building_selected_color)
    if hovered:
        return _hex_palette(config.building_highlight_color)

    metadata = building.git_metadata
    if metadata is not None and mapper is not None and options.show_git_data:
        base = mapper.color_for(
            metadata,
            use_frequency=options.show_frequency,
            use_age=options.show_age,
            color_blind=options.color_blind,
            now=now,
        )
        shades = mapper.shades_of(base)
        return FacePalette(
            fills=(shades.top.to_rgb(), shades.right.to_rgb(), shades.left.to_rgb()),
            outlines=(
                scale_hsl(shades.top, 0.7),
                scale_hsl(shades.right, 0.7),
                scale_hsl(shades.left, 0.5),
            ),
        )

    return _hex_palette(config.building_base_color)


def _box_command(
    kind: str,
    name: str,
    box,
    view: ViewTransform,
    palette: FacePalette,
    config: CityConfig,
    dashed: bool = False,
    glow: bool = False,
) -> BoxCommand:
    corners = box_corners(box, view, config.iso_angle)
    faces = [
        Face(face(corners, indices), fill, outline)
        for indices, fill, outline in zip(
            (TOP_FACE, RIGHT_FACE, LEFT_FACE), palette.fills, palette.outlines
        )
    ]
    return BoxCommand(
        kind=kind,
        name=name,
        faces=faces,
        bounds=screen_bounds(corners),
        depth=depth_key(box),
        dashed=dashed,
        glow=glow,
    )


def build_draw_list(
    layout: CityLayout,
    view: ViewTransform,
    config: Optional[CityConfig] = None,
    options: Optional[VisualOptions] = None,
    mapper: Optional[GitColorMapper] = None,
    hovered: Optional[BuildingPlacement] = None,
    selected: Optional[BuildingPlacement] = None,
    now: Optional[datetime] = None,
) -> List[BoxCommand]:
    """
    Build back-to-front paint commands for the whole city.

    Args:
        layout: Current placements.
        view: Scale and offset to project with.
        config: Palette and projection constants.
        options: Display toggles.
        mapper: Color mapper for the dataset, or None without git data.
        hovered: Building under the pointer.
        selected: Building chosen by the last click.
        now: Reference time for recency checks.

    Returns:
        One BoxCommand per platform and building, in paint order.

    Side effects:
        Each building's screen_bounds is updated to match this frame.
    """
    config = config or CityConfig()
    options = options or VisualOptions()
    package_palette = _package_palette(config)

    commands: List[BoxCommand] = []
    for item in depth_sorted(layout.packages, layout.buildings):
        if isinstance(item, PackagePlacement):
            commands.append(
                _box_command(KIND_PACKAGE, item.name, item, view, package_palette, config)
            )
            continue

        palette = building_palette(
            item,
            config,
            options,
            mapper,
            hovered=item is hovered,
            selected=item is selected,
            now=now,
        )
        glow = (
            mapper is not None
            and options.show_recent_glow
            and mapper.is_recent(item.git_metadata, config.recent_days, now)
        )
        command = _box_command(
            KIND_BUILDING,
            item.class_name,
            item,
            view,
            palette,
            config,
            dashed=is_deprecated(item.class_name),
            glow=glow,
        )
        item.screen_bounds = command.bounds
        commands.append(command)

    return commands


class PNGRenderer:
    """
    Paints draw lists as PNG images with Pillow.

    Args:
        config: Palette, glow and dash settings.
        font_size: Size of the placeholder prompt text.
        font_path: Optional TrueType font for the prompt text.
    """

    def __init__(
        self,
        config: Optional[CityConfig] = None,
        font_size: int = 16,
        font_path: Optional[str] = None,
    ):
        self.config = config or CityConfig()
        self.font_size = font_size
        self.font_path = font_path
        self.font = None

    def _get_font(self) -> ImageFont.FreeTypeFont:
        """Get a font for the placeholder text."""
        if self.font is not None:
            return self.font

        font_options = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
            "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
            "/System/Library/Fonts/Helvetica.ttc",
            "C:/Windows/Fonts/arial.ttf",
        ]
        if self.font_path:
            font_options.insert(0, self.font_path)

        for path in font_options:
            if os.path.exists(path):
                try:
                    self.font = ImageFont.truetype(path, self.font_size)
                    return self.font
                except OSError:
                    continue

        try:
            self.font = ImageFont.load_default(size=self.font_size)
        except TypeError:
            # Older Pillow versions don't support size parameter
            self.font = ImageFont.load_default()
        return self.font

    def render_image(
        self, commands: Sequence[BoxCommand], width: int, height: int
    ) -> Image.Image:
        """
        Paint commands onto a new RGB image.

        Args:
            commands: Draw list in paint order.
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            The rendered image.
        """
        img = Image.new("RGBA", (width, height), _rgb(self.config.background_color))
        draw = ImageDraw.Draw(img)

        for command in commands:
            if command.glow:
                self._draw_glow(img, command)
                draw = ImageDraw.Draw(img)
            self._draw_box(draw, command)

        return img.convert("RGB")

    def render_placeholder(self, width: int, height: int) -> Image.Image:
        """Image shown when no dataset could be loaded."""
        img = Image.new("RGB", (width, height), _rgb(self.config.background_color))
        draw = ImageDraw.Draw(img)
        font = self._get_font()

        y = height / 2 - self.font_size
        for i, line in enumerate(PROMPT_LINES):
            bbox = draw.textbbox((0, 0), line, font=font)
            text_w = bbox[2] - bbox[0]
            color = _rgb(self.config.package_highlight if i == 0 else self.config.package_color)
            draw.text(((width - text_w) / 2, y), line, fill=color, font=font)
            y += (bbox[3] - bbox[1]) + self.font_size
        return img

    def save(self, img: Image.Image, output_path: str) -> str:
        """Save an image as PNG and return the path."""
        img.save(output_path, "PNG", dpi=(300, 300))
        return output_path

    def _draw_box(self, draw: ImageDraw.ImageDraw, command: BoxCommand):
        """Draw the three faces of a box."""
        for item in command.faces:
            if command.dashed:
                draw.polygon(item.points, fill=item.fill)
                self._draw_dashed_polygon(draw, item.points, item.outline)
            else:
                draw.polygon(item.points, fill=item.fill, outline=item.outline)

    def _draw_dashed_polygon(
        self, draw: ImageDraw.ImageDraw, points: Sequence[Point], color: RGB
    ):
        closed = list(points) + [points[0]]
        for start, end in zip(closed, closed[1:]):
            self._draw_dashed_line(draw, start, end, color)

    def _draw_dashed_line(
        self, draw: ImageDraw.ImageDraw, start: Point, end: Point, color: RGB
    ):
        """Draw a dashed segment using the configured dash/gap lengths."""
        dash, gap = self.config.dash_pattern
        x1, y1 = start
        x2, y2 = end
        length = math.hypot(x2 - x1, y2 - y1)
        if length == 0:
            return
        ux = (x2 - x1) / length
        uy = (y2 - y1) / length

        pos = 0.0
        while pos < length:
            seg_end = min(pos + dash, length)
            draw.line(
                [(x1 + ux * pos, y1 + uy * pos), (x1 + ux * seg_end, y1 + uy * seg_end)],
                fill=color,
                width=1,
            )
            pos = seg_end + gap

    def _draw_glow(self, img: Image.Image, command: BoxCommand):
        """Composite a blurred silhouette of the box underneath it."""
        radius = self.config.glow_radius
        margin = radius * 2
        bounds = command.bounds

        left = max(0, int(math.floor(bounds.min_x - margin)))
        top = max(0, int(math.floor(bounds.min_y - margin)))
        right = min(img.width, int(math.ceil(bounds.max_x + margin)))
        bottom = min(img.height, int(math.ceil(bounds.max_y + margin)))
        if right <= left or bottom <= top:
            return

        layer = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
        layer_draw = ImageDraw.Draw(layer)
        glow_color = _rgb(self.config.glow_color) + (255,)
        for item in command.faces:
            shifted = [(x - left, y - top) for x, y in item.points]
            layer_draw.polygon(shifted, fill=glow_color)

        blurred = layer.filter(ImageFilter.GaussianBlur(radius / 2))
        img.alpha_composite(blurred, dest=(left, top))
