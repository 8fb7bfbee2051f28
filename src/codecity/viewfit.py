"""
Auto-fit the view so the whole city is visible.

The city's 3D bounding box is projected at scale 1, the largest scale that
fits both canvas axes (minus padding) is chosen, capped so that tiny cities
are not blown up, and the projected box is centered on the canvas.
"""

import logging
import math
from typing import Optional

from .layout import CityLayout
from .models import ViewTransform
from .projection import project_raw

logger = logging.getLogger(__name__)


def fit_view(
    layout: CityLayout,
    canvas_width: float,
    canvas_height: float,
    padding: float = 50,
    max_scale: float = 1.5,
    angle: float = math.pi / 6,
) -> Optional[ViewTransform]:
    """
    Compute a view transform that fits the layout into the canvas.

    Args:
        layout: Placements to fit.
        canvas_width: Canvas width in pixels.
        canvas_height: Canvas height in pixels.
        padding: Margin kept free on each side.
        max_scale: Upper bound for the resulting scale.
        angle: Isometric projection angle.

    Returns:
        The fitted ViewTransform, or None when there is nothing to fit or
        no room to fit it in. Callers keep their current view on None.
    """
    bounds = layout.bounds()
    if bounds is None:
        return None

    available_width = canvas_width - padding * 2
    available_height = canvas_height - padding * 2
    if available_width <= 0 or available_height <= 0:
        logger.debug(
            "Skipping auto-fit: canvas %sx%s leaves no room inside padding %s",
            canvas_width,
            canvas_height,
            padding,
        )
        return None

    corners = [project_raw(x, y, z, angle) for x, y, z in bounds.corners()]
    min_x = min(c[0] for c in corners)
    max_x = max(c[0] for c in corners)
    min_y = min(c[1] for c in corners)
    max_y = max(c[1] for c in corners)

    width = max_x - min_x
    height = max_y - min_y
    scale_x = available_width / width if width > 0 else math.inf
    scale_y = available_height / height if height > 0 else math.inf
    scale = min(scale_x, scale_y, max_scale)

    # Scaling is about the origin, so the scaled center is center * scale
    center_x = (min_x + max_x) / 2 * scale
    center_y = (min_y + max_y) / 2 * scale

    view = ViewTransform(
        scale=scale,
        offset_x=canvas_width / 2 - center_x,
        offset_y=canvas_height / 2 - center_y,
    )
    logger.debug(
        "Auto-fit: bounds=%s scale=%.4f offset=(%.1f, %.1f)",
        bounds,
        view.scale,
        view.offset_x,
        view.offset_y,
    )
    return view
