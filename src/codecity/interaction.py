"""
Pointer interaction: hover, selection, zoom and pan.

InteractionController is a small state machine driven by discrete pointer
events. It never draws; every handler returns True when the caller should
redraw. Hit-testing uses the screen bounds stored on each building by the
last render, so events must be fed against the frame currently on screen.

Transitions:

    pointer over empty space      -> IDLE (or SELECTED if a selection exists)
    pointer over a building       -> HOVERING(building), on_hover fires
    click while hovering          -> SELECTED(building), on_select fires
    wheel                         -> zoom about the pointer, state unchanged
    middle button down            -> PANNING until button up or pointer leave
    reset (reload/layout change)  -> IDLE
"""

import math
from enum import Enum
from typing import Callable, Optional, Sequence

from .config import CityConfig
from .models import BuildingPlacement, ViewTransform
from .projection import depth_key

# Tk button numbering: 1 left, 2 middle, 3 right
PAN_BUTTON = 2


class InteractionState(Enum):
    """Coarse interaction state."""

    IDLE = "idle"
    HOVERING = "hovering"
    SELECTED = "selected"
    PANNING = "panning"


def hit_test(
    buildings: Sequence[BuildingPlacement], x: float, y: float
) -> Optional[BuildingPlacement]:
    """
    Find the building under a screen point.

    Uses each building's rectangular screen bounds rather than its exact
    outline, so points near a building's silhouette corners may hit it.
    When several rectangles contain the point the one nearest the viewer
    (largest depth key) wins; the first one seen wins ties.
    """
    found = None
    best = -math.inf
    for building in buildings:
        bounds = building.screen_bounds
        if bounds is None or not bounds.contains(x, y):
            continue
        key = depth_key(building)
        if key > best:
            best = key
            found = building
    return found


class InteractionController:
    """
    Event-to-state translation for one visualizer session.

    Args:
        view: The session's view transform; zoom and pan mutate it in place.
        config: Zoom limits and intensity.
        on_hover: Called with the newly hovered building (or None).
        on_select: Called with the newly selected building.
    """

    def __init__(
        self,
        view: ViewTransform,
        config: Optional[CityConfig] = None,
        on_hover: Optional[Callable[[Optional[BuildingPlacement]], None]] = None,
        on_select: Optional[Callable[[BuildingPlacement], None]] = None,
    ):
        self.view = view
        self.config = config or CityConfig()
        self.on_hover = on_hover
        self.on_select = on_select

        self.buildings: Sequence[BuildingPlacement] = []
        self.hovered: Optional[BuildingPlacement] = None
        self.selected: Optional[BuildingPlacement] = None
        self.panning = False
        self._pan_start = (0.0, 0.0)
        self._pan_origin = (0.0, 0.0)

    @property
    def state(self) -> InteractionState:
        if self.panning:
            return InteractionState.PANNING
        if self.hovered is not None:
            return InteractionState.HOVERING
        if self.selected is not None:
            return InteractionState.SELECTED
        return InteractionState.IDLE

    def set_buildings(self, buildings: Sequence[BuildingPlacement]) -> None:
        """Point the controller at a new set of placements and reset."""
        self.buildings = buildings
        self.reset()

    def reset(self) -> None:
        """Forget hover, selection and any pan in progress."""
        self.hovered = None
        self.selected = None
        self.panning = False

    def pointer_move(self, x: float, y: float) -> bool:
        """Handle pointer movement; returns True if a redraw is needed."""
        if self.panning:
            start_x, start_y = self._pan_start
            origin_x, origin_y = self._pan_origin
            self.view.offset_x = origin_x + (x - start_x)
            self.view.offset_y = origin_y + (y - start_y)
            return True

        found = hit_test(self.buildings, x, y)
        if found is self.hovered:
            return False

        self.hovered = found
        if self.on_hover is not None:
            self.on_hover(found)
        return True

    def click(self) -> bool:
        """Select the hovered building, if any."""
        if self.hovered is None:
            return False
        self.selected = self.hovered
        if self.on_select is not None:
            self.on_select(self.selected)
        return True

    def wheel(self, x: float, y: float, delta_y: float) -> bool:
        """
        Zoom about the pointer.

        Negative delta (wheel up) zooms in by exp(intensity), positive zooms
        out. The world point under the pointer stays under the pointer.
        """
        if delta_y == 0:
            return False
        direction = 1 if delta_y < 0 else -1
        zoom = math.exp(direction * self.config.zoom_intensity)

        world_x = (x - self.view.offset_x) / self.view.scale
        world_y = (y - self.view.offset_y) / self.view.scale

        scale = self.view.scale * zoom
        self.view.scale = max(self.config.min_zoom, min(self.config.max_zoom, scale))
        self.view.offset_x = x - world_x * self.view.scale
        self.view.offset_y = y - world_y * self.view.scale
        return True

    def button_down(self, button: int, x: float, y: float) -> bool:
        """Start panning on the middle button."""
        if button != PAN_BUTTON:
            return False
        self.panning = True
        self._pan_start = (x, y)
        self._pan_origin = (self.view.offset_x, self.view.offset_y)
        return False

    def button_up(self, button: int) -> bool:
        """Stop panning when the middle button is released."""
        if button != PAN_BUTTON or not self.panning:
            return False
        self.panning = False
        return False

    def pointer_leave(self) -> bool:
        """Stop panning when the pointer leaves the canvas."""
        self.panning = False
        return False
