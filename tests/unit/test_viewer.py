"""Unit tests for the Tk viewer's pointer handlers."""

from types import SimpleNamespace

import pytest

pytest.importorskip("tkinter")

from codecity.interaction import PAN_BUTTON, InteractionController
from codecity.models import ViewTransform
from codecity.viewer import CityViewer


class FakeCanvas:
    def __init__(self):
        self.calls = []

    def configure(self, **kwargs):
        self.calls.append(kwargs)


@pytest.fixture
def viewer():
    """Handler host without a Tk window."""
    controller = InteractionController(ViewTransform())
    return SimpleNamespace(
        session=SimpleNamespace(controller=controller), canvas=FakeCanvas()
    )


class TestPointerHandlers:
    """Cursor and pan state follow the middle button and the pointer."""

    def test_pan_cursor(self, viewer):
        CityViewer._on_button_down(viewer, SimpleNamespace(num=PAN_BUTTON, x=0, y=0))
        assert viewer.canvas.calls[-1] == {"cursor": "fleur"}
        assert viewer.session.controller.panning is True

        CityViewer._on_button_up(viewer, SimpleNamespace(num=PAN_BUTTON))
        assert viewer.canvas.calls[-1] == {"cursor": ""}
        assert viewer.session.controller.panning is False

    def test_leave_resets_cursor(self, viewer):
        CityViewer._on_button_down(viewer, SimpleNamespace(num=PAN_BUTTON, x=0, y=0))
        CityViewer._on_leave(viewer, None)
        assert viewer.canvas.calls[-1] == {"cursor": ""}
        assert viewer.session.controller.panning is False
