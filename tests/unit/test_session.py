"""Unit tests for CitySession."""

import pytest

from codecity import CitySession, VisualOptions
from codecity.interaction import InteractionState
from codecity.models import CityData


class TestLoad:
    """Tests for loading datasets into a session."""

    def test_initial_state(self):
        session = CitySession()
        assert session.data is None
        assert session.buildings == []
        assert session.mapper is None
        assert (session.view.scale, session.view.offset_x, session.view.offset_y) == (
            1.0,
            100,
            100,
        )

    def test_load_lays_out_and_fits(self, simple_data):
        session = CitySession(width=1200, height=800)
        session.load(simple_data)
        assert len(session.buildings) == 2
        assert session.layout.strategy == "quadrant"
        assert session.view.scale == pytest.approx(1.5)
        assert session.mapper is None

    def test_load_builds_mapper(self, git_data, now):
        session = CitySession()
        session.load(git_data, now)
        assert session.mapper.bounds.max_commits == 45

    def test_load_empty_keeps_view(self):
        session = CitySession()
        session.load(CityData())
        assert session.buildings == []
        assert session.view.offset_x == 100

    def test_reload_clears_interaction(self, simple_data):
        session = CitySession()
        session.load(simple_data)
        session.select(session.buildings[0])
        session.controller.hovered = session.buildings[1]
        session.load(simple_data)
        assert session.controller.selected is None
        assert session.controller.state == InteractionState.IDLE

    def test_controller_shares_view(self, simple_data):
        session = CitySession()
        session.load(simple_data)
        assert session.controller.view is session.view


class TestOptions:
    """Tests for strategy and toggle changes."""

    def test_set_strategy(self, simple_data):
        session = CitySession()
        session.load(simple_data)
        session.set_strategy("grid")
        assert session.layout.strategy == "grid"
        assert session.layout.packages[0].x == 0

    def test_set_strategy_discards_selection(self, simple_data):
        session = CitySession()
        session.load(simple_data)
        session.select(session.buildings[0])
        session.set_strategy("grid")
        assert session.controller.selected is None

    def test_set_strategy_before_load(self):
        session = CitySession()
        session.set_strategy("grid")
        assert session.options.layout_strategy == "grid"
        assert session.data is None

    def test_invalid_strategy(self):
        with pytest.raises(ValueError):
            CitySession().set_strategy("spiral")

    def test_invalid_strategy_in_options(self):
        with pytest.raises(ValueError, match="layout_strategy"):
            VisualOptions(layout_strategy="spiral")

    def test_set_option(self):
        session = CitySession()
        session.set_option("color_blind", True)
        assert session.options.color_blind is True

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="Unknown option"):
            CitySession().set_option("layout_strategy", True)


class TestView:
    """Tests for resizing and fitting."""

    def test_resize_refits(self, git_data, now):
        session = CitySession(width=1600, height=1000)
        session.load(git_data, now)
        large_scale = session.view.scale
        session.resize(400, 300)
        assert (session.width, session.height) == (400, 300)
        assert session.view.scale < large_scale

    def test_fit_without_data(self):
        session = CitySession()
        assert session.fit() is False
        assert session.view.scale == 1.0

    def test_fit_canvas_too_small(self, simple_data):
        session = CitySession()
        session.load(simple_data)
        before = (session.view.scale, session.view.offset_x, session.view.offset_y)
        session.resize(80, 80)
        assert (session.view.scale, session.view.offset_x, session.view.offset_y) == before


class TestDrawing:
    """Tests for draw list access and building lookup."""

    def test_hover_after_draw(self, simple_data):
        """Hit-testing works against the frame last drawn."""
        session = CitySession()
        session.load(simple_data)
        session.draw_list()

        target = session.buildings[0]
        bounds = target.screen_bounds
        x = (bounds.min_x + bounds.max_x) / 2
        y = bounds.max_y - 1
        assert session.controller.pointer_move(x, y) is True
        assert session.controller.hovered is not None

    def test_find_building(self, git_data):
        session = CitySession()
        session.load(git_data)
        assert session.find_building("Engine").class_name == "Engine"
        assert session.find_building("Nope") is None

    def test_select_highlights(self, simple_data):
        session = CitySession()
        session.load(simple_data)
        session.select(session.find_building("Y"))
        commands = {c.name: c for c in session.draw_list()}
        assert commands["Y"].faces[1].fill == (231, 76, 60)
