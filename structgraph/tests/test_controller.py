import pytest

from conftest import FakeClock
from structgraph.graph.builder import GraphBuilder
from structgraph.loader import parse_records
from structgraph.types import Position
from structgraph.view.controller import InteractionController, VisibilityState
from structgraph.view.interaction import (
    ClickState,
    DoubleClickDetector,
    MouseButton,
    Viewport,
    scroll_factor,
)


class TestDoubleClickDetector:
    """Test coalescing of primary clicks."""

    def setup_method(self):
        """Set up test environment."""
        self.clock = FakeClock()
        self.detector = DoubleClickDetector(interval=0.3, clock=self.clock)

    def test_double_click_within_window(self):
        assert not self.detector.click("101")
        self.clock.advance(0.2)
        assert self.detector.click("101")
        assert self.detector.state is ClickState.IDLE

    def test_slow_clicks_are_single(self):
        """Test that a second click after the window starts a new pending click."""
        assert not self.detector.click("101")
        self.clock.advance(0.5)
        assert not self.detector.click("101")
        assert self.detector.state is ClickState.PENDING
        assert self.detector.pending_time == self.clock.now

    def test_click_on_other_node(self):
        """Test that clicks on different nodes never pair up."""
        self.detector.click("101")
        self.clock.advance(0.1)
        assert not self.detector.click("111")
        assert self.detector.pending_key == "111"

    def test_expire(self):
        """Test that a pending click is dropped once its window elapses."""
        self.detector.click("101")

        assert not self.detector.expire(self.clock.now + 0.1)
        assert self.detector.expire(self.clock.now + 0.5)
        assert self.detector.state is ClickState.IDLE
        assert not self.detector.expire()

    def test_explicit_timestamps(self):
        assert not self.detector.click("101", now=10.0)
        assert self.detector.click("101", now=10.25)


class TestViewport:
    """Test the pan/zoom transform."""

    def test_pan_accumulates(self):
        viewport = Viewport()
        viewport.pan(10, -5)
        viewport.pan(5, 5)

        assert (viewport.x, viewport.y) == (15, 0)

    def test_zoom_clamps(self):
        """Test zooming multiplies the scale within the configured limits."""
        viewport = Viewport()
        viewport.zoom(2.0)
        assert viewport.scale == 2.0

        viewport.zoom(1000.0, max_scale=20.0)
        assert viewport.scale == 20.0

        viewport.zoom(1e-6, min_scale=0.05)
        assert viewport.scale == 0.05

    def test_zoom_rejects_non_positive(self):
        with pytest.raises(ValueError):
            Viewport().zoom(0)

    def test_screen_round_trip(self):
        viewport = Viewport(x=100, y=50, scale=2.0)

        assert viewport.to_screen(Position(10, 20)) == (120, 90)
        assert viewport.to_layout((120, 90)) == Position(10, 20)

    def test_scroll_factor(self):
        """Test wheel ticks: down zooms out, up zooms in."""
        assert scroll_factor(1) == pytest.approx(1 / 1.15)
        assert scroll_factor(-3) == pytest.approx(1.15)
        assert scroll_factor(0) == 1.0


class TestInteractionController:
    """Test visibility toggling, search highlighting and pointer handling."""

    @pytest.fixture(autouse=True)
    def setup_controller(self, sample_records):
        """Build the sample project and load it into a controller."""
        builder = GraphBuilder()
        result = builder.build(parse_records(sample_records))
        self.result = result
        self.clock = FakeClock()
        self.controller = InteractionController(result.nodes, result.edges,
                                                builder.secondary_nodes, clock=self.clock)

    def test_initial_render_set(self):
        """Test that property nodes start detached."""
        keys = self.controller.rendered_node_keys()

        assert len(keys) == 13
        assert not any(key in keys for key in ("101.speed", "101.playerName", "111.damage", "301.lifetime"))
        assert len(self.controller.rendered_edge_keys()) == 12
        assert self.controller.visibility("101") is VisibilityState.COLLAPSED
        assert self.controller.visibility("102") is None

    def test_toggle_expands_and_collapses(self):
        """Test that toggling twice restores the render set."""
        nodes_before = set(self.controller.rendered_node_keys())
        edges_before = set(self.controller.rendered_edge_keys())

        assert self.controller.toggle("101") is VisibilityState.EXPANDED
        assert self.controller.is_rendered("101.speed")
        assert self.controller.is_rendered("101.playerName")
        assert ("101", "101.speed", "has_property") in self.controller.rendered_edge_keys()
        assert self.controller.render()["expanded"] == ["101"]

        assert self.controller.toggle("101") is VisibilityState.COLLAPSED
        assert set(self.controller.rendered_node_keys()) == nodes_before
        assert set(self.controller.rendered_edge_keys()) == edges_before

    def test_toggle_without_constants(self):
        assert self.controller.toggle("102") is None
        assert self.controller.toggle("Main") is None

    def test_toggle_unknown_node(self):
        with pytest.raises(KeyError):
            self.controller.toggle("missing")

    def test_filter_highlights_matches(self):
        """Test that a search outlines matches and dims the rest."""
        matched = self.controller.filter("player")

        assert matched == ["100", "101"]
        assert self.controller.node_style("100").outlined
        assert self.controller.node_style("101").opacity == 1.0
        assert self.controller.node_style("Main").opacity == 0.15
        assert not self.controller.node_style("Main").outlined
        assert self.controller.rendered_node_keys()[-2:] == ["100", "101"]

        assert self.controller.edge_style(("Main", "100", "contains")).opacity == 1.0
        assert self.controller.edge_style(("110", "111", "has_component")).opacity == 0.15

    def test_filter_without_matches_dims_everything(self):
        assert self.controller.filter("nothing-matches") == []
        styles = [self.controller.node_style(key) for key in self.controller.rendered_node_keys()]
        assert all(style.opacity == 0.15 for style in styles)

    def test_clear_filter_restores_styles(self):
        """Test that clearing the search resets every style."""
        self.controller.filter("weapon")
        self.controller.filter("")

        assert self.controller.query == ""
        for key in self.controller.rendered_node_keys():
            style = self.controller.node_style(key)
            assert style.opacity == 1.0
            assert not style.outlined
        for edge_key in self.controller.rendered_edge_keys():
            assert self.controller.edge_style(edge_key).opacity == 1.0

    def test_clear_filter_restores_draw_order(self):
        """Test that clearing the search puts raised matches back in build order."""
        before = self.controller.rendered_node_keys()

        self.controller.filter("player")
        assert self.controller.rendered_node_keys() != before
        self.controller.clear_search_filter()

        assert self.controller.rendered_node_keys() == before

    def test_toggle_keeps_search_applied(self):
        """Test that nodes brought in by a toggle follow the active search."""
        self.controller.filter("speed")
        self.controller.toggle("101")

        assert self.controller.node_style("101.speed").outlined
        assert self.controller.node_style("101.playerName").opacity == 0.15

    def test_double_click_toggles(self):
        """Test that a double click on a component toggles its property nodes."""
        assert self.controller.click("101") is None
        self.clock.advance(0.1)
        assert self.controller.click("101") is VisibilityState.EXPANDED

    def test_slow_clicks_do_nothing(self):
        self.controller.click("101")
        self.clock.advance(0.4)
        assert self.controller.click("101") is None
        assert self.controller.visibility("101") is VisibilityState.COLLAPSED

    def test_pan_gesture_cancels_pending_click(self):
        """Test that starting a pan between clicks drops the pending click."""
        self.controller.pointer_down(MouseButton.PRIMARY, (0, 0), node_key="101")
        self.controller.pointer_down(MouseButton.SECONDARY, (0, 0))
        self.controller.pointer_up(MouseButton.SECONDARY)
        self.clock.advance(0.1)

        assert self.controller.pointer_down(MouseButton.PRIMARY, (0, 0), node_key="101") is None
        assert self.controller.visibility("101") is VisibilityState.COLLAPSED

    def test_pointer_pan(self):
        """Test that dragging with a pan button moves the viewport."""
        self.controller.pointer_down(MouseButton.MIDDLE, (10, 10))
        assert self.controller.is_panning
        self.controller.pointer_move((30, 5))
        self.controller.pointer_move((35, 5))
        self.controller.pointer_up(MouseButton.MIDDLE)

        assert not self.controller.is_panning
        assert (self.controller.viewport.x, self.controller.viewport.y) == (25, -5)

    def test_modifier_primary_pans(self):
        self.controller.pointer_down(MouseButton.PRIMARY, (0, 0), modifier=True, node_key="101")

        assert self.controller.is_panning

    def test_viewport_does_not_move_nodes(self):
        """Test that pan and zoom only change screen coordinates."""
        before = [n["position"] for n in self.controller.render()["nodes"]]

        self.controller.pan(40, 40)
        self.controller.scroll(-1)
        snapshot = self.controller.render()

        assert [n["position"] for n in snapshot["nodes"]] == before
        assert snapshot["viewport"]["scale"] == pytest.approx(1.15)
        first = snapshot["nodes"][0]
        assert first["screen"]["x"] == pytest.approx(first["position"]["x"] * 1.15 + 40)

    def test_render_formats_labels(self):
        edges = {(e["from_key"], e["to_key"], e["kind"]): e for e in self.controller.render()["edges"]}

        assert edges[("101", "111", "call")]["labels"] == ["Fire×2", "Reload"]

    def test_clear(self):
        self.controller.pan(5, 5)
        self.controller.clear()

        assert self.controller.rendered_node_keys() == []
        assert self.controller.viewport.to_dict() == {"x": 0.0, "y": 0.0, "scale": 1.0}
