import pytest

from workflowstudio.core.Errors import GraphLocked, UnknownNode
from workflowstudio.core.GraphPrimitives import Point
from workflowstudio.core.Interaction import InteractionController, PointerEvent
from workflowstudio.core.Layout import (
    NODE_WIDTH,
    NodeLayout,
    edge_path,
    input_handle_point,
    node_rect,
    output_handle_point,
)
from workflowstudio.core.NodeGraph import NodeGraph
from workflowstudio.core.Types import HitKind, InteractionMode, PointerButton, PointerEventType
from workflowstudio.core.Viewport import Viewport
from workflowstudio.server.node_definitions import build_studio_catalog

PRESS = PointerEventType.PRESS
MOVE = PointerEventType.MOVE
RELEASE = PointerEventType.RELEASE
WHEEL = PointerEventType.WHEEL

# With the default layout a textInput at (0, 0) has its `text` output at
# (256, 70) and a resultViewer at (400, 0) has its `data` input at (400, 70).
TEXT_OUT = (256, 70)
VIEWER_IN = (400, 70)


class TestLayout:

    def setup_method(self):
        self.graph = NodeGraph(build_studio_catalog())
        self.text = self.graph.add_node("textInput", (0, 0), node_id="text")
        self.viewer = self.graph.add_node("resultViewer", (400, 0), node_id="viewer")

    def test_handle_points(self):
        text = self.graph.require_node(self.text)
        viewer = self.graph.require_node(self.viewer)

        assert output_handle_point(text, self.graph.definition_for(self.text), "text") == Point(*TEXT_OUT)
        assert input_handle_point(viewer, self.graph.definition_for(self.viewer), "data") == Point(*VIEWER_IN)

        with pytest.raises(KeyError):
            input_handle_point(text, self.graph.definition_for(self.text), "text")

    def test_node_rect(self):
        rect = node_rect(self.graph.require_node(self.text), self.graph.definition_for(self.text))
        assert rect.width == NODE_WIDTH
        assert rect.contains(Point(100, 50))
        assert not rect.contains(Point(300, 50))

    def test_hit_test_prefers_handles_then_topmost_node(self):
        layout = NodeLayout()
        viewport = Viewport()

        hit = layout.hit_test(self.graph, viewport, TEXT_OUT)
        assert (hit.kind, hit.node_id, hit.handle_id) == (HitKind.OUTPUT_HANDLE, "text", "text")

        hit = layout.hit_test(self.graph, viewport, (403, 66))
        assert (hit.kind, hit.node_id, hit.handle_id) == (HitKind.INPUT_HANDLE, "viewer", "data")

        assert layout.hit_test(self.graph, viewport, (100, 50)).kind == HitKind.NODE
        assert layout.hit_test(self.graph, viewport, (330, 300)).kind == HitKind.CANVAS

        # a node added later sits on top of an earlier one
        self.graph.add_node("resultViewer", (50, 20), node_id="over")
        assert layout.hit_test(self.graph, viewport, (100, 50)).node_id == "over"

    def test_hit_test_works_in_screen_space(self):
        viewport = Viewport(x=100, y=50, zoom=2)
        hit = NodeLayout().hit_test(self.graph, viewport, viewport.to_screen(TEXT_OUT))
        assert hit.kind == HitKind.OUTPUT_HANDLE

    def test_edge_path(self):
        assert edge_path((0, 0), (100, 50)) == "M0,0 C50,0 50,50 100,50"
        # backwards edges still bow outwards
        assert edge_path((100, 0), (0, 10)) == "M100,0 C150,0 -50,10 0,10"
        assert edge_path((0.333, 1), (10.333, 1)) == "M0.33,1 C5.33,1 5.33,1 10.33,1"


class TestInteractionController:

    def setup_method(self):
        self.graph = NodeGraph(build_studio_catalog())
        self.viewport = Viewport()
        self.controller = InteractionController(self.graph, self.viewport)
        self.text = self.graph.add_node("textInput", (0, 0), node_id="text")
        self.viewer = self.graph.add_node("resultViewer", (400, 0), node_id="viewer")

    def send(self, type, x, y, **kwargs):
        return self.controller.handle(PointerEvent(type, x, y, **kwargs))

    # ── Connecting ──────────────────────────────────────────────────────────

    def test_drag_from_output_to_input_connects(self):
        self.send(PRESS, *TEXT_OUT)
        assert self.controller.mode == InteractionMode.CONNECTING_EDGE
        assert self.controller.pending.start == Point(*TEXT_OUT)

        self.send(MOVE, 330, 90)
        assert self.controller.pending.cursor == Point(330, 90)

        edge_id = self.send(RELEASE, 402, 72)

        assert edge_id == "edge-text-text-viewer-data"
        assert self.graph.edge_into("viewer", "data").source == "text"
        assert self.controller.mode == InteractionMode.IDLE
        assert self.controller.pending is None

    def test_release_elsewhere_discards_connection(self):
        self.send(PRESS, *TEXT_OUT)
        edge_id = self.send(RELEASE, 330, 300)

        assert edge_id is None
        assert self.graph.edges() == []
        assert self.controller.mode == InteractionMode.IDLE

    def test_press_on_input_handle_does_nothing(self):
        self.send(PRESS, *VIEWER_IN)
        assert self.controller.mode == InteractionMode.IDLE
        assert self.controller.pending is None

    def test_pending_connection_path_is_in_canvas_space(self):
        self.viewport.pan(100, 0)
        start = self.viewport.to_screen(TEXT_OUT)

        self.send(PRESS, *start)
        self.send(MOVE, start.x + 100, start.y)

        assert self.controller.pending_connection_path() == "M256,70 C306,70 306,70 356,70"

    def test_connection_start_is_handle_centre(self):
        # pressing slightly off-centre still anchors the wire on the handle
        self.send(PRESS, 254, 73)
        assert self.controller.pending.start == Point(*TEXT_OUT)

    # ── Dragging ────────────────────────────────────────────────────────────

    def test_drag_node_is_zoom_compensated(self):
        self.viewport.zoom_at((0, 0), 1.0)   # zoom 2, origin fixed
        body = self.viewport.to_screen((50, 20))

        self.send(PRESS, *body)
        assert self.controller.mode == InteractionMode.DRAGGING_NODE
        assert self.controller.selected_node_id == "text"

        self.send(MOVE, body.x + 20, body.y + 20)
        self.send(MOVE, body.x + 40, body.y + 10)
        self.send(RELEASE, body.x + 40, body.y + 10)

        assert self.graph.require_node("text").position == Point(20, 5)
        assert self.controller.mode == InteractionMode.IDLE

    def test_drag_ends_if_node_disappears(self):
        self.send(PRESS, 100, 50)
        self.graph.remove_node("text")
        self.send(MOVE, 120, 60)
        assert self.controller.mode == InteractionMode.IDLE

    # ── Panning ─────────────────────────────────────────────────────────────

    def test_middle_button_pans(self):
        self.send(PRESS, 100, 50, button=PointerButton.MIDDLE)
        assert self.controller.mode == InteractionMode.PANNING

        self.send(MOVE, 110, 55)
        self.send(MOVE, 130, 45)

        assert (self.viewport.x, self.viewport.y) == (30.0, -5.0)
        assert self.graph.require_node("text").position == Point(0, 0)

        self.send(RELEASE, 130, 45)
        assert self.controller.mode == InteractionMode.IDLE

    def test_space_or_alt_on_canvas_pans(self):
        self.send(PRESS, 330, 300, space=True)
        assert self.controller.mode == InteractionMode.PANNING
        self.send(RELEASE, 330, 300)

        self.send(PRESS, 330, 300, alt=True)
        assert self.controller.mode == InteractionMode.PANNING
        self.send(RELEASE, 330, 300)

        self.controller.set_space_pressed(True)
        self.send(PRESS, 330, 300)
        assert self.controller.mode == InteractionMode.PANNING

    def test_second_press_during_gesture_is_ignored(self):
        self.send(PRESS, 330, 300, button=PointerButton.MIDDLE)
        self.send(PRESS, *TEXT_OUT)
        assert self.controller.mode == InteractionMode.PANNING
        assert self.controller.pending is None

    # ── Selection / palette ─────────────────────────────────────────────────

    def test_click_on_canvas_clears_selection(self):
        self.send(PRESS, 100, 50)
        self.send(RELEASE, 100, 50)
        assert self.controller.selected_node_id == "text"

        self.send(PRESS, 330, 300)
        assert self.controller.selected_node_id is None
        assert self.controller.mode == InteractionMode.IDLE

    def test_select_validates_node(self):
        self.controller.select("viewer")
        assert self.controller.selected_node_id == "viewer"
        with pytest.raises(UnknownNode):
            self.controller.select("ghost")
        self.controller.select(None)
        assert self.controller.selected_node_id is None

    def test_delete_selected_removes_node_and_edges(self):
        self.graph.connect("text", "text", "viewer", "data")
        self.controller.select("text")

        assert self.controller.delete_selected() == "text"
        assert "text" not in self.graph
        assert self.graph.edges() == []
        assert self.controller.delete_selected() is None

    def test_drop_places_node_in_canvas_space(self):
        self.viewport.pan(100, 50)
        self.viewport.zoom_at((100, 50), 1.0)

        node_id = self.controller.drop("imageStudio", (300, 250))

        node = self.graph.require_node(node_id)
        assert node.position == Point(100, 100)
        assert node.data == {"aspectRatio": "16:9"}

    def test_wheel_zooms_at_pointer(self):
        self.send(WHEEL, 100, 100, delta_y=-100)
        assert self.viewport.zoom == pytest.approx(1.1)
        anchor = self.viewport.to_canvas((100, 100))
        assert anchor.x == pytest.approx(100)
        assert anchor.y == pytest.approx(100)

    # ── While a run holds the graph ─────────────────────────────────────────

    def test_locked_graph_refuses_gestures_that_edit_structure(self):
        with self.graph.locked():
            self.send(PRESS, *TEXT_OUT)
            with pytest.raises(GraphLocked):
                self.send(RELEASE, *VIEWER_IN)
            assert self.controller.mode == InteractionMode.IDLE

            with pytest.raises(GraphLocked):
                self.controller.drop("textInput", (0, 0))

            # moving nodes and the view is still allowed
            self.send(PRESS, 100, 50)
            self.send(MOVE, 110, 50)
            self.send(RELEASE, 110, 50)
            self.send(WHEEL, 0, 0, delta_y=100)

        assert self.graph.require_node("text").position == Point(10, 0)
        assert self.graph.edges() == []
