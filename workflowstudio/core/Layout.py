"""
Node geometry in canvas space.

Every node is drawn as a fixed-width card: a header, then one row per
port (inputs first, then outputs). Input handles sit on the left edge of
their row, output handles on the right edge. The same numbers drive hit
testing and the endpoints of drawn edges, so a presentation layer that
follows them lines up with the controller exactly.
"""
import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .GraphPrimitives import NodeDefinition, Point, WorkflowNode
from .Interface import IHitTester
from .Types import HitKind

NODE_WIDTH = 256.0
HEADER_HEIGHT = 44.0
BODY_PADDING = 12.0
ROW_HEIGHT = 28.0
MIN_BODY_HEIGHT = 64.0
HANDLE_RADIUS = 8.0


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def contains(self, p: Point) -> bool:
        return self.x <= p.x <= self.x + self.width and self.y <= p.y <= self.y + self.height


@dataclass(frozen=True)
class Hit:
    kind: HitKind
    node_id: Optional[str] = None
    handle_id: Optional[str] = None
    anchor: Optional[Point] = None  # handle centre, canvas space


CANVAS_HIT = Hit(HitKind.CANVAS)


def _row_center_y(node: WorkflowNode, row: int) -> float:
    return node.position.y + HEADER_HEIGHT + BODY_PADDING + ROW_HEIGHT * row + ROW_HEIGHT / 2


def node_rect(node: WorkflowNode, definition: NodeDefinition) -> Rect:
    rows = len(definition.inputs) + len(definition.outputs)
    body = max(MIN_BODY_HEIGHT, 2 * BODY_PADDING + ROW_HEIGHT * rows)
    return Rect(node.position.x, node.position.y, NODE_WIDTH, HEADER_HEIGHT + body)


def input_handle_point(node: WorkflowNode, definition: NodeDefinition, port_id: str) -> Point:
    for row, port in enumerate(definition.inputs):
        if port.id == port_id:
            return Point(node.position.x, _row_center_y(node, row))
    raise KeyError(f"'{port_id}' is not an input of {definition.type}")


def output_handle_point(node: WorkflowNode, definition: NodeDefinition, port_id: str) -> Point:
    offset = len(definition.inputs)
    for row, port in enumerate(definition.outputs):
        if port.id == port_id:
            return Point(node.position.x + NODE_WIDTH, _row_center_y(node, offset + row))
    raise KeyError(f"'{port_id}' is not an output of {definition.type}")


def _fmt(value: float) -> str:
    return f"{round(value, 2):g}"


def edge_path(start: Any, end: Any) -> str:
    """Cubic bezier leaving `start` and entering `end` horizontally."""
    s, t = Point.of(start), Point.of(end)
    k = abs(t.x - s.x) * 0.5
    return (
        f"M{_fmt(s.x)},{_fmt(s.y)} "
        f"C{_fmt(s.x + k)},{_fmt(s.y)} {_fmt(t.x - k)},{_fmt(t.y)} {_fmt(t.x)},{_fmt(t.y)}"
    )


class NodeLayout(IHitTester):
    """Hit testing against the card layout above. The most recently added node is on top."""

    def hit_test(self, graph, viewport, screen_point: Any) -> Hit:
        p = viewport.to_canvas(screen_point)

        for node in reversed(graph.nodes()):
            definition = graph.catalog.get(node.type)

            handle = self._hit_handle(node, definition, p)
            if handle is not None:
                return handle

            if node_rect(node, definition).contains(p):
                return Hit(HitKind.NODE, node.id)

        return CANVAS_HIT

    def _hit_handle(self, node: WorkflowNode, definition: NodeDefinition, p: Point) -> Optional[Hit]:
        for port in definition.inputs:
            point = input_handle_point(node, definition, port.id)
            if _near(point, p):
                return Hit(HitKind.INPUT_HANDLE, node.id, port.id, point)
        for port in definition.outputs:
            point = output_handle_point(node, definition, port.id)
            if _near(point, p):
                return Hit(HitKind.OUTPUT_HANDLE, node.id, port.id, point)
        return None

    def edge_endpoints(self, graph, edge) -> Tuple[Point, Point]:
        source = graph.require_node(edge.source)
        target = graph.require_node(edge.target)
        return (
            output_handle_point(source, graph.catalog.get(source.type), edge.source_handle),
            input_handle_point(target, graph.catalog.get(target.type), edge.target_handle),
        )


def _near(a: Point, b: Point) -> bool:
    return math.hypot(a.x - b.x, a.y - b.y) <= HANDLE_RADIUS
