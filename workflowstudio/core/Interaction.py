from dataclasses import dataclass
from logging import getLogger
from typing import Optional

from .GraphPrimitives import Point
from .Interface import IHitTester
from .Layout import NodeLayout, edge_path
from .NodeGraph import NodeGraph
from .Types import HitKind, InteractionMode, PointerButton, PointerEventType
from .Viewport import Viewport

logger = getLogger(__name__)


@dataclass
class PointerEvent:
    type: PointerEventType
    x: float
    y: float
    button: PointerButton = PointerButton.PRIMARY
    alt: bool = False
    space: bool = False
    delta_y: float = 0.0

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass
class PendingConnection:
    source_node_id: str
    source_handle: str
    start: Point    # screen space, fixed at press time
    cursor: Point   # screen space, follows the pointer


class InteractionController:
    """
    Pointer-driven state machine over a NodeGraph and a Viewport.

    States are mutually exclusive: IDLE, PANNING, DRAGGING_NODE and
    CONNECTING_EDGE. Every event is handled to completion before the next
    one; nothing here awaits.
    """

    def __init__(self, graph: NodeGraph, viewport: Viewport, hit_tester: Optional[IHitTester] = None):
        self.graph = graph
        self.viewport = viewport
        self.hit_tester = hit_tester if hit_tester is not None else NodeLayout()

        self.mode = InteractionMode.IDLE
        self.dragging_node_id: Optional[str] = None
        self.pending: Optional[PendingConnection] = None
        self.selected_node_id: Optional[str] = None
        self.pointer = Point(0.0, 0.0)
        self.space_pressed = False

    # ── Dispatch ────────────────────────────────────────────────────────────

    def handle(self, event: PointerEvent) -> Optional[str]:
        """Feed one pointer event. Returns the new edge id when a release completes a connection."""
        if event.type == PointerEventType.PRESS:
            self.press(event)
        elif event.type == PointerEventType.MOVE:
            self.move(event)
        elif event.type == PointerEventType.RELEASE:
            return self.release(event)
        elif event.type == PointerEventType.WHEEL:
            self.wheel(event)
        return None

    def set_space_pressed(self, pressed: bool) -> None:
        self.space_pressed = pressed

    # ── Press ───────────────────────────────────────────────────────────────

    def press(self, event: PointerEvent) -> None:
        self.pointer = event.point
        if self.mode != InteractionMode.IDLE:
            # a second button while a gesture is active is ignored
            return

        hit = self.hit_tester.hit_test(self.graph, self.viewport, event.point)
        primary = event.button == PointerButton.PRIMARY

        if primary and hit.kind == HitKind.OUTPUT_HANDLE:
            start = self.viewport.to_screen(hit.anchor) if hit.anchor is not None else event.point
            self.pending = PendingConnection(hit.node_id, hit.handle_id, start, event.point)
            self._enter(InteractionMode.CONNECTING_EDGE)
            return

        if primary and hit.kind == HitKind.INPUT_HANDLE:
            # only outputs originate connections
            return

        if primary and hit.kind == HitKind.NODE:
            self.selected_node_id = hit.node_id
            self.dragging_node_id = hit.node_id
            self._enter(InteractionMode.DRAGGING_NODE)
            return

        space = event.space or self.space_pressed
        if event.button == PointerButton.MIDDLE or event.alt or (primary and space):
            self._enter(InteractionMode.PANNING)
        elif primary and hit.kind == HitKind.CANVAS:
            self.selected_node_id = None

    # ── Move ────────────────────────────────────────────────────────────────

    def move(self, event: PointerEvent) -> None:
        delta = event.point - self.pointer
        self.pointer = event.point

        if self.mode == InteractionMode.PANNING:
            self.viewport.pan(delta.x, delta.y)

        elif self.mode == InteractionMode.DRAGGING_NODE:
            if self.dragging_node_id not in self.graph:
                self._reset()
                return
            # zoom-compensated so the node tracks the cursor 1:1
            zoom = self.viewport.zoom
            self.graph.move_node(self.dragging_node_id, delta.x / zoom, delta.y / zoom)

        elif self.mode == InteractionMode.CONNECTING_EDGE:
            self.pending.cursor = event.point

    # ── Release ─────────────────────────────────────────────────────────────

    def release(self, event: PointerEvent) -> Optional[str]:
        self.pointer = event.point
        pending = self.pending if self.mode == InteractionMode.CONNECTING_EDGE else None
        self._reset()

        if pending is None:
            return None

        hit = self.hit_tester.hit_test(self.graph, self.viewport, event.point)
        if hit.kind != HitKind.INPUT_HANDLE:
            logger.debug("Pending connection dropped outside an input handle")
            return None

        return self.graph.connect(pending.source_node_id, pending.source_handle, hit.node_id, hit.handle_id)

    # ── Wheel ───────────────────────────────────────────────────────────────

    def wheel(self, event: PointerEvent) -> None:
        self.pointer = event.point
        self.viewport.wheel(event.point, event.delta_y)

    # ── Palette / keyboard actions ──────────────────────────────────────────

    def drop(self, definition_type: str, screen_point) -> str:
        """Place a new node from the palette where it was dropped."""
        return self.graph.add_node(definition_type, self.viewport.to_canvas(screen_point))

    def select(self, node_id: Optional[str]) -> None:
        if node_id is not None:
            self.graph.require_node(node_id)
        self.selected_node_id = node_id

    def delete_selected(self) -> Optional[str]:
        node_id = self.selected_node_id
        if node_id is None:
            return None
        self.graph.remove_node(node_id)
        self.selected_node_id = None
        return node_id

    def pending_connection_path(self) -> Optional[str]:
        """Dashed preview from the pressed output handle to the cursor, in canvas space."""
        if self.pending is None:
            return None
        return edge_path(self.viewport.to_canvas(self.pending.start), self.viewport.to_canvas(self.pending.cursor))

    # ── Internals ───────────────────────────────────────────────────────────

    def _enter(self, mode: InteractionMode) -> None:
        logger.debug(f"Interaction {self.mode.name} -> {mode.name}")
        self.mode = mode

    def _reset(self) -> None:
        if self.mode != InteractionMode.IDLE:
            self._enter(InteractionMode.IDLE)
        self.dragging_node_id = None
        self.pending = None
