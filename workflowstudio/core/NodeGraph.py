import copy
import uuid
from contextlib import contextmanager
from logging import getLogger
from typing import Any, Dict, Iterator, List, Optional, Set

from .Errors import GraphLocked, InvalidConnection, UnknownEdge, UnknownNode
from .GraphPrimitives import Edge, NodeDefinition, Point, WorkflowNode
from .NodeCatalog import NodeCatalog

logger = getLogger(__name__)


class NodeGraph:
    """
    The mutable set of node instances and the edges between them.

    Owns the structural invariants:
      - node ids are unique for the lifetime of the graph (never reused),
      - at most one edge terminates at a given (target, target_handle),
      - removing a node removes every edge touching it.

    Nodes and edges keep insertion order; the scheduler relies on it for
    tie-breaking between simultaneously ready nodes.
    """

    def __init__(self, catalog: NodeCatalog):
        self.catalog = catalog
        self._nodes: Dict[str, WorkflowNode] = {}
        self._edges: Dict[str, Edge] = {}
        self._issued_ids: Set[str] = set()
        self._locked = False

    # ── Locking ─────────────────────────────────────────────────────────────

    @property
    def is_locked(self) -> bool:
        return self._locked

    @contextmanager
    def locked(self) -> Iterator['NodeGraph']:
        """Refuse structural edits for the duration of the block (used while a run is active)."""
        previous = self._locked
        self._locked = True
        try:
            yield self
        finally:
            self._locked = previous

    def _check_unlocked(self, action: str) -> None:
        if self._locked:
            raise GraphLocked(f"Cannot {action} while a run is in progress")

    # ── Nodes ───────────────────────────────────────────────────────────────

    def _new_node_id(self) -> str:
        node_id = f"node-{uuid.uuid4().hex[:8]}"
        while node_id in self._issued_ids:
            node_id = f"node-{uuid.uuid4().hex[:8]}"
        return node_id

    def add_node(self, definition_type: str, position: Any = (0.0, 0.0), node_id: Optional[str] = None) -> str:
        self._check_unlocked("add a node")

        # raises UnknownNodeType before anything is touched
        data = self.catalog.default_data(definition_type)

        if node_id is None:
            node_id = self._new_node_id()
        elif node_id in self._issued_ids:
            raise ValueError(f"Node with id '{node_id}' already exists in the graph")

        self._issued_ids.add(node_id)
        self._nodes[node_id] = WorkflowNode(node_id, definition_type, Point.of(position), data)
        logger.debug(f"Added node {node_id} ({definition_type}) at {tuple(Point.of(position))}")
        return node_id

    def remove_node(self, node_id: str) -> None:
        self._check_unlocked("remove a node")
        if node_id not in self._nodes:
            raise UnknownNode(node_id)

        del self._nodes[node_id]
        self._edges = {
            edge_id: edge
            for edge_id, edge in self._edges.items()
            if edge.source != node_id and edge.target != node_id
        }
        logger.debug(f"Removed node {node_id} and its edges")

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self._nodes.get(node_id)

    def require_node(self, node_id: str) -> WorkflowNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise UnknownNode(node_id)
        return node

    def nodes(self) -> List[WorkflowNode]:
        return list(self._nodes.values())

    def node_ids(self) -> List[str]:
        return list(self._nodes.keys())

    def definition_for(self, node_id: str) -> NodeDefinition:
        return self.catalog.get(self.require_node(node_id).type)

    def update_node_data(self, node_id: str, partial_data: Dict[str, Any]) -> None:
        self._check_unlocked("edit node settings")
        node = self.require_node(node_id)
        node.data = {**node.data, **partial_data}

    # Position is layout-only state, so it stays editable during a run.
    def set_node_position(self, node_id: str, x: float, y: float) -> None:
        self.require_node(node_id).position = Point(float(x), float(y))

    def move_node(self, node_id: str, dx: float, dy: float) -> None:
        node = self.require_node(node_id)
        node.position = node.position + (dx, dy)

    # ── Edges ───────────────────────────────────────────────────────────────

    def connect(self, source_node_id: str, source_handle: str, target_node_id: str, target_handle: str) -> str:
        """
        Wire an output to an input. Any edge already terminating at
        (target, target_handle) is replaced (last write wins). Port kinds
        are not compared.
        """
        self._check_unlocked("connect nodes")

        source_def = self.definition_for(source_node_id)
        target_def = self.definition_for(target_node_id)

        if source_def.output(source_handle) is None:
            raise InvalidConnection(
                f"'{source_handle}' is not an output of node '{source_node_id}' ({source_def.type})"
            )
        if target_def.input(target_handle) is None:
            raise InvalidConnection(
                f"'{target_handle}' is not an input of node '{target_node_id}' ({target_def.type})"
            )

        replaced = self.edge_into(target_node_id, target_handle)
        if replaced is not None:
            del self._edges[replaced.id]
            logger.debug(f"Replacing {replaced!r}")

        edge = Edge(source_node_id, source_handle, target_node_id, target_handle)
        self._edges[edge.id] = edge
        logger.debug(f"Connected {edge!r}")
        return edge.id

    def disconnect(self, edge_id: str) -> None:
        self._check_unlocked("remove an edge")
        if edge_id not in self._edges:
            raise UnknownEdge(edge_id)
        del self._edges[edge_id]

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges.get(edge_id)

    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    def incoming(self, node_id: str) -> List[Edge]:
        return [edge for edge in self._edges.values() if edge.target == node_id]

    def outgoing(self, node_id: str) -> List[Edge]:
        return [edge for edge in self._edges.values() if edge.source == node_id]

    def edge_into(self, target_node_id: str, target_handle: str) -> Optional[Edge]:
        for edge in self._edges.values():
            if edge.target == target_node_id and edge.target_handle == target_handle:
                return edge
        return None

    # ── Whole graph ─────────────────────────────────────────────────────────

    def snapshot(self) -> 'NodeGraph':
        """A deep copy that later edits to this graph cannot reach."""
        frozen = NodeGraph(self.catalog)
        frozen._nodes = copy.deepcopy(self._nodes)
        frozen._edges = dict(self._edges)
        frozen._issued_ids = set(self._issued_ids)
        frozen._locked = True
        return frozen

    def is_empty(self) -> bool:
        return not self._nodes

    def clear(self) -> None:
        self._check_unlocked("clear the graph")
        self._nodes.clear()
        self._edges.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes
