from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional, Tuple

from .Types import PortDataKind


class Point(NamedTuple):
    x: float
    y: float

    def __add__(self, other: 'Point') -> 'Point':
        return Point(self.x + other[0], self.y + other[1])

    def __sub__(self, other: 'Point') -> 'Point':
        return Point(self.x - other[0], self.y - other[1])

    def scaled(self, factor: float) -> 'Point':
        return Point(self.x * factor, self.y * factor)

    def as_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def of(cls, value: Any) -> 'Point':
        """Accept a Point, an (x, y) pair or an {"x": .., "y": ..} mapping."""
        if isinstance(value, Point):
            return value
        if isinstance(value, dict):
            return cls(float(value["x"]), float(value["y"]))
        x, y = value
        return cls(float(x), float(y))


@dataclass(frozen=True)
class Port:
    id: str
    name: str
    data_kind: PortDataKind = PortDataKind.ANY


@dataclass(frozen=True)
class NodeDefinition:
    """
    Static description of a node type: its ports and whether it exposes
    settings. `defaults` seeds the data of new instances and `options`
    lists the allowed values of each setting for an inspector.
    """
    type: str
    name: str
    description: str = ""
    inputs: Tuple[Port, ...] = ()
    outputs: Tuple[Port, ...] = ()
    has_settings: bool = False
    defaults: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)
    options: Dict[str, Tuple[str, ...]] = field(default_factory=dict, hash=False, compare=False)

    def input(self, port_id: str) -> Optional[Port]:
        for port in self.inputs:
            if port.id == port_id:
                return port
        return None

    def output(self, port_id: str) -> Optional[Port]:
        for port in self.outputs:
            if port.id == port_id:
                return port
        return None


@dataclass
class WorkflowNode:
    id: str
    type: str
    position: Point = Point(0.0, 0.0)
    data: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self):
        return f"WorkflowNode({self.id}:{self.type})"


# Using NamedTuple for immutability; an edge is replaced, never edited.
class Edge(NamedTuple):
    source: str
    source_handle: str
    target: str
    target_handle: str

    @property
    def id(self) -> str:
        return make_edge_id(self.source, self.source_handle, self.target, self.target_handle)

    def __repr__(self):
        return f"Edge({self.source}.{self.source_handle} -> {self.target}.{self.target_handle})"


def make_edge_id(source: str, source_handle: str, target: str, target_handle: str) -> str:
    return f"edge-{source}-{source_handle}-{target}-{target_handle}"
