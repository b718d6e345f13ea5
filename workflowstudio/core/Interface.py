from __future__ import annotations
from typing import Any, Dict, TYPE_CHECKING

from abc import ABC, abstractmethod

if TYPE_CHECKING:
    from .Layout import Hit
    from .NodeGraph import NodeGraph
    from .Viewport import Viewport


class INodeExecutor(ABC):
    """
    Performs the type-specific work of one node. Receives the resolved
    input bundle (keyed by input port id) and the node's configuration,
    returns an output bundle keyed by output port id. Raising signals
    failure; the scheduler records it and halts the run.
    """

    @abstractmethod
    async def execute(self, inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        pass


class IHitTester(ABC):
    @abstractmethod
    def hit_test(self, graph: NodeGraph, viewport: Viewport, screen_point: Any) -> Hit:
        pass
