import copy
from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional

from .Errors import UnknownNodeType
from .GraphPrimitives import NodeDefinition, Port

logger = getLogger(__name__)


class NodeCatalog:
    """
    Registry of node definitions, keyed by their `type` string.
    Pure data: the catalog knows what a node looks like, not what it does.
    """

    def __init__(self, definitions: Optional[Iterable[NodeDefinition]] = None):
        self._definitions: Dict[str, NodeDefinition] = {}
        for definition in definitions or ():
            self.register(definition)

    def register(self, definition: NodeDefinition) -> NodeDefinition:
        if definition.type in self._definitions:
            raise ValueError(f"Node type '{definition.type}' is already registered")
        self._definitions[definition.type] = definition
        logger.debug(f"Registered node type '{definition.type}'")
        return definition

    def has(self, node_type: str) -> bool:
        return node_type in self._definitions

    def get(self, node_type: str) -> NodeDefinition:
        definition = self._definitions.get(node_type)
        if definition is None:
            raise UnknownNodeType(node_type)
        return definition

    def definitions(self) -> List[NodeDefinition]:
        return list(self._definitions.values())

    def types(self) -> List[str]:
        return list(self._definitions.keys())

    def default_data(self, node_type: str) -> Dict[str, Any]:
        # deep copy so instances never share mutable defaults
        return copy.deepcopy(self.get(node_type).defaults)

    def input_port(self, node_type: str, port_id: str) -> Optional[Port]:
        return self.get(node_type).input(port_id)

    def output_port(self, node_type: str, port_id: str) -> Optional[Port]:
        return self.get(node_type).output(port_id)

    def __contains__(self, node_type: str) -> bool:
        return self.has(node_type)

    def __len__(self) -> int:
        return len(self._definitions)
