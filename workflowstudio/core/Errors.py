from typing import List, Optional


class WorkflowError(Exception):
    """Base class for every error raised by the workflow core."""


class UnknownNodeType(WorkflowError, KeyError):
    def __init__(self, node_type: str):
        self.node_type = node_type
        super().__init__(f"Unknown node type '{node_type}'")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class UnknownNode(WorkflowError, KeyError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' does not exist in the graph")

    def __str__(self) -> str:
        return self.args[0]


class UnknownEdge(WorkflowError, KeyError):
    def __init__(self, edge_id: str):
        self.edge_id = edge_id
        super().__init__(f"Edge '{edge_id}' does not exist in the graph")

    def __str__(self) -> str:
        return self.args[0]


class InvalidConnection(WorkflowError, ValueError):
    pass


class GraphLocked(WorkflowError):
    """The graph cannot be edited while a run is in progress."""


class CycleDetected(WorkflowError):
    def __init__(self, unsorted_node_ids: Optional[List[str]] = None):
        self.unsorted_node_ids = list(unsorted_node_ids or [])
        super().__init__(
            f"Workflow contains a cycle through {len(self.unsorted_node_ids)} node(s)"
        )


class NodeExecutionFailed(WorkflowError):
    def __init__(self, node_id: str, message: str):
        self.node_id = node_id
        self.message = message
        super().__init__(f"Node '{node_id}' failed: {message}")


class RunCancelled(WorkflowError):
    def __init__(self, next_node_id: Optional[str] = None):
        self.next_node_id = next_node_id
        super().__init__("Run was cancelled")


class RunInProgress(WorkflowError):
    def __init__(self):
        super().__init__("A run is already in progress")
