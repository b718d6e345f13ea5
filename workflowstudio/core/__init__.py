"""
Workflow Studio core
====================
Graph model, viewport, pointer interaction and the run scheduler. No I/O:
node behaviour is supplied from outside through a NodeExecutorRegistry.

    Pointer events  →  [Interaction]  →  NodeGraph + Viewport
    NodeGraph       →  [Executor]     →  RunState (status, outputs)

Public API
----------
    from workflowstudio.core import NodeCatalog, NodeGraph, WorkflowExecutor

    graph = NodeGraph(catalog)
    a = graph.add_node("textInput", (80, 120))
    b = graph.add_node("resultViewer", (420, 120))
    graph.connect(a, "text", b, "data")
    state = await WorkflowExecutor(graph, executors).run()
"""
from .Errors import (
    CycleDetected,
    GraphLocked,
    InvalidConnection,
    NodeExecutionFailed,
    RunCancelled,
    RunInProgress,
    UnknownEdge,
    UnknownNode,
    UnknownNodeType,
    WorkflowError,
)
from .Executor import NodeExecutorRegistry, RunState, WorkflowExecutor, topological_order
from .GraphPrimitives import Edge, NodeDefinition, Point, Port, WorkflowNode
from .Interaction import InteractionController, PointerEvent
from .NodeCatalog import NodeCatalog
from .NodeGraph import NodeGraph
from .Types import ExecutionStatus, InteractionMode, PointerButton, PointerEventType, PortDataKind
from .Viewport import Viewport
