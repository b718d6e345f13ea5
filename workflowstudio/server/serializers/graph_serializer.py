"""
Graph serializer for the render boundary.

Converts the editor session (NodeGraph, Viewport, InteractionController,
RunState) into JSON-safe dicts that a presentation layer can draw without
knowing any of the geometry rules.

Wire shapes (plain dicts for easy JSON serialisation):
    SerializedPort keys: id, name, dataKind, connected
    SerializedNode keys: id, type, name, description, hasSettings, options,
                         inputs, outputs, position, screenPosition, size,
                         data, status, result, selected
    SerializedEdge keys: id, sourceNodeId, sourcePort, targetNodeId,
                         targetPort, sourcePoint, targetPoint, path
    SerializedWorkflow keys: nodes, edges, viewport, interaction, run
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from workflowstudio.core.Executor import RunState
from workflowstudio.core.GraphPrimitives import Edge, NodeDefinition, Port, WorkflowNode
from workflowstudio.core.Interaction import InteractionController
from workflowstudio.core.Layout import NodeLayout, edge_path, node_rect
from workflowstudio.core.NodeGraph import NodeGraph
from workflowstudio.core.Viewport import Viewport

_layout = NodeLayout()


# ── Helpers ───────────────────────────────────────────────────────────────────

def _serialize_port(port: Port, connected: bool = False) -> Dict[str, Any]:
    return {
        "id": port.id,
        "name": port.name,
        "dataKind": port.data_kind.value,
        "connected": connected,
    }


def serialize_definition(definition: NodeDefinition) -> Dict[str, Any]:
    """Palette entry for a node type."""
    return {
        "type": definition.type,
        "name": definition.name,
        "description": definition.description,
        "hasSettings": definition.has_settings,
        "inputs": [_serialize_port(p) for p in definition.inputs],
        "outputs": [_serialize_port(p) for p in definition.outputs],
        "defaults": dict(definition.defaults),
        "options": {name: list(values) for name, values in definition.options.items()},
    }


def serialize_node(
    node: WorkflowNode,
    definition: NodeDefinition,
    viewport: Viewport,
    run: RunState,
    connected_inputs: Set[str],
    connected_outputs: Set[str],
    selected: bool = False,
) -> Dict[str, Any]:
    rect = node_rect(node, definition)
    return {
        "id": node.id,
        "type": node.type,
        "name": definition.name,
        "description": definition.description,
        "hasSettings": definition.has_settings,
        "options": {name: list(values) for name, values in definition.options.items()},
        "inputs": [
            _serialize_port(p, f"{node.id}:{p.id}" in connected_inputs) for p in definition.inputs
        ],
        "outputs": [
            _serialize_port(p, f"{node.id}:{p.id}" in connected_outputs) for p in definition.outputs
        ],
        "position": node.position.as_dict(),
        "screenPosition": viewport.to_screen(node.position).as_dict(),
        "size": {"width": rect.width, "height": rect.height},
        "data": node.data,
        "status": run.status_of(node.id).value,
        "result": run.outputs.get(node.id),
        "selected": selected,
    }


def serialize_edge(graph: NodeGraph, viewport: Viewport, edge: Edge) -> Dict[str, Any]:
    start, end = _layout.edge_endpoints(graph, edge)
    return {
        "id": edge.id,
        "sourceNodeId": edge.source,
        "sourcePort": edge.source_handle,
        "targetNodeId": edge.target,
        "targetPort": edge.target_handle,
        "sourcePoint": viewport.to_screen(start).as_dict(),
        "targetPoint": viewport.to_screen(end).as_dict(),
        # drawn inside the transformed layer, so the path stays in canvas space
        "path": edge_path(start, end),
    }


def serialize_interaction(controller: InteractionController) -> Dict[str, Any]:
    pending: Optional[Dict[str, Any]] = None
    if controller.pending is not None:
        pending = {
            "sourceNodeId": controller.pending.source_node_id,
            "sourcePort": controller.pending.source_handle,
            "path": controller.pending_connection_path(),
        }
    return {
        "mode": controller.mode.name,
        "selectedNodeId": controller.selected_node_id,
        "draggingNodeId": controller.dragging_node_id,
        "pendingConnection": pending,
    }


# ── Public API ────────────────────────────────────────────────────────────────

def serialize_workflow(
    graph: NodeGraph,
    viewport: Viewport,
    controller: InteractionController,
    run: RunState,
) -> Dict[str, Any]:
    edges = graph.edges()
    connected_inputs = {f"{e.target}:{e.target_handle}" for e in edges}
    connected_outputs = {f"{e.source}:{e.source_handle}" for e in edges}

    nodes: List[Dict[str, Any]] = [
        serialize_node(
            node,
            graph.catalog.get(node.type),
            viewport,
            run,
            connected_inputs,
            connected_outputs,
            selected=node.id == controller.selected_node_id,
        )
        for node in graph.nodes()
    ]

    return {
        "nodes": nodes,
        "edges": [serialize_edge(graph, viewport, e) for e in edges],
        "viewport": viewport.as_dict(),
        "interaction": serialize_interaction(controller),
        "run": serialize_run(run),
    }


def serialize_run(run: RunState) -> Dict[str, Any]:
    return run.as_dict()
