"""
Workflow REST routes.

All routes are mounted under /api by main.py. Editing routes answer with
the render-boundary snapshot so the editor can redraw from one response.
"""
from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Response
from pydantic import BaseModel

from workflowstudio.core.Errors import (
    CycleDetected,
    GraphLocked,
    NodeExecutionFailed,
    RunCancelled,
    RunInProgress,
    UnknownEdge,
    UnknownNode,
    WorkflowError,
)
from workflowstudio.core.Interaction import PointerEvent
from workflowstudio.core.Types import PointerButton, PointerEventType
from workflowstudio.server.serializers.graph_serializer import (
    serialize_definition,
    serialize_run,
    serialize_workflow,
)
from workflowstudio.server.state import workflow_state
from workflowstudio.server.trace.trace_emitter import global_tracer

logger = getLogger(__name__)

router = APIRouter()


def _http_error(exc: Exception) -> HTTPException:
    """Translate a core error into the HTTP status the editor expects."""
    if isinstance(exc, (UnknownNode, UnknownEdge)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (GraphLocked, RunInProgress, CycleDetected)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _snapshot() -> Dict[str, Any]:
    return serialize_workflow(
        workflow_state.graph,
        workflow_state.viewport,
        workflow_state.controller,
        workflow_state.executor.state,
    )


# ── GET /node-types ───────────────────────────────────────────────────────────

@router.get("/node-types")
async def get_node_types() -> List[Dict[str, Any]]:
    return [serialize_definition(d) for d in workflow_state.catalog.definitions()]


# ── GET /graph ────────────────────────────────────────────────────────────────

@router.get("/graph")
async def get_graph() -> Dict[str, Any]:
    return _snapshot()


# ── POST /nodes ───────────────────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    type: str
    position: Optional[Dict[str, float]] = None


@router.post("/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    try:
        node_id = workflow_state.create_node(body.type, body.position)
    except (WorkflowError, ValueError, KeyError) as exc:
        raise _http_error(exc)
    node = workflow_state.graph.require_node(node_id)
    return {"id": node.id, "type": node.type, "position": node.position.as_dict(), "data": node.data}


# ── DELETE /nodes/:nodeId ─────────────────────────────────────────────────────

@router.delete("/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str) -> Response:
    try:
        workflow_state.delete_node(node_id)
    except WorkflowError as exc:
        raise _http_error(exc)
    return Response(status_code=204)


# ── PATCH /nodes/:nodeId/data ─────────────────────────────────────────────────

class NodeDataBody(BaseModel):
    data: Dict[str, Any]


@router.patch("/nodes/{node_id}/data")
async def update_node_data(node_id: str, body: NodeDataBody) -> Dict[str, Any]:
    try:
        workflow_state.graph.update_node_data(node_id, body.data)
    except WorkflowError as exc:
        raise _http_error(exc)
    return {"id": node_id, "data": workflow_state.graph.require_node(node_id).data}


# ── PUT /nodes/:nodeId/position ───────────────────────────────────────────────

class PositionBody(BaseModel):
    x: float
    y: float


@router.put("/nodes/{node_id}/position", status_code=204)
async def set_node_position(node_id: str, body: PositionBody) -> Response:
    try:
        workflow_state.graph.set_node_position(node_id, body.x, body.y)
    except WorkflowError as exc:
        raise _http_error(exc)
    return Response(status_code=204)


# ── GET /nodes/:nodeId/result ─────────────────────────────────────────────────

@router.get("/nodes/{node_id}/result")
async def get_node_result(node_id: str) -> Dict[str, Any]:
    try:
        return workflow_state.node_result(node_id)
    except WorkflowError as exc:
        raise _http_error(exc)


# ── POST /edges ───────────────────────────────────────────────────────────────

class EdgeBody(BaseModel):
    sourceNodeId: str
    sourcePort: str
    targetNodeId: str
    targetPort: str


@router.post("/edges", status_code=201)
async def add_edge(body: EdgeBody) -> Dict[str, Any]:
    try:
        edge_id = workflow_state.graph.connect(
            body.sourceNodeId,
            body.sourcePort,
            body.targetNodeId,
            body.targetPort,
        )
    except WorkflowError as exc:
        raise _http_error(exc)
    return {"id": edge_id, "graph": _snapshot()}


# ── DELETE /edges/:edgeId ─────────────────────────────────────────────────────

@router.delete("/edges/{edge_id}", status_code=204)
async def delete_edge(edge_id: str) -> Response:
    try:
        workflow_state.graph.disconnect(edge_id)
    except WorkflowError as exc:
        raise _http_error(exc)
    return Response(status_code=204)


# ── Viewport ──────────────────────────────────────────────────────────────────

class PanBody(BaseModel):
    dx: float
    dy: float


class ZoomBody(BaseModel):
    x: float
    y: float
    delta: float


@router.get("/viewport")
async def get_viewport() -> Dict[str, float]:
    return workflow_state.viewport.as_dict()


@router.post("/viewport/pan")
async def pan_viewport(body: PanBody) -> Dict[str, float]:
    workflow_state.viewport.pan(body.dx, body.dy)
    return workflow_state.viewport.as_dict()


@router.post("/viewport/zoom")
async def zoom_viewport(body: ZoomBody) -> Dict[str, float]:
    workflow_state.viewport.zoom_at((body.x, body.y), body.delta)
    return workflow_state.viewport.as_dict()


@router.post("/viewport/reset")
async def reset_viewport() -> Dict[str, float]:
    workflow_state.viewport.reset()
    return workflow_state.viewport.as_dict()


# ── Selection ─────────────────────────────────────────────────────────────────

class SelectionBody(BaseModel):
    nodeId: Optional[str] = None


@router.post("/selection")
async def set_selection(body: SelectionBody) -> Dict[str, Any]:
    try:
        workflow_state.controller.select(body.nodeId)
    except WorkflowError as exc:
        raise _http_error(exc)
    return {"selectedNodeId": workflow_state.controller.selected_node_id}


@router.delete("/selection")
async def delete_selection() -> Dict[str, Any]:
    try:
        deleted = workflow_state.controller.delete_selected()
    except WorkflowError as exc:
        raise _http_error(exc)
    return {"deletedNodeId": deleted}


# ── POST /pointer ─────────────────────────────────────────────────────────────

class PointerBody(BaseModel):
    type: PointerEventType
    x: float
    y: float
    button: PointerButton = PointerButton.PRIMARY
    alt: bool = False
    space: bool = False
    deltaY: float = 0.0


@router.post("/pointer")
async def pointer_event(body: PointerBody) -> Dict[str, Any]:
    event = PointerEvent(
        type=body.type,
        x=body.x,
        y=body.y,
        button=body.button,
        alt=body.alt,
        space=body.space,
        delta_y=body.deltaY,
    )
    try:
        edge_id = workflow_state.controller.handle(event)
    except WorkflowError as exc:
        raise _http_error(exc)
    return {"edgeId": edge_id, "graph": _snapshot()}


# ── POST /drop ────────────────────────────────────────────────────────────────

class DropBody(BaseModel):
    type: str
    x: float
    y: float


@router.post("/drop", status_code=201)
async def drop_node(body: DropBody) -> Dict[str, Any]:
    try:
        node_id = workflow_state.controller.drop(body.type, (body.x, body.y))
    except WorkflowError as exc:
        raise _http_error(exc)
    node = workflow_state.graph.require_node(node_id)
    return {"id": node.id, "type": node.type, "position": node.position.as_dict(), "data": node.data}


# ── Run ───────────────────────────────────────────────────────────────────────

@router.get("/run")
async def get_run() -> Dict[str, Any]:
    return serialize_run(workflow_state.executor.state)


@router.post("/run/cancel")
async def cancel_run() -> Dict[str, Any]:
    cancelled = workflow_state.executor.cancel()
    if cancelled:
        # a run parked on the step gate must wake up to see the cancellation
        global_tracer.resume()
    return {"cancelled": cancelled}


@router.post("/step/resume")
async def step_resume() -> Dict[str, Any]:
    logger.debug("Step resume requested")
    global_tracer.resume()
    return {"ok": True}


@router.post("/run")
async def run_workflow(
    step: bool = Query(False, description="Enable step-through mode"),
) -> Dict[str, Any]:
    executor = workflow_state.executor
    if executor.is_running:
        raise _http_error(RunInProgress())

    if step:
        global_tracer.enable_step()

    global_tracer.fire({"type": "RUN_START", "nodeCount": len(workflow_state.graph), "step": step})

    # ── Wire executor hooks ───────────────────────────────────────────────

    async def _on_before_node(node_id: str, node_type: str) -> None:
        if step:
            global_tracer.fire({"type": "STEP_PAUSE", "nodeId": node_id})
            await global_tracer.wait_for_step()
        if executor.cancel_requested:
            # the scheduler stops before this node
            return
        global_tracer.fire({"type": "NODE_RUNNING", "nodeId": node_id, "nodeType": node_type})

    def _on_after_node(
        node_id: str,
        node_type: str,
        duration_ms: float,
        error: Optional[str] = None,
    ) -> None:
        if error:
            global_tracer.fire({"type": "NODE_ERROR", "nodeId": node_id, "error": error})
        else:
            global_tracer.fire({"type": "NODE_DONE", "nodeId": node_id, "durationMs": duration_ms})

    def _on_edge_data(from_node_id: str, from_port: str, to_node_id: str, to_port: str) -> None:
        global_tracer.fire(
            {
                "type": "EDGE_ACTIVE",
                "fromNodeId": from_node_id,
                "fromPort": from_port,
                "toNodeId": to_node_id,
                "toPort": to_port,
            }
        )

    executor.on_before_node = _on_before_node
    executor.on_after_node = _on_after_node
    executor.on_edge_data = _on_edge_data

    # ─────────────────────────────────────────────────────────────────────

    try:
        await executor.run()
        global_tracer.fire({"type": "RUN_DONE"})
    except (CycleDetected, RunInProgress) as exc:
        global_tracer.fire({"type": "RUN_ERROR", "error": str(exc)})
        raise _http_error(exc)
    except NodeExecutionFailed as exc:
        global_tracer.fire({"type": "RUN_ERROR", "error": str(exc)})
    except RunCancelled as exc:
        global_tracer.fire({"type": "RUN_CANCELLED", "nextNodeId": exc.next_node_id})
    finally:
        if step:
            global_tracer.disable_step()

    state = executor.state
    return {"status": state.outcome, "run": serialize_run(state)}
