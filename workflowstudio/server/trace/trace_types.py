"""
TraceEvent type definitions for the Socket.IO `trace` channel.
All events are plain dicts so they can be emitted over Socket.IO without Pydantic overhead.
"""
from typing import Literal, TypedDict, Union


class RunStartEvent(TypedDict):
    type: Literal["RUN_START"]
    nodeCount: int
    step: bool
    ts: int


class NodeRunningEvent(TypedDict):
    type: Literal["NODE_RUNNING"]
    nodeId: str
    nodeType: str
    ts: int


class NodeDoneEvent(TypedDict):
    type: Literal["NODE_DONE"]
    nodeId: str
    durationMs: float
    ts: int


class NodeErrorEvent(TypedDict):
    type: Literal["NODE_ERROR"]
    nodeId: str
    error: str
    ts: int


class EdgeActiveEvent(TypedDict):
    type: Literal["EDGE_ACTIVE"]
    fromNodeId: str
    fromPort: str
    toNodeId: str
    toPort: str
    ts: int


class StepPauseEvent(TypedDict):
    type: Literal["STEP_PAUSE"]
    nodeId: str
    ts: int


class RunDoneEvent(TypedDict):
    type: Literal["RUN_DONE"]
    ts: int


class RunErrorEvent(TypedDict):
    type: Literal["RUN_ERROR"]
    error: str
    ts: int


class RunCancelledEvent(TypedDict):
    type: Literal["RUN_CANCELLED"]
    nextNodeId: str
    ts: int


TraceEvent = Union[
    RunStartEvent,
    NodeRunningEvent,
    NodeDoneEvent,
    NodeErrorEvent,
    EdgeActiveEvent,
    StepPauseEvent,
    RunDoneEvent,
    RunErrorEvent,
    RunCancelledEvent,
]
