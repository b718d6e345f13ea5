import asyncio
import copy
import time
from collections import deque
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .Errors import CycleDetected, NodeExecutionFailed, RunCancelled, RunInProgress
from .Interface import INodeExecutor
from .NodeGraph import NodeGraph
from .Types import ExecutionStatus

logger = getLogger(__name__)


# ── Executor registry ───────────────────────────────────────────────────────

class FunctionExecutor(INodeExecutor):
    """Adapts a plain `async def fn(inputs, data)` to INodeExecutor."""

    def __init__(self, fn: Callable[[Dict[str, Any], Dict[str, Any]], Awaitable[Dict[str, Any]]]):
        self.fn = fn

    async def execute(self, inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.fn(inputs, data)


class NodeExecutorRegistry:
    """
    Maps a node type to the executor that performs its work.

        executors = NodeExecutorRegistry()

        @executors.register("textInput")
        async def text_input(inputs, data):
            return {"text": data.get("text", "")}

    Classes deriving from INodeExecutor can be registered the same way;
    they are instantiated once, without arguments.
    """

    def __init__(self):
        self._executors: Dict[str, INodeExecutor] = {}

    def register(self, node_type: str) -> Callable:
        def decorator(target):
            if isinstance(target, type) and issubclass(target, INodeExecutor):
                self.add(node_type, target())
            else:
                self.add(node_type, FunctionExecutor(target))
            return target
        return decorator

    def add(self, node_type: str, executor: INodeExecutor) -> None:
        if node_type in self._executors:
            raise ValueError(f"An executor for '{node_type}' is already registered")
        self._executors[node_type] = executor

    def get(self, node_type: str) -> Optional[INodeExecutor]:
        return self._executors.get(node_type)

    def resolve(self, node_types: Iterable[str]) -> Dict[str, Optional[INodeExecutor]]:
        return {node_type: self._executors.get(node_type) for node_type in set(node_types)}

    def types(self) -> List[str]:
        return list(self._executors.keys())

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._executors


# ── Run state ───────────────────────────────────────────────────────────────

@dataclass
class RunState:
    """Ephemeral per-run state. Owned by the executor, read by the render layer."""
    status: Dict[str, ExecutionStatus] = field(default_factory=dict)
    outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    inputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    running: bool = False
    outcome: Optional[str] = None   # completed | failed | cycle | cancelled
    error: Optional[str] = None
    failed_node_id: Optional[str] = None

    @classmethod
    def idle(cls, node_ids: Iterable[str]) -> 'RunState':
        return cls(status={node_id: ExecutionStatus.IDLE for node_id in node_ids})

    def status_of(self, node_id: str) -> ExecutionStatus:
        return self.status.get(node_id, ExecutionStatus.IDLE)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": {node_id: status.value for node_id, status in self.status.items()},
            "outputs": self.outputs,
            "inputs": self.inputs,
            "order": self.order,
            "running": self.running,
            "outcome": self.outcome,
            "error": self.error,
            "failedNodeId": self.failed_node_id,
        }


# ── Scheduler ───────────────────────────────────────────────────────────────

def topological_order(graph: NodeGraph) -> Tuple[List[str], List[str]]:
    """
    Kahn's algorithm. Ties between ready nodes are broken by node insertion
    order. Returns (sorted ids, ids left over because they sit on or behind
    a cycle); the second list is empty for a DAG.
    """
    in_degree: Dict[str, int] = {node_id: 0 for node_id in graph.node_ids()}
    successors: Dict[str, List[str]] = {node_id: [] for node_id in in_degree}

    for edge in graph.edges():
        successors[edge.source].append(edge.target)
        in_degree[edge.target] += 1

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        node_id = queue.popleft()
        order.append(node_id)
        for successor in successors[node_id]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    placed = set(order)
    return order, [node_id for node_id in in_degree if node_id not in placed]


class WorkflowExecutor:
    """
    Runs the whole graph once, one node at a time, halting on the first
    failure. Independent branches are still serialized: each executor call
    is awaited before the next node starts.

    Hooks (all optional) let a caller trace progress:
        on_before_node(node_id, node_type)      awaited before `running`
        on_after_node(node_id, node_type, duration_ms, error)
        on_edge_data(source, source_handle, target, target_handle)
    """

    def __init__(self, graph: NodeGraph, executors: NodeExecutorRegistry):
        self.graph = graph
        self.executors = executors
        self.state = RunState.idle(graph.node_ids())

        self.on_before_node: Optional[Callable[[str, str], Awaitable[None]]] = None
        self.on_after_node: Optional[Callable[[str, str, float, Optional[str]], None]] = None
        self.on_edge_data: Optional[Callable[[str, str, str, str], None]] = None

        self._cancel_requested = False

    @property
    def is_running(self) -> bool:
        return self.state.running

    @property
    def cancel_requested(self) -> bool:
        """True once cancel() was accepted for the active run."""
        return self._cancel_requested

    def cancel(self) -> bool:
        """Ask the active run to stop before its next node. Returns False when nothing is running."""
        if not self.state.running:
            return False
        self._cancel_requested = True
        return True

    async def run(self) -> RunState:
        if self.state.running:
            raise RunInProgress()

        snapshot = self.graph.snapshot()
        self.state = RunState.idle(snapshot.node_ids())
        self._cancel_requested = False

        order, unsorted = topological_order(snapshot)
        if unsorted:
            error = CycleDetected(unsorted)
            logger.warning(f"Run rejected: {error}")
            self.state.outcome = "cycle"
            self.state.error = str(error)
            raise error

        self.state.order = order
        resolved = self.executors.resolve(node.type for node in snapshot.nodes())
        logger.info(f"Running workflow of {len(order)} node(s)")

        self.state.running = True
        try:
            with self.graph.locked():
                for node_id in order:
                    await self._run_node(snapshot, node_id, resolved)
        except RunCancelled as exc:
            logger.warning(f"Run cancelled before node {exc.next_node_id}")
            self.state.outcome = "cancelled"
            self.state.error = str(exc)
            raise
        finally:
            self.state.running = False

        self.state.outcome = "completed"
        logger.info("Workflow run completed")
        return self.state

    async def _run_node(self, snapshot: NodeGraph, node_id: str, resolved: Dict[str, Optional[INodeExecutor]]) -> None:
        node = snapshot.require_node(node_id)

        self._check_cancelled(node_id)
        if self.on_before_node is not None:
            await self.on_before_node(node_id, node.type)
        # the hook may have paused for a step; check again
        self._check_cancelled(node_id)

        self.state.status[node_id] = ExecutionStatus.RUNNING
        inputs = self._gather_inputs(snapshot, node_id)
        self.state.inputs[node_id] = inputs

        t0 = time.time()
        try:
            executor = resolved.get(node.type)
            if executor is None:
                raise LookupError(f"No executor registered for type '{node.type}'")
            outputs = await executor.execute(dict(inputs), copy.deepcopy(node.data))
            if outputs is None:
                outputs = {}
            elif not isinstance(outputs, Mapping):
                raise TypeError(
                    f"Executor for '{node.type}' returned {type(outputs).__name__}, expected a mapping"
                )
        except asyncio.CancelledError:
            # the awaiting task was torn down; the node never finished
            self.state.status[node_id] = ExecutionStatus.IDLE
            self.state.outcome = "cancelled"
            logger.warning(f"Run task cancelled while node {node_id} was running")
            raise
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.exception(f"Node {node_id} ({node.type}) failed")
            self.state.outputs[node_id] = {"error": message}
            self.state.status[node_id] = ExecutionStatus.FAILED
            self.state.outcome = "failed"
            self.state.error = message
            self.state.failed_node_id = node_id
            self._after_node(node_id, node.type, t0, message)
            raise NodeExecutionFailed(node_id, message) from exc

        self.state.outputs[node_id] = dict(outputs)
        self.state.status[node_id] = ExecutionStatus.COMPLETED
        self._after_node(node_id, node.type, t0, None)

    def _gather_inputs(self, snapshot: NodeGraph, node_id: str) -> Dict[str, Any]:
        # every source precedes node_id in the order, so its outputs exist
        inputs: Dict[str, Any] = {}
        for edge in snapshot.incoming(node_id):
            inputs[edge.target_handle] = self.state.outputs.get(edge.source, {}).get(edge.source_handle)
            if self.on_edge_data is not None:
                self.on_edge_data(edge.source, edge.source_handle, edge.target, edge.target_handle)
        return inputs

    def _check_cancelled(self, node_id: str) -> None:
        if self._cancel_requested:
            raise RunCancelled(node_id)

    def _after_node(self, node_id: str, node_type: str, t0: float, error: Optional[str]) -> None:
        if self.on_after_node is not None:
            self.on_after_node(node_id, node_type, (time.time() - t0) * 1000, error)
