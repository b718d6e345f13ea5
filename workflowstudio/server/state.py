"""
WorkflowState: the single editor session served by the API.

Holds the graph, the viewport, the pointer controller and the scheduler,
and seeds a small demo workflow on startup so the editor has something to
display on first load.

Importing this module also imports generation_nodes.py, which registers
every studio executor on `studio_executors`.
"""
from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Optional

# Side-effect: registers the generation executors on studio_executors
import workflowstudio.server.generation_nodes  # noqa: F401

from workflowstudio.core.Executor import NodeExecutorRegistry, WorkflowExecutor
from workflowstudio.core.Interaction import InteractionController
from workflowstudio.core.NodeGraph import NodeGraph
from workflowstudio.core.Viewport import Viewport
from workflowstudio.server import config
from workflowstudio.server.node_definitions import build_studio_catalog, studio_executors

logger = getLogger(__name__)


class WorkflowState:
    """Graph, viewport, interaction and run state for one editor."""

    def __init__(self, executors: Optional[NodeExecutorRegistry] = None, seed: bool = True) -> None:
        self.executors = executors if executors is not None else studio_executors
        self.reset(seed)

    def reset(self, seed: bool = True) -> None:
        """Throw away the current session and start an empty (or demo) one."""
        self.catalog = build_studio_catalog()
        self.graph = NodeGraph(self.catalog)
        self.viewport = Viewport()
        self.controller = InteractionController(self.graph, self.viewport)
        self.executor = WorkflowExecutor(self.graph, self.executors)
        if seed:
            self._seed_demo()

    # ── Demo graph ──────────────────────────────────────────────────────────

    def _seed_demo(self) -> None:
        graph = self.graph

        prompt = graph.add_node("textInput", (80, 160))
        image = graph.add_node("imageStudio", (420, 80))
        post = graph.add_node("copyStudioSocialPost", (420, 320))
        image_view = graph.add_node("resultViewer", (760, 80))
        post_view = graph.add_node("resultViewer", (760, 320))

        graph.update_node_data(prompt, {"text": "A lighthouse on a sea cliff at dusk, warm light"})

        graph.connect(prompt, "text", image, "prompt")
        graph.connect(prompt, "text", post, "prompt")
        graph.connect(image, "imageBase64", image_view, "data")
        graph.connect(post, "postData", post_view, "data")

        logger.info(f"Seeded demo workflow with {len(graph)} nodes")

    # ── Helpers used by routes ──────────────────────────────────────────────

    def create_node(self, node_type: str, position: Optional[Dict[str, float]] = None) -> str:
        if position is None:
            # centre of the visible area for a 1280x720 editor
            return self.graph.add_node(node_type, self.viewport.to_canvas((640, 360)))
        return self.graph.add_node(node_type, position)

    def delete_node(self, node_id: str) -> None:
        self.graph.remove_node(node_id)
        if self.controller.selected_node_id == node_id:
            self.controller.selected_node_id = None

    def node_result(self, node_id: str) -> Dict[str, Any]:
        self.graph.require_node(node_id)
        state = self.executor.state
        return {
            "status": state.status_of(node_id).value,
            "inputs": state.inputs.get(node_id, {}),
            "outputs": state.outputs.get(node_id, {}),
        }


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

workflow_state = WorkflowState(seed=config.SEED_DEMO)
