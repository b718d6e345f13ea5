import asyncio

from fastapi.testclient import TestClient

from workflowstudio.server.main import app
from workflowstudio.server.routes.graph_routes import cancel_run, run_workflow
from workflowstudio.server.state import WorkflowState, workflow_state
from workflowstudio.server.trace import trace_types
from workflowstudio.server.trace.trace_emitter import global_tracer

EVENT_TYPES = {
    "RUN_START": trace_types.RunStartEvent,
    "NODE_RUNNING": trace_types.NodeRunningEvent,
    "NODE_DONE": trace_types.NodeDoneEvent,
    "NODE_ERROR": trace_types.NodeErrorEvent,
    "EDGE_ACTIVE": trace_types.EdgeActiveEvent,
    "STEP_PAUSE": trace_types.StepPauseEvent,
    "RUN_DONE": trace_types.RunDoneEvent,
    "RUN_ERROR": trace_types.RunErrorEvent,
    "RUN_CANCELLED": trace_types.RunCancelledEvent,
}


class TestGraphRoutes:

    def setup_method(self):
        workflow_state.reset(seed=False)
        self.client = TestClient(app)
        self.events = []
        global_tracer.on_trace(self.events.append)

    def teardown_method(self):
        global_tracer.off_trace(self.events.append)

    def create(self, node_type, x=0, y=0):
        response = self.client.post("/api/nodes", json={"type": node_type, "position": {"x": x, "y": y}})
        assert response.status_code == 201
        return response.json()["id"]

    def connect(self, source, source_port, target, target_port):
        return self.client.post(
            "/api/edges",
            json={
                "sourceNodeId": source,
                "sourcePort": source_port,
                "targetNodeId": target,
                "targetPort": target_port,
            },
        )

    # ── Basics ──────────────────────────────────────────────────────────────

    def test_health(self):
        assert self.client.get("/health").json() == {"status": "ok"}

    def test_node_types(self):
        types = self.client.get("/api/node-types").json()
        assert [t["type"] for t in types][0] == "textInput"
        assert len(types) == 7
        social = next(t for t in types if t["type"] == "copyStudioSocialPost")
        assert "LinkedIn" in social["options"]["platform"]

    def test_demo_seed(self):
        seeded = WorkflowState()
        assert len(seeded.graph) == 5
        assert len(seeded.graph.edges()) == 4

    # ── Nodes ───────────────────────────────────────────────────────────────

    def test_create_node_appears_in_graph(self):
        node_id = self.create("textInput", 80, 120)

        graph = self.client.get("/api/graph").json()
        node = graph["nodes"][0]
        assert node["id"] == node_id
        assert node["position"] == {"x": 80.0, "y": 120.0}
        assert node["data"] == {"text": "Your text here..."}
        assert node["status"] == "idle"
        assert graph["interaction"]["mode"] == "IDLE"

    def test_create_node_unknown_type(self):
        response = self.client.post("/api/nodes", json={"type": "nope"})
        assert response.status_code == 400
        assert "nope" in response.json()["detail"]

    def test_delete_node(self):
        node_id = self.create("textInput")
        assert self.client.delete(f"/api/nodes/{node_id}").status_code == 204
        assert self.client.delete(f"/api/nodes/{node_id}").status_code == 404

    def test_update_data_and_position(self):
        node_id = self.create("imageStudio")

        response = self.client.patch(f"/api/nodes/{node_id}/data", json={"data": {"aspectRatio": "1:1"}})
        assert response.json()["data"] == {"aspectRatio": "1:1"}

        assert self.client.put(f"/api/nodes/{node_id}/position", json={"x": 5, "y": 6}).status_code == 204
        assert self.client.put("/api/nodes/ghost/position", json={"x": 5, "y": 6}).status_code == 404

    # ── Edges ───────────────────────────────────────────────────────────────

    def test_connect_and_disconnect(self):
        text = self.create("textInput")
        viewer = self.create("resultViewer", 400)

        response = self.connect(text, "text", viewer, "data")
        assert response.status_code == 201
        edge_id = response.json()["id"]

        edge = response.json()["graph"]["edges"][0]
        assert edge["id"] == edge_id
        assert edge["path"].startswith("M256,70 C")

        assert self.client.delete(f"/api/edges/{edge_id}").status_code == 204
        assert self.client.delete(f"/api/edges/{edge_id}").status_code == 404

    def test_connect_rejects_bad_handles(self):
        text = self.create("textInput")
        viewer = self.create("resultViewer")

        assert self.connect(text, "nope", viewer, "data").status_code == 400
        assert self.connect(text, "text", "ghost", "data").status_code == 404

    # ── Viewport / pointer ──────────────────────────────────────────────────

    def test_viewport_pan_and_zoom(self):
        assert self.client.post("/api/viewport/pan", json={"dx": 10, "dy": 20}).json() == {
            "x": 10.0, "y": 20.0, "zoom": 1.0,
        }
        viewport = self.client.post("/api/viewport/zoom", json={"x": 10, "y": 20, "delta": 0.5}).json()
        assert viewport == {"x": 10.0, "y": 20.0, "zoom": 1.5}

        self.client.post("/api/viewport/reset")
        assert self.client.get("/api/viewport").json()["zoom"] == 1.0

    def test_pointer_gesture_connects_nodes(self):
        text = self.create("textInput", 0, 0)
        viewer = self.create("resultViewer", 400, 0)

        self.client.post("/api/pointer", json={"type": "press", "x": 256, "y": 70})
        moved = self.client.post("/api/pointer", json={"type": "move", "x": 330, "y": 80}).json()
        assert moved["graph"]["interaction"]["mode"] == "CONNECTING_EDGE"
        assert moved["graph"]["interaction"]["pendingConnection"]["sourceNodeId"] == text

        released = self.client.post("/api/pointer", json={"type": "release", "x": 400, "y": 70}).json()

        assert released["edgeId"] == f"edge-{text}-text-{viewer}-data"
        assert released["graph"]["interaction"]["pendingConnection"] is None

    def test_drop_and_selection(self):
        self.client.post("/api/viewport/pan", json={"dx": 100, "dy": 0})
        dropped = self.client.post("/api/drop", json={"type": "audioStudio", "x": 150, "y": 40})
        assert dropped.status_code == 201
        node_id = dropped.json()["id"]
        assert dropped.json()["position"] == {"x": 50.0, "y": 40.0}

        assert self.client.post("/api/selection", json={"nodeId": "ghost"}).status_code == 404
        assert self.client.post("/api/selection", json={"nodeId": node_id}).json() == {"selectedNodeId": node_id}

        assert self.client.delete("/api/selection").json() == {"deletedNodeId": node_id}
        assert self.client.get("/api/graph").json()["nodes"] == []

    # ── Run ─────────────────────────────────────────────────────────────────

    def test_run_completes_and_traces(self):
        text = self.create("textInput")
        viewer = self.create("resultViewer", 400)
        self.connect(text, "text", viewer, "data")

        response = self.client.post("/api/run")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["run"]["status"] == {text: "completed", viewer: "completed"}
        assert body["run"]["inputs"][viewer] == {"data": "Your text here..."}

        assert [e["type"] for e in self.events] == [
            "RUN_START",
            "NODE_RUNNING",
            "NODE_DONE",
            "NODE_RUNNING",
            "EDGE_ACTIVE",
            "NODE_DONE",
            "RUN_DONE",
        ]
        for event in self.events:
            assert set(event) == set(EVENT_TYPES[event["type"]].__annotations__)

        result = self.client.get(f"/api/nodes/{viewer}/result").json()
        assert result["status"] == "completed"

    def test_run_failure_is_reported_not_raised(self):
        text = self.create("textInput")
        image = self.create("imageStudio")
        viewer = self.create("resultViewer")
        self.connect(image, "imageBase64", viewer, "data")

        response = self.client.post("/api/run")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "failed"
        assert body["run"]["failedNodeId"] == image
        assert body["run"]["status"][text] == "completed"
        assert body["run"]["status"][viewer] == "idle"
        assert body["run"]["outputs"][image] == {"error": "Missing input 'prompt'"}

        types = [e["type"] for e in self.events]
        assert "NODE_ERROR" in types and types[-1] == "RUN_ERROR"

    def test_run_with_cycle_is_a_conflict(self):
        image = self.create("imageStudio")
        self.connect(image, "imageBase64", image, "prompt")

        response = self.client.post("/api/run")

        assert response.status_code == 409
        assert "cycle" in response.json()["detail"]
        assert self.client.get("/api/run").json()["status"] == {image: "idle"}

    def test_cancel_without_run(self):
        assert self.client.post("/api/run/cancel").json() == {"cancelled": False}
        assert self.client.post("/api/step/resume").json() == {"ok": True}

    def test_cancel_while_stepping_skips_the_parked_node(self):
        text = self.create("textInput")
        viewer = self.create("resultViewer", 400)
        self.connect(text, "text", viewer, "data")

        async def scenario():
            run = asyncio.ensure_future(run_workflow(step=True))
            while global_tracer.waiting == 0:
                await asyncio.sleep(0)
            assert await cancel_run() == {"cancelled": True}
            return await asyncio.wait_for(run, timeout=1)

        body = asyncio.run(scenario())

        assert body["status"] == "cancelled"
        assert body["run"]["status"] == {text: "idle", viewer: "idle"}
        assert [e["type"] for e in self.events] == ["RUN_START", "STEP_PAUSE", "RUN_CANCELLED"]
        assert self.events[-1]["nextNodeId"] == text
        assert not global_tracer.step_mode
