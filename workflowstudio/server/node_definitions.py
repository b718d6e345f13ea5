"""
Studio node catalog and the executors that need no external service.

Import this module (or `generation_nodes`, which imports it) once as a
side-effect to populate `studio_executors`. The generation executors live
in generation_nodes.py because they call out to the OpenAI API.
"""
from __future__ import annotations

from typing import Any, Dict

from workflowstudio.core.Executor import NodeExecutorRegistry
from workflowstudio.core.GraphPrimitives import NodeDefinition, Port
from workflowstudio.core.NodeCatalog import NodeCatalog
from workflowstudio.core.Types import PortDataKind

STRING = PortDataKind.STRING
OBJECT = PortDataKind.OBJECT
ANY = PortDataKind.ANY

# ── Setting choices ──────────────────────────────────────────────────────────

PLATFORMS = ("X/Twitter", "Instagram", "LinkedIn", "Facebook", "TikTok")
IMAGE_ASPECT_RATIOS = ("16:9", "1:1", "9:16", "4:3", "3:4")
VIDEO_ASPECT_RATIOS = ("16:9", "9:16")
RESOLUTIONS = ("720p", "1080p")
VOICES = ("alloy", "coral", "echo", "nova", "shimmer")


# ── Definitions ──────────────────────────────────────────────────────────────

STUDIO_DEFINITIONS = (
    NodeDefinition(
        type="textInput",
        name="Text Input",
        description="Provides a raw text string.",
        outputs=(Port("text", "Text", STRING),),
        has_settings=True,
        defaults={"text": "Your text here..."},
    ),
    NodeDefinition(
        type="imageStudio",
        name="Image Studio",
        description="Generates an image from a prompt.",
        inputs=(Port("prompt", "Prompt", STRING),),
        outputs=(Port("imageBase64", "Image (Base64)", STRING),),
        has_settings=True,
        defaults={"aspectRatio": IMAGE_ASPECT_RATIOS[0]},
        options={"aspectRatio": IMAGE_ASPECT_RATIOS},
    ),
    NodeDefinition(
        type="videoStudio",
        name="Video Studio",
        description="Generates a video from a prompt.",
        inputs=(Port("prompt", "Prompt", STRING),),
        outputs=(Port("videoUrl", "Video URL", STRING),),
        has_settings=True,
        defaults={"aspectRatio": VIDEO_ASPECT_RATIOS[0], "resolution": RESOLUTIONS[0]},
        options={"aspectRatio": VIDEO_ASPECT_RATIOS, "resolution": RESOLUTIONS},
    ),
    NodeDefinition(
        type="audioStudio",
        name="Audio Studio",
        description="Generates speech from text.",
        inputs=(Port("text", "Text", STRING),),
        outputs=(Port("audioBase64", "Audio (Base64)", STRING),),
        has_settings=True,
        defaults={"voice": VOICES[0]},
        options={"voice": VOICES},
    ),
    NodeDefinition(
        type="copyStudioSocialPost",
        name="Social Post",
        description="Generates a social media post.",
        inputs=(Port("prompt", "Prompt", STRING),),
        outputs=(Port("postData", "Post Data", OBJECT),),
        has_settings=True,
        defaults={"platform": PLATFORMS[0]},
        options={"platform": PLATFORMS},
    ),
    NodeDefinition(
        type="copyStudioBlogPost",
        name="Blog Post",
        description="Generates a full blog post.",
        inputs=(Port("topic", "Topic", STRING),),
        outputs=(Port("blogData", "Blog Data", OBJECT),),
        has_settings=False,
    ),
    NodeDefinition(
        type="resultViewer",
        name="Result Viewer",
        description="Displays any connected output.",
        inputs=(Port("data", "Data", ANY),),
        has_settings=False,
    ),
)


def build_studio_catalog() -> NodeCatalog:
    return NodeCatalog(STUDIO_DEFINITIONS)


# ---------------------------------------------------------------------------
# Executors
# ---------------------------------------------------------------------------

studio_executors = NodeExecutorRegistry()


@studio_executors.register("textInput")
async def text_input(inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    return {"text": data.get("text", "")}


# Displays whatever is wired into it; the recorded input is the result.
@studio_executors.register("resultViewer")
async def result_viewer(inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    return {}
