"""
Generation executors: studio node types backed by the OpenAI API.

Each executor is an `async def (inputs, data) -> outputs` registered on
`studio_executors`. They are slow, I/O-bound calls; the scheduler awaits
them one at a time. Any exception (missing input, API error) becomes a
node failure and halts the run.

Requirements (install via pip):
    openai langchain-core langchain-openai

Environment variable:
    OPENAI_API_KEY  (read by both the openai and langchain-openai clients)
"""
from __future__ import annotations

import base64
import time
from logging import getLogger
from typing import Any, Dict

from workflowstudio.server import config
from workflowstudio.server.node_definitions import studio_executors

logger = getLogger(__name__)

# dall-e-3 only renders three sizes; each aspect ratio maps to the nearest.
IMAGE_SIZES = {
    "1:1":  "1024x1024",
    "16:9": "1792x1024",
    "4:3":  "1792x1024",
    "9:16": "1024x1792",
    "3:4":  "1024x1792",
}

VIDEO_SIZES = {
    ("16:9", "720p"):  "1280x720",
    ("9:16", "720p"):  "720x1280",
    ("16:9", "1080p"): "1792x1024",
    ("9:16", "1080p"): "1024x1792",
}

VIDEO_MIME_TYPE = "video/mp4"

SOCIAL_POST_SYSTEM = (
    "You are a social media copywriter. Write one post for {platform} about the "
    "user's prompt, respecting the platform's length and tone conventions. "
    "Respond with JSON only, shaped as "
    '{{"platform": str, "text": str, "hashtags": [str]}}.'
)

BLOG_POST_SYSTEM = (
    "You are a professional blog writer. Write a complete, well structured blog "
    "post about the user's topic. Respond with JSON only, shaped as "
    '{{"title": str, "summary": str, "sections": [{{"heading": str, "body": str}}]}}.'
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def _require(inputs: Dict[str, Any], port_id: str) -> str:
    value = inputs.get(port_id)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Missing input '{port_id}'")
    return value if isinstance(value, str) else str(value)


def _openai_client():
    import openai

    return openai.AsyncOpenAI()


async def _generate_json(system: str, human: str, variables: Dict[str, Any]) -> Any:
    """Run a prompt → ChatOpenAI → JSON parser chain."""
    from langchain_core.output_parsers import JsonOutputParser
    from langchain_core.prompts import ChatPromptTemplate
    from langchain_openai import ChatOpenAI

    prompt = ChatPromptTemplate.from_messages([("system", system), ("human", human)])
    chain = prompt | ChatOpenAI(model=config.TEXT_MODEL, temperature=0.7) | JsonOutputParser()
    return await chain.ainvoke(variables)


# ── imageStudio ──────────────────────────────────────────────────────────────

@studio_executors.register("imageStudio")
async def image_studio(inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    prompt = _require(inputs, "prompt")
    aspect_ratio = data.get("aspectRatio") or "1:1"
    size = IMAGE_SIZES.get(aspect_ratio, "1024x1024")

    client = _openai_client()
    t0 = time.time()
    resp = await client.images.generate(
        model=config.IMAGE_MODEL,
        prompt=prompt,
        size=size,
        response_format="b64_json",
        n=1,
    )
    logger.info(f"imageStudio: {size} image in {(time.time() - t0) * 1000:.0f}ms")

    return {"imageBase64": resp.data[0].b64_json or ""}


# ── videoStudio ──────────────────────────────────────────────────────────────

@studio_executors.register("videoStudio")
async def video_studio(inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    prompt = _require(inputs, "prompt")
    aspect_ratio = data.get("aspectRatio") or "16:9"
    resolution = data.get("resolution") or "720p"
    size = VIDEO_SIZES.get((aspect_ratio, resolution), "1280x720")

    client = _openai_client()
    t0 = time.time()
    # polls until the job leaves the queue; this is the slow one
    video = await client.videos.create_and_poll(
        model=config.VIDEO_MODEL,
        prompt=prompt,
        size=size,
    )
    logger.info(f"videoStudio: job {video.id} {video.status} in {(time.time() - t0) * 1000:.0f}ms")

    if video.status != "completed":
        error = getattr(video, "error", None)
        detail = getattr(error, "message", None) or video.status
        raise RuntimeError(f"Video generation failed: {detail}")

    # the content endpoint needs the API key, so hand the browser the bytes
    content = await client.videos.download_content(video.id, variant="video")
    encoded = base64.b64encode(content.content).decode("ascii")
    return {"videoUrl": f"data:{VIDEO_MIME_TYPE};base64,{encoded}"}


# ── audioStudio ──────────────────────────────────────────────────────────────

@studio_executors.register("audioStudio")
async def audio_studio(inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    text = _require(inputs, "text")
    voice = data.get("voice") or "alloy"

    client = _openai_client()
    t0 = time.time()
    response = await client.audio.speech.create(
        model=config.TTS_MODEL,
        voice=voice,
        input=text,
        response_format="mp3",
    )
    audio = response.content
    logger.info(f"audioStudio: {len(audio)} bytes of speech in {(time.time() - t0) * 1000:.0f}ms")

    return {"audioBase64": base64.b64encode(audio).decode("ascii")}


# ── copyStudioSocialPost ─────────────────────────────────────────────────────

@studio_executors.register("copyStudioSocialPost")
async def social_post(inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    prompt = _require(inputs, "prompt")
    platform = data.get("platform") or "X/Twitter"

    post = await _generate_json(SOCIAL_POST_SYSTEM, "{prompt}", {"prompt": prompt, "platform": platform})
    if not isinstance(post, dict):
        raise ValueError("Social post response was not a JSON object")
    post.setdefault("platform", platform)
    return {"postData": post}


# ── copyStudioBlogPost ───────────────────────────────────────────────────────

@studio_executors.register("copyStudioBlogPost")
async def blog_post(inputs: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    topic = _require(inputs, "topic")

    blog = await _generate_json(BLOG_POST_SYSTEM, "{topic}", {"topic": topic})
    if not isinstance(blog, dict):
        raise ValueError("Blog post response was not a JSON object")
    return {"blogData": blog}
