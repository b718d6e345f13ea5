import os
from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file) so that
# OPENAI_API_KEY and the settings below are available without manual `export`.
load_dotenv(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..", ".env")))


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


HOST = os.getenv("WORKFLOW_HOST", "0.0.0.0")
PORT = int(os.getenv("WORKFLOW_PORT", "3001"))
RELOAD = _flag("WORKFLOW_RELOAD", "false")
LOG_LEVEL = os.getenv("WORKFLOW_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("WORKFLOW_CORS_ORIGINS", "*").split(",") if o.strip()]
SEED_DEMO = _flag("WORKFLOW_SEED_DEMO", "true")

TEXT_MODEL = os.getenv("WORKFLOW_TEXT_MODEL", "gpt-4o-mini")
IMAGE_MODEL = os.getenv("WORKFLOW_IMAGE_MODEL", "dall-e-3")
VIDEO_MODEL = os.getenv("WORKFLOW_VIDEO_MODEL", "sora-2")
TTS_MODEL = os.getenv("WORKFLOW_TTS_MODEL", "gpt-4o-mini-tts")
