"""
Video acquisition service configuration.
"""
import os
from pathlib import Path

# Service settings
SERVICE_NAME = "video-acquisition"
SERVICE_VERSION = "1.0.0"
SERVICE_PORT = int(os.getenv("PORT", 6010))

# Paths
BASE_DIR = Path(__file__).parent.parent
PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", BASE_DIR / "public"))
PUBLIC_URL_PREFIX = os.getenv("PUBLIC_URL_PREFIX", "/ai-generated-videos")
OUTPUT_DIR = Path(os.getenv("VIDEO_OUTPUT_DIR", PUBLIC_DIR / "ai-generated-videos"))

# Ensure directories exist
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# FFmpeg settings
FFMPEG_PATH = os.getenv("FFMPEG_PATH", "ffmpeg")
FFPROBE_PATH = os.getenv("FFPROBE_PATH", "ffprobe")
FFMPEG_TIMEOUT_SECONDS = float(os.getenv("FFMPEG_TIMEOUT_SECONDS", 120))
FFMPEG_FONT_FILE = os.getenv("FFMPEG_FONT_FILE") or None
VIDEO_FPS = int(os.getenv("VIDEO_FPS", 25))
VIDEO_CRF = int(os.getenv("VIDEO_CRF", 23))
VIDEO_PRESET = os.getenv("VIDEO_PRESET", "medium")
TEXT_OVERLAY_ENABLED = os.getenv("TEXT_OVERLAY_ENABLED", "true").lower() in ("1", "true", "yes")
PARTICLES_ENABLED = os.getenv("PARTICLES_ENABLED", "true").lower() in ("1", "true", "yes")

# Request defaults
DEFAULT_DURATION_SECONDS = float(os.getenv("DEFAULT_DURATION_SECONDS", 5))
MAX_DURATION_SECONDS = float(os.getenv("MAX_DURATION_SECONDS", 60))
DEFAULT_STYLE = os.getenv("DEFAULT_STYLE", "cinematic")

# Providers, tried in this order
VIDEO_PROVIDER_ORDER = [
    name.strip().lower()
    for name in os.getenv(
        "VIDEO_PROVIDER_ORDER", "luma,haiper,runway,replicate,sora,stability-video,stability,huggingface"
    ).split(",")
    if name.strip()
]
PROVIDER_POLL_INTERVAL_SECONDS = float(os.getenv("PROVIDER_POLL_INTERVAL_SECONDS", 5))
PROVIDER_MAX_POLL_ATTEMPTS = int(os.getenv("PROVIDER_MAX_POLL_ATTEMPTS", 60))
PROVIDER_HTTP_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_HTTP_TIMEOUT_SECONDS", 60))
