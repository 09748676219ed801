"""
Video Acquisition Service - Prompt-to-video generation with provider fallback.
Port: 6010
"""
import asyncio
from datetime import datetime, timezone

from flask import Flask, abort, jsonify, request, send_file
from loguru import logger
from pydantic import ValidationError

from config import settings
from shared.errors import GenerationFailed
from services.video_acquisition import GenerationRequest, build_orchestrator
from services.video_providers import status_report

app = Flask(__name__)

SERVICE_NAME = settings.SERVICE_NAME
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_PORT = settings.SERVICE_PORT


def get_orchestrator():
    """Orchestrator for this app, built from settings on first use."""
    orchestrator = app.config.get("VIDEO_ORCHESTRATOR")
    if orchestrator is None:
        orchestrator = build_orchestrator()
        app.config["VIDEO_ORCHESTRATOR"] = orchestrator
    return orchestrator


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"{field}: {first.get('msg', 'invalid value')}"


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    })


@app.route("/api/video/generate", methods=["POST"])
def generate_video():
    """Generate one video for a prompt, falling back across providers."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "JSON body required"}), 400

    try:
        generation_request = GenerationRequest.model_validate(data)
    except ValidationError as e:
        return jsonify({"success": False, "error": _validation_message(e)}), 400

    try:
        result = asyncio.run(get_orchestrator().generate(generation_request))
    except GenerationFailed as e:
        for attempt in e.attempts:
            logger.info(f"attempt: {attempt.to_dict()}")
        return jsonify({"success": False, "error": e.reason}), 500

    return jsonify(result.to_response())


@app.route("/api/video/providers", methods=["GET"])
def list_providers():
    """Configuration status of every provider in fallback order."""
    report = status_report(get_orchestrator().providers)
    report["localFallback"] = get_orchestrator().local_renderer.name
    return jsonify(report)


@app.route(f"{settings.PUBLIC_URL_PREFIX}/<path:filename>", methods=["GET"])
def serve_video(filename):
    """Serve a published artifact from the media store."""
    store = get_orchestrator().store
    try:
        path = store.resolve(filename)
    except ValueError:
        abort(404)
    if not path.is_file():
        abort(404)
    return send_file(path, mimetype="video/mp4")


if __name__ == "__main__":
    logger.info(f"{SERVICE_NAME} starting on port {SERVICE_PORT}")
    app.run(host="0.0.0.0", port=SERVICE_PORT, debug=True)
