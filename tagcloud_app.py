"""Flask application exposing an upload-and-generate interface for the tag cloud."""
from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from flask import Flask, Response, jsonify, render_template, request
from werkzeug.utils import secure_filename

from tagcloud_core import (
    InputReadError,
    InvalidWordCount,
    TagCloudConfig,
    TagCloudResult,
    generate_tag_cloud,
    generate_tag_cloud_from_text,
    render_stylesheet,
    validate_word_count,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


def resolve_upload_dir(raw: str | None) -> Path:
    # Relative values are taken from the working directory at startup.
    return Path(raw or BASE_DIR / "data" / "uploads").resolve()


UPLOAD_DIR = resolve_upload_dir(os.environ.get("TAGCLOUD_UPLOAD_DIR"))
DEFAULT_WORDS = max(1, int(os.environ.get("TAGCLOUD_DEFAULT_WORDS", "100") or 100))

app = Flask(__name__, template_folder="templates")


def read_payload() -> Dict[str, Any]:
    if request.mimetype == "application/json":
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    form = request.form.to_dict(flat=True)
    if "config" in form:
        try:
            payload = json.loads(form.pop("config"))
        except json.JSONDecodeError:
            payload = {}
        if isinstance(payload, dict):
            form.update(payload)
    return form


def build_config(payload: Mapping[str, Any]) -> TagCloudConfig:
    config = TagCloudConfig()
    encoding = payload.get("encoding")
    if isinstance(encoding, str) and encoding.strip():
        config.encoding = encoding.strip()
    return config


def resolve_input_path(path_str: str) -> Path:
    candidate = (BASE_DIR / path_str).resolve() if not Path(path_str).is_absolute() else Path(path_str).resolve()
    if BASE_DIR not in candidate.parents and UPLOAD_DIR.resolve() not in candidate.parents:
        raise ValueError("Input path must stay within the project directory")
    if not candidate.is_file():
        raise FileNotFoundError(candidate)
    return candidate


def build_response_payload(result: TagCloudResult) -> Dict[str, Any]:
    return {
        "title": result.title,
        "nWords": result.n_words,
        "distinctWords": len(result.counts),
        "words": result.as_payload(),
        "html": result.html,
    }


def error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"error": message}), status


@app.get("/")
def index() -> str:
    return render_template("index.html", default_words=DEFAULT_WORDS)


@app.get("/tagcloud.css")
def stylesheet() -> Response:
    config = TagCloudConfig()
    return Response(render_stylesheet(config.min_font_size, config.max_font_size), mimetype="text/css")


@app.post("/api/upload")
def upload() -> Any:
    if "file" not in request.files:
        return error("No file part", 400)
    file = request.files["file"]
    if not file or file.filename == "":
        return error("No selected file", 400)

    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    filename = secure_filename(file.filename) or f"upload-{int(time.time())}.txt"
    stored_name = f"{int(time.time())}-{filename}"
    destination = UPLOAD_DIR / stored_name
    file.save(destination)
    logger.info("Stored upload %s as %s", file.filename, destination)

    try:
        text_path = str(destination.relative_to(BASE_DIR))
    except ValueError:
        text_path = str(destination)
    return jsonify({
        "textPath": text_path,
        "filename": filename,
        "stored": str(destination),
    })


@app.post("/api/generate")
def generate() -> Any:
    payload = read_payload()

    try:
        n_words = validate_word_count(payload.get("words", DEFAULT_WORDS))
    except InvalidWordCount as exc:
        return error(str(exc), 400)

    config = build_config(payload)
    text_path = payload.get("textPath")
    text = payload.get("text")

    if text_path:
        try:
            path = resolve_input_path(str(text_path))
        except FileNotFoundError:
            return error(f"Input file not found: {text_path}", 404)
        except ValueError as exc:
            return error(str(exc), 400)
        try:
            # Title shows the path the client sent, not the resolved location.
            result = generate_tag_cloud(path, n_words, title_path=str(text_path), config=config)
        except InputReadError as exc:
            return error(str(exc), 400)
    elif isinstance(text, str):
        title_path = str(payload.get("title") or "<text>")
        result = generate_tag_cloud_from_text(text, n_words, title_path=title_path, config=config)
    else:
        return error("textPath or text missing", 400)

    return jsonify(build_response_payload(result))


if __name__ == "__main__":
    app.run(debug=True)
