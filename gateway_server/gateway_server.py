"""
Development gateway for local engine runs.

Stands in for both external services the engine talks to:
- the process-data source (``POST /read``), backed by an in-memory tag table
  that can be edited through ``POST /tags``
- the SMS notifications API (``POST /sms``), which records submissions

Run:
  python -m gateway_server.gateway_server
"""

from __future__ import annotations

import os
import sys
import threading
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv
from flask import Flask, jsonify, request

# Load .env from the executable/source directory so tokens stay editable.
BASE_DIR = Path(sys.executable).resolve().parent if getattr(sys, "frozen", False) else Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

SMS_TOKEN = os.getenv("SMS_API_TOKEN", "dev-token")
TAGS_TOKEN = os.getenv("GATEWAY_TAGS_TOKEN", "dev-token")
MAX_MESSAGES = 500


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def create_app() -> Flask:
    """
    Build the gateway application with fresh in-memory state.
    """
    app = Flask(__name__)
    tags: Dict[str, Any] = {}
    messages: List[Dict[str, Any]] = []
    lock = threading.Lock()

    app.config["TAGS"] = tags
    app.config["MESSAGES"] = messages

    def require_bearer(fn):
        """Tag edits need ``Authorization: Bearer <GATEWAY_TAGS_TOKEN>``."""
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                return jsonify({"error": "unauthorized"}), 401
            if auth.removeprefix("Bearer ").strip() != TAGS_TOKEN:
                return jsonify({"error": "invalid token"}), 403
            return fn(*args, **kwargs)
        return wrapper

    def require_sms_token(fn):
        """SMS submissions need ``X-TOKEN-AUTH: <SMS_API_TOKEN>``."""
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if request.headers.get("X-TOKEN-AUTH", "") != SMS_TOKEN:
                return jsonify({"error": "invalid token"}), 403
            return fn(*args, **kwargs)
        return wrapper

    @app.post("/read")
    def read():
        data = request.get_json(silent=True) or {}
        node_ids = data.get("nodeIds")
        if not isinstance(node_ids, list):
            return jsonify({"error": "nodeIds must be a list"}), 400
        with lock:
            values = [
                {"value": tags[n], "quality": "Good"} if n in tags else {"value": None, "quality": "Bad"}
                for n in node_ids
            ]
        return jsonify({"values": values}), 200

    @app.post("/tags")
    @require_bearer
    def set_tags():
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "expected a JSON object of tag -> value"}), 400
        with lock:
            tags.update(data)
            count = len(tags)
        return jsonify({"status": "ok", "tags": count}), 200

    @app.post("/sms")
    @require_sms_token
    def sms():
        data = request.get_json(silent=True) or {}
        recipients = [r for r in str(data.get("recipients", "")).split(",") if r.strip()]
        if not recipients or not data.get("message"):
            return jsonify({"error": "recipients and message are required"}), 400

        with lock:
            messages.append({"received_at": _now_iso(), "recipients": recipients, "message": data["message"]})
            if len(messages) > MAX_MESSAGES:
                del messages[:-MAX_MESSAGES]
        app.logger.info("SMS to %s: %s", ",".join(recipients), data["message"])
        return jsonify({"status": "ok"}), 200

    @app.get("/api/sms/recent")
    @require_bearer
    def api_recent():
        with lock:
            recent = list(reversed(messages[-200:]))
            count = len(messages)
        return jsonify({"count": count, "messages": recent}), 200

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    return app


if __name__ == "__main__":
    # Do NOT use debug=True outside local development.
    create_app().run(host="0.0.0.0", port=int(os.getenv("GATEWAY_PORT", "8000")), debug=False)
