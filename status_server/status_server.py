from __future__ import annotations

import logging
import os
import sys
from functools import wraps
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, request
from flask.json import jsonify

from machine_notify.bootstrap import AppWiring, build_app_system
from machine_notify.domain.errors import MachineMonitoringError
from machine_notify.logging_config import configure_logging
from machine_notify.transport.status_codec import decode_machine_status

log = logging.getLogger(__name__)

# Load .env from the executable directory (so it stays editable in production)
EXE_DIR = Path(sys.executable).resolve().parent if getattr(sys, "frozen", False) else Path(__file__).resolve().parent
load_dotenv(EXE_DIR / ".env")


def require_bearer(token: Optional[str]):
    """API routes: require ``Authorization: Bearer <token>`` when a token is set."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not token:
                return fn(*args, **kwargs)

            auth = request.headers.get("Authorization", "")
            if auth.startswith("Bearer "):
                if auth.removeprefix("Bearer ").strip() == token:
                    return fn(*args, **kwargs)
                return jsonify({"error": "invalid token"}), 403

            return jsonify({"error": "unauthorized"}), 401
        return wrapper
    return decorator


def create_app(wiring: AppWiring, token: Optional[str] = None) -> Flask:
    """
    Build the status ingestion application.

    Parameters
    ----------
    wiring
        Composed notification system.
    token
        Bearer token required on API routes. None disables auth.

    Returns
    -------
    Flask
        Configured application.
    """
    app = Flask(__name__)

    @app.errorhandler(MachineMonitoringError)
    def _machine_error(e: MachineMonitoringError):
        return jsonify({"error": e.message}), int(e.status_code)

    @app.post("/machine-status")
    @require_bearer(token)
    def machine_status():
        data = request.get_json(silent=True)
        status = decode_machine_status(data)

        wiring.service.ingest(status)

        log.info("Accepted status for machine %s with %d alarms", status.machine_id, len(status.alarms))
        return jsonify({"status": "accepted"}), 202

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    return app


def main(config_path: Optional[str] = None) -> None:
    """
    Start the ingestion server and notification workers.

    Notes
    -----
    - Loads configuration from `config.yaml` by default.
    - Optional CLI usage:
        python -m status_server.status_server --config path/to/config.yaml
    """
    if config_path is None and "--config" in sys.argv:
        i = sys.argv.index("--config")
        if i + 1 < len(sys.argv):
            config_path = sys.argv[i + 1]

    wiring = build_app_system(config_path)
    configure_logging(wiring.config.logging)

    app = create_app(wiring, token=os.getenv("STATUS_API_TOKEN"))
    try:
        # IMPORTANT: do NOT use debug=True in production
        app.run(host=wiring.config.server.host, port=wiring.config.server.port, debug=False)
    finally:
        wiring.stop()


if __name__ == "__main__":
    main()
