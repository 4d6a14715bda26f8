"""JSON HTTP API for uploading and browsing attempts.

Routes:
    POST /api/attempts/upload      multipart ``runnerId`` + ``file``; verify and store
    GET  /api/attempts             list, optional ``runner`` / ``result`` filters
    GET  /api/attempts/<id>        single attempt
    GET  /api/attempts/<id>/track  parsed points for map display (always 200)
    GET  /api/attempts/<id>/gpx    raw GPX bytes as uploaded
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from flask import Flask, jsonify, request
from flask.typing import ResponseReturnValue
from werkzeug.exceptions import RequestEntityTooLarge

from .config import API_HOST, API_PORT, MAX_UPLOAD_BYTES, OFFICIAL_ROUTE_PATH
from .errors import AttemptNotFoundError
from .services import VerificationService, build_default_service

GPX_MIMETYPE = "application/gpx+xml"


def _error(message: str, status: int) -> ResponseReturnValue:
    return jsonify({"error": message}), status


def create_app(
    service: VerificationService,
    *,
    max_upload_bytes: int = MAX_UPLOAD_BYTES,
) -> Flask:
    """Return a Flask app exposing ``service`` under ``/api/attempts``."""

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = max_upload_bytes
    log = logging.getLogger("attempt_verifier.api")

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(_exc: RequestEntityTooLarge) -> ResponseReturnValue:
        return _error("GPX file is too large.", 413)

    @app.post("/api/attempts/upload")
    def upload_attempt() -> ResponseReturnValue:
        runner_id = (request.form.get("runnerId") or "").strip()
        if not runner_id:
            return _error("Runner ID cannot be empty.", 400)
        upload = request.files.get("file")
        if upload is None:
            return _error("GPX file is required.", 400)
        payload = upload.read()
        if not payload:
            return _error("GPX file is required.", 400)
        log.info(
            "Upload from runner=%s file=%s bytes=%d",
            runner_id,
            upload.filename,
            len(payload),
        )
        record = service.verify(payload, runner_id)
        return jsonify(record.to_dict())

    @app.get("/api/attempts")
    def list_attempts() -> ResponseReturnValue:
        records = service.list_attempts(
            runner_id=request.args.get("runner"),
            verdict=request.args.get("result"),
        )
        return jsonify([record.to_dict() for record in records])

    @app.get("/api/attempts/<int:attempt_id>")
    def get_attempt(attempt_id: int) -> ResponseReturnValue:
        try:
            record = service.get_attempt(attempt_id)
        except AttemptNotFoundError as exc:
            return _error(str(exc), 404)
        return jsonify(record.to_dict())

    @app.get("/api/attempts/<int:attempt_id>/track")
    def get_attempt_track(attempt_id: int) -> ResponseReturnValue:
        points = service.load_attempt_track(attempt_id)
        return jsonify([point.to_dict() for point in points])

    @app.get("/api/attempts/<int:attempt_id>/gpx")
    def get_attempt_gpx(attempt_id: int) -> ResponseReturnValue:
        try:
            record = service.get_attempt(attempt_id)
        except AttemptNotFoundError:
            return "", 404
        if not record.track_bytes:
            return "", 404
        return app.response_class(record.track_bytes, mimetype=GPX_MIMETYPE)

    return app


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Serve the API using the werkzeug development server."""

    parser = argparse.ArgumentParser(description="Run the attempt verification API.")
    parser.add_argument("--route", default=OFFICIAL_ROUTE_PATH, help="Official route GPX")
    parser.add_argument("--host", default=API_HOST)
    parser.add_argument("--port", type=int, default=API_PORT)
    args = parser.parse_args(argv)

    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    app = create_app(build_default_service(args.route))
    app.run(host=args.host, port=args.port)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
