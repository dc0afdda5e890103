"""
HTTP entrypoints for the pipeline.

The Flask app exposes the pipeline operations for manual or scheduled
invocation:

* ``POST /batch`` – ``{"folder": "...", "output_root": "..."}``; runs a batch,
  writes the CSV and JSON exports and, when ``OUTPUT_BUCKET`` is set, uploads
  them.
* ``POST /reconstruct`` – ``{"id": "..."}``; rebuilds one WAV file.
* ``POST /transcribe`` – ``{"id": "..."}``; transcribes one rebuilt WAV file.
* ``POST /classify`` – ``{"transcript": "..."}``; runs the detector only.

The speech gateway is created once in :func:`create_app` and shared by every
request.
"""

import json
import logging
import os
from typing import Optional

from flask import Flask, jsonify, request

from . import exporters, publisher
from .config import Settings
from .errors import NoItemsFoundError, PipelineError
from .stt_service import SpeechGateway, TranscriptionGateway
from .tasks import BatchOrchestrator

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def _event(name: str, **fields) -> None:
    logger.info(json.dumps({"event": name, **fields}, ensure_ascii=False))


def create_app(settings: Optional[Settings] = None, gateway: Optional[TranscriptionGateway] = None) -> Flask:
    settings = settings or Settings.from_env()
    gateway = gateway or SpeechGateway.from_settings(settings)
    orchestrator = BatchOrchestrator(gateway, settings)

    app = Flask(__name__)
    app.config["ORCHESTRATOR"] = orchestrator

    @app.route("/batch", methods=["POST"])
    def batch():
        data = request.get_json(silent=True) or {}
        folder = data.get("folder")
        if not folder:
            return "Missing 'folder' in request", 400
        _event("batch_request", folder=folder)
        try:
            summary = orchestrator.run_batch(folder, data.get("output_root"))
        except NoItemsFoundError as exc:
            _event("batch_empty", folder=folder)
            return jsonify({"error": str(exc)}), 404

        csv_path = exporters.export_csv(summary)
        json_path = exporters.export_json(summary)
        uploaded = []
        if settings.output_bucket:
            prefix = f"{settings.output_prefix}{summary.folder_id}/"
            uploaded = publisher.publish_outputs([csv_path, json_path], settings.output_bucket, prefix)
        _event(
            "batch_complete",
            folder=folder,
            success=summary.success_count,
            failed=summary.failure_count,
            detected=summary.detection_count,
        )
        body = exporters.summary_to_dict(summary)
        body["exports"] = {
            "csv": str(csv_path) if csv_path else None,
            "json": str(json_path) if json_path else None,
            "uploaded": uploaded,
        }
        return jsonify(body), 200

    @app.route("/reconstruct", methods=["POST"])
    def reconstruct():
        data = request.get_json(silent=True) or {}
        item_id = data.get("id")
        if not item_id:
            return "Missing 'id' in request", 400
        try:
            result = orchestrator.reconstruct(item_id)
        except PipelineError as exc:
            _event("reconstruct_error", id=item_id, error=str(exc))
            return jsonify({"error": str(exc)}), 422
        return jsonify(exporters.to_dict(result)), 200

    @app.route("/transcribe", methods=["POST"])
    def transcribe():
        data = request.get_json(silent=True) or {}
        item_id = data.get("id")
        if not item_id:
            return "Missing 'id' in request", 400
        try:
            result, report = orchestrator.transcribe(item_id)
        except FileNotFoundError as exc:
            return jsonify({"error": str(exc)}), 404
        except PipelineError as exc:
            _event("stt_error", id=item_id, error=str(exc))
            return jsonify({"error": str(exc)}), 502
        body = exporters.to_dict(result)
        body["transcript_path"] = str(report)
        return jsonify(body), 200

    @app.route("/classify", methods=["POST"])
    def classify():
        data = request.get_json(silent=True) or {}
        transcript = data.get("transcript")
        return jsonify({"detected": orchestrator.classify(transcript)}), 200

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    create_app().run(host="0.0.0.0", port=port)
