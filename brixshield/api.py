"""Main Flask API for BrixShield.

Run: python -m brixshield.api
"""

import logging
from datetime import datetime, timezone

from flask import Flask, Response, abort, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from brixshield import config
from brixshield.ai_recommendations import OpenRouterClient, attach_recommendations
from brixshield.app.scanner import scan_and_record_file, scan_and_record_url
from brixshield.errors import InputFormatError, RecommendationError
from brixshield.reports import generate_report_data, iso_timestamp, to_csv, to_html, to_json
from brixshield.scan_store import ScanStore, create_store

# Logging
logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger("api")

# Flask app
app = Flask(__name__)

# Rate limiter: prefer Redis storage in production when REDIS_URL is set
if config.REDIS_URL:
    limiter = Limiter(app=app, key_func=get_remote_address, default_limits=["60 per minute"],
                      storage_uri=config.REDIS_URL, enabled=config.RATELIMIT_ENABLED)
    logger.info("Using Redis at %s for rate limiting", config.REDIS_URL)
else:
    limiter = Limiter(app=app, key_func=get_remote_address, default_limits=["60 per minute"],
                      enabled=config.RATELIMIT_ENABLED)

if config.API_KEY:
    logger.info("API key enabled")

HISTORY_MAX_LIMIT = 1000

_store = None
_recommender = None


def get_store() -> ScanStore:
    """The process-wide store, created on first use."""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def get_recommender() -> OpenRouterClient:
    global _recommender
    if _recommender is None:
        _recommender = OpenRouterClient()
    return _recommender


def require_api_key() -> None:
    if not config.API_KEY:
        return
    key = request.headers.get("X-API-Key") or request.args.get("api_key")
    if not key or key != config.API_KEY:
        abort(401, description="Invalid or missing API key")


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "version": "1.0"})


@app.route("/scan-url", methods=["POST"])
@limiter.limit("30 per minute")
def scan_url_route():
    require_api_key()
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data.get("url"):
        return jsonify({"error": "URL is required"}), 400

    try:
        verdict, record = scan_and_record_url(get_store(), str(data["url"]))
    except InputFormatError as e:
        return jsonify({"error": "Invalid URL format", "detail": str(e)}), 400
    except Exception:
        logger.exception("URL scan failed")
        return jsonify({"error": "scan_failed"}), 500

    return jsonify({
        "url": record["target"],
        **verdict,
        "scan_id": record["id"],
        "timestamp": iso_timestamp(record["timestamp"]),
    }), 200


@app.route("/scan-file", methods=["POST"])
@limiter.limit("30 per minute")
def scan_file_route():
    require_api_key()
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "File is required"}), 400

    # only the size is needed; read one byte past the limit to detect oversize uploads
    size = len(upload.stream.read(config.MAX_UPLOAD_BYTES + 1))
    if size > config.MAX_UPLOAD_BYTES:
        return jsonify({"error": f"File too large (max {config.MAX_UPLOAD_BYTES} bytes)"}), 400

    mime_type = upload.mimetype or "unknown"
    try:
        verdict, record = scan_and_record_file(get_store(), upload.filename, mime_type, size)
    except InputFormatError as e:
        return jsonify({"error": "Invalid file", "detail": str(e)}), 400
    except Exception:
        logger.exception("File scan failed")
        return jsonify({"error": "scan_failed"}), 500

    return jsonify({
        "name": record["target"],
        "size": size,
        "type": mime_type,
        **verdict,
        "scan_id": record["id"],
        "timestamp": iso_timestamp(record["timestamp"]),
    }), 200


@app.route("/history", methods=["GET"])
@limiter.limit("20 per minute")
def history():
    require_api_key()
    try:
        limit = int(request.args.get("limit", 50))
    except ValueError:
        return jsonify({"error": "limit must be integer"}), 400
    limit = min(HISTORY_MAX_LIMIT, max(1, limit))
    rows = get_store().get_recent(limit)
    return jsonify({"count": len(rows), "rows": rows})


@app.route("/history", methods=["DELETE"])
def clear_history():
    require_api_key()
    get_store().clear_all()
    return jsonify({"cleared": True})


@app.route("/history/delete", methods=["POST"])
def delete_history_items():
    require_api_key()
    data = request.get_json(silent=True)
    ids = data.get("ids") if isinstance(data, dict) else None
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        return jsonify({"error": "'ids' must be a list of strings"}), 400
    get_store().delete_scans(ids)
    return jsonify({"deleted": len(ids)})


@app.route("/history/<scan_id>", methods=["GET"])
@limiter.limit("20 per minute")
def get_history_item(scan_id: str):
    require_api_key()
    item = get_store().get_scan(scan_id)
    if not item:
        return jsonify({"error": "not_found"}), 404
    return jsonify(item)


@app.route("/stats", methods=["GET"])
def stats():
    require_api_key()
    return jsonify(get_store().get_statistics())


@app.route("/ai-recommendations", methods=["POST"])
@limiter.limit("10 per minute")
def ai_recommendations():
    require_api_key()
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data.get("scan_id"):
        return jsonify({"error": "missing 'scan_id' in JSON body"}), 400
    try:
        text = attach_recommendations(get_store(), str(data["scan_id"]), get_recommender())
    except RecommendationError:
        logger.exception("AI recommendation error")
        return jsonify({"error": "Failed to generate recommendations. Please try again later."}), 502
    if text is None:
        return jsonify({"error": "not_found"}), 404
    return jsonify({"recommendations": text})


@app.route("/export/<fmt>", methods=["GET"])
def export(fmt: str):
    require_api_key()
    scans = get_store().get_all()
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    if fmt == "json":
        body, mimetype = to_json(generate_report_data(scans)), "application/json"
    elif fmt == "csv":
        body, mimetype = to_csv(scans), "text/csv"
    elif fmt == "html":
        body, mimetype = to_html(generate_report_data(scans)), "text/html"
    else:
        return jsonify({"error": "format must be one of json, csv, html"}), 400
    return Response(body, mimetype=mimetype, headers={
        "Content-Disposition": f'attachment; filename="brixshield-report-{stamp}.{fmt}"',
    })


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT, debug=False)
