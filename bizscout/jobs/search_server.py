"""HTTP entrypoint exposing normalization, density and search (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

import requests
from flask import Flask, jsonify, request

from bizscout.analysis.density import analyze, valid_points
from bizscout.analysis.stats import summarize
from bizscout.core.config import ConfigError, get_settings
from bizscout.etl.normalizer import new_business_id, normalize_result
from bizscout.etl.transform import to_business
from bizscout.jobs.search import run_search
from bizscout.models import Business
from bizscout.vendors.gemini import GeminiError

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "model": settings.gemini_model,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/normalize")
def normalize_payload() -> Any:
    """
    Normalize raw model text that the caller already received.
    Required JSON fields: raw_text, industry, location
    Optional: cross_refs (list of {title, uri})
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    missing = [f for f in ("industry", "location") if not payload.get(f)]
    if "raw_text" not in payload:
        missing.insert(0, "raw_text")
    if missing:
        return jsonify({"error": f"missing fields: {', '.join(missing)}"}), 400

    raw_text = payload["raw_text"]
    if not isinstance(raw_text, str):
        return jsonify({"error": "raw_text must be a string"}), 400

    result = normalize_result(
        raw_text,
        str(payload["industry"]).strip(),
        str(payload["location"]).strip(),
        payload.get("cross_refs") or [],
    )
    return jsonify({"data": {"businesses": [b.to_dict() for b in result.businesses], "recovered": result.recovered}}), 200


@app.post("/density")
def density() -> Any:
    """
    Build the density grid.
    Required JSON fields: points or businesses (objects carrying lat/lng)
    Optional: grid_size (positive int, default from settings)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    raw_points = payload.get("points")
    if raw_points is None:
        raw_points = payload.get("businesses")
    if not isinstance(raw_points, list):
        return jsonify({"error": "points must be a list"}), 400

    grid_size_raw = payload.get("grid_size", get_settings().grid_size)
    if isinstance(grid_size_raw, bool) or (isinstance(grid_size_raw, float) and not grid_size_raw.is_integer()):
        return jsonify({"error": "grid_size must be a whole number"}), 400
    try:
        grid_size = int(grid_size_raw)
    except (TypeError, ValueError, OverflowError):
        return jsonify({"error": "grid_size must be numeric"}), 400
    if grid_size <= 0:
        return jsonify({"error": "grid_size must be positive"}), 400

    cells = analyze(valid_points(raw_points), grid_size)
    return jsonify({"data": {"cells": [cell.to_dict() for cell in cells]}}), 200


@app.post("/stats")
def stats() -> Any:
    """
    Aggregate statistics over businesses already held by the caller.
    Required JSON fields: businesses
    Optional: min_rating (float), require_phone (bool), require_website (bool)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    items = payload.get("businesses")
    if not isinstance(items, list):
        return jsonify({"error": "businesses must be a list"}), 400

    try:
        min_rating = float(payload.get("min_rating") or 0)
    except (TypeError, ValueError):
        return jsonify({"error": "min_rating must be numeric"}), 400

    summary = summarize(
        _businesses_from_payload(items),
        min_rating=min_rating,
        require_phone=bool(payload.get("require_phone", False)),
        require_website=bool(payload.get("require_website", False)),
    )
    return jsonify({"data": summary.to_dict() if summary else None}), 200


@app.post("/search")
def search() -> Any:
    """
    Run a live search and return normalized businesses.
    Required JSON fields: industry, location
    Optional: language ("vi" | "en"), exclude_names (list of str)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    missing = [f for f in ("industry", "location") if not payload.get(f)]
    if missing:
        return jsonify({"error": f"missing fields: {', '.join(missing)}"}), 400

    exclude_names = payload.get("exclude_names") or []
    if not isinstance(exclude_names, list):
        return jsonify({"error": "exclude_names must be a list"}), 400

    try:
        outcome = run_search(
            str(payload["industry"]),
            str(payload["location"]),
            language=payload.get("language"),
            exclude_names=[str(name) for name in exclude_names],
        )
    except (requests.RequestException, GeminiError) as exc:
        logger.exception("Search transport failed: %s", exc)
        return jsonify({"error": "upstream model request failed"}), 502
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return jsonify({"error": "search is not configured"}), 503
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    # "done" lets clients tell an empty result apart from a request in flight.
    return (
        jsonify(
            {
                "data": {
                    "status": "done",
                    "businesses": [b.to_dict() for b in outcome.businesses],
                    "recovered": outcome.recovered,
                }
            }
        ),
        200,
    )


# ---------- Internals ----------


def _businesses_from_payload(items: List[Any]) -> List[Business]:
    businesses = []
    for item in items:
        if not isinstance(item, dict):
            continue
        business_id = item.get("id") if isinstance(item.get("id"), str) and item.get("id") else new_business_id()
        industry = item.get("businessType") if isinstance(item.get("businessType"), str) else ""
        businesses.append(to_business(item, business_id=business_id, industry=industry, location=""))
    return businesses


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
