"""Client utilities for the Gemini generateContent API with Maps grounding."""

import json
import logging
from typing import Any, Dict, Iterable, List, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def _build_session() -> requests.Session:
    session = requests.Session()
    retries = Retry(
        total=2,
        backoff_factor=1,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("POST",),
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


_SESSION = _build_session()


class GeminiError(RuntimeError):
    """Raised when Gemini returns no usable candidate."""


def build_prompt(
    industry: str,
    location: str,
    language: str = "vi",
    exclude_names: Iterable[str] = (),
) -> str:
    """Listing prompt asking for a bare JSON array of businesses."""
    excluded = list(exclude_names)
    exclusion = f"Excluding: {json.dumps(excluded, ensure_ascii=False)}." if excluded else ""
    lang_note = "Values in Vietnamese." if language == "vi" else "Values in English."
    return f"""
List exactly 20 real businesses for category "{industry}" in "{location}".
Expand search semantically (e.g., "Pet" -> Vet, Shop, Grooming).
{exclusion} {lang_note}

Return a RAW JSON Array. No markdown. No comments.
Schema:
[
  {{
    "name": "string",
    "address": "string",
    "lat": number,
    "lng": number,
    "rating": number (1-5),
    "reviewCount": number,
    "phone": "string",
    "description": "short string",
    "businessStatus": "OPERATIONAL" | "CLOSED",
    "priceLevel": "$"-"$$$$",
    "types": ["string"],
    "openingHours": ["string"],
    "serviceOptions": {{"dineIn":bool,"delivery":bool,"takeout":bool}},
    "website": "string"
  }}
]
""".strip()


def _candidate_text(candidate: Dict[str, Any]) -> str:
    parts = (candidate.get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def generate_listing(prompt: str, api_key: str, model: str, timeout: int = 60) -> Tuple[str, List[Dict[str, Any]]]:
    """Return the model's text and its grounding chunks."""
    body = {
        "contents": [{"parts": [{"text": prompt}]}],
        "tools": [{"googleMaps": {}}],
    }
    response = _SESSION.post(
        f"{_BASE_URL}/{model}:generateContent",
        params={"key": api_key},
        json=body,
        timeout=timeout,
    )
    response.raise_for_status()
    payload = response.json()

    candidates = payload.get("candidates") or []
    if not candidates:
        feedback = payload.get("promptFeedback")
        logger.error("generateContent returned no candidates: feedback=%s", feedback)
        raise GeminiError(f"Gemini returned no candidates: {feedback}")

    candidate = candidates[0]
    text = _candidate_text(candidate)
    chunks = (candidate.get("groundingMetadata") or {}).get("groundingChunks") or []
    logger.info("Gemini returned %d chars with %d grounding chunks.", len(text), len(chunks))
    return text, chunks
