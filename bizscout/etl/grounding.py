"""Cross-reference hints linking model output to canonical map places."""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from urllib.parse import quote

from bizscout.models import CrossReference

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="


def extract_cross_references(grounding_chunks: Optional[Iterable[Any]]) -> List[CrossReference]:
    """Flatten Gemini grounding chunks into ordered {title, uri} hints.

    A chunk carries either a ``maps`` or a ``web`` source; ``maps`` wins when
    both are present.
    """
    refs: List[CrossReference] = []
    for chunk in grounding_chunks or []:
        if not isinstance(chunk, Mapping):
            continue
        source = chunk.get("maps") or chunk.get("web") or {}
        if not isinstance(source, Mapping):
            continue
        title = source.get("title")
        uri = source.get("uri")
        if not isinstance(title, str) or not isinstance(uri, str) or not uri:
            logger.debug("Skipping grounding chunk without title/uri: %s", chunk)
            continue
        refs.append(CrossReference(title=title, uri=uri))
    return refs


def as_cross_references(values: Optional[Iterable[Any]]) -> List[CrossReference]:
    """Accept CrossReference objects or plain ``{"title", "uri"}`` mappings."""
    refs: List[CrossReference] = []
    for value in values or []:
        if isinstance(value, CrossReference):
            refs.append(value)
        elif isinstance(value, Mapping):
            title = value.get("title")
            uri = value.get("uri")
            if isinstance(title, str) and isinstance(uri, str) and uri:
                refs.append(CrossReference(title=title, uri=uri))
    return refs


def resolve_maps_uri(name: Optional[str], cross_refs: Sequence[CrossReference]) -> Optional[str]:
    """Return the URI of the first hint whose title contains ``name``, ignoring case."""
    if not name:
        return None
    needle = name.lower()
    for ref in cross_refs:
        if needle in ref.title.lower():
            return ref.uri
    return None


def synthesize_maps_uri(name: str, address: str) -> str:
    # Same escaping as JavaScript's encodeURIComponent.
    return MAPS_SEARCH_URL + quote(f"{name} {address}", safe="!*'()")
