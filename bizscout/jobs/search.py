"""CLI job that runs a business search and prints normalized results."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from bizscout.analysis.density import analyze, points_of
from bizscout.analysis.stats import summarize
from bizscout.core.config import ConfigError, get_settings, require_api_key
from bizscout.etl.grounding import extract_cross_references
from bizscout.etl.normalizer import normalize_result
from bizscout.models import Business
from bizscout.vendors import gemini

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchOutcome:
    businesses: List[Business] = field(default_factory=list)
    recovered: bool = False


def _name_key(business: Business) -> str:
    return business.name.strip().lower()


def merge_pages(existing: Sequence[Business], incoming: Iterable[Business]) -> List[Business]:
    """Append incoming records whose name is not already held; first occurrence wins."""
    merged = list(existing)
    seen = {_name_key(b) for b in merged}
    for business in incoming:
        key = _name_key(business)
        if key in seen:
            logger.debug("Dropping duplicate business %s", business.name)
            continue
        seen.add(key)
        merged.append(business)
    return merged


def run_search(
    industry: str,
    location: str,
    language: Optional[str] = None,
    exclude_names: Iterable[str] = (),
) -> SearchOutcome:
    industry = (industry or "").strip()
    location = (location or "").strip()
    if not industry or not location:
        raise ValueError("industry and location are required")

    settings = get_settings()
    api_key = require_api_key(settings)

    prompt = gemini.build_prompt(industry, location, language or settings.language, exclude_names)
    logger.info("Searching %s in %s", industry, location)
    text, chunks = gemini.generate_listing(
        prompt,
        api_key=api_key,
        model=settings.gemini_model,
        timeout=settings.request_timeout,
    )

    result = normalize_result(text, industry, location, extract_cross_references(chunks))
    if not result.recovered:
        logger.warning("Model output for %s in %s could not be parsed.", industry, location)
    return SearchOutcome(businesses=result.businesses, recovered=result.recovered)


def load_more(
    industry: str,
    location: str,
    existing: Sequence[Business],
    language: Optional[str] = None,
) -> SearchOutcome:
    """Fetch another page excluding names already held and merge it in."""
    outcome = run_search(industry, location, language, exclude_names=[b.name for b in existing])
    merged = merge_pages(existing, outcome.businesses)
    logger.info("Load more added %d businesses (total=%d)", len(merged) - len(existing), len(merged))
    return SearchOutcome(businesses=merged, recovered=outcome.recovered)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search businesses by industry and location")
    parser.add_argument("--industry", required=True, help="Industry or category, e.g. 'coffee'")
    parser.add_argument("--location", required=True, help="Area to search, e.g. 'District 1, HCMC'")
    parser.add_argument("--language", choices=("vi", "en"), help="Language of returned values")
    parser.add_argument("--density", action="store_true", help="Include the density grid in the output")
    parser.add_argument(
        "--grid-size",
        dest="grid_size",
        type=int,
        default=get_settings().grid_size,
        help="Density grid resolution (cells per side)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        outcome = run_search(args.industry, args.location, args.language)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except Exception as exc:  # noqa: BLE001
        logger.error("Search failed: %s", exc, exc_info=True)
        raise SystemExit(1) from exc

    stats = summarize(outcome.businesses)
    output = {
        "recovered": outcome.recovered,
        "businesses": [b.to_dict() for b in outcome.businesses],
        "stats": stats.to_dict() if stats else None,
    }
    if args.density:
        output["density"] = [cell.to_dict() for cell in analyze(points_of(outcome.businesses), args.grid_size)]
    print(json.dumps(output, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
