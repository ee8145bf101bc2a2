"""MCP server exposing POD photo extraction and scoring tools."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from .classifier import classify
from .config import IngestionConfig, get_policy
from .crawler import TrackingPageFetcher
from .models import ScoreInputs
from .scoring import quality_tier, score
from .temperature import readings_compliant
from .utils import extract_tracking_token

logger = logging.getLogger("chilltrack.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="chilltrack")


@mcp.tool()
async def extract_photos(tracking_link: str, tier: str = "full") -> List[dict]:
    """Render a tracking page and return its classified delivery photos and signatures."""
    token = extract_tracking_token(tracking_link)
    if not token:
        raise ValueError(f"Could not derive a tracking token from {tracking_link}")
    policy = get_policy(tier)
    async with TrackingPageFetcher(IngestionConfig.from_env()) as fetcher:
        candidates = await fetcher(token)
    return [photo.to_dict() for photo in classify(candidates, policy)]


@mcp.tool()
async def score_delivery(
    photo_count: int,
    has_signature: bool,
    has_receiver_name: bool,
    expected_temperature: Optional[str] = None,
    readings: Optional[List[float]] = None,
) -> dict:
    """Compute the POD quality score for one delivery."""
    result = score(
        ScoreInputs(
            photo_count=photo_count,
            has_signature=has_signature,
            has_receiver_name=has_receiver_name,
            temperature_compliant=readings_compliant(expected_temperature, readings or []),
        )
    )
    return {
        "quality_score": result.quality_score,
        "tier": quality_tier(result.quality_score),
        "breakdown": asdict(result.breakdown),
    }


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
