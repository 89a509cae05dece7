"""Heuristics deciding which grounding tools a chat request may use."""

from __future__ import annotations

from dataclasses import dataclass

SEARCH_KEYWORDS: tuple[str, ...] = ("search", "latest")
MAPS_KEYWORDS: tuple[str, ...] = ("location", "near me")


@dataclass(frozen=True)
class GroundingFlags:
    use_search: bool
    use_maps: bool


def infer_grounding_flags(text: str) -> GroundingFlags:
    """Derive search/maps grounding from plain substring matches.

    Case-insensitive and deliberately naive: "research" enables search and
    "relocation" enables maps.
    """
    lowered = text.lower()
    return GroundingFlags(
        use_search=any(keyword in lowered for keyword in SEARCH_KEYWORDS),
        use_maps=any(keyword in lowered for keyword in MAPS_KEYWORDS),
    )
