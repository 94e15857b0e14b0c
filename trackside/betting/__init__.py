"""Single-race betting: Kelly sizing, exotic combinatorics, tiered menus."""

from trackside.betting.combinatorics import BetKind, can_offer, combinations, cost, permutations
from trackside.betting.instructions import format_amount, parse_instruction, render_instruction
from trackside.betting.kelly import KellyFraction, KellyInput, KellyResult, size, size_batch
from trackside.betting.recommendations import (
    BetCandidate,
    RecommendationSet,
    build_candidate,
    generate_recommendations,
)

__all__ = [
    "BetKind",
    "can_offer",
    "combinations",
    "cost",
    "permutations",
    "format_amount",
    "parse_instruction",
    "render_instruction",
    "KellyFraction",
    "KellyInput",
    "KellyResult",
    "size",
    "size_batch",
    "BetCandidate",
    "RecommendationSet",
    "build_candidate",
    "generate_recommendations",
]
