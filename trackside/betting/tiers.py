"""Value tiers for a race's starters.

Tier 1 "cover the chalk" horses are the model's strongest, tier 2 the
logical alternatives, tier 3 everything below: the pool value bombs are
picked from.
"""

import logging
from dataclasses import dataclass

from trackside.config import Settings, get_settings
from trackside.models import HorseCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierProfile:
    tier: int
    name: str
    description: str
    base_stake: float
    expected_hit_rate: float   # share of races this tier's bets cash (rough)
    confidence: int            # headline confidence for the tier's bets


TIER_PROFILES = {
    1: TierProfile(
        tier=1,
        name="Cover the Chalk",
        description="Top-rated horses; strongest probability of winning.",
        base_stake=10.0,
        expected_hit_rate=0.35,
        confidence=80,
    ),
    2: TierProfile(
        tier=2,
        name="Logical Alternatives",
        description="Competitive horses with upset potential at better prices.",
        base_stake=5.0,
        expected_hit_rate=0.15,
        confidence=60,
    ),
    3: TierProfile(
        tier=3,
        name="Value Bombs",
        description="Longshot overlays; small stakes for outsized returns.",
        base_stake=2.0,
        expected_hit_rate=0.05,
        confidence=40,
    ),
}


def classify_tier(score: float, settings: Settings | None = None) -> int:
    """1 at or above the tier-1 score, 2 at or above tier-2, else 3."""
    cfg = settings or get_settings()
    if score >= cfg.tier1_min_score:
        return 1
    if score >= cfg.tier2_min_score:
        return 2
    return 3


def tier_of(horse: HorseCandidate, settings: Settings | None = None) -> int:
    """The horse's explicit tier if the scorer set one, else from score."""
    if horse.tier in (1, 2, 3):
        return horse.tier
    return classify_tier(horse.score, settings)


def group_by_tier(
    horses,
    settings: Settings | None = None,
) -> dict[int, list[HorseCandidate]]:
    """Non-scratched horses bucketed by tier, best score first in each."""
    groups: dict[int, list[HorseCandidate]] = {1: [], 2: [], 3: []}
    for h in horses:
        if h.scratched:
            continue
        groups[tier_of(h, settings)].append(h)
    for tier, members in groups.items():
        members.sort(key=lambda h: (-h.score, h.program_number))
        logger.debug(f"Tier {tier}: {[h.program_number for h in members]}")
    return groups
