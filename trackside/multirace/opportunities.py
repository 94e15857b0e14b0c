"""Scan a race card for multi-race windows worth playing.

Single pass per call:

  1. Per race: does it have a valid value play (edge >= 50%), and is that
     play strong enough to single (edge >= 100%)?
  2. Every contiguous window for every offered bet type gets a rough
     combination estimate (1 per singleable race, 2.5 per competitive
     race, 3.5 per wide-open one, multiplied).
  3. Quality: PRIME / GOOD / MARGINAL from value plays, singles and the
     estimate. MARGINAL is shown to experts only.
  4. Rank by quality, value plays, card position; keep the best window
     of each bet type and drop later same-type windows that overlap it.

The combination estimate here is only a proxy for classification. The
ticket builder counts the real combinations from the horses it picks.
"""

import logging
import math

from trackside.config import Settings, get_settings
from trackside.models import RaceAnalysis
from trackside.multirace.types import (
    BET_TYPE_ORDER,
    MULTI_RACE_CONFIGS,
    ExperienceLevel,
    MultiRaceOpportunity,
    Quality,
    ValuePlayRef,
    available_bet_types,
)

logger = logging.getLogger(__name__)

# Scan-time weight per race in the combination estimate
ESTIMATED_COMBO_WEIGHTS = {
    "singleable": 1.0,
    "competitive": 2.5,    # verdict BET or CAUTION
    "open": 3.5,           # verdict PASS
}
COMPETITIVE_VERDICTS = {"BET", "CAUTION"}

PRIME_MIN_VALUE_PLAYS = 2
PRIME_MIN_SINGLEABLE = 1
GOOD_MIN_VALUE_PLAYS = 1


# ──────────────────────────────────────────────
# Per-race signals
# ──────────────────────────────────────────────

def has_valid_value_play(race: RaceAnalysis, settings: Settings | None = None) -> bool:
    cfg = settings or get_settings()
    va = race.value
    if not va.has_value_play or va.primary_value_play is None:
        return False
    return va.primary_value_play.edge_percent >= cfg.value_play_min_edge


def is_singleable(race: RaceAnalysis, settings: Settings | None = None) -> bool:
    """Value play strong enough to carry the leg alone."""
    cfg = settings or get_settings()
    if not has_valid_value_play(race, cfg):
        return False
    return race.value.primary_value_play.edge_percent >= cfg.singleable_min_edge


def _race_weight(race: RaceAnalysis, settings: Settings) -> float:
    if is_singleable(race, settings):
        return ESTIMATED_COMBO_WEIGHTS["singleable"]
    if race.value.verdict in COMPETITIVE_VERDICTS:
        return ESTIMATED_COMBO_WEIGHTS["competitive"]
    return ESTIMATED_COMBO_WEIGHTS["open"]


def estimate_combinations(races, settings: Settings | None = None) -> int:
    """Rough ticket size for a window, used only to classify quality."""
    cfg = settings or get_settings()
    total = 1.0
    for race in races:
        total *= _race_weight(race, cfg)
    return int(math.floor(total + 0.5))


def classify_quality(
    value_plays: int,
    singleable: int,
    estimated: int,
    settings: Settings | None = None,
) -> Quality:
    cfg = settings or get_settings()
    if (
        value_plays >= PRIME_MIN_VALUE_PLAYS
        and singleable >= PRIME_MIN_SINGLEABLE
        and estimated <= cfg.prime_max_combinations
    ):
        return Quality.PRIME
    if value_plays >= GOOD_MIN_VALUE_PLAYS and estimated <= cfg.good_max_combinations:
        return Quality.GOOD
    return Quality.MARGINAL


def _reasoning(value_plays: list[ValuePlayRef], estimated: int) -> str:
    parts = []
    if len(value_plays) > 1:
        parts.append(f"{len(value_plays)} value plays in sequence")
    elif value_plays:
        parts.append(f"Value play in R{value_plays[0].race_number}")
    singles = [f"R{vp.race_number}" for vp in value_plays if vp.singleable]
    if singles:
        parts.append(f"Can single {', '.join(singles)}")
    parts.append(f"~{estimated} combos")
    return ". ".join(parts) + "."


def _is_consecutive(races) -> bool:
    numbers = [r.race_number for r in races]
    return all(b - a == 1 for a, b in zip(numbers, numbers[1:]))


# ──────────────────────────────────────────────
# Scan
# ──────────────────────────────────────────────

def sort_key(opp: MultiRaceOpportunity) -> tuple:
    """Total order: quality, more value plays, earlier start, bet type."""
    return (opp.quality.rank, -opp.value_play_count, opp.start_index, BET_TYPE_ORDER[opp.bet_type])


def scan_windows(
    races,
    experience: ExperienceLevel | str = ExperienceLevel.EXPERT,
    settings: Settings | None = None,
) -> list[MultiRaceOpportunity]:
    """Every window for every offered bet type, classified but unfiltered."""
    cfg = settings or get_settings()
    card = list(races)
    found = []
    for bet_type in available_bet_types(experience):
        size = MULTI_RACE_CONFIGS[bet_type].race_count
        for start in range(0, len(card) - size + 1):
            window = card[start:start + size]
            if not _is_consecutive(window):
                logger.debug(f"{bet_type.value} at index {start}: race numbers not consecutive, skipped")
                continue

            plays = []
            singleable = 0
            for race in window:
                if not has_valid_value_play(race, cfg):
                    continue
                vp = race.value.primary_value_play
                single = is_singleable(race, cfg)
                singleable += int(single)
                plays.append(ValuePlayRef(
                    race_number=race.race_number,
                    program_number=vp.program_number,
                    name=vp.name,
                    edge_percent=vp.edge_percent,
                    singleable=single,
                ))

            estimated = estimate_combinations(window, cfg)
            quality = classify_quality(len(plays), singleable, estimated, cfg)
            found.append(MultiRaceOpportunity(
                bet_type=bet_type,
                race_numbers=tuple(r.race_number for r in window),
                start_index=start,
                quality=quality,
                value_play_count=len(plays),
                singleable_count=singleable,
                estimated_combinations=estimated,
                value_plays=tuple(plays),
                reasoning=_reasoning(plays, estimated),
            ))
    return found


def deduplicate(opportunities) -> list[MultiRaceOpportunity]:
    """Keep the best window per bet type; drop same-type windows overlapping a kept one.

    Input must already be ranked. Different bet types may overlap freely.
    """
    kept: list[MultiRaceOpportunity] = []
    claimed: dict = {}
    for opp in opportunities:
        races = claimed.setdefault(opp.bet_type, set())
        if races & set(opp.race_numbers):
            continue
        kept.append(opp)
        races.update(opp.race_numbers)
    return kept


def find_opportunities(
    races,
    experience: ExperienceLevel | str = ExperienceLevel.STANDARD,
    settings: Settings | None = None,
) -> list[MultiRaceOpportunity]:
    """Ranked, de-duplicated multi-race opportunities on a card.

    Args:
        races: RaceAnalysis list in card order.
        experience: beginner sees nothing, standard sees doubles and pick-3s,
            expert sees everything including MARGINAL windows. An unknown
            level sees nothing.
    """
    cfg = settings or get_settings()
    try:
        level = ExperienceLevel(experience)
    except ValueError:
        logger.warning(f"Unknown experience level {experience!r}; no multi-race opportunities")
        return []
    windows = scan_windows(races, level, cfg)
    if level is not ExperienceLevel.EXPERT:
        windows = [w for w in windows if w.quality is not Quality.MARGINAL]
    ranked = sorted(windows, key=sort_key)
    result = deduplicate(ranked)
    logger.info(
        f"Multi-race scan: {len(windows)} windows, {len(result)} opportunities "
        f"({sum(1 for o in result if o.quality is Quality.PRIME)} prime)"
    )
    return result


def best_opportunity(
    races,
    experience: ExperienceLevel | str = ExperienceLevel.STANDARD,
    settings: Settings | None = None,
) -> MultiRaceOpportunity | None:
    found = find_opportunities(races, experience, settings)
    return found[0] if found else None


def has_opportunities(
    races,
    experience: ExperienceLevel | str = ExperienceLevel.STANDARD,
    settings: Settings | None = None,
) -> bool:
    return bool(find_opportunities(races, experience, settings))
