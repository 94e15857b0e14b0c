"""Multi-race payout estimates.

Heuristic only: sequence pools pay on how the whole crowd bet every leg,
which we never see. The ranges start from a typical "favourites all win"
band per bet type and scale up when value-play longshots are carried.
Treat every number from here as an ESTIMATE.
"""

import logging
import math

from trackside.multirace.types import MultiRaceBetType, MultiRaceLeg, PayoutRange

logger = logging.getLogger(__name__)

# Typical payout per $1 when the favourites all win
BASE_PAYOUT_RANGES = {
    MultiRaceBetType.DAILY_DOUBLE: (20.0, 50.0),
    MultiRaceBetType.PICK_3: (50.0, 150.0),
    MultiRaceBetType.PICK_4: (100.0, 300.0),
    MultiRaceBetType.PICK_5: (200.0, 600.0),
    MultiRaceBetType.PICK_6: (500.0, 1500.0),
}

# Longshot count -> (min multiplier, max multiplier); 3 means "3 or more"
LONGSHOT_MULTIPLIERS = {
    0: (1.0, 1.0),
    1: (3.0, 8.0),
    2: (10.0, 30.0),
    3: (30.0, 100.0),
}

LONGSHOT_ODDS_THRESHOLD = 8.0   # odds-to-1
HIGH_AVERAGE_ODDS = 10.0        # above this the max is stretched
HIGH_ODDS_SCALE = 20.0
DEFAULT_ODDS = 5.0              # unknown price


def _round_to(value: float, step: int) -> float:
    return float(math.floor(value / step + 0.5) * step)


def _price(leg: MultiRaceLeg, program_number: int) -> float:
    price = leg.odds_of(program_number)
    return price if price and price > 0 else DEFAULT_ODDS


def count_longshots(legs) -> int:
    """Legs whose value-play horse is in the leg at 8-1 or longer."""
    count = 0
    for leg in legs:
        vp = leg.value_play_number
        if not leg.has_value_play or vp is None or vp not in leg.horses:
            continue
        if _price(leg, vp) >= LONGSHOT_ODDS_THRESHOLD:
            count += 1
    return count


def average_odds(legs) -> float:
    prices = [_price(leg, h) for leg in legs for h in leg.horses]
    if not prices:
        return DEFAULT_ODDS
    return sum(prices) / len(prices)


def estimate_payout(bet_type: MultiRaceBetType, legs) -> PayoutRange:
    """Estimated payout range for a ticket (per base unit).

    Uses the odds each leg carries for its horses; unknown prices count
    as 5-1.
    """
    base_min, base_max = BASE_PAYOUT_RANGES[bet_type]
    longshots = count_longshots(legs)
    mult_min, mult_max = LONGSHOT_MULTIPLIERS[min(longshots, 3)]
    low = base_min * mult_min
    high = base_max * mult_max

    avg = average_odds(legs)
    if avg > HIGH_AVERAGE_ODDS:
        high *= 1 + (avg - HIGH_AVERAGE_ODDS) / HIGH_ODDS_SCALE

    low = max(_round_to(low, 10), base_min)
    high = _round_to(high, 50)
    logger.debug(f"{bet_type.value} payout estimate: {longshots} longshots, avg {avg:.1f} -> {low}-{high}")
    return PayoutRange(low, high)


def payout_scenarios(bet_type: MultiRaceBetType, longshots: int) -> list[tuple[str, PayoutRange]]:
    """Named "what if" bands to show next to a ticket."""
    base_min, base_max = BASE_PAYOUT_RANGES[bet_type]
    scenarios = [("If all favourites hit", PayoutRange(base_min, base_max))]
    if longshots >= 1:
        lo, hi = LONGSHOT_MULTIPLIERS[1]
        scenarios.append((
            "If one longshot hits",
            PayoutRange(_round_to(base_min * lo, 10), _round_to(base_max * hi, 100)),
        ))
    if longshots >= 2:
        lo, hi = LONGSHOT_MULTIPLIERS[2]
        scenarios.append((
            "If both value plays hit",
            PayoutRange(_round_to(base_min * lo, 100), _round_to(base_max * hi, 1000)),
        ))
    return scenarios


def format_payout_range(payout: PayoutRange) -> str:
    """$20 - $50, $1,000 - $4,500, or $15K - $150K+ for big ranges."""
    if payout.max >= 10000:
        return f"${payout.min / 1000:.0f}K - ${payout.max / 1000:.0f}K+"
    return f"${payout.min:,.0f} - ${payout.max:,.0f}"
