"""Potential-return estimates for single-race bets.

These are ESTIMATES. Exotic payouts depend on pool sizes and how the rest
of the crowd bets; the tables below are rough multipliers on the involved
horses' odds, good enough to compare bet shapes, never a promised payout.
All odds here are odds-to-1 (5.0 for a 5-1 shot).
"""

from dataclasses import dataclass

from trackside.betting.combinatorics import BetKind

# Share of the win odds a single pays: place ~1/2, show ~1/3
SINGLE_RETURN_SHARE = {
    "win": 1.0,
    "place": 0.5,
    "show": 1.0 / 3.0,
}

# family: (min factor on avg odds, max factor on max*avg odds)
EXOTIC_RETURN_FACTORS = {
    "quinella": (1.5, 0.5),
    "exacta": (2.0, 1.0),
    "trifecta": (5.0, 3.0),
    "superfecta": (20.0, 10.0),
}

DEFAULT_ODDS = 5.0  # used when no involved horse has readable odds


@dataclass(frozen=True)
class ReturnRange:
    min: float = 0.0
    max: float = 0.0

    def __add__(self, other: "ReturnRange") -> "ReturnRange":
        return ReturnRange(round(self.min + other.min, 2), round(self.max + other.max, 2))


def estimate_return(kind: BetKind, total_cost: float, odds) -> ReturnRange:
    """Estimated (min, max) gross return of a bet costing ``total_cost``.

    ``odds`` are the odds-to-1 of the horses involved in the bet.
    """
    prices = [o for o in odds if o and o > 0] or [DEFAULT_ODDS]
    lo, hi = min(prices), max(prices)
    avg = sum(prices) / len(prices)

    if kind.family in SINGLE_RETURN_SHARE:
        share = SINGLE_RETURN_SHARE[kind.family]
        return ReturnRange(
            round(total_cost * (lo * share + 1), 2),
            round(total_cost * (hi * share + 1), 2),
        )

    min_factor, max_factor = EXOTIC_RETURN_FACTORS[kind.family]
    low = round(total_cost * (avg * min_factor + 1), 2)
    high = round(total_cost * (hi * avg * max_factor + 1), 2)
    # Short-priced combinations can invert the two formulas
    return ReturnRange(low, max(low, high))
