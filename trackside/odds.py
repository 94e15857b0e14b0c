"""Odds parsing and probability conversions.

Tote boards and morning lines publish odds as fractional strings
("5-1", "9/2", "EVEN"); the engine works in decimal odds (stake included).
Parsers return None for anything unreadable rather than raising.
"""

import logging
import math
import re

logger = logging.getLogger(__name__)

_EVEN_TOKENS = {"EVEN", "EVN", "EVENS"}
_FRACTION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[-/:]\s*(\d+(?:\.\d+)?)\s*$")
_NUMBER_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*$")

# Score band -> calibrated win probability (%), best band first.
# Used only when the scorer supplies a score without a probability.
SCORE_PROBABILITY_BANDS = [
    (200.0, 75.0),
    (181.0, 65.0),
    (161.0, 55.0),
    (141.0, 45.0),
    (121.0, 35.0),
    (101.0, 25.0),
    (0.0, 15.0),
]
MAX_SCORE = 240.0
MIN_SCORE_PROBABILITY = 0.05
MAX_SCORE_PROBABILITY = 0.85

# Supplied probabilities are kept strictly inside (0, 1)
MIN_PROBABILITY = 0.001
MAX_PROBABILITY = 0.999


def parse_odds(display: str | None) -> float | None:
    """Parse an odds display string into decimal odds.

    "5-1" -> 6.0, "9/2" -> 5.5, "EVEN" -> 2.0. A bare number is taken as
    decimal odds already ("6.0" -> 6.0). Returns None if unparseable.
    """
    if display is None:
        return None
    text = str(display).strip().upper()
    if not text:
        return None
    if text in _EVEN_TOKENS:
        return 2.0

    m = _FRACTION_RE.match(text)
    if m:
        num, den = float(m.group(1)), float(m.group(2))
        if den <= 0:
            logger.debug(f"Zero denominator in odds {display!r}")
            return None
        return fractional_to_decimal(num, den)

    m = _NUMBER_RE.match(text)
    if m:
        value = float(m.group(1))
        return value if value > 1.0 else None

    logger.debug(f"Unparseable odds {display!r}")
    return None


def fractional_to_decimal(numerator: float, denominator: float = 1.0) -> float:
    """5/1 -> 6.0."""
    return round(numerator / denominator + 1.0, 4)


def american_to_decimal(american: float) -> float | None:
    """+400 -> 5.0, -200 -> 1.5. Returns None for values in (-100, 100)."""
    if american >= 100:
        return round(american / 100.0 + 1.0, 4)
    if american <= -100:
        return round(100.0 / abs(american) + 1.0, 4)
    return None


def decimal_to_odds_to_one(decimal_odds: float) -> float:
    """Decimal odds minus the returned stake (6.0 -> 5.0)."""
    return max(0.0, decimal_odds - 1.0)


def format_odds_to_one(decimal_odds: float) -> str:
    """Render decimal odds the way a tote board shows them (6.0 -> "5-1")."""
    odds = decimal_to_odds_to_one(decimal_odds)
    if abs(odds - 1.0) < 1e-9:
        return "EVEN"
    if abs(odds - round(odds)) < 1e-9:
        return f"{int(round(odds))}-1"
    # Halves and fifths cover the usual tote increments
    for den in (2, 5, 10):
        num = odds * den
        if abs(num - round(num)) < 1e-6:
            return f"{int(round(num))}-{den}"
    return f"{odds:.2f}-1"


def implied_probability(decimal_odds: float) -> float:
    """Market-implied win probability (6.0 -> 0.1667)."""
    if not decimal_odds or decimal_odds <= 1.0 or not math.isfinite(decimal_odds):
        return 0.0
    return 1.0 / decimal_odds


def overlay_percent(probability: float, decimal_odds: float) -> float:
    """How far the estimate exceeds the market, as a % of the implied probability."""
    implied = implied_probability(decimal_odds)
    if implied <= 0:
        return 0.0
    return (probability - implied) / implied * 100.0


def score_to_probability(score: float) -> float:
    """Convert a 0-240 model score into a calibrated win probability.

    Interpolates linearly inside each score band towards the next band up,
    clamped to [0.05, 0.85].
    """
    s = max(0.0, min(MAX_SCORE, float(score)))
    upper_bound = MAX_SCORE
    next_prob = None
    for min_score, prob in SCORE_PROBABILITY_BANDS:
        if s >= min_score:
            band = upper_bound - min_score
            position = (s - min_score) / band if band > 0 else 0.0
            target = next_prob if next_prob is not None else prob + 10.0
            value = (prob + position * (target - prob)) / 100.0
            return max(MIN_SCORE_PROBABILITY, min(MAX_SCORE_PROBABILITY, value))
        upper_bound = min_score
        next_prob = prob
    return MIN_SCORE_PROBABILITY


def clamp_probability(probability) -> float | None:
    """Clamp into [0.001, 0.999]; values in (1, 100] are read as percentages.

    None for anything that cannot be a probability (NaN, negative, > 100,
    non-numeric).
    """
    if isinstance(probability, bool) or not isinstance(probability, (int, float)):
        return None
    if not math.isfinite(probability) or probability < 0:
        return None
    p = float(probability)
    if p > 1.0:
        if p > 100.0:
            return None
        p = p / 100.0
    return max(MIN_PROBABILITY, min(MAX_PROBABILITY, p))
