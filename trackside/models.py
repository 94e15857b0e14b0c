"""Input value objects supplied by the scoring and analysis collaborators.

Everything here is read-only to the engine: frozen dataclasses, tuples for
collections. Builders such as ``horse_from_dict`` accept the loose dict
shapes produced upstream (JSON race cards, scorer output).
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from trackside.odds import (
    MIN_PROBABILITY,
    clamp_probability,
    decimal_to_odds_to_one,
    parse_odds,
    score_to_probability,
)

logger = logging.getLogger(__name__)

VERDICTS = ("BET", "CAUTION", "PASS")
CONFIDENCE_LEVELS = ("HIGH", "MEDIUM", "LOW")
RISK_TOLERANCES = ("conservative", "moderate", "aggressive")


@dataclass(frozen=True)
class HorseCandidate:
    """A scored starter in one race."""

    program_number: int
    name: str
    odds_display: str = ""
    decimal_odds: float | None = None
    score: float = 0.0                    # external model score (0-240)
    win_probability: float | None = None  # 0-1, model estimate
    rank: int | None = None               # model rank, 1 = best
    tier: int | None = None               # 1/2/3; derived from score when None
    scratched: bool = False

    @property
    def effective_odds(self) -> float | None:
        """Decimal odds, falling back to parsing the display string."""
        if self.decimal_odds is not None and self.decimal_odds > 1.0:
            return self.decimal_odds
        return parse_odds(self.odds_display)

    @property
    def odds_to_one(self) -> float:
        odds = self.effective_odds
        return decimal_to_odds_to_one(odds) if odds else 0.0

    @property
    def probability(self) -> float:
        """Win probability, clamped into [0.001, 0.999].

        Converted from score only when the model supplied no probability;
        a supplied value that is not a probability at all counts as the floor.
        """
        if self.win_probability is None:
            return score_to_probability(self.score)
        p = clamp_probability(self.win_probability)
        if p is None:
            logger.warning(f"#{self.program_number} {self.name}: invalid win probability {self.win_probability!r}")
            return MIN_PROBABILITY
        return p


@dataclass(frozen=True)
class ValuePlay:
    """The analysis collaborator's flagged overlay in a race."""

    program_number: int
    name: str
    edge_percent: float      # value edge in %, e.g. 120.0
    odds_display: str = ""
    decimal_odds: float | None = None

    @property
    def odds_to_one(self) -> float:
        odds = self.decimal_odds if self.decimal_odds and self.decimal_odds > 1.0 else parse_odds(self.odds_display)
        return decimal_to_odds_to_one(odds) if odds else 0.0


@dataclass(frozen=True)
class RaceValueAnalysis:
    has_value_play: bool = False
    primary_value_play: ValuePlay | None = None
    verdict: str = "PASS"        # BET / CAUTION / PASS
    confidence: str = "LOW"      # HIGH / MEDIUM / LOW


@dataclass(frozen=True)
class RaceAnalysis:
    """One race on the card: its starters plus the value signal."""

    race_number: int
    horses: tuple[HorseCandidate, ...] = ()
    value: RaceValueAnalysis = field(default_factory=RaceValueAnalysis)

    @property
    def starters(self) -> tuple[HorseCandidate, ...]:
        return tuple(h for h in self.horses if not h.scratched)

    def ranked_starters(self) -> list[HorseCandidate]:
        """Non-scratched horses, best model rank first.

        Horses without a rank are ordered after ranked ones by score.
        """
        return sorted(
            self.starters,
            key=lambda h: (
                h.rank if h.rank is not None else 10_000,
                -h.score,
                h.program_number,
            ),
        )


@dataclass(frozen=True)
class KellySettings:
    """Per-user Kelly preferences carried on the bankroll state."""

    enabled: bool = False
    fraction: str = "quarter"           # full / half / quarter / eighth
    max_bet_percent: float = 0.10       # of bankroll
    min_edge_required: float = 0.10    # b*p - q


@dataclass(frozen=True)
class BankrollState:
    current_bankroll: float
    daily_budget: float
    committed_today: float = 0.0
    risk_tolerance: str = "moderate"
    kelly: KellySettings = field(default_factory=KellySettings)

    @property
    def remaining_budget(self) -> float:
        """What can still be staked today, never more than the bankroll."""
        remaining = min(self.daily_budget - self.committed_today, self.current_bankroll)
        return max(0.0, remaining)


# ──────────────────────────────────────────────
# Builders from loose dicts
# ──────────────────────────────────────────────

def _opt_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def horse_from_dict(data: dict) -> HorseCandidate:
    """Build a HorseCandidate from a scorer dict (JSON race card shape)."""
    rank = data.get("rank")
    tier = data.get("tier")
    return HorseCandidate(
        program_number=int(data["program_number"]),
        name=str(data.get("name", "")),
        odds_display=str(data.get("odds", data.get("odds_display", "")) or ""),
        decimal_odds=_opt_float(data.get("decimal_odds")),
        score=_opt_float(data.get("score")) or 0.0,
        win_probability=_opt_float(data.get("win_probability")),
        rank=int(rank) if rank is not None else None,
        tier=int(tier) if tier is not None else None,
        scratched=bool(data.get("scratched", False)),
    )


def race_from_dict(data: dict) -> RaceAnalysis:
    """Build a RaceAnalysis from ``{"race_number", "horses", "value"}``."""
    value = data.get("value") or {}
    vp = value.get("primary_value_play")
    play = None
    if vp:
        play = ValuePlay(
            program_number=int(vp["program_number"]),
            name=str(vp.get("name", "")),
            edge_percent=_opt_float(vp.get("edge_percent")) or 0.0,
            odds_display=str(vp.get("odds", vp.get("odds_display", "")) or ""),
            decimal_odds=_opt_float(vp.get("decimal_odds")),
        )
    verdict = str(value.get("verdict", "PASS")).upper()
    if verdict not in VERDICTS:
        logger.debug(f"Unknown verdict {verdict!r} for R{data.get('race_number')}, using PASS")
        verdict = "PASS"
    return RaceAnalysis(
        race_number=int(data["race_number"]),
        horses=tuple(horse_from_dict(h) for h in data.get("horses", [])),
        value=RaceValueAnalysis(
            has_value_play=bool(value.get("has_value_play", play is not None)),
            primary_value_play=play,
            verdict=verdict,
            confidence=str(value.get("confidence", "LOW")).upper(),
        ),
    )


def bankroll_from_dict(data: dict) -> BankrollState:
    kelly = data.get("kelly") or {}
    return BankrollState(
        current_bankroll=float(data.get("current_bankroll", 0.0)),
        daily_budget=float(data.get("daily_budget", 0.0)),
        committed_today=float(data.get("committed_today", 0.0)),
        risk_tolerance=str(data.get("risk_tolerance", "moderate")),
        kelly=KellySettings(
            enabled=bool(kelly.get("enabled", False)),
            fraction=str(kelly.get("fraction", "quarter")),
            max_bet_percent=float(kelly.get("max_bet_percent", 0.10)),
            min_edge_required=float(kelly.get("min_edge_required", 0.10)),
        ),
    )
