"""Multi-race bet types, opportunities and tickets."""

import logging
from dataclasses import dataclass
from enum import Enum

from trackside.betting.instructions import render_sequence_script

logger = logging.getLogger(__name__)


class MultiRaceBetType(str, Enum):
    DAILY_DOUBLE = "DAILY_DOUBLE"
    PICK_3 = "PICK_3"
    PICK_4 = "PICK_4"
    PICK_5 = "PICK_5"
    PICK_6 = "PICK_6"


class Quality(str, Enum):
    PRIME = "PRIME"
    GOOD = "GOOD"
    MARGINAL = "MARGINAL"

    @property
    def rank(self) -> int:
        return QUALITY_RANK[self]


class LegStrategy(str, Enum):
    SINGLE = "SINGLE"
    SPREAD = "SPREAD"


class RiskStyle(str, Enum):
    SAFE = "safe"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    STANDARD = "standard"
    EXPERT = "expert"


QUALITY_RANK = {Quality.PRIME: 0, Quality.GOOD: 1, Quality.MARGINAL: 2}
EXPERIENCE_RANK = {ExperienceLevel.BEGINNER: 0, ExperienceLevel.STANDARD: 1, ExperienceLevel.EXPERT: 2}


@dataclass(frozen=True)
class BetTypeConfig:
    bet_type: MultiRaceBetType
    label: str
    race_count: int
    cost_per_combination: float
    min_experience: ExperienceLevel
    description: str


MULTI_RACE_CONFIGS = {
    MultiRaceBetType.DAILY_DOUBLE: BetTypeConfig(
        MultiRaceBetType.DAILY_DOUBLE, "DAILY DOUBLE", 2, 2.0, ExperienceLevel.STANDARD,
        "Pick the winners of two consecutive races",
    ),
    MultiRaceBetType.PICK_3: BetTypeConfig(
        MultiRaceBetType.PICK_3, "PICK 3", 3, 1.0, ExperienceLevel.STANDARD,
        "Pick the winners of three consecutive races",
    ),
    MultiRaceBetType.PICK_4: BetTypeConfig(
        MultiRaceBetType.PICK_4, "PICK 4", 4, 1.0, ExperienceLevel.EXPERT,
        "Pick the winners of four consecutive races",
    ),
    MultiRaceBetType.PICK_5: BetTypeConfig(
        MultiRaceBetType.PICK_5, "PICK 5", 5, 0.5, ExperienceLevel.EXPERT,
        "Pick the winners of five consecutive races",
    ),
    MultiRaceBetType.PICK_6: BetTypeConfig(
        MultiRaceBetType.PICK_6, "PICK 6", 6, 0.5, ExperienceLevel.EXPERT,
        "Pick the winners of six consecutive races",
    ),
}

# Position in the config table, used as the last sort tie-break
BET_TYPE_ORDER = {bt: i for i, bt in enumerate(MULTI_RACE_CONFIGS)}


@dataclass(frozen=True)
class RiskStyleRules:
    allow_singles: bool
    min_horses: int    # per SPREAD leg
    max_horses: int


RISK_STYLE_RULES = {
    RiskStyle.SAFE: RiskStyleRules(allow_singles=False, min_horses=3, max_horses=4),
    RiskStyle.BALANCED: RiskStyleRules(allow_singles=True, min_horses=2, max_horses=3),
    RiskStyle.AGGRESSIVE: RiskStyleRules(allow_singles=True, min_horses=2, max_horses=2),
}


def available_bet_types(experience: ExperienceLevel | str) -> list[MultiRaceBetType]:
    """Bet types offered at an experience level (none for beginners or unknown levels)."""
    try:
        level = ExperienceLevel(experience)
    except ValueError:
        logger.warning(f"Unknown experience level {experience!r}; no multi-race bet types offered")
        return []
    if level is ExperienceLevel.BEGINNER:
        return []
    return [
        bt for bt, cfg in MULTI_RACE_CONFIGS.items()
        if EXPERIENCE_RANK[cfg.min_experience] <= EXPERIENCE_RANK[level]
    ]


@dataclass(frozen=True)
class PayoutRange:
    """Estimated payout of a $1-denominated ticket. An estimate only."""

    min: float
    max: float


@dataclass(frozen=True)
class ValuePlayRef:
    """Which horse carried the value in a race of a window."""

    race_number: int
    program_number: int
    name: str
    edge_percent: float
    singleable: bool


@dataclass(frozen=True)
class MultiRaceOpportunity:
    bet_type: MultiRaceBetType
    race_numbers: tuple[int, ...]
    start_index: int                    # position of the first race on the card
    quality: Quality
    value_play_count: int
    singleable_count: int
    estimated_combinations: int         # scan-time proxy, not the ticket's count
    value_plays: tuple[ValuePlayRef, ...] = ()
    reasoning: str = ""

    @property
    def config(self) -> BetTypeConfig:
        return MULTI_RACE_CONFIGS[self.bet_type]

    @property
    def start_race(self) -> int:
        return self.race_numbers[0]

    @property
    def end_race(self) -> int:
        return self.race_numbers[-1]

    def overlaps(self, other: "MultiRaceOpportunity") -> bool:
        return bool(set(self.race_numbers) & set(other.race_numbers))


@dataclass(frozen=True)
class MultiRaceLeg:
    """One race of a ticket. Horses are in selection-priority order."""

    race_number: int
    horses: tuple[int, ...]
    strategy: LegStrategy
    has_value_play: bool = False
    value_play_number: int | None = None
    odds: tuple[float, ...] = ()        # odds-to-1, parallel to horses
    reasoning: str = ""

    def __post_init__(self):
        if self.strategy is LegStrategy.SINGLE and len(self.horses) != 1:
            raise ValueError(
                f"SINGLE leg in R{self.race_number} must have exactly one horse, got {len(self.horses)}"
            )
        if self.odds and len(self.odds) != len(self.horses):
            raise ValueError(f"R{self.race_number}: odds must line up with horses")

    @property
    def size(self) -> int:
        return len(self.horses)

    def odds_of(self, program_number: int) -> float | None:
        if not self.odds or program_number not in self.horses:
            return None
        return self.odds[self.horses.index(program_number)]


@dataclass(frozen=True)
class MultiRaceTicket:
    """A costed sequence ticket.

    Combinations and cost are derived from the legs on access, so they
    always agree with them.
    """

    bet_type: MultiRaceBetType
    legs: tuple[MultiRaceLeg, ...]
    cost_per_combination: float
    potential_payout: PayoutRange
    confidence: str                     # HIGH / MEDIUM / LOW
    quality: Quality
    value_play_count: int
    risk_style: RiskStyle | None        # None when the requested style was unknown
    is_valid: bool = True
    warnings: tuple[str, ...] = ()
    was_trimmed: bool = False
    explanation: str = ""

    @property
    def config(self) -> BetTypeConfig:
        return MULTI_RACE_CONFIGS[self.bet_type]

    @property
    def race_numbers(self) -> tuple[int, ...]:
        return tuple(leg.race_number for leg in self.legs)

    @property
    def combinations(self) -> int:
        if not self.legs:
            return 0
        total = 1
        for leg in self.legs:
            total *= leg.size
        return total

    @property
    def total_cost(self) -> float:
        return round(self.combinations * self.cost_per_combination, 2)

    @property
    def combination_math(self) -> str:
        """Per-leg sizes multiplied out, e.g. "2 × 1 × 3 = 6"."""
        if not self.legs:
            return "0"
        return " × ".join(str(leg.size) for leg in self.legs) + f" = {self.combinations}"

    @property
    def what_to_say(self) -> str:
        if not self.legs:
            return ""
        return render_sequence_script(
            self.config.label,
            self.race_numbers,
            [leg.horses for leg in self.legs],
            self.cost_per_combination,
        )
