"""Shared test fixtures for the wagering engine."""

import pytest

from trackside.config import Settings
from trackside.models import (
    BankrollState,
    HorseCandidate,
    KellySettings,
    RaceAnalysis,
    RaceValueAnalysis,
    ValuePlay,
)


@pytest.fixture
def cfg() -> Settings:
    """Default settings, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def sample_field() -> list[HorseCandidate]:
    """Eight-horse field: two chalk, one alternative, a value bomb, a nuclear longshot, one scratch."""
    return [
        HorseCandidate(1, "Chalk King", "2-1", 3.0, score=195, win_probability=0.40, rank=1),
        HorseCandidate(2, "Second Fiddle", "3-1", 4.0, score=185, win_probability=0.28, rank=2),
        HorseCandidate(3, "Logical Lad", "5-1", 6.0, score=170, win_probability=0.18, rank=3),
        HorseCandidate(4, "Mid Pack", "8-1", 9.0, score=150, win_probability=0.08, rank=4),
        HorseCandidate(5, "Value Bomb", "12-1", 13.0, score=140, win_probability=0.12, rank=5),
        HorseCandidate(6, "Rank Outsider", "30-1", 31.0, score=110, win_probability=0.06, rank=7),
        HorseCandidate(7, "Also Ran", "15-1", 16.0, score=120, win_probability=0.04, rank=6),
        HorseCandidate(8, "Scratched Sam", "20-1", 21.0, score=100, win_probability=0.03, scratched=True),
    ]


@pytest.fixture
def kelly_bankroll() -> BankrollState:
    """$1000 bankroll, $200 left today, quarter Kelly on."""
    return BankrollState(
        current_bankroll=1000.0,
        daily_budget=200.0,
        committed_today=0.0,
        risk_tolerance="moderate",
        kelly=KellySettings(enabled=True, fraction="quarter", max_bet_percent=0.10, min_edge_required=0.05),
    )


def make_race(
    race_number: int,
    edge: float | None = None,
    value_horse: int = 5,
    verdict: str = "PASS",
    field_size: int = 8,
    scratched: tuple[int, ...] = (),
) -> RaceAnalysis:
    """Race with horses 1..N ranked by number, horse n priced at (n+1)-1."""
    horses = tuple(
        HorseCandidate(
            program_number=n,
            name=f"R{race_number} Horse {n}",
            odds_display=f"{n + 1}-1",
            score=200 - n * 10,
            win_probability=max(0.02, 0.30 - n * 0.03),
            rank=n,
            scratched=n in scratched,
        )
        for n in range(1, field_size + 1)
    )
    play = None
    if edge is not None:
        play = ValuePlay(
            program_number=value_horse,
            name=f"R{race_number} Horse {value_horse}",
            edge_percent=edge,
            odds_display=f"{value_horse + 1}-1",
        )
    return RaceAnalysis(
        race_number=race_number,
        horses=horses,
        value=RaceValueAnalysis(
            has_value_play=play is not None,
            primary_value_play=play,
            verdict=verdict,
            confidence="HIGH" if play else "LOW",
        ),
    )


@pytest.fixture
def race_factory():
    return make_race
