"""Tests for input value objects and dict builders."""

import pytest

from trackside.models import (
    BankrollState,
    HorseCandidate,
    bankroll_from_dict,
    horse_from_dict,
    race_from_dict,
)


class TestHorseCandidate:
    def test_effective_odds_from_display(self):
        h = HorseCandidate(1, "Display Only", "9/2")
        assert h.effective_odds == 5.5
        assert h.odds_to_one == 4.5

    def test_decimal_odds_preferred(self):
        h = HorseCandidate(1, "Both", "5-1", decimal_odds=7.0)
        assert h.effective_odds == 7.0

    def test_unpriced(self):
        h = HorseCandidate(1, "No Price")
        assert h.effective_odds is None
        assert h.odds_to_one == 0.0

    def test_probability_falls_back_to_score(self):
        h = HorseCandidate(1, "Scored", "5-1", score=200)
        assert h.probability == pytest.approx(0.75)

    def test_probability_supplied(self):
        assert HorseCandidate(1, "Modelled", win_probability=0.3).probability == 0.3

    def test_zero_probability_clamped_not_replaced(self):
        h = HorseCandidate(1, "No Chance", "5-1", score=190, win_probability=0.0)
        assert h.probability == pytest.approx(0.001)

    def test_certainty_clamped(self):
        assert HorseCandidate(1, "Lock", score=100, win_probability=1.0).probability == pytest.approx(0.999)

    def test_percent_probability(self):
        assert HorseCandidate(1, "Percent", win_probability=30).probability == pytest.approx(0.30)

    def test_invalid_probability_is_floor(self):
        assert HorseCandidate(1, "Junk", score=200, win_probability=float("nan")).probability == pytest.approx(0.001)
        assert HorseCandidate(1, "Junk", score=200, win_probability=-0.2).probability == pytest.approx(0.001)


class TestBankrollState:
    def test_remaining_budget(self):
        assert BankrollState(1000, 200, committed_today=50).remaining_budget == 150

    def test_remaining_capped_by_bankroll(self):
        assert BankrollState(80, 200).remaining_budget == 80

    def test_never_negative(self):
        assert BankrollState(1000, 100, committed_today=150).remaining_budget == 0.0


class TestBuilders:
    def test_horse_from_dict(self):
        h = horse_from_dict({"program_number": "4", "name": "Dict Horse", "odds": "8-1", "score": "171.5", "rank": 2})
        assert h.program_number == 4
        assert h.odds_display == "8-1"
        assert h.score == 171.5
        assert h.rank == 2
        assert h.win_probability is None
        assert h.scratched is False

    def test_race_from_dict(self):
        race = race_from_dict({
            "race_number": 3,
            "horses": [
                {"program_number": 1, "name": "A", "odds": "3-1", "rank": 2},
                {"program_number": 2, "name": "B", "odds": "2-1", "rank": 1},
                {"program_number": 3, "name": "C", "odds": "9-1", "scratched": True},
            ],
            "value": {
                "verdict": "bet",
                "primary_value_play": {"program_number": 1, "name": "A", "edge_percent": 75, "odds": "3-1"},
            },
        })
        assert race.race_number == 3
        assert race.value.verdict == "BET"
        assert race.value.has_value_play is True
        assert race.value.primary_value_play.odds_to_one == 3.0
        assert [h.program_number for h in race.ranked_starters()] == [2, 1]

    def test_unknown_verdict(self):
        race = race_from_dict({"race_number": 1, "value": {"verdict": "MAYBE"}})
        assert race.value.verdict == "PASS"
        assert race.value.has_value_play is False
        assert race.horses == ()

    def test_bankroll_from_dict(self):
        b = bankroll_from_dict({
            "current_bankroll": 500,
            "daily_budget": 100,
            "kelly": {"enabled": True, "fraction": "half"},
        })
        assert b.remaining_budget == 100
        assert b.kelly.enabled is True
        assert b.kelly.fraction == "half"
        assert b.kelly.max_bet_percent == 0.10
