"""Tests for multi-race opportunity scanning."""

from trackside.multirace.opportunities import (
    best_opportunity,
    classify_quality,
    deduplicate,
    estimate_combinations,
    find_opportunities,
    has_opportunities,
    has_valid_value_play,
    is_singleable,
    scan_windows,
    sort_key,
)
from trackside.multirace.types import (
    ExperienceLevel,
    MultiRaceBetType,
    MultiRaceOpportunity,
    Quality,
    available_bet_types,
)


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _opp(bet_type, races, quality, value_plays=0, start_index=None) -> MultiRaceOpportunity:
    """Hand-built opportunity for ordering and dedupe checks."""
    return MultiRaceOpportunity(
        bet_type=bet_type,
        race_numbers=tuple(races),
        start_index=races[0] - 1 if start_index is None else start_index,
        quality=quality,
        value_play_count=value_plays,
        singleable_count=0,
        estimated_combinations=10,
    )


class TestRaceSignals:
    def test_value_play_threshold(self, race_factory, cfg):
        assert has_valid_value_play(race_factory(1, edge=50), cfg) is True
        assert has_valid_value_play(race_factory(1, edge=49.9), cfg) is False
        assert has_valid_value_play(race_factory(1), cfg) is False

    def test_singleable_threshold(self, race_factory, cfg):
        assert is_singleable(race_factory(1, edge=100), cfg) is True
        assert is_singleable(race_factory(1, edge=99), cfg) is False


class TestEstimateAndQuality:
    def test_estimate_weights(self, race_factory, cfg):
        races = [race_factory(1, edge=120), race_factory(2, verdict="BET"), race_factory(3)]
        # 1 x 2.5 x 3.5 = 8.75
        assert estimate_combinations(races, cfg) == 9

    def test_estimate_rounds_half_up(self, race_factory, cfg):
        assert estimate_combinations([race_factory(1, edge=120), race_factory(2, verdict="CAUTION")], cfg) == 3

    def test_quality_tiers(self, cfg):
        assert classify_quality(2, 1, 50, cfg) is Quality.PRIME
        assert classify_quality(2, 1, 51, cfg) is Quality.GOOD
        assert classify_quality(2, 0, 10, cfg) is Quality.GOOD
        assert classify_quality(1, 0, 100, cfg) is Quality.GOOD
        assert classify_quality(1, 0, 101, cfg) is Quality.MARGINAL
        assert classify_quality(0, 0, 1, cfg) is Quality.MARGINAL


class TestExperience:
    def test_beginner_sees_nothing(self, race_factory, cfg):
        races = [race_factory(n, edge=120) for n in range(1, 7)]
        assert available_bet_types("beginner") == []
        assert find_opportunities(races, ExperienceLevel.BEGINNER, cfg) == []

    def test_standard_types(self):
        assert available_bet_types("standard") == [MultiRaceBetType.DAILY_DOUBLE, MultiRaceBetType.PICK_3]

    def test_expert_types(self):
        assert len(available_bet_types(ExperienceLevel.EXPERT)) == 5

    def test_unknown_level_sees_nothing(self, race_factory, cfg):
        races = [race_factory(n, edge=120, verdict="BET") for n in range(1, 4)]
        assert available_bet_types("wizard") == []
        assert scan_windows(races, "wizard", cfg) == []
        assert find_opportunities(races, "wizard", cfg) == []
        assert has_opportunities(races, "wizard", cfg) is False

    def test_marginal_only_for_experts(self, race_factory, cfg):
        races = [race_factory(n) for n in range(1, 4)]
        assert find_opportunities(races, "standard", cfg) == []
        expert = find_opportunities(races, "expert", cfg)
        assert expert
        assert all(o.quality is Quality.MARGINAL for o in expert)


class TestScan:
    def test_window_counts(self, race_factory, cfg):
        races = [race_factory(n) for n in range(1, 7)]
        windows = scan_windows(races, "expert", cfg)
        by_type = {}
        for w in windows:
            by_type[w.bet_type] = by_type.get(w.bet_type, 0) + 1
        assert by_type == {
            MultiRaceBetType.DAILY_DOUBLE: 5,
            MultiRaceBetType.PICK_3: 4,
            MultiRaceBetType.PICK_4: 3,
            MultiRaceBetType.PICK_5: 2,
            MultiRaceBetType.PICK_6: 1,
        }

    def test_non_consecutive_races_skipped(self, race_factory, cfg):
        races = [race_factory(1, edge=120), race_factory(2, edge=60), race_factory(4, edge=60)]
        windows = scan_windows(races, "expert", cfg)
        assert [w.race_numbers for w in windows] == [(1, 2)]

    def test_short_card(self, race_factory, cfg):
        assert find_opportunities([race_factory(1, edge=200)], "expert", cfg) == []
        assert find_opportunities([], "expert", cfg) == []

    def test_value_plays_recorded(self, race_factory, cfg):
        races = [race_factory(1, edge=120, value_horse=3), race_factory(2, edge=60, verdict="BET")]
        opp = scan_windows(races, "standard", cfg)[0]
        assert opp.value_play_count == 2
        assert opp.singleable_count == 1
        assert [(vp.race_number, vp.program_number, vp.singleable) for vp in opp.value_plays] == [
            (1, 3, True), (2, 5, False),
        ]
        assert opp.reasoning == "2 value plays in sequence. Can single R1. ~3 combos."


class TestRankingAndDedupe:
    def test_prime_beats_good_on_overlap(self, race_factory, cfg):
        races = [
            race_factory(1, edge=120, verdict="BET"),
            race_factory(2, edge=60, verdict="BET"),
            race_factory(3, edge=60, verdict="BET"),
        ]
        found = find_opportunities(races, "standard", cfg)
        assert [(o.bet_type, o.race_numbers, o.quality) for o in found] == [
            (MultiRaceBetType.PICK_3, (1, 2, 3), Quality.PRIME),
            (MultiRaceBetType.DAILY_DOUBLE, (1, 2), Quality.PRIME),
        ]

    def test_no_same_type_overlap(self, race_factory, cfg):
        races = [race_factory(n, edge=60 + n * 10, verdict="BET") for n in range(1, 9)]
        found = find_opportunities(races, "expert", cfg)
        for i, a in enumerate(found):
            for b in found[i + 1:]:
                if a.bet_type is b.bet_type:
                    assert not a.overlaps(b)

    def test_different_types_may_overlap(self):
        ranked = [
            _opp(MultiRaceBetType.PICK_3, [1, 2, 3], Quality.PRIME, 3),
            _opp(MultiRaceBetType.DAILY_DOUBLE, [2, 3], Quality.GOOD, 1),
        ]
        assert deduplicate(ranked) == ranked

    def test_dedupe_keeps_first_of_type(self):
        first = _opp(MultiRaceBetType.DAILY_DOUBLE, [2, 3], Quality.PRIME, 2)
        overlapping = _opp(MultiRaceBetType.DAILY_DOUBLE, [3, 4], Quality.GOOD, 1)
        disjoint = _opp(MultiRaceBetType.DAILY_DOUBLE, [5, 6], Quality.GOOD, 1)
        assert deduplicate([first, overlapping, disjoint]) == [first, disjoint]

    def test_sort_order(self):
        good_many = _opp(MultiRaceBetType.PICK_3, [1, 2, 3], Quality.GOOD, 3)
        prime_few = _opp(MultiRaceBetType.PICK_3, [4, 5, 6], Quality.PRIME, 2)
        prime_more = _opp(MultiRaceBetType.DAILY_DOUBLE, [7, 8], Quality.PRIME, 2, start_index=0)
        prime_late = _opp(MultiRaceBetType.DAILY_DOUBLE, [4, 5], Quality.PRIME, 2)
        ordered = sorted([good_many, prime_late, prime_few, prime_more], key=sort_key)
        assert ordered == [prime_more, prime_late, prime_few, good_many]

    def test_scan_is_deterministic(self, race_factory, cfg):
        races = [race_factory(n, edge=40 + n * 15, verdict="CAUTION") for n in range(1, 7)]
        assert find_opportunities(races, "expert", cfg) == find_opportunities(races, "expert", cfg)


class TestConvenience:
    def test_best_and_has(self, race_factory, cfg):
        races = [race_factory(1, edge=120, verdict="BET"), race_factory(2, edge=60, verdict="BET")]
        best = best_opportunity(races, "standard", cfg)
        assert best.bet_type is MultiRaceBetType.DAILY_DOUBLE
        assert has_opportunities(races, "standard", cfg) is True
        assert best_opportunity(races, "beginner", cfg) is None
        assert has_opportunities(races, "beginner", cfg) is False
