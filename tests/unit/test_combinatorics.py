"""Tests for combination counting, costing and the field-size guard."""

import pytest

from trackside.betting.combinatorics import (
    BetKind,
    can_offer,
    combinations,
    cost,
    max_box_size,
    permutations,
    selection_depth,
    selection_keys,
)


class TestPermutations:
    def test_basic(self):
        assert permutations(5, 2) == 20
        assert permutations(4, 4) == 24
        assert permutations(3, 0) == 1

    def test_r_greater_than_n(self):
        assert permutations(2, 3) == 0

    def test_negative(self):
        assert permutations(-1, 1) == 0


class TestBoxCounts:
    @pytest.mark.parametrize("kind,n,expected", [
        (BetKind.EXACTA_BOX, 2, 2),
        (BetKind.EXACTA_BOX, 3, 6),
        (BetKind.EXACTA_BOX, 4, 12),
        (BetKind.TRIFECTA_BOX, 3, 6),
        (BetKind.TRIFECTA_BOX, 4, 24),
        (BetKind.TRIFECTA_BOX, 5, 60),
        (BetKind.SUPERFECTA_BOX, 4, 24),
        (BetKind.SUPERFECTA_BOX, 5, 120),
    ])
    def test_box_is_permutation_count(self, kind, n, expected):
        assert combinations(kind, n) == expected

    def test_box_needs_enough_horses(self):
        assert combinations(BetKind.TRIFECTA_BOX, 2) == 0
        assert combinations(BetKind.SUPERFECTA_BOX, 3) == 0


class TestKeyAndWheel:
    def test_exacta_key(self):
        """Key over 4 others is 4 tickets."""
        assert combinations(BetKind.EXACTA_KEY, 5) == 4

    def test_key_under_matches_key(self):
        assert combinations(BetKind.EXACTA_KEY_UNDER, 3) == combinations(BetKind.EXACTA_KEY, 3) == 2

    def test_trifecta_key(self):
        assert combinations(BetKind.TRIFECTA_KEY, 4) == 6

    def test_trifecta_wheel(self):
        """One horse on top of an 8-horse field: 7 x 6."""
        assert combinations(BetKind.TRIFECTA_WHEEL, 8) == 42

    def test_exacta_wheel(self):
        assert combinations(BetKind.EXACTA_WHEEL, 8) == 7

    def test_superfecta_wheel(self):
        assert combinations(BetKind.SUPERFECTA_WHEEL, 6) == 60

    def test_wheel_needs_full_field(self):
        assert combinations(BetKind.TRIFECTA_WHEEL, 2) == 0

    def test_two_key_exacta_wheel(self):
        """Each key over the 6 horses left in an 8-horse field."""
        assert combinations(BetKind.EXACTA_WHEEL, 8, keys=2) == 12

    def test_multi_key_trifecta_and_superfecta(self):
        assert combinations(BetKind.TRIFECTA_WHEEL, 8, keys=2) == 60
        assert combinations(BetKind.SUPERFECTA_WHEEL, 8, keys=3) == 180

    def test_keys_leave_too_few_underneath(self):
        assert combinations(BetKind.TRIFECTA_WHEEL, 4, keys=3) == 0
        assert combinations(BetKind.EXACTA_WHEEL, 8, keys=0) == 0


class TestStraight:
    def test_straight_is_one(self):
        assert combinations(BetKind.WIN, 1) == 1
        assert combinations(BetKind.EXACTA, 2) == 1
        assert combinations(BetKind.SUPERFECTA, 4) == 1

    def test_straight_short_depth(self):
        assert combinations(BetKind.TRIFECTA, 2) == 0


class TestCost:
    def test_default_unit_stakes(self):
        assert cost(BetKind.WIN, 1) == 2.0
        assert cost(BetKind.TRIFECTA_BOX, 3) == 6.0
        assert cost(BetKind.SUPERFECTA_BOX, 4) == pytest.approx(2.40)

    def test_wheel_cost(self):
        assert cost(BetKind.TRIFECTA_WHEEL, 8, 1.0) == 42.0
        assert cost(BetKind.TRIFECTA_WHEEL, 7, 0.5) == 15.0
        assert cost(BetKind.EXACTA_WHEEL, 7, 1.0, keys=2) == 10.0

    def test_cost_is_cents(self):
        assert cost(BetKind.SUPERFECTA_BOX, 5, 0.10) == 12.0
        assert cost(BetKind.EXACTA_KEY, 3, 2.5) == 5.0

    def test_zero_stake(self):
        assert cost(BetKind.EXACTA_BOX, 3, 0) == 0.0

    def test_unofferable_costs_nothing(self):
        assert cost(BetKind.TRIFECTA_BOX, 2, 1.0) == 0.0


class TestFieldGuard:
    def test_box_bigger_than_field(self):
        assert can_offer(BetKind.EXACTA_BOX, 6, 5) is False

    def test_trifecta_in_two_horse_race(self):
        assert can_offer(BetKind.TRIFECTA_BOX, 2, 2) is False
        assert can_offer(BetKind.TRIFECTA_WHEEL, 1, 2) is False

    def test_superfecta_needs_four_starters(self):
        assert can_offer(BetKind.SUPERFECTA_BOX, 4, 3) is False
        assert can_offer(BetKind.SUPERFECTA_BOX, 4, 4) is True

    def test_wheel_key_count(self):
        assert can_offer(BetKind.TRIFECTA_WHEEL, 1, 8) is True
        assert can_offer(BetKind.TRIFECTA_WHEEL, 2, 8) is True
        assert can_offer(BetKind.EXACTA_WHEEL, 7, 8) is True

    def test_wheel_keys_must_leave_a_field(self):
        assert can_offer(BetKind.TRIFECTA_WHEEL, 0, 8) is False
        assert can_offer(BetKind.TRIFECTA_WHEEL, 7, 8) is False
        assert can_offer(BetKind.EXACTA_WHEEL, 8, 8) is False

    def test_straight_needs_exact_selection(self):
        assert can_offer(BetKind.EXACTA, 2, 8) is True
        assert can_offer(BetKind.EXACTA, 3, 8) is False
        assert can_offer(BetKind.QUINELLA, 2, 2) is True

    def test_key_fits(self):
        assert can_offer(BetKind.EXACTA_KEY, 5, 7) is True
        assert can_offer(BetKind.EXACTA_KEY, 1, 7) is False

    def test_offerable_means_positive_combinations(self):
        for kind in BetKind:
            for starters in range(0, 9):
                for sel in range(0, starters + 2):
                    if can_offer(kind, sel, starters):
                        depth = selection_depth(kind, sel, starters)
                        assert combinations(kind, depth, selection_keys(kind, sel)) > 0


class TestKindProperties:
    def test_family_and_structure(self):
        assert BetKind.TRIFECTA_WHEEL.family == "trifecta"
        assert BetKind.TRIFECTA_WHEEL.structure == "wheel"
        assert BetKind.EXACTA_KEY_UNDER.is_keyed
        assert BetKind.PLACE.is_single
        assert not BetKind.QUINELLA.is_single

    def test_label(self):
        assert BetKind.EXACTA_BOX.label == "Exacta Box"

    def test_selection_depth(self):
        assert selection_depth(BetKind.TRIFECTA_WHEEL, 1, 9) == 9
        assert selection_depth(BetKind.TRIFECTA_BOX, 4, 9) == 4

    def test_selection_keys(self):
        assert selection_keys(BetKind.EXACTA_WHEEL, 2) == 2
        assert selection_keys(BetKind.EXACTA_KEY, 4) == 1


class TestMaxBoxSize:
    def test_fits_budget(self):
        # 5 horses = 20 combos = $20; 6 = $30
        assert max_box_size(BetKind.EXACTA_BOX, 20, 1.0) == 5

    def test_nothing_fits(self):
        assert max_box_size(BetKind.TRIFECTA_BOX, 5, 1.0) == 0

    def test_not_a_box(self):
        assert max_box_size(BetKind.EXACTA_KEY, 100) == 0
