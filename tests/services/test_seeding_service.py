import math

import pytest

from bracket_engine.core.exceptions import InvalidInputError
from bracket_engine.services.seeding_service import calculate_play_in, is_power_of_two


class TestIsPowerOfTwo:

    @pytest.mark.parametrize("n", [1, 2, 4, 8, 16, 64, 1024])
    def test_powers(self, n):
        assert is_power_of_two(n)

    @pytest.mark.parametrize("n", [0, -4, 3, 5, 6, 12, 100])
    def test_non_powers(self, n):
        assert not is_power_of_two(n)


class TestCalculatePlayIn:

    @pytest.mark.parametrize("n", [4, 8, 16, 32])
    def test_power_of_two_needs_no_play_in(self, n):
        plan = calculate_play_in(n)
        assert plan.needs_play_in is False
        assert plan.play_in_matches == 0
        assert plan.teams_in_play_in == 0
        assert plan.teams_with_bye == n
        assert plan.effective_teams == n

    @pytest.mark.parametrize("n", [5, 6, 7, 9, 11, 12, 15, 17, 31, 33])
    def test_non_power_of_two_formula(self, n):
        plan = calculate_play_in(n)
        power_of_two = 2 ** math.ceil(math.log2(n))

        assert plan.needs_play_in is True
        assert plan.power_of_two == power_of_two
        assert plan.play_in_matches == n - power_of_two // 2
        assert plan.teams_in_play_in % 2 == 0
        assert plan.teams_with_bye + 2 * plan.play_in_matches == n
        # Main bracket first round is always full
        assert plan.teams_with_bye + plan.play_in_matches == plan.effective_teams
        assert plan.effective_teams == power_of_two // 2

    def test_five_teams(self):
        plan = calculate_play_in(5)
        assert plan.play_in_matches == 1
        assert plan.teams_in_play_in == 2
        assert plan.teams_with_bye == 3
        assert plan.effective_teams == 4

    def test_six_teams(self):
        plan = calculate_play_in(6)
        assert plan.play_in_matches == 2
        assert plan.teams_with_bye == 2

    def test_rejects_empty_field(self):
        with pytest.raises(InvalidInputError):
            calculate_play_in(0)
