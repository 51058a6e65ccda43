import math # For the next power of two

from pydantic import BaseModel

from bracket_engine.core.exceptions import InvalidInputError


class PlayInPlan(BaseModel):
    """
    How a field of `num_teams` is reduced to a power of two.

    `effective_teams` is the size of the main bracket once play-in is over:
    every bye team plus one winner per play-in match.
    """
    num_teams: int
    needs_play_in: bool
    power_of_two: int
    play_in_matches: int
    teams_in_play_in: int
    teams_with_bye: int
    effective_teams: int

    class Config:
        frozen = True


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def calculate_play_in(num_teams: int) -> PlayInPlan:
    if num_teams < 1:
        raise InvalidInputError(f"Cannot seed a bracket for {num_teams} teams.")

    if is_power_of_two(num_teams):
        return PlayInPlan(
            num_teams=num_teams,
            needs_play_in=False,
            power_of_two=num_teams,
            play_in_matches=0,
            teams_in_play_in=0,
            teams_with_bye=num_teams,
            effective_teams=num_teams,
        )

    power_of_two = 2 ** math.ceil(math.log2(num_teams))
    play_in_matches = num_teams - power_of_two // 2
    teams_in_play_in = play_in_matches * 2

    return PlayInPlan(
        num_teams=num_teams,
        needs_play_in=True,
        power_of_two=power_of_two,
        play_in_matches=play_in_matches,
        teams_in_play_in=teams_in_play_in,
        teams_with_bye=num_teams - teams_in_play_in,
        effective_teams=power_of_two // 2,
    )
