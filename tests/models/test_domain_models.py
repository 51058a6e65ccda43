from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from bracket_engine.models.bracket_model import (
    BracketModel,
    BracketStatus,
    DirectSource,
    LoserOfSource,
    MatchModel,
    MatchPhase,
    WinnerOfSource,
)
from bracket_engine.models.team_model import GuestPlayer, RosterPlayer, Team
from bracket_engine.models.tournament_model import BracketFormat, Category, Tournament


def make_match(**overrides):
    data = dict(
        id="m1",
        category_id="cat1",
        phase=MatchPhase.FINAL,
        round_number=1,
        a_source={"kind": "direct", "team_id": "t1"},
        b_source={"kind": "winner_of", "match_id": "m0"},
    )
    data.update(overrides)
    return MatchModel(**data)


class TestMatchModel:

    @pytest.mark.parametrize("best_of,wins", [(1, 1), (3, 2)])
    def test_wins_to_advance_defaults_from_best_of(self, best_of, wins):
        assert make_match(best_of=best_of).wins_to_advance == wins

    def test_inconsistent_wins_to_advance_rejected(self):
        with pytest.raises(ValidationError):
            make_match(best_of=3, wins_to_advance=3)

    def test_best_of_must_be_one_or_three(self):
        with pytest.raises(ValidationError):
            make_match(best_of=5)

    def test_sources_parse_into_tagged_union(self):
        match = make_match(b_source={"kind": "loser_of", "match_id": "m0"})
        assert isinstance(match.a_source, DirectSource)
        assert isinstance(match.b_source, LoserOfSource)
        assert make_match().b_source == WinnerOfSource(match_id="m0")

    def test_unknown_source_kind_rejected(self):
        with pytest.raises(ValidationError):
            make_match(a_source={"kind": "bye", "team_id": "t1"})

    def test_is_frozen(self):
        match = make_match()
        with pytest.raises(ValidationError):
            match.a = "t9"

    def test_next_match_slot_is_one_or_two(self):
        with pytest.raises(ValidationError):
            make_match(next_match_id="m2", next_match_slot=3)


class TestTeam:

    def test_players_parse_by_kind(self):
        team = Team(
            id="d1",
            players=[{"kind": "roster", "id": "p1", "name": "Ana"}, {"kind": "guest", "name": "Bia"}],
        )
        assert isinstance(team.players[0], RosterPlayer)
        assert isinstance(team.players[1], GuestPlayer)
        assert team.display_name == "Ana / Bia"
        assert team.registered_at is not None

    def test_exactly_two_players(self):
        with pytest.raises(ValidationError):
            Team(id="d1", players=[{"kind": "guest", "name": "Ana"}])

    def test_name_overrides_display_name(self):
        team = Team(id="d1", name="Las Rapidas", players=(GuestPlayer(name="Ana"), GuestPlayer(name="Bia")))
        assert team.display_name == "Las Rapidas"


class TestCategoryAndTournament:

    def test_category_defaults(self):
        category = Category(name="Open")
        assert category.format == BracketFormat.SINGLE
        assert category.teams == ()
        assert category.bracket == BracketModel()
        assert category.bracket.status == BracketStatus.NOT_GENERATED

    def test_unknown_format_rejected(self):
        with pytest.raises(ValidationError):
            Category(name="Open", format="swiss")

    def test_end_date_after_start_date(self):
        start = datetime(2026, 3, 1)
        with pytest.raises(ValidationError):
            Tournament(name="Spring cup", start_date=start, end_date=start - timedelta(days=1))
        assert Tournament(name="Spring cup", start_date=start, end_date=start + timedelta(days=2)).end_date

    def test_lookup_helpers(self):
        category = Category(id="cat1", name="Open")
        tournament = Tournament(id="tour1", name="Spring cup", categories=(category,))
        assert tournament.get_category("cat1") is category
        assert tournament.get_category("nope") is None
        assert category.get_team("nope") is None
