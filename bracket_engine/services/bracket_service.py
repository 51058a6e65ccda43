import logging
import math # For calculating rounds
import random # For the seeded draw
import time
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from bracket_engine.core.config import Settings, settings
from bracket_engine.core.exceptions import (
    InvalidInputError,
    MalformedSourceError,
    UnsupportedFormatError,
)
from bracket_engine.models.bracket_model import (
    BracketConfiguration,
    BracketModel,
    BracketStatus,
    DirectSource,
    LoserOfSource,
    MatchModel,
    MatchPhase,
    MatchSource,
    MatchStatus,
    WinnerOfSource,
)
from bracket_engine.models.team_model import Team
from bracket_engine.models.tournament_model import BracketFormat, Category
from bracket_engine.services.seeding_service import PlayInPlan, calculate_play_in
from bracket_engine.services.tournament_service import validate_dupla_players

logger = logging.getLogger(__name__)


class BracketService:
    def __init__(self, app_settings: Settings = settings):
        self.settings = app_settings

    def generate_bracket(
        self,
        teams: Sequence[Team],
        category_id: str,
        category: Category,
        seed: Optional[int] = None,
    ) -> BracketModel:
        """
        Builds the full match graph for a category.

        `single` and `double` categories get a winner bracket only; `consolation`
        categories also get a loser bracket for first-round losers and a
        third-place match. The draw is shuffled with `seed` (taken from the
        clock when omitted), which is stored in the bracket configuration so the
        exact same bracket can be rebuilt later.
        """
        self._validate_teams(teams)

        if seed is None:
            seed = int(time.time() * 1000)

        generators = {
            BracketFormat.SINGLE: self._generate_single_elimination_matches,
            BracketFormat.DOUBLE: self._generate_single_elimination_matches,
            BracketFormat.CONSOLATION: self._generate_consolation_matches,
        }
        generator = generators.get(category.format)
        if generator is None:
            raise UnsupportedFormatError(category.format)
        bracket_format = BracketFormat(category.format)

        if bracket_format == BracketFormat.DOUBLE:
            logger.warning(
                "Double elimination is not available, category %s is generated as single elimination.",
                category_id,
            )
        matches, plan = generator(teams, category_id, category, seed)

        self.validate_graph(matches)

        logger.info(
            "Generated %s bracket for category %s: %d teams, %d play-in, %d matches (seed=%d)",
            bracket_format.value, category_id, len(teams), plan.play_in_matches, len(matches), seed,
        )

        return BracketModel(
            status=BracketStatus.GENERATED,
            matches=tuple(matches),
            current_round=0 if plan.needs_play_in else 1,
            configuration=BracketConfiguration(
                initial_draw_seed=seed,
                generated_at=datetime.now(timezone.utc),
            ),
        )

    def _validate_teams(self, teams: Sequence[Team]) -> None:
        if len(teams) < self.settings.MIN_TEAMS:
            raise InvalidInputError(
                f"At least {self.settings.MIN_TEAMS} teams are required to generate a bracket, got {len(teams)}."
            )
        seen_ids = set()
        for team in teams:
            if team.id in seen_ids:
                raise InvalidInputError(f"Team {team.id} is registered more than once.")
            seen_ids.add(team.id)
            if not validate_dupla_players(team):
                raise InvalidInputError(f"Team {team.id} has the same player twice.")

    def _match_id(self, category_id: str, prefix: str, round_number: int, position: int) -> str:
        sep = self.settings.MATCH_ID_SEPARATOR
        return sep.join([category_id, prefix, f"r{round_number}", f"m{position}"])

    def _draw(self, teams: Sequence[Team], seed: int) -> List[str]:
        team_ids = [team.id for team in teams]
        random.Random(seed).shuffle(team_ids)
        return team_ids

    def _new_match(
        self,
        match_id: str,
        category_id: str,
        phase: MatchPhase,
        round_number: int,
        a_source: MatchSource,
        b_source: MatchSource,
        best_of: int = 1,
    ) -> MatchModel:
        # Direct sources are known at generation time, everything else is resolved later
        a = a_source.team_id if isinstance(a_source, DirectSource) else None
        b = b_source.team_id if isinstance(b_source, DirectSource) else None
        status = MatchStatus.READY if a is not None and b is not None else MatchStatus.PENDING
        return MatchModel(
            id=match_id,
            category_id=category_id,
            phase=phase,
            round_number=round_number,
            a_source=a_source,
            b_source=b_source,
            a=a,
            b=b,
            best_of=best_of,
            status=status,
        )

    def _link(self, matches: Dict[str, MatchModel], source_id: str, next_match_id: str, slot: int) -> None:
        matches[source_id] = matches[source_id].model_copy(
            update={"next_match_id": next_match_id, "next_match_slot": slot}
        )

    def _generate_play_in_matches(
        self,
        shuffled_ids: List[str],
        category_id: str,
        plan: PlayInPlan,
        matches: Dict[str, MatchModel],
    ) -> Tuple[List[str], List[str]]:
        """
        Creates round-0 matches for the tail of the draw.
        Returns (play-in match ids, bye team ids).
        """
        if not plan.needs_play_in:
            return [], list(shuffled_ids)

        bye_team_ids = shuffled_ids[:plan.teams_with_bye]
        play_in_team_ids = shuffled_ids[plan.teams_with_bye:]

        play_in_match_ids: List[str] = []
        for i in range(plan.play_in_matches):
            match_id = self._match_id(category_id, "playin", 0, i + 1)
            matches[match_id] = self._new_match(
                match_id,
                category_id,
                MatchPhase.PLAY_IN,
                0,
                DirectSource(team_id=play_in_team_ids[i * 2]),
                DirectSource(team_id=play_in_team_ids[i * 2 + 1]),
            )
            play_in_match_ids.append(match_id)

        return play_in_match_ids, bye_team_ids

    def _phase_for_round(self, round_number: int, total_rounds: int) -> MatchPhase:
        if round_number == total_rounds:
            return MatchPhase.FINAL
        if round_number == total_rounds - 1:
            return MatchPhase.SEMIFINAL
        return MatchPhase.WINNER_BRACKET

    def _best_of_for_phase(self, phase: MatchPhase, category: Category) -> int:
        if phase == MatchPhase.FINAL:
            return category.best_of_final
        if phase == MatchPhase.SEMIFINAL:
            return category.best_of_semifinal
        return self.settings.DEFAULT_BEST_OF

    def _generate_winner_bracket(
        self,
        teams: Sequence[Team],
        category_id: str,
        category: Category,
        seed: int,
        matches: Dict[str, MatchModel],
    ) -> Tuple[PlayInPlan, Dict[int, List[str]]]:
        """
        Play-in plus every winner bracket round, linked through next_match_id.
        Returns the play-in plan and the match ids of each round (1..R).
        """
        plan = calculate_play_in(len(teams))
        shuffled_ids = self._draw(teams, seed)
        play_in_match_ids, bye_team_ids = self._generate_play_in_matches(shuffled_ids, category_id, plan, matches)

        total_rounds = int(math.log2(plan.effective_teams))
        rounds_structure: Dict[int, List[str]] = {}

        # Round 1: byes first, then play-in winners, paired in order
        slots: List[MatchSource] = [DirectSource(team_id=team_id) for team_id in bye_team_ids]
        slots.extend(WinnerOfSource(match_id=match_id) for match_id in play_in_match_ids)

        phase = self._phase_for_round(1, total_rounds)
        best_of = self._best_of_for_phase(phase, category)
        rounds_structure[1] = []
        for i in range(len(slots) // 2):
            match_id = self._match_id(category_id, "wb", 1, i + 1)
            a_source, b_source = slots[i * 2], slots[i * 2 + 1]
            matches[match_id] = self._new_match(match_id, category_id, phase, 1, a_source, b_source, best_of)
            for slot, source in ((1, a_source), (2, b_source)):
                if isinstance(source, WinnerOfSource):
                    self._link(matches, source.match_id, match_id, slot)
            rounds_structure[1].append(match_id)

        # Rounds 2..R: allocate the round, then back-link the previous one
        for round_number in range(2, total_rounds + 1):
            previous_ids = rounds_structure[round_number - 1]
            phase = self._phase_for_round(round_number, total_rounds)
            best_of = self._best_of_for_phase(phase, category)
            rounds_structure[round_number] = []
            for i in range(len(previous_ids) // 2):
                match_id = self._match_id(category_id, "wb", round_number, i + 1)
                matches[match_id] = self._new_match(
                    match_id,
                    category_id,
                    phase,
                    round_number,
                    WinnerOfSource(match_id=previous_ids[i * 2]),
                    WinnerOfSource(match_id=previous_ids[i * 2 + 1]),
                    best_of,
                )
                rounds_structure[round_number].append(match_id)

            for i, previous_id in enumerate(previous_ids):
                self._link(matches, previous_id, rounds_structure[round_number][i // 2], i % 2 + 1)

        return plan, rounds_structure

    def _generate_single_elimination_matches(
        self,
        teams: Sequence[Team],
        category_id: str,
        category: Category,
        seed: int,
    ) -> Tuple[List[MatchModel], PlayInPlan]:
        matches: Dict[str, MatchModel] = {}
        plan, _ = self._generate_winner_bracket(teams, category_id, category, seed, matches)
        return list(matches.values()), plan

    def _generate_loser_bracket(
        self,
        first_round_ids: List[str],
        category_id: str,
        matches: Dict[str, MatchModel],
    ) -> None:
        """
        Consolation ladder for first-round losers only.

        Its first round pairs the losers of consecutive first-round matches;
        later rounds are plain single elimination between its own winners.
        Ladder round k is numbered k + 1 so it sits with the winner bracket
        round it can be played alongside.
        """
        current_ids = list(first_round_ids)
        lb_round = 1
        while len(current_ids) > 1:
            next_ids: List[str] = []
            for i in range(len(current_ids) // 2):
                match_id = self._match_id(category_id, "lb", lb_round, i + 1)
                if lb_round == 1:
                    a_source = LoserOfSource(match_id=current_ids[i * 2])
                    b_source = LoserOfSource(match_id=current_ids[i * 2 + 1])
                else:
                    a_source = WinnerOfSource(match_id=current_ids[i * 2])
                    b_source = WinnerOfSource(match_id=current_ids[i * 2 + 1])
                    self._link(matches, current_ids[i * 2], match_id, 1)
                    self._link(matches, current_ids[i * 2 + 1], match_id, 2)
                matches[match_id] = self._new_match(
                    match_id,
                    category_id,
                    MatchPhase.LOSER_BRACKET,
                    lb_round + 1,
                    a_source,
                    b_source,
                    self.settings.DEFAULT_BEST_OF,
                )
                next_ids.append(match_id)
            current_ids = next_ids
            lb_round += 1

    def _generate_consolation_matches(
        self,
        teams: Sequence[Team],
        category_id: str,
        category: Category,
        seed: int,
    ) -> Tuple[List[MatchModel], PlayInPlan]:
        matches: Dict[str, MatchModel] = {}
        plan, rounds_structure = self._generate_winner_bracket(teams, category_id, category, seed, matches)
        total_rounds = len(rounds_structure)
        first_round_ids = rounds_structure[1]

        self._generate_loser_bracket(first_round_ids, category_id, matches)

        semifinals = [m for m in matches.values() if m.phase == MatchPhase.SEMIFINAL]
        if len(semifinals) == 2:
            match_id = self._match_id(category_id, "third", total_rounds, 1)
            matches[match_id] = self._new_match(
                match_id,
                category_id,
                MatchPhase.THIRD_PLACE,
                total_rounds,
                LoserOfSource(match_id=semifinals[0].id),
                LoserOfSource(match_id=semifinals[1].id),
                category.best_of_semifinal,
            )

        return list(matches.values()), plan

    def validate_graph(self, matches: Iterable[MatchModel]) -> None:
        """
        Structural check of a generated graph: every referenced match exists and
        no two matches feed the same slot of a next match.
        """
        matches = list(matches)
        ids = {m.id for m in matches}
        used_slots = set()
        for match in matches:
            for source in match.sources:
                if isinstance(source, (WinnerOfSource, LoserOfSource)) and source.match_id not in ids:
                    raise MalformedSourceError(match.id, source.match_id)
            if match.next_match_id is not None:
                if match.next_match_id not in ids:
                    raise MalformedSourceError(match.id, match.next_match_id)
                key = (match.next_match_id, match.next_match_slot)
                if key in used_slots:
                    raise MalformedSourceError(match.id, match.next_match_id, "reuses an occupied slot of match")
                used_slots.add(key)


bracket_service = BracketService()


def generate_bracket(
    teams: Sequence[Team],
    category_id: str,
    category: Category,
    seed: Optional[int] = None,
) -> BracketModel:
    return bracket_service.generate_bracket(teams, category_id, category, seed=seed)
