import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from bracket_engine.core.exceptions import InvalidInputError, MalformedSourceError
from bracket_engine.models.bracket_model import (
    BracketModel,
    BracketStatus,
    DirectSource,
    LoserOfSource,
    MatchModel,
    MatchSource,
    MatchStatus,
    Score,
    WinnerOfSource,
)
from bracket_engine.models.tournament_model import Tournament
from bracket_engine.schemas.match_schemas import MatchResultUpdate
from bracket_engine.services.tournament_service import (
    calculate_current_round,
    replace_match,
    update_bracket,
)

logger = logging.getLogger(__name__)


def determine_outcome(match: MatchModel, score_a: int, score_b: int) -> Tuple[str, str]:
    """
    Returns (winner_id, loser_id) for a score recorded on `match`.
    The winning side must have exactly `wins_to_advance` game wins.
    """
    if not match.has_participants:
        raise InvalidInputError(f"Match {match.id} does not have two teams assigned yet.")
    if score_a < 0 or score_b < 0:
        raise InvalidInputError("Scores cannot be negative.")
    if score_a == score_b:
        # Elimination matches always need a winner
        raise InvalidInputError("Scores cannot be equal in an elimination match. A winner must be determined.")
    if max(score_a, score_b) != match.wins_to_advance:
        raise InvalidInputError(
            f"The winner of a best-of-{match.best_of} match needs exactly {match.wins_to_advance} wins, "
            f"got {score_a}-{score_b}."
        )

    if score_a > score_b:
        return match.a, match.b
    return match.b, match.a


def _resolve_source(source: MatchSource, matches_by_id: Dict[str, MatchModel], match_id: str) -> Optional[str]:
    if isinstance(source, DirectSource):
        return source.team_id

    if isinstance(source, (WinnerOfSource, LoserOfSource)):
        upstream = matches_by_id.get(source.match_id)
        if upstream is None:
            raise MalformedSourceError(match_id, source.match_id)
        if not upstream.is_completed:
            return None
        if isinstance(source, WinnerOfSource):
            return upstream.winner_id
        return upstream.loser_id

    raise MalformedSourceError(match_id, repr(source))


def propagate_results(matches: Sequence[MatchModel]) -> Tuple[MatchModel, ...]:
    """
    Re-resolves every open match slot from the matches it depends on.

    A slot only gets a team once its source match is completed, and a match is
    ready once both slots are filled. Completed matches are left alone. Running
    it twice gives the same result.
    """
    matches_by_id = {m.id: m for m in matches}
    resolved: List[MatchModel] = []
    for match in matches:
        if match.is_completed:
            resolved.append(match)
            continue

        a = _resolve_source(match.a_source, matches_by_id, match.id)
        b = _resolve_source(match.b_source, matches_by_id, match.id)
        status = MatchStatus.READY if a is not None and b is not None else MatchStatus.PENDING
        if (a, b, status) != (match.a, match.b, match.status):
            logger.debug("Match %s resolved to %s vs %s (%s)", match.id, a, b, status.value)
            match = match.model_copy(update={"a": a, "b": b, "status": status})
        resolved.append(match)

    return tuple(resolved)


def calculate_bracket_status(matches: Sequence[MatchModel]) -> BracketStatus:
    completed = sum(1 for m in matches if m.is_completed)
    if matches and completed == len(matches):
        return BracketStatus.FINISHED
    if completed > 0:
        return BracketStatus.IN_PROGRESS
    return BracketStatus.GENERATED


def _dependent_matches(bracket: BracketModel, match_id: str) -> List[MatchModel]:
    return [
        m for m in bracket.matches
        if any(isinstance(s, (WinnerOfSource, LoserOfSource)) and s.match_id == match_id for s in m.sources)
    ]


def apply_match_result(bracket: BracketModel, match_id: str, result: MatchResultUpdate) -> BracketModel:
    match = bracket.get_match(match_id)
    if match is None:
        return bracket

    changes = {}
    if "scheduled_at" in result.model_fields_set:
        changes["scheduled_at"] = result.scheduled_at

    if (result.score_a is None) != (result.score_b is None):
        raise InvalidInputError("Both scores are required to record a match result.")

    if not result.has_score:
        return replace_match(bracket, match_id, changes)

    if match.is_completed:
        # Correcting a result is only safe while nothing downstream has been played
        played = [m.id for m in _dependent_matches(bracket, match_id) if m.is_completed]
        if played:
            raise InvalidInputError(
                f"Match {match_id} cannot be changed, dependent matches already completed: {', '.join(played)}."
            )

    winner_id, loser_id = determine_outcome(match, result.score_a, result.score_b)
    changes.update(
        score=Score(a=result.score_a, b=result.score_b),
        winner_id=winner_id,
        loser_id=loser_id,
        status=MatchStatus.COMPLETED,
    )
    bracket = replace_match(bracket, match_id, changes, allow_completion=True)
    matches = propagate_results(bracket.matches)

    logger.info(
        "Match %s completed %d-%d, winner %s",
        match_id, result.score_a, result.score_b, winner_id,
    )

    return bracket.model_copy(update={
        "matches": matches,
        "status": calculate_bracket_status(matches),
        "current_round": calculate_current_round(matches),
    })


def update_match_result(
    tournaments: Sequence[Tournament],
    tournament_id: str,
    category_id: str,
    match_id: str,
    result: Union[MatchResultUpdate, dict],
) -> List[Tournament]:
    """
    Records a result (and/or a schedule) for one match and pushes the winner
    and loser into every match that takes them as a source.

    Unknown tournament, category or match ids return the input unchanged.
    """
    if isinstance(result, dict):
        try:
            result = MatchResultUpdate(**result)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid match result: {e}") from e

    return update_bracket(
        tournaments,
        tournament_id,
        category_id,
        lambda bracket: apply_match_result(bracket, match_id, result),
    )
