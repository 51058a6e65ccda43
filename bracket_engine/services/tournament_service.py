"""
Immutable updates over the tournament tree.

Every transform takes the current list of tournaments and returns a new list in
which only the nodes on the path to the target were rebuilt; everything else is
shared with the input. A target id that does not exist leaves the value
unchanged, so callers that care must check existence first.
"""
import re
from typing import Callable, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ValidationError

from bracket_engine.core.exceptions import InvalidInputError
from bracket_engine.models.bracket_model import BracketModel, MatchModel, MatchStatus
from bracket_engine.models.team_model import Player, RosterPlayer, Team
from bracket_engine.models.tournament_model import Category, Tournament

_WHITESPACE = re.compile(r"\s+")


class ValidationResult(BaseModel):
    is_valid: bool
    message: Optional[str] = None


def update_tournament_by_id(
    tournaments: Sequence[Tournament],
    tournament_id: str,
    updater: Callable[[Tournament], Tournament],
) -> List[Tournament]:
    return [updater(t) if t.id == tournament_id else t for t in tournaments]


def update_category(
    tournaments: Sequence[Tournament],
    tournament_id: str,
    category_id: str,
    updater: Callable[[Category], Category],
) -> List[Tournament]:
    def update(tournament: Tournament) -> Tournament:
        if tournament.get_category(category_id) is None:
            return tournament
        categories = tuple(updater(c) if c.id == category_id else c for c in tournament.categories)
        return tournament.model_copy(update={"categories": categories})

    return update_tournament_by_id(tournaments, tournament_id, update)


def push_category(tournaments: Sequence[Tournament], tournament_id: str, category: Category) -> List[Tournament]:
    return update_tournament_by_id(
        tournaments,
        tournament_id,
        lambda t: t.model_copy(update={"categories": t.categories + (category,)}),
    )


def remove_category(tournaments: Sequence[Tournament], tournament_id: str, category_id: str) -> List[Tournament]:
    def remove(tournament: Tournament) -> Tournament:
        if tournament.get_category(category_id) is None:
            return tournament
        categories = tuple(c for c in tournament.categories if c.id != category_id)
        return tournament.model_copy(update={"categories": categories})

    return update_tournament_by_id(tournaments, tournament_id, remove)


def push_dupla(tournaments: Sequence[Tournament], tournament_id: str, category_id: str, dupla: Team) -> List[Tournament]:
    # Registration rules (limit, open window) are checked by the caller, see can_add_dupla
    return update_category(
        tournaments,
        tournament_id,
        category_id,
        lambda c: c.model_copy(update={"teams": c.teams + (dupla,)}),
    )


def update_dupla(
    tournaments: Sequence[Tournament],
    tournament_id: str,
    category_id: str,
    dupla_id: str,
    updater: Callable[[Team], Team],
) -> List[Tournament]:
    def update(category: Category) -> Category:
        if category.get_team(dupla_id) is None:
            return category
        teams = tuple(updater(team) if team.id == dupla_id else team for team in category.teams)
        return category.model_copy(update={"teams": teams})

    return update_category(tournaments, tournament_id, category_id, update)


def remove_dupla(tournaments: Sequence[Tournament], tournament_id: str, category_id: str, dupla_id: str) -> List[Tournament]:
    def remove(category: Category) -> Category:
        if category.get_team(dupla_id) is None:
            return category
        return category.model_copy(update={"teams": tuple(t for t in category.teams if t.id != dupla_id)})

    return update_category(tournaments, tournament_id, category_id, remove)


def update_bracket(
    tournaments: Sequence[Tournament],
    tournament_id: str,
    category_id: str,
    updater: Callable[[BracketModel], BracketModel],
) -> List[Tournament]:
    return update_category(
        tournaments,
        tournament_id,
        category_id,
        lambda c: c.model_copy(update={"bracket": updater(c.bracket)}),
    )


def replace_match(
    bracket: BracketModel,
    match_id: str,
    changes: dict,
    allow_completion: bool = False,
) -> BracketModel:
    """
    Merge `changes` into one match of the bracket and validate the result.

    Completing a match goes through `update_match_result`, which checks the
    score and propagates it; a plain patch may not set `status=completed`.
    """
    match = bracket.get_match(match_id)
    if match is None:
        return bracket
    if not allow_completion and changes.get("status") == MatchStatus.COMPLETED:
        raise InvalidInputError(f"Match {match_id} can only be completed by recording its result.")

    try:
        updated = MatchModel.model_validate({**match.model_dump(), **changes})
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid changes for match {match_id}: {exc}") from exc

    matches = tuple(updated if m.id == match_id else m for m in bracket.matches)
    return bracket.model_copy(update={"matches": matches})


def update_match(
    tournaments: Sequence[Tournament],
    tournament_id: str,
    category_id: str,
    match_id: str,
    changes: dict,
) -> List[Tournament]:
    return update_bracket(tournaments, tournament_id, category_id, lambda b: replace_match(b, match_id, changes))


def calculate_current_round(matches: Iterable[MatchModel]) -> Optional[int]:
    """Lowest round that still has an unfinished match, else the last round."""
    rounds = {}
    for match in matches:
        rounds.setdefault(match.round_number, []).append(match)
    if not rounds:
        return None

    for round_number in sorted(rounds):
        if not all(m.is_completed for m in rounds[round_number]):
            return round_number
    return max(rounds)


# --- Registration validators ---

def get_player_key(player: Player) -> str:
    if isinstance(player, RosterPlayer) and player.id:
        return f"roster:{player.id}"
    normalized_name = _WHITESPACE.sub(" ", player.name.strip().casefold())
    return f"guest:{normalized_name}"


def _players_of(dupla) -> Sequence[Player]:
    return dupla.players if hasattr(dupla, "players") else dupla


def validate_dupla_players(dupla) -> bool:
    """
    False when both players of a pair are the same person.
    Accepts a Team or a plain pair of players.
    """
    first, second = _players_of(dupla)
    return get_player_key(first) != get_player_key(second)


def validate_dupla_uniqueness_in_category(
    dupla,
    category: Category,
    exclude_dupla_id: Optional[str] = None,
) -> ValidationResult:
    existing_keys = set()
    for existing in category.teams:
        if exclude_dupla_id and existing.id == exclude_dupla_id:
            continue
        existing_keys.update(get_player_key(p) for p in existing.players)

    for player in _players_of(dupla):
        if get_player_key(player) in existing_keys:
            player_type = "Roster player" if isinstance(player, RosterPlayer) else "Guest"
            return ValidationResult(
                is_valid=False,
                message=f"{player_type} {player.name} already plays in another team of this category.",
            )
    return ValidationResult(is_valid=True)


def validate_dupla_identical(
    dupla,
    category: Category,
    exclude_dupla_id: Optional[str] = None,
) -> ValidationResult:
    keys = sorted(get_player_key(p) for p in _players_of(dupla))
    for existing in category.teams:
        if exclude_dupla_id and existing.id == exclude_dupla_id:
            continue
        if sorted(get_player_key(p) for p in existing.players) == keys:
            return ValidationResult(is_valid=False, message="This team is already registered in this category.")
    return ValidationResult(is_valid=True)


def can_add_dupla(category: Category) -> bool:
    if not category.team_limit:
        return True
    return len(category.teams) < category.team_limit
