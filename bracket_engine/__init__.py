from bracket_engine.core.exceptions import (
    BracketError,
    InvalidInputError,
    MalformedSourceError,
    UnsupportedFormatError,
)
from bracket_engine.core.logging_config import configure_logging
from bracket_engine.services.bracket_service import BracketService, generate_bracket
from bracket_engine.services.match_service import propagate_results, update_match_result
from bracket_engine.services.seeding_service import calculate_play_in, is_power_of_two
from bracket_engine.services.tournament_service import (
    can_add_dupla,
    push_category,
    push_dupla,
    remove_category,
    remove_dupla,
    update_bracket,
    update_category,
    update_dupla,
    update_match,
    update_tournament_by_id,
    validate_dupla_identical,
    validate_dupla_players,
    validate_dupla_uniqueness_in_category,
)
