from .bracket_model import (
    BracketConfiguration,
    BracketModel,
    BracketStatus,
    DirectSource,
    LoserOfSource,
    MatchModel,
    MatchPhase,
    MatchSource,
    MatchStatus,
    Score,
    WinnerOfSource,
)
from .team_model import GuestPlayer, Player, RosterPlayer, Team
from .tournament_model import BracketFormat, Category, Tournament, TournamentStatus
