import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator


class MatchStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    COMPLETED = "completed"


class MatchPhase(str, Enum):
    PLAY_IN = "play_in"
    WINNER_BRACKET = "winner_bracket"
    LOSER_BRACKET = "loser_bracket"
    SEMIFINAL = "semifinal"
    FINAL = "final"
    THIRD_PLACE = "third_place"


class BracketStatus(str, Enum):
    NOT_GENERATED = "not-generated"
    GENERATED = "generated"
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"


class DirectSource(BaseModel):
    kind: Literal["direct"] = "direct"
    team_id: str

    class Config:
        frozen = True


class WinnerOfSource(BaseModel):
    kind: Literal["winner_of"] = "winner_of"
    match_id: str

    class Config:
        frozen = True


class LoserOfSource(BaseModel):
    kind: Literal["loser_of"] = "loser_of"
    match_id: str

    class Config:
        frozen = True


# Where a match slot gets its participant from
MatchSource = Annotated[
    Union[DirectSource, WinnerOfSource, LoserOfSource],
    Field(discriminator="kind"),
]


class Score(BaseModel):
    a: int
    b: int

    class Config:
        frozen = True


def wins_needed(best_of: int) -> int:
    return math.ceil(best_of / 2)


class MatchModel(BaseModel):
    id: str
    category_id: str
    phase: MatchPhase
    round_number: int

    a_source: MatchSource
    b_source: MatchSource

    a: Optional[str] = None  # resolved team ids
    b: Optional[str] = None

    best_of: Literal[1, 3] = 1
    wins_to_advance: Optional[int] = None

    score: Optional[Score] = None
    winner_id: Optional[str] = None
    loser_id: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING

    next_match_id: Optional[str] = None
    next_match_slot: Optional[Literal[1, 2]] = None

    scheduled_at: Optional[datetime] = None

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def default_wins_to_advance(cls, data):
        if isinstance(data, dict) and data.get("wins_to_advance") is None:
            data = dict(data)
            data["wins_to_advance"] = wins_needed(data.get("best_of", 1))
        return data

    @model_validator(mode="after")
    def check_wins_to_advance(self):
        expected = wins_needed(self.best_of)
        if self.wins_to_advance != expected:
            raise ValueError(
                f"wins_to_advance must be {expected} for a best-of-{self.best_of} match"
            )
        return self

    @property
    def sources(self) -> Tuple[MatchSource, MatchSource]:
        return self.a_source, self.b_source

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def has_participants(self) -> bool:
        return self.a is not None and self.b is not None


class BracketConfiguration(BaseModel):
    initial_draw_seed: Optional[int] = None
    generated_at: Optional[datetime] = None

    class Config:
        frozen = True


class BracketModel(BaseModel):
    status: BracketStatus = BracketStatus.NOT_GENERATED
    matches: Tuple[MatchModel, ...] = ()
    current_round: Optional[int] = None
    configuration: BracketConfiguration = Field(default_factory=BracketConfiguration)

    class Config:
        frozen = True

    def get_match(self, match_id: str) -> Optional[MatchModel]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def matches_in_phase(self, phase: MatchPhase) -> Tuple[MatchModel, ...]:
        return tuple(m for m in self.matches if m.phase == phase)
