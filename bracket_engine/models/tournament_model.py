from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, Field, validator

from bracket_engine.models.bracket_model import BracketModel
from bracket_engine.models.team_model import Team


class BracketFormat(str, Enum):
    SINGLE = "single"
    CONSOLATION = "consolation"
    DOUBLE = "double"  # generated as SINGLE until true double elimination exists


class TournamentStatus(str, Enum):
    REGISTRATION = "registration"
    DRAW = "draw"
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"


class Category(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    team_limit: Optional[int] = Field(default=None, gt=0)
    format: BracketFormat = BracketFormat.SINGLE
    best_of_semifinal: Literal[1, 3] = 1
    best_of_final: Literal[1, 3] = 1
    teams: Tuple[Team, ...] = ()
    bracket: BracketModel = Field(default_factory=BracketModel)

    class Config:
        frozen = True

    def get_team(self, team_id: str) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None


class Tournament(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: TournamentStatus = TournamentStatus.REGISTRATION
    created_by: Optional[str] = None
    categories: Tuple[Category, ...] = ()

    class Config:
        frozen = True

    @validator('end_date')
    def end_date_after_start_date(cls, v, values, **kwargs):
        if v and values.get('start_date') and v < values['start_date']:
            raise ValueError('End date must be after start date')
        return v

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None
