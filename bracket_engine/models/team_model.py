from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, Field


class RosterPlayer(BaseModel):
    """A player registered in the external roster (a student of the club)."""
    kind: Literal["roster"] = "roster"
    id: str
    name: str

    class Config:
        frozen = True


class GuestPlayer(BaseModel):
    """A free-text guest player, identified only by name."""
    kind: Literal["guest"] = "guest"
    name: str

    class Config:
        frozen = True


Player = Annotated[Union[RosterPlayer, GuestPlayer], Field(discriminator="kind")]


class Team(BaseModel):
    # A "dupla": two players registered together in a category
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: Optional[str] = None
    players: Tuple[Player, Player]
    unit_id: Optional[str] = None
    registered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        frozen = True

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return " / ".join(player.name for player in self.players)
