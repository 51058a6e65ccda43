from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MatchResultUpdate(BaseModel):
    """Partial update for a single match; only the fields that are set get merged."""
    score_a: Optional[int] = Field(default=None, ge=0)
    score_b: Optional[int] = Field(default=None, ge=0)
    scheduled_at: Optional[datetime] = None

    @property
    def has_score(self) -> bool:
        return self.score_a is not None and self.score_b is not None
