"""Game statistics schema definitions.

Per-user counters for the embedded educational games. They live only in the
local cache store and take no part in the article workflow.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class GameType(str, Enum):
    SUDOKU = "sudoku"
    MEMORY = "memory"
    CROSSWORD = "crossword"


class GameStat(BaseModel):
    game_type: GameType
    played: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    best_score: int = Field(default=0, ge=0)
    best_time: Optional[int] = Field(
        default=None,
        description="Fastest completion in seconds.",
    )

    @model_validator(mode="after")
    def check_completed_within_played(self) -> "GameStat":
        if self.completed > self.played:
            raise ValueError("completed count cannot exceed played count")
        return self
