"""Pydantic schemas used for request and response models."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

GameName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
StarRating = Annotated[float, Field(ge=0, le=5)]

# largest id SQLite stores in an INTEGER column
MAX_GAME_ID = 2**63 - 1


class GameBase(BaseModel):
    name: GameName
    star_rating: StarRating | None = None
    developer: Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)] = ""
    year: int | None = Field(default=None, ge=1950, le=2100)
    finished: bool = False


class GameCreate(GameBase):
    """Payload for creating a game; the id is generated server-side."""

    model_config = ConfigDict(extra="forbid")


class GameUpdate(GameBase):
    """Full replacement of a game, identified by the id in the body."""

    id: int = Field(..., ge=1, le=MAX_GAME_ID)

    model_config = ConfigDict(extra="forbid")


class GameRead(GameBase):
    """Schema returned when reading a game."""

    id: int
    # stored rows are not re-validated against the create bounds
    year: int | None = None
    star_rating: float | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("developer", mode="before")
    @classmethod
    def _none_as_empty(cls, value: str | None) -> str:
        return value or ""


class PageInfo(BaseModel):
    size: int
    totalElements: int
    totalPages: int
    number: int
