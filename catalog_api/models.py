"""SQLAlchemy models for the game catalog."""

from sqlalchemy import Boolean, Column, Float, Integer, String
from sqlalchemy.sql import expression

from .database import Base


class Game(Base):
    """A game tracked in the catalog."""

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    star_rating = Column(Float, nullable=True)
    developer = Column(String(255), nullable=False, default="")
    year = Column(Integer, nullable=True)
    finished = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )

    def __repr__(self) -> str:
        return f"Game(id={self.id!r}, name={self.name!r})"
