"""Router modules for the Game Catalog API."""

from .games import legacy_router as games_v1_router
from .games import router as games_router

__all__ = ["games_router", "games_v1_router"]
