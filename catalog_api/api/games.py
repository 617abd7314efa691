"""API routes for the game catalog."""

from __future__ import annotations

import logging
import math
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from fastapi.responses import Response
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..rendering import render
from ..request_policies import negotiated_media_type

audit_logger = logging.getLogger("catalog_api.audit")

COLLECTION_KEY = "gameDTOV2List"
GAME_ROOT_TAG = "Game"
COLLECTION_ROOT_TAG = "PagedModel"
MAX_PAGE_SIZE = 100
# offsets must stay inside a signed 64-bit integer
MAX_PAGE = 2**31 - 1

router = APIRouter(prefix="/game/v2", tags=["games"])
legacy_router = APIRouter(prefix="/game/v1", tags=["games"])


def _serialize(game: models.Game) -> dict[str, Any]:
    return schemas.GameRead.model_validate(game).model_dump()


def _audit(action: str, game: models.Game, changed: list[str] | None = None) -> None:
    extra: dict[str, Any] = {
        "event_dataset": "game-catalog-api.audit",
        "event_action": action,
        "event_kind": "audit",
        "game_id": str(game.id),
    }
    if changed:
        extra["change_summary"] = ",".join(sorted(changed))
    audit_logger.info("Game %s", action, extra=extra)


def _get_game_or_404(db: Session, game_id: int) -> models.Game:
    game = db.get(models.Game, game_id)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


def _page_size(request: Request, size: int | None) -> int:
    if size is not None:
        return size
    return min(request.app.state.settings.default_page_size, MAX_PAGE_SIZE)


def _paged_collection(
    db: Session,
    request: Request,
    *,
    page: int,
    size: int,
    direction: str,
    name_filter: str | None = None,
) -> dict[str, Any]:
    """Query one page of games and wrap it in the collection envelope."""

    query = select(models.Game)
    count_query = select(func.count()).select_from(models.Game)
    if name_filter:
        condition = models.Game.name.icontains(name_filter, autoescape=True)
        query = query.where(condition)
        count_query = count_query.where(condition)

    order = models.Game.name.desc() if direction == "desc" else models.Game.name.asc()
    query = query.order_by(order, models.Game.id.asc()).offset(page * size).limit(size)

    total = db.scalar(count_query) or 0
    games = db.scalars(query).all()

    return {
        "_embedded": {COLLECTION_KEY: [_serialize(game) for game in games]},
        "_links": {"self": {"href": str(request.url)}},
        "page": schemas.PageInfo(
            size=size,
            totalElements=total,
            totalPages=math.ceil(total / size) if total else 0,
            number=page,
        ).model_dump(),
    }


@router.get("")
def list_games(
    request: Request,
    page: int = Query(default=0, ge=0, le=MAX_PAGE),
    size: int | None = Query(default=None, ge=1, le=MAX_PAGE_SIZE),
    direction: Literal["asc", "desc"] = Query(default="asc"),
    db: Session = Depends(get_db),
    media_type: str = Depends(negotiated_media_type),
) -> Response:
    """Return a page of games ordered by name."""

    payload = _paged_collection(
        db, request, page=page, size=_page_size(request, size), direction=direction
    )
    return render(payload, media_type, root_tag=COLLECTION_ROOT_TAG)


@router.get("/findGameByName/{name}")
def find_games_by_name(
    name: str,
    request: Request,
    page: int = Query(default=0, ge=0, le=MAX_PAGE),
    size: int | None = Query(default=None, ge=1, le=MAX_PAGE_SIZE),
    direction: Literal["asc", "desc"] = Query(default="asc"),
    db: Session = Depends(get_db),
    media_type: str = Depends(negotiated_media_type),
) -> Response:
    """Search games whose name contains ``name`` (case-insensitive)."""

    payload = _paged_collection(
        db,
        request,
        page=page,
        size=_page_size(request, size),
        direction=direction,
        name_filter=name.strip(),
    )
    return render(payload, media_type, root_tag=COLLECTION_ROOT_TAG)


@router.get("/{game_id}")
def read_game(
    game_id: int = Path(ge=1, le=schemas.MAX_GAME_ID),
    db: Session = Depends(get_db),
    media_type: str = Depends(negotiated_media_type),
) -> Response:
    """Retrieve a single game."""

    game = _get_game_or_404(db, game_id)
    return render(_serialize(game), media_type, root_tag=GAME_ROOT_TAG)


@router.post("")
def create_game(
    game_in: schemas.GameCreate,
    db: Session = Depends(get_db),
    media_type: str = Depends(negotiated_media_type),
) -> Response:
    """Add a game to the catalog."""

    data = game_in.model_dump()
    game = models.Game(**data)
    db.add(game)
    db.commit()
    db.refresh(game)
    _audit("created", game, list(data))
    return render(_serialize(game), media_type, root_tag=GAME_ROOT_TAG)


@router.put("")
def update_game(
    game_in: schemas.GameUpdate,
    db: Session = Depends(get_db),
    media_type: str = Depends(negotiated_media_type),
) -> Response:
    """Replace every field of an existing game."""

    game = _get_game_or_404(db, game_in.id)
    data = game_in.model_dump(exclude={"id"})
    changed = [key for key, value in data.items() if getattr(game, key) != value]
    for key, value in data.items():
        setattr(game, key, value)
    db.commit()
    db.refresh(game)
    _audit("updated", game, changed)
    return render(_serialize(game), media_type, root_tag=GAME_ROOT_TAG)


def _delete_game(game_id: int, db: Session) -> Response:
    game = _get_game_or_404(db, game_id)
    db.delete(game)
    db.commit()
    _audit("deleted", game)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_game(
    game_id: int = Path(ge=1, le=schemas.MAX_GAME_ID), db: Session = Depends(get_db)
) -> Response:
    """Remove a game from the catalog."""

    return _delete_game(game_id, db)


@legacy_router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_game_v1(
    game_id: int = Path(ge=1, le=schemas.MAX_GAME_ID), db: Session = Depends(get_db)
) -> Response:
    """Remove a game; kept on the v1 path used by existing clients."""

    return _delete_game(game_id, db)
