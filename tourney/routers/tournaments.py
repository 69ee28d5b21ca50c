"""
Public tournament endpoints: listing, detail, registration
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import require_admin
from ..schemas.tournaments import (
    TournamentCreateRequest,
    RegistrationRequest,
    tournament_to_dict,
    player_to_dict,
    pagination_dict,
)
from ..services import tournament_service

router = APIRouter(prefix="/tournaments", tags=["tournaments"])


@router.post("/create", status_code=201, dependencies=[Depends(require_admin)])
def create_tournament(payload: TournamentCreateRequest, db: Session = Depends(get_db)):
    tournament = tournament_service.create(db, payload.model_dump())
    return {
        "success": True,
        "message": "Tournament created successfully",
        "tournament": tournament_to_dict(tournament, include_room=True),
    }


@router.get("")
def list_tournaments(
    gameType: Optional[str] = Query(None),
    status: Optional[str] = Query("UPCOMING"),
    page: int = Query(1),
    limit: int = Query(10),
    sortBy: str = Query("startTime"),
    sortOrder: str = Query("asc"),
    db: Session = Depends(get_db),
):
    tournaments, total = tournament_service.list_public(
        db,
        game_type=gameType,
        status=status,
        page=page,
        limit=limit,
        sort_by=sortBy,
        sort_order=sortOrder,
    )
    return {
        "success": True,
        "tournaments": [tournament_to_dict(t) for t in tournaments],
        "pagination": pagination_dict(page, limit, total, len(tournaments)),
    }


@router.get("/user/tournaments")
def list_user_tournaments(phone: Optional[str] = Query(None), db: Session = Depends(get_db)):
    rows = tournament_service.list_for_user(db, phone)
    tournaments = []
    for tournament, registration in rows:
        data = tournament_to_dict(tournament)
        data["userRegistration"] = player_to_dict(registration, include_phone=True)
        tournaments.append(data)
    return {"success": True, "tournaments": tournaments}


@router.get("/{tournament_id}")
def get_tournament(tournament_id: str, db: Session = Depends(get_db)):
    tournament = tournament_service.get_by_id(db, tournament_id)
    return {"success": True, "tournament": tournament_to_dict(tournament)}


@router.post("/register/{tournament_id}")
def register_for_tournament(tournament_id: str, payload: RegistrationRequest, db: Session = Depends(get_db)):
    admission = tournament_service.register(
        db,
        tournament_id,
        phone=payload.phone,
        game_name=payload.game_name,
        uid=payload.uid,
    )
    return {
        "success": True,
        "message": "Registration successful",
        "tournament": admission.to_dict(),
    }
