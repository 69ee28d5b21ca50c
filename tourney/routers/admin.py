"""
Admin endpoints: stats, users, rosters, CSV export and status override
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import require_admin
from ..schemas.admin import user_to_dict, roster_summary
from ..schemas.tournaments import StatusUpdateRequest, tournament_to_dict, player_to_dict
from ..services import admin_service, tournament_service

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)):
    return {"success": True, "stats": admin_service.get_stats(db)}


@router.get("/users")
def list_users(
    page: int = Query(1),
    limit: int = Query(20),
    search: str = Query(""),
    db: Session = Depends(get_db),
):
    users, total = admin_service.list_users(db, page=page, limit=limit, search=search)
    return {
        "success": True,
        "users": [user_to_dict(user) for user in users],
        "pagination": {
            "currentPage": page,
            "totalPages": (total + limit - 1) // limit,
            "totalUsers": total,
        },
    }


@router.get("/tournament/{tournament_id}/players")
def get_players(tournament_id: str, db: Session = Depends(get_db)):
    tournament = admin_service.get_roster(db, tournament_id)
    return {
        "success": True,
        "tournament": roster_summary(tournament),
        "players": [player_to_dict(player, include_phone=True) for player in tournament.players],
    }


@router.get("/tournament/{tournament_id}/export")
def export_players(tournament_id: str, db: Session = Depends(get_db)):
    filename, rows = admin_service.export_roster(db, tournament_id)
    return StreamingResponse(
        rows,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.patch("/tournament/{tournament_id}/status")
def update_status(tournament_id: str, payload: StatusUpdateRequest, db: Session = Depends(get_db)):
    tournament = tournament_service.set_status(db, tournament_id, payload.status)
    return {
        "success": True,
        "message": "Tournament status updated successfully",
        "tournament": tournament_to_dict(tournament, include_player_phones=True, include_room=True),
    }
