"""
Admin reporting: dashboard stats, user search, rosters and CSV export
"""
import csv
import io
import logging
import re
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.clock import isoformat_utc
from ..core.errors import ValidationError
from ..models import User, Tournament, TournamentPlayer, TournamentStatus
from . import tournament_service

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Phone", "Game Name", "UID", "Registered At"]


def get_stats(db: Session, now: Optional[datetime] = None) -> dict:
    tournament_service.sync_statuses(db, now)

    total_tournaments = db.query(func.count(Tournament.id)).scalar() or 0
    total_users = db.query(func.count(User.id)).scalar() or 0
    total_registrations = db.query(func.coalesce(func.sum(Tournament.player_count), 0)).scalar() or 0
    total_earnings = (
        db.query(func.coalesce(func.sum(Tournament.entry_fee * Tournament.player_count), 0)).scalar() or 0
    )

    by_status = dict(
        db.query(Tournament.status, func.count(Tournament.id)).group_by(Tournament.status).all()
    )

    average = round(total_registrations / total_tournaments) if total_tournaments else 0

    return {
        "totalTournaments": total_tournaments,
        "totalUsers": total_users,
        "totalEarnings": float(total_earnings),
        "totalRegistrations": int(total_registrations),
        "averagePlayersPerTournament": average,
        "tournamentsByStatus": {
            status.value.lower(): by_status.get(status.value, 0) for status in TournamentStatus
        },
    }


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_users(db: Session, page: int = 1, limit: int = 20, search: str = "") -> Tuple[List[User], int]:
    """Newest identities first; ``search`` matches name or phone, case-insensitively."""
    errors = []
    if page < 1:
        errors.append("page must be at least 1")
    if not 1 <= limit <= 100:
        errors.append("limit must be between 1 and 100")
    if errors:
        raise ValidationError(errors)

    query = db.query(User)
    search = (search or "").strip()
    if search:
        pattern = f"%{_escape_like(search)}%"
        query = query.filter(
            or_(User.name.ilike(pattern, escape="\\"), User.phone.ilike(pattern, escape="\\"))
        )

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return users, total


def get_roster(db: Session, tournament_id: str) -> Tournament:
    return tournament_service.get_by_id(db, tournament_id)


def export_filename(title: str) -> str:
    return f"{re.sub(r'[^a-z0-9]', '_', title, flags=re.IGNORECASE).lower()}_players.csv"


def iter_roster_csv(players: List[TournamentPlayer]) -> Iterator[str]:
    """Yield the roster as CSV text, header first, one chunk per row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow(CSV_COLUMNS)
    for player in players:
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        writer.writerow([player.phone, player.game_name, player.uid, isoformat_utc(player.registered_at)])
    yield buffer.getvalue()


def export_roster(db: Session, tournament_id: str) -> Tuple[str, Iterator[str]]:
    """
    Returns:
        (attachment filename, CSV chunk iterator)
    """
    tournament = tournament_service.get_by_id(db, tournament_id)
    players = list(tournament.players)
    logger.info(f"[Admin] Exporting {len(players)} player(s) for {tournament.id}")
    return export_filename(tournament.title), iter_roster_csv(players)
