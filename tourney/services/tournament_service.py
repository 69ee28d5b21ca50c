"""
Tournament lifecycle and registration.

Status is derived from the clock on every touch; only CANCELLED is ever
written directly and it is never overwritten by derivation. Admission is a
conditional counter update guarded by ``player_count < max_players`` plus the
roster's unique (tournament_id, phone) index, committed in one transaction.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import and_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.clock import utcnow, to_naive_utc, isoformat_utc
from ..core.config import settings
from ..core.errors import (
    ValidationError,
    InvalidIdError,
    IdentityNotFoundError,
    TournamentNotFoundError,
    ConsentRequiredError,
    RegistrationClosedError,
    TournamentFullError,
    AlreadyRegisteredError,
)
from ..models import Tournament, TournamentPlayer, TournamentStatus, GameType
from ..utils.phone import normalize_phone, get_phone_last4
from . import identity_service

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "startTime": Tournament.start_time,
    "createdAt": Tournament.created_at,
    "entryFee": Tournament.entry_fee,
    "winningAmount": Tournament.winning_amount,
    "title": Tournament.title,
}

MONEY_FIELDS = (
    ("entry_fee", "entryFee"),
    ("per_kill", "perKill"),
    ("winning_amount", "winningAmount"),
)

REQUIRED_FIELDS = (
    ("game_type", "gameType"),
    ("title", "title"),
    ("start_time", "startTime"),
    ("entry_fee", "entryFee"),
    ("per_kill", "perKill"),
    ("winning_amount", "winningAmount"),
    ("room_id", "roomId"),
    ("room_password", "roomPassword"),
)

# A rejected conditional write is re-evaluated once before surfacing an error
MAX_ADMISSION_ATTEMPTS = 2


@dataclass
class Admission:
    tournament_id: str
    title: str
    room_id: str
    room_password: str
    start_time: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.tournament_id,
            "title": self.title,
            "roomId": self.room_id,
            "roomPassword": self.room_password,
            "startTime": isoformat_utc(self.start_time),
        }


def tournament_duration() -> timedelta:
    return timedelta(hours=settings.TOURNAMENT_DURATION_HOURS)


def derive_status(start_time: datetime, current_status: str, now: Optional[datetime] = None) -> str:
    """
    Lifecycle state as a function of the clock.

    CANCELLED is sticky; otherwise UPCOMING before start, LIVE for the
    tournament duration, COMPLETED afterwards.
    """
    if current_status == TournamentStatus.CANCELLED.value:
        return TournamentStatus.CANCELLED.value

    now = now or utcnow()
    if now < start_time:
        return TournamentStatus.UPCOMING.value
    if now < start_time + tournament_duration():
        return TournamentStatus.LIVE.value
    return TournamentStatus.COMPLETED.value


def sync_statuses(db: Session, now: Optional[datetime] = None) -> int:
    """
    Bring every non-cancelled tournament in line with derive_status.

    Returns:
        Number of rows whose status changed
    """
    now = now or utcnow()
    live_cutoff = now - tournament_duration()
    targets = (
        (TournamentStatus.UPCOMING, Tournament.start_time > now),
        (TournamentStatus.LIVE, and_(Tournament.start_time <= now, Tournament.start_time > live_cutoff)),
        (TournamentStatus.COMPLETED, Tournament.start_time <= live_cutoff),
    )

    changed = 0
    for target, condition in targets:
        result = db.execute(
            update(Tournament)
            .where(
                condition,
                Tournament.status != TournamentStatus.CANCELLED.value,
                Tournament.status != target.value,
            )
            .values(status=target.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        changed += result.rowcount or 0
    db.commit()

    if changed:
        logger.info(f"[Tournament] Status sync updated {changed} tournament(s)")
    return changed


def _touch(db: Session, tournament: Tournament, now: datetime) -> Tournament:
    derived = derive_status(tournament.start_time, tournament.status, now)
    if derived != tournament.status:
        logger.info(f"[Tournament] {tournament.id} status {tournament.status} -> {derived}")
        tournament.status = derived
        tournament.updated_at = now
        db.commit()
    return tournament


def _parse_id(tournament_id) -> str:
    try:
        return str(uuid.UUID(str(tournament_id)))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdError()


def _load(db: Session, tournament_id) -> Tournament:
    parsed_id = _parse_id(tournament_id)
    tournament = db.query(Tournament).filter(Tournament.id == parsed_id).first()
    if tournament is None:
        raise TournamentNotFoundError()
    return tournament


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_start_time(value) -> datetime:
    if isinstance(value, datetime):
        return to_naive_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))


def create(db: Session, data: dict, now: Optional[datetime] = None) -> Tournament:
    """
    Validate and persist a new tournament with an empty roster.

    Args:
        data: snake_case fields (game_type, title, start_time, entry_fee,
            per_kill, winning_amount, max_players, room_id, room_password)

    Raises:
        ValidationError: Lists every violated field
    """
    now = now or utcnow()
    errors = []

    for field, wire_name in REQUIRED_FIELDS:
        if _is_blank(data.get(field)):
            errors.append(f"{wire_name} is required")

    game_type = data.get("game_type")
    if not _is_blank(game_type) and (
        not isinstance(game_type, str) or game_type not in GameType._value2member_map_
    ):
        errors.append(f"gameType must be one of: {', '.join(g.value for g in GameType)}")

    title = data.get("title")
    if not _is_blank(title) and len(str(title).strip()) > 100:
        errors.append("Title cannot exceed 100 characters")

    start_time = None
    if not _is_blank(data.get("start_time")):
        try:
            start_time = _parse_start_time(data["start_time"])
        except ValueError:
            errors.append("startTime must be a valid date")
        else:
            if start_time <= now:
                errors.append("Start time must be in the future")

    amounts = {}
    for field, wire_name in MONEY_FIELDS:
        value = data.get(field)
        if _is_blank(value):
            continue
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            amounts[field] = float(value)
        except (TypeError, ValueError):
            errors.append(f"{wire_name} must be a number")
            continue
        if amounts[field] < 0:
            errors.append(f"{wire_name} cannot be negative")

    max_players = data.get("max_players")
    if max_players is None:
        max_players = settings.TOURNAMENT_DEFAULT_MAX_PLAYERS
    if (
        isinstance(max_players, bool)
        or not isinstance(max_players, int)
        or not 1 <= max_players <= settings.TOURNAMENT_MAX_PLAYERS_LIMIT
    ):
        errors.append(f"maxPlayers must be between 1 and {settings.TOURNAMENT_MAX_PLAYERS_LIMIT}")

    if errors:
        raise ValidationError(errors)

    tournament = Tournament(
        game_type=game_type,
        title=str(title).strip(),
        start_time=start_time,
        entry_fee=amounts["entry_fee"],
        per_kill=amounts["per_kill"],
        winning_amount=amounts["winning_amount"],
        max_players=max_players,
        room_id=str(data["room_id"]).strip(),
        room_password=str(data["room_password"]).strip(),
        status=TournamentStatus.UPCOMING.value,
        player_count=0,
        created_at=now,
        updated_at=now,
    )
    db.add(tournament)
    db.commit()
    db.refresh(tournament)

    logger.info(f"[Tournament] Created {tournament.id} ({tournament.game_type}, max {tournament.max_players})")
    return tournament


def _registration_errors(phone, game_name, uid) -> list:
    errors = []
    if _is_blank(phone):
        errors.append("Phone number is required")
    if _is_blank(game_name) or len(str(game_name).strip()) < 2:
        errors.append("Game name must be at least 2 characters")
    elif len(str(game_name).strip()) > 30:
        errors.append("Game name cannot exceed 30 characters")
    if _is_blank(uid):
        errors.append("UID is required")
    elif len(str(uid).strip()) > 64:
        errors.append("UID cannot exceed 64 characters")
    return errors


def _try_admit(db: Session, tournament: Tournament, phone: str, game_name: str, uid: str, now: datetime) -> bool:
    """Claim a slot and append the roster entry in one transaction."""
    claimed = db.execute(
        update(Tournament)
        .where(
            Tournament.id == tournament.id,
            Tournament.player_count < Tournament.max_players,
            Tournament.status == TournamentStatus.UPCOMING.value,
            Tournament.start_time > now,
        )
        .values(player_count=Tournament.player_count + 1, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        db.rollback()
        return False

    tournament.players.append(
        TournamentPlayer(phone=phone, game_name=game_name, uid=uid, registered_at=now)
    )
    try:
        db.commit()
    except IntegrityError:
        # Same phone admitted concurrently; the slot claim is rolled back too
        db.rollback()
        return False
    return True


def register(
    db: Session,
    tournament_id: str,
    phone: str,
    game_name: str,
    uid: str,
    now: Optional[datetime] = None,
) -> Admission:
    """
    Admit a consenting identity into an upcoming tournament.

    Returns:
        Admission carrying the room credentials

    Raises:
        ValidationError, IdentityNotFoundError, ConsentRequiredError,
        TournamentNotFoundError, RegistrationClosedError,
        TournamentFullError, AlreadyRegisteredError
    """
    errors = _registration_errors(phone, game_name, uid)
    if errors:
        raise ValidationError(errors)

    user = identity_service.find_identity(db, phone)
    if user is None:
        raise IdentityNotFoundError()
    if not user.consent_given:
        raise ConsentRequiredError()

    normalized_phone = user.phone
    phone_last4 = get_phone_last4(normalized_phone)
    game_name = str(game_name).strip()
    uid = str(uid).strip()

    for attempt in range(MAX_ADMISSION_ATTEMPTS):
        if attempt:
            db.expire_all()
        current = now or utcnow()
        try:
            tournament = _load(db, tournament_id)
        except InvalidIdError:
            raise TournamentNotFoundError()
        _touch(db, tournament, current)

        if tournament.status != TournamentStatus.UPCOMING.value:
            raise RegistrationClosedError()
        if tournament.is_full:
            raise TournamentFullError()
        if tournament.is_user_registered(normalized_phone):
            raise AlreadyRegisteredError()

        if _try_admit(db, tournament, normalized_phone, game_name, uid, current):
            logger.info(
                f"[Tournament] Registered {phone_last4} for {tournament.id} "
                f"({tournament.player_count}/{tournament.max_players})"
            )
            return Admission(
                tournament_id=tournament.id,
                title=tournament.title,
                room_id=tournament.room_id,
                room_password=tournament.room_password,
                start_time=tournament.start_time,
            )

        logger.warning(f"[Tournament] Admission write rejected for {phone_last4} on {tournament_id} (attempt {attempt + 1})")

    raise TournamentFullError()


def list_public(
    db: Session,
    game_type: Optional[str] = None,
    status: Optional[str] = TournamentStatus.UPCOMING.value,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "startTime",
    sort_order: str = "asc",
    now: Optional[datetime] = None,
) -> Tuple[List[Tournament], int]:
    """
    Filtered, sorted page of tournaments plus the total match count.

    An empty ``status`` lists every status.
    """
    errors = []
    if game_type and game_type not in GameType._value2member_map_:
        errors.append(f"gameType must be one of: {', '.join(g.value for g in GameType)}")
    if status and status not in TournamentStatus._value2member_map_:
        errors.append(f"status must be one of: {', '.join(s.value for s in TournamentStatus)}")
    if page < 1:
        errors.append("page must be at least 1")
    if not 1 <= limit <= 100:
        errors.append("limit must be between 1 and 100")
    if sort_by not in SORT_FIELDS:
        errors.append(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        errors.append("sortOrder must be asc or desc")
    if errors:
        raise ValidationError(errors)

    sync_statuses(db, now)

    query = db.query(Tournament)
    if game_type:
        query = query.filter(Tournament.game_type == game_type)
    if status:
        query = query.filter(Tournament.status == status)

    total = query.count()
    column = SORT_FIELDS[sort_by]
    ordering = column.desc() if sort_order == "desc" else column.asc()
    tournaments = (
        query.order_by(ordering, Tournament.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return tournaments, total


def get_by_id(db: Session, tournament_id: str, now: Optional[datetime] = None) -> Tournament:
    """
    Raises:
        InvalidIdError: Malformed identifier
        TournamentNotFoundError: No such tournament
    """
    tournament = _load(db, tournament_id)
    return _touch(db, tournament, now or utcnow())


def list_for_user(db: Session, phone: str, now: Optional[datetime] = None) -> List[Tuple[Tournament, TournamentPlayer]]:
    """Tournaments the phone is registered for, latest start first, each with that registration."""
    if _is_blank(phone):
        raise ValidationError(["Phone number is required"], message="Phone number is required")
    try:
        normalized_phone = normalize_phone(phone)
    except ValueError as e:
        raise ValidationError([str(e)], message="Valid phone number is required")

    sync_statuses(db, now)

    rows = (
        db.query(Tournament, TournamentPlayer)
        .join(TournamentPlayer, TournamentPlayer.tournament_id == Tournament.id)
        .filter(TournamentPlayer.phone == normalized_phone)
        .order_by(Tournament.start_time.desc())
        .all()
    )
    return [(tournament, player) for tournament, player in rows]


def set_status(db: Session, tournament_id: str, status: str, now: Optional[datetime] = None) -> Tournament:
    """
    Admin override. Any lifecycle value is stored; only CANCELLED survives the
    next derivation, and a non-cancelled value lifts a cancellation.
    """
    if status not in TournamentStatus._value2member_map_:
        raise ValidationError([f"status must be one of: {', '.join(s.value for s in TournamentStatus)}"])

    tournament = _load(db, tournament_id)
    previous = tournament.status
    tournament.status = status
    tournament.updated_at = now or utcnow()
    db.commit()
    db.refresh(tournament)

    logger.info(f"[Tournament] {tournament.id} status set {previous} -> {status}")
    return tournament
