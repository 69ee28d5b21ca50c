import enum
import uuid

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from ..db import Base
from ..core.clock import utcnow


class GameType(str, enum.Enum):
    PUBG = "PUBG"
    FREE_FIRE = "FREE_FIRE"
    COD_MOBILE = "COD_MOBILE"
    BGMI = "BGMI"


class TournamentStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


def generate_tournament_id() -> str:
    return str(uuid.uuid4())


class Tournament(Base):
    __tablename__ = "tournaments"

    id = Column(String(36), primary_key=True, default=generate_tournament_id)
    game_type = Column(String(20), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    start_time = Column(DateTime, nullable=False, index=True)  # naive UTC
    entry_fee = Column(Float, nullable=False, default=0)
    per_kill = Column(Float, nullable=False, default=0)
    winning_amount = Column(Float, nullable=False, default=0)
    max_players = Column(Integer, nullable=False, default=100)
    room_id = Column(String(100), nullable=False)
    room_password = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default=TournamentStatus.UPCOMING.value, index=True)

    # Always equal to len(players); the capacity guard updates it atomically
    player_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    players = relationship(
        "TournamentPlayer",
        back_populates="tournament",
        order_by="TournamentPlayer.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("player_count >= 0 AND player_count <= max_players", name="ck_tournaments_capacity"),
    )

    @property
    def spots_left(self) -> int:
        return max(self.max_players - (self.player_count or 0), 0)

    @property
    def is_full(self) -> bool:
        return (self.player_count or 0) >= self.max_players

    def is_user_registered(self, phone: str) -> bool:
        return any(player.phone == phone for player in self.players)

    def __repr__(self):
        return f"<Tournament {self.id} {self.title!r} {self.status}>"


class TournamentPlayer(Base):
    """Roster entry owned by its tournament; never addressed on its own."""

    __tablename__ = "tournament_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    game_name = Column(String(30), nullable=False)
    uid = Column(String(64), nullable=False)
    registered_at = Column(DateTime, nullable=False, default=utcnow)

    tournament = relationship("Tournament", back_populates="players")

    __table_args__ = (
        UniqueConstraint("tournament_id", "phone", name="uq_tournament_players_tournament_phone"),
        Index("ix_tournament_players_tournament_registered", "tournament_id", "registered_at"),
    )
