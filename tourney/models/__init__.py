from .user import User
from .tournament import Tournament, TournamentPlayer, TournamentStatus, GameType

__all__ = [
    "User",
    "Tournament",
    "TournamentPlayer",
    "TournamentStatus",
    "GameType",
]
