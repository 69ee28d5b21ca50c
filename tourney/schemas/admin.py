"""
Serializers for the admin surface
"""
from ..core.clock import isoformat_utc


def user_to_dict(user) -> dict:
    """Admin view of an identity; credential columns are never included."""
    return {
        "id": user.id,
        "phone": user.phone,
        "name": user.name,
        "age": user.age,
        "consentGiven": bool(user.consent_given),
        "isActive": bool(user.is_active),
        "createdAt": isoformat_utc(user.created_at),
        "updatedAt": isoformat_utc(user.updated_at),
    }


def roster_summary(tournament) -> dict:
    return {
        "id": tournament.id,
        "title": tournament.title,
        "gameType": tournament.game_type,
        "status": tournament.status,
        "totalPlayers": tournament.player_count,
        "maxPlayers": tournament.max_players,
    }
