"""
Schemas and serializers for tournament endpoints.

Public views never carry player phone numbers or room credentials; the
admission response is the only non-admin payload with room credentials.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.clock import isoformat_utc


class TournamentCreateRequest(BaseModel):
    """Values pass through untyped; the service parses them and reports every problem at once."""

    model_config = ConfigDict(populate_by_name=True)

    game_type: Optional[Any] = Field(default=None, alias="gameType")
    title: Optional[Any] = None
    start_time: Optional[Any] = Field(default=None, alias="startTime")
    entry_fee: Optional[Any] = Field(default=None, alias="entryFee")
    per_kill: Optional[Any] = Field(default=None, alias="perKill")
    winning_amount: Optional[Any] = Field(default=None, alias="winningAmount")
    max_players: Optional[Any] = Field(default=None, alias="maxPlayers")
    room_id: Optional[Any] = Field(default=None, alias="roomId")
    room_password: Optional[Any] = Field(default=None, alias="roomPassword")


class RegistrationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone: Optional[Any] = None
    game_name: Optional[Any] = Field(default=None, alias="gameName")
    uid: Optional[Any] = None


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


def player_to_dict(player, include_phone: bool = False) -> dict:
    data = {
        "gameName": player.game_name,
        "uid": player.uid,
        "registeredAt": isoformat_utc(player.registered_at),
    }
    if include_phone:
        data["phone"] = player.phone
    return data


def tournament_to_dict(
    tournament,
    include_players: bool = True,
    include_player_phones: bool = False,
    include_room: bool = False,
) -> dict:
    data = {
        "id": tournament.id,
        "gameType": tournament.game_type,
        "title": tournament.title,
        "startTime": isoformat_utc(tournament.start_time),
        "entryFee": tournament.entry_fee,
        "perKill": tournament.per_kill,
        "winningAmount": tournament.winning_amount,
        "maxPlayers": tournament.max_players,
        "status": tournament.status,
        "playerCount": tournament.player_count,
        "spotsLeft": tournament.spots_left,
        "createdAt": isoformat_utc(tournament.created_at),
        "updatedAt": isoformat_utc(tournament.updated_at),
    }
    if include_room:
        data["roomId"] = tournament.room_id
        data["roomPassword"] = tournament.room_password
    if include_players:
        data["players"] = [
            player_to_dict(player, include_phone=include_player_phones) for player in tournament.players
        ]
    return data


def pagination_dict(page: int, limit: int, total: int, returned: int) -> dict:
    skip = (page - 1) * limit
    return {
        "currentPage": page,
        "totalPages": (total + limit - 1) // limit,
        "totalTournaments": total,
        "hasNext": skip + returned < total,
        "hasPrev": page > 1,
    }
