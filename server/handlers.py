"""Message handlers for the Golf room server.

Each handler corresponds to a single inbound message type. Handlers are
synchronous: they validate the payload, mutate the room, and return the
messages to push as a list of Outbound. The WebSocket gateway in main.py
delivers them, so nothing here touches the network.

Invalid actions (wrong turn, wrong phase, bad payload, empty source)
return an empty list. The only error reported back is an unknown room
code on join.
"""

import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import BaseModel, ValidationError, field_validator

from constants import GameStyle
from logging_config import get_logger
from room import Room, RoomManager, RoomNotFound
from views import private_hand, public_room_view, round_result

logger = get_logger(__name__)

DEFAULT_PLAYER_NAME = "Player"
MAX_NAME_LENGTH = 24


@dataclass
class ConnectionContext:
    """
    State tracked per connection.

    The player ID is issued alongside the connection ID but is a separate
    value; game state only ever sees the player ID.
    """

    connection_id: str
    player_id: str


def new_connection_context() -> ConnectionContext:
    """Issue fresh connection and player IDs."""
    return ConnectionContext(
        connection_id=str(uuid.uuid4()),
        player_id=f"p_{uuid.uuid4().hex[:12]}",
    )


@dataclass
class Outbound:
    """A message and the player IDs it should be delivered to."""

    recipients: tuple[str, ...]
    message: dict


def to_player(recipient: str, msg_type: str, **data) -> Outbound:
    return Outbound(recipients=(recipient,), message={"type": msg_type, **data})


def to_room(room: Room, msg_type: str, **data) -> Outbound:
    return Outbound(recipients=tuple(room.player_ids()), message={"type": msg_type, **data})


def room_state(room: Room) -> Outbound:
    """Broadcast of the sanitized room view."""
    return to_room(room, "room.state", state=public_room_view(room))


# ---------------------------------------------------------------------------
# Inbound payloads
# ---------------------------------------------------------------------------

class RoomMessage(BaseModel):
    room_code: str

    @field_validator("room_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class CreateRoomMessage(BaseModel):
    player_name: str = DEFAULT_PLAYER_NAME
    style: GameStyle = GameStyle.GOLF4_STANDARD

    @field_validator("player_name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return v.strip()[:MAX_NAME_LENGTH] or DEFAULT_PLAYER_NAME


class JoinRoomMessage(RoomMessage):
    player_name: str = DEFAULT_PLAYER_NAME

    @field_validator("player_name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return v.strip()[:MAX_NAME_LENGTH] or DEFAULT_PLAYER_NAME


class SetReadyMessage(RoomMessage):
    ready: bool = False


class SwapMessage(RoomMessage):
    index: int


def _seated_room(room_code: str, ctx: ConnectionContext, room_manager: RoomManager) -> Optional[Room]:
    """The room, if it exists and the connection's player sits in it."""
    room = room_manager.get_room(room_code)
    if room is None or not room.has_player(ctx.player_id):
        return None
    return room


def _round_updates(room: Room, ended_before: bool) -> list[Outbound]:
    """State broadcast, plus the round result if the round just ended."""
    out = [room_state(room)]
    if room.game.round_ended and not ended_before:
        logger.with_context(room_code=room.code).info(f"Round ended: {room.game.scores}")
        out.append(to_room(room, "round.ended", **round_result(room)))
    return out


# ---------------------------------------------------------------------------
# Lobby / Room handlers
# ---------------------------------------------------------------------------

def handle_create_room(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = CreateRoomMessage.model_validate(data)
    room = room_manager.create_room(ctx.player_id, msg.player_name, msg.style)

    return [
        to_player(ctx.player_id, "room.created", room_code=room.code, player_id=ctx.player_id),
        room_state(room),
    ]


def handle_join_room(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = JoinRoomMessage.model_validate(data)

    try:
        room = room_manager.join_room(msg.room_code, ctx.player_id, msg.player_name)
    except RoomNotFound:
        logger.with_context(player_id=ctx.player_id).debug(f"Join failed, no room {msg.room_code}")
        return [to_player(ctx.player_id, "error", code="room_not_found", message="Room not found")]

    logger.with_context(room_code=room.code, player_id=ctx.player_id).info(f"{msg.player_name} joined")

    out = [to_player(ctx.player_id, "room.joined", room_code=room.code, player_id=ctx.player_id)]
    if room.game.started:
        player = room.get_player(ctx.player_id)
        out.append(to_player(ctx.player_id, "game.hand", cards=private_hand(player)))
        out.append(to_player(ctx.player_id, "game.started", room_code=room.code))
    out.append(room_state(room))
    return out


def handle_leave_room(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = RoomMessage.model_validate(data)
    room = room_manager.get_room(msg.room_code)
    ended_before = room.game.round_ended if room else False

    live = room_manager.leave_room(msg.room_code, ctx.player_id)
    if live is None:
        return []
    return _round_updates(live, ended_before)


def handle_set_ready(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = SetReadyMessage.model_validate(data)
    room = _seated_room(msg.room_code, ctx, room_manager)
    if room is None or not room.game.set_ready(ctx.player_id, msg.ready):
        return []

    out = []
    if room.game.start_round():
        logger.with_context(room_code=room.code).info(
            f"Game started with {len(room.game.players)} players"
        )
        for player in room.game.players:
            out.append(to_player(player.id, "game.hand", cards=private_hand(player)))
            out.append(to_player(player.id, "game.started", room_code=room.code))
    out.append(room_state(room))
    return out


# ---------------------------------------------------------------------------
# Turn action handlers
# ---------------------------------------------------------------------------

def handle_draw_from_deck(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = RoomMessage.model_validate(data)
    room = _seated_room(msg.room_code, ctx, room_manager)
    if room is None:
        return []

    card = room.game.draw_from_deck(ctx.player_id)
    if card is None:
        return []
    return [to_player(ctx.player_id, "game.picked", card=card.to_dict()), room_state(room)]


def handle_take_discard(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = RoomMessage.model_validate(data)
    room = _seated_room(msg.room_code, ctx, room_manager)
    if room is None:
        return []

    card = room.game.take_discard(ctx.player_id)
    if card is None:
        return []
    return [to_player(ctx.player_id, "game.picked", card=card.to_dict()), room_state(room)]


def handle_swap(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = SwapMessage.model_validate(data)
    room = _seated_room(msg.room_code, ctx, room_manager)
    if room is None:
        return []

    ended_before = room.game.round_ended
    if room.game.swap(ctx.player_id, msg.index) is None:
        return []

    player = room.get_player(ctx.player_id)
    return [
        to_player(ctx.player_id, "game.hand", cards=private_hand(player)),
        to_player(ctx.player_id, "game.picked", card=None),
        *_round_updates(room, ended_before),
    ]


def handle_discard_picked(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = RoomMessage.model_validate(data)
    room = _seated_room(msg.room_code, ctx, room_manager)
    if room is None:
        return []

    ended_before = room.game.round_ended
    if not room.game.discard_picked(ctx.player_id):
        return []

    return [to_player(ctx.player_id, "game.picked", card=None), *_round_updates(room, ended_before)]


def handle_knock(data: dict, ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    msg = RoomMessage.model_validate(data)
    room = _seated_room(msg.room_code, ctx, room_manager)
    if room is None:
        return []

    ended_before = room.game.round_ended
    if not room.game.knock(ctx.player_id):
        return []

    logger.with_context(room_code=room.code, player_id=ctx.player_id).info("Knocked")
    return _round_updates(room, ended_before)


# ---------------------------------------------------------------------------
# Disconnect
# ---------------------------------------------------------------------------

def handle_disconnect(ctx: ConnectionContext, *, room_manager: RoomManager) -> list[Outbound]:
    """Remove the player from every room and rebroadcast to the rooms that remain."""
    ended_before = {
        room.code: room.game.round_ended
        for room in room_manager.rooms_for_player(ctx.player_id)
    }

    out = []
    for room in room_manager.leave(ctx.player_id):
        out.extend(_round_updates(room, ended_before.get(room.code, False)))
    return out


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

HANDLERS: dict[str, Callable[..., list[Outbound]]] = {
    "room.create": handle_create_room,
    "room.join": handle_join_room,
    "room.leave": handle_leave_room,
    "player.setReady": handle_set_ready,
    "game.drawFromDeck": handle_draw_from_deck,
    "game.takeDiscard": handle_take_discard,
    "game.swap": handle_swap,
    "game.discardPicked": handle_discard_picked,
    "game.knock": handle_knock,
}


def dispatch(data: dict, ctx: ConnectionContext, room_manager: RoomManager) -> list[Outbound]:
    """
    Route one inbound message to its handler.

    Unknown types and payloads that fail validation are dropped.

    Returns:
        Messages to deliver, in order.
    """
    if not isinstance(data, dict):
        return []

    msg_type = data.get("type")
    handler = HANDLERS.get(msg_type) if isinstance(msg_type, str) else None
    if handler is None:
        logger.with_context(player_id=ctx.player_id).debug(f"Ignoring message type {msg_type!r}")
        return []

    try:
        return handler(data, ctx, room_manager=room_manager)
    except ValidationError as e:
        logger.with_context(player_id=ctx.player_id).debug(
            f"Dropping invalid {msg_type} payload: {e.error_count()} error(s)"
        )
        return []
