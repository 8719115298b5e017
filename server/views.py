"""
Public and private views of a room.

The public view is broadcast to everyone in the room, so it must never
carry the identity of a face-down card or of a picked card. Face-down
cards are shown as {"revealed": False}; the deck is just a count and the
discard pile is just its top card.

A player learns their own hidden cards only through private_hand().
"""

from typing import Optional

from game import Player
from room import Room


def public_room_view(room: Room) -> dict:
    """
    Build the sanitized room state for broadcast.

    Args:
        room: The room to project.

    Returns:
        Dict suitable for JSON serialization.
    """
    game = room.game
    discard_top = game.discard_top()

    players_data = []
    for player in game.players:
        players_data.append({
            "id": player.id,
            "name": player.name,
            "ready": player.ready,
            "is_turn": player.is_turn,
            "hand": [card.to_client_dict() for card in player.cards],
            "has_picked": player.id in game.picked,
        })

    return {
        "code": room.code,
        "style": room.style.value,
        "phase": game.phase.value,
        "started": game.started,
        "round_ended": game.round_ended,
        "players": players_data,
        "turn_index": game.turn_index,
        "deck_count": game.deck.cards_remaining() if game.deck else 0,
        "discard_top": discard_top.to_dict() if discard_top else None,
        "knock": game.knock_trigger.to_dict() if game.knock_trigger else None,
        "caller": game.caller_trigger.to_dict() if game.caller_trigger else None,
        "totals": {p.id: game.totals.get(p.id, 0) for p in game.players},
    }


def private_hand(player: Optional[Player]) -> list[dict]:
    """Full identities of every card in a player's hand."""
    if not player:
        return []
    return [card.to_dict() for card in player.cards]


def round_result(room: Room) -> dict:
    """Scores of the finished round and running totals."""
    game = room.game
    return {
        "scores": dict(game.scores),
        "totals": {p.id: game.totals.get(p.id, 0) for p in game.players},
    }
