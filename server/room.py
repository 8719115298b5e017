"""
Room management for multiplayer Golf games.

This module owns the code -> Room mapping. A RoomManager is created by
the server at startup and handed to the message handlers; nothing here
is module-level state.

A Room contains:
    - A unique 5-character code for joining
    - The game style chosen by the creator
    - A Game instance holding the seated players and the round state
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from config import config
from constants import GameStyle
from game import Game, Player

logger = logging.getLogger(__name__)


class RoomNotFound(LookupError):
    """No live room has the requested code."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Room not found: {code}")
        self.code = code


@dataclass
class Room:
    """
    A game room that hosts one Golf round.

    Attributes:
        code: Room code for joining (e.g., "K7QX2").
        style: Rule set chosen when the room was created.
        game: Seated players and round state.
    """

    code: str
    style: GameStyle = GameStyle.GOLF4_STANDARD
    game: Game = field(init=False)

    def __post_init__(self) -> None:
        self.game = Game(style=self.style)

    def add_player(self, player_id: str, name: str) -> Player:
        """
        Seat a player in the room.

        Args:
            player_id: Unique identifier for the player.
            name: Display name.

        Returns:
            The seated Player (the existing one if already seated).
        """
        return self.game.add_player(Player(id=player_id, name=name))

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player from the room.

        Args:
            player_id: ID of the player to remove.

        Returns:
            The removed Player, or None if not found.
        """
        return self.game.remove_player(player_id)

    def get_player(self, player_id: str) -> Optional[Player]:
        """Get a player by ID, or None if not found."""
        return self.game.get_player(player_id)

    def has_player(self, player_id: str) -> bool:
        return self.game.get_player(player_id) is not None

    def is_empty(self) -> bool:
        """Check if the room has no players."""
        return not self.game.players

    def player_ids(self) -> list[str]:
        """IDs of everyone seated, in turn order."""
        return [p.id for p in self.game.players]


class RoomManager:
    """
    Manages all live game rooms.

    Provides room creation with unique codes, lookup, joining, leaving,
    and cleanup of empty rooms.
    """

    def __init__(
        self,
        code_length: Optional[int] = None,
        alphabet: Optional[str] = None,
        max_attempts: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize an empty room manager.

        Args:
            code_length: Characters per room code (default from config).
            alphabet: Characters codes are drawn from (default from config).
            max_attempts: Code generation attempts before giving up.
            rng: Random source for codes (module RNG if None).
        """
        self.rooms: dict[str, Room] = {}
        self.code_length = code_length or config.ROOM_CODE_LENGTH
        self.alphabet = alphabet or config.ROOM_CODE_ALPHABET
        self.max_attempts = max_attempts or config.ROOM_CODE_MAX_ATTEMPTS
        self._rng = rng or random

    def _generate_code(self) -> str:
        """Generate a room code not used by any live room."""
        for _ in range(self.max_attempts):
            code = "".join(self._rng.choices(self.alphabet, k=self.code_length))
            if code not in self.rooms:
                return code
        raise RuntimeError("Could not generate unique room code")

    def create_room(
        self,
        player_id: str,
        name: str,
        style: GameStyle = GameStyle.GOLF4_STANDARD,
    ) -> Room:
        """
        Create a new room with a unique code and seat its creator.

        Args:
            player_id: ID of the creating player.
            name: Creator's display name.
            style: Rule set for the room.

        Returns:
            The newly created Room.
        """
        code = self._generate_code()
        room = Room(code=code, style=style)
        room.add_player(player_id, name)
        self.rooms[code] = room
        logger.info(f"Room {code} created ({style.value})", extra={"room_code": code})
        return room

    def get_room(self, code: str) -> Optional[Room]:
        """
        Get a room by its code (case-insensitive).

        Args:
            code: The room code.

        Returns:
            The Room if found, None otherwise.
        """
        return self.rooms.get((code or "").strip().upper())

    def join_room(self, code: str, player_id: str, name: str) -> Room:
        """
        Seat a player in an existing room.

        Raises:
            RoomNotFound: If no live room has this code.
        """
        room = self.get_room(code)
        if room is None:
            raise RoomNotFound(code)
        room.add_player(player_id, name)
        return room

    def remove_room(self, code: str) -> None:
        """
        Delete a room.

        Args:
            code: The room code to remove.
        """
        if code in self.rooms:
            del self.rooms[code]
            logger.info(f"Room {code} destroyed", extra={"room_code": code})

    def leave_room(self, code: str, player_id: str) -> Optional[Room]:
        """
        Remove a player from one room, destroying it if it empties.

        Returns:
            The room if it is still live and the player was in it,
            None otherwise.
        """
        room = self.get_room(code)
        if room is None or room.remove_player(player_id) is None:
            return None
        if room.is_empty():
            self.remove_room(room.code)
            return None
        return room

    def leave(self, player_id: str) -> list[Room]:
        """
        Remove a player from every room they are seated in.

        Emptied rooms are destroyed.

        Returns:
            The rooms that lost the player and are still live.
        """
        affected = []
        for room in self.rooms_for_player(player_id):
            live = self.leave_room(room.code, player_id)
            if live is not None:
                affected.append(live)
        return affected

    def rooms_for_player(self, player_id: str) -> list[Room]:
        """
        Find every room a player is seated in.

        Args:
            player_id: The player ID to search for.

        Returns:
            Matching rooms, possibly empty.
        """
        return [room for room in self.rooms.values() if room.has_player(player_id)]
