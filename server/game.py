"""
Game logic for the Golf card game family.

This module implements the per-room round state machine: dealing, turn
order, the draw/swap/discard protocol, end-of-round triggers, and
scoring with the knock penalty.

Rules Summary:
    - Each player gets 4 cards (2x2) or 6 cards (2x3) depending on style
    - The first two cards of every hand start face-up
    - On your turn: draw from deck or take the discard, then swap it into
      your hand or discard it
    - Matching values in a column cancel out (score 0)
    - 4-card styles: a player may knock instead of drawing; everyone else
      gets exactly one more turn
    - 6-card style: the first player to reveal their whole hand becomes
      the caller; everyone else gets exactly one more turn

Phases:
    LOBBY -> PLAYING -> ROUND_ENDED
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType, Optional

from cards import Card, Deck, new_shuffled_deck
from constants import DECK_SIZE, INITIAL_REVEALS, KNOCK_PENALTY, MIN_PLAYERS, GameStyle
from scoring import score_hand

PlayerId = NewType("PlayerId", str)


class GameStateError(RuntimeError):
    """Raised when an internal game invariant is broken."""


class GamePhase(Enum):
    """
    Phases of a Golf room.

    Flow: LOBBY -> PLAYING -> ROUND_ENDED
    """

    LOBBY = "lobby"              # Waiting for players to ready up
    PLAYING = "playing"          # Taking turns
    ROUND_ENDED = "round_ended"  # Scores final, nothing else happens


class TriggerKind(str, Enum):
    """How the end of the round was set in motion."""

    KNOCK = "knock"
    CALLER = "caller"


@dataclass
class EndTrigger:
    """
    Countdown to the end of the round.

    Attributes:
        kind: KNOCK (4-card styles) or CALLER (6-card style).
        player_id: The player who started the countdown. Never changes.
        remaining_turns: Response turns still owed by the other players.
    """

    kind: TriggerKind
    player_id: PlayerId
    remaining_turns: int

    def to_dict(self) -> dict:
        return {"player_id": self.player_id, "remaining": self.remaining_turns}


@dataclass
class Player:
    """
    A player seated in a room.

    Attributes:
        id: Unique identifier for the player.
        name: Display name.
        ready: Whether the player has readied up in the lobby.
        is_turn: Whether it is this player's turn.
        cards: The player's hand, index = layout slot.
    """

    id: PlayerId
    name: str
    ready: bool = False
    is_turn: bool = False
    cards: list[Card] = field(default_factory=list)

    def all_revealed(self) -> bool:
        """Check if the player holds cards and all of them are face-up."""
        return bool(self.cards) and all(card.revealed for card in self.cards)

    def swap_card(self, position: int, new_card: Card) -> Card:
        """
        Replace a card in the player's hand with a new card.

        Args:
            position: Layout slot in the hand.
            new_card: The card to place in the hand (turned face-up).

        Returns:
            The card that was replaced.
        """
        old_card = self.cards[position]
        new_card.reveal()
        self.cards[position] = new_card
        return old_card

    def calculate_score(self, style: GameStyle) -> int:
        """Score the player's current hand under a style."""
        return score_hand(self.cards, style)


@dataclass
class Game:
    """
    Round state and rules controller for one room.

    Turn actions return a falsy value when their preconditions fail and
    leave the state untouched; callers drop those silently.

    Attributes:
        style: Which Golf variant is played.
        players: Seated players in turn order.
        deck: The draw pile (None until the round is dealt).
        discard_pile: Face-up discards, top is the last element.
        picked: Card drawn but not yet resolved, keyed by player ID.
        turn_index: Index of the player whose turn it is.
        phase: Current game phase.
        end_trigger: Active knock/caller countdown, if any.
        scores: Scores of the finished round.
        totals: Cumulative scores per player.
        seed: Optional deck seed, for reproducible rounds.
    """

    style: GameStyle = GameStyle.GOLF4_STANDARD
    players: list[Player] = field(default_factory=list)
    deck: Optional[Deck] = None
    discard_pile: list[Card] = field(default_factory=list)
    picked: dict[str, Card] = field(default_factory=dict)
    turn_index: int = 0
    phase: GamePhase = GamePhase.LOBBY
    end_trigger: Optional[EndTrigger] = None
    scores: dict[str, int] = field(default_factory=dict)
    totals: dict[str, int] = field(default_factory=dict)
    seed: Optional[int] = None

    @property
    def layout_size(self) -> int:
        return self.style.layout_size

    @property
    def started(self) -> bool:
        return self.phase != GamePhase.LOBBY

    @property
    def round_ended(self) -> bool:
        return self.phase == GamePhase.ROUND_ENDED

    @property
    def knock_trigger(self) -> Optional[EndTrigger]:
        if self.end_trigger and self.end_trigger.kind == TriggerKind.KNOCK:
            return self.end_trigger
        return None

    @property
    def caller_trigger(self) -> Optional[EndTrigger]:
        if self.end_trigger and self.end_trigger.kind == TriggerKind.CALLER:
            return self.end_trigger
        return None

    # -------------------------------------------------------------------------
    # Player Management
    # -------------------------------------------------------------------------

    def add_player(self, player: Player) -> Player:
        """
        Seat a player at the end of the turn order.

        If a round is in progress the player is dealt in from the deck.
        Re-adding a seated player returns the existing seat.
        """
        existing = self.get_player(player.id)
        if existing:
            return existing

        self.players.append(player)
        self.totals.setdefault(player.id, 0)
        if self.phase == GamePhase.PLAYING:
            self._deal_in(player)
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player from the game by ID.

        The departing hand and any picked card go face-down under the
        deck so the card count stays whole. If players remain, the
        current player keeps the turn when an earlier seat leaves, and
        turn_index is clamped back to 0 when it runs past the end of the
        table.

        Args:
            player_id: The unique ID of the player to remove.

        Returns:
            The removed Player, or None if not found.
        """
        for i, player in enumerate(self.players):
            if player.id == player_id:
                removed_idx = i
                removed = self.players.pop(i)
                break
        else:
            return None

        returned = list(removed.cards)
        picked_card = self.picked.pop(player_id, None)
        if picked_card:
            returned.append(picked_card)
        if returned and self.deck is not None:
            self.deck.put_bottom([Card(card.suit, card.rank) for card in returned])
        removed.cards = []
        removed.is_turn = False
        self.totals.pop(player_id, None)
        self.scores.pop(player_id, None)

        if not self.players:
            return removed

        if removed_idx < self.turn_index:
            self.turn_index -= 1
        elif self.turn_index >= len(self.players):
            self.turn_index = 0

        if self.phase == GamePhase.PLAYING:
            for p in self.players:
                p.is_turn = False
            self.players[self.turn_index].is_turn = True
            self._resync_trigger()

        return removed

    def get_player(self, player_id: str) -> Optional[Player]:
        """
        Find a player by their ID.

        Args:
            player_id: The unique ID to search for.

        Returns:
            The Player if found, None otherwise.
        """
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it currently is."""
        if self.phase == GamePhase.PLAYING and self.players:
            return self.players[self.turn_index]
        return None

    def set_ready(self, player_id: str, ready: bool) -> bool:
        """
        Set a player's lobby ready flag.

        Returns:
            True if the flag was set, False outside the lobby or for an
            unknown player.
        """
        if self.phase != GamePhase.LOBBY:
            return False
        player = self.get_player(player_id)
        if not player:
            return False
        player.ready = bool(ready)
        return True

    # -------------------------------------------------------------------------
    # Round Lifecycle
    # -------------------------------------------------------------------------

    def can_start(self) -> bool:
        """Everyone is ready, there are enough players, and the deck can cover the deal."""
        if self.phase != GamePhase.LOBBY:
            return False
        if len(self.players) < MIN_PLAYERS:
            return False
        if not all(p.ready for p in self.players):
            return False
        return len(self.players) * self.layout_size + 1 <= DECK_SIZE

    def start_round(self) -> bool:
        """
        Deal a new round if the lobby is ready.

        Shuffles a fresh deck, deals layout_size cards to each player one
        at a time around the table, turns one card up to start the
        discard pile, reveals the first two cards of every hand and gives
        the first seat the turn.

        Returns:
            True if the round started, False if the lobby isn't ready.
        """
        if not self.can_start():
            return False

        self.deck = new_shuffled_deck(self.seed)
        self.discard_pile = []
        self.picked = {}
        self.end_trigger = None
        self.scores = {}

        for player in self.players:
            player.cards = []
            player.is_turn = False

        for _ in range(self.layout_size):
            for player in self.players:
                player.cards.append(self.deck.draw())

        first_discard = self.deck.draw()
        first_discard.reveal()
        self.discard_pile.append(first_discard)

        for player in self.players:
            for card in player.cards[:INITIAL_REVEALS]:
                card.reveal()

        self.turn_index = 0
        self.phase = GamePhase.PLAYING
        self.players[self.turn_index].is_turn = True

        self.check_card_count()
        return True

    def _deal_in(self, player: Player) -> bool:
        """Deal a full hand to a player joining a round in progress."""
        if self.deck is None or self.deck.cards_remaining() < self.layout_size:
            return False
        player.cards = [self.deck.draw() for _ in range(self.layout_size)]
        for card in player.cards[:INITIAL_REVEALS]:
            card.reveal()
        return True

    def card_count(self) -> int:
        """Cards in deck, discard pile, hands and picks combined."""
        total = len(self.deck) if self.deck else 0
        total += len(self.discard_pile)
        total += sum(len(p.cards) for p in self.players)
        total += len(self.picked)
        return total

    def check_card_count(self) -> None:
        """Raise GameStateError unless all 52 cards are accounted for."""
        count = self.card_count()
        if count != DECK_SIZE:
            raise GameStateError(f"Card count is {count}, expected {DECK_SIZE}")

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def _acting_player(self, player_id: str) -> Optional[Player]:
        """The player, if it is their turn in a round in progress."""
        player = self.current_player()
        if not player or player.id != player_id:
            return None
        return player

    def draw_from_deck(self, player_id: str) -> Optional[Card]:
        """
        Draw the top card of the deck into the player's pick.

        Returns:
            The drawn Card, or None if the action is invalid.
        """
        player = self._acting_player(player_id)
        if not player or player_id in self.picked:
            return None

        card = self.deck.draw()
        if not card:
            return None
        self.picked[player_id] = card
        return card

    def take_discard(self, player_id: str) -> Optional[Card]:
        """
        Take the top card of the discard pile into the player's pick.

        Returns:
            The taken Card, or None if the action is invalid.
        """
        player = self._acting_player(player_id)
        if not player or player_id in self.picked:
            return None

        if not self.discard_pile:
            return None
        card = self.discard_pile.pop()
        self.picked[player_id] = card
        return card

    def swap(self, player_id: str, position: int) -> Optional[Card]:
        """
        Swap the picked card into the player's hand and end the turn.

        The replaced card goes face-up onto the discard pile. In the
        6-card style, the first player whose hand ends up fully revealed
        becomes the caller.

        Args:
            player_id: ID of the player swapping.
            position: Layout slot in the player's hand.

        Returns:
            The card that was replaced, or None if the action is invalid.
        """
        player = self._acting_player(player_id)
        if not player or player_id not in self.picked:
            return None

        if not (0 <= position < self.layout_size) or position >= len(player.cards):
            return None

        new_card = self.picked.pop(player_id)
        old_card = player.swap_card(position, new_card)
        old_card.reveal()
        self.discard_pile.append(old_card)

        if self.style.auto_caller and self.end_trigger is None and player.all_revealed():
            self.end_trigger = EndTrigger(
                kind=TriggerKind.CALLER,
                player_id=player.id,
                remaining_turns=len(self.players) - 1,
            )

        self._next_turn(player.id)
        return old_card

    def discard_picked(self, player_id: str) -> bool:
        """
        Discard the picked card without swapping and end the turn.

        Returns:
            True if discard was successful, False otherwise.
        """
        player = self._acting_player(player_id)
        if not player or player_id not in self.picked:
            return False

        card = self.picked.pop(player_id)
        card.reveal()
        self.discard_pile.append(card)

        self._next_turn(player.id)
        return True

    def knock(self, player_id: str) -> bool:
        """
        Knock instead of drawing (4-card styles only).

        Every other player gets exactly one more turn, then the round ends.

        Returns:
            True if the knock was accepted, False otherwise.
        """
        if not self.style.allows_knock:
            return False

        player = self._acting_player(player_id)
        if not player or player_id in self.picked:
            return False

        if self.end_trigger is not None:
            return False

        self.end_trigger = EndTrigger(
            kind=TriggerKind.KNOCK,
            player_id=player.id,
            remaining_turns=len(self.players) - 1,
        )

        self._next_turn(player.id)
        return True

    # -------------------------------------------------------------------------
    # Turn & Round Flow (Internal)
    # -------------------------------------------------------------------------

    def _next_turn(self, finished_id: str) -> None:
        """
        Advance to the next player's turn.

        While a knock/caller countdown runs, every turn finished by
        someone other than the trigger uses up one response turn. Once
        they're used up and control comes back to the trigger, the round
        ends instead.

        Args:
            finished_id: The player whose turn just ended.
        """
        self.players[self.turn_index].is_turn = False
        self.turn_index = (self.turn_index + 1) % len(self.players)

        trigger = self.end_trigger
        if trigger and self.phase == GamePhase.PLAYING:
            if finished_id != trigger.player_id:
                trigger.remaining_turns -= 1

            next_player = self.players[self.turn_index]
            trigger_seated = self.get_player(trigger.player_id) is not None
            if trigger.remaining_turns <= 0 and (
                next_player.id == trigger.player_id or not trigger_seated
            ):
                self._end_round()
                return

        self.players[self.turn_index].is_turn = True

    def _resync_trigger(self) -> None:
        """
        Recount response turns after a player leaves mid-countdown.

        Owed turns become the seats from the current player up to the
        trigger, never more than before. Landing on the trigger ends the
        round. A departed trigger keeps the existing count.
        """
        trigger = self.end_trigger
        if not trigger or self.phase != GamePhase.PLAYING:
            return

        trigger_idx = next(
            (i for i, p in enumerate(self.players) if p.id == trigger.player_id),
            None,
        )
        if trigger_idx is None:
            if trigger.remaining_turns <= 0:
                self._end_round()
            return

        owed = (trigger_idx - self.turn_index) % len(self.players)
        trigger.remaining_turns = min(trigger.remaining_turns, owed)
        if owed == 0:
            self._end_round()

    def _end_round(self) -> None:
        """
        End the round and calculate final scores.

        Reveals all cards, scores every hand, adds the knock penalty when
        the knocker doesn't hold the lowest score, and adds each score to
        the player's running total.
        """
        self.phase = GamePhase.ROUND_ENDED

        for player in self.players:
            player.is_turn = False
            for card in player.cards:
                card.reveal()

        scores = {p.id: p.calculate_score(self.style) for p in self.players}

        knock = self.knock_trigger
        if knock and knock.player_id in scores:
            min_score = min(scores.values())
            if scores[knock.player_id] != min_score:
                scores[knock.player_id] += KNOCK_PENALTY

        self.scores = scores
        for player_id, score in scores.items():
            self.totals[player_id] = self.totals.get(player_id, 0) + score

    # -------------------------------------------------------------------------
    # State Queries
    # -------------------------------------------------------------------------

    def discard_top(self) -> Optional[Card]:
        """Get the top card of the discard pile (if any)."""
        if self.discard_pile:
            return self.discard_pile[-1]
        return None
