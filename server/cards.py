"""
Cards and the draw deck.

A standard 52-card deck with no jokers. The top of the deck is the end
of the internal card list, so drawing is a pop.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Suit(Enum):
    """Card suits for a standard deck."""

    SPADES = "♠"
    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"


class Rank(Enum):
    """Card ranks with their display values."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"


@dataclass
class Card:
    """
    A playing card with suit, rank, and revealed state.

    Suit and rank never change after the deck is built. ``revealed`` only
    ever goes from False to True; use reveal() rather than assigning it.

    Attributes:
        suit: The card's suit.
        rank: The card's rank (A, 2-10, J, Q, K).
        revealed: Whether the card is visible to all players.
    """

    suit: Suit
    rank: Rank
    revealed: bool = False

    def reveal(self) -> None:
        """Turn the card face-up."""
        self.revealed = True

    def to_dict(self) -> dict:
        """
        Convert card to dictionary with full identity.

        Used for private messages (own hand, picked card) and for cards
        that are public anyway (discard top, revealed hand cards).
        """
        return {
            "suit": self.suit.value,
            "value": self.rank.value,
            "revealed": self.revealed,
        }

    def to_client_dict(self) -> dict:
        """
        Convert card to dictionary for the public room view.

        Hides card identity if face-down.

        Returns:
            Dict with card info, or just {revealed: False} if hidden.
        """
        if self.revealed:
            return self.to_dict()
        return {"revealed": False}


def fisher_yates(items: list, rng: random.Random) -> None:
    """
    Shuffle a list in place.

    Walks from the last index down to 1 and swaps each slot with a
    uniformly chosen index in [0, i].
    """
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


class Deck:
    """
    A single 52-card deck that can be shuffled and drawn from.

    The deck keeps its seed so a round can be reproduced exactly. It
    shuffles with its own random.Random and leaves the global RNG alone.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        """
        Build and shuffle a fresh deck.

        Args:
            seed: Optional random seed for deterministic shuffle.
                  If None, a random seed is generated and stored.
        """
        self.seed: int = seed if seed is not None else random.randint(0, 2**31 - 1)
        self._rng = random.Random(self.seed)
        self.cards: list[Card] = [Card(suit, rank) for suit in Suit for rank in Rank]
        self.shuffle()

    def shuffle(self) -> None:
        """Randomize the order of the cards in the deck."""
        fisher_yates(self.cards, self._rng)

    def draw(self) -> Optional[Card]:
        """
        Draw the top card from the deck.

        Returns:
            The drawn Card, or None if deck is empty.
        """
        if self.cards:
            return self.cards.pop()
        return None

    def put_bottom(self, cards: list[Card]) -> None:
        """Slide cards under the deck without disturbing the draw order."""
        self.cards[0:0] = cards

    def cards_remaining(self) -> int:
        """Return the number of cards left in the deck."""
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)


def new_shuffled_deck(seed: Optional[int] = None) -> Deck:
    """Build a full, shuffled deck."""
    return Deck(seed=seed)
