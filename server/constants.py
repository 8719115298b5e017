"""
Card value and layout constants for the Golf game family.

This module is the single source of truth for card point values and
hand layouts. Scoring in scoring.py reads everything from here.

Scoring per style:
    4-card styles (golf4_standard, golf4_cabo):
        - Ace: 1 point
        - 2-9: Face value
        - 10, Jack, Queen: 10 points
        - King: 0 points
    6-card style (golf6_standard):
        - Ace: 1 point
        - Two: -2 points (the only negative card)
        - 3-9: Face value
        - 10, Jack, Queen: 10 points
        - King: 0 points

Layouts (index = slot in the hand):
    4 cards:  [0] [1]      6 cards:  [0] [1] [2]
              [2] [3]                [3] [4] [5]

    Columns with matching values score 0.
"""

from enum import Enum


class GameStyle(str, Enum):
    """
    Selectable rule sets.

    GOLF4_CABO is accepted as a style but plays exactly like
    GOLF4_STANDARD; power-card behavior is not implemented.
    """

    GOLF4_STANDARD = "golf4_standard"
    GOLF6_STANDARD = "golf6_standard"
    GOLF4_CABO = "golf4_cabo"

    @property
    def layout_size(self) -> int:
        """Number of cards in each hand."""
        return 6 if self is GameStyle.GOLF6_STANDARD else 4

    @property
    def allows_knock(self) -> bool:
        """4-card styles end rounds by knocking."""
        return self.layout_size == 4

    @property
    def auto_caller(self) -> bool:
        """6-card style ends rounds when a hand is fully revealed."""
        return self.layout_size == 6


# =============================================================================
# Card Values
# =============================================================================

FOUR_CARD_VALUES: dict[str, int] = {
    'A': 1,
    '2': 2,
    '3': 3,
    '4': 4,
    '5': 5,
    '6': 6,
    '7': 7,
    '8': 8,
    '9': 9,
    '10': 10,
    'J': 10,
    'Q': 10,
    'K': 0,
}

SIX_CARD_VALUES: dict[str, int] = {
    **FOUR_CARD_VALUES,
    '2': -2,
}

# Column pairs by hand size
COLUMN_LAYOUTS: dict[int, tuple[tuple[int, int], ...]] = {
    4: ((0, 2), (1, 3)),
    6: ((0, 3), (1, 4), (2, 5)),
}


# =============================================================================
# Game Constants
# =============================================================================

DECK_SIZE = 52
MIN_PLAYERS = 2
INITIAL_REVEALS = 2
KNOCK_PENALTY = 10


# =============================================================================
# Helper Functions
# =============================================================================

def card_values_for_style(style: GameStyle) -> dict[str, int]:
    """Get the rank -> points table for a style."""
    if style.layout_size == 6:
        return SIX_CARD_VALUES
    return FOUR_CARD_VALUES


def get_card_value_for_rank(rank_str: str, style: GameStyle) -> int:
    """
    Get point value for a card rank string under a style.

    Args:
        rank_str: Card rank as string ('A', '2', ..., 'K').
        style: The room's game style.

    Returns:
        Point value for the card, 0 for an unknown rank.
    """
    return card_values_for_style(style).get(rank_str, 0)
