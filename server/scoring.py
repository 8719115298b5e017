"""
Hand scoring for the Golf game family.

score_hand() is a pure function of the cards and the style. Column pairs
with equal values cancel to 0; every other card adds its point value.
The knock penalty is not applied here, see Game._end_round().
"""

from typing import Optional, Sequence

from cards import Card
from constants import COLUMN_LAYOUTS, GameStyle, get_card_value_for_rank


def card_points(card: Card, style: GameStyle) -> int:
    """Point value of a single card under a style."""
    return get_card_value_for_rank(card.rank.value, style)


def score_hand(cards: Optional[Sequence[Optional[Card]]], style: GameStyle) -> int:
    """
    Calculate the score of a finished hand.

    Card grid layouts:
        4 cards: columns (0,2), (1,3)
        6 cards: columns (0,3), (1,4), (2,5)

    Args:
        cards: The hand, index = layout slot.
        style: The room's game style.

    Returns:
        Total score (lower is better). A missing or partial hand scores 0.
    """
    if not cards or len(cards) != style.layout_size:
        return 0
    if any(card is None for card in cards):
        return 0

    total = 0
    for top_idx, bottom_idx in COLUMN_LAYOUTS[style.layout_size]:
        top_card = cards[top_idx]
        bottom_card = cards[bottom_idx]

        # Matching pair: scores 0
        if top_card.rank == bottom_card.rank:
            continue

        total += card_points(top_card, style)
        total += card_points(bottom_card, style)

    return total
