"""
Test suite for the Golf round state machine.

Covers:
- Lobby -> Playing transition and the deal
- Draw / take discard / swap / discard / knock guards
- Turn rotation and the one-turn-holder invariant
- 52-card conservation
- Knock and caller countdowns
- End-of-round scoring with the knock penalty
- Players leaving and joining mid-round

Run with: pytest test_game.py -v
"""

import pytest

from cards import Card, Rank, Suit, new_shuffled_deck
from constants import GameStyle
from game import EndTrigger, Game, GamePhase, GameStateError, Player, TriggerKind


# =============================================================================
# Helpers
# =============================================================================

def make_lobby(style=GameStyle.GOLF4_STANDARD, num_players=2, seed=1234) -> Game:
    game = Game(style=style, seed=seed)
    for i in range(num_players):
        game.add_player(Player(id=f"p{i}", name=f"Player {i}"))
    return game


def make_game(style=GameStyle.GOLF4_STANDARD, num_players=2, seed=1234) -> Game:
    """A game that has been dealt and is in PLAYING."""
    game = make_lobby(style, num_players, seed)
    for p in game.players:
        game.set_ready(p.id, True)
    assert game.start_round()
    return game


def set_hand(player: Player, ranks: list[Rank]) -> None:
    """Give a player a specific face-up hand (breaks card conservation)."""
    suits = list(Suit)
    player.cards = [Card(suits[i % 4], rank, revealed=True) for i, rank in enumerate(ranks)]


def pass_turn(game: Game) -> None:
    """Current player draws from the deck and throws it away."""
    player = game.current_player()
    assert game.draw_from_deck(player.id) is not None
    assert game.discard_picked(player.id)


def turn_holders(game: Game) -> list[str]:
    return [p.id for p in game.players if p.is_turn]


# =============================================================================
# Lobby Tests
# =============================================================================

class TestLobby:

    def test_new_game_in_lobby(self):
        game = make_lobby()
        assert game.phase == GamePhase.LOBBY
        assert game.started is False
        assert game.deck is None

    def test_needs_two_players(self):
        game = make_lobby(num_players=1)
        game.set_ready("p0", True)
        assert game.start_round() is False
        assert game.phase == GamePhase.LOBBY

    def test_needs_everyone_ready(self):
        game = make_lobby(num_players=3)
        game.set_ready("p0", True)
        game.set_ready("p1", True)
        assert game.start_round() is False

    def test_starts_when_all_ready(self):
        game = make_lobby()
        game.set_ready("p0", True)
        game.set_ready("p1", True)
        assert game.start_round() is True
        assert game.phase == GamePhase.PLAYING

    def test_unready_again(self):
        game = make_lobby()
        game.set_ready("p0", True)
        game.set_ready("p0", False)
        game.set_ready("p1", True)
        assert game.can_start() is False

    def test_set_ready_unknown_player(self):
        game = make_lobby()
        assert game.set_ready("nobody", True) is False

    def test_set_ready_ignored_after_start(self):
        game = make_game()
        assert game.set_ready("p0", False) is False
        assert game.get_player("p0").ready is True

    def test_start_round_only_once(self):
        game = make_game()
        assert game.start_round() is False

    def test_six_card_deal_must_fit_deck(self):
        # 9 players x 6 cards + 1 discard > 52
        game = make_lobby(style=GameStyle.GOLF6_STANDARD, num_players=9)
        for p in game.players:
            game.set_ready(p.id, True)
        assert game.start_round() is False

    def test_eight_players_six_cards_fit(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD, num_players=8)
        assert game.deck.cards_remaining() == 52 - 48 - 1

    def test_actions_ignored_in_lobby(self):
        game = make_lobby()
        assert game.draw_from_deck("p0") is None
        assert game.take_discard("p0") is None
        assert game.knock("p0") is False
        assert game.discard_picked("p0") is False
        assert game.swap("p0", 0) is None


# =============================================================================
# Deal Tests
# =============================================================================

class TestDeal:

    @pytest.mark.parametrize("style,size", [
        (GameStyle.GOLF4_STANDARD, 4),
        (GameStyle.GOLF4_CABO, 4),
        (GameStyle.GOLF6_STANDARD, 6),
    ])
    def test_hand_size_by_style(self, style, size):
        game = make_game(style=style, num_players=3)
        for p in game.players:
            assert len(p.cards) == size

    def test_first_two_cards_revealed(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD, num_players=3)
        for p in game.players:
            assert [c.revealed for c in p.cards] == [True, True, False, False, False, False]

    def test_discard_starts_with_one_face_up_card(self):
        game = make_game()
        assert len(game.discard_pile) == 1
        assert game.discard_top().revealed is True

    def test_deck_count_after_deal(self):
        game = make_game(num_players=3)
        assert game.deck.cards_remaining() == 52 - 3 * 4 - 1

    def test_first_seat_has_turn(self):
        game = make_game(num_players=3)
        assert game.turn_index == 0
        assert turn_holders(game) == ["p0"]

    def test_deal_conserves_cards(self):
        game = make_game(num_players=4)
        assert game.card_count() == 52

    def test_deal_is_round_robin(self):
        game = make_game(num_players=2, seed=77)
        deck = new_shuffled_deck(77)
        order = [deck.draw() for _ in range(8)]
        p0 = [(c.suit, c.rank) for c in game.players[0].cards]
        p1 = [(c.suit, c.rank) for c in game.players[1].cards]
        assert p0 == [(c.suit, c.rank) for c in order[0::2]]
        assert p1 == [(c.suit, c.rank) for c in order[1::2]]

    def test_broken_card_count_raises(self):
        game = make_game()
        game.discard_pile.pop()
        with pytest.raises(GameStateError):
            game.check_card_count()


# =============================================================================
# Turn Action Tests
# =============================================================================

class TestDraw:

    def test_draw_from_deck(self):
        game = make_game()
        top = game.deck.cards[-1]
        card = game.draw_from_deck("p0")
        assert card is top
        assert game.picked["p0"] is card
        assert game.deck.cards_remaining() == 52 - 8 - 1 - 1

    def test_not_your_turn(self):
        game = make_game()
        remaining = game.deck.cards_remaining()
        assert game.draw_from_deck("p1") is None
        assert "p1" not in game.picked
        assert game.deck.cards_remaining() == remaining

    def test_second_draw_is_noop(self):
        game = make_game()
        first = game.draw_from_deck("p0")
        remaining = game.deck.cards_remaining()
        assert game.draw_from_deck("p0") is None
        assert game.take_discard("p0") is None
        assert game.picked["p0"] is first
        assert game.deck.cards_remaining() == remaining
        assert len(game.discard_pile) == 1

    def test_draw_from_empty_deck_is_noop(self):
        game = make_game()
        game.deck.cards = []
        assert game.draw_from_deck("p0") is None
        assert "p0" not in game.picked
        assert game.current_player().id == "p0"

    def test_take_discard(self):
        game = make_game()
        top = game.discard_top()
        card = game.take_discard("p0")
        assert card is top
        assert game.picked["p0"] is top
        assert game.discard_pile == []

    def test_take_empty_discard_is_noop(self):
        game = make_game()
        game.discard_pile = []
        assert game.take_discard("p0") is None
        assert "p0" not in game.picked


class TestSwap:

    def test_swap_replaces_card(self):
        game = make_game()
        player = game.get_player("p0")
        old = player.cards[3]
        picked = game.draw_from_deck("p0")

        discarded = game.swap("p0", 3)

        assert discarded is old
        assert player.cards[3] is picked
        assert picked.revealed is True
        assert game.discard_top() is old
        assert old.revealed is True
        assert "p0" not in game.picked

    def test_swap_ends_turn(self):
        game = make_game()
        game.draw_from_deck("p0")
        game.swap("p0", 0)
        assert game.turn_index == 1
        assert turn_holders(game) == ["p1"]

    def test_swap_without_pick(self):
        game = make_game()
        assert game.swap("p0", 0) is None
        assert game.turn_index == 0

    @pytest.mark.parametrize("index", [-1, 4, 5, 100])
    def test_swap_out_of_range(self, index):
        game = make_game()
        picked = game.draw_from_deck("p0")
        assert game.swap("p0", index) is None
        assert game.picked["p0"] is picked
        assert game.turn_index == 0

    def test_swap_index_five_valid_in_six_card(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD)
        game.draw_from_deck("p0")
        assert game.swap("p0", 5) is not None

    def test_swap_by_other_player(self):
        game = make_game()
        game.draw_from_deck("p0")
        assert game.swap("p1", 0) is None
        assert "p0" in game.picked


class TestDiscardPicked:

    def test_discard_picked(self):
        game = make_game()
        card = game.draw_from_deck("p0")
        assert game.discard_picked("p0") is True
        assert game.discard_top() is card
        assert card.revealed is True
        assert game.picked == {}
        assert game.turn_index == 1

    def test_discard_taken_discard(self):
        game = make_game()
        card = game.take_discard("p0")
        assert game.discard_picked("p0") is True
        assert game.discard_pile == [card]

    def test_discard_without_pick(self):
        game = make_game()
        assert game.discard_picked("p0") is False
        assert game.turn_index == 0


class TestKnockAction:

    def test_knock_sets_countdown(self):
        game = make_game(num_players=3)
        assert game.knock("p0") is True
        assert game.knock_trigger == EndTrigger(TriggerKind.KNOCK, "p0", 2)
        assert game.caller_trigger is None

    def test_knock_ends_turn(self):
        game = make_game(num_players=3)
        game.knock("p0")
        assert game.turn_index == 1
        assert turn_holders(game) == ["p1"]

    def test_knock_with_pick_rejected(self):
        game = make_game()
        game.draw_from_deck("p0")
        assert game.knock("p0") is False
        assert game.knock_trigger is None

    def test_only_one_knock(self):
        game = make_game(num_players=3)
        game.knock("p0")
        assert game.knock("p1") is False
        assert game.knock_trigger.player_id == "p0"

    def test_knock_not_your_turn(self):
        game = make_game()
        assert game.knock("p1") is False

    def test_no_knock_in_six_card(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD)
        assert game.knock("p0") is False
        assert game.end_trigger is None

    def test_cabo_allows_knock(self):
        game = make_game(style=GameStyle.GOLF4_CABO)
        assert game.knock("p0") is True


# =============================================================================
# Turn Rotation & Invariants
# =============================================================================

class TestRotation:

    @pytest.mark.parametrize("num_players", [2, 3, 5])
    def test_full_lap_returns_to_start(self, num_players):
        game = make_game(num_players=num_players)
        start = game.turn_index
        for _ in range(num_players):
            pass_turn(game)
        assert game.turn_index == start

    def test_invariants_hold_through_long_play(self):
        game = make_game(num_players=3, seed=5)
        for step in range(300):
            player = game.current_player()
            if game.deck.cards_remaining():
                assert game.draw_from_deck(player.id) is not None
            else:
                assert game.take_discard(player.id) is not None
            assert game.card_count() == 52
            assert turn_holders(game) == [player.id]
            assert len(game.picked) == 1

            if step % 2:
                game.swap(player.id, step % 4)
            else:
                game.discard_picked(player.id)

            assert game.phase == GamePhase.PLAYING
            assert game.card_count() == 52
            assert len(turn_holders(game)) == 1
            assert game.picked == {}

    def test_revealed_cards_stay_revealed(self):
        game = make_game(seed=8)
        revealed = {id(c) for p in game.players for c in p.cards if c.revealed}
        for step in range(20):
            player = game.current_player()
            game.draw_from_deck(player.id)
            game.swap(player.id, step % 4)
            now = {id(c) for p in game.players for c in p.cards if c.revealed}
            still_in_hands = {id(c) for p in game.players for c in p.cards}
            assert revealed & still_in_hands <= now
            revealed |= now


# =============================================================================
# Knock Countdown
# =============================================================================

class TestKnockCountdown:

    def test_everyone_else_gets_one_turn(self):
        """[A,B,C]: A knocks, round ends when control returns to A."""
        game = make_game(num_players=3)
        game.knock("p0")

        assert game.current_player().id == "p1"
        pass_turn(game)
        assert game.phase == GamePhase.PLAYING
        assert game.current_player().id == "p2"
        assert game.knock_trigger.remaining_turns == 1

        pass_turn(game)
        assert game.phase == GamePhase.ROUND_ENDED
        assert game.round_ended is True

    def test_knock_from_middle_seat(self):
        game = make_game(num_players=3)
        pass_turn(game)
        game.knock("p1")
        pass_turn(game)  # p2
        assert game.phase == GamePhase.PLAYING
        pass_turn(game)  # p0
        assert game.phase == GamePhase.ROUND_ENDED

    def test_two_players(self):
        game = make_game(num_players=2)
        game.knock("p0")
        assert game.knock_trigger.remaining_turns == 1
        pass_turn(game)
        assert game.phase == GamePhase.ROUND_ENDED

    def test_round_end_clears_turns_and_reveals(self):
        game = make_game(num_players=2)
        game.knock("p0")
        pass_turn(game)
        assert turn_holders(game) == []
        assert game.current_player() is None
        for p in game.players:
            assert all(c.revealed for c in p.cards)

    def test_no_actions_after_round_end(self):
        game = make_game(num_players=2)
        game.knock("p0")
        pass_turn(game)
        for p in game.players:
            assert game.draw_from_deck(p.id) is None
            assert game.knock(p.id) is False


# =============================================================================
# Caller Countdown (6-card)
# =============================================================================

class TestCaller:

    def reveal_all_but_last(self, player: Player) -> None:
        for card in player.cards[:5]:
            card.reveal()

    def test_full_reveal_makes_caller(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD, num_players=3)
        self.reveal_all_but_last(game.get_player("p0"))

        game.draw_from_deck("p0")
        game.swap("p0", 5)

        assert game.caller_trigger == EndTrigger(TriggerKind.CALLER, "p0", 2)
        assert game.knock_trigger is None

    def test_discard_does_not_make_caller(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD)
        self.reveal_all_but_last(game.get_player("p0"))
        game.draw_from_deck("p0")
        game.discard_picked("p0")
        assert game.caller_trigger is None

    def test_partial_reveal_does_not_make_caller(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD)
        game.draw_from_deck("p0")
        game.swap("p0", 2)
        assert game.caller_trigger is None

    def test_later_full_reveal_keeps_first_caller(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD, num_players=3)
        self.reveal_all_but_last(game.get_player("p0"))
        self.reveal_all_but_last(game.get_player("p1"))

        game.draw_from_deck("p0")
        game.swap("p0", 5)
        game.draw_from_deck("p1")
        game.swap("p1", 5)

        assert game.caller_trigger.player_id == "p0"
        assert game.caller_trigger.remaining_turns == 1
        assert game.phase == GamePhase.PLAYING

    def test_caller_round_ends_after_responses(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD, num_players=3)
        self.reveal_all_but_last(game.get_player("p0"))
        game.draw_from_deck("p0")
        game.swap("p0", 5)

        pass_turn(game)
        assert game.phase == GamePhase.PLAYING
        pass_turn(game)
        assert game.phase == GamePhase.ROUND_ENDED

    def test_no_caller_in_four_card(self):
        game = make_game(style=GameStyle.GOLF4_STANDARD)
        player = game.get_player("p0")
        for card in player.cards[:3]:
            card.reveal()
        game.draw_from_deck("p0")
        game.swap("p0", 3)
        assert player.all_revealed()
        assert game.end_trigger is None


# =============================================================================
# Round-End Scoring
# =============================================================================

class TestRoundScoring:

    def knock_and_finish(self, game: Game) -> None:
        game.knock("p0")
        pass_turn(game)
        assert game.phase == GamePhase.ROUND_ENDED

    def test_knocker_not_lowest_gets_penalty(self):
        game = make_game(num_players=2)
        set_hand(game.get_player("p0"), [Rank.THREE, Rank.FIVE, Rank.KING, Rank.KING])  # 8
        set_hand(game.get_player("p1"), [Rank.TWO, Rank.THREE, Rank.KING, Rank.KING])   # 5

        self.knock_and_finish(game)

        assert game.scores == {"p0": 18, "p1": 5}
        assert game.totals == {"p0": 18, "p1": 5}

    def test_knocker_lowest_no_penalty(self):
        game = make_game(num_players=2)
        set_hand(game.get_player("p0"), [Rank.TWO, Rank.THREE, Rank.KING, Rank.KING])   # 5
        set_hand(game.get_player("p1"), [Rank.THREE, Rank.FIVE, Rank.KING, Rank.KING])  # 8

        self.knock_and_finish(game)

        assert game.scores == {"p0": 5, "p1": 8}

    def test_knocker_tied_for_lowest_no_penalty(self):
        game = make_game(num_players=2)
        set_hand(game.get_player("p0"), [Rank.TWO, Rank.THREE, Rank.KING, Rank.KING])
        set_hand(game.get_player("p1"), [Rank.THREE, Rank.TWO, Rank.KING, Rank.KING])

        self.knock_and_finish(game)

        assert game.scores == {"p0": 5, "p1": 5}

    def test_caller_has_no_penalty(self):
        game = make_game(style=GameStyle.GOLF6_STANDARD, num_players=2)
        p0 = game.get_player("p0")
        p1 = game.get_player("p1")
        for card in p0.cards[:5]:
            card.reveal()
        game.draw_from_deck("p0")
        game.swap("p0", 5)
        set_hand(p0, [Rank.QUEEN, Rank.JACK, Rank.TEN, Rank.NINE, Rank.EIGHT, Rank.SEVEN])  # 54
        set_hand(p1, [Rank.KING, Rank.ACE, Rank.KING, Rank.KING, Rank.ACE, Rank.KING])      # 0
        pass_turn(game)

        assert game.phase == GamePhase.ROUND_ENDED
        assert game.scores == {"p0": 54, "p1": 0}

    def test_totals_accumulate(self):
        game = make_game(num_players=2)
        game.totals["p0"] = 40
        set_hand(game.get_player("p0"), [Rank.TWO, Rank.THREE, Rank.KING, Rank.KING])
        set_hand(game.get_player("p1"), [Rank.THREE, Rank.FIVE, Rank.KING, Rank.KING])

        self.knock_and_finish(game)

        assert game.totals == {"p0": 45, "p1": 8}


# =============================================================================
# Leaving and Joining Mid-Round
# =============================================================================

class TestLeave:

    def test_remove_unknown(self):
        game = make_game()
        assert game.remove_player("nobody") is None

    def test_departing_cards_go_under_deck(self):
        game = make_game(num_players=3)
        hand = [(c.suit, c.rank) for c in game.get_player("p2").cards]
        game.remove_player("p2")
        assert game.card_count() == 52
        assert [(c.suit, c.rank) for c in game.deck.cards[:4]] == hand

    def test_departing_cards_go_face_down(self):
        game = make_game(num_players=3)
        game.remove_player("p2")
        assert not any(c.revealed for c in game.deck.cards)

    def test_late_joiner_gets_face_down_returned_cards(self):
        game = make_game(num_players=3)
        game.remove_player("p2")
        game.deck.cards = game.deck.cards[:4]
        player = game.add_player(Player(id="late", name="Late"))
        assert [c.revealed for c in player.cards] == [True, True, False, False]

    def test_departing_pick_returned(self):
        game = make_game(num_players=3)
        game.draw_from_deck("p0")
        game.remove_player("p0")
        assert game.picked == {}
        assert game.card_count() == 52

    def test_turn_index_clamped(self):
        game = make_game(num_players=3)
        pass_turn(game)
        pass_turn(game)
        assert game.turn_index == 2
        game.remove_player("p2")
        assert game.turn_index == 0
        assert turn_holders(game) == ["p0"]

    def test_earlier_seat_leaving_keeps_current_player(self):
        game = make_game(num_players=3)
        pass_turn(game)
        game.draw_from_deck("p1")
        game.remove_player("p0")
        assert game.turn_index == 0
        assert turn_holders(game) == ["p1"]
        assert game.discard_picked("p1")
        assert turn_holders(game) == ["p2"]

    def test_earlier_seat_leaving_during_knock_keeps_responses(self):
        game = make_game(num_players=4)
        game.knock("p0")
        pass_turn(game)  # p1
        game.draw_from_deck("p2")
        game.remove_player("p1")

        responders = []
        while game.phase == GamePhase.PLAYING:
            player = game.current_player()
            responders.append(player.id)
            if player.id not in game.picked:
                game.draw_from_deck(player.id)
            game.discard_picked(player.id)

        assert responders == ["p2", "p3"]
        assert game.picked == {}
        assert game.card_count() == 52

    def test_current_player_leaving_passes_turn(self):
        game = make_game(num_players=3)
        game.remove_player("p0")
        assert game.turn_index == 0
        assert turn_holders(game) == ["p1"]

    def test_totals_dropped(self):
        game = make_game(num_players=3)
        game.remove_player("p1")
        assert "p1" not in game.totals

    def test_responder_leaving_shrinks_countdown(self):
        game = make_game(num_players=3)
        game.knock("p0")
        game.remove_player("p2")
        assert game.knock_trigger.remaining_turns == 1
        pass_turn(game)  # p1
        assert game.phase == GamePhase.ROUND_ENDED

    def test_landing_on_knocker_ends_round(self):
        game = make_game(num_players=3)
        game.knock("p0")
        pass_turn(game)  # p1
        game.remove_player("p2")
        assert game.phase == GamePhase.ROUND_ENDED

    def test_knocker_leaving_countdown_continues(self):
        game = make_game(num_players=3)
        game.knock("p0")
        game.remove_player("p0")
        assert game.phase == GamePhase.PLAYING
        assert game.knock_trigger.player_id == "p0"
        pass_turn(game)
        assert game.phase == GamePhase.PLAYING
        pass_turn(game)
        assert game.phase == GamePhase.ROUND_ENDED
        assert set(game.scores) == {"p1", "p2"}

    def test_remove_in_lobby(self):
        game = make_lobby(num_players=2)
        game.remove_player("p0")
        assert [p.id for p in game.players] == ["p1"]
        assert game.phase == GamePhase.LOBBY


class TestLateJoin:

    def test_late_joiner_dealt_in(self):
        game = make_game(num_players=2)
        player = game.add_player(Player(id="late", name="Late"))
        assert len(player.cards) == 4
        assert [c.revealed for c in player.cards] == [True, True, False, False]
        assert player.is_turn is False
        assert game.card_count() == 52
        assert game.players[-1] is player

    def test_late_joiner_gets_a_turn(self):
        game = make_game(num_players=2)
        game.add_player(Player(id="late", name="Late"))
        pass_turn(game)
        pass_turn(game)
        assert game.current_player().id == "late"

    def test_late_joiner_during_knock(self):
        game = make_game(num_players=2)
        game.knock("p0")
        game.add_player(Player(id="late", name="Late"))
        pass_turn(game)  # p1
        assert game.current_player().id == "late"
        pass_turn(game)  # late
        assert game.phase == GamePhase.ROUND_ENDED

    def test_short_deck_seats_without_hand(self):
        game = make_game(num_players=2)
        game.deck.cards = game.deck.cards[:3]
        player = game.add_player(Player(id="late", name="Late"))
        assert player.cards == []

    def test_join_after_round_end(self):
        game = make_game(num_players=2)
        game.knock("p0")
        pass_turn(game)
        player = game.add_player(Player(id="late", name="Late"))
        assert player.cards == []
        assert game.phase == GamePhase.ROUND_ENDED

    def test_rejoin_returns_existing_seat(self):
        game = make_lobby()
        existing = game.get_player("p0")
        assert game.add_player(Player(id="p0", name="Again")) is existing
        assert len(game.players) == 2
