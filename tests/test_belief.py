"""Belief tracker tests: ternary state, staleness, decaying bias."""
from gofish.belief import ABSENT, HAS, UNKNOWN, BeliefConfig, BeliefTracker, reconstruct_beliefs
from gofish.engine import apply_action, init_game, legal_moves
from gofish.events import AskEvent, BookEvent, DrawEvent, GiveEvent, GoAgainEvent, GoFishEvent


def test_opponent_ask_marks_rank_held():
    t = BeliefTracker(seat=0)
    t.observe([AskEvent(seat=1, rank="Q")])
    assert t.state_of("Q") == HAS
    assert "Q" in t.opp_asked
    assert t.bias("Q") > 0
    assert t.belief_probability("Q", own_count=1, opp_hand_size=5, deck_size=20) == 1.0


def test_go_fish_marks_absent_until_they_draw():
    t = BeliefTracker(seat=0)
    t.observe([AskEvent(seat=0, rank="7"), GoFishEvent(seat=1, rank="7")])
    assert t.state_of("7") == ABSENT
    assert t.bias("7") < 0
    assert t.belief_probability("7", own_count=1, opp_hand_size=6, deck_size=20) == 0.0

    t.observe([DrawEvent(seat=1, count=2)])
    assert t.ranks["7"].ages_since_absent == 2
    p = t.belief_probability("7", own_count=1, opp_hand_size=6, deck_size=20)
    assert 0.0 < p < 0.5


def test_own_draws_do_not_age_opponent_absences():
    t = BeliefTracker(seat=0)
    t.observe([GoFishEvent(seat=1, rank="7"), DrawEvent(seat=0, count=1)])
    assert t.ranks["7"].ages_since_absent == 0


def test_gives_update_both_directions():
    t = BeliefTracker(seat=0)
    # They gave us every 5 they had.
    t.observe([AskEvent(seat=0, rank="5"), GiveEvent(seat=1, rank="5", count=2)])
    assert t.state_of("5") == ABSENT
    # We gave them our 9s: they now hold 9.
    t.observe([AskEvent(seat=1, rank="9"), GiveEvent(seat=0, rank="9", count=1)])
    assert t.state_of("9") == HAS


def test_go_again_reveals_rank():
    t = BeliefTracker(seat=1)
    t.observe([AskEvent(seat=0, rank="J"), GoFishEvent(seat=1, rank="J"), DrawEvent(seat=0), GoAgainEvent(seat=0, rank="J")])
    assert t.state_of("J") == HAS


def test_book_clears_rank():
    t = BeliefTracker(seat=0)
    t.observe([AskEvent(seat=1, rank="K"), BookEvent(seat=1, ranks=("K",))])
    assert t.state_of("K") == UNKNOWN
    assert "K" in t.booked
    assert "K" not in t.opp_asked
    assert t.bias("K") == 0.0
    assert t.belief_probability("K", 0, 5, 10) == 0.0
    assert t.prior()["K"] == 0.0


def test_bias_decays_with_asks():
    t = BeliefTracker(seat=0)
    t.observe([AskEvent(seat=1, rank="3")])
    fresh = t.bias("3")
    t.observe([AskEvent(seat=0, rank="A")] * 5)
    assert 0 < t.bias("3") < fresh
    assert t.ticks == 6


def test_combine_is_clamped_addition():
    t = BeliefTracker(seat=0, config=BeliefConfig(bias_weight=0.5))
    t.observe([AskEvent(seat=1, rank="4"), AskEvent(seat=0, rank="8"), GoFishEvent(seat=1, rank="8")])
    assert t.combine(0.95, "4") == 1.0
    assert t.combine(0.05, "8") == 0.0
    assert t.combine(0.4, "6") == 0.4


def test_sync_follows_a_game_and_resets_on_new_seed():
    state = init_game(seed=4)
    t = BeliefTracker(seat=1)
    move = legal_moves(state)[0]
    state = apply_action(state, move).state
    t.sync(state)
    assert t.cursor == len(state.events)
    assert t.state_of(move.rank) == HAS or move.rank in t.booked

    other = init_game(seed=5)
    t.sync(other)
    assert t.cursor == len(other.events)
    assert t.state_of(move.rank) == UNKNOWN


def test_reconstruct_matches_incremental():
    state = init_game(seed=12)
    incremental = BeliefTracker(seat=0)
    for _ in range(12):
        moves = legal_moves(state)
        if not moves:
            break
        state = apply_action(state, moves[-1]).state
        incremental.sync(state)
    rebuilt = reconstruct_beliefs(state.events, seat=0)
    assert rebuilt.ranks == incremental.ranks
    assert rebuilt.likely == incremental.likely
    assert rebuilt.booked == incremental.booked
