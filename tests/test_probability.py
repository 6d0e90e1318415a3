"""Closed-form estimator tests."""
import math

from gofish.engine import init_game
from gofish.probability import (
    ZERO_ESTIMATE,
    binary_entropy,
    estimate_for_seat,
    estimate_opponent_probability,
    hypergeometric_at_least_one,
)


def test_estimate_matches_hypergeometric_formula():
    # 3 unseen copies, opponent holds 7 of a 45-card pool.
    est = estimate_opponent_probability("Q", own_count=1, opp_hand_size=7, deck_size=38)
    p_none = math.comb(42, 7) / math.comb(45, 7)
    assert math.isclose(est.prob_has, 1.0 - p_none, rel_tol=1e-9)
    assert math.isclose(est.expected_count, 3 * 7 / 45, rel_tol=1e-9)


def test_estimate_is_zero_when_nothing_unseen():
    assert estimate_opponent_probability("A", own_count=4, opp_hand_size=5, deck_size=10) == ZERO_ESTIMATE
    assert estimate_opponent_probability("A", own_count=0, opp_hand_size=5, deck_size=10, booked=True) == ZERO_ESTIMATE
    assert estimate_opponent_probability("A", own_count=1, opp_hand_size=0, deck_size=10) == ZERO_ESTIMATE


def test_estimate_is_certain_when_deck_is_empty():
    est = estimate_opponent_probability("7", own_count=2, opp_hand_size=3, deck_size=0)
    assert est.prob_has == 1.0
    assert est.expected_count == 2.0


def test_probability_bounds_over_many_inputs():
    for own in range(5):
        for hand in range(0, 15):
            for deck in range(0, 40, 3):
                est = estimate_opponent_probability("5", own, hand, deck)
                assert 0.0 <= est.prob_has <= 1.0
                assert 0.0 <= est.expected_count <= 4 - own


def test_hypergeometric_clamps_inconsistent_inputs():
    assert hypergeometric_at_least_one(3, 5, 2) == 1.0
    assert hypergeometric_at_least_one(10, 0, 5) == 0.0
    assert hypergeometric_at_least_one(0, 2, 5) == 0.0


def test_estimate_for_seat_uses_public_sizes():
    state = init_game(seed=9)
    me = state.players[0]
    rank = me.hand[0].rank
    est = estimate_for_seat(state, 0, rank)
    direct = estimate_opponent_probability(rank, me.count(rank), len(state.players[1].hand), len(state.deck))
    assert est == direct


def test_binary_entropy():
    assert binary_entropy(0.0) == 0.0
    assert binary_entropy(1.0) == 0.0
    assert math.isclose(binary_entropy(0.5), 1.0)
    assert math.isclose(binary_entropy(0.2), binary_entropy(0.8))
