"""Endgame search tests."""
import numpy as np
import pytest

from gofish.deck import RANK_INDEX
from gofish.endgame import (
    AbstractState,
    EndgameConfig,
    EndgameSearch,
    abstract_from_game,
    alphabeta,
    apply_ask,
    best_move,
    endgame_active,
    evaluate,
    search_root,
)
from gofish.engine import init_game


def _counts(**by_rank):
    row = [0] * 13
    for rank, n in by_rank.items():
        row[RANK_INDEX[rank.lstrip("_")]] = n
    return tuple(row)


def test_forced_take_is_found():
    # We hold A A A Q, they hold A J J; deck exhausted.
    state = AbstractState(counts=(_counts(A=3, Q=1), _counts(A=1, J=2)), deck=0, to_move=0)
    rank, value = best_move(state, depth=4)
    assert rank == "A"
    assert value > 0


def test_apply_ask_take_books_and_keeps_turn():
    state = AbstractState(counts=(_counts(A=3), _counts(A=1, K=1)), deck=5, to_move=0)
    nxt = apply_ask(state, RANK_INDEX["A"])
    assert nxt.books == (1, 0)
    assert nxt.counts[0][RANK_INDEX["A"]] == 0
    assert nxt.counts[1][RANK_INDEX["A"]] == 0
    assert nxt.to_move == 0
    assert nxt.deck == 5


def test_apply_ask_miss_draws_hidden_and_passes():
    state = AbstractState(counts=(_counts(_2=1), _counts(K=1)), deck=3, to_move=0)
    nxt = apply_ask(state, RANK_INDEX["2"])
    assert nxt.hidden == (1, 0)
    assert nxt.deck == 2
    assert nxt.to_move == 1

    empty = apply_ask(AbstractState(counts=state.counts, deck=0), RANK_INDEX["2"])
    assert empty.hidden == (0, 0)
    assert empty.to_move == 1


def test_evaluate_weights_books_over_cards():
    state = AbstractState(counts=(_counts(), _counts(K=3)), books=(1, 0))
    assert evaluate(state) == pytest.approx(4.0 - 0.45)


def test_alphabeta_matches_plain_minimax():
    def minimax(s, depth):
        if depth <= 0 or s.is_terminal():
            return evaluate(s)
        moves = s.askable(s.to_move)
        if not moves:
            return minimax(AbstractState(s.counts, s.hidden, s.books, s.deck, 1 - s.to_move), depth - 1)
        vals = [minimax(apply_ask(s, i), depth - 1) for i in moves]
        return max(vals) if s.to_move == 0 else min(vals)

    state = AbstractState(
        counts=(_counts(A=2, _5=1, J=1, Q=2), _counts(A=1, _5=2, _9=1, Q=1)),
        books=(2, 3),
        deck=4,
    )
    for depth in (1, 2, 3, 4):
        assert alphabeta(state, depth) == pytest.approx(minimax(state, depth))


def test_search_root_requires_side_zero():
    state = AbstractState(counts=(_counts(A=1), _counts(A=1)), to_move=1)
    with pytest.raises(ValueError):
        search_root(state, 2)


def test_endgame_active_thresholds():
    cfg = EndgameConfig(deck_threshold=8, hand_threshold=4)
    assert endgame_active(8, 10, cfg)
    assert endgame_active(20, 4, cfg)
    assert not endgame_active(20, 10, cfg)


def test_abstract_from_game_and_scoring_over_hypotheses():
    state = init_game(seed=6)
    opp_hand = len(state.players[1].hand)
    hypothesis = np.zeros(13, dtype=np.int64)
    hypothesis[0] = 1
    root = abstract_from_game(state, 0, hypothesis)
    assert root.to_move == 0
    assert root.cards(1) == opp_hand
    assert root.deck == len(state.deck)

    search = EndgameSearch(EndgameConfig(depth=2, hypotheses=2))
    scores = search.score_moves(state, 0, np.stack([hypothesis, hypothesis]))
    held = {c.rank for c in state.players[0].hand}
    assert set(scores) == held
    assert search.score_moves(state, 0, np.zeros((0, 13), dtype=np.int64)) == {}
