"""
Depth-limited endgame search over an abstracted Go Fish position.

Suits and history are dropped: a position is just per-rank counts for both
sides, a count of "hidden" cards each side drew without us knowing their rank,
book counts, and the deck size. Asking for a rank either takes every copy the
other side holds (the mover goes again) or misses, in which case one deck card
joins the mover's hidden cards and the turn passes.

The search is plain minimax with alpha-beta pruning, scored by

    4 × (own books − opponent books) + 0.15 × (own cards − opponent cards)

so a single book outweighs any realistic difference in card count.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .deck import CARDS_PER_RANK, NUM_RANKS, RANKS

BOOK_WEIGHT = 4.0
CARD_WEIGHT = 0.15


@dataclass(frozen=True)
class AbstractState:
    """Search position. Side 0 is the searching policy, side 1 its opponent."""

    counts: Tuple[Tuple[int, ...], Tuple[int, ...]]
    hidden: Tuple[int, int] = (0, 0)
    books: Tuple[int, int] = (0, 0)
    deck: int = 0
    to_move: int = 0

    def cards(self, side: int) -> int:
        return sum(self.counts[side]) + self.hidden[side]

    def askable(self, side: int) -> List[int]:
        return [i for i, n in enumerate(self.counts[side]) if n > 0]

    def is_terminal(self) -> bool:
        if self.books[0] + self.books[1] >= NUM_RANKS:
            return True
        return not self.askable(0) and not self.askable(1)


@dataclass
class EndgameConfig:
    depth: int = 4
    deck_threshold: int = 8
    hand_threshold: int = 4
    hypotheses: int = 3
    scale: float = 0.25  # maps search value into the scoring range


def evaluate(state: AbstractState) -> float:
    return BOOK_WEIGHT * (state.books[0] - state.books[1]) + CARD_WEIGHT * (state.cards(0) - state.cards(1))


def apply_ask(state: AbstractState, rank_index: int) -> AbstractState:
    """Abstract successor after ``state.to_move`` asks for ``rank_index``."""
    mover = state.to_move
    other = 1 - mover
    mine = list(state.counts[mover])
    theirs = list(state.counts[other])
    books = list(state.books)
    hidden = list(state.hidden)

    if theirs[rank_index] > 0:
        mine[rank_index] += theirs[rank_index]
        theirs[rank_index] = 0
        if mine[rank_index] >= CARDS_PER_RANK:
            mine[rank_index] = 0
            books[mover] += 1
        to_move = mover
        deck = state.deck
    else:
        if state.deck > 0:
            hidden[mover] += 1
        deck = max(0, state.deck - 1)
        to_move = other

    counts = [None, None]
    counts[mover] = tuple(mine)
    counts[other] = tuple(theirs)
    return AbstractState(
        counts=(counts[0], counts[1]),
        hidden=(hidden[0], hidden[1]),
        books=(books[0], books[1]),
        deck=deck,
        to_move=to_move,
    )


def alphabeta(
    state: AbstractState,
    depth: int,
    alpha: float = float("-inf"),
    beta: float = float("inf"),
) -> float:
    """Minimax value of ``state``; side 0 maximizes, side 1 minimizes."""
    if depth <= 0 or state.is_terminal():
        return evaluate(state)

    moves = state.askable(state.to_move)
    if not moves:
        # Nothing to ask: the turn simply passes.
        return alphabeta(replace(state, to_move=1 - state.to_move), depth - 1, alpha, beta)

    # Takes first: they keep the turn and tend to tighten the window early.
    other = state.counts[1 - state.to_move]
    moves.sort(key=lambda i: -other[i])

    if state.to_move == 0:
        best = float("-inf")
        for i in moves:
            best = max(best, alphabeta(apply_ask(state, i), depth - 1, alpha, beta))
            alpha = max(alpha, best)
            if beta <= alpha:
                break
        return best

    best = float("inf")
    for i in moves:
        best = min(best, alphabeta(apply_ask(state, i), depth - 1, alpha, beta))
        beta = min(beta, best)
        if beta <= alpha:
            break
    return best


def search_root(state: AbstractState, depth: int) -> Dict[str, float]:
    """Value of every root ask for side 0 (must be to move)."""
    if state.to_move != 0:
        raise ValueError("search_root expects side 0 to move")
    values: Dict[str, float] = {}
    for i in state.askable(0):
        values[RANKS[i]] = alphabeta(apply_ask(state, i), depth - 1)
    return values


def best_move(state: AbstractState, depth: int) -> Tuple[Optional[str], float]:
    """Best root rank and its value; ties go to the lower rank."""
    values = search_root(state, depth)
    if not values:
        return None, evaluate(state)
    rank = max(values, key=lambda r: values[r])
    return rank, values[rank]


def endgame_active(deck_size: int, opp_hand_size: int, config: EndgameConfig) -> bool:
    return deck_size <= config.deck_threshold or opp_hand_size <= config.hand_threshold


def abstract_from_game(state, seat: int, opponent_counts: Sequence[int]) -> AbstractState:
    """Build the search root for ``seat`` from a GameState and one opponent hypothesis."""
    me = state.players[seat]
    opp = state.players[state.opponent_of(seat)]
    own = me.counts()
    theirs = tuple(int(n) for n in opponent_counts)
    return AbstractState(
        counts=(tuple(own[r] for r in RANKS), theirs),
        hidden=(0, max(0, len(opp.hand) - sum(theirs))),
        books=(len(me.books), len(opp.books)),
        deck=len(state.deck),
        to_move=0,
    )


class EndgameSearch:
    """Averages root values over a handful of opponent hypotheses."""

    def __init__(self, config: EndgameConfig | None = None):
        self.config = config or EndgameConfig()

    def is_active(self, state, seat: int) -> bool:
        opp = state.players[state.opponent_of(seat)]
        return endgame_active(len(state.deck), len(opp.hand), self.config)

    def score_moves(self, state, seat: int, hypotheses: np.ndarray) -> Dict[str, float]:
        """Mean search value per legal rank, relative to the current evaluation."""
        if len(hypotheses) == 0:
            return {}
        totals: Dict[str, float] = {}
        n = 0
        for row in hypotheses[: self.config.hypotheses]:
            root = abstract_from_game(state, seat, row)
            base = evaluate(root)
            for rank, value in search_root(root, self.config.depth).items():
                totals[rank] = totals.get(rank, 0.0) + (value - base)
            n += 1
        return {r: self.config.scale * v / n for r, v in totals.items()}


__all__ = [
    "BOOK_WEIGHT",
    "CARD_WEIGHT",
    "AbstractState",
    "EndgameConfig",
    "EndgameSearch",
    "evaluate",
    "apply_ask",
    "alphabeta",
    "search_root",
    "best_move",
    "endgame_active",
    "abstract_from_game",
]
