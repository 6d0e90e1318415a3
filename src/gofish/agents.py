"""
Policy interface and the simple reference agents.

The small ``Policy`` protocol is the contract used by the tournament harness
and the control protocol: ``pick_move(state, legal_moves, seat) -> Action | None``.
Policies must treat ``state`` as read-only and only look at what ``seat`` is
allowed to see (its own hand, both book lists, hand and deck sizes, the event
log); returning None or an illegal move makes the caller fall back.

Agents here:
- ``RandomAgent``: uniform over legal moves (seeded).
- ``FirstLegalAgent``: always the lowest held rank.
- ``BaselineAgent``: immediate completion chance from the closed-form estimate.
- ``AnalyticalAgent``: belief-tracker probability × book proximity, certain
  hits first.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .belief import BeliefTracker
from .deck import RANK_INDEX
from .engine import Action, GameState
from .probability import estimate_for_seat


class Policy(Protocol):
    """Decision policy for one seat."""

    def pick_move(self, state: GameState, legal_moves: Sequence[Action], seat: int) -> Optional[Action]:
        """
        Choose one of ``legal_moves`` for ``seat``.

        Implementations should only return members of ``legal_moves``; callers
        validate and fall back to the first legal move otherwise.
        """


@dataclass
class RandomAgent:
    """
    Baseline policy that samples uniformly among legal moves.

    Usage:
        agent = RandomAgent(seed=42)
        move = agent.pick_move(state, legal_moves(state), state.current_player)
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def pick_move(self, state: GameState, legal_moves: Sequence[Action], seat: int) -> Optional[Action]:
        if not legal_moves:
            return None
        return self._rng.choice(list(legal_moves))


@dataclass
class FirstLegalAgent:
    seed: int | None = None

    def pick_move(self, state: GameState, legal_moves: Sequence[Action], seat: int) -> Optional[Action]:
        return legal_moves[0] if legal_moves else None


@dataclass
class BaselineAgent:
    """Maximize immediate completion chance: own count + estimated take."""

    seed: int | None = None

    def pick_move(self, state: GameState, legal_moves: Sequence[Action], seat: int) -> Optional[Action]:
        if not legal_moves:
            return None
        me = state.players[seat]
        best = legal_moves[0]
        best_score = float("-inf")
        for move in legal_moves:
            own = me.count(move.rank)
            est = estimate_for_seat(state, seat, move.rank)
            score = own * 1.0 + est.prob_has * 0.9 + est.expected_count * 0.4 + (1.2 if own >= 3 else 0.0)
            if score > best_score:
                best_score = score
                best = move
        return best


@dataclass
class AnalyticalAgent:
    """
    Belief-driven ask ordering.

    Score = calibrated P(opponent has rank) × book-proximity weight × a bonus
    for ranks the opponent has asked for. Ranks the opponent is known to hold
    always come first (most of our own copies first).
    """

    seed: int | None = None
    book_weights: tuple = (1.0, 1.0, 5.0, 20.0)  # by own count 0..3
    opp_ask_bonus: float = 1.4
    calibration: float = 0.85
    tracker: BeliefTracker | None = field(default=None, repr=False)

    def pick_move(self, state: GameState, legal_moves: Sequence[Action], seat: int) -> Optional[Action]:
        if not legal_moves:
            return None
        if len(legal_moves) == 1:
            return legal_moves[0]
        if self.tracker is None or self.tracker.seat != seat:
            self.tracker = BeliefTracker(seat=seat)
        self.tracker.sync(state)

        me = state.players[seat]
        opp = state.players[state.opponent_of(seat)]
        rows: List[tuple] = []
        for move in legal_moves:
            own = me.count(move.rank)
            raw = self.tracker.belief_probability(move.rank, own, len(opp.hand), len(state.deck))
            p = raw if raw >= 0.99 or raw <= 0.01 else raw * self.calibration
            weight = self.book_weights[min(own, 3)]
            bonus = self.opp_ask_bonus if move.rank in self.tracker.opp_asked else 1.0
            rows.append((raw >= 0.99, p * weight * bonus, own, -RANK_INDEX[move.rank], move))
        rows.sort(key=lambda row: row[:4], reverse=True)
        return rows[0][4]


__all__ = ["Policy", "RandomAgent", "FirstLegalAgent", "BaselineAgent", "AnalyticalAgent"]
