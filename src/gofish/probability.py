"""
Closed-form estimate of what the opponent holds, from public information only.

The unseen pool is the deck plus the opponent's hand. Every copy of a rank we
don't hold (and that isn't booked) is somewhere in that pool; the opponent's
hand is treated as ``h`` draws without replacement from it.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from .deck import CARDS_PER_RANK


@dataclass(frozen=True)
class RankEstimate:
    """Probability the opponent holds ≥1 card of a rank, and the expected count."""

    prob_has: float
    expected_count: float


ZERO_ESTIMATE = RankEstimate(prob_has=0.0, expected_count=0.0)


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def hypergeometric_at_least_one(pool: int, successes: int, draws: int) -> float:
    """
    P(at least one success in ``draws`` draws without replacement from ``pool``
    items containing ``successes`` successes). Each "miss" factor is clamped to
    [0, 1] so inconsistent inputs degrade gracefully instead of going negative.
    """
    if successes <= 0 or draws <= 0 or pool <= 0:
        return 0.0
    p_none = 1.0
    for i in range(min(draws, pool)):
        remaining = pool - i
        p_none *= _clamp01((remaining - successes) / remaining)
        if p_none == 0.0:
            break
    return _clamp01(1.0 - p_none)


def estimate_opponent_probability(
    rank: str,
    own_count: int,
    opp_hand_size: int,
    deck_size: int,
    booked: bool = False,
) -> RankEstimate:
    """
    Hypergeometric estimate for ``rank``.

    u = 4 − own (0 when booked), pool = deck + opponent hand,
    P(has) = 1 − Π_{i<h} (pool − u − i)/(pool − i), E[count] = u·h/pool.
    """
    unseen = 0 if booked else max(0, CARDS_PER_RANK - own_count)
    pool = max(0, deck_size) + max(0, opp_hand_size)
    if unseen == 0 or opp_hand_size <= 0 or pool <= 0:
        return ZERO_ESTIMATE
    prob = hypergeometric_at_least_one(pool, unseen, opp_hand_size)
    expected = unseen * min(opp_hand_size, pool) / pool
    return RankEstimate(prob_has=prob, expected_count=max(0.0, min(float(unseen), expected)))


def estimate_for_seat(state, seat: int, rank: str) -> RankEstimate:
    """Run the estimator for ``seat`` asking about ``rank`` in a GameState."""
    me = state.players[seat]
    opp = state.players[state.opponent_of(seat)]
    return estimate_opponent_probability(
        rank,
        own_count=me.count(rank),
        opp_hand_size=len(opp.hand),
        deck_size=len(state.deck),
        booked=rank in state.booked_ranks(),
    )


def binary_entropy(p: float) -> float:
    """Entropy in bits of a Bernoulli(p); 0 at certainty, 1 at p = 0.5."""
    p = _clamp01(p)
    if p <= 0.0 or p >= 1.0:
        return 0.0
    return -(p * math.log2(p) + (1.0 - p) * math.log2(1.0 - p))


__all__ = [
    "RankEstimate",
    "ZERO_ESTIMATE",
    "hypergeometric_at_least_one",
    "estimate_opponent_probability",
    "estimate_for_seat",
    "binary_entropy",
]
