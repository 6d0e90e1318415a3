"""
Particle model of the opponent's hand.

Each particle is one rank→count vector (a row of an ``(N, 13)`` integer array)
that respects everything public: per-rank capacity (4 minus what we hold,
zero for booked ranks and for ranks the opponent was just seen without), the
opponent's exact hand size, and at least one copy of every rank they have
shown. Within those limits mass is spread by a jittered prior from the belief
tracker, and whatever is left over goes uniformly at random to ranks that still
have room.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import numpy as np

from .belief import ABSENT, HAS, BeliefTracker
from .deck import CARDS_PER_RANK, NUM_RANKS, RANK_INDEX, RANKS
from .probability import ZERO_ESTIMATE, RankEstimate


@dataclass
class ParticleConfig:
    num_particles: int = 96
    jitter: float = 0.35
    sharpness: float = 3.0
    rollouts: int = 64
    book_bonus: float = 2.0
    miss_utility: float = -0.25
    strongest_penalty: float = 0.15


@dataclass
class ParticleModel:
    config: ParticleConfig = field(default_factory=ParticleConfig)
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.reset(self.seed)

    def reset(self, seed: Optional[int] = None) -> None:
        # default_rng rejects negative ints
        self._rng = np.random.default_rng(None if seed is None else seed & 0xFFFFFFFF)
        self.particles = np.zeros((0, NUM_RANKS), dtype=np.int64)
        self.capacity = np.zeros(NUM_RANKS, dtype=np.int64)
        self.hand_size = 0

    # ---- sampling ----

    def resample(
        self,
        capacity: np.ndarray,
        hand_size: int,
        prior: Optional[np.ndarray] = None,
        required: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Draw ``num_particles`` hands; returns (and stores) the (N, 13) array."""
        cfg = self.config
        rng = self._rng
        cap = np.clip(np.asarray(capacity, dtype=np.int64), 0, CARDS_PER_RANK)
        hand = int(min(max(0, hand_size), cap.sum()))
        base_prior = np.full(NUM_RANKS, 0.5) if prior is None else np.clip(np.asarray(prior, dtype=float), 0.0, 1.0)

        req = np.zeros(NUM_RANKS, dtype=np.int64)
        if required is not None:
            req = np.minimum(np.asarray(required, dtype=np.int64), cap)
        if req.sum() > hand:
            keep = rng.choice(np.flatnonzero(req), size=hand, replace=False)
            trimmed = np.zeros(NUM_RANKS, dtype=np.int64)
            trimmed[keep] = req[keep]
            req = trimmed

        out = np.zeros((cfg.num_particles, NUM_RANKS), dtype=np.int64)
        for p in range(cfg.num_particles):
            counts = req.copy()
            left = hand - int(counts.sum())
            room = cap - counts
            if left > 0:
                w = (base_prior + cfg.jitter * rng.random(NUM_RANKS)) ** cfg.sharpness
                w = w * (room > 0)
                total = w.sum()
                if total > 0:
                    share = np.minimum(np.floor(w / total * left).astype(np.int64), room)
                    counts += share
                    left -= int(share.sum())
            while left > 0:
                open_ranks = np.flatnonzero(cap - counts > 0)
                counts[rng.choice(open_ranks)] += 1
                left -= 1
            out[p] = counts

        self.particles = out
        self.capacity = cap
        self.hand_size = hand
        return out

    def update_from(self, state, seat: int, tracker: Optional[BeliefTracker] = None) -> np.ndarray:
        """Resample from a GameState as seen by ``seat`` (own hand + public info)."""
        me = state.players[seat]
        opp = state.players[state.opponent_of(seat)]
        own = me.counts()
        booked = state.booked_ranks()

        base = np.maximum(0, CARDS_PER_RANK - counts_vector(own))
        base[[RANK_INDEX[r] for r in booked]] = 0
        capacity = base.copy()
        required = np.zeros(NUM_RANKS, dtype=np.int64)
        prior = None
        if tracker is not None:
            for i, r in enumerate(RANKS):
                belief = tracker.ranks[r]
                if belief.state == ABSENT:
                    capacity[i] = min(capacity[i], belief.ages_since_absent)
                elif belief.state == HAS and capacity[i] > 0:
                    required[i] = 1
            weights = tracker.prior()
            prior = np.array([weights[r] for r in RANKS])
        if capacity.sum() < len(opp.hand):
            capacity = base
        return self.resample(capacity, len(opp.hand), prior=prior, required=required)

    def sample(self, k: int) -> np.ndarray:
        """``k`` particles drawn with replacement (for rollouts and search)."""
        if len(self.particles) == 0:
            return np.zeros((0, NUM_RANKS), dtype=np.int64)
        idx = self._rng.integers(0, len(self.particles), size=k)
        return self.particles[idx]

    # ---- estimates ----

    def estimate(self, rank: str) -> RankEstimate:
        """Fraction of particles holding ≥1 of ``rank`` and the mean count."""
        if len(self.particles) == 0:
            return ZERO_ESTIMATE
        col = self.particles[:, RANK_INDEX[rank]]
        return RankEstimate(prob_has=float(np.mean(col > 0)), expected_count=float(np.mean(col)))

    def estimates(self) -> Dict[str, RankEstimate]:
        return {r: self.estimate(r) for r in RANKS}

    def monte_carlo_rank_ev(self, rank: str, own_count: int, rollouts: Optional[int] = None) -> float:
        """
        Average one-step utility of asking for ``rank`` against sampled hands.

        Hit: cards taken, plus ``book_bonus`` when they complete the rank.
        Miss: ``miss_utility`` minus a penalty scaled by the opponent's largest
        rank count (their best follow-up once the turn passes).
        """
        cfg = self.config
        hands = self.sample(rollouts or cfg.rollouts)
        if len(hands) == 0:
            return cfg.miss_utility
        got = hands[:, RANK_INDEX[rank]]
        completes = (own_count + got) >= CARDS_PER_RANK
        hit = got + cfg.book_bonus * completes
        miss = cfg.miss_utility - cfg.strongest_penalty * hands.max(axis=1)
        return float(np.mean(np.where(got > 0, hit, miss)))


def fuse_estimates(closed: RankEstimate, sampled: RankEstimate) -> RankEstimate:
    """Simple average of the closed-form and particle estimates."""
    return RankEstimate(
        prob_has=0.5 * (closed.prob_has + sampled.prob_has),
        expected_count=0.5 * (closed.expected_count + sampled.expected_count),
    )


def counts_vector(counts: Mapping[str, int]) -> np.ndarray:
    return np.array([counts.get(r, 0) for r in RANKS], dtype=np.int64)


__all__ = [
    "ParticleConfig",
    "ParticleModel",
    "fuse_estimates",
    "counts_vector",
]
