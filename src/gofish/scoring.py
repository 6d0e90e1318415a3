"""
Multi-factor scoring policy.

For every legal rank a handful of component scores are computed from public
information and the seat's own hand, then combined linearly with the weights
of a named ``StrategyProfile``:

- completion   : (own + expected take) toward 4, in [0, 1]
- near_book    : discrete bonus for holding 3 (1.0) or 2 (0.45)
- deny         : P(opponent holds it) × min(1, own / 3)
- info_gain    : binary entropy of the fused probability
- belief       : signed bias from the belief tracker
- endgame      : alpha-beta value (only near the end of the game)
- monte_carlo  : particle rollout EV of the ask

The fused probability is the average of the closed-form estimate and the
particle estimate, with the belief bias added and clamped to [0, 1].

Selection takes the argmax; when several moves score within the profile's
``tie_band`` of the best, one of them is sampled from a softmax at the
profile's temperature (temperature 0 keeps the first, i.e. lowest rank).
"""
from __future__ import annotations

import math
import random
import zlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .belief import BeliefTracker
from .endgame import EndgameConfig, EndgameSearch
from .engine import Action, GameState
from .particles import ParticleConfig, ParticleModel, fuse_estimates
from .probability import binary_entropy, estimate_for_seat
from .profiles import StrategyProfile, get_profile

NEAR_BOOK_BONUS = {3: 1.0, 2: 0.45}


@dataclass
class MoveScore:
    rank: str
    total: float
    components: Dict[str, float]
    prob_has: float
    expected_count: float


def softmax_pick(scores: Sequence[float], temperature: float, rng: random.Random) -> int:
    """Index sampled ∝ exp(score / T); T <= 0 returns the first maximum."""
    if not scores:
        raise ValueError("softmax_pick needs at least one score")
    mx = max(scores)
    if temperature <= 1e-9:
        return scores.index(mx)
    exps = [math.exp((s - mx) / temperature) for s in scores]
    z = sum(exps)
    r = rng.random() * z
    acc = 0.0
    for i, w in enumerate(exps):
        acc += w
        if r <= acc:
            return i
    return len(scores) - 1


@dataclass
class ScoringAgent:
    """
    Policy combining probability, beliefs, particles and endgame search.

    One instance plays one seat of one game at a time; it resets its belief
    tracker and particle population whenever it sees a new game (different
    seed or a shorter event stream).
    """

    profile: StrategyProfile
    seed: int | None = None
    last_scores: List[MoveScore] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)
        self.particles = ParticleModel(
            config=ParticleConfig(num_particles=self.profile.num_particles, rollouts=self.profile.rollouts),
            seed=self.seed,
        )
        self.search = EndgameSearch(EndgameConfig(depth=self.profile.search_depth))
        self.tracker: Optional[BeliefTracker] = None
        self._game_seed: Optional[int] = None

    def new_game(self, state: GameState, seat: int) -> None:
        self.tracker = BeliefTracker(seat=seat)
        self._game_seed = state.seed
        mixed = None if self.seed is None else (self.seed ^ zlib.crc32(str(state.seed).encode())) & 0xFFFFFFFF
        self.particles.reset(mixed)
        self._rng = random.Random(mixed)

    def _sync(self, state: GameState, seat: int) -> None:
        if (
            self.tracker is None
            or self.tracker.seat != seat
            or state.seed != self._game_seed
            or len(state.events) < self.tracker.cursor
        ):
            self.new_game(state, seat)
        self.tracker.sync(state)

    def score_moves(self, state: GameState, legal_moves: Sequence[Action], seat: int) -> List[MoveScore]:
        self._sync(state, seat)
        tracker = self.tracker
        me = state.players[seat]
        self.particles.update_from(state, seat, tracker)

        endgame: Dict[str, float] = {}
        if self.profile.endgame and self.search.is_active(state, seat):
            endgame = self.search.score_moves(state, seat, self.particles.sample(self.search.config.hypotheses))

        weights = self.profile.weights()
        out: List[MoveScore] = []
        for move in legal_moves:
            rank = move.rank
            own = me.count(rank)
            fused = fuse_estimates(estimate_for_seat(state, seat, rank), self.particles.estimate(rank))
            prob = tracker.combine(fused.prob_has, rank)
            components = {
                "completion": min(4.0, own + fused.expected_count) / 4.0,
                "near_book": NEAR_BOOK_BONUS.get(own, 0.0),
                "deny": prob * min(1.0, own / 3.0),
                "info_gain": binary_entropy(prob),
                "belief": tracker.bias(rank),
                "endgame": endgame.get(rank, 0.0),
                "monte_carlo": self.particles.monte_carlo_rank_ev(rank, own) if weights["monte_carlo"] else 0.0,
            }
            total = sum(weights[k] * v for k, v in components.items())
            out.append(
                MoveScore(
                    rank=rank,
                    total=total,
                    components=components,
                    prob_has=prob,
                    expected_count=fused.expected_count,
                )
            )
        return out

    def pick_move(self, state: GameState, legal_moves: Sequence[Action], seat: int) -> Optional[Action]:
        if not legal_moves:
            return None
        scores = self.score_moves(state, legal_moves, seat)
        self.last_scores = scores
        best = max(s.total for s in scores)
        band = [i for i, s in enumerate(scores) if s.total >= best - self.profile.tie_band]
        if len(band) == 1:
            return legal_moves[band[0]]
        pick = softmax_pick([scores[i].total for i in band], self.profile.temperature, self._rng)
        return legal_moves[band[pick]]

    def explain(self) -> List[Dict[str, object]]:
        """Component breakdown of the last decision, best first."""
        rows = sorted(self.last_scores, key=lambda s: -s.total)
        return [
            {"rank": s.rank, "total": round(s.total, 4), "prob_has": round(s.prob_has, 4), **{k: round(v, 4) for k, v in s.components.items()}}
            for s in rows
        ]


def make_scoring_agent(profile_name: str, seed: int | None = None) -> ScoringAgent:
    return ScoringAgent(profile=get_profile(profile_name), seed=seed)


__all__ = ["MoveScore", "ScoringAgent", "softmax_pick", "make_scoring_agent", "NEAR_BOOK_BONUS"]
