"""
Opponent belief tracking from the structured event stream.

Two signals are kept per rank, both from the point of view of one seat:

- a coarse ternary state (unknown / has / absent) with an age counter for
  "absent": the number of cards the opponent has drawn since the rank was
  last seen leaving (or missing from) their hand;
- a continuous pair ``likely`` / ``confidence`` nudged by the same events and
  decayed every tick (one tick per ask), so old evidence fades.

The tracker only reads events; it never touches engine state.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from .deck import CARDS_PER_RANK, RANKS
from .events import (
    AskEvent,
    BookEvent,
    DrawEvent,
    Event,
    GiveEvent,
    GoAgainEvent,
    GoFishEvent,
)
from .probability import hypergeometric_at_least_one

UNKNOWN = "unknown"
HAS = "has"
ABSENT = "absent"


@dataclass
class RankBelief:
    state: str = UNKNOWN
    ages_since_absent: int = 0


@dataclass
class BeliefConfig:
    decay: float = 0.9
    ask_strength: float = 0.6  # opponent asked / drew the asked rank
    give_strength: float = 0.5  # we handed them cards of the rank they asked
    deny_strength: float = 0.7  # opponent said go fish / gave away all copies
    draw_relax: float = 0.08  # per card drawn, absent ranks drift back toward 0.5
    confidence_gain: float = 0.5
    bias_weight: float = 0.25


@dataclass
class BeliefTracker:
    """Per-game, per-seat belief about the opponent's hand."""

    seat: int
    config: BeliefConfig = field(default_factory=BeliefConfig)

    def __post_init__(self) -> None:
        self.reset()

    @property
    def opponent(self) -> int:
        return 1 - self.seat

    @property
    def cursor(self) -> int:
        """Number of events consumed so far."""
        return self._cursor

    def reset(self, game_seed: Optional[int] = None) -> None:
        self.ranks: Dict[str, RankBelief] = {r: RankBelief() for r in RANKS}
        self.likely: Dict[str, float] = {r: 0.5 for r in RANKS}
        self.confidence: Dict[str, float] = {r: 0.0 for r in RANKS}
        self.booked: Set[str] = set()
        self.opp_asked: Set[str] = set()
        self.ticks = 0
        self._cursor = 0
        self._game_seed = game_seed

    # ---- event consumption ----

    def sync(self, state) -> None:
        """Catch up with a GameState's event stream, resetting on a new game."""
        if state.seed != self._game_seed or len(state.events) < self._cursor:
            self.reset(game_seed=state.seed)
        self.observe(state.events[self._cursor :])

    def observe(self, events: Iterable[Event]) -> None:
        for event in events:
            self._apply(event)
            self._cursor += 1

    def _apply(self, event: Event) -> None:
        cfg = self.config
        if isinstance(event, AskEvent):
            self._tick()
            if event.seat == self.opponent:
                self._set(event.rank, HAS)
                self.opp_asked.add(event.rank)
                self._nudge(event.rank, 1.0, cfg.ask_strength)
        elif isinstance(event, GiveEvent):
            if event.seat == self.opponent:
                # They handed over every copy they had.
                self._set(event.rank, ABSENT)
                self._nudge(event.rank, 0.0, cfg.deny_strength)
            else:
                self._set(event.rank, HAS)
                self._nudge(event.rank, 1.0, cfg.give_strength)
        elif isinstance(event, GoFishEvent):
            if event.seat == self.opponent:
                self._set(event.rank, ABSENT)
                self._nudge(event.rank, 0.0, cfg.deny_strength)
        elif isinstance(event, DrawEvent):
            if event.seat == self.opponent:
                self._age_absent(event.count)
        elif isinstance(event, GoAgainEvent):
            if event.seat == self.opponent:
                self._set(event.rank, HAS)
                self._nudge(event.rank, 1.0, cfg.ask_strength)
        elif isinstance(event, BookEvent):
            for rank in event.ranks:
                self.ranks[rank] = RankBelief()
                self.likely[rank] = 0.5
                self.confidence[rank] = 0.0
                self.booked.add(rank)
                self.opp_asked.discard(rank)

    def _set(self, rank: str, state: str) -> None:
        self.ranks[rank] = RankBelief(state=state, ages_since_absent=0)

    def _nudge(self, rank: str, target: float, strength: float) -> None:
        self.likely[rank] += strength * (target - self.likely[rank])
        self.confidence[rank] += self.config.confidence_gain * (1.0 - self.confidence[rank])

    def _age_absent(self, count: int) -> None:
        relax = min(1.0, self.config.draw_relax * count)
        for rank, belief in self.ranks.items():
            if belief.state != ABSENT:
                continue
            belief.ages_since_absent += count
            if self.likely[rank] < 0.5:
                self.likely[rank] += relax * (0.5 - self.likely[rank])

    def _tick(self) -> None:
        d = self.config.decay
        self.ticks += 1
        for rank in RANKS:
            self.likely[rank] = 0.5 + (self.likely[rank] - 0.5) * d
            self.confidence[rank] *= d

    # ---- queries ----

    def state_of(self, rank: str) -> str:
        return self.ranks[rank].state

    def bias(self, rank: str) -> float:
        """Signed nudge in [-bias_weight, bias_weight]; positive = likely held."""
        if rank in self.booked:
            return 0.0
        return self.config.bias_weight * self.confidence[rank] * (2.0 * self.likely[rank] - 1.0)

    def combine(self, prob: float, rank: str) -> float:
        """Clamped addition of the belief bias onto a probability."""
        return max(0.0, min(1.0, prob + self.bias(rank)))

    def prior(self) -> Dict[str, float]:
        """Per-rank weight in [0, 1] used to seed particle sampling."""
        return {r: (0.0 if r in self.booked else self.likely[r]) for r in RANKS}

    def belief_probability(self, rank: str, own_count: int, opp_hand_size: int, deck_size: int) -> float:
        """
        Belief-aware P(opponent holds rank): certain when they have shown it,
        zero right after a denial, and only the cards drawn since a denial can
        bring it back.
        """
        if rank in self.booked:
            return 0.0
        belief = self.ranks[rank]
        if belief.state == HAS:
            return 1.0
        if belief.state == ABSENT and belief.ages_since_absent == 0:
            return 0.0
        unseen = max(0, CARDS_PER_RANK - own_count)
        draws = opp_hand_size
        if belief.state == ABSENT:
            draws = min(opp_hand_size, belief.ages_since_absent)
        return hypergeometric_at_least_one(max(1, deck_size + opp_hand_size), unseen, draws)


def reconstruct_beliefs(events: Iterable[Event], seat: int, config: BeliefConfig | None = None) -> BeliefTracker:
    """Replay a full event stream into a fresh tracker for ``seat``."""
    tracker = BeliefTracker(seat=seat, config=config or BeliefConfig())
    tracker.observe(events)
    return tracker


__all__ = [
    "UNKNOWN",
    "HAS",
    "ABSENT",
    "RankBelief",
    "BeliefConfig",
    "BeliefTracker",
    "reconstruct_beliefs",
]
