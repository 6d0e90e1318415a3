"""
Named strategy profiles for the scoring policy.

A profile is one weight per scoring component plus the selection temperature
and the size of the near-tie band. Three styles ship by default:

- ``scout`` (information-seeking) values asks whose outcome is uncertain.
- ``greedy`` (material) chases completions and the Monte Carlo payoff.
- ``denial`` (denial-oriented) asks for what the opponent is building.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Dict, List


@dataclass(frozen=True)
class StrategyProfile:
    name: str
    completion: float = 1.0
    near_book: float = 1.0
    deny: float = 0.7
    info_gain: float = 0.3
    belief: float = 1.0
    endgame: float = 1.0
    monte_carlo: float = 0.5
    temperature: float = 0.0
    tie_band: float = 0.05
    num_particles: int = 64
    rollouts: int = 48
    search_depth: int = 4

    def weights(self) -> Dict[str, float]:
        return {
            "completion": self.completion,
            "near_book": self.near_book,
            "deny": self.deny,
            "info_gain": self.info_gain,
            "belief": self.belief,
            "endgame": self.endgame,
            "monte_carlo": self.monte_carlo,
        }

    def with_overrides(self, **kwargs) -> "StrategyProfile":
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


SCOUT = StrategyProfile(
    name="scout",
    completion=0.8,
    near_book=0.6,
    deny=0.4,
    info_gain=1.2,
    belief=1.0,
    endgame=0.8,
    monte_carlo=0.3,
    temperature=0.35,
    tie_band=0.15,
)

GREEDY = StrategyProfile(
    name="greedy",
    completion=1.6,
    near_book=1.2,
    deny=0.3,
    info_gain=0.1,
    belief=1.2,
    endgame=1.0,
    monte_carlo=0.9,
    temperature=0.0,
    tie_band=0.02,
)

DENIAL = StrategyProfile(
    name="denial",
    completion=1.0,
    near_book=0.9,
    deny=1.5,
    info_gain=0.2,
    belief=1.4,
    endgame=1.3,
    monte_carlo=0.5,
    temperature=0.15,
    tie_band=0.08,
)

PROFILES: Dict[str, StrategyProfile] = {p.name: p for p in (SCOUT, GREEDY, DENIAL)}


def get_profile(name: str) -> StrategyProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise KeyError(f"Unknown strategy profile {name!r}; known: {sorted(PROFILES)}") from None


def profile_names() -> List[str]:
    return sorted(PROFILES)


__all__ = [
    "StrategyProfile",
    "SCOUT",
    "GREEDY",
    "DENIAL",
    "PROFILES",
    "get_profile",
    "profile_names",
]
