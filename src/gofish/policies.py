"""
Policy registry and decision fallback chain.

Policies are registered by name with a factory ``seed -> Policy``. The harness
builds a fresh instance per game and seat, so no belief or particle state
outlives its game.

``DecisionChain`` turns "ask the policy, then fall back" into an ordered list
of decision sources. A source is skipped when it raises, returns nothing,
returns something that isn't a move, or returns a move that isn't legal; the
chain always ends with the first legal move.
"""
from __future__ import annotations

import hashlib
import inspect
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .agents import AnalyticalAgent, BaselineAgent, FirstLegalAgent, Policy, RandomAgent
from .engine import Action, GameState
from .profiles import PROFILES
from .scoring import ScoringAgent

PolicyFactory = Callable[[Optional[int]], Policy]

FALLBACK_ERROR = "error"
FALLBACK_NO_MOVE = "no-move"
FALLBACK_INVALID_SHAPE = "invalid-shape"
FALLBACK_ILLEGAL = "illegal-move"


class UnknownPolicyError(KeyError):
    pass


@dataclass(frozen=True)
class PolicySpec:
    name: str
    factory: PolicyFactory
    description: str = ""


_REGISTRY: Dict[str, PolicySpec] = {}


def register_policy(name: str, factory: PolicyFactory, description: str = "", *, replace: bool = False) -> PolicySpec:
    if name in _REGISTRY and not replace:
        raise ValueError(f"Policy {name!r} is already registered")
    spec = PolicySpec(name=name, factory=factory, description=description)
    _REGISTRY[name] = spec
    return spec


def get_policy_spec(name: str) -> PolicySpec:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise UnknownPolicyError(f"Unknown policy {name!r}; known: {available_policies()}") from None


def make_policy(name: str, seed: Optional[int] = None) -> Policy:
    return get_policy_spec(name).factory(seed)


def available_policies() -> List[str]:
    return sorted(_REGISTRY)


def policy_fingerprint(name: str) -> Dict[str, Optional[str]]:
    """
    Content fingerprint of a policy: sha256 of the source file defining its
    factory's target (the module the policy class lives in).
    """
    spec = get_policy_spec(name)
    target = getattr(spec.factory, "policy_class", spec.factory)
    module = inspect.getmodule(target)
    path = inspect.getsourcefile(module) if module is not None else None
    digest = None
    if path:
        with open(path, "rb") as f:
            digest = hashlib.sha256(f.read()).hexdigest()
    return {
        "name": name,
        "module": module.__name__ if module is not None else None,
        "sha256": digest,
    }


def _factory(cls, **kwargs) -> PolicyFactory:
    def build(seed: Optional[int] = None) -> Policy:
        return cls(seed=seed, **kwargs)

    build.policy_class = cls  # type: ignore[attr-defined]
    return build


def _register_builtins() -> None:
    register_policy("random", _factory(RandomAgent), "Uniform over legal moves.")
    register_policy("first", _factory(FirstLegalAgent), "Always the lowest held rank.")
    register_policy("baseline", _factory(BaselineAgent), "Immediate completion chance.")
    register_policy("analytical", _factory(AnalyticalAgent), "Belief probability × book proximity.")
    for profile in PROFILES.values():
        register_policy(profile.name, _factory(ScoringAgent, profile=profile), f"Scoring policy, {profile.name} profile.")


_register_builtins()


@dataclass
class DecisionChain:
    """Ordered decision sources with a final first-legal-move fallback."""

    sources: List[Policy]
    fallbacks: Counter = field(default_factory=Counter)

    def decide(self, state: GameState, legal: Sequence[Action], seat: int) -> Tuple[Optional[Action], Optional[str]]:
        """
        Return ``(move, trigger)``: the first acceptable move and the reason
        the last rejected source was skipped (None when the first source won).
        """
        if not legal:
            return None, None
        trigger: Optional[str] = None
        for source in self.sources:
            try:
                proposed = source.pick_move(state, legal, seat)
            except Exception:  # a broken policy must not take the batch down
                trigger = FALLBACK_ERROR
                self.fallbacks[trigger] += 1
                continue
            move, reason = _validate(proposed, legal)
            if move is not None:
                return move, trigger
            trigger = reason
            self.fallbacks[trigger] += 1
        return legal[0], trigger


def _validate(proposed: object, legal: Sequence[Action]) -> Tuple[Optional[Action], Optional[str]]:
    if proposed is None:
        return None, FALLBACK_NO_MOVE
    move = Action.from_obj(proposed)
    if move is None:
        return None, FALLBACK_INVALID_SHAPE
    if move not in legal:
        return None, FALLBACK_ILLEGAL
    return move, None


__all__ = [
    "PolicyFactory",
    "PolicySpec",
    "UnknownPolicyError",
    "FALLBACK_ERROR",
    "FALLBACK_NO_MOVE",
    "FALLBACK_INVALID_SHAPE",
    "FALLBACK_ILLEGAL",
    "register_policy",
    "get_policy_spec",
    "make_policy",
    "available_policies",
    "policy_fingerprint",
    "DecisionChain",
]
