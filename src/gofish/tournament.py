"""
Seeded game batches between two policies.

This layer only knows about policy factories (``seed -> Policy``) and the
engine; it never looks inside a policy. Every game gets its own seed
(``base_seed + index``) and every policy instance its own seed derived from
the game seed and the policy name, so batches are reproducible and a policy's
randomness doesn't depend on which seat it happens to sit in.
"""
from __future__ import annotations

import json
import zlib
from collections import Counter
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .agents import Policy
from .engine import (
    PHASE_GAMEOVER,
    PHASE_PLAY,
    Action,
    GameState,
    apply_action,
    init_game,
    legal_moves,
    winner_seat,
)
from .policies import DecisionChain, PolicyFactory, get_policy_spec

MAX_PLIES = 10_000


@dataclass
class TournamentConfig:
    games: int = 1000
    base_seed: int = 0
    fair: bool = True
    starting_hand_size: int = 7
    max_plies: int = MAX_PLIES


@dataclass
class GameRecord:
    seed: int
    finished: bool
    winner_seat: Optional[int]  # None for a tie or an unfinished game
    plies: int
    books: Tuple[int, int]
    fallbacks: Tuple[Dict[str, int], Dict[str, int]]
    final_state: GameState = field(repr=False, compare=False)


@dataclass
class BatchStats:
    """Results from seat 0's point of view: ``p1`` is seat 0, ``p2`` seat 1."""

    games: int
    policy_a: str
    policy_b: str
    p1: int = 0
    p2: int = 0
    tie: int = 0
    unfinished: int = 0
    avg_turns: float = 0.0
    fallbacks_a: Dict[str, int] = field(default_factory=dict)
    fallbacks_b: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class FairStats:
    """Seat-swapped results attributed to policies."""

    games: int
    policy_a: str
    policy_b: str
    policy_a_wins: int
    policy_b_wins: int
    ties: int
    unfinished: int
    policy_a_win_rate: float
    policy_b_win_rate: float
    tie_rate: float
    avg_turns: float
    fallbacks_a: Dict[str, int]
    fallbacks_b: Dict[str, int]
    a_first: BatchStats
    b_first: BatchStats
    fair: bool = True

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class FeedIntegrityError(RuntimeError):
    """A strict move feed was exhausted, malformed, illegal, or left unconsumed."""


def derive_policy_seed(game_seed: int, policy_name: str) -> int:
    """Stable per-game seed for a named policy (independent of seat)."""
    return zlib.crc32(f"{policy_name}:{game_seed}".encode("utf-8"))


def _rate(n: int, games: int) -> float:
    return round(100.0 * n / max(games, 1), 2)


def _play(
    state: GameState,
    deciders: Sequence,
    max_plies: int,
) -> Tuple[GameState, int]:
    plies = 0
    while state.phase == PHASE_PLAY and plies < max_plies:
        legal = legal_moves(state)
        if not legal:
            break
        seat = state.current_player
        move = deciders[seat](state.copy(), legal, seat)
        result = apply_action(state, move)
        if not result.ok:
            raise RuntimeError(f"Validated move {move} rejected by engine: {result.reason}")
        state = result.state
        plies += 1
    return state, plies


def _record(seed: int, state: GameState, plies: int, chains: Sequence[DecisionChain]) -> GameRecord:
    finished = state.phase == PHASE_GAMEOVER
    return GameRecord(
        seed=seed,
        finished=finished,
        winner_seat=winner_seat(state) if finished else None,
        plies=plies,
        books=(len(state.players[0].books), len(state.players[1].books)),
        fallbacks=(dict(chains[0].fallbacks), dict(chains[1].fallbacks)),
        final_state=state,
    )


def run_game(
    policy_0: Policy,
    policy_1: Policy,
    seed: int,
    starting_hand_size: int = 7,
    max_plies: int = MAX_PLIES,
    names: Optional[Sequence[str]] = None,
) -> GameRecord:
    """
    Play one seeded game to completion (or ``max_plies``).

    Each policy sees a copy of the state; invalid or missing moves are replaced
    by the first legal move and counted in the record's ``fallbacks``.
    """
    state = init_game(seed=seed, starting_hand_size=starting_hand_size, names=names)
    chains = [DecisionChain([policy_0]), DecisionChain([policy_1])]

    def decide(st: GameState, legal: Sequence[Action], seat: int) -> Action:
        move, _trigger = chains[seat].decide(st, legal, seat)
        return move

    state, plies = _play(state, [decide, decide], max_plies)
    return _record(seed, state, plies, chains)


def run_batch(
    factory_a: PolicyFactory,
    factory_b: PolicyFactory,
    games: int,
    base_seed: int = 0,
    name_a: str = "A",
    name_b: str = "B",
    starting_hand_size: int = 7,
    max_plies: int = MAX_PLIES,
) -> BatchStats:
    """Policy A sits in seat 0 for every game; game ``i`` uses ``base_seed + i``."""
    if games < 0:
        raise ValueError(f"games must be >= 0, got {games}")
    stats = BatchStats(games=games, policy_a=name_a, policy_b=name_b)
    fallbacks_a: Counter = Counter()
    fallbacks_b: Counter = Counter()
    plies_total = 0
    for i in range(games):
        seed = base_seed + i
        record = run_game(
            factory_a(derive_policy_seed(seed, name_a)),
            factory_b(derive_policy_seed(seed, name_b)),
            seed=seed,
            starting_hand_size=starting_hand_size,
            max_plies=max_plies,
        )
        plies_total += record.plies
        fallbacks_a.update(record.fallbacks[0])
        fallbacks_b.update(record.fallbacks[1])
        if not record.finished:
            stats.unfinished += 1
        elif record.winner_seat is None:
            stats.tie += 1
        elif record.winner_seat == 0:
            stats.p1 += 1
        else:
            stats.p2 += 1
    stats.avg_turns = round(plies_total / max(games, 1), 2)
    stats.fallbacks_a = dict(fallbacks_a)
    stats.fallbacks_b = dict(fallbacks_b)
    return stats


def run_batch_fair(
    factory_a: PolicyFactory,
    factory_b: PolicyFactory,
    games: int,
    base_seed: int = 0,
    name_a: str = "A",
    name_b: str = "B",
    starting_hand_size: int = 7,
    max_plies: int = MAX_PLIES,
) -> FairStats:
    """
    Seat-swapped batch: A starts in ``games // 2`` games, B in the rest.

    Both halves replay the same seed sequence, so with an even game count every
    deal is played once from each side.
    """
    half_a_first = games // 2
    half_b_first = games - half_a_first
    kwargs = dict(base_seed=base_seed, starting_hand_size=starting_hand_size, max_plies=max_plies)
    a_first = run_batch(factory_a, factory_b, half_a_first, name_a=name_a, name_b=name_b, **kwargs)
    b_first = run_batch(factory_b, factory_a, half_b_first, name_a=name_b, name_b=name_a, **kwargs)

    a_wins = a_first.p1 + b_first.p2
    b_wins = a_first.p2 + b_first.p1
    ties = a_first.tie + b_first.tie
    avg_turns = (a_first.avg_turns * half_a_first + b_first.avg_turns * half_b_first) / max(games, 1)
    return FairStats(
        games=games,
        policy_a=name_a,
        policy_b=name_b,
        policy_a_wins=a_wins,
        policy_b_wins=b_wins,
        ties=ties,
        unfinished=a_first.unfinished + b_first.unfinished,
        policy_a_win_rate=_rate(a_wins, games),
        policy_b_win_rate=_rate(b_wins, games),
        tie_rate=_rate(ties, games),
        avg_turns=round(avg_turns, 2),
        fallbacks_a=dict(Counter(a_first.fallbacks_a) + Counter(b_first.fallbacks_b)),
        fallbacks_b=dict(Counter(a_first.fallbacks_b) + Counter(b_first.fallbacks_a)),
        a_first=a_first,
        b_first=b_first,
    )


def run_tournament(policy_a: str, policy_b: str, config: TournamentConfig | None = None):
    """Resolve two registered policy names and run a (fair) batch."""
    cfg = config or TournamentConfig()
    spec_a = get_policy_spec(policy_a)
    spec_b = get_policy_spec(policy_b)
    runner = run_batch_fair if cfg.fair else run_batch
    return runner(
        spec_a.factory,
        spec_b.factory,
        cfg.games,
        base_seed=cfg.base_seed,
        name_a=policy_a,
        name_b=policy_b,
        starting_hand_size=cfg.starting_hand_size,
        max_plies=cfg.max_plies,
    )


# ---- feed-driven games ----


def parse_feed_line(line: str) -> Optional[Action]:
    """
    One feed entry: a bare rank (``Q``), ``ask Q``, or a JSON object such as
    ``{"rank": "Q"}`` / ``{"type": "ask_rank", "rank": "Q"}``. None if malformed.
    """
    text = line.strip()
    if text.startswith("{"):
        try:
            obj = json.loads(text)
        except json.JSONDecodeError:
            return None
        if isinstance(obj, dict) and "rank" in obj and "type" not in obj:
            obj = {"type": "ask_rank", "rank": obj["rank"]}
        return Action.from_obj(obj)
    parts = text.split()
    if len(parts) == 2 and parts[0].lower() == "ask":
        parts = parts[1:]
    if len(parts) != 1:
        return None
    return Action.from_obj({"askRank": parts[0].upper()})


@dataclass
class MoveFeed:
    """Pre-recorded moves, one per non-blank, non-comment line."""

    lines: List[str]
    position: int = 0

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "MoveFeed":
        kept = [ln.strip() for ln in lines if ln.strip() and not ln.strip().startswith("#")]
        return cls(lines=kept)

    @classmethod
    def from_text(cls, text: str) -> "MoveFeed":
        return cls.from_lines(text.splitlines())

    @classmethod
    def from_file(cls, path: str | Path) -> "MoveFeed":
        return cls.from_text(Path(path).read_text(encoding="utf-8"))

    @property
    def remaining(self) -> int:
        return len(self.lines) - self.position

    def next_entry(self) -> Tuple[Optional[Action], str]:
        if self.remaining <= 0:
            raise IndexError("move feed exhausted")
        raw = self.lines[self.position]
        self.position += 1
        return parse_feed_line(raw), raw


@dataclass
class FeedPolicy:
    """
    Plays the next feed entry.

    Strict mode raises on a bad entry. Otherwise the entry is passed on as read
    (raw text when malformed) so a DecisionChain can classify the fallback.
    """

    feed: MoveFeed
    strict: bool = True

    def pick_move(self, state: GameState, legal: Sequence[Action], seat: int) -> object:
        if self.feed.remaining <= 0:
            if self.strict:
                raise FeedIntegrityError(f"feed exhausted with {seat=} to move after {len(state.events)} events")
            return None
        move, raw = self.feed.next_entry()
        if move is None:
            if self.strict:
                raise FeedIntegrityError(f"malformed feed line {self.feed.position}: {raw!r}")
            return raw
        if move not in legal and self.strict:
            raise FeedIntegrityError(
                f"illegal feed move {move.rank!r} on line {self.feed.position}; legal: {[a.rank for a in legal]}"
            )
        return move


def run_feed_game(
    feed: MoveFeed,
    opponent_factory: PolicyFactory,
    seed: int,
    feed_seat: int = 1,
    strict: bool = True,
    starting_hand_size: int = 7,
    max_plies: int = MAX_PLIES,
    opponent_name: str = "opponent",
) -> GameRecord:
    """
    Play one game where ``feed_seat`` is driven by ``feed``.

    Strict: any missing, malformed or illegal entry, a game cut off by
    ``max_plies``, or feed lines left over at the end raise FeedIntegrityError.
    Non-strict: bad entries fall back to the first legal move like any
    misbehaving policy.
    """
    if feed_seat not in (0, 1):
        raise ValueError(f"feed_seat must be 0 or 1, got {feed_seat}")
    feed_policy = FeedPolicy(feed=feed, strict=strict)
    opponent = opponent_factory(derive_policy_seed(seed, opponent_name))
    policies: List[Policy] = [opponent, opponent]
    policies[feed_seat] = feed_policy
    chains = [DecisionChain([policies[0]]), DecisionChain([policies[1]])]

    def decide(st: GameState, legal: Sequence[Action], seat: int) -> Action:
        if strict and seat == feed_seat:
            return feed_policy.pick_move(st, legal, seat)
        move, _trigger = chains[seat].decide(st, legal, seat)
        return move

    state = init_game(seed=seed, starting_hand_size=starting_hand_size)
    state, plies = _play(state, [decide, decide], max_plies)
    if strict and state.phase != PHASE_GAMEOVER:
        raise FeedIntegrityError(f"game stopped unfinished at the ply ceiling after {plies} plies")
    if strict and feed.remaining > 0:
        raise FeedIntegrityError(f"{feed.remaining} feed line(s) left unconsumed at game end")
    return _record(seed, state, plies, chains)


__all__ = [
    "MAX_PLIES",
    "TournamentConfig",
    "GameRecord",
    "BatchStats",
    "FairStats",
    "FeedIntegrityError",
    "derive_policy_seed",
    "run_game",
    "run_batch",
    "run_batch_fair",
    "run_tournament",
    "parse_feed_line",
    "MoveFeed",
    "FeedPolicy",
    "run_feed_game",
]
