"""
Two-seat Go Fish engine: seeded deal → asks / go fish → books → winner.

``apply_action`` never mutates its input: it works on a copy and returns the
new state together with an outcome tag, so callers can compose moves freely
and policies can be handed the live state without risk.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .deck import NUM_RANKS, RANKS, Card, is_rank, make_deck_52, rank_counts, sort_ranks
from .events import (
    AskEvent,
    BookEvent,
    DrawEvent,
    Event,
    GiveEvent,
    GoAgainEvent,
    GoFishEvent,
    PassEvent,
    format_event,
)

PHASE_PLAY = "play"
PHASE_GAMEOVER = "gameover"
TIE = "Tie"

DEFAULT_STARTING_HAND = 7
DEFAULT_REFILL_HAND = 5
DEFAULT_NAMES = ("Player 1", "Player 2")
LOG_TAIL = 10

# Outcome tags returned by apply_action
EVENT_TAKE = "take"
EVENT_PASS = "pass"
EVENT_DRAW_MATCH = "draw-match"
EVENT_EMPTY_DECK_PASS = "empty-deck-pass"
EVENT_GAMEOVER = "gameover"

# Rejection reasons
REASON_NOT_PLAY = "game-not-play"
REASON_INVALID_ACTION = "invalid-action"
REASON_ILLEGAL_RANK = "illegal-rank"


@dataclass(frozen=True)
class Action:
    """Ask the opponent for every card of ``rank``."""

    rank: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": "ask_rank", "rank": self.rank}

    @classmethod
    def from_obj(cls, obj: Any) -> Optional["Action"]:
        """
        Accept an Action, ``{"type": "ask_rank", "rank": R}`` or ``{"askRank": R}``.
        Returns None for anything malformed.
        """
        if isinstance(obj, Action):
            return obj if is_rank(obj.rank) else None
        if not isinstance(obj, dict):
            return None
        if "askRank" in obj:
            rank = obj["askRank"]
        elif obj.get("type") == "ask_rank":
            rank = obj.get("rank")
        else:
            return None
        if not is_rank(rank):
            return None
        return cls(rank=rank)


@dataclass
class Player:
    name: str
    hand: List[Card] = field(default_factory=list)
    books: List[str] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return rank_counts(self.hand)

    def count(self, rank: str) -> int:
        return sum(1 for c in self.hand if c.rank == rank)

    def copy(self) -> "Player":
        return Player(name=self.name, hand=list(self.hand), books=list(self.books))


@dataclass
class GameState:
    """Full (omniscient) state of one game. Cards are immutable, lists are per-state."""

    deck: List[Card]
    players: List[Player]
    current_player: int = 0
    phase: str = PHASE_PLAY
    events: List[Event] = field(default_factory=list)
    log: List[str] = field(default_factory=list)
    winner: Optional[str] = None
    seed: int = 0

    def copy(self) -> "GameState":
        return GameState(
            deck=list(self.deck),
            players=[p.copy() for p in self.players],
            current_player=self.current_player,
            phase=self.phase,
            events=list(self.events),
            log=list(self.log),
            winner=self.winner,
            seed=self.seed,
        )

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.players]

    def opponent_of(self, seat: int) -> int:
        return 1 - seat

    def total_books(self) -> int:
        return sum(len(p.books) for p in self.players)

    def booked_ranks(self) -> set:
        return set(self.players[0].books) | set(self.players[1].books)

    def emit(self, event: Event) -> None:
        self.events.append(event)
        self.log.append(format_event(event, self.names))


@dataclass
class ActionResult:
    state: GameState
    ok: bool
    event: Optional[str] = None
    reason: Optional[str] = None


def _draw(state: GameState, seat: int, n: int) -> List[Card]:
    amount = min(n, len(state.deck))
    drawn: List[Card] = []
    for _ in range(amount):
        drawn.append(state.deck.pop())
    state.players[seat].hand.extend(drawn)
    return drawn


def _extract_books(state: GameState, seat: int) -> List[str]:
    """Move every complete rank (all four suits) from hand to books; log them."""
    player = state.players[seat]
    counts = player.counts()
    made = [r for r in RANKS if counts[r] == 4 and r not in player.books]
    if made:
        player.hand = [c for c in player.hand if c.rank not in made]
        player.books = sort_ranks(player.books + made)
        state.emit(BookEvent(seat=seat, ranks=tuple(made)))
    return made


def _check_gameover(state: GameState) -> bool:
    if state.total_books() >= NUM_RANKS:
        state.phase = PHASE_GAMEOVER
        finalize_winner(state)
        return True
    return False


def _refill_if_empty(state: GameState, seat: int, refill_hand: int) -> None:
    if state.players[seat].hand or not state.deck:
        return
    drawn = _draw(state, seat, refill_hand)
    state.emit(DrawEvent(seat=seat, count=len(drawn), refill=True))
    _extract_books(state, seat)
    _check_gameover(state)


def _settle_turn(state: GameState, refill_hand: int) -> None:
    """
    Make sure the seat to move can act: refill an empty hand from the deck, or
    pass when both hand and deck are empty. Both hands empty ends the game.
    """
    for _ in range(4):
        if state.phase != PHASE_PLAY:
            return
        seat = state.current_player
        if state.players[seat].hand:
            return
        if state.deck:
            _refill_if_empty(state, seat, refill_hand)
            continue
        opp = state.opponent_of(seat)
        if not state.players[opp].hand:
            state.phase = PHASE_GAMEOVER
            finalize_winner(state)
            return
        state.emit(PassEvent(seat=seat, reason="empty-hand"))
        state.current_player = opp


def init_game(
    seed: Optional[int] = None,
    starting_hand_size: int = DEFAULT_STARTING_HAND,
    names: Optional[Sequence[str]] = None,
) -> GameState:
    """
    Shuffle a fresh deck with ``random.Random(seed)`` and deal alternately.
    Books formed by the deal are resolved immediately; seat 0 moves first.
    """
    if not 1 <= starting_hand_size <= 26:
        raise ValueError(f"starting_hand_size must be in 1..26, got {starting_hand_size}")
    names = list(names) if names is not None else list(DEFAULT_NAMES)
    if len(names) != 2:
        raise ValueError(f"Exactly two seat names required, got {len(names)}")
    if names[0] == names[1]:
        raise ValueError("Seat names must be distinct")
    if seed is None:
        seed = random.randrange(2**32)

    rng = random.Random(seed)
    deck = make_deck_52()
    rng.shuffle(deck)

    state = GameState(
        deck=deck,
        players=[Player(name=str(names[0])), Player(name=str(names[1]))],
        seed=int(seed),
    )
    for _ in range(starting_hand_size):
        _draw(state, 0, 1)
        _draw(state, 1, 1)
    _extract_books(state, 0)
    _extract_books(state, 1)
    _check_gameover(state)
    _settle_turn(state, DEFAULT_REFILL_HAND)
    return state


def legal_moves(state: GameState) -> List[Action]:
    """One ask per rank held by the seat to move, in rank order."""
    if state.phase != PHASE_PLAY:
        return []
    counts = state.players[state.current_player].counts()
    return [Action(rank=r) for r in RANKS if counts[r] > 0]


def apply_action(
    state: GameState,
    action: Any,
    refill_hand: int = DEFAULT_REFILL_HAND,
) -> ActionResult:
    """
    Apply one ask for the seat to move and return the resulting state.

    Rejected actions return the (unchanged) input state with ``ok=False``.
    """
    if state.phase != PHASE_PLAY:
        return ActionResult(state=state, ok=False, reason=REASON_NOT_PLAY)
    act = Action.from_obj(action)
    if act is None:
        return ActionResult(state=state, ok=False, reason=REASON_INVALID_ACTION)
    if state.players[state.current_player].count(act.rank) == 0:
        return ActionResult(state=state, ok=False, reason=REASON_ILLEGAL_RANK)

    state = state.copy()
    rank = act.rank
    cur = state.current_player
    opp = state.opponent_of(cur)
    asker = state.players[cur]
    other = state.players[opp]

    state.emit(AskEvent(seat=cur, rank=rank))
    taken = [c for c in other.hand if c.rank == rank]

    if taken:
        other.hand = [c for c in other.hand if c.rank != rank]
        asker.hand.extend(taken)
        state.emit(GiveEvent(seat=opp, rank=rank, count=len(taken)))
        _extract_books(state, cur)
        if not _check_gameover(state):
            _refill_if_empty(state, cur, refill_hand)
        _settle_turn(state, refill_hand)
        tag = EVENT_GAMEOVER if state.phase == PHASE_GAMEOVER else EVENT_TAKE
        return ActionResult(state=state, ok=True, event=tag)

    state.emit(GoFishEvent(seat=opp, rank=rank))
    drawn = _draw(state, cur, 1)
    if not drawn:
        state.emit(PassEvent(seat=cur, reason="empty-deck"))
        state.current_player = opp
        _settle_turn(state, refill_hand)
        tag = EVENT_GAMEOVER if state.phase == PHASE_GAMEOVER else EVENT_EMPTY_DECK_PASS
        return ActionResult(state=state, ok=True, event=tag)

    state.emit(DrawEvent(seat=cur, count=1))
    _extract_books(state, cur)
    if _check_gameover(state):
        return ActionResult(state=state, ok=True, event=EVENT_GAMEOVER)

    if drawn[0].rank == rank:
        state.emit(GoAgainEvent(seat=cur, rank=rank))
        _refill_if_empty(state, cur, refill_hand)
        _settle_turn(state, refill_hand)
        tag = EVENT_GAMEOVER if state.phase == PHASE_GAMEOVER else EVENT_DRAW_MATCH
        return ActionResult(state=state, ok=True, event=tag)

    state.current_player = opp
    _settle_turn(state, refill_hand)
    tag = EVENT_GAMEOVER if state.phase == PHASE_GAMEOVER else EVENT_PASS
    return ActionResult(state=state, ok=True, event=tag)


def finalize_winner(state: GameState) -> str:
    """Set and return the winner: the seat with more books, or "Tie"."""
    a = len(state.players[0].books)
    b = len(state.players[1].books)
    if a == b:
        state.winner = TIE
    else:
        state.winner = state.players[0].name if a > b else state.players[1].name
    return state.winner


def winner_seat(state: GameState) -> Optional[int]:
    """Seat index of the winner, None for a tie or an unfinished game."""
    if state.winner is None or state.winner == TIE:
        return None
    return 0 if state.winner == state.players[0].name else 1


def card_total(state: GameState) -> int:
    """deck + hands + 4·books; 52 for every reachable state."""
    return len(state.deck) + sum(len(p.hand) + 4 * len(p.books) for p in state.players)


def summarize(state: GameState, observer: Optional[int] = None) -> Dict[str, Any]:
    """
    Public projection of the state. Hand contents are only included for
    ``observer`` (as per-rank counts); everyone else is shown by hand size.
    """
    players = []
    for i, p in enumerate(state.players):
        row: Dict[str, Any] = {
            "name": p.name,
            "handCount": len(p.hand),
            "books": list(p.books),
        }
        if observer is not None and i == observer:
            row["handCounts"] = {r: n for r, n in p.counts().items() if n > 0}
        players.append(row)
    return {
        "phase": state.phase,
        "currentPlayer": state.current_player,
        "currentPlayerName": state.players[state.current_player].name,
        "deckCount": len(state.deck),
        "players": players,
        "legalActions": [a.to_dict() for a in legal_moves(state)],
        "logTail": state.log[-LOG_TAIL:],
        "winner": state.winner,
        "seed": state.seed,
    }


__all__ = [
    "PHASE_PLAY",
    "PHASE_GAMEOVER",
    "TIE",
    "DEFAULT_STARTING_HAND",
    "DEFAULT_REFILL_HAND",
    "EVENT_TAKE",
    "EVENT_PASS",
    "EVENT_DRAW_MATCH",
    "EVENT_EMPTY_DECK_PASS",
    "EVENT_GAMEOVER",
    "REASON_NOT_PLAY",
    "REASON_INVALID_ACTION",
    "REASON_ILLEGAL_RANK",
    "Action",
    "Player",
    "GameState",
    "ActionResult",
    "init_game",
    "legal_moves",
    "apply_action",
    "finalize_winner",
    "winner_seat",
    "card_total",
    "summarize",
]
