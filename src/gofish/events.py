"""
Structured game events.

The engine records every public happening as a small frozen dataclass; the
human-readable log is derived from these with ``format_event``. Inference code
(belief tracking, particle priors) reads the events directly and never parses
log text.

Seats are indices (0/1). Card identities are never part of an event: a draw
only reveals *how many* cards were taken, a go-again only reveals the rank that
was asked for.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

EVENT_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class AskEvent:
    seat: int
    rank: str


@dataclass(frozen=True)
class GiveEvent:
    """``seat`` handed ``count`` cards of ``rank`` to the asker."""

    seat: int
    rank: str
    count: int


@dataclass(frozen=True)
class GoFishEvent:
    """``seat`` had no ``rank`` when asked."""

    seat: int
    rank: str


@dataclass(frozen=True)
class DrawEvent:
    seat: int
    count: int = 1
    refill: bool = False


@dataclass(frozen=True)
class GoAgainEvent:
    """``seat`` drew the rank it had asked for and keeps the turn."""

    seat: int
    rank: str


@dataclass(frozen=True)
class BookEvent:
    seat: int
    ranks: Tuple[str, ...]


@dataclass(frozen=True)
class PassEvent:
    seat: int
    reason: str  # "empty-deck" | "empty-hand"


Event = Union[AskEvent, GiveEvent, GoFishEvent, DrawEvent, GoAgainEvent, BookEvent, PassEvent]


def format_event(event: Event, names: Sequence[str]) -> str:
    """Render one event as a log line using the seat names."""
    if isinstance(event, AskEvent):
        return f"{names[event.seat]} asks for {event.rank}."
    if isinstance(event, GiveEvent):
        return f"{names[event.seat]} gives {event.count} card(s)."
    if isinstance(event, GoFishEvent):
        return f"{names[event.seat]} says go fish."
    if isinstance(event, DrawEvent):
        if event.refill:
            return f"{names[event.seat]} draws {event.count} card(s) to refill."
        return f"{names[event.seat]} draws a card."
    if isinstance(event, GoAgainEvent):
        return f"{names[event.seat]} drew the asked rank and goes again."
    if isinstance(event, BookEvent):
        return f"{names[event.seat]} books {', '.join(event.ranks)}."
    if isinstance(event, PassEvent):
        if event.reason == "empty-deck":
            return "The deck is empty."
        return f"{names[event.seat]} has no cards and skips the turn."
    raise ValueError(f"Unknown event type: {type(event).__name__}")


def event_to_dict(event: Event) -> dict:
    """JSON-friendly form: ``{"type": "ask", ...fields}``."""
    kind = _EVENT_TAGS[type(event)]
    d = {"type": kind}
    d.update(event.__dict__)
    if isinstance(event, BookEvent):
        d["ranks"] = list(event.ranks)
    return d


_EVENT_TAGS = {
    AskEvent: "ask",
    GiveEvent: "give",
    GoFishEvent: "go_fish",
    DrawEvent: "draw",
    GoAgainEvent: "go_again",
    BookEvent: "book",
    PassEvent: "pass",
}


__all__ = [
    "EVENT_SCHEMA_VERSION",
    "AskEvent",
    "GiveEvent",
    "GoFishEvent",
    "DrawEvent",
    "GoAgainEvent",
    "BookEvent",
    "PassEvent",
    "Event",
    "format_event",
    "event_to_dict",
]
