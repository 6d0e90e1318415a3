"""
Standard 52-card deck for Go Fish: 13 ranks × 4 suits.
Only ranks matter for play; suits exist so that the four copies of a rank are
distinct cards and a book is "all four suits held at once".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

RANKS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
SUITS = ("S", "H", "D", "C")

RANK_INDEX: Dict[str, int] = {r: i for i, r in enumerate(RANKS)}

NUM_RANKS = len(RANKS)
CARDS_PER_RANK = len(SUITS)
DECK_SIZE = NUM_RANKS * CARDS_PER_RANK


@dataclass(frozen=True)
class Card:
    """A single playing card. Rank is one of RANKS, suit one of SUITS."""

    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANK_INDEX:
            raise ValueError(f"Unknown rank: {self.rank!r}")
        if self.suit not in SUITS:
            raise ValueError(f"Unknown suit: {self.suit!r}")

    def to_dict(self) -> Dict[str, str]:
        return {"rank": self.rank, "suit": self.suit}

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return str(self)


def make_deck_52() -> List[Card]:
    """Build a full deck, rank-major (A♠ A♥ A♦ A♣ 2♠ ...), unshuffled."""
    return [Card(rank=r, suit=s) for r in RANKS for s in SUITS]


def rank_counts(cards: Iterable[Card]) -> Dict[str, int]:
    """Count cards per rank; every rank is present in the result (possibly 0)."""
    out = {r: 0 for r in RANKS}
    for c in cards:
        out[c.rank] += 1
    return out


def sort_ranks(ranks: Iterable[str]) -> List[str]:
    return sorted(ranks, key=RANK_INDEX.__getitem__)


def is_rank(value: object) -> bool:
    return isinstance(value, str) and value in RANK_INDEX


__all__ = [
    "RANKS",
    "SUITS",
    "RANK_INDEX",
    "NUM_RANKS",
    "CARDS_PER_RANK",
    "DECK_SIZE",
    "Card",
    "make_deck_52",
    "rank_counts",
    "sort_ranks",
    "is_rank",
]
