"""Tests for the reference agents."""
from gofish.agents import AnalyticalAgent, BaselineAgent, FirstLegalAgent, RandomAgent
from gofish.deck import Card
from gofish.engine import GameState, Player, init_game, legal_moves
from gofish.events import AskEvent, GoFishEvent


def _cards(spec: str):
    return [Card(rank=tok[:-1], suit=tok[-1]) for tok in spec.split()]


def _state(hand0: str, hand1: str, deck: str, events=()) -> GameState:
    return GameState(
        deck=_cards(deck),
        players=[Player(name="P1", hand=_cards(hand0)), Player(name="P2", hand=_cards(hand1))],
        events=list(events),
        seed=31,
    )


def test_random_agent_is_seeded_and_legal():
    state = init_game(seed=7)
    legal = legal_moves(state)
    picks_a = [RandomAgent(seed=3).pick_move(state, legal, 0) for _ in range(3)]
    picks_b = [RandomAgent(seed=3).pick_move(state, legal, 0) for _ in range(3)]
    assert picks_a == picks_b
    assert all(p in legal for p in picks_a)
    assert RandomAgent(seed=0).pick_move(state, [], 0) is None


def test_first_legal_agent():
    state = init_game(seed=7)
    legal = legal_moves(state)
    assert FirstLegalAgent().pick_move(state, legal, 0) == legal[0]


def test_baseline_prefers_three_of_a_kind():
    state = _state("2S 7S 7H 7D", "KS KH 3S", "4S 5S 6S 8S 9S")
    move = BaselineAgent().pick_move(state, legal_moves(state), 0)
    assert move.rank == "7"


def test_analytical_asks_for_what_the_opponent_showed():
    events = [AskEvent(seat=1, rank="9"), GoFishEvent(seat=0, rank="9")]
    state = _state("2S 2H 2D 9S", "9H KS 3S", "4S 5S 6S 8S", events=events)
    agent = AnalyticalAgent()
    move = agent.pick_move(state, legal_moves(state), 0)
    assert move.rank == "9"
    assert "9" in agent.tracker.opp_asked


def test_analytical_avoids_fresh_denials():
    events = [AskEvent(seat=0, rank="2"), GoFishEvent(seat=1, rank="2")]
    state = _state("2S 2H 2D 5S", "KS QS 3S", "4S 6S 8S 10S", events=events)
    move = AnalyticalAgent().pick_move(state, legal_moves(state), 0)
    assert move.rank == "5"
