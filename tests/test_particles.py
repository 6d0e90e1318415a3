"""Particle opponent model tests."""
import numpy as np

from gofish.belief import BeliefTracker
from gofish.deck import RANK_INDEX
from gofish.engine import init_game
from gofish.events import AskEvent, GoFishEvent
from gofish.particles import ParticleConfig, ParticleModel, counts_vector, fuse_estimates
from gofish.probability import RankEstimate


def test_resample_respects_capacity_hand_size_and_required():
    model = ParticleModel(ParticleConfig(num_particles=50), seed=3)
    cap = np.array([4, 3, 0, 2, 1, 4, 0, 0, 4, 2, 1, 3, 0])
    required = np.zeros(13, dtype=np.int64)
    required[1] = 1
    required[4] = 1
    out = model.resample(cap, hand_size=9, required=required)
    assert out.shape == (50, 13)
    assert (out.sum(axis=1) == 9).all()
    assert (out <= cap).all()
    assert (out[:, 1] >= 1).all() and (out[:, 4] >= 1).all()
    assert (out[:, 2] == 0).all()


def test_resample_caps_hand_size_at_total_capacity():
    model = ParticleModel(ParticleConfig(num_particles=8), seed=0)
    cap = np.zeros(13, dtype=np.int64)
    cap[0] = 2
    out = model.resample(cap, hand_size=5)
    assert (out[:, 0] == 2).all()
    assert model.hand_size == 2


def test_update_from_game_state_uses_public_constraints():
    state = init_game(seed=21)
    tracker = BeliefTracker(seat=0)
    me = state.players[0]
    held = me.hand[0].rank
    tracker.observe([AskEvent(seat=0, rank=held), GoFishEvent(seat=1, rank=held)])

    model = ParticleModel(ParticleConfig(num_particles=40), seed=1)
    out = model.update_from(state, 0, tracker)
    own = me.counts()
    assert (out.sum(axis=1) == len(state.players[1].hand)).all()
    for rank, i in RANK_INDEX.items():
        assert (out[:, i] <= 4 - own[rank]).all()
    # just denied and nothing drawn since
    assert (out[:, RANK_INDEX[held]] == 0).all()
    assert model.estimate(held).prob_has == 0.0


def test_same_seed_same_particles():
    state = init_game(seed=2)
    a = ParticleModel(seed=77).update_from(state, 1)
    b = ParticleModel(seed=77).update_from(state, 1)
    assert np.array_equal(a, b)


def test_estimates_are_probabilities():
    state = init_game(seed=8)
    model = ParticleModel(seed=5)
    model.update_from(state, 0)
    for est in model.estimates().values():
        assert 0.0 <= est.prob_has <= 1.0
        assert 0.0 <= est.expected_count <= 4.0


def test_monte_carlo_ev_hit_and_miss():
    model = ParticleModel(ParticleConfig(rollouts=10, book_bonus=2.0, miss_utility=-0.25, strongest_penalty=0.0), seed=0)
    hands = np.zeros((4, 13), dtype=np.int64)
    hands[:, RANK_INDEX["Q"]] = 1
    hands[:, RANK_INDEX["3"]] = 2
    model.particles = hands
    # Taking the last Q completes the book: 1 card + 2 bonus.
    assert model.monte_carlo_rank_ev("Q", own_count=3) == 3.0
    assert model.monte_carlo_rank_ev("3", own_count=1) == 2.0
    assert model.monte_carlo_rank_ev("K", own_count=2) == -0.25


def test_empty_model_falls_back():
    model = ParticleModel(seed=0)
    assert model.estimate("A").prob_has == 0.0
    assert model.sample(3).shape == (0, 13)
    assert model.monte_carlo_rank_ev("A", 1) == model.config.miss_utility


def test_fuse_and_counts_vector():
    fused = fuse_estimates(RankEstimate(0.2, 1.0), RankEstimate(0.6, 0.0))
    assert abs(fused.prob_has - 0.4) < 1e-12
    assert fused.expected_count == 0.5
    assert counts_vector({"A": 2, "K": 1}).tolist() == [2] + [0] * 11 + [1]


def test_negative_seed_is_folded_into_range():
    a = ParticleModel(seed=-3)
    b = ParticleModel(seed=(-3) & 0xFFFFFFFF)
    cap = counts_vector({"A": 3, "7": 2, "K": 4})
    assert np.array_equal(a.resample(cap, 4), b.resample(cap, 4))
