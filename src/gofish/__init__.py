"""Two-seat Go Fish engine, imperfect-information policies and tournament harness."""

__version__ = "0.1.0"

from .deck import Card, RANKS, SUITS, make_deck_52
from .events import format_event
from .engine import (
    Action,
    ActionResult,
    GameState,
    Player,
    apply_action,
    finalize_winner,
    init_game,
    legal_moves,
    summarize,
)
from .probability import estimate_opponent_probability
from .belief import BeliefTracker, reconstruct_beliefs
from .agents import Policy
from .policies import (
    DecisionChain,
    UnknownPolicyError,
    available_policies,
    make_policy,
    policy_fingerprint,
    register_policy,
)
from .tournament import (
    FeedIntegrityError,
    MoveFeed,
    TournamentConfig,
    run_batch,
    run_batch_fair,
    run_feed_game,
    run_game,
)
