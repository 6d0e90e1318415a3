"""
Line-oriented JSON control protocol.

One JSON object per input line, one JSON response per output line. The first
line written is a greeting::

    {"ok": true, "ready": true, "protocol": "gofish-cli.v1"}

Commands (``{"cmd": ...}``):

    init        {"options": {"seed", "startingHandSize", "names", "observer"}}
    state       public summary of the current game
    legal       legal actions for the seat to move
    step        {"action": {"type": "ask_rank", "rank": R}, "options": {"refillHand"}}
    batch       {"games", "policyA", "policyB", "seed"}
    batch_fair  same fields, seat-swapped
    hint        {"policy", "seed"}: ask a registered policy for the mover's move
    events      {"since"}: structured events from that index on, with the
                event schema version and the next cursor

Protocol failures carry ``error`` (``invalid-json``, ``bad-request``,
``no-game``, ``unknown-cmd``, ``unknown-policy``); rejected moves carry the
engine's ``reason``. A failure never ends the session.
"""
from __future__ import annotations

import json
import math
import sys
from typing import Any, Callable, Dict, Optional, TextIO

from .engine import (
    DEFAULT_REFILL_HAND,
    DEFAULT_STARTING_HAND,
    PHASE_GAMEOVER,
    REASON_NOT_PLAY,
    GameState,
    apply_action,
    finalize_winner,
    init_game,
    legal_moves,
    summarize,
)
from .events import EVENT_SCHEMA_VERSION, event_to_dict
from .policies import DecisionChain, UnknownPolicyError, get_policy_spec, make_policy
from .tournament import run_batch, run_batch_fair

PROTOCOL_NAME = "gofish-cli.v1"
GREETING: Dict[str, Any] = {"ok": True, "ready": True, "protocol": PROTOCOL_NAME}

ERR_INVALID_JSON = "invalid-json"
ERR_BAD_REQUEST = "bad-request"
ERR_NO_GAME = "no-game"
ERR_UNKNOWN_CMD = "unknown-cmd"
ERR_UNKNOWN_POLICY = "unknown-policy"

DEFAULT_BATCH_GAMES = 1000
DEFAULT_POLICY_A = "analytical"
DEFAULT_POLICY_B = "random"


class BadRequest(ValueError):
    pass


def _fail(error: str, detail: Optional[str] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"ok": False, "error": error}
    if detail:
        out["detail"] = detail
    return out


def _int_field(msg: Dict[str, Any], key: str, default: Optional[int], minimum: Optional[int] = None) -> Optional[int]:
    value = msg.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise BadRequest(f"{key} must be an integer")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise BadRequest(f"{key} must be an integer")
    value = int(value)
    if minimum is not None and value < minimum:
        raise BadRequest(f"{key} must be >= {minimum}")
    return value


class ProtocolSession:
    """Holds the current game between commands."""

    def __init__(self) -> None:
        self.state: Optional[GameState] = None
        self.observer: Optional[int] = None
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "init": self._cmd_init,
            "state": self._cmd_state,
            "legal": self._cmd_legal,
            "step": self._cmd_step,
            "batch": self._cmd_batch,
            "batch_fair": self._cmd_batch_fair,
            "hint": self._cmd_hint,
            "events": self._cmd_events,
        }

    def handle_line(self, line: str) -> Dict[str, Any]:
        try:
            msg = json.loads(line)
        except json.JSONDecodeError:
            return _fail(ERR_INVALID_JSON)
        return self.handle(msg)

    def handle(self, msg: Any) -> Dict[str, Any]:
        if not isinstance(msg, dict):
            return _fail(ERR_BAD_REQUEST, "message must be a JSON object")
        cmd = msg.get("cmd")
        handler = self._handlers.get(cmd) if isinstance(cmd, str) else None
        if handler is None:
            return _fail(ERR_UNKNOWN_CMD)
        try:
            return handler(msg)
        except BadRequest as exc:
            return _fail(ERR_BAD_REQUEST, str(exc))
        except UnknownPolicyError as exc:
            return _fail(ERR_UNKNOWN_POLICY, exc.args[0] if exc.args else None)

    def _summary(self) -> Dict[str, Any]:
        assert self.state is not None
        return summarize(self.state, observer=self.observer)

    # ---- commands ----

    def _cmd_init(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        options = msg.get("options") or {}
        if not isinstance(options, dict):
            raise BadRequest("options must be an object")
        seed = _int_field(options, "seed", None)
        hand = _int_field(options, "startingHandSize", DEFAULT_STARTING_HAND)
        observer = _int_field(options, "observer", None)
        if observer is not None and observer not in (0, 1):
            raise BadRequest("observer must be 0 or 1")
        names = options.get("names")
        if names is not None and (
            not isinstance(names, list) or len(names) != 2 or not all(isinstance(n, str) for n in names)
        ):
            raise BadRequest("names must be a list of two strings")
        try:
            state = init_game(seed=seed, starting_hand_size=hand, names=names)
        except (TypeError, ValueError) as exc:
            raise BadRequest(str(exc)) from None
        self.state = state
        self.observer = observer
        return {"ok": True, "state": self._summary()}

    def _cmd_state(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        if self.state is None:
            return _fail(ERR_NO_GAME)
        return {"ok": True, "state": self._summary()}

    def _cmd_legal(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        if self.state is None:
            return _fail(ERR_NO_GAME)
        return {"ok": True, "legal": [a.to_dict() for a in legal_moves(self.state)]}

    def _cmd_events(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        if self.state is None:
            return _fail(ERR_NO_GAME)
        since = _int_field(msg, "since", 0, minimum=0)
        events = self.state.events[since:]
        return {
            "ok": True,
            "schema": EVENT_SCHEMA_VERSION,
            "events": [event_to_dict(e) for e in events],
            "cursor": len(self.state.events),
        }

    def _cmd_step(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        if self.state is None:
            return _fail(ERR_NO_GAME)
        options = msg.get("options") or {}
        if not isinstance(options, dict):
            raise BadRequest("options must be an object")
        refill = _int_field(options, "refillHand", DEFAULT_REFILL_HAND, minimum=0)
        res = apply_action(self.state, msg.get("action"), refill_hand=refill)
        self.state = res.state
        if self.state.phase == PHASE_GAMEOVER and self.state.winner is None:
            finalize_winner(self.state)
        return {"ok": res.ok, "event": res.event, "reason": res.reason, "state": self._summary()}

    def _batch_args(self, msg: Dict[str, Any]):
        games = _int_field(msg, "games", DEFAULT_BATCH_GAMES, minimum=0)
        seed = _int_field(msg, "seed", 0)
        name_a = str(msg.get("policyA") or DEFAULT_POLICY_A)
        name_b = str(msg.get("policyB") or DEFAULT_POLICY_B)
        return get_policy_spec(name_a), get_policy_spec(name_b), games, seed

    def _cmd_batch(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        spec_a, spec_b, games, seed = self._batch_args(msg)
        stats = run_batch(spec_a.factory, spec_b.factory, games, base_seed=seed, name_a=spec_a.name, name_b=spec_b.name)
        return {"ok": True, "stats": stats.to_dict()}

    def _cmd_batch_fair(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        spec_a, spec_b, games, seed = self._batch_args(msg)
        stats = run_batch_fair(spec_a.factory, spec_b.factory, games, base_seed=seed, name_a=spec_a.name, name_b=spec_b.name)
        return {"ok": True, "stats": stats.to_dict()}

    def _cmd_hint(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        if self.state is None:
            return _fail(ERR_NO_GAME)
        legal = legal_moves(self.state)
        if not legal:
            return {"ok": False, "reason": REASON_NOT_PLAY, "state": self._summary()}
        name = str(msg.get("policy") or DEFAULT_POLICY_A)
        policy = make_policy(name, _int_field(msg, "seed", None))
        seat = self.state.current_player
        move, trigger = DecisionChain([policy]).decide(self.state.copy(), legal, seat)
        return {"ok": True, "policy": name, "seat": seat, "action": move.to_dict(), "fallback": trigger}


def serve(stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout, session: ProtocolSession | None = None) -> None:
    """Greet, then answer one JSON line per input line until EOF."""
    session = session or ProtocolSession()

    def out(payload: Dict[str, Any]) -> None:
        stdout.write(json.dumps(payload) + "\n")
        stdout.flush()

    out(GREETING)
    for line in stdin:
        if not line.strip():
            continue
        out(session.handle_line(line))


__all__ = [
    "PROTOCOL_NAME",
    "GREETING",
    "ERR_INVALID_JSON",
    "ERR_BAD_REQUEST",
    "ERR_NO_GAME",
    "ERR_UNKNOWN_CMD",
    "ERR_UNKNOWN_POLICY",
    "ProtocolSession",
    "serve",
]
