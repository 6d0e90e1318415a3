"""Tests for the line-oriented JSON control protocol."""
import io
import json

from gofish.deck import RANKS
from gofish.protocol import GREETING, ProtocolSession, serve


def _init(session, seed=1, **options):
    return session.handle({"cmd": "init", "options": {"seed": seed, **options}})


def test_serve_greets_and_answers_each_line():
    stdin = io.StringIO('{"cmd": "state"}\n\nnot json\n{"cmd": "init", "options": {"seed": 1}}\n')
    stdout = io.StringIO()
    serve(stdin, stdout)
    lines = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert lines[0] == {"ok": True, "ready": True, "protocol": "gofish-cli.v1"} == GREETING
    assert lines[1] == {"ok": False, "error": "no-game"}
    assert lines[2] == {"ok": False, "error": "invalid-json"}
    assert lines[3]["ok"] is True
    assert len(lines) == 4


def test_malformed_requests_do_not_end_the_session():
    s = ProtocolSession()
    assert s.handle_line("{") == {"ok": False, "error": "invalid-json"}
    assert s.handle_line("[1, 2]")["error"] == "bad-request"
    assert s.handle({"cmd": "dance"}) == {"ok": False, "error": "unknown-cmd"}
    assert s.handle({"cmd": "legal"})["error"] == "no-game"
    assert s.handle({"cmd": "init", "options": {"seed": "x"}})["error"] == "bad-request"
    assert s.handle({"cmd": "init", "options": {"startingHandSize": 40}})["error"] == "bad-request"
    assert _init(s)["ok"] is True


def test_init_state_and_legal():
    s = ProtocolSession()
    res = _init(s, seed=1, observer=0)
    state = res["state"]
    assert state["seed"] == 1
    assert state["deckCount"] == 38
    assert "handCounts" in state["players"][0]
    legal = s.handle({"cmd": "legal"})["legal"]
    assert legal == state["legalActions"]
    assert s.handle({"cmd": "state"})["state"] == state


def test_step_rejects_illegal_rank_and_applies_legal_one():
    s = ProtocolSession()
    _init(s, seed=1, observer=0)
    held = set(s.handle({"cmd": "state"})["state"]["players"][0]["handCounts"])
    missing = next(r for r in RANKS if r not in held)

    bad = s.handle({"cmd": "step", "action": {"type": "ask_rank", "rank": missing}})
    assert bad["ok"] is False
    assert bad["reason"] == "illegal-rank"
    assert bad["state"]["deckCount"] == 38

    assert s.handle({"cmd": "step", "action": None})["reason"] == "invalid-action"

    legal = s.handle({"cmd": "legal"})["legal"]
    good = s.handle({"cmd": "step", "action": {"askRank": legal[0]["rank"]}})
    assert good["ok"] is True
    assert good["event"] in ("take", "pass", "draw-match", "empty-deck-pass", "gameover")
    assert good["reason"] is None


def test_batch_commands():
    s = ProtocolSession()
    res = s.handle({"cmd": "batch", "games": 3, "policyA": "baseline", "policyB": "random", "seed": 2})
    assert res["ok"] is True
    stats = res["stats"]
    assert stats["p1"] + stats["p2"] + stats["tie"] + stats["unfinished"] == 3

    res = s.handle({"cmd": "batch_fair", "games": 4, "policyA": "first", "policyB": "random"})
    assert res["stats"]["fair"] is True
    assert res["stats"]["policy_a"] == "first"


def test_batch_errors():
    s = ProtocolSession()
    assert s.handle({"cmd": "batch", "games": 2, "policyA": "nobody"})["error"] == "unknown-policy"
    assert s.handle({"cmd": "batch", "games": -1})["error"] == "bad-request"
    assert s.handle({"cmd": "batch_fair", "games": "many"})["error"] == "bad-request"


def test_hint_returns_a_legal_action():
    s = ProtocolSession()
    assert s.handle({"cmd": "hint"})["error"] == "no-game"
    _init(s, seed=4)
    res = s.handle({"cmd": "hint", "policy": "baseline"})
    assert res["ok"] is True
    assert res["action"] in s.handle({"cmd": "legal"})["legal"]
    assert res["fallback"] is None
    assert s.handle({"cmd": "hint", "policy": "nobody"})["error"] == "unknown-policy"


def test_non_string_cmd_and_non_finite_numbers_are_reported():
    s = ProtocolSession()
    assert s.handle_line('{"cmd": ["state"]}') == {"ok": False, "error": "unknown-cmd"}
    assert s.handle_line('{"cmd": {"x": 1}}')["error"] == "unknown-cmd"
    assert s.handle_line('{"cmd": "init", "options": {"seed": NaN}}')["error"] == "bad-request"
    assert s.handle_line('{"cmd": "init", "options": {"seed": Infinity}}')["error"] == "bad-request"
    assert s.handle_line('{"cmd": "batch", "games": -Infinity}')["error"] == "bad-request"
    assert s.handle_line('{"cmd": "init", "options": {"seed": 2.5}}')["error"] == "bad-request"
    assert s.handle_line('{"cmd": "init", "options": {"seed": 3.0}}')["state"]["seed"] == 3


def test_serve_keeps_going_after_a_bad_cmd():
    stdin = io.StringIO('{"cmd": ["x"]}\n{"cmd": "init", "options": {"seed": NaN}}\n{"cmd": "init"}\n')
    stdout = io.StringIO()
    serve(stdin, stdout)
    lines = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert len(lines) == 4
    assert lines[1]["error"] == "unknown-cmd"
    assert lines[2]["error"] == "bad-request"
    assert lines[3]["ok"] is True


def test_init_requires_two_name_strings():
    s = ProtocolSession()
    assert s.handle({"cmd": "init", "options": {"names": "AB"}})["error"] == "bad-request"
    assert s.handle({"cmd": "init", "options": {"names": ["Ann"]}})["error"] == "bad-request"
    assert s.handle({"cmd": "init", "options": {"names": ["Ann", 7]}})["error"] == "bad-request"
    assert s.handle({"cmd": "init", "options": {"names": ["Ann", "Ann"]}})["error"] == "bad-request"
    res = s.handle({"cmd": "init", "options": {"seed": 1, "names": ["Ann", "Bo"]}})
    assert [p["name"] for p in res["state"]["players"]] == ["Ann", "Bo"]


def test_hint_accepts_a_negative_seed_for_scoring_policies():
    s = ProtocolSession()
    _init(s, seed=4)
    res = s.handle({"cmd": "hint", "policy": "greedy", "seed": -1})
    assert res["ok"] is True
    assert res["action"] in s.handle({"cmd": "legal"})["legal"]


def test_events_are_versioned_and_resume_from_a_cursor():
    s = ProtocolSession()
    assert s.handle({"cmd": "events"})["error"] == "no-game"
    _init(s, seed=1)
    first = s.handle({"cmd": "events"})
    assert first["ok"] is True
    assert first["schema"] == 1
    cursor = first["cursor"]
    assert cursor == len(first["events"])

    legal = s.handle({"cmd": "legal"})["legal"]
    s.handle({"cmd": "step", "action": legal[0]})
    later = s.handle({"cmd": "events", "since": cursor})
    assert later["events"][0] == {"type": "ask", "seat": 0, "rank": legal[0]["rank"]}
    assert later["cursor"] == cursor + len(later["events"])
    assert s.handle({"cmd": "events", "since": -1})["error"] == "bad-request"
