"""
Command-line interface for Go Fish tournaments and the control protocol.

Usage examples (after ``pip install -e .``):

    gofish tournament --games 200 --policy-a scout --policy-b random --seed 7 \\
        --output results/scout_vs_random.json
    gofish tournament --policy-b analytical --feed moves.txt --seed 3
    gofish play --policy-a greedy --policy-b denial --seed 1
    gofish serve
"""
from __future__ import annotations

import argparse
import sys
from typing import Optional

from .engine import DEFAULT_STARTING_HAND, TIE
from .persistence import write_tournament_artifact
from .policies import available_policies, get_policy_spec
from .protocol import serve
from .tournament import (
    MAX_PLIES,
    FairStats,
    FeedIntegrityError,
    GameRecord,
    MoveFeed,
    TournamentConfig,
    derive_policy_seed,
    run_feed_game,
    run_game,
    run_tournament,
)


def _describe_record(record: GameRecord) -> str:
    state = record.final_state
    if not record.finished:
        outcome = "unfinished"
    elif state.winner == TIE:
        outcome = "tie"
    else:
        outcome = f"winner={state.winner}"
    return f"seed={record.seed} plies={record.plies} books={record.books[0]}-{record.books[1]} {outcome}"


def _add_tournament_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "tournament",
        help="Run a seeded batch between two registered policies.",
    )
    parser.add_argument(
        "--games",
        type=int,
        default=1000,
        help="Number of games to play.",
    )
    parser.add_argument(
        "--policy-a",
        type=str,
        default="analytical",
        help="Registered name of policy A.",
    )
    parser.add_argument(
        "--policy-b",
        type=str,
        default="random",
        help="Registered name of policy B (the opponent in feed mode).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Base seed; game i uses seed + i.",
    )
    parser.add_argument(
        "--fair",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Swap seats for half of the games and attribute wins to policies.",
    )
    parser.add_argument(
        "--starting-hand",
        type=int,
        default=DEFAULT_STARTING_HAND,
        help="Cards dealt to each seat.",
    )
    parser.add_argument(
        "--max-plies",
        type=int,
        default=MAX_PLIES,
        help="Ply ceiling after which a game counts as unfinished.",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Optional path of a JSON result artifact.",
    )
    parser.add_argument(
        "--feed",
        type=str,
        default=None,
        help="Play one game with one seat driven by this move feed file instead of a batch.",
    )
    parser.add_argument(
        "--feed-seat",
        type=int,
        choices=(0, 1),
        default=1,
        help="Seat driven by the feed.",
    )
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Abort on an exhausted, malformed, illegal or unconsumed feed.",
    )
    parser.set_defaults(func=_cmd_tournament)


def _cmd_tournament(args: argparse.Namespace) -> None:
    if args.feed:
        _cmd_feed(args)
        return

    cfg = TournamentConfig(
        games=args.games,
        base_seed=args.seed,
        fair=args.fair,
        starting_hand_size=args.starting_hand,
        max_plies=args.max_plies,
    )
    print(
        f"Running {cfg.games} {'fair ' if cfg.fair else ''}games: "
        f"{args.policy_a} vs {args.policy_b} (base seed {cfg.base_seed})",
        flush=True,
    )
    stats = run_tournament(args.policy_a, args.policy_b, cfg)

    if isinstance(stats, FairStats):
        print(
            f"{stats.policy_a}: {stats.policy_a_wins} wins ({stats.policy_a_win_rate:.2f}%)  "
            f"{stats.policy_b}: {stats.policy_b_wins} wins ({stats.policy_b_win_rate:.2f}%)  "
            f"ties: {stats.ties} ({stats.tie_rate:.2f}%)"
        )
    else:
        print(f"{stats.policy_a} (seat 0): {stats.p1} wins  {stats.policy_b} (seat 1): {stats.p2} wins  ties: {stats.tie}")
    print(f"avg turns={stats.avg_turns:.2f} unfinished={stats.unfinished}")
    if stats.fallbacks_a or stats.fallbacks_b:
        print(f"fallbacks: {stats.policy_a}={stats.fallbacks_a} {stats.policy_b}={stats.fallbacks_b}")

    if args.output:
        out = write_tournament_artifact(args.output, stats, cfg)
        print(f"Saved results to {out.resolve()}")


def _cmd_feed(args: argparse.Namespace) -> None:
    feed = MoveFeed.from_file(args.feed)
    spec = get_policy_spec(args.policy_b)
    print(f"Feed game: {len(feed.lines)} moves in seat {args.feed_seat} vs {spec.name} (seed {args.seed})", flush=True)
    record = run_feed_game(
        feed,
        spec.factory,
        seed=args.seed,
        feed_seat=args.feed_seat,
        strict=args.strict,
        starting_hand_size=args.starting_hand,
        max_plies=args.max_plies,
        opponent_name=spec.name,
    )
    print(_describe_record(record))
    feed_fallbacks = record.fallbacks[args.feed_seat]
    if feed_fallbacks:
        print(f"feed fallbacks: {feed_fallbacks}")


def _add_play_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "play",
        help="Play one seeded game between two policies and print its log.",
    )
    parser.add_argument("--policy-a", type=str, default="analytical", help="Policy in seat 0.")
    parser.add_argument("--policy-b", type=str, default="random", help="Policy in seat 1.")
    parser.add_argument("--seed", type=int, default=1, help="Game seed.")
    parser.add_argument(
        "--starting-hand",
        type=int,
        default=DEFAULT_STARTING_HAND,
        help="Cards dealt to each seat.",
    )
    parser.set_defaults(func=_cmd_play)


def _cmd_play(args: argparse.Namespace) -> None:
    spec_a = get_policy_spec(args.policy_a)
    spec_b = get_policy_spec(args.policy_b)
    names = (f"{spec_a.name} (A)", f"{spec_b.name} (B)")
    record = run_game(
        spec_a.factory(derive_policy_seed(args.seed, spec_a.name)),
        spec_b.factory(derive_policy_seed(args.seed, spec_b.name)),
        seed=args.seed,
        starting_hand_size=args.starting_hand,
        names=names,
    )
    for line in record.final_state.log:
        print(line)
    print(_describe_record(record))


def _add_serve_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "serve",
        help="Speak the line-oriented JSON control protocol on stdin/stdout.",
    )
    parser.set_defaults(func=_cmd_serve)


def _cmd_serve(args: argparse.Namespace) -> None:
    serve(sys.stdin, sys.stdout)


def _add_policies_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("policies", help="List registered policies.")
    parser.set_defaults(func=_cmd_policies)


def _cmd_policies(args: argparse.Namespace) -> None:
    for name in available_policies():
        print(f"{name:<12} {get_policy_spec(name).description}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gofish", description="Go Fish engine, policies and tournament CLI.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_tournament_parser(subparsers)
    _add_play_parser(subparsers)
    _add_serve_parser(subparsers)
    _add_policies_parser(subparsers)
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    try:
        args.func(args)
    except (FeedIntegrityError, KeyError, ValueError, OSError) as exc:
        msg = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
        print(f"error: {msg}", file=sys.stderr)
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
