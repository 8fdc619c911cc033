#!/usr/bin/env python3
"""
Quizguard — Suspicion Recompute CLI

Management script for the suspicion scoring engine.  Provides three
subcommands:

  all      — Recompute every completed session and report the counts.
  session  — Recompute one session and print its verdict.
  score    — Score a JSON file offline (no database needed).

Usage examples
--------------
  # Rescore every completed session, 8 at a time
  python scripts/recompute_suspicion.py all --concurrency 8

  # Rescore one session
  python scripts/recompute_suspicion.py session 3f0c8d8e-...

  # Offline scoring of an exported log: {"answers": [...], "questions": [...]}
  python scripts/recompute_suspicion.py score attempt.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path

# Ensure the project root is importable
sys.path.insert(0, ".")

from quizguard.schemas.suspicion import ScoreRequest
from quizguard.services.suspicion_service import SuspicionService


# ──────────────────────────────────────────────────────────────────────────────
# Subcommand: all
# ──────────────────────────────────────────────────────────────────────────────

async def cmd_all(args: argparse.Namespace) -> int:
    """Recompute all completed sessions."""
    from quizguard.services.recompute_service import SuspicionRecomputeService

    service = SuspicionRecomputeService(concurrency=args.concurrency)
    report = await service.recompute_all_completed_report()

    print(f"\n{'=' * 60}")
    print(f"  Suspicion Recompute")
    print(f"{'=' * 60}")
    print(f"  Processed:         {report.processed}")
    print(f"  Failed:            {report.failed}")
    for session_id in report.failed_session_ids:
        print(f"    - {session_id}")
    print()
    return 0 if report.failed == 0 else 1


# ──────────────────────────────────────────────────────────────────────────────
# Subcommand: session
# ──────────────────────────────────────────────────────────────────────────────

async def cmd_session(args: argparse.Namespace) -> int:
    """Recompute a single session and print its verdict."""
    from quizguard.services.recompute_service import SuspicionRecomputeService
    from quizguard.services.session_store import SessionNotFoundError

    service = SuspicionRecomputeService()
    try:
        result = await service.recompute_session(args.session_id)
    except SessionNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(result.to_wire(), indent=2))
    return 0


# ──────────────────────────────────────────────────────────────────────────────
# Subcommand: score
# ──────────────────────────────────────────────────────────────────────────────

def cmd_score(args: argparse.Namespace) -> int:
    """Score an exported answer log without a database."""
    payload = ScoreRequest.model_validate_json(Path(args.path).read_text(encoding="utf-8"))
    result = SuspicionService().score_payload(payload.answers, payload.questions)
    print(json.dumps(result.to_wire(), indent=2))
    return 0


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Quizguard suspicion scoring management",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_all = subparsers.add_parser("all", help="Recompute every completed session")
    p_all.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Sessions scored in parallel (default: SUSPICION_BATCH_CONCURRENCY)",
    )

    p_session = subparsers.add_parser("session", help="Recompute one session")
    p_session.add_argument("session_id", type=uuid.UUID, help="Quiz session UUID")

    p_score = subparsers.add_parser("score", help="Score a JSON file offline")
    p_score.add_argument("path", help="File holding {answers, questions}")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "all":
        return asyncio.run(cmd_all(args))
    if args.command == "session":
        return asyncio.run(cmd_session(args))
    return cmd_score(args)


if __name__ == "__main__":
    sys.exit(main())
