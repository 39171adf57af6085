#!/usr/bin/env python3
# ==============================================================================
#  KnightCoach - main.py
#  Purpose: one-shot runner (fetch → normalise → merge history → export)
# ==============================================================================

from __future__ import annotations

import argparse
import dataclasses
from typing import List, Optional

from knightcoach.history.game_history import DEDUPE_MODES
from knightcoach.pipeline.run_ingestion import run_ingestion
from knightcoach.utils.config_utils import load_settings
from knightcoach.utils.logging_utils import setup_logger
from knightcoach.utils.metrics import start_metrics_server

logger = setup_logger("main")


# ------------------------------------------------------------------------------
# Stage Wrapper
# ------------------------------------------------------------------------------


def _stage(title, fn):
    """
    Run a pipeline stage with start → finish logging and full stacktrace on error.
    """
    logger.info("%s – started", title)
    try:
        result = fn()
        logger.info("%s – finished", title)
        return result
    except Exception:
        logger.exception("%s – failed", title)
        raise


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest Lichess games into the history")
    parser.add_argument("--user", help="Lichess username (overrides LICHESS_USER)")
    parser.add_argument("--max-games", type=int, help="Number of games to fetch")
    parser.add_argument("--dedupe", choices=DEDUPE_MODES, help="History dedup mode")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    settings = load_settings(user=args.user)

    overrides = {}
    if args.max_games is not None:
        overrides["max_games"] = args.max_games
    if args.dedupe:
        overrides["dedupe_mode"] = args.dedupe
    settings = dataclasses.replace(settings, **overrides)

    if settings.metrics_port:
        start_metrics_server(settings.metrics_port)

    _stage("Game Ingestion", lambda: run_ingestion(settings))


if __name__ == "__main__":
    main()
