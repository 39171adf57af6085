#!/usr/bin/env python3
# ==============================================================================
# run_ingestion.py  –  One ingestion run for the configured player
# ------------------------------------------------------------------------------
# Execution flow:
#   1. Download the player's last MAX_GAMES games as PGN
#   2. Build a GameBatch
#   3. Merge it into the persisted history (backup first)
#   4. Infer the player's current rating
#   5. Write the fresh batch as JSON for the plan service
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from knightcoach.history.game_history import append_and_report
from knightcoach.history.history_store import HistoryStore, JsonFileHistoryStore
from knightcoach.ingestion.batch_builder import build_game_batch
from knightcoach.ingestion.lichess_client import LichessClient
from knightcoach.models import GameBatch
from knightcoach.utils import metrics
from knightcoach.utils.config_utils import Settings, load_settings
from knightcoach.utils.logging_utils import setup_logger

LOGGER = setup_logger("run_ingestion")

DEFAULT_RATING = 800
LATEST_BATCH_FILE = "lichess-games-latest.json"


@dataclass(frozen=True)
class IngestionReport:
    batch_size: int
    history_size: int
    current_rating: int
    latest_path: Path


def infer_current_rating(batch: GameBatch, fallback: Optional[int] = None) -> int:
    """Most recent known player rating in `batch`, else `fallback`, else 800."""
    for game in batch.games:
        if game.player_rating is not None:
            return game.player_rating
    return fallback if fallback is not None else DEFAULT_RATING


def write_batch_json(batch: GameBatch, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(batch.to_json(), encoding="utf-8")
    return path


def run_ingestion(
    settings: Optional[Settings] = None,
    client: Optional[LichessClient] = None,
    store: Optional[HistoryStore] = None,
) -> IngestionReport:
    """Fetch, normalise and accumulate the configured player's games."""
    settings = settings or load_settings()
    client = client or LichessClient(token=settings.lichess_token)
    store = store or JsonFileHistoryStore(settings.output_dir, settings.history_file)

    LOGGER.info(
        "Fetching last %d games for %s user: %s",
        settings.max_games,
        settings.site,
        settings.lichess_user,
    )
    with metrics.labels(metrics.FETCH_DURATION).time():
        raw_pgn = client.fetch_last_games_pgn(settings.lichess_user, settings.max_games)

    batch = build_game_batch(
        settings.lichess_user,
        raw_pgn,
        site=settings.site,
        strict_color=settings.strict_color,
    )
    metrics.labels(metrics.GAMES_PARSED).inc(len(batch.games))

    update = append_and_report(batch, store, dedupe=settings.dedupe_mode)
    history, added = update.history, update.added
    metrics.labels(metrics.GAMES_ADDED).inc(max(added, 0))
    metrics.labels(metrics.HISTORY_SIZE).set(len(history.games))
    LOGGER.info("History now contains %d games (%d new)", len(history.games), added)

    rating = infer_current_rating(batch, settings.current_rating)
    LOGGER.info("Current inferred rating: %d", rating)

    latest_path = write_batch_json(batch, settings.output_dir / LATEST_BATCH_FILE)
    LOGGER.info("Wrote latest batch to %s", latest_path)

    return IngestionReport(
        batch_size=len(batch.games),
        history_size=len(history.games),
        current_rating=rating,
        latest_path=latest_path,
    )


if __name__ == "__main__":
    run_ingestion()
