# ==============================================================================
# game_history.py  –  Accumulate fetched batches into the persistent history
# ------------------------------------------------------------------------------
# Responsibilities:
#   • Merge a freshly built GameBatch into the stored one
#   • Back up the stored document before every overwrite
#   • Return the merged batch (and the previous size) to the caller
#
# Two dedup modes:
#   value – a game is a duplicate only if every field matches. The same game
#           fetched again with better metadata (a rating filled in, an
#           opening resolved) is kept twice.
#   id    – games sharing an `id` collapse into one record via a reducer.
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Set

from knightcoach.history.history_store import HistoryStore
from knightcoach.models import ChessGame, GameBatch
from knightcoach.utils.logging_utils import setup_logger

LOGGER = setup_logger("game_history")

GameReducer = Callable[[ChessGame, ChessGame], ChessGame]

DEDUPE_MODES = ("value", "id")


# ------------------------------------------------------------------------------
# Reducers
# ------------------------------------------------------------------------------


def prefer_more_complete(old: ChessGame, new: ChessGame) -> ChessGame:
    """
    Keep the better-described record of two with the same id.

    A known start time wins first, then the number of resolved fields;
    ties go to `new`.
    """
    old_score = (old.started_at is not None, old.resolved_fields())
    new_score = (new.started_at is not None, new.resolved_fields())
    return old if old_score > new_score else new


# ------------------------------------------------------------------------------
# Merging
# ------------------------------------------------------------------------------


def _distinct(games: Iterable[ChessGame]) -> List[ChessGame]:
    seen: Set[ChessGame] = set()
    unique: List[ChessGame] = []
    for game in games:
        if game not in seen:
            seen.add(game)
            unique.append(game)
    return unique


def merge_batches(existing: GameBatch, new: GameBatch) -> GameBatch:
    """
    Union of both batches, deduplicated by full value equality.

    Existing games keep their order and come first; player and site are
    taken from `new`.
    """
    games = _distinct(list(existing.games) + list(new.games))
    return GameBatch(player=new.player, site=new.site, games=games)


def merge_batches_by_id(
    existing: GameBatch,
    new: GameBatch,
    reducer: GameReducer = prefer_more_complete,
) -> GameBatch:
    """
    Union of both batches with one record per game id.

    `reducer(old, new)` is called only when an id is seen again; the result
    stays at the position of the id's first occurrence.
    """
    by_id: Dict[str, ChessGame] = {}
    for game in list(existing.games) + list(new.games):
        current = by_id.get(game.id)
        by_id[game.id] = game if current is None else reducer(current, game)
    return GameBatch(player=new.player, site=new.site, games=list(by_id.values()))


@dataclass(frozen=True)
class HistoryUpdate:
    """Merged history plus the size of the document it replaced."""

    history: GameBatch
    previous_size: int

    @property
    def added(self) -> int:
        return len(self.history.games) - self.previous_size


def append_and_save(
    new_batch: GameBatch,
    store: HistoryStore,
    dedupe: str = "value",
    reducer: GameReducer = prefer_more_complete,
) -> GameBatch:
    """Merge `new_batch` into the stored history, persist it and return it."""
    return append_and_report(new_batch, store, dedupe, reducer).history


def append_and_report(
    new_batch: GameBatch,
    store: HistoryStore,
    dedupe: str = "value",
    reducer: GameReducer = prefer_more_complete,
) -> HistoryUpdate:
    """
    Merge `new_batch` into the stored history and persist it.

    The store is read once; the returned HistoryUpdate carries the merged
    batch and how many games the previous document held (0 when none).

    Parameters
    ----------
    new_batch : GameBatch
        Batch built from the latest fetch.
    store : HistoryStore
        Where the history lives; backed up before being overwritten.
    dedupe : str
        "value" (full equality) or "id" (id-keyed with `reducer`).

    Raises
    ------
    ValueError
        Unknown `dedupe` mode.
    HistoryStoreError
        Reading, backing up or writing the store failed.
    """
    if dedupe not in DEDUPE_MODES:
        raise ValueError(f"Unknown dedupe mode {dedupe!r}; expected one of {DEDUPE_MODES}")

    existing = store.read()
    if existing is None:
        LOGGER.info("No history yet – starting with %d game(s)", len(new_batch.games))
        merged = new_batch
    elif dedupe == "id":
        merged = merge_batches_by_id(existing, new_batch, reducer)
    else:
        merged = merge_batches(existing, new_batch)

    if existing is not None:
        LOGGER.info(
            "History %d + fetched %d → %d game(s) (%s dedupe)",
            len(existing.games),
            len(new_batch.games),
            len(merged.games),
            dedupe,
        )

    store.backup()
    store.write(merged)
    previous_size = len(existing.games) if existing is not None else 0
    return HistoryUpdate(history=merged, previous_size=previous_size)
