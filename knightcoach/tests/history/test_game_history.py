# ==============================================================================
# test_game_history.py  –  History merge behaviour
#   Uses the in-memory store; one file-store test checks the backup trail.
# ==============================================================================

import dataclasses

import pytest

from knightcoach.history.game_history import (
    append_and_report,
    append_and_save,
    merge_batches,
    merge_batches_by_id,
    prefer_more_complete,
)
from knightcoach.history.history_store import InMemoryHistoryStore, JsonFileHistoryStore
from knightcoach.models import ChessGame, GameBatch, GameResult, PlayerColor


def _game(game_id="g1", **overrides):
    fields = dict(
        id=game_id,
        rated=True,
        time_control="10+5",
        speed="rapid",
        color=PlayerColor.WHITE,
        result=GameResult.WIN,
        opponent="Bob",
        pgn=f'[Event "Rated Rapid game"]\n[Site "https://lichess.org/{game_id}"]\n\n1. e4 1-0',
    )
    fields.update(overrides)
    return ChessGame(**fields)


def _batch(*games, player="Alice", site="lichess.org"):
    return GameBatch(player=player, site=site, games=list(games))


# ------------------------------------------------------------------------------
# merge_batches (full value equality)
# ------------------------------------------------------------------------------


def test_merge_drops_exact_duplicates_and_keeps_order():
    existing = _batch(_game("g1"), _game("g2"))
    new = _batch(_game("g3"), _game("g1"))

    merged = merge_batches(existing, new)

    assert [g.id for g in merged.games] == ["g1", "g2", "g3"]


def test_merge_takes_player_and_site_from_new_batch():
    merged = merge_batches(_batch(player="old", site="a"), _batch(player="new", site="b"))
    assert (merged.player, merged.site) == ("new", "b")


def test_merge_same_id_with_new_rating_keeps_both_entries():
    """Value-equality merge is not idempotent under metadata revisions."""
    existing = _batch(_game("g1"))
    new = _batch(_game("g1", player_rating=1500))

    merged = merge_batches(existing, new)

    assert len(merged.games) == 2
    assert [g.id for g in merged.games] == ["g1", "g1"]
    assert [g.player_rating for g in merged.games] == [None, 1500]


# ------------------------------------------------------------------------------
# merge_batches_by_id
# ------------------------------------------------------------------------------


def test_merge_by_id_keeps_more_complete_record():
    existing = _batch(_game("g1"), _game("g2"))
    new = _batch(_game("g1", player_rating=1500))

    merged = merge_batches_by_id(existing, new)

    assert [g.id for g in merged.games] == ["g1", "g2"]
    assert merged.games[0].player_rating == 1500


def test_merge_by_id_does_not_downgrade():
    rich = _game("g1", player_rating=1500, opening="C50")
    merged = merge_batches_by_id(_batch(rich), _batch(_game("g1")))

    assert merged.games == (rich,)


def test_merge_by_id_custom_reducer():
    calls = []

    def keep_old(old, new):
        calls.append((old.id, new.id))
        return old

    merged = merge_batches_by_id(
        _batch(_game("g1"), _game("g2")),
        _batch(_game("g2", opening="B20"), _game("g3")),
        reducer=keep_old,
    )

    assert calls == [("g2", "g2")]
    assert [g.opening for g in merged.games] == [None, None, None]


def test_prefer_more_complete_start_time_wins():
    timed = _game(started_at="2025-11-16T06:07:38Z")
    richer = _game(player_rating=1500, opponent_rating=1400, opening="C50")

    assert prefer_more_complete(timed, richer) is timed
    assert prefer_more_complete(richer, timed) is timed


def test_prefer_more_complete_tie_goes_to_new():
    old = _game(player_rating=1500)
    new = _game(opponent_rating=1400)
    assert prefer_more_complete(old, new) is new


# ------------------------------------------------------------------------------
# append_and_save
# ------------------------------------------------------------------------------


def test_first_run_stores_batch_verbatim():
    store = InMemoryHistoryStore()
    batch = _batch(_game("g1"), _game("g1"))

    merged = append_and_save(batch, store)

    assert merged is batch
    assert store.read() == batch
    assert store.backups == []


def test_second_run_merges_and_backs_up():
    store = InMemoryHistoryStore(_batch(_game("g1"), player="alice"))

    merged = append_and_save(_batch(_game("g1"), _game("g2")), store)

    assert [g.id for g in merged.games] == ["g1", "g2"]
    assert merged.player == "Alice"
    assert store.read() == merged
    assert len(store.backups) == 1
    assert [g["id"] for g in store.backups[0][1]["games"]] == ["g1"]


def test_rerun_with_identical_batch_is_stable():
    store = InMemoryHistoryStore()
    batch = _batch(_game("g1"), _game("g2"))

    append_and_save(batch, store)
    merged = append_and_save(batch, store)

    assert merged.games == batch.games


def test_append_and_save_id_mode():
    store = InMemoryHistoryStore(_batch(_game("g1")))

    merged = append_and_save(_batch(_game("g1", player_rating=1500)), store, dedupe="id")

    assert len(merged.games) == 1
    assert merged.games[0].player_rating == 1500


def test_append_and_save_rejects_unknown_mode():
    with pytest.raises(ValueError):
        append_and_save(_batch(), InMemoryHistoryStore(), dedupe="fuzzy")


def test_append_and_save_file_store_leaves_backup(tmp_path):
    store = JsonFileHistoryStore(tmp_path)
    append_and_save(_batch(_game("g1")), store)
    append_and_save(_batch(_game("g2")), store)

    backups = [p for p in tmp_path.iterdir() if p != store.path]
    assert len(backups) == 1
    assert backups[0].name.endswith("-lichess-games-history.json")
    assert [g.id for g in store.read().games] == ["g1", "g2"]


def test_back_to_back_saves_keep_every_backup(tmp_path):
    store = JsonFileHistoryStore(tmp_path)
    for game_id in ("g1", "g2", "g3", "g4"):
        append_and_save(_batch(_game(game_id)), store)

    backups = sorted(p.name for p in tmp_path.iterdir() if p != store.path)
    assert len(backups) == 3
    assert all(name.endswith("-lichess-games-history.json") for name in backups)
    assert len(store.read().games) == 4


def test_stored_games_are_not_aliased():
    store = InMemoryHistoryStore()
    game = _game("g1")
    append_and_save(_batch(game), store)

    stored = store.read().games[0]
    assert stored == game
    assert stored is not game
    assert dataclasses.asdict(stored) == dataclasses.asdict(game)


# ------------------------------------------------------------------------------
# append_and_report
# ------------------------------------------------------------------------------


class _CountingStore(InMemoryHistoryStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.reads = 0

    def read(self):
        self.reads += 1
        return super().read()


def test_append_and_report_counts_new_games_with_one_read():
    store = _CountingStore(_batch(_game("g1"), _game("g2")))

    update = append_and_report(_batch(_game("g2"), _game("g3")), store)

    assert store.reads == 1
    assert update.previous_size == 2
    assert update.added == 1
    assert [g.id for g in update.history.games] == ["g1", "g2", "g3"]


def test_append_and_report_first_run():
    update = append_and_report(_batch(_game("g1")), InMemoryHistoryStore())

    assert update.previous_size == 0
    assert update.added == 1
