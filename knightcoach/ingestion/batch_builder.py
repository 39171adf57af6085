# ==============================================================================
# batch_builder.py  –  Raw PGN export → GameBatch
# ------------------------------------------------------------------------------
# Execution flow:
#   1. Split the export into game blocks (`split_pgn_games`)
#   2. Read each block's tags (`parse_pgn_headers`)
#   3. Normalise tags into a ChessGame (see normalize.py)
#   4. Collect games in input order
#
# No block is ever dropped: a game with nothing resolvable still yields a
# record with unknown / absent fields.
# ==============================================================================

from __future__ import annotations

from typing import List, Mapping

from knightcoach.ingestion.normalize import (
    build_started_at,
    extract_game_id,
    extract_ratings,
    infer_speed,
    is_rated,
    normalize_time_control,
    resolve_color,
    resolve_opening,
    resolve_opponent,
    resolve_result,
)
from knightcoach.models import DEFAULT_SITE, UNKNOWN, ChessGame, GameBatch
from knightcoach.utils.logging_utils import setup_logger
from knightcoach.utils.pgn_parser import (
    extract_moves_section,
    parse_pgn_headers,
    split_pgn_games,
)

LOGGER = setup_logger("batch_builder")


def build_game(
    headers: Mapping[str, str],
    game_pgn: str,
    player: str,
    site: str,
    position: int,
    strict_color: bool = False,
) -> ChessGame:
    """Normalise one game's tags into a ChessGame (`position` is 1-based)."""
    color = resolve_color(headers, player, strict=strict_color)
    player_rating, opponent_rating = extract_ratings(headers, color)
    event = headers.get("Event")
    raw_time_control = headers.get("TimeControl")

    return ChessGame(
        id=extract_game_id(headers, site, position),
        rated=is_rated(event),
        time_control=normalize_time_control(raw_time_control) or UNKNOWN,
        speed=infer_speed(event, raw_time_control) or UNKNOWN,
        color=color,
        result=resolve_result(headers.get("Result"), color),
        opponent=resolve_opponent(headers, color),
        player_rating=player_rating,
        opponent_rating=opponent_rating,
        opening=resolve_opening(headers),
        pgn=game_pgn,
        started_at=build_started_at(headers.get("UTCDate"), headers.get("UTCTime")),
    )


def build_game_batch(
    player: str,
    raw_pgn: str,
    site: str = DEFAULT_SITE,
    strict_color: bool = False,
) -> GameBatch:
    """
    Parse a multi-game PGN export into a GameBatch for `player`.

    Parameters
    ----------
    player : str
        Tracked username; decides colour and therefore result perspective.
    raw_pgn : str
        Concatenated PGN text as returned by the game server.
    site : str
        Source label, also used for fallback ids ("lichess.org:3").
    strict_color : bool
        Report UNKNOWN colour instead of WHITE when `player` is on neither side.
    """
    games: List[ChessGame] = []

    for position, game_pgn in enumerate(split_pgn_games(raw_pgn), 1):
        headers = parse_pgn_headers(game_pgn)
        if not headers:
            LOGGER.warning("Game %d has no readable tags – fields left unknown", position)
        if not extract_moves_section(game_pgn):
            LOGGER.debug("Game %d has no move text", position)

        game = build_game(headers, game_pgn, player, site, position, strict_color)
        if player.strip().casefold() not in {
            (headers.get("White") or "").strip().casefold(),
            (headers.get("Black") or "").strip().casefold(),
        }:
            LOGGER.warning(
                "Player '%s' not found in game %s – colour reported as %s",
                player,
                game.id,
                game.color.value,
            )
        games.append(game)

    LOGGER.info("Parsed %d game(s) for %s from %s", len(games), player, site)
    return GameBatch(player=player, site=site, games=games)
