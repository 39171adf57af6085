# ==============================================================================
# normalize.py  –  Raw PGN tag values → typed ChessGame fields
# ------------------------------------------------------------------------------
# Every function here is pure and total: missing or malformed tags degrade
# to None / "unknown" / a default, nothing raises.
#
# Perspective: colour is resolved first and everything that is "yours" vs.
# "theirs" (result, ratings, opponent) is derived from it.
# ==============================================================================

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Tuple

from knightcoach.models import UNKNOWN, GameResult, PlayerColor

SPEED_CLASSES: Tuple[str, ...] = ("bullet", "blitz", "rapid", "classical")

_UTC_DATE = re.compile(r"^\d{4}\.\d{2}\.\d{2}$")
_UTC_TIME = re.compile(r"^\d{2}:\d{2}:\d{2}")


# ------------------------------------------------------------------------------
# Parsing helpers
# ------------------------------------------------------------------------------


def _parse_int(value: Any) -> Optional[int]:
    """
    Safely cast a value to int, or return None if invalid.

    Handles:
      • Integers (1500)
      • Numeric strings ("2400")
      • Empty strings, nulls, "?" → None
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def _clean(value: Optional[str]) -> Optional[str]:
    """Strip a tag value; blank and "?" placeholders become None."""
    if value is None:
        return None
    value = value.strip()
    return None if not value or value == "?" else value


def _split_time_control(raw: Optional[str]) -> Optional[Tuple[int, Optional[int]]]:
    """Return (base_seconds, increment_seconds) for "600+5" / "600", else None."""
    raw = _clean(raw)
    if raw is None:
        return None
    base, _, increment = raw.partition("+")
    base_seconds = _parse_int(base)
    if base_seconds is None or base_seconds < 0:
        return None
    return base_seconds, _parse_int(increment)


# ------------------------------------------------------------------------------
# Perspective
# ------------------------------------------------------------------------------


def resolve_color(
    headers: Mapping[str, str], player: str, strict: bool = False
) -> PlayerColor:
    """
    Which side the tracked player had (case-insensitive name match).

    A player found on neither side is reported as WHITE, or as UNKNOWN when
    `strict` is set.
    """
    name = player.strip().casefold()
    if not name:
        return PlayerColor.UNKNOWN if strict else PlayerColor.WHITE
    if (headers.get("White") or "").strip().casefold() == name:
        return PlayerColor.WHITE
    if (headers.get("Black") or "").strip().casefold() == name:
        return PlayerColor.BLACK
    return PlayerColor.UNKNOWN if strict else PlayerColor.WHITE


def resolve_result(result_tag: Optional[str], color: PlayerColor) -> GameResult:
    """Map the Result tag to WIN / LOSS / DRAW / UNKNOWN for `color`."""
    if color is PlayerColor.UNKNOWN:
        return GameResult.UNKNOWN

    tag = (result_tag or "").strip()
    if tag == "1-0":
        return GameResult.WIN if color is PlayerColor.WHITE else GameResult.LOSS
    if tag == "0-1":
        return GameResult.WIN if color is PlayerColor.BLACK else GameResult.LOSS
    if tag == "1/2-1/2":
        return GameResult.DRAW
    return GameResult.UNKNOWN


def resolve_opponent(headers: Mapping[str, str], color: PlayerColor) -> str:
    """Username on the other side of the board, or "unknown"."""
    if color is PlayerColor.WHITE:
        tag = "Black"
    elif color is PlayerColor.BLACK:
        tag = "White"
    else:
        return UNKNOWN
    return _clean(headers.get(tag)) or UNKNOWN


def extract_ratings(
    headers: Mapping[str, str], color: PlayerColor
) -> Tuple[Optional[int], Optional[int]]:
    """Return (player_rating, opponent_rating) from WhiteElo / BlackElo."""
    white_elo = _parse_int(headers.get("WhiteElo"))
    black_elo = _parse_int(headers.get("BlackElo"))

    if color is PlayerColor.WHITE:
        return white_elo, black_elo
    if color is PlayerColor.BLACK:
        return black_elo, white_elo
    return None, None


# ------------------------------------------------------------------------------
# Time control & speed
# ------------------------------------------------------------------------------


def normalize_time_control(raw: Optional[str]) -> Optional[str]:
    """
    "600+5" → "10+5", "180" → "3+0".

    Bases that are not whole minutes ("45+0") and non-numeric values ("-")
    pass through unchanged. Absent or blank → None.
    """
    cleaned = (raw or "").strip()
    if not cleaned:
        return None

    parts = _split_time_control(cleaned)
    if parts is None:
        return cleaned

    base_seconds, increment = parts
    if base_seconds % 60 != 0:
        return cleaned
    return f"{base_seconds // 60}+{increment if increment is not None else 0}"


def _speed_from_minutes(minutes: float) -> str:
    if minutes < 3:
        return "bullet"
    if minutes <= 8:
        return "blitz"
    if minutes <= 25:
        return "rapid"
    return "classical"


def infer_speed(event: Optional[str], raw_time_control: Optional[str]) -> Optional[str]:
    """
    Speed class from the Event text, else from the base clock.

    Event keywords are checked in the order bullet, blitz, rapid, classical.
    The clock fallback uses base minutes: <3 bullet, ≤8 blitz, ≤25 rapid,
    else classical. Neither available → None.
    """
    event_lower = (event or "").lower()
    for speed in SPEED_CLASSES:
        if speed in event_lower:
            return speed

    parts = _split_time_control(raw_time_control)
    if parts is None:
        return None
    return _speed_from_minutes(parts[0] / 60)


def is_rated(event: Optional[str]) -> bool:
    """Heuristic: the Event text mentions "rated"."""
    return "rated" in (event or "").lower()


# ------------------------------------------------------------------------------
# Identity, opening, timestamp
# ------------------------------------------------------------------------------


def _last_path_segment(url: Optional[str]) -> Optional[str]:
    url = _clean(url)
    if url is None or "/" not in url:
        return None
    segment = url.rstrip("/").rsplit("/", 1)[-1]
    return segment or None


def extract_game_id(headers: Mapping[str, str], site: str, position: int) -> str:
    """
    Stable id for a game.

    Final path segment of the Link tag, else of the Site tag
    ("https://lichess.org/abc123/" → "abc123"). Without a usable URL the id
    is "<site>:<position>" with a 1-based position in the batch.
    """
    for tag in ("Link", "Site"):
        game_id = _last_path_segment(headers.get(tag))
        if game_id:
            return game_id
    return f"{site}:{position}"


def resolve_opening(headers: Mapping[str, str]) -> Optional[str]:
    """ECO code if present, else the Opening name."""
    return _clean(headers.get("ECO")) or _clean(headers.get("Opening"))


def build_started_at(utc_date: Optional[str], utc_time: Optional[str]) -> Optional[str]:
    """
    ISO-8601 UTC start time from UTCDate ("2025.11.16") and UTCTime ("06:07:38").

    Both tags are required; the plain Date tag is never used.
    """
    date = (utc_date or "").strip()
    time = (utc_time or "").strip()
    if not _UTC_DATE.match(date) or len(time) < 8 or not _UTC_TIME.match(time):
        return None
    return f"{date.replace('.', '-')}T{time[:8]}Z"
