# ==============================================================================
# models.py  –  Normalised game records
#
# `ChessGame` is the compact, stable per-game record that is handed to the
# plan service and accumulated in the history file. `GameBatch` groups the
# games of one player from one site.
#
# JSON field names are camelCase and must stay stable: the history file and
# the downstream consumer both depend on them.
# ==============================================================================

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

UNKNOWN = "unknown"
DEFAULT_SITE = "lichess.org"


class PlayerColor(str, Enum):
    """Side played by the tracked player."""

    WHITE = "WHITE"
    BLACK = "BLACK"
    UNKNOWN = "UNKNOWN"  # only produced in strict colour mode


class GameResult(str, Enum):
    """Outcome from the tracked player's perspective."""

    WIN = "WIN"
    LOSS = "LOSS"
    DRAW = "DRAW"
    UNKNOWN = "UNKNOWN"


# ------------------------------------------------------------------------------
# Records
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class ChessGame:
    """
    One normalised game.

    Equality is full value equality over every field, which is what the
    default history merge relies on. `id` is the identity key used by the
    id-keyed merge.
    """

    id: str
    rated: bool
    time_control: str
    speed: str
    color: PlayerColor
    result: GameResult
    opponent: str
    pgn: str
    player_rating: Optional[int] = None
    opponent_rating: Optional[int] = None
    opening: Optional[str] = None
    started_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "rated": self.rated,
            "timeControl": self.time_control,
            "speed": self.speed,
            "color": self.color.value,
            "result": self.result.value,
            "opponent": self.opponent,
            "playerRating": self.player_rating,
            "opponentRating": self.opponent_rating,
            "opening": self.opening,
            "pgn": self.pgn,
            "startedAt": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChessGame":
        """Build a game from its JSON form. Unknown keys are ignored."""
        return cls(
            id=str(data["id"]),
            rated=bool(data["rated"]),
            time_control=data["timeControl"],
            speed=data["speed"],
            color=PlayerColor(data["color"]),
            result=GameResult(data["result"]),
            opponent=data["opponent"],
            pgn=data["pgn"],
            player_rating=data.get("playerRating"),
            opponent_rating=data.get("opponentRating"),
            opening=data.get("opening"),
            started_at=data.get("startedAt"),
        )

    def resolved_fields(self) -> int:
        """Count the fields that carry real information (not absent / unknown)."""
        values = (
            self.time_control != UNKNOWN,
            self.speed != UNKNOWN,
            self.color is not PlayerColor.UNKNOWN,
            self.result is not GameResult.UNKNOWN,
            self.opponent != UNKNOWN,
            self.player_rating is not None,
            self.opponent_rating is not None,
            self.opening is not None,
            self.started_at is not None,
        )
        return sum(values)


@dataclass(frozen=True)
class GameBatch:
    """Games of one player from one site, most recent first by convention."""

    player: str
    games: Tuple[ChessGame, ...] = field(default_factory=tuple)
    site: str = DEFAULT_SITE

    def __post_init__(self) -> None:
        # Accept any iterable but always own an immutable copy.
        object.__setattr__(self, "games", tuple(self.games))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player,
            "site": self.site,
            "games": [g.to_dict() for g in self.games],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameBatch":
        return cls(
            player=data["player"],
            site=data.get("site", DEFAULT_SITE),
            games=tuple(ChessGame.from_dict(g) for g in data.get("games", [])),
        )

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "GameBatch":
        return cls.from_dict(json.loads(text))
