# ==============================================================================
# pgn_parser.py  –  Utility for splitting and reading PGN text
#
# Splits a multi-game PGN export (e.g. Lichess /api/games/user) into one text
# block per game and reads the `[Tag "Value"]` headers of a block.
# Move text is never interpreted.
# ==============================================================================

from __future__ import annotations

import re
from typing import Dict, List

# Blank line(s) followed by the opener of the next tag block.
_GAME_BOUNDARY = re.compile(r"\n[ \t]*\n\s*(?=\[Event\s)")
_HEADER_TAG = re.compile(r'\[(\w+)\s+"([^"]*)"\]')
_TAG_LINE = re.compile(r"^\s*\[\w+\s")


def split_pgn_games(pgn_text: str) -> List[str]:
    """
    Split a concatenated PGN export into single-game blocks.

    Parameters
    ----------
    pgn_text : str
        Raw export text, `\\n` or `\\r\\n` line endings.

    Returns
    -------
    List[str]
        One block per game in input order, each starting with its own tag
        block. Blank fragments are dropped; empty input yields `[]`.
    """
    normalized = pgn_text.replace("\r\n", "\n")
    blocks = [part.strip() for part in _GAME_BOUNDARY.split(normalized)]
    return [block for block in blocks if block]


def parse_pgn_headers(game_pgn: str) -> Dict[str, str]:
    """
    Parse every `[Name "Value"]` tag of one game block.

    Malformed tags are skipped and the last occurrence of a duplicated tag
    wins. Never raises.
    """
    return {match.group(1): match.group(2) for match in _HEADER_TAG.finditer(game_pgn)}


def extract_moves_section(game_pgn: str) -> str:
    """Return the text after the tag block (moves, comments, result token)."""
    moves: List[str] = []
    for line in game_pgn.replace("\r\n", "\n").split("\n"):
        if _TAG_LINE.match(line) and not moves:
            continue
        if line.strip():
            moves.append(line.strip())
    return " ".join(moves)
