# ==============================================================================
# conftest.py  –  Shared fixtures; keeps test runs from writing log files
# ==============================================================================

import os
import sys
from pathlib import Path

os.environ["KNIGHTCOACH_LOG_TO_FILE"] = "false"

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

ALICE_WINS_AS_WHITE = """[Event "Rated Blitz game"]
[Site "https://lichess.org/abc123"]
[Date "2025.11.16"]
[UTCDate "2025.11.16"]
[UTCTime "06:07:38"]
[White "Alice"]
[Black "Bob"]
[WhiteElo "1500"]
[BlackElo "1520"]
[TimeControl "600+5"]
[ECO "C50"]
[Result "1-0"]

1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5 4. c3 Nf6 5. d4 exd4 6. e5 d5 7. exf6 1-0"""

ALICE_LOSES_AS_BLACK = """[Event "Casual game"]
[Link "https://lichess.org/zzz999"]
[UTCDate "2025.11.17"]
[UTCTime "01:02:03"]
[White "Carol"]
[Black "Alice"]
[WhiteElo "1450"]
[BlackElo "1480"]
[TimeControl "180+0"]
[Result "1-0"]

1. d4 d5 2. c4 dxc4 3. Nf3 Nf6 4. e3 e6 5. Bxc4 1-0"""


@pytest.fixture
def white_win_pgn():
    return ALICE_WINS_AS_WHITE


@pytest.fixture
def black_loss_pgn():
    return ALICE_LOSES_AS_BLACK


@pytest.fixture
def two_game_export():
    return ALICE_WINS_AS_WHITE + "\n\n" + ALICE_LOSES_AS_BLACK + "\n"
