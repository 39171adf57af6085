# ==============================================================================
# lichess_client.py  –  Download a user's recent games as PGN
# ------------------------------------------------------------------------------
# GET https://lichess.org/api/games/user/{username}
#   • up to 3 attempts on server errors / connection problems
#   • 404 (unknown user) and 429 (rate limited) fail immediately
# Any failure raises LichessClientError; the caller decides what to do.
# ==============================================================================

from __future__ import annotations

import time
from typing import Final, Optional

import requests

from knightcoach.utils.logging_utils import setup_logger

LOGGER = setup_logger("lichess_client")

BASE_URL: Final[str] = "https://lichess.org/api"
MAX_ATTEMPTS: Final[int] = 3
RETRY_PAUSE: Final[int] = 5  # seconds
TIMEOUT: Final[tuple] = (10, 120)  # connect, read


class LichessClientError(RuntimeError):
    pass


class LichessClient:
    """Thin wrapper around the Lichess game export endpoint."""

    def __init__(
        self, token: Optional[str] = None, session: Optional[requests.Session] = None
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/x-chess-pgn"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def fetch_last_games_pgn(self, username: str, max_games: int = 30) -> str:
        """Return the raw PGN text of `username`'s last `max_games` games."""
        url = f"{BASE_URL}/games/user/{username}"
        params = {
            "max": max_games,
            "moves": "true",
            "tags": "true",
            "clocks": "false",
            "evals": "false",
            "opening": "true",
        }

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                resp = self.session.get(url, params=params, timeout=TIMEOUT)
            except requests.RequestException as exc:
                if attempt == MAX_ATTEMPTS:
                    raise LichessClientError(
                        f"Could not reach Lichess for '{username}': {exc}"
                    ) from exc
                LOGGER.warning(
                    "Request for '%s' failed (%s/%d): %s – retrying in %d s",
                    username,
                    attempt,
                    MAX_ATTEMPTS,
                    exc,
                    RETRY_PAUSE,
                )
                time.sleep(RETRY_PAUSE)
                continue

            if resp.status_code == 429:
                raise LichessClientError(f"Rate limited (429) fetching '{username}'")
            if resp.status_code == 404:
                raise LichessClientError(f"Lichess user '{username}' not found")
            if resp.ok:
                LOGGER.info("Fetched game export for '%s' (%d bytes)", username, len(resp.content))
                return resp.text

            LOGGER.warning(
                "Export for '%s' returned %s (%s/%d) – retrying in %d s",
                username,
                resp.status_code,
                attempt,
                MAX_ATTEMPTS,
                RETRY_PAUSE,
            )
            if attempt < MAX_ATTEMPTS:
                time.sleep(RETRY_PAUSE)

        raise LichessClientError(
            f"Could not fetch games for '{username}' after {MAX_ATTEMPTS} attempts"
        )
