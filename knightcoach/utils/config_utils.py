# ==============================================================================
# config_utils.py  –  Run settings and secret lookups
#
# Centralizes:
#   • .env loading (process env wins over the file)
#   • Typed run settings (`Settings`)
#   • AWS Secrets Manager plumbing for the Lichess token
# ==============================================================================

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import boto3
from botocore.exceptions import ClientError
from dotenv import load_dotenv

from knightcoach.history.game_history import DEDUPE_MODES

ROOT_ENV = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=ROOT_ENV, override=False)  # env values override file

_REGION: str = os.getenv("AWS_DEFAULT_REGION", "us-east-2")

DEFAULT_MAX_GAMES = 30


@dataclass(frozen=True)
class Settings:
    lichess_user: str
    lichess_token: Optional[str] = None
    max_games: int = DEFAULT_MAX_GAMES
    current_rating: Optional[int] = None
    output_dir: Path = Path("output")
    history_file: str = "lichess-games-history.json"
    site: str = "lichess.org"
    dedupe_mode: str = "value"
    strict_color: bool = False
    metrics_port: Optional[int] = None


# ------------------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------------------


def _bool_env(var_name: str, default: str = "false") -> bool:
    """Convert TRUE / true / 1 style env vars to bool."""
    return os.getenv(var_name, default).strip().lower() in {"1", "true", "yes"}


def _int_env(var_name: str, default: Optional[int] = None) -> Optional[int]:
    """Read an int env var; unset or malformed → `default`."""
    raw = os.getenv(var_name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------


def load_api_secrets(secret_name: str, region_name: str = _REGION) -> Dict[str, str]:
    """
    Fetch a JSON secret (e.g. ``{"LICHESS_TOKEN": "..."}``) from AWS Secrets Manager.
    """
    client = boto3.session.Session().client("secretsmanager", region_name=region_name)

    try:
        response = client.get_secret_value(SecretId=secret_name)
        return json.loads(response["SecretString"])
    except ClientError as exc:
        raise RuntimeError(f"Failed to load secret `{secret_name}`") from exc


def get_lichess_token() -> Optional[str]:
    """
    Return the bearer token for Lichess API calls (or None).

    LICHESS_TOKEN wins; otherwise the secret named by COACH_SECRET_NAME is
    consulted when set.
    """
    token = os.getenv("LICHESS_TOKEN")
    if token:
        return token

    secret_name = os.getenv("COACH_SECRET_NAME")
    if secret_name:
        return load_api_secrets(secret_name).get("LICHESS_TOKEN") or None
    return None


def load_settings(user: Optional[str] = None) -> Settings:
    """Build run settings from the environment; `user` overrides LICHESS_USER."""
    user = (user or os.getenv("LICHESS_USER") or "").strip()
    if not user:
        raise RuntimeError("Environment variable LICHESS_USER must be set")

    dedupe_mode = os.getenv("HISTORY_DEDUP", "value").strip().lower()
    if dedupe_mode not in DEDUPE_MODES:
        raise RuntimeError(f"HISTORY_DEDUP must be one of {DEDUPE_MODES}, got {dedupe_mode!r}")

    return Settings(
        lichess_user=user,
        lichess_token=get_lichess_token(),
        max_games=_int_env("MAX_GAMES", DEFAULT_MAX_GAMES),
        current_rating=_int_env("CURRENT_RATING"),
        output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
        history_file=os.getenv("HISTORY_FILE", "lichess-games-history.json"),
        site=os.getenv("GAME_SITE", "lichess.org"),
        dedupe_mode=dedupe_mode,
        strict_color=_bool_env("STRICT_COLOR"),
        metrics_port=_int_env("METRICS_PORT"),
    )
