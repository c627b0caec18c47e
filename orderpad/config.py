"""Runtime configuration defaults and backend settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from orderpad.errors import ConfigError

DEBUG_LOG_PATH = os.getenv("ORDERPAD_DEBUG_LOG", "/tmp/orderpad-debug.log")

CURRENCY_SYMBOL = "£"
TABLE_NUMBER_MAX_LEN = 8
ORDER_NOTES_MAX_LEN = 200

# Realtime channel names, one per screen that follows the order feed.
DASHBOARD_CHANNEL = "orders_changes"
ORDERS_LIST_CHANNEL = "orders_list_changes"

_URL_KEYS = ("SUPABASE_URL", "EXPO_PUBLIC_SUPABASE_URL")
_ANON_KEY_KEYS = ("SUPABASE_ANON_KEY", "EXPO_PUBLIC_SUPABASE_ANON_KEY")
_PROVISION_KEY = "ORDERPAD_PROVISION_ON_FIRST_USE"


@dataclass(frozen=True)
class BackendSettings:
    """Hosted backend endpoint and public key."""

    url: str
    anon_key: str
    provision_on_first_use: bool = True


def _first_env(keys: tuple[str, ...]) -> str:
    for key in keys:
        value = os.getenv(key, "").strip()
        if value:
            return value
    return ""


def _env_flag(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_backend_settings(env_file: str | Path | None = None) -> BackendSettings:
    """Read backend settings once, loading a .env file first if present."""
    if env_file is not None:
        load_dotenv(dotenv_path=env_file)
    else:
        load_dotenv()

    url = _first_env(_URL_KEYS)
    anon_key = _first_env(_ANON_KEY_KEYS)
    missing = [keys[0] for keys, value in ((_URL_KEYS, url), (_ANON_KEY_KEYS, anon_key)) if not value]
    if missing:
        raise ConfigError(f"Missing backend settings: {', '.join(missing)}")

    return BackendSettings(
        url=url,
        anon_key=anon_key,
        provision_on_first_use=_env_flag(_PROVISION_KEY, True),
    )
