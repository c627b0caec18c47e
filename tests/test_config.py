from __future__ import annotations

import pytest

from orderpad.config import load_backend_settings
from orderpad.errors import ConfigError

ENV_KEYS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "EXPO_PUBLIC_SUPABASE_URL",
    "EXPO_PUBLIC_SUPABASE_ANON_KEY",
    "ORDERPAD_PROVISION_ON_FIRST_USE",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so teardown also removes values loaded from .env files
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return tmp_path / ".env"


def test_reads_primary_names(clean_env, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

    settings = load_backend_settings(clean_env)

    assert settings.url == "https://example.supabase.co"
    assert settings.anon_key == "anon"
    assert settings.provision_on_first_use


def test_falls_back_to_expo_names(clean_env, monkeypatch):
    monkeypatch.setenv("EXPO_PUBLIC_SUPABASE_URL", "https://expo.supabase.co")
    monkeypatch.setenv("EXPO_PUBLIC_SUPABASE_ANON_KEY", "expo-anon")

    settings = load_backend_settings(clean_env)

    assert settings.url == "https://expo.supabase.co"
    assert settings.anon_key == "expo-anon"


def test_loads_dotenv_file(clean_env):
    clean_env.write_text(
        "SUPABASE_URL=https://file.supabase.co\n"
        "SUPABASE_ANON_KEY=file-anon\n"
        "ORDERPAD_PROVISION_ON_FIRST_USE=no\n"
    )

    settings = load_backend_settings(clean_env)

    assert settings.url == "https://file.supabase.co"
    assert settings.anon_key == "file-anon"
    assert not settings.provision_on_first_use


def test_missing_settings_are_named(clean_env, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")

    with pytest.raises(ConfigError) as excinfo:
        load_backend_settings(clean_env)

    assert excinfo.value.message == "Missing backend settings: SUPABASE_ANON_KEY"
