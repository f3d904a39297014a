from __future__ import annotations

import pytest

from coach_workers.config import Config

_COACH_VARS = (
    "COACH_WORKER_LISTEN_DATABASE_URL",
    "COACH_POLL_INTERVAL",
    "COACH_BATCH_SIZE",
    "COACH_MAX_RETRIES",
    "COACH_HEALTH_PORT",
    "COACH_LOG_FORMAT",
    "COACH_CONDITION_MAPPING_PATH",
)


@pytest.fixture(autouse=True)
def _clear_coach_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _COACH_VARS:
        monkeypatch.delenv(name, raising=False)


def test_config_from_env_requires_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError, match="DATABASE_URL must be set"):
        Config.from_env()


def test_config_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/coach")

    cfg = Config.from_env()
    assert cfg.database_url == "postgresql://app@db/coach"
    assert cfg.listen_database_url == "postgresql://app@db/coach"
    assert cfg.poll_interval_seconds == 5.0
    assert cfg.batch_size == 10
    assert cfg.max_retries == 3
    assert cfg.health_port == 8081
    assert cfg.log_format == "json"
    assert cfg.condition_mapping_path is None


def test_config_from_env_honors_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/coach")
    monkeypatch.setenv("COACH_WORKER_LISTEN_DATABASE_URL", "postgresql://app@db/direct")
    monkeypatch.setenv("COACH_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("COACH_BATCH_SIZE", "25")
    monkeypatch.setenv("COACH_LOG_FORMAT", "text")
    monkeypatch.setenv("COACH_CONDITION_MAPPING_PATH", "/etc/coach/mapping.json")

    cfg = Config.from_env()
    assert cfg.listen_database_url == "postgresql://app@db/direct"
    assert cfg.poll_interval_seconds == 0.5
    assert cfg.batch_size == 25
    assert cfg.log_format == "text"
    assert cfg.condition_mapping_path == "/etc/coach/mapping.json"


def test_blank_mapping_path_means_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/coach")
    monkeypatch.setenv("COACH_CONDITION_MAPPING_PATH", "")

    assert Config.from_env().condition_mapping_path is None
