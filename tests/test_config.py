from __future__ import annotations

from design_sync.server.config import Settings
from design_sync.server.db import SqlDesignStore
from design_sync.server.store import MemoryDesignStore, create_store


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("DESIGN_SYNC_STORE", "sql")
    monkeypatch.setenv("DESIGN_SYNC_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("DESIGN_SYNC_DEBUG_LOG_MSGS", "1")

    settings = Settings()

    assert settings.store == "sql"
    assert settings.database_url == "sqlite://"
    assert settings.debug_log_msgs is True


def test_create_store_picks_backend() -> None:
    assert isinstance(create_store(Settings(store="memory")), MemoryDesignStore)
    sql = create_store(Settings(store="sql", database_url="sqlite://"))
    assert isinstance(sql, SqlDesignStore)
    sql.engine.dispose()
