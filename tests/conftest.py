from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
from fastapi.testclient import TestClient

from design_sync.server.app import create_app
from design_sync.server.config import Settings
from design_sync.server.coordinator import SessionCoordinator
from design_sync.server.schemas import Design, DesignCreate
from design_sync.server.store import MemoryDesignStore


class FakeSocket:
    """Stands in for a websocket; keeps every frame the server sent it."""

    def __init__(self, name: str = "ws", *, broken: bool = False) -> None:
        self.name = name
        self.broken = broken
        self.sent: list[dict[str, Any]] = []

    async def send_text(self, data: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(data))

    def events(self) -> list[str]:
        return [m["t"] for m in self.sent]

    def last(self) -> dict[str, Any]:
        return self.sent[-1]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def store() -> MemoryDesignStore:
    return MemoryDesignStore()


@pytest.fixture
def design(store: MemoryDesignStore) -> Design:
    return asyncio.run(store.create(DesignCreate(name="D1")))


@pytest.fixture
def coordinator(store: MemoryDesignStore) -> SessionCoordinator:
    return SessionCoordinator(store)


@pytest.fixture
def client():
    app = create_app(Settings(store="memory"))
    with TestClient(app) as c:
        yield c
