from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response, WebSocket, WebSocketDisconnect

from design_sync.protocol.messages import Hello

from .config import Settings, configure_logging, get_settings
from .coordinator import SessionCoordinator
from .schemas import Design, DesignCreate
from .store import DesignStore, create_store

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Process-scoped real-time state: built here, torn down at shutdown.
        store = create_store(settings)
        coordinator = SessionCoordinator(store, debug_log_msgs=settings.debug_log_msgs)
        app.state.store = store
        app.state.coordinator = coordinator
        try:
            yield
        finally:
            await coordinator.close()

    app = FastAPI(title="design-sync", lifespan=lifespan)

    def get_store(request: Request) -> DesignStore:
        return request.app.state.store

    @app.get("/healthz")
    def healthz(request: Request):
        return {"ok": True, "rooms": len(request.app.state.coordinator.registry.rooms())}

    @app.post("/designs", response_model=Design, status_code=201)
    async def create_design(payload: DesignCreate, store: DesignStore = Depends(get_store)):
        return await store.create(payload)

    @app.get("/designs", response_model=list[Design])
    async def list_designs(store: DesignStore = Depends(get_store)):
        return await store.list_designs()

    @app.get("/designs/{design_id}", response_model=Design)
    async def get_design(design_id: str, store: DesignStore = Depends(get_store)):
        design = await store.read_by_id(design_id)
        if design is None:
            raise HTTPException(status_code=404, detail="Design not found")
        return design

    @app.delete("/designs/{design_id}", status_code=204)
    async def delete_design(design_id: str, store: DesignStore = Depends(get_store)):
        if not await store.delete(design_id):
            raise HTTPException(status_code=404, detail="Design not found")
        return Response(status_code=204)

    @app.websocket("/ws")
    async def ws(ws: WebSocket):
        await ws.accept()
        coordinator: SessionCoordinator = ws.app.state.coordinator
        session = coordinator.connect(ws)
        await session.send(Hello(session_id=session.session_id))

        try:
            while True:
                raw = await ws.receive_text()
                await coordinator.handle(session, raw)
        except WebSocketDisconnect:
            pass
        finally:
            await coordinator.disconnect(session)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "design_sync.server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
