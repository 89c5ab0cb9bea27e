from __future__ import annotations

import asyncio
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import PersistenceFailure
from .schemas import Design, DesignCreate, utcnow
from .store import DesignPatch, new_design_id

Base = declarative_base()

T = TypeVar("T")


class DesignRow(Base):
    __tablename__ = "designs"

    id = Column(String(32), primary_key=True, default=new_design_id)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    width = Column(Float, nullable=False, default=1080)
    height = Column(Float, nullable=False, default=1080)
    canvas_background = Column(String(64), nullable=False, default="#FFFFFF")
    elements = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=0)
    last_modified_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


_COLUMNS = [c.name for c in DesignRow.__table__.columns]


def _aware(ts: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns.
    if ts is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _to_design(row: DesignRow) -> Design:
    data = {name: getattr(row, name) for name in _COLUMNS}
    for key in ("last_modified_at", "created_at", "updated_at"):
        data[key] = _aware(data[key])
    data["elements"] = list(data["elements"] or [])
    return Design.model_validate(data)


class SqlDesignStore:
    """
    SQLAlchemy-backed store.

    Sessions are synchronous and run in a worker thread. ``merge_and_bump``
    holds a process-local lock around one transaction (plus ``FOR UPDATE``
    where the backend honours it) so the merge and the version bump commit
    together.
    """

    def __init__(self, url: str) -> None:
        kwargs: dict = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(url, **kwargs)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._write_lock = threading.Lock()
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._sessions()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(str(e)) from e
        finally:
            db.close()

    async def _run(self, fn: Callable[[], T]) -> T:
        return await asyncio.to_thread(fn)

    async def exists(self, design_id: str) -> bool:
        def _exists() -> bool:
            with self._session() as db:
                return db.execute(select(DesignRow.id).where(DesignRow.id == design_id)).first() is not None

        return await self._run(_exists)

    async def read_by_id(self, design_id: str) -> Optional[Design]:
        def _read() -> Optional[Design]:
            with self._session() as db:
                row = db.get(DesignRow, design_id)
                return _to_design(row) if row else None

        return await self._run(_read)

    async def merge_and_bump(self, design_id: str, patch: DesignPatch) -> Optional[Design]:
        def _merge() -> Optional[Design]:
            with self._write_lock, self._session() as db:
                row = db.execute(
                    select(DesignRow).where(DesignRow.id == design_id).with_for_update()
                ).scalar_one_or_none()
                if row is None:
                    return None
                updated = patch.apply(_to_design(row))
                for name in _COLUMNS:
                    if name != "id":
                        setattr(row, name, getattr(updated, name))
                db.commit()
                return updated

        return await self._run(_merge)

    async def create(self, payload: DesignCreate) -> Design:
        def _create() -> Design:
            with self._session() as db:
                now = utcnow()
                row = DesignRow(
                    id=new_design_id(),
                    last_modified_at=now,
                    created_at=now,
                    updated_at=now,
                    **payload.model_dump(),
                )
                db.add(row)
                db.commit()
                db.refresh(row)
                return _to_design(row)

        return await self._run(_create)

    async def list_designs(self) -> list[Design]:
        def _list() -> list[Design]:
            with self._session() as db:
                rows = db.execute(select(DesignRow).order_by(DesignRow.created_at.desc())).scalars().all()
                return [_to_design(r) for r in rows]

        return await self._run(_list)

    async def delete(self, design_id: str) -> bool:
        def _delete() -> bool:
            with self._session() as db:
                row = db.get(DesignRow, design_id)
                if row is None:
                    return False
                db.delete(row)
                db.commit()
                return True

        return await self._run(_delete)

    async def close(self) -> None:
        await self._run(self.engine.dispose)
