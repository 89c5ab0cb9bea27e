"""
Design Store: durable home of design documents.

The real-time layer only needs three calls (``exists``, ``read_by_id`` and
``merge_and_bump``); the rest backs the HTTP designs routes. ``merge_and_bump``
applies a ``DesignPatch`` and bumps the version counter in one atomic step,
returning None when the design is gone.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from .config import Settings
from .errors import ElementNotFound, PersistenceFailure
from .schemas import Design, DesignCreate, utcnow

logger = logging.getLogger(__name__)


def new_design_id() -> str:
    return uuid.uuid4().hex


@dataclass
class DesignPatch:
    """
    One atomic change to a design.

    - **fields**: top-level fields to set (Python field names)
    - **push_element**: element appended to the sequence
    - **element_id** + **element_updates**: merged into the first element with that id
    - **pull_element_id**: every element with that id is removed
    """

    fields: dict[str, Any] = field(default_factory=dict)
    push_element: Optional[dict[str, Any]] = None
    element_id: Optional[Any] = None
    element_updates: Optional[dict[str, Any]] = None
    pull_element_id: Optional[Any] = None

    def apply(self, design: Design, now: Optional[datetime] = None) -> Design:
        """Return the patched design with version + 1; ``design`` is left untouched."""
        now = now or utcnow()
        data = design.model_dump()
        data.update(self.fields)

        elements = [dict(el) for el in data["elements"]]
        if self.push_element is not None:
            elements.append(dict(self.push_element))
        if self.element_id is not None:
            for el in elements:
                if el.get("id") == self.element_id:
                    el.update(self.element_updates or {})
                    break
            else:
                raise ElementNotFound(design.id, self.element_id)
        if self.pull_element_id is not None:
            elements = [el for el in elements if el.get("id") != self.pull_element_id]

        data["elements"] = elements
        data["version"] = design.version + 1
        data["last_modified_at"] = now
        data["updated_at"] = now
        try:
            return Design.model_validate(data)
        except ValidationError as e:
            raise PersistenceFailure(f"invalid design update: {e}", design_id=design.id) from e


class DesignStore(Protocol):
    async def exists(self, design_id: str) -> bool: ...

    async def read_by_id(self, design_id: str) -> Optional[Design]: ...

    async def merge_and_bump(self, design_id: str, patch: DesignPatch) -> Optional[Design]: ...

    async def create(self, payload: DesignCreate) -> Design: ...

    async def list_designs(self) -> list[Design]: ...

    async def delete(self, design_id: str) -> bool: ...

    async def close(self) -> None: ...


class MemoryDesignStore:
    """
    In-process store.

    Nothing in ``merge_and_bump`` awaits, so under a single event loop the
    read-merge-bump sequence cannot interleave with another writer.
    """

    def __init__(self) -> None:
        self._designs: dict[str, Design] = {}

    async def exists(self, design_id: str) -> bool:
        return design_id in self._designs

    async def read_by_id(self, design_id: str) -> Optional[Design]:
        return self._designs.get(design_id)

    async def merge_and_bump(self, design_id: str, patch: DesignPatch) -> Optional[Design]:
        current = self._designs.get(design_id)
        if current is None:
            return None
        updated = patch.apply(current)
        self._designs[design_id] = updated
        return updated

    async def create(self, payload: DesignCreate) -> Design:
        design = Design(id=new_design_id(), **payload.model_dump())
        self._designs[design.id] = design
        return design

    async def list_designs(self) -> list[Design]:
        return sorted(self._designs.values(), key=lambda d: d.created_at, reverse=True)

    async def delete(self, design_id: str) -> bool:
        return self._designs.pop(design_id, None) is not None

    async def close(self) -> None:
        self._designs.clear()


def create_store(settings: Settings) -> DesignStore:
    if settings.store == "sql":
        from .db import SqlDesignStore

        logger.info("using SQL design store at %s", settings.database_url)
        return SqlDesignStore(settings.database_url)
    logger.info("using in-memory design store")
    return MemoryDesignStore()
