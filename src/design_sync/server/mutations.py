from __future__ import annotations

import logging
from typing import Any, Union

from design_sync.protocol.messages import ScalarId

from .errors import DesignNotFound
from .schemas import Design
from .store import DesignPatch, DesignStore

logger = logging.getLogger(__name__)

# Bookkeeping owned by the store; a client "update" may not overwrite these.
PROTECTED_FIELDS = frozenset({"id", "version", "last_modified_at", "created_at", "updated_at"})


class MutationApplier:
    """
    Turns edit intents into Design Store writes.

    Every operation is a single ``merge_and_bump`` call: the change, the
    version increment and the last-modified stamp land together. Concurrent
    writers are last-write-wins.
    """

    def __init__(self, store: DesignStore) -> None:
        self.store = store

    async def _apply(self, design_id: str, patch: DesignPatch) -> Design:
        design = await self.store.merge_and_bump(design_id, patch)
        if design is None:
            raise DesignNotFound(design_id)
        return design

    def _fields(self, design_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            name = Design.field_for(key)
            if name is None:
                logger.debug("design %s: ignoring unknown field %r", design_id, key)
                continue
            if name in PROTECTED_FIELDS:
                logger.warning("design %s: refusing client write to %r", design_id, key)
                continue
            fields[name] = value
        return fields

    async def replace_fields(self, design_id: str, changes: dict[str, Any]) -> Design:
        return await self._apply(design_id, DesignPatch(fields=self._fields(design_id, changes)))

    async def append_element(self, design_id: str, element: dict[str, Any]) -> Design:
        # No uniqueness check: a double-sent add yields two elements with one id.
        return await self._apply(design_id, DesignPatch(push_element=element))

    async def update_element(self, design_id: str, element_id: ScalarId, updates: dict[str, Any]) -> Design:
        return await self._apply(
            design_id, DesignPatch(element_id=element_id, element_updates=updates)
        )

    async def delete_element(self, design_id: str, element_id: ScalarId) -> Design:
        # Always bumps the version, even when nothing matched.
        return await self._apply(design_id, DesignPatch(pull_element_id=element_id))

    async def set_background(self, design_id: str, color: str) -> Design:
        return await self.replace_fields(design_id, {"canvas_background": color})

    async def set_dimensions(
        self, design_id: str, width: Union[int, float], height: Union[int, float]
    ) -> Design:
        return await self.replace_fields(design_id, {"width": width, "height": height})

    async def set_name(self, design_id: str, name: str) -> Design:
        return await self.replace_fields(design_id, {"name": name})
