from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DesignCreate(_Model):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    width: float = 1080
    height: float = 1080
    canvas_background: str = "#FFFFFF"
    elements: list[dict[str, Any]] = Field(default_factory=list)


class Design(DesignCreate):
    id: str
    version: int = 0
    last_modified_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def field_for(cls, key: str) -> Optional[str]:
        """Map a wire (camelCase) or Python key to a field name, None if unknown."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None

    def element_ids(self) -> list[Any]:
        return [el.get("id") for el in self.elements]
