from __future__ import annotations

from typing import Any, Optional


class DesignSyncError(Exception):
    """Base for failures that are reported to the originating session only."""

    def __init__(self, message: str, *, design_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.design_id = design_id


class DesignNotFound(DesignSyncError):
    def __init__(self, design_id: str) -> None:
        super().__init__("Design not found", design_id=design_id)


class ElementNotFound(DesignSyncError):
    def __init__(self, design_id: str, element_id: Any) -> None:
        super().__init__("Element not found", design_id=design_id)
        self.element_id = element_id


class PersistenceFailure(DesignSyncError):
    """The Design Store could not complete a read or write."""
