"""Base model for SubTrack records."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class SubtrackModel(BaseModel):
    """Base for all SubTrack Pydantic models.

    Records are frozen; edits build a new instance.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_id)

    def to_record(self) -> dict[str, Any]:
        """Convert model to a JSON-ready dict using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "SubtrackModel":
        """Create model from a persisted dict."""
        return cls.model_validate(record)
