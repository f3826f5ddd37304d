"""Shared Pydantic base models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LunaraBase(BaseModel):
    """Base model for response schemas; reads engine dataclasses by attribute."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class LunaraRequest(LunaraBase):
    """Base model for request bodies.  Unknown keys are rejected."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )
