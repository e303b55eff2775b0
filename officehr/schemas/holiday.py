"""Pydantic schemas for the holiday calendar."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, field_validator


class HolidayWrite(BaseModel):
    name: str
    date: dt.date
    type: str

    @field_validator("name", "type")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name, date, and type are required")
        return v


class HolidayRead(BaseModel):
    id: int
    name: str
    date: dt.date
    day: str
    type: str

    model_config = {"from_attributes": True}
