"""
Holiday calendar: dates on which the auto-absence job does nothing.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Column, Date, Integer, String

from officehr.db.base import Base


class Holiday(Base):
    __tablename__ = "holidays"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    date: date = Column(Date, unique=True, nullable=False, index=True)  # type: ignore[assignment]
    day: str = Column(String(12), nullable=False)  # type: ignore[assignment]
    type: str = Column(String(50), nullable=False)  # type: ignore[assignment]
