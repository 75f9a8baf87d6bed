"""
ORM models.

Preferences are stored as a small JSON document under a fixed key, the same
shape the browser version kept in localStorage:
    {"unit": "C", "lastLocation": "London"}
"""

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from .db import Base


class StoredPreference(Base):
    __tablename__ = "preferences"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Serialized Preferences document
    json: Mapped[str] = mapped_column(Text)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
