"""
Preference store.

Read once at startup, written only when the user explicitly saves.
A row that cannot be read is treated as missing so a corrupt store never
blocks the app from starting with defaults.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import models
from .schemas import Preferences

logger = logging.getLogger(__name__)

PREFERENCES_KEY = "weatherAppPreferences"


def load_preferences(db: Session) -> Preferences | None:
    """Return saved preferences, or None when nothing (usable) is stored."""
    row = db.get(models.StoredPreference, PREFERENCES_KEY)
    if row is None:
        return None
    try:
        return Preferences.model_validate(json.loads(row.json))
    except (ValueError, ValidationError) as exc:
        logger.warning("Ignoring unreadable saved preferences: %s", exc)
        return None


def save_preferences(db: Session, prefs: Preferences) -> Preferences:
    """Insert or overwrite the single preferences row."""
    payload = json.dumps(prefs.model_dump(mode="json", by_alias=True))

    row = db.get(models.StoredPreference, PREFERENCES_KEY)
    if row is None:
        row = models.StoredPreference(key=PREFERENCES_KEY, json=payload)
    else:
        row.json = payload
    row.updated_at = datetime.utcnow()

    db.add(row)
    db.commit()
    logger.info("Preferences saved: %s", payload)
    return prefs
