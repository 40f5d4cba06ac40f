"""
=============================================================================
MODELS.PY — Database tables
=============================================================================
The whole application state is a single JSON document (see schemas.AppState).
The database only has to keep it between runs, so there is one table that
works as a key-value store:

  app_state
  ├── key         → which snapshot ("habit-tracker-multi-user")
  ├── payload     → the JSON document
  └── updated_at  → last successful save
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime
from database import Base


# =============================================================================
# ===================== TABLE 1: APP_STATE ====================================
# =============================================================================

class StateRecord(Base):
    __tablename__ = "app_state"

    key = Column(String(100), primary_key=True)

    payload = Column(Text, nullable=False)
    # payload → AppState serialized with model_dump_json()
    # Stored as Text: a damaged payload is read back as is and rejected
    # by the store, which then falls back to the default snapshot.

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
