"""Persistence layer for budget state.

Each browser session owns one serialised ``BudgetState`` document, stored as
a JSON blob keyed by the session's user token. It defaults to SQLite for
local development, but accepts any SQLAlchemy-compatible URL (e.g.
PostgreSQL/MySQL) for shared deployments.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from budget_calc import config

logger = logging.getLogger(__name__)

Base = declarative_base()


class BudgetStateModel(Base):
    __tablename__ = "budget_states"

    user_token = Column(String(64), primary_key=True)
    state_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class StateStore:
    """Database-backed key/value store of serialised budget states."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def load(self, user_token: str) -> Optional[Dict[str, Any]]:
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.get(BudgetStateModel, user_token)
            if row is None:
                return None
            try:
                return json.loads(row.state_json)
            except json.JSONDecodeError as exc:
                logger.warning(f"Discarding corrupt state for {user_token}: {exc}")
                return None

    def save(self, user_token: str, state: Dict[str, Any]) -> None:
        if not user_token:
            return
        payload = json.dumps(state)
        with self._session_factory() as session:
            row = session.get(BudgetStateModel, user_token)
            if row is None:
                session.add(BudgetStateModel(user_token=user_token, state_json=payload))
            else:
                row.state_json = payload
                row.updated_at = datetime.utcnow()
            session.commit()

    def clear(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            row = session.get(BudgetStateModel, user_token)
            if row:
                session.delete(row)
                session.commit()


class UserStatePersistence:
    """Adapts ``StateStore`` to the ``load``/``save`` interface ``BudgetState`` expects."""

    def __init__(self, store: StateStore, user_token: str) -> None:
        self._store = store
        self._user_token = user_token

    def load(self) -> Optional[Dict[str, Any]]:
        return self._store.load(self._user_token)

    def save(self, state: Dict[str, Any]) -> None:
        self._store.save(self._user_token, state)


def create_store_from_env(url: str | None = None) -> StateStore:
    return StateStore(url or config.DATABASE_URL)
