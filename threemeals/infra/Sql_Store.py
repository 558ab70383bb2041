"""Relational backend for Remote Persistence (SQLAlchemy).

Works with any SQLAlchemy URL; SQLite is the default for local runs.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from threemeals.errors import StoreError
from threemeals.infra.Plan_Store import PlanStore, email_key

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class StoredPlan(Base):
    """One saved plan per email."""

    __tablename__ = "meal_plans"

    email = Column(String(320), primary_key=True)
    meal_plan = Column(Text, nullable=True)
    prefs = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class EmailSignup(Base):
    """Every email capture, in arrival order."""

    __tablename__ = "email_signups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class SqlPlanStore(PlanStore):
    def __init__(self, url: str, engine=None):
        if engine is None:
            if url.startswith("sqlite"):
                kwargs = {"connect_args": {"check_same_thread": False}}
                if url in ("sqlite://", "sqlite:///:memory:"):
                    kwargs["poolclass"] = StaticPool
                else:
                    Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
                engine = create_engine(url, echo=False, **kwargs)
            else:
                engine = create_engine(url, echo=False, pool_pre_ping=True)
        self.engine = engine
        self._Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        Base.metadata.create_all(engine)

    def save(self, email, meal_plan, prefs) -> bool:
        key = email_key(email)
        now = _utcnow()
        try:
            with self._Session() as session, session.begin():
                row = session.get(StoredPlan, key)
                if row is None:
                    row = StoredPlan(email=key)
                    session.add(row)
                if meal_plan is not None:
                    row.meal_plan = json.dumps(meal_plan, ensure_ascii=False)
                if prefs is not None:
                    row.prefs = json.dumps(prefs, ensure_ascii=False)
                row.updated_at = now
                session.add(EmailSignup(email=email.strip(), created_at=now))
        except SQLAlchemyError as e:
            raise StoreError(f"Database save failed: {e}") from e
        return True

    def get(self, email) -> Optional[dict]:
        try:
            with self._Session() as session:
                row = session.get(StoredPlan, email_key(email))
        except SQLAlchemyError as e:
            raise StoreError(f"Database lookup failed: {e}") from e
        if row is None or not row.meal_plan:
            return None
        try:
            return {
                "mealPlan": json.loads(row.meal_plan),
                "prefs": json.loads(row.prefs) if row.prefs else None,
            }
        except ValueError as e:
            raise StoreError(f"Stored plan for {email} is not valid JSON: {e}") from e

    def list_emails(self):
        try:
            with self._Session() as session:
                rows = session.execute(
                    select(EmailSignup).order_by(EmailSignup.id.desc())
                ).scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(f"Database list failed: {e}") from e
        return [{"email": r.email, "timestamp": r.created_at.isoformat()} for r in rows]


__all__ = ["SqlPlanStore", "StoredPlan", "EmailSignup"]
